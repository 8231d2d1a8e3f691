"""Tests for the Excel export of the listings table."""

from __future__ import annotations

from datetime import datetime, timezone

from openpyxl import load_workbook

from ecaytracker.schemas.dashboard import DisplayRow
from ecaytracker.schemas.stats import AggregateStats
from ecaytracker.services.exporter import PLACEHOLDER, export_rows_to_excel

LISTED = datetime(2026, 2, 20, 10, 0, tzinfo=timezone.utc)


def row(**overrides) -> DisplayRow:
    fields = {
        "id": "L-1",
        "make": "Toyota",
        "model": "Camry",
        "year": 2019,
        "price": 18500.0,
        "mileage": 42000,
        "fair_price": 19200.0,
        "listed_date": LISTED,
        "condition": "Used",
        "deal_rating": "Good Deal",
        "url": "https://ecaytrade.com/advert/1",
    }
    fields.update(overrides)
    return DisplayRow(**fields)


class TestExport:
    def test_headers_and_values(self):
        wb = load_workbook(export_rows_to_excel([row()]))
        ws = wb["Listings"]
        assert ws.cell(row=1, column=1).value == "Make"
        assert ws.cell(row=1, column=10).value == "Link"
        assert ws.cell(row=2, column=1).value == "Toyota"
        assert ws.cell(row=2, column=4).value == 18500
        assert ws.cell(row=2, column=9).value == "2026-02-20"
        assert ws.cell(row=2, column=10).hyperlink.target == "https://ecaytrade.com/advert/1"

    def test_missing_values_use_placeholder(self):
        wb = load_workbook(export_rows_to_excel([
            row(year=None, mileage=None, fair_price=None, deal_rating=None, condition="", url=None),
        ]))
        ws = wb["Listings"]
        for col in (3, 5, 6, 7, 8):
            assert ws.cell(row=2, column=col).value == PLACEHOLDER
        assert ws.cell(row=2, column=10).value is None

    def test_stats_sheet_only_with_stats(self):
        wb = load_workbook(export_rows_to_excel([row()]))
        assert wb.sheetnames == ["Listings"]

        stats = AggregateStats(total_listings=3, avg_price=12000.5, median_price=11000, avg_mileage=50000, new_this_week=1)
        wb = load_workbook(export_rows_to_excel([row()], stats))
        ws = wb["Statistics"]
        assert ws.cell(row=2, column=1).value == "Total Listings"
        assert ws.cell(row=2, column=2).value == 3
        assert ws.cell(row=3, column=2).value == 12000.5
        assert ws.cell(row=6, column=1).value == "New This Week"

    def test_empty_rows(self):
        ws = load_workbook(export_rows_to_excel([]))["Listings"]
        assert ws.max_row == 1
