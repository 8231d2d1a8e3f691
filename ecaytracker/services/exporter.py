import io
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from ecaytracker.schemas.dashboard import DisplayRow
from ecaytracker.schemas.stats import AggregateStats

PLACEHOLDER = "—"

STAT_LABELS = {
    "total_listings": "Total Listings",
    "avg_price": "Average Price",
    "median_price": "Median Price",
    "avg_mileage": "Average Mileage",
    "new_this_week": "New This Week",
}


def export_rows_to_excel(rows: list[DisplayRow], stats: AggregateStats | None = None) -> io.BytesIO:
    """Generate an Excel file from the current listings table view."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Listings"

    # Header style
    header_font = Font(bold=True, color="FFFFFF", size=11)
    header_fill = PatternFill(start_color="2C3E50", end_color="2C3E50", fill_type="solid")
    header_align = Alignment(horizontal="center", vertical="center")
    thin_border = Border(
        left=Side(style="thin"),
        right=Side(style="thin"),
        top=Side(style="thin"),
        bottom=Side(style="thin"),
    )

    headers = [
        "Make", "Model", "Year", "Price", "Fair Price", "Mileage",
        "Condition", "Deal Rating", "Listed", "Link"
    ]

    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_align
        cell.border = thin_border

    # Data rows
    money_fmt = '#,##0'
    for row_idx, row in enumerate(rows, 2):
        ws.cell(row=row_idx, column=1, value=row.make)
        ws.cell(row=row_idx, column=2, value=row.model)
        ws.cell(row=row_idx, column=3, value=row.year if row.year is not None else PLACEHOLDER)

        price_cell = ws.cell(row=row_idx, column=4, value=row.price)
        price_cell.number_format = money_fmt

        if row.fair_price is not None:
            fair_cell = ws.cell(row=row_idx, column=5, value=row.fair_price)
            fair_cell.number_format = money_fmt
        else:
            ws.cell(row=row_idx, column=5, value=PLACEHOLDER)

        if row.mileage is not None:
            mileage_cell = ws.cell(row=row_idx, column=6, value=row.mileage)
            mileage_cell.number_format = money_fmt
        else:
            ws.cell(row=row_idx, column=6, value=PLACEHOLDER)

        ws.cell(row=row_idx, column=7, value=row.condition or PLACEHOLDER)
        ws.cell(row=row_idx, column=8, value=row.deal_rating or PLACEHOLDER)
        ws.cell(row=row_idx, column=9, value=row.listed_date.strftime("%Y-%m-%d"))

        # Hyperlink to listing
        if row.url:
            link_cell = ws.cell(row=row_idx, column=10, value="View Listing")
            link_cell.hyperlink = row.url
            link_cell.font = Font(color="0563C1", underline="single")

        # Alternate row shading
        if row_idx % 2 == 0:
            light_fill = PatternFill(start_color="F2F3F4", end_color="F2F3F4", fill_type="solid")
            for col in range(1, len(headers) + 1):
                ws.cell(row=row_idx, column=col).fill = light_fill

    # Column widths
    col_widths = [14, 22, 8, 12, 12, 12, 12, 14, 12, 15]
    for i, width in enumerate(col_widths, 1):
        ws.column_dimensions[get_column_letter(i)].width = width

    # Stats sheet
    if stats:
        ws_stats = wb.create_sheet("Statistics")
        ws_stats.cell(row=1, column=1, value="Metric").font = Font(bold=True)
        ws_stats.cell(row=1, column=2, value="Value").font = Font(bold=True)
        for i, (key, label) in enumerate(STAT_LABELS.items(), 2):
            ws_stats.cell(row=i, column=1, value=label)
            ws_stats.cell(row=i, column=2, value=getattr(stats, key))
        ws_stats.column_dimensions["A"].width = 25
        ws_stats.column_dimensions["B"].width = 15

    # Freeze header row
    ws.freeze_panes = "A2"

    # Auto-filter
    ws.auto_filter.ref = f"A1:{get_column_letter(len(headers))}1"

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output
