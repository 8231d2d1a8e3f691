"""Tests for the mileage/price bucketizer."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ecaytracker.schemas.dashboard import MileageBucket
from ecaytracker.services.bucketizer import (
    build_mileage_buckets,
    build_reference_buckets,
    format_bucket_label,
)


def _listings(make_listing, pairs):
    return [make_listing(mileage=m, price=p) for m, p in pairs]


class TestMileageBuckets:
    def test_scenario(self, make_listing):
        listings = _listings(make_listing, [
            (500, 1000), (500, 3000), (26_000, 5000), (27_000, 7000), (400_000, 9000),
        ])
        assert build_mileage_buckets(listings) == [
            MileageBucket(bucket=0, avg_price=2000, count=2),
            MileageBucket(bucket=25_000, avg_price=6000, count=2),
        ]

    def test_single_sample_yields_nothing(self, make_listing):
        assert build_mileage_buckets(_listings(make_listing, [(1000, 5000)])) == []

    def test_empty_input(self):
        assert build_mileage_buckets([]) == []

    def test_high_mileage_folds_into_cap_bucket(self, make_listing):
        listings = _listings(make_listing, [(300_000, 4000), (999_999, 6000)])
        assert build_mileage_buckets(listings) == [MileageBucket(bucket=300_000, avg_price=5000, count=2)]

    def test_boundary_belongs_to_upper_bucket(self, make_listing):
        listings = _listings(make_listing, [(24_999, 1000), (25_000, 2000), (25_001, 4000)])
        buckets = build_mileage_buckets(listings)
        assert [(b.bucket, b.count) for b in buckets] == [(25_000, 2)]

    def test_excludes_missing_mileage_and_free_listings(self, make_listing):
        listings = _listings(make_listing, [(None, 5000), (10_000, 0), (12_000, 5000), (15_000, 7000)])
        assert build_mileage_buckets(listings) == [MileageBucket(bucket=0, avg_price=6000, count=2)]

    def test_average_rounds_half_up(self, make_listing):
        listings = _listings(make_listing, [(1000, 1000), (2000, 1001)])
        assert build_mileage_buckets(listings)[0].avg_price == 1001

    def test_ascending_order(self, make_listing):
        listings = _listings(make_listing, [
            (200_000, 1), (200_001, 1), (60_000, 1), (70_000, 1), (0, 1), (1, 1),
        ])
        assert [b.bucket for b in build_mileage_buckets(listings)] == [0, 50_000, 200_000]

    def test_negative_mileage_cannot_reach_buckets(self, make_listing):
        with pytest.raises(ValidationError):
            make_listing(mileage=-5, price=1000)


class TestReferenceBuckets:
    def test_keeps_single_sample_buckets(self, make_listing):
        listings = _listings(make_listing, [(1000, 5000)])
        assert build_reference_buckets(listings) == [MileageBucket(bucket=0, avg_price=5000, count=1)]

    def test_no_cap(self, make_listing):
        listings = _listings(make_listing, [(410_000, 3000)])
        assert build_reference_buckets(listings)[0].bucket == 400_000


class TestLabels:
    def test_compact_thousands(self):
        assert format_bucket_label(0) == "0k"
        assert format_bucket_label(25_000) == "25k"
        assert format_bucket_label(300_000) == "300k"
