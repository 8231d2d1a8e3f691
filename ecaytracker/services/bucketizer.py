import math

from ecaytracker.schemas.dashboard import MileageBucket
from ecaytracker.schemas.listing import Listing

BUCKET_SIZE = 25_000
MAX_MILEAGE = 300_000
MIN_BUCKET_SAMPLES = 2


def build_mileage_buckets(
    listings: list[Listing],
    bucket_size: int = BUCKET_SIZE,
    max_mileage: int = MAX_MILEAGE,
    min_samples: int = MIN_BUCKET_SAMPLES,
) -> list[MileageBucket]:
    """Average price per mileage range, ascending by range.

    Mileage at or above the cap lands in the cap bucket. Buckets with fewer
    than ``min_samples`` listings are dropped.
    """
    sums = _accumulate(listings, bucket_size, max_mileage)
    return [
        MileageBucket(bucket=key, avg_price=_round_half_up(total / count), count=count)
        for key, (total, count) in sorted(sums.items())
        if count >= min_samples
    ]


def build_reference_buckets(
    listings: list[Listing],
    bucket_size: int = BUCKET_SIZE,
) -> list[MileageBucket]:
    """Bucket the bundled reference dataset: no cap and no minimum sample."""
    sums = _accumulate(listings, bucket_size, None)
    return [
        MileageBucket(bucket=key, avg_price=_round_half_up(total / count), count=count)
        for key, (total, count) in sorted(sums.items())
    ]


def format_bucket_label(bucket: int) -> str:
    return f"{bucket // 1000}k"


def _accumulate(
    listings: list[Listing],
    bucket_size: int,
    max_mileage: int | None,
) -> dict[int, tuple[float, int]]:
    sums: dict[int, tuple[float, int]] = {}
    for l in listings:
        if l.mileage is None or l.price <= 0:
            continue
        key = (l.mileage // bucket_size) * bucket_size
        if max_mileage is not None:
            key = min(key, max_mileage)
        total, count = sums.get(key, (0.0, 0))
        sums[key] = (total + l.price, count + 1)
    return sums


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
