# daytally/ledger/aggregation.py
"""
Aggregation engine for DayTally.
Turns a loaded set of activity records into category totals, percentages and
chart-ready series. Pure functions only; identical input gives identical output.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence, Tuple

import polars as pl

from daytally.ledger.models import CATEGORY_COLORS, DAY_MINUTES, ActivityRecord, Category

RECORD_SCHEMA = {"id": pl.Utf8, "name": pl.Utf8, "category": pl.Utf8, "duration": pl.Int64}


def records_frame(records: Sequence[ActivityRecord]) -> pl.DataFrame:
    """One row per record, in ledger order."""
    return pl.DataFrame(
        {
            "id": [r.id for r in records],
            "name": [r.name for r in records],
            "category": [r.category.value for r in records],
            "duration": [r.duration for r in records],
        },
        schema=RECORD_SCHEMA,
    )


def _category_totals(records: Sequence[ActivityRecord]) -> pl.DataFrame:
    # maintain_order keeps categories in order of first appearance
    return (
        records_frame(records)
        .group_by("category", maintain_order=True)
        .agg(pl.col("duration").sum().alias("minutes"))
    )


def total_minutes(records: Sequence[ActivityRecord]) -> int:
    if not records:
        return 0
    return int(records_frame(records)["duration"].sum())


def by_category(records: Sequence[ActivityRecord]) -> Dict[Category, int]:
    """Minutes per category; categories without activities are left out."""
    if not records:
        return {}
    totals = _category_totals(records)
    return {Category(c): int(m) for c, m in zip(totals["category"], totals["minutes"])}


def is_complete(records: Sequence[ActivityRecord]) -> bool:
    return bool(records) and total_minutes(records) == DAY_MINUTES


def _sorted_totals(records: Sequence[ActivityRecord]) -> pl.DataFrame:
    # Stable sort: equal totals keep first-appearance order.
    return _category_totals(records).sort("minutes", descending=True, maintain_order=True)


def top_category(records: Sequence[ActivityRecord]) -> Optional[Category]:
    if not records:
        return None
    return Category(_sorted_totals(records)["category"][0])


def percentage(category_total: int) -> float:
    """Share of the full day, rounded half-up to one decimal place."""
    share = Decimal(category_total * 100) / Decimal(DAY_MINUTES)
    return float(share.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def hours_minutes(total_duration: int) -> Tuple[int, int]:
    return divmod(total_duration, 60)


def format_duration(total_duration: int) -> str:
    hours, minutes = hours_minutes(total_duration)
    return f"{hours}h {minutes}m"


def category_breakdown(records: Sequence[ActivityRecord]) -> List[dict]:
    """Rows for the category table, largest first."""
    if not records:
        return []
    rows = []
    for category, minutes in _sorted_totals(records).iter_rows():
        category = Category(category)
        hours, mins = hours_minutes(minutes)
        rows.append({
            "category": category,
            "minutes": minutes,
            "hours_part": hours,
            "minutes_part": mins,
            "display": format_duration(minutes),
            "percentage": percentage(minutes),
            "color": CATEGORY_COLORS[category],
        })
    return rows


def pie_series(records: Sequence[ActivityRecord]) -> dict:
    """Proportion chart keyed by category."""
    totals = by_category(records)
    return {
        "labels": [c.value for c in totals],
        "values": list(totals.values()),
        "colors": [CATEGORY_COLORS[c] for c in totals],
    }


def bar_series(records: Sequence[ActivityRecord]) -> dict:
    """Magnitude chart with one bar per activity."""
    return {
        "labels": [r.name for r in records],
        "values": [r.duration for r in records],
        "colors": [CATEGORY_COLORS[r.category] for r in records],
        "label": "Duration (minutes)",
    }


def summarize_day(day: str, records: Sequence[ActivityRecord]) -> dict:
    """Everything the analytics dashboard shows for one complete day."""
    totals = by_category(records)
    total = total_minutes(records)
    return {
        "date": day,
        "total_minutes": total,
        "total_display": format_duration(total),
        "activity_count": len(records),
        "category_count": len(totals),
        "top_category": top_category(records),
        "breakdown": category_breakdown(records),
        "pie": pie_series(records),
        "bar": bar_series(records),
    }
