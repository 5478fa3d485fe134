"""
Activity heatmap for weight, diet and workout entries.

Buckets a trailing year of entries into a GitHub-style grid: one column per
ISO week, one row per weekday (Monday first), with a 0-4 intensity level per
day and month labels placed where each month begins.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from src.logging_utils import get_logger

logger = get_logger(__name__)

ENTRY_CATEGORIES = ("weight", "diet", "workout")
MAX_INTENSITY = 4

MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_DATE_TOKEN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:$|[T ])")


@dataclass(frozen=True)
class DateRange:
    """Inclusive trailing window of calendar dates."""

    start: date
    end: date
    dates: tuple[str, ...]


@dataclass(frozen=True)
class DayActivity:
    """Entry counts for a single day."""

    count: int = 0
    types: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType({c: 0 for c in ENTRY_CATEGORIES})
    )
    intensity: int = 0


@dataclass(frozen=True)
class DayCell:
    """A populated grid slot."""

    date: str
    activity: DayActivity


@dataclass(frozen=True)
class WeekColumn:
    """One ISO week of the grid; slots run Monday (0) to Sunday (6)."""

    key: str
    slots: tuple[Optional[DayCell], ...]

    def first_date(self) -> Optional[str]:
        for cell in self.slots:
            if cell is not None:
                return cell.date
        return None


def build_range(today: date) -> DateRange:
    """
    Build the trailing one-year window ending on today.

    Args:
        today: Reference date. A datetime is truncated to its calendar date.

    Returns:
        DateRange from the same month/day one year earlier through today,
        with every date in between as a YYYY-MM-DD key.
    """
    if isinstance(today, datetime):
        today = today.date()

    try:
        start = today.replace(year=today.year - 1)
    except ValueError:
        # Feb 29 has no counterpart in the previous year
        start = today.replace(year=today.year - 1, day=28)

    total_days = (today - start).days + 1
    dates = tuple((start + timedelta(days=i)).isoformat() for i in range(total_days))
    return DateRange(start=start, end=today, dates=dates)


def entry_date_key(entry) -> Optional[str]:
    """
    Extract the YYYY-MM-DD key from an entry's date field.

    The date token is taken literally from the stored string; any time or
    timezone suffix is dropped without converting it.

    Args:
        entry: Dict with a 'date' key, or an object with a 'date' attribute

    Returns:
        The date key, or None if the date is missing or malformed
    """
    if isinstance(entry, dict):
        value = entry.get("date")
    else:
        value = getattr(entry, "date", None)

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return None

    match = _DATE_TOKEN.match(value.strip())
    if not match:
        return None

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def classify(count: int) -> int:
    """Map a day's entry count to an intensity level from 0 to 4."""
    return max(0, min(count, MAX_INTENSITY))


def aggregate(
    date_range: DateRange,
    weight_entries: Iterable = (),
    diet_entries: Iterable = (),
    workout_entries: Iterable = (),
) -> dict[str, DayActivity]:
    """
    Count entries per day across the date range.

    Args:
        date_range: Window from build_range()
        weight_entries: Weight entry records
        diet_entries: Diet entry records
        workout_entries: Workout entry records

    Returns:
        Mapping of every date key in the range to its DayActivity.
        Entries outside the range or with malformed dates are skipped.
    """
    counts = {key: {c: 0 for c in ENTRY_CATEGORIES} for key in date_range.dates}

    sources = zip(ENTRY_CATEGORIES, (weight_entries, diet_entries, workout_entries))
    for category, entries in sources:
        for entry in entries or ():
            key = entry_date_key(entry)
            if key is None:
                logger.debug("Skipping %s entry with malformed date: %r", category, entry)
                continue
            if key in counts:
                counts[key][category] += 1

    activity = {}
    for key, types in counts.items():
        total = sum(types.values())
        activity[key] = DayActivity(
            count=total, types=MappingProxyType(types), intensity=classify(total)
        )
    return activity


def layout(
    date_range: DateRange,
    activity: Optional[dict[str, DayActivity]] = None,
) -> list[WeekColumn]:
    """
    Arrange the range into ISO week columns.

    Weeks are keyed '{iso_year}-W{week:02d}', so a week straddling New Year
    stays in one column and sorting the keys gives chronological order.
    Boundary weeks keep empty slots where dates fall outside the range.
    """
    activity = activity or {}
    weeks: dict[str, list] = {}

    for key in date_range.dates:
        iso_year, week, weekday = date.fromisoformat(key).isocalendar()
        week_key = f"{iso_year}-W{week:02d}"
        slots = weeks.setdefault(week_key, [None] * 7)
        slots[weekday - 1] = DayCell(date=key, activity=activity.get(key, DayActivity()))

    return [WeekColumn(key=k, slots=tuple(weeks[k])) for k in sorted(weeks)]


def place_labels(columns: list[WeekColumn]) -> dict[int, str]:
    """
    Place a month label on each column where a new month begins.

    Args:
        columns: Week columns from layout()

    Returns:
        Mapping of column index to month abbreviation
    """
    labels = {}
    previous_month = None

    for index, column in enumerate(columns):
        first = column.first_date()
        if first is None:
            continue
        month = int(first[5:7])
        if month != previous_month:
            labels[index] = MONTH_NAMES[month - 1]
            previous_month = month

    return labels


def format_date(date_key: str) -> str:
    """Format a date key as e.g. 'Sat, Jun 15, 2024'."""
    day = date.fromisoformat(date_key)
    return f"{WEEKDAY_NAMES[day.weekday()]}, {MONTH_NAMES[day.month - 1]} {day.day}, {day.year}"


def _entries_label(count: int) -> str:
    return "entry" if count == 1 else "entries"


@dataclass(frozen=True)
class Heatmap:
    """Finished heatmap grid with per-day lookups."""

    date_range: DateRange
    activity: dict[str, DayActivity]
    columns: list[WeekColumn]
    month_labels: dict[int, str]

    def cell(self, date_key: str) -> Optional[DayActivity]:
        return self.activity.get(date_key)

    def tooltip_for(self, date_key: str) -> str:
        """Human-readable summary of a day's entries."""
        activity = self.activity.get(date_key)
        if activity is None:
            return "No data"

        formatted = format_date(date_key)
        if activity.count == 0:
            return f"No activity on {formatted}"

        lines = [f"{activity.count} {_entries_label(activity.count)} on {formatted}:"]
        for category in ENTRY_CATEGORIES:
            n = activity.types[category]
            if n > 0:
                lines.append(f"• {n} {category} {_entries_label(n)}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Serialize the grid for the API and templates."""
        columns = []
        for column in self.columns:
            days = []
            for cell in column.slots:
                if cell is None:
                    days.append(None)
                    continue
                days.append({
                    "date": cell.date,
                    "count": cell.activity.count,
                    "types": dict(cell.activity.types),
                    "intensity": cell.activity.intensity,
                    "tooltip": self.tooltip_for(cell.date),
                })
            columns.append({"week": column.key, "days": days})

        counts = [a.count for a in self.activity.values()]
        return {
            "period": {
                "start": self.date_range.start.isoformat(),
                "end": self.date_range.end.isoformat(),
                "total_days": len(self.date_range.dates),
            },
            "columns": columns,
            "month_labels": [
                {"column": index, "label": label}
                for index, label in sorted(self.month_labels.items())
            ],
            "max_count": max(counts, default=0),
            "total_entries": sum(counts),
            "active_days": sum(1 for c in counts if c > 0),
        }


def build_heatmap(
    today: date,
    weight_entries: Iterable = (),
    diet_entries: Iterable = (),
    workout_entries: Iterable = (),
) -> Heatmap:
    """
    Build the activity heatmap for the year ending on today.

    Args:
        today: Reference date, captured once by the caller
        weight_entries: Weight entry records
        diet_entries: Diet entry records
        workout_entries: Workout entry records

    Returns:
        Heatmap with week columns, month labels and tooltip lookup
    """
    date_range = build_range(today)
    activity = aggregate(date_range, weight_entries, diet_entries, workout_entries)
    columns = layout(date_range, activity)
    return Heatmap(
        date_range=date_range,
        activity=activity,
        columns=columns,
        month_labels=place_labels(columns),
    )
