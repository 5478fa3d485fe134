"""
CLI display functions for Stepie.
"""

from src.heatmap import WEEKDAY_NAMES, Heatmap

INTENSITY_SYMBOLS = (" .", " -", " +", " *", " #")


def intensity_symbol(level: int) -> str:
    """
    Get the two-character cell for an intensity level.

    Args:
        level: Intensity from 0-4

    Returns:
        Cell string; out-of-range levels are clamped
    """
    return INTENSITY_SYMBOLS[max(0, min(level, len(INTENSITY_SYMBOLS) - 1))]


def display_heatmap(heatmap: Heatmap) -> None:
    """
    Display the activity heatmap as a text grid.

    One column per ISO week, one row per weekday (Mon-Sun), with month
    abbreviations above the column where each month starts.

    Args:
        heatmap: Heatmap from build_heatmap()
    """
    columns = heatmap.columns

    # Month header, 2 characters per column; labels may run into later columns
    header = [" "] * (len(columns) * 2 + 3)
    for index, label in heatmap.month_labels.items():
        start = index * 2 + 1
        for offset, char in enumerate(label):
            if start + offset < len(header):
                header[start + offset] = char

    print("Activity (last 12 months):")
    print("    " + "".join(header).rstrip())

    for row in range(7):
        line = f"{WEEKDAY_NAMES[row]} "
        for column in columns:
            cell = column.slots[row]
            if cell is None:
                line += "  "
            else:
                line += intensity_symbol(cell.activity.intensity)
        print(line.rstrip())

    legend = " ".join(intensity_symbol(level).strip() for level in range(5))
    print(f"    Less {legend} More")

    payload = heatmap.to_dict()
    entries_word = "entry" if payload["total_entries"] == 1 else "entries"
    days_word = "day" if payload["active_days"] == 1 else "days"
    print(
        f"    {payload['total_entries']} {entries_word} on "
        f"{payload['active_days']} active {days_word}"
    )
    print()


def display_day(heatmap: Heatmap, date_key: str) -> None:
    """Display the tooltip summary for a single day."""
    print(heatmap.tooltip_for(date_key))
    print()


def display_progress(progress: dict, mini_goals: list[dict], unit: str = "lbs") -> None:
    """
    Display weight progress and mini goals.

    Args:
        progress: Dictionary from calculate_progress()
        mini_goals: List from calculate_mini_goals()
        unit: Weight unit label
    """
    current = progress["current_weight"]
    target = progress["target_weight"]

    if current is None:
        print("⚖️  No weight entries yet")
        print()
        return

    print(f"⚖️  Current weight: {current} {unit}")
    if target is not None:
        print(f"   Target: {target} {unit} ({progress['remaining']} {unit} to go)")
        print(f"   Progress: {progress['progress_percent']}%")

    if mini_goals:
        steps = [
            f"[{'x' if goal['achieved'] else ' '}] {goal['target']}" for goal in mini_goals
        ]
        print("   Mini goals: " + "  ".join(steps))
    print()


def display_status(counts: dict[str, int], db_path: str) -> None:
    """
    Display row counts for every table in the database.

    Args:
        counts: Dictionary from TrackerStorage.table_counts()
        db_path: Database file location
    """
    print(f"Database: {db_path}")
    print("Tables in database: " + ", ".join(counts))
    for table, count in counts.items():
        row_label = "row" if count == 1 else "rows"
        print(f"- {table}: {count} {row_label}")
    print()


def format_entry(kind: str, entry: dict) -> str:
    """
    Format a stored entry for display.

    Args:
        kind: 'weight', 'diet' or 'workout'
        entry: Entry dict from TrackerStorage

    Returns:
        Formatted string for display
    """
    date = str(entry.get("date", ""))[:10]

    if kind == "weight":
        detail = f"{entry['weight']}"
    elif kind == "diet":
        food = entry.get("foodItem") or "Unknown food"
        # Truncate long names
        if len(food) > 30:
            food = food[:27] + "..."
        detail = f"{entry.get('mealType', ''):<10} {food:<30} {entry.get('calories', 0)} kcal"
    elif kind == "workout":
        detail = (
            f"{entry.get('workoutType', ''):<10} {entry.get('duration', 0)} min "
            f"({entry.get('intensity', '')})"
        )
    else:
        raise ValueError(f"Unknown entry kind: {kind!r}")

    return f"  {date}  {kind:<8} {detail}"
