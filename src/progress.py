"""
Weight progress, mini goals and daily diet/workout summaries.
"""

from datetime import date, timedelta
from decimal import Decimal

from src.heatmap import entry_date_key

MAX_MINI_GOALS = 100


def _decimal_places(value: float) -> int:
    exponent = Decimal(str(value)).as_tuple().exponent
    return max(0, -exponent)


def _milestone(start_weight: float, step: float, index: int, places: int) -> float:
    # Each milestone is computed from the start so float error cannot accumulate.
    value = start_weight + index * step
    return round(value, places) if places else value


def calculate_progress(weight_entries: list[dict], target_weight: float | None) -> dict:
    """
    Calculate progress from the first recorded weight towards the target.

    Args:
        weight_entries: Weight entries sorted by date ascending
        target_weight: Goal weight, or None if no goal is set

    Returns:
        Dictionary with:
        - start_weight: First recorded weight (or None)
        - current_weight: Most recent weight (or None)
        - target_weight: The goal weight (or None)
        - progress_percent: 0-100, how far from start to target
        - remaining: Distance left to the target (or None)
    """
    weights = [e["weight"] for e in weight_entries if e.get("weight") is not None]
    start_weight = weights[0] if weights else None
    current_weight = weights[-1] if weights else None

    progress = 0.0
    remaining = None
    if start_weight is not None and target_weight is not None:
        total_to_goal = abs(target_weight - start_weight)
        if total_to_goal > 0:
            if target_weight > start_weight:
                progress = (current_weight - start_weight) / total_to_goal * 100
            else:
                progress = (start_weight - current_weight) / total_to_goal * 100
        progress = max(0.0, min(100.0, progress))
        remaining = abs(target_weight - current_weight)

    return {
        "start_weight": start_weight,
        "current_weight": current_weight,
        "target_weight": target_weight,
        "progress_percent": round(progress, 1),
        "remaining": remaining,
    }


def calculate_mini_goals(
    start_weight: float | None,
    target_weight: float | None,
    current_weight: float | None,
    step_size: float | None,
) -> list[dict]:
    """
    Break the distance from start to target into step_size milestones.

    Args:
        start_weight: First recorded weight
        target_weight: Goal weight
        current_weight: Most recent weight
        step_size: Distance between milestones

    Returns:
        List of {target, achieved} dicts ordered from start towards target.
        The target itself is always the last milestone.
    """
    if start_weight is None or target_weight is None or not step_size or step_size <= 0:
        return []

    losing = target_weight < start_weight

    def achieved(target):
        if current_weight is None:
            return False
        return current_weight <= target if losing else current_weight >= target

    goals = []
    step = -step_size if losing else step_size
    places = max(_decimal_places(start_weight), _decimal_places(step_size))
    index = 1
    next_step = _milestone(start_weight, step, index, places)
    while (next_step >= target_weight) if losing else (next_step <= target_weight):
        goals.append({"target": next_step, "achieved": achieved(next_step)})
        if len(goals) >= MAX_MINI_GOALS:
            break
        index += 1
        next_step = _milestone(start_weight, step, index, places)

    if target_weight != start_weight and not any(g["target"] == target_weight for g in goals):
        goals.append({"target": target_weight, "achieved": achieved(target_weight)})

    return goals


def summarize_diet(diet_entries: list[dict], today: date) -> dict:
    """
    Total today's calories and macros.

    Returns:
        Dictionary with calories, protein, carbs, fat and meals for today.
    """
    today_str = today.isoformat()
    totals = {"calories": 0, "protein": 0, "carbs": 0, "fat": 0, "meals": 0}

    for entry in diet_entries:
        if entry_date_key(entry) != today_str:
            continue
        totals["meals"] += 1
        for nutrient in ("calories", "protein", "carbs", "fat"):
            totals[nutrient] += entry.get(nutrient) or 0

    return totals


def summarize_workouts(workout_entries: list[dict], today: date) -> dict:
    """
    Total workout minutes and calories burned today and over the last 7 days.
    """
    today_str = today.isoformat()
    week_start = (today - timedelta(days=6)).isoformat()  # Include today = 7 days

    summary = {
        "minutes_today": 0,
        "calories_today": 0,
        "minutes_last_7_days": 0,
        "calories_last_7_days": 0,
        "workouts_last_7_days": 0,
    }

    for entry in workout_entries:
        key = entry_date_key(entry)
        if key is None or not week_start <= key <= today_str:
            continue

        minutes = entry.get("duration") or 0
        burned = entry.get("caloriesBurned") or 0
        summary["minutes_last_7_days"] += minutes
        summary["calories_last_7_days"] += burned
        summary["workouts_last_7_days"] += 1
        if key == today_str:
            summary["minutes_today"] += minutes
            summary["calories_today"] += burned

    return summary
