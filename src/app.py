"""
FastAPI web application for Stepie.

Provides REST API endpoints for weight, diet and workout entries, the user's
goals, and the activity heatmap dashboard.
"""

import sqlite3
from datetime import date
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, Field

from src.config import DEFAULT_USER_ID
from src.heatmap import WEEKDAY_NAMES, build_heatmap
from src.logging_utils import get_logger
from src.progress import (
    calculate_mini_goals,
    calculate_progress,
    summarize_diet,
    summarize_workouts,
)
from src.storage import TrackerStorage, get_tracker_entries

logger = get_logger(__name__)

app = FastAPI(
    title="Stepie",
    description="A personal weight, diet and workout tracker",
    version="0.1.0",
)

templates = Jinja2Templates(directory=Path(__file__).parent / "templates")

ENTRY_NOT_FOUND = "Entry not found"


class WeightEntryIn(BaseModel):
    """Request model for creating or updating a weight entry."""

    user_id: int = DEFAULT_USER_ID
    weight: float | None = Field(None, gt=0, description="Body weight")
    date: str | None = Field(None, description="Entry date (YYYY-MM-DD)")


class DietEntryCreate(BaseModel):
    """Request model for creating a diet entry."""

    user_id: int = DEFAULT_USER_ID
    date: str | None = None
    mealType: str = Field("breakfast", description="breakfast, lunch, dinner or snack")
    foodItem: str | None = None
    calories: int | None = Field(None, ge=0)
    protein: int = Field(0, ge=0)
    carbs: int = Field(0, ge=0)
    fat: int = Field(0, ge=0)


class DietEntryUpdate(BaseModel):
    """Request model for updating a diet entry; omitted fields are kept."""

    date: str | None = None
    mealType: str | None = None
    foodItem: str | None = None
    calories: int | None = Field(None, ge=0)
    protein: int | None = Field(None, ge=0)
    carbs: int | None = Field(None, ge=0)
    fat: int | None = Field(None, ge=0)


class WorkoutEntryCreate(BaseModel):
    """Request model for creating a workout entry."""

    user_id: int = DEFAULT_USER_ID
    date: str | None = None
    workoutType: str | None = None
    duration: int | None = Field(None, ge=0, description="Duration in minutes")
    intensity: str = Field("medium", description="low, medium or high")
    caloriesBurned: int = Field(0, ge=0)
    notes: str = ""


class WorkoutEntryUpdate(BaseModel):
    """Request model for updating a workout entry; omitted fields are kept."""

    date: str | None = None
    workoutType: str | None = None
    duration: int | None = Field(None, ge=0)
    intensity: str | None = None
    caloriesBurned: int | None = Field(None, ge=0)
    notes: str | None = None


class GoalsUpdate(BaseModel):
    """Request model for creating or replacing the user's goals."""

    user_id: int = DEFAULT_USER_ID
    targetWeight: float | None = Field(None, gt=0)
    stepSize: float = Field(5, gt=0)
    weight_unit: str = Field("lbs", pattern="^(lbs|kg)$")
    additionalGoals: list | dict | str = Field(default_factory=list)


@app.exception_handler(sqlite3.Error)
def database_error_handler(request: Request, exc: sqlite3.Error):
    """Return database failures as 500 responses."""
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


def _fetch_dashboard_data(user_id: int = DEFAULT_USER_ID) -> dict:
    """
    Load entries and goals and build heatmap and progress data.

    Returns:
        dict with heatmap, progress, mini_goals, diet and workout summaries
    """
    today = date.today()
    storage = TrackerStorage()
    entries = get_tracker_entries(storage, user_id=user_id)
    goals = storage.get_goals(user_id) or {}

    heatmap = build_heatmap(today, entries["weight"], entries["diet"], entries["workout"])
    progress = calculate_progress(entries["weight"], goals.get("targetWeight"))
    mini_goals = calculate_mini_goals(
        progress["start_weight"],
        progress["target_weight"],
        progress["current_weight"],
        goals.get("stepSize"),
    )

    return {
        "today": today.isoformat(),
        "heatmap": heatmap.to_dict(),
        "progress": progress,
        "mini_goals": mini_goals,
        "weight_unit": goals.get("weight_unit", "lbs"),
        "diet_today": summarize_diet(entries["diet"], today),
        "workouts": summarize_workouts(entries["workout"], today),
    }


@app.get("/", response_class=HTMLResponse)
def index(request: Request):
    """Render the dashboard page."""
    data = _fetch_dashboard_data()
    data["weekday_names"] = WEEKDAY_NAMES
    return templates.TemplateResponse(request, "index.html", data)


@app.get("/api/heatmap")
def get_heatmap(user_id: int = DEFAULT_USER_ID):
    """
    Get the activity heatmap for the last year.

    Returns:
        JSON with week columns, month labels and per-day tooltips
    """
    storage = TrackerStorage()
    entries = get_tracker_entries(storage, user_id=user_id)
    heatmap = build_heatmap(date.today(), entries["weight"], entries["diet"], entries["workout"])
    return heatmap.to_dict()


@app.get("/api/progress")
def get_progress(user_id: int = DEFAULT_USER_ID):
    """
    Get weight progress, mini goals and today's diet/workout totals.
    """
    data = _fetch_dashboard_data(user_id)
    data.pop("heatmap")
    return data


# Weight entry endpoints
@app.get("/api/weight_entries")
def get_weight_entries(user_id: int = DEFAULT_USER_ID):
    """Get all weight entries for a user, oldest first."""
    storage = TrackerStorage()
    return storage.list_entries("weight", user_id=user_id)


@app.post("/api/weight_entries", status_code=201)
def create_weight_entry(entry: WeightEntryIn):
    """Add a new weight entry."""
    if not entry.weight or not entry.date:
        raise HTTPException(status_code=400, detail="Weight and date are required")

    storage = TrackerStorage()
    return storage.add_entry("weight", entry.model_dump(), user_id=entry.user_id)


@app.put("/api/weight_entries/{entry_id}")
def update_weight_entry(entry_id: int, entry: WeightEntryIn):
    """Update a weight entry."""
    if not entry.weight or not entry.date:
        raise HTTPException(status_code=400, detail="Weight and date are required")

    storage = TrackerStorage()
    updated = storage.update_entry("weight", entry_id, entry.model_dump())
    if not updated:
        raise HTTPException(status_code=404, detail=ENTRY_NOT_FOUND)

    return updated


@app.delete("/api/weight_entries/{entry_id}", status_code=204)
def delete_weight_entry(entry_id: int):
    """Delete a weight entry."""
    storage = TrackerStorage()
    if not storage.delete_entry("weight", entry_id):
        raise HTTPException(status_code=404, detail=ENTRY_NOT_FOUND)

    return Response(status_code=204)


# Diet entry endpoints
@app.get("/api/diet_entries")
def get_diet_entries(
    user_id: int = DEFAULT_USER_ID,
    start_date: str | None = None,
    end_date: str | None = None,
):
    """Get diet entries for a user, optionally within a date range."""
    storage = TrackerStorage()
    return storage.list_entries("diet", user_id=user_id, start_date=start_date, end_date=end_date)


@app.post("/api/diet_entries", status_code=201)
def create_diet_entry(entry: DietEntryCreate):
    """Add a new diet entry."""
    if not entry.foodItem or entry.calories is None or not entry.date:
        raise HTTPException(
            status_code=400, detail="Food item, calories and date are required"
        )

    storage = TrackerStorage()
    return storage.add_entry("diet", entry.model_dump(), user_id=entry.user_id)


@app.put("/api/diet_entries/{entry_id}")
def update_diet_entry(entry_id: int, entry: DietEntryUpdate):
    """Update a diet entry."""
    storage = TrackerStorage()
    updated = storage.update_entry("diet", entry_id, entry.model_dump(exclude_none=True))
    if not updated:
        raise HTTPException(status_code=404, detail=ENTRY_NOT_FOUND)

    return updated


@app.delete("/api/diet_entries/{entry_id}", status_code=204)
def delete_diet_entry(entry_id: int):
    """Delete a diet entry."""
    storage = TrackerStorage()
    if not storage.delete_entry("diet", entry_id):
        raise HTTPException(status_code=404, detail=ENTRY_NOT_FOUND)

    return Response(status_code=204)


# Workout entry endpoints
@app.get("/api/workout_entries")
def get_workout_entries(
    user_id: int = DEFAULT_USER_ID,
    start_date: str | None = None,
    end_date: str | None = None,
):
    """Get workout entries for a user, optionally within a date range."""
    storage = TrackerStorage()
    return storage.list_entries(
        "workout", user_id=user_id, start_date=start_date, end_date=end_date
    )


@app.post("/api/workout_entries", status_code=201)
def create_workout_entry(entry: WorkoutEntryCreate):
    """Add a new workout entry."""
    if not entry.workoutType or entry.duration is None or not entry.date:
        raise HTTPException(
            status_code=400, detail="Workout type, duration and date are required"
        )

    storage = TrackerStorage()
    return storage.add_entry("workout", entry.model_dump(), user_id=entry.user_id)


@app.put("/api/workout_entries/{entry_id}")
def update_workout_entry(entry_id: int, entry: WorkoutEntryUpdate):
    """Update a workout entry."""
    storage = TrackerStorage()
    updated = storage.update_entry("workout", entry_id, entry.model_dump(exclude_none=True))
    if not updated:
        raise HTTPException(status_code=404, detail=ENTRY_NOT_FOUND)

    return updated


@app.delete("/api/workout_entries/{entry_id}", status_code=204)
def delete_workout_entry(entry_id: int):
    """Delete a workout entry."""
    storage = TrackerStorage()
    if not storage.delete_entry("workout", entry_id):
        raise HTTPException(status_code=404, detail=ENTRY_NOT_FOUND)

    return Response(status_code=204)


# Goal endpoints
@app.get("/api/user_goals")
def get_user_goals(user_id: int = DEFAULT_USER_ID):
    """
    Get the goals record for a user.

    Returns:
        JSON goals record with additionalGoals decoded, or null if none saved
    """
    storage = TrackerStorage()
    return storage.get_goals(user_id)


@app.post("/api/user_goals")
def save_user_goals(goals: GoalsUpdate):
    """
    Create or replace the goals record for a user.

    Returns:
        JSON goals record; 201 if newly created, 200 if updated
    """
    storage = TrackerStorage()
    record, created = storage.save_goals(
        user_id=goals.user_id,
        target_weight=goals.targetWeight,
        step_size=goals.stepSize,
        weight_unit=goals.weight_unit,
        additional_goals=goals.additionalGoals,
    )
    return JSONResponse(status_code=201 if created else 200, content=record)
