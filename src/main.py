"""
Stepie: a personal weight, diet and workout tracker

Entry point for database maintenance and terminal views.
"""

import argparse
import os
from datetime import date

from src.cli import (
    display_day,
    display_heatmap,
    display_progress,
    display_status,
    format_entry,
)
from src.config import DEFAULT_USER_ID, HOST, PORT, validate_config
from src.heatmap import build_heatmap
from src.progress import calculate_mini_goals, calculate_progress
from src.storage import ENTRY_TABLES, TrackerStorage, get_tracker_entries


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stepie",
        description="Stepie - track your weight, diet and workouts",
    )
    parser.add_argument("--db", help="Path to the SQLite database file")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init", help="Initialize the database with schema")
    subparsers.add_parser("seed", help="Add sample data to the database")
    subparsers.add_parser("status", help="Show database status and counts")

    reset = subparsers.add_parser(
        "reset", help="Delete and reinitialize the database (deletes all data)"
    )
    reset.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    heatmap = subparsers.add_parser("heatmap", help="Show the activity heatmap")
    heatmap.add_argument("--date", help="Show the summary for one day (YYYY-MM-DD)")

    entries = subparsers.add_parser("list", help="List stored entries")
    entries.add_argument("kind", choices=list(ENTRY_TABLES))

    serve = subparsers.add_parser("serve", help="Run the web server")
    serve.add_argument("--host", default=HOST)
    serve.add_argument("--port", type=int, default=PORT)

    return parser


def _show_heatmap(storage: TrackerStorage, day: str | None) -> None:
    entries = get_tracker_entries(storage, user_id=DEFAULT_USER_ID)
    heatmap = build_heatmap(
        date.today(), entries["weight"], entries["diet"], entries["workout"]
    )

    if day:
        display_day(heatmap, day)
        return

    display_heatmap(heatmap)

    goals = storage.get_goals(DEFAULT_USER_ID) or {}
    progress = calculate_progress(entries["weight"], goals.get("targetWeight"))
    mini_goals = calculate_mini_goals(
        progress["start_weight"],
        progress["target_weight"],
        progress["current_weight"],
        goals.get("stepSize"),
    )
    display_progress(progress, mini_goals, goals.get("weight_unit", "lbs"))


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        validate_config()
    except ValueError as e:
        print(f"\nConfiguration Error:\n{e}")
        return 1

    if args.command == "serve":
        import uvicorn

        # The app opens its own storage, which reads the path from the environment.
        if args.db:
            os.environ["STEPIE_DB_PATH"] = str(args.db)
        uvicorn.run("src.app:app", host=args.host, port=args.port)
        return 0

    storage = TrackerStorage(args.db)

    if args.command == "init":
        print(f"Database initialized at {storage.db_path}")
    elif args.command == "seed":
        count = storage.seed()
        print(f"Database seeded with {count} sample weight entries!")
    elif args.command == "status":
        display_status(storage.table_counts(), str(storage.db_path))
    elif args.command == "reset":
        if not args.yes:
            answer = input("WARNING: This will delete all data. Are you sure? (y/N) ")
            if answer.strip().lower() != "y":
                print("Database reset cancelled.")
                return 0
        storage.reset()
        print("Database reset.")
    elif args.command == "heatmap":
        _show_heatmap(storage, args.date)
    elif args.command == "list":
        rows = storage.list_entries(args.kind, user_id=DEFAULT_USER_ID)
        if not rows:
            print(f"No {args.kind} entries found.")
        for row in rows:
            print(format_entry(args.kind, row))

    return 0


if __name__ == "__main__":
    exit(main())
