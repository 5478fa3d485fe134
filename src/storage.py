"""
SQLite-based storage for weight, diet and workout entries.

Also keeps the per-user goals record and the maintenance helpers used by the
CLI (seeding sample data, table counts, reset).
"""

import json
import os
import random
import sqlite3
from datetime import date, timedelta
from pathlib import Path

from src.config import DEFAULT_USER_ID
from src.logging_utils import get_logger

logger = get_logger(__name__)

ENTRY_TABLES = {
    "weight": "weight_entries",
    "diet": "diet_entries",
    "workout": "workout_entries",
}

# Writable columns per entry kind, in insert order
ENTRY_FIELDS = {
    "weight": ("weight", "date"),
    "diet": ("date", "mealType", "foodItem", "calories", "protein", "carbs", "fat"),
    "workout": ("date", "workoutType", "duration", "intensity", "caloriesBurned", "notes"),
}

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL,
        email TEXT,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS weight_entries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL DEFAULT 1,
        weight REAL NOT NULL,
        date TEXT NOT NULL,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS diet_entries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL DEFAULT 1,
        date TEXT NOT NULL,
        mealType TEXT NOT NULL DEFAULT 'breakfast',
        foodItem TEXT NOT NULL,
        calories INTEGER NOT NULL DEFAULT 0,
        protein INTEGER DEFAULT 0,
        carbs INTEGER DEFAULT 0,
        fat INTEGER DEFAULT 0,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS workout_entries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL DEFAULT 1,
        date TEXT NOT NULL,
        workoutType TEXT NOT NULL,
        duration INTEGER NOT NULL DEFAULT 0,
        intensity TEXT DEFAULT 'medium',
        caloriesBurned INTEGER DEFAULT 0,
        notes TEXT DEFAULT '',
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_goals (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL UNIQUE,
        targetWeight REAL,
        stepSize REAL DEFAULT 5,
        weight_unit TEXT DEFAULT 'lbs',
        additionalGoals TEXT DEFAULT '[]',
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_weight_entries_user_date ON weight_entries(user_id, date)",
    "CREATE INDEX IF NOT EXISTS idx_diet_entries_user_date ON diet_entries(user_id, date)",
    "CREATE INDEX IF NOT EXISTS idx_workout_entries_user_date ON workout_entries(user_id, date)",
)

ALL_TABLES = ("users", "weight_entries", "diet_entries", "workout_entries", "user_goals")

# Sample data written by seed()
SEED_START_WEIGHT = 210
SEED_END_WEIGHT = 185
SEED_DAYS = 90
SEED_INTERVAL = 3
SEED_TARGET_WEIGHT = 175


def _get_default_db_path() -> Path:
    """Get the default database path."""
    env_path = os.environ.get("STEPIE_DB_PATH")
    if env_path:
        return Path(env_path)
    return Path.home() / ".stepie" / "stepie.db"


def _table_for(kind: str) -> str:
    try:
        return ENTRY_TABLES[kind]
    except KeyError:
        raise ValueError(
            f"Unknown entry kind: {kind!r} (expected one of {', '.join(ENTRY_TABLES)})"
        ) from None


def _decode_goals(row: sqlite3.Row | None) -> dict | None:
    """Convert a user_goals row to a dict with additionalGoals parsed from JSON."""
    if row is None:
        return None

    goals = dict(row)
    raw = goals.get("additionalGoals")
    if not raw:
        goals["additionalGoals"] = []
    else:
        try:
            goals["additionalGoals"] = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Could not parse additionalGoals for user %s", goals.get("user_id"))
            goals["additionalGoals"] = []
    return goals


class TrackerStorage:
    """SQLite-based storage for tracker entries and goals."""

    def __init__(self, db_path: str | Path | None = None):
        """
        Initialize the tracker storage.

        Args:
            db_path: Path to the SQLite database file.
                     Defaults to ~/.stepie/stepie.db
        """
        if db_path is None:
            db_path = _get_default_db_path()
        self.db_path = Path(db_path)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Create tables, indexes and the default user if they don't exist."""
        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with sqlite3.connect(self.db_path) as conn:
            for statement in SCHEMA:
                conn.execute(statement)
            conn.execute(
                """
                INSERT OR IGNORE INTO users (id, username, email)
                VALUES (?, 'default_user', 'user@example.com')
                """,
                (DEFAULT_USER_ID,),
            )
            conn.commit()

    # Entries

    def list_entries(
        self,
        kind: str,
        user_id: int = DEFAULT_USER_ID,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> list[dict]:
        """
        Retrieve entries of one kind for a user.

        Args:
            kind: 'weight', 'diet' or 'workout'
            user_id: Owner of the entries
            start_date: Optional inclusive lower bound (YYYY-MM-DD)
            end_date: Optional inclusive upper bound (YYYY-MM-DD)

        Returns:
            List of entry dicts sorted by date ascending.
        """
        table = _table_for(kind)
        query = f"SELECT * FROM {table} WHERE user_id = ?"
        params: list = [user_id]

        if start_date:
            query += " AND date >= ?"
            params.append(start_date)
        if end_date:
            # Stored dates may carry a time suffix, so compare on the date part
            query += " AND substr(date, 1, 10) <= ?"
            params.append(end_date)

        query += " ORDER BY date ASC, id ASC"

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [dict(row) for row in rows]

    def get_entry(self, kind: str, entry_id: int) -> dict | None:
        """Get a single entry by ID."""
        table = _table_for(kind)
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT * FROM {table} WHERE id = ?",
                (entry_id,),
            ).fetchone()
        return dict(row) if row else None

    def add_entry(self, kind: str, data: dict, user_id: int = DEFAULT_USER_ID) -> dict:
        """
        Insert a new entry.

        Args:
            kind: 'weight', 'diet' or 'workout'
            data: Column values; unknown keys and None values are ignored
            user_id: Owner of the entry

        Returns:
            The created entry as stored.
        """
        table = _table_for(kind)
        fields = [f for f in ENTRY_FIELDS[kind] if data.get(f) is not None]
        columns = ", ".join(["user_id", *fields])
        placeholders = ", ".join("?" for _ in range(len(fields) + 1))

        with self._connect() as conn:
            cursor = conn.execute(
                f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
                [user_id, *(data[f] for f in fields)],
            )
            conn.commit()
            entry_id = cursor.lastrowid

        logger.info("Added %s entry %s for user %s", kind, entry_id, user_id)
        return self.get_entry(kind, entry_id)

    def update_entry(self, kind: str, entry_id: int, data: dict) -> dict | None:
        """
        Update an entry, keeping stored values for fields not supplied.

        Returns:
            The updated entry, or None if no entry has that ID.
        """
        table = _table_for(kind)
        fields = [f for f in ENTRY_FIELDS[kind] if data.get(f) is not None]
        assignments = "".join(f"{f} = ?, " for f in fields)

        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE {table} SET {assignments}updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                [*(data[f] for f in fields), entry_id],
            )
            conn.commit()
            updated = cursor.rowcount

        if not updated:
            return None

        logger.info("Updated %s entry %s", kind, entry_id)
        return self.get_entry(kind, entry_id)

    def delete_entry(self, kind: str, entry_id: int) -> bool:
        """
        Delete an entry.

        Returns:
            True if an entry was deleted, False if none had that ID.
        """
        table = _table_for(kind)
        with self._connect() as conn:
            cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (entry_id,))
            conn.commit()
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info("Deleted %s entry %s", kind, entry_id)
        return deleted

    # Goals

    def get_goals(self, user_id: int = DEFAULT_USER_ID) -> dict | None:
        """Get the goals record for a user, or None if none is saved."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM user_goals WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        return _decode_goals(row)

    def save_goals(
        self,
        user_id: int = DEFAULT_USER_ID,
        target_weight: float | None = None,
        step_size: float = 5,
        weight_unit: str = "lbs",
        additional_goals: list | dict | str | None = None,
    ) -> tuple[dict, bool]:
        """
        Create or replace the goals record for a user.

        Args:
            user_id: Owner of the goals
            target_weight: Final weight target
            step_size: Distance between intermediate mini goals
            weight_unit: 'lbs' or 'kg'
            additional_goals: Extra goals; lists and dicts are stored as JSON

        Returns:
            Tuple of (goals record, True if it was newly created).
        """
        if additional_goals is None:
            additional_goals = []
        if isinstance(additional_goals, (list, dict)):
            additional_goals = json.dumps(additional_goals)

        with self._connect() as conn:
            existing = conn.execute(
                "SELECT id FROM user_goals WHERE user_id = ?",
                (user_id,),
            ).fetchone()

            if existing:
                conn.execute(
                    """
                    UPDATE user_goals SET
                        targetWeight = ?,
                        stepSize = ?,
                        weight_unit = ?,
                        additionalGoals = ?,
                        updated_at = CURRENT_TIMESTAMP
                    WHERE user_id = ?
                    """,
                    (target_weight, step_size, weight_unit, additional_goals, user_id),
                )
            else:
                conn.execute(
                    """
                    INSERT INTO user_goals (
                        user_id, targetWeight, stepSize, weight_unit, additionalGoals
                    ) VALUES (?, ?, ?, ?, ?)
                    """,
                    (user_id, target_weight, step_size, weight_unit, additional_goals),
                )
            conn.commit()

        created = existing is None
        logger.info("%s goals for user %s", "Created" if created else "Updated", user_id)
        return self.get_goals(user_id), created

    # Maintenance

    def seed(
        self,
        today: date | None = None,
        rng: random.Random | None = None,
        user_id: int = DEFAULT_USER_ID,
    ) -> int:
        """
        Replace a user's weight entries with a sample weight-loss series.

        Writes one entry every 3 days over the last 90 days, trending from
        210 to 185 lbs with +/-1.5 lbs of noise, and a default goal.

        Args:
            today: Override for today's date (for testing)
            rng: Random source; pass a seeded instance for repeatable data
            user_id: Owner of the sample data

        Returns:
            Number of weight entries written
        """
        if today is None:
            today = date.today()
        if rng is None:
            rng = random.Random()

        weight_change = SEED_START_WEIGHT - SEED_END_WEIGHT
        rows = []
        for days_ago in range(SEED_DAYS, -1, -SEED_INTERVAL):
            progress = 1 - (days_ago / SEED_DAYS)
            exact_weight = SEED_START_WEIGHT - (weight_change * progress)
            weight = round(exact_weight + rng.uniform(-1.5, 1.5))
            entry_date = (today - timedelta(days=days_ago)).isoformat()
            rows.append((user_id, weight, entry_date))

        with self._connect() as conn:
            conn.execute("DELETE FROM weight_entries WHERE user_id = ?", (user_id,))
            conn.executemany(
                "INSERT INTO weight_entries (user_id, weight, date) VALUES (?, ?, ?)",
                rows,
            )
            conn.commit()

        self.save_goals(user_id, target_weight=SEED_TARGET_WEIGHT, step_size=5, weight_unit="lbs")
        logger.info("Seeded %d weight entries for user %s", len(rows), user_id)
        return len(rows)

    def table_counts(self) -> dict[str, int]:
        """
        Count rows in every user table.

        Returns:
            Mapping of table name to row count.
        """
        with self._connect() as conn:
            tables = conn.execute(
                """
                SELECT name FROM sqlite_master
                WHERE type = 'table' AND name NOT LIKE 'sqlite_%'
                ORDER BY name
                """
            ).fetchall()
            return {
                row["name"]: conn.execute(f"SELECT COUNT(*) FROM {row['name']}").fetchone()[0]
                for row in tables
            }

    def reset(self) -> None:
        """Drop every table and recreate the empty schema."""
        with sqlite3.connect(self.db_path) as conn:
            for table in ALL_TABLES:
                conn.execute(f"DROP TABLE IF EXISTS {table}")
            conn.commit()
        logger.warning("Reset database at %s", self.db_path)
        self._init_db()


def get_tracker_entries(
    storage: TrackerStorage | None = None,
    user_id: int = DEFAULT_USER_ID,
) -> dict[str, list[dict]]:
    """
    Fetch all three entry lists for a user.

    Args:
        storage: Tracker storage instance. Creates default if not provided.
        user_id: Owner of the entries

    Returns:
        Mapping of entry kind ('weight', 'diet', 'workout') to entries.
    """
    if storage is None:
        storage = TrackerStorage()

    return {kind: storage.list_entries(kind, user_id=user_id) for kind in ENTRY_TABLES}
