import sqlite3
import aiosqlite
import csv
import io
import datetime
import json
import logging
from contextlib import contextmanager, asynccontextmanager
from typing import List, Tuple, Optional, Iterable, Union

from config import YamlConfig
from models import ExerciseRecord, WorkoutRecord, join_tags, split_tags
from settings_schema import validate_settings

logger = logging.getLogger(__name__)

DateLike = Union[datetime.datetime, datetime.date, str, None]


class PersistenceError(RuntimeError):
    """A write could not be committed; the caller decides whether to retry."""


def _format_date(value: DateLike) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return str(value)


def _parse_date(value: Optional[str]) -> Optional[datetime.datetime]:
    """Return the stored timestamp or ``None`` when it cannot be read."""
    if not value:
        return None
    try:
        return datetime.datetime.fromisoformat(value)
    except ValueError:
        logger.warning("ignoring unparseable workout date %r", value)
        return None


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS = {
        "workouts": (
            """CREATE TABLE workouts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    date TEXT,
                    duration REAL NOT NULL DEFAULT 0,
                    type TEXT,
                    calories REAL NOT NULL DEFAULT 0,
                    heart_rate REAL NOT NULL DEFAULT 0,
                    notes TEXT,
                    tags TEXT
                );""",
            [
                "id",
                "date",
                "duration",
                "type",
                "calories",
                "heart_rate",
                "notes",
                "tags",
            ],
        ),
        "workout_plans": (
            """CREATE TABLE workout_plans (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    description TEXT,
                    type TEXT NOT NULL DEFAULT 'strength',
                    created_date TEXT
                );""",
            ["id", "name", "description", "type", "created_date"],
        ),
        "workout_days": (
            """CREATE TABLE workout_days (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    plan_id INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    order_index INTEGER NOT NULL DEFAULT 0,
                    created_date TEXT,
                    FOREIGN KEY(plan_id) REFERENCES workout_plans(id) ON DELETE CASCADE
                );""",
            ["id", "plan_id", "name", "order_index", "created_date"],
        ),
        "exercises": (
            """CREATE TABLE exercises (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    day_id INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    exercise_type TEXT NOT NULL DEFAULT 'sets_reps',
                    order_index INTEGER NOT NULL DEFAULT 0,
                    notes TEXT,
                    circuit_name TEXT,
                    FOREIGN KEY(day_id) REFERENCES workout_days(id) ON DELETE CASCADE
                );""",
            [
                "id",
                "day_id",
                "name",
                "exercise_type",
                "order_index",
                "notes",
                "circuit_name",
            ],
        ),
        "settings": (
            """CREATE TABLE settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );""",
            ["key", "value"],
        ),
    }

    _DEFAULT_SETTINGS = {
        "timezone": "UTC",
        "log_level": "WARNING",
        "unknown_type_label": "Unknown",
        "app_version": "1.0.0",
    }

    def __init__(self, db_path: str = "workout.db") -> None:
        self._db_path = db_path
        self._ensure_schema()
        self._init_settings()

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path)
        connection.execute("PRAGMA foreign_keys=on;")
        try:
            yield connection
            connection.commit()
        except Exception:
            connection.rollback()
            raise
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            conn.execute("PRAGMA foreign_keys=off;")
            # keep REFERENCES clauses pointing at the rebuilt table names
            conn.execute("PRAGMA legacy_alter_table=on;")
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)
            conn.execute("PRAGMA foreign_keys=on;")

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cur.fetchall()]
        if existing_cols == columns:
            return

        logger.info("rebuilding table %s for new columns", table)
        conn.execute(f"DROP TABLE IF EXISTS {table}_old;")
        conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        conn.execute(sql)
        common = [c for c in existing_cols if c in columns]
        if common:
            cols = ", ".join(common)
            conn.execute(
                f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;"
            )
        conn.execute(f"DROP TABLE {table}_old;")

    def _init_settings(self) -> None:
        with self._connection() as conn:
            for key, value in self._DEFAULT_SETTINGS.items():
                conn.execute(
                    "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?);",
                    (key, value),
                )


class BaseRepository(Database):
    """Base repository providing helper methods."""

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.lastrowid

    def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()

    def _delete_all(self, table: str) -> None:
        self.execute(f"DELETE FROM {table};")

    def _require(self, table: str, row_id: int, label: str) -> None:
        rows = self.fetch_all(f"SELECT id FROM {table} WHERE id = ?;", (row_id,))
        if not rows:
            raise ValueError(f"{label} not found")


class AsyncDatabase(Database):
    """Provides asynchronous connection management."""

    @asynccontextmanager
    async def _async_connection(self):
        conn = await aiosqlite.connect(self._db_path)
        try:
            yield conn
            await conn.commit()
        finally:
            await conn.close()


class AsyncBaseRepository(AsyncDatabase):
    """Asynchronous variant of BaseRepository using aiosqlite."""

    async def execute(self, query: str, params: Tuple = ()) -> int:
        async with self._async_connection() as conn:
            cursor = await conn.execute(query, params)
            await conn.commit()
            return cursor.lastrowid

    async def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        async with self._async_connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return rows


_WORKOUT_COLUMNS = "id, date, duration, type, calories, heart_rate, notes, tags"


def _row_to_record(row: Tuple) -> WorkoutRecord:
    wid, date, duration, w_type, calories, heart_rate, notes, tags = row
    return WorkoutRecord(
        id=wid,
        date=_parse_date(date),
        duration_minutes=duration,
        type=w_type,
        calories=calories,
        heart_rate=heart_rate,
        notes=notes,
        tags=split_tags(tags),
    )


class WorkoutRepository(BaseRepository):
    """Repository for workout table operations."""

    def create(
        self,
        date: DateLike,
        workout_type: str | None = None,
        duration: float = 0.0,
        calories: float = 0.0,
        heart_rate: float = 0.0,
        notes: str | None = None,
        tags: Iterable[str] = (),
    ) -> int:
        return self.execute(
            "INSERT INTO workouts (date, duration, type, calories, heart_rate, notes, tags) VALUES (?, ?, ?, ?, ?, ?, ?);",
            (
                _format_date(date),
                max(0.0, float(duration)),
                workout_type,
                float(calories),
                float(heart_rate),
                notes,
                join_tags(tags),
            ),
        )

    def fetch_all_workouts(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        sort_by: str = "date",
        descending: bool = True,
    ) -> List[
        Tuple[
            int,
            Optional[str],
            float,
            Optional[str],
            float,
            float,
            Optional[str],
            Optional[str],
        ]
    ]:
        query = f"SELECT {_WORKOUT_COLUMNS} FROM workouts"
        params: list[str] = []
        where_clauses: list[str] = []
        if start_date:
            where_clauses.append("date >= ?")
            params.append(start_date)
        if end_date:
            where_clauses.append("date <= ?")
            params.append(end_date)
        if where_clauses:
            query += " WHERE " + " AND ".join(where_clauses)
        allowed = {"id", "date", "type", "duration"}
        if sort_by not in allowed:
            sort_by = "date"
        order = "DESC" if descending else "ASC"
        query += f" ORDER BY {sort_by} {order}, id {order};"
        return self.fetch_all(query, tuple(params))

    def fetch_records(self) -> Tuple[WorkoutRecord, ...]:
        """Return an immutable snapshot of every workout, newest first."""
        return tuple(_row_to_record(row) for row in self.fetch_all_workouts())

    def fetch_detail(self, workout_id: int) -> WorkoutRecord:
        rows = self.fetch_all(
            f"SELECT {_WORKOUT_COLUMNS} FROM workouts WHERE id = ?;", (workout_id,)
        )
        if not rows:
            raise ValueError("workout not found")
        return _row_to_record(rows[0])

    def set_tags(self, workout_id: int, tags: Iterable[str]) -> None:
        self._require("workouts", workout_id, "workout")
        self.execute(
            "UPDATE workouts SET tags = ? WHERE id = ?;",
            (join_tags(tags), workout_id),
        )

    def fetch_tags(self, workout_id: int) -> list[str]:
        rows = self.fetch_all("SELECT tags FROM workouts WHERE id = ?;", (workout_id,))
        if not rows:
            raise ValueError("workout not found")
        return split_tags(rows[0][0])

    def set_note(self, workout_id: int, note: str | None) -> None:
        self.execute(
            "UPDATE workouts SET notes = ? WHERE id = ?;",
            (note, workout_id),
        )

    def delete_all(self) -> None:
        self._delete_all("workouts")

    def delete(self, workout_id: int) -> None:
        self._require("workouts", workout_id, "workout")
        self.execute("DELETE FROM workouts WHERE id = ?;", (workout_id,))

    def export_csv(self) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(
            ["id", "date", "duration", "type", "calories", "heart_rate", "notes", "tags"]
        )
        for row in self.fetch_all_workouts(descending=False):
            writer.writerow(row)
        return buf.getvalue()

    def export_json(self) -> str:
        data = [
            rec.model_dump(mode="json")
            for rec in reversed(self.fetch_records())
        ]
        return json.dumps(data)


class AsyncWorkoutRepository(AsyncBaseRepository):
    """Async repository for workout table operations."""

    async def create(
        self,
        date: DateLike,
        workout_type: str | None = None,
        duration: float = 0.0,
        calories: float = 0.0,
        heart_rate: float = 0.0,
        notes: str | None = None,
        tags: Iterable[str] = (),
    ) -> int:
        return await self.execute(
            "INSERT INTO workouts (date, duration, type, calories, heart_rate, notes, tags) VALUES (?, ?, ?, ?, ?, ?, ?);",
            (
                _format_date(date),
                max(0.0, float(duration)),
                workout_type,
                float(calories),
                float(heart_rate),
                notes,
                join_tags(tags),
            ),
        )

    async def fetch_records(self) -> Tuple[WorkoutRecord, ...]:
        rows = await self.fetch_all(
            f"SELECT {_WORKOUT_COLUMNS} FROM workouts ORDER BY date DESC, id DESC;"
        )
        return tuple(_row_to_record(row) for row in rows)

    async def delete(self, workout_id: int) -> None:
        rows = await self.fetch_all(
            "SELECT id FROM workouts WHERE id = ?;", (workout_id,)
        )
        if not rows:
            raise ValueError("workout not found")
        await self.execute("DELETE FROM workouts WHERE id = ?;", (workout_id,))


class WorkoutPlanRepository(BaseRepository):
    """Repository for workout plans."""

    def create(
        self,
        name: str,
        description: str | None = None,
        plan_type: str = "strength",
    ) -> int:
        return self.execute(
            "INSERT INTO workout_plans (name, description, type, created_date) VALUES (?, ?, ?, ?);",
            (name, description, plan_type, datetime.datetime.now().isoformat()),
        )

    def fetch_all_plans(self) -> List[Tuple[int, str, Optional[str], str]]:
        return self.fetch_all(
            "SELECT id, name, description, type FROM workout_plans ORDER BY id;"
        )

    def fetch_detail(self, plan_id: int) -> Tuple[int, str, Optional[str], str]:
        rows = self.fetch_all(
            "SELECT id, name, description, type FROM workout_plans WHERE id = ?;",
            (plan_id,),
        )
        if not rows:
            raise ValueError("plan not found")
        return rows[0]

    def delete(self, plan_id: int) -> None:
        self._require("workout_plans", plan_id, "plan")
        self.execute("DELETE FROM workout_plans WHERE id = ?;", (plan_id,))


class WorkoutDayRepository(BaseRepository):
    """Repository for the days of a structured plan."""

    def add(self, plan_id: int, name: str) -> int:
        self._require("workout_plans", plan_id, "plan")
        rows = self.fetch_all(
            "SELECT COALESCE(MAX(order_index) + 1, 0) FROM workout_days WHERE plan_id = ?;",
            (plan_id,),
        )
        return self.execute(
            "INSERT INTO workout_days (plan_id, name, order_index, created_date) VALUES (?, ?, ?, ?);",
            (plan_id, name, rows[0][0], datetime.datetime.now().isoformat()),
        )

    def fetch_for_plan(self, plan_id: int) -> List[Tuple[int, str, int]]:
        return self.fetch_all(
            "SELECT id, name, order_index FROM workout_days WHERE plan_id = ? ORDER BY order_index, id;",
            (plan_id,),
        )

    def fetch_detail(self, day_id: int) -> Tuple[int, int, str, int]:
        rows = self.fetch_all(
            "SELECT id, plan_id, name, order_index FROM workout_days WHERE id = ?;",
            (day_id,),
        )
        if not rows:
            raise ValueError("day not found")
        return rows[0]

    def reorder(self, plan_id: int, order: list[int]) -> None:
        existing = [row[0] for row in self.fetch_for_plan(plan_id)]
        if set(order) != set(existing) or len(order) != len(existing):
            raise ValueError("invalid order")
        with self._connection() as conn:
            for pos, day_id in enumerate(order):
                conn.execute(
                    "UPDATE workout_days SET order_index = ? WHERE id = ?;",
                    (pos, day_id),
                )

    def delete(self, day_id: int) -> None:
        self._require("workout_days", day_id, "day")
        self.execute("DELETE FROM workout_days WHERE id = ?;", (day_id,))


_EXERCISE_COLUMNS = "id, day_id, name, exercise_type, order_index, notes, circuit_name"


def _row_to_exercise(row: Tuple) -> ExerciseRecord:
    eid, day_id, name, ex_type, order_index, notes, circuit = row
    return ExerciseRecord(
        id=eid,
        day_id=day_id,
        name=name,
        exercise_type=ex_type,
        order_index=order_index,
        notes=notes,
        circuit_name=circuit,
    )


class ExerciseRepository(BaseRepository):
    """Repository for exercise table operations."""

    def add(
        self,
        day_id: int,
        name: str,
        exercise_type: str = "sets_reps",
        circuit_name: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        self._require("workout_days", day_id, "day")
        rows = self.fetch_all(
            "SELECT COALESCE(MAX(order_index) + 1, 0) FROM exercises WHERE day_id = ?;",
            (day_id,),
        )
        return self.execute(
            "INSERT INTO exercises (day_id, name, exercise_type, order_index, notes, circuit_name) VALUES (?, ?, ?, ?, ?, ?);",
            (day_id, name, exercise_type, rows[0][0], notes, circuit_name or None),
        )

    def remove(self, exercise_id: int) -> None:
        self._require("exercises", exercise_id, "exercise")
        self.execute("DELETE FROM exercises WHERE id = ?;", (exercise_id,))

    def fetch_for_day(self, day_id: int) -> List[ExerciseRecord]:
        rows = self.fetch_all(
            f"SELECT {_EXERCISE_COLUMNS} FROM exercises WHERE day_id = ? ORDER BY order_index, id;",
            (day_id,),
        )
        return [_row_to_exercise(r) for r in rows]

    def fetch_detail(self, exercise_id: int) -> ExerciseRecord:
        rows = self.fetch_all(
            f"SELECT {_EXERCISE_COLUMNS} FROM exercises WHERE id = ?;",
            (exercise_id,),
        )
        if not rows:
            raise ValueError("exercise not found")
        return _row_to_exercise(rows[0])

    def set_circuit(self, exercise_id: int, circuit_name: Optional[str]) -> None:
        self._require("exercises", exercise_id, "exercise")
        self.execute(
            "UPDATE exercises SET circuit_name = ? WHERE id = ?;",
            (circuit_name or None, exercise_id),
        )

    def circuit_names(self, day_id: int) -> list[str]:
        rows = self.fetch_all(
            "SELECT DISTINCT circuit_name FROM exercises WHERE day_id = ? AND circuit_name IS NOT NULL;",
            (day_id,),
        )
        return sorted(r[0] for r in rows)

    def update_order(self, order: Iterable[Tuple[int, int]]) -> None:
        """Write ``(exercise_id, order_index)`` pairs in one transaction."""
        order = list(order)
        try:
            with self._connection() as conn:
                for exercise_id, index in order:
                    cur = conn.execute(
                        "UPDATE exercises SET order_index = ? WHERE id = ?;",
                        (index, exercise_id),
                    )
                    if cur.rowcount == 0:
                        raise PersistenceError(f"exercise {exercise_id} not found")
        except sqlite3.Error as e:
            logger.error("saving exercise order failed: %s", e)
            raise PersistenceError(str(e)) from e


class SettingsRepository(BaseRepository):
    """Repository for general application settings synchronized with YAML."""

    def __init__(
        self, db_path: str = "workout.db", yaml_path: str = "settings.yaml"
    ) -> None:
        super().__init__(db_path)
        self._yaml = YamlConfig(yaml_path)
        self._sync_from_yaml()
        self._sync_to_yaml()

    def all_settings(self) -> dict[str, str]:
        rows = self.fetch_all("SELECT key, value FROM settings ORDER BY key;")
        return {k: v for k, v in rows}

    def _sync_from_yaml(self) -> None:
        data = self._yaml.load()
        if not data:
            return
        data = {k: str(v) for k, v in data.items()}
        validate_settings(data)
        with self._connection() as conn:
            for key, value in data.items():
                conn.execute(
                    "INSERT INTO settings (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
                    (key, value),
                )

    def _sync_to_yaml(self) -> None:
        self._yaml.save(self.all_settings())

    def get_text(self, key: str, default: str) -> str:
        self._sync_from_yaml()
        rows = self.fetch_all("SELECT value FROM settings WHERE key = ?;", (key,))
        return rows[0][0] if rows else default

    def get_int(self, key: str, default: int) -> int:
        try:
            return int(float(self.get_text(key, str(default))))
        except ValueError:
            return default

    def set_text(self, key: str, value: str) -> None:
        candidate = self.all_settings()
        candidate[key] = value
        validate_settings(candidate)
        self.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
            (key, value),
        )
        self._sync_to_yaml()

    def set_int(self, key: str, value: int) -> None:
        self.set_text(key, str(value))
