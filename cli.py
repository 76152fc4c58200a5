import argparse
import csv
import datetime
import json
import logging
import shutil
from typing import Optional

from config import configure_logging
from db import (
    ExerciseRepository,
    SettingsRepository,
    WorkoutDayRepository,
    WorkoutPlanRepository,
    WorkoutRepository,
)
from models import split_tags
from planner_service import PlannerService
from stats_service import StatisticsService

logger = logging.getLogger(__name__)


def _float(value: Optional[str]) -> float:
    try:
        return float(value) if value else 0.0
    except ValueError:
        return 0.0


def export_workouts(db_path: str, fmt: str, output_dir: str = ".") -> str:
    workouts = WorkoutRepository(db_path)
    if fmt == "json":
        data = workouts.export_json()
    else:
        data = workouts.export_csv()
    out_path = f"{output_dir}/workouts.{fmt}"
    with open(out_path, "w", encoding="utf-8") as f:
        f.write(data)
    return out_path


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


def import_csv(csv_path: str, db_path: str) -> int:
    """Import workouts from a CSV file with a ``date`` column.

    Rows without a date are kept with an empty date; they are ignored by
    every date statistic.
    """
    workouts = WorkoutRepository(db_path)
    count = 0
    with open(csv_path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for row in reader:
            date = (row.get("date") or row.get("Date") or "").strip() or None
            workouts.create(
                date,
                row.get("type") or row.get("Type") or None,
                _float(row.get("duration")),
                _float(row.get("calories")),
                _float(row.get("heart_rate")),
                row.get("notes") or None,
                split_tags(row.get("tags")),
            )
            count += 1
    logger.info("imported %d workouts from %s", count, csv_path)
    return count


def demo_data(db_path: str, yaml_path: str) -> None:
    """Populate the database with demo workouts and a plan if empty."""
    workouts = WorkoutRepository(db_path)
    if workouts.fetch_all_workouts():
        print("Database already contains workouts")
        return
    today = datetime.date.today()
    for offset, w_type in [(0, "Strength"), (1, "Cardio"), (3, "Yoga")]:
        day = today - datetime.timedelta(days=offset)
        workouts.create(
            datetime.datetime.combine(day, datetime.time(7, 30)), w_type, 45.0
        )
    planner = _planner(db_path)
    plan_id = planner.create_plan("Demo plan", ["Push"])
    day_id = planner.days.fetch_for_plan(plan_id)[0][0]
    planner.add_exercise(day_id, "Bench Press")
    planner.add_exercise(day_id, "Push Ups", circuit_name="Circuit 1")
    planner.add_exercise(day_id, "Plank", "duration", circuit_name="Circuit 1")
    print("Demo data inserted")


def _stats(db_path: str, yaml_path: str) -> StatisticsService:
    settings = SettingsRepository(db_path, yaml_path)
    return StatisticsService(WorkoutRepository(db_path), settings)


def _planner(db_path: str) -> PlannerService:
    return PlannerService(
        WorkoutPlanRepository(db_path),
        WorkoutDayRepository(db_path),
        ExerciseRepository(db_path),
    )


def _groups_json(groups) -> list[dict]:
    return [
        {
            "circuit": g.circuit_name,
            "exercises": [
                {"id": e.id, "name": e.name, "order_index": e.order_index}
                for e in g.members
            ],
        }
        for g in groups
    ]


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Workout statistics utilities")
    parser.add_argument("--log-level", default=None)
    sub = parser.add_subparsers(dest="cmd", required=True)

    exp = sub.add_parser("export")
    exp.add_argument("--db", default="workout.db")
    exp.add_argument("--fmt", choices=["csv", "json"], default="csv")
    exp.add_argument("--out", default=".")

    bkp = sub.add_parser("backup")
    bkp.add_argument("--db", default="workout.db")
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--in", dest="src", default="backup.db")
    rst.add_argument("--db", default="workout.db")

    demo = sub.add_parser("demo")
    demo.add_argument("--db", default="workout.db")
    demo.add_argument("--yaml", default="settings.yaml")

    imp = sub.add_parser("import_csv")
    imp.add_argument("--csv", required=True)
    imp.add_argument("--db", default="workout.db")

    stats = sub.add_parser("stats")
    stats.add_argument("--db", default="workout.db")
    stats.add_argument("--yaml", default="settings.yaml")
    stats.add_argument("--year", type=int, default=None)
    stats.add_argument("--type", dest="workout_type", default=None)

    cal = sub.add_parser("calendar")
    cal.add_argument("--db", default="workout.db")
    cal.add_argument("--yaml", default="settings.yaml")
    cal.add_argument("--year", type=int, required=True)
    cal.add_argument("--month", type=int, required=True)

    groups = sub.add_parser("groups")
    groups.add_argument("--db", default="workout.db")
    groups.add_argument("--day", type=int, required=True)

    move = sub.add_parser("move_group")
    move.add_argument("--db", default="workout.db")
    move.add_argument("--day", type=int, required=True)
    move.add_argument("--source", type=int, nargs="+", required=True)
    move.add_argument("--dest", type=int, required=True)

    circ = sub.add_parser("circuits")
    circ.add_argument("--db", default="workout.db")
    circ.add_argument("--day", type=int, required=True)

    args = parser.parse_args(argv)

    level = args.log_level
    if level is None and hasattr(args, "yaml"):
        level = SettingsRepository(args.db, args.yaml).get_text("log_level", "WARNING")
    configure_logging(level or "WARNING")

    if args.cmd == "export":
        print(export_workouts(args.db, args.fmt, args.out))
    elif args.cmd == "backup":
        backup_db(args.db, args.out)
    elif args.cmd == "restore":
        restore_db(args.src, args.db)
    elif args.cmd == "demo":
        demo_data(args.db, args.yaml)
    elif args.cmd == "import_csv":
        print(f"Imported {import_csv(args.csv, args.db)} workouts")
    elif args.cmd == "stats":
        service = _stats(args.db, args.yaml)
        result = {
            "summary": service.year_summary(args.year, workout_type=args.workout_type),
            "frequency": service.frequency_histogram(
                args.year, workout_type=args.workout_type
            ),
            "types": service.type_histogram(args.year),
            "monthly": service.monthly_counts(args.year, args.workout_type),
        }
        print(json.dumps(result, indent=2))
    elif args.cmd == "calendar":
        service = _stats(args.db, args.yaml)
        print(json.dumps(service.month_calendar(args.year, args.month), indent=2))
    elif args.cmd == "groups":
        print(json.dumps(_groups_json(_planner(args.db).groups_for_day(args.day)), indent=2))
    elif args.cmd == "move_group":
        moved = _planner(args.db).move_groups(args.day, args.source, args.dest)
        print(json.dumps(_groups_json(moved), indent=2))
    elif args.cmd == "circuits":
        print(json.dumps(_planner(args.db).circuit_options(args.day)))


if __name__ == "__main__":
    main()
