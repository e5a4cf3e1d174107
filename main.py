# main.py

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path

from owtracker.analyzer import DashboardAnalyzer
from owtracker.config import configure_logging, load_settings
from owtracker.constants import ROLES
from owtracker.database import Database
from owtracker.normalizer import ValidationError
from owtracker.plugins import PlayerBreakdownPlugin
from owtracker.seasons import resolve_season, season_bounds, season_calendar
from owtracker.tracker_service import TrackerService

logger = logging.getLogger("owtracker")


def cmd_serve(args, settings) -> int:
    import uvicorn

    from web.app import create_app

    settings = replace(settings, db_path=args.db or settings.db_path)
    uvicorn.run(
        create_app(settings),
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level="debug" if args.verbose else settings.log_level.lower(),
    )
    return 0


def cmd_stats(args, settings) -> int:
    if args.season and season_bounds(args.season) is None:
        logger.warning("Season %r is not in the season calendar", args.season)
    db = Database(args.db or settings.db_path)
    try:
        matches = TrackerService(db).list_matches()
    finally:
        db.close()
    if not matches:
        print("No matches recorded yet.")
        return 0
    analyzer = DashboardAnalyzer(
        matches, roster=settings.players, role_filter=args.role, season=args.season
    )
    if args.json:
        print(json.dumps(analyzer.analyze(), indent=2, ensure_ascii=False))
    else:
        analyzer.summary()
    return 0


def cmd_history(args, settings) -> int:
    db = Database(args.db or settings.db_path)
    try:
        matches = TrackerService(db).list_matches()
    finally:
        db.close()
    plugin = PlayerBreakdownPlugin(matches, roster=settings.players, role_filter=args.role)
    rows = plugin.match_history(args.player, sort_key=args.sort, direction=args.direction)
    print(f"\n=== {args.player}: {len(rows)} matches ===")
    for row in rows:
        hero = f" ({row['player_character']})" if row["player_character"] else ""
        print(
            f"  {str(row.get('createdAt'))[:10]}  {row.get('result', '-'):<4}  "
            f"{row.get('queue', '-'):<10} {row['player_role']}{hero}"
        )
    return 0


def cmd_export(args, settings) -> int:
    db = Database(args.db or settings.db_path)
    try:
        payload = TrackerService(db).export_payload()
    finally:
        db.close()
    Path(args.output).write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    print(f"Exported {len(payload['matches'])} matches and {len(payload['improvements'])} improvements to {args.output}")
    return 0


def cmd_import(args, settings) -> int:
    source = Path(args.input)
    if not source.exists():
        print(f"File not found: {source}")
        return 1
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        print(f"Invalid JSON in {source}: {e}")
        return 1

    db = Database(args.db or settings.db_path)
    try:
        result = TrackerService(db).import_payload(payload)
    except ValidationError as e:
        print(f"Import rejected: {e}")
        return 1
    finally:
        db.close()
    print(f"Imported {result['imported']} matches and {result['improvements']} improvements")
    return 0


def cmd_seasons(args, settings) -> int:
    current = resolve_season()
    for row in season_calendar():
        marker = "*" if row["season"] == current else " "
        print(f" {marker} {row['season']:<12} {row['start']} -> {row['end'] or 'open'}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Match tracker")
    parser.add_argument("--db", default=None, help="Path to SQLite database (default: OWTRACKER_DB_PATH)")
    parser.add_argument("--verbose", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the web API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.set_defaults(func=cmd_serve)

    stats = sub.add_parser("stats", help="Print dashboard statistics")
    stats.add_argument("--role", choices=ROLES, default=None)
    stats.add_argument("--season", default=None)
    stats.add_argument("--json", action="store_true", help="Print raw JSON")
    stats.set_defaults(func=cmd_stats)

    history = sub.add_parser("history", help="List one player's matches")
    history.add_argument("player")
    history.add_argument("--role", choices=ROLES, default=None)
    history.add_argument("--sort", choices=("date", "result", "queue", "role"), default="date")
    history.add_argument("--direction", choices=("asc", "desc"), default="desc")
    history.set_defaults(func=cmd_history)

    export = sub.add_parser("export", help="Write matches and improvements to a JSON file")
    export.add_argument("output", nargs="?", default="matches-export.json")
    export.set_defaults(func=cmd_export)

    imp = sub.add_parser("import", help="Load matches/improvements from an export file")
    imp.add_argument("input")
    imp.set_defaults(func=cmd_import)

    seasons = sub.add_parser("seasons", help="Show the season calendar")
    seasons.set_defaults(func=cmd_seasons)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    configure_logging("DEBUG" if args.verbose else settings.log_level)
    try:
        return args.func(args, settings)
    except RuntimeError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
