import argparse
import json
import sys
from pathlib import Path

from . import __version__
from .cleanup import deactivate_expired_jobs
from .config import Settings, load_env
from .database import get_session, get_session_factory, init_database
from .errors import FeedError, NotFoundError, PersistenceError, ValidationError
from .ingestion import bulk_import
from .logger import get_logger
from .schema import validate_batch, validate_import_record


def _db_path(args: argparse.Namespace, settings: Settings) -> Path:
    return Path(args.db) if args.db else settings.db_path


def _option(value, default):
    """Command-line value when given, even if zero; otherwise the configured default."""
    return default if value is None else value


def _load_batch(input_path: Path):
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise SystemExit(f"Input is not valid JSON: {e}")


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def cmd_init_db(args: argparse.Namespace, settings: Settings) -> None:
    db_path = _db_path(args, settings)
    init_database(db_path)
    print(f"Database ready: {db_path}")


def cmd_validate(args: argparse.Namespace, settings: Settings) -> None:
    records = _load_batch(Path(args.input))
    try:
        validate_batch(records)
    except ValidationError as e:
        print(f"Invalid: {e}")
        raise SystemExit(2)
    invalid = 0
    for row, record in enumerate(records, start=1):
        errors = validate_import_record(record)
        if errors:
            invalid += 1
            print(f"Row {row}:")
            for e in errors:
                print(f" - {e}")
    if invalid:
        raise SystemExit(2)
    print(f"Valid ({len(records)} records)")


def cmd_import(args: argparse.Namespace, settings: Settings) -> None:
    if args.url:
        from .feeds import fetch_import_batch
        try:
            records = fetch_import_batch(args.url)
        except (FeedError, ValidationError) as e:
            raise SystemExit(str(e))
    else:
        records = _load_batch(Path(args.input))

    db_path = _db_path(args, settings)
    init_database(db_path)
    workers = _option(args.workers, settings.import_workers)
    try:
        result = bulk_import(records, get_session_factory(db_path), max_workers=workers)
    except ValidationError as e:
        raise SystemExit(f"Invalid batch: {e}")
    _print_json(result.to_dict())
    get_logger().log_metrics_summary()


def cmd_match(args: argparse.Namespace, settings: Settings) -> None:
    from .service import get_matched_jobs

    db_path = _db_path(args, settings)
    init_database(db_path)
    session = get_session(db_path)
    try:
        matches = get_matched_jobs(
            session,
            args.profile_id,
            candidate_limit=_option(args.candidates, settings.match_candidates),
            limit=_option(args.limit, settings.match_limit),
        )
    except NotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(1)
    finally:
        session.close()
    _print_json(matches)


def cmd_candidates(args: argparse.Namespace, settings: Settings) -> None:
    from .service import get_matched_candidates

    db_path = _db_path(args, settings)
    init_database(db_path)
    session = get_session(db_path)
    try:
        candidates = get_matched_candidates(session, args.job_id, limit=_option(args.limit, settings.match_limit))
    except NotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(1)
    finally:
        session.close()
    _print_json(candidates)


def cmd_expire(args: argparse.Namespace, settings: Settings) -> None:
    db_path = _db_path(args, settings)
    init_database(db_path)
    session = get_session(db_path)
    try:
        count = deactivate_expired_jobs(session)
    except PersistenceError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(1)
    finally:
        session.close()
    print(f"Deactivated {count} expired jobs")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobboard", description="JobBoard matching and ingestion")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--db", help="Path to SQLite database (default: $JOBBOARD_DB or data/jobboard.db)")

    subparsers = parser.add_subparsers(dest="command")
    ini = subparsers.add_parser("init-db", help="Create database tables")
    ini.set_defaults(func=cmd_init_db)

    val = subparsers.add_parser("validate", help="Validate an import batch JSON file")
    val.add_argument("--input", required=True, help="Path to a JSON list of import records")
    val.set_defaults(func=cmd_validate)

    imp = subparsers.add_parser("import", help="Bulk import job records with deduplication")
    src = imp.add_mutually_exclusive_group(required=True)
    src.add_argument("--input", help="Path to a JSON list of import records")
    src.add_argument("--url", help="Feed URL returning a JSON list of import records")
    imp.add_argument("--workers", type=int, help="Records imported in parallel (default: $JOBBOARD_IMPORT_WORKERS or 1)")
    imp.set_defaults(func=cmd_import)

    mat = subparsers.add_parser("match", help="Rank active jobs for a profile")
    mat.add_argument("--profile-id", required=True, help="Profile identifier")
    mat.add_argument("--limit", type=int, help="Jobs to return (default 20)")
    mat.add_argument("--candidates", type=int, help="Most recent active jobs to consider (default 50)")
    mat.set_defaults(func=cmd_match)

    can = subparsers.add_parser("candidates", help="Rank profiles for a job")
    can.add_argument("--job-id", required=True, help="Job identifier")
    can.add_argument("--limit", type=int, help="Profiles to return (default 20)")
    can.set_defaults(func=cmd_candidates)

    exp = subparsers.add_parser("expire", help="Deactivate jobs past their expiry date")
    exp.set_defaults(func=cmd_expire)
    return parser


def main(argv=None):
    # Load .env if present (JOBBOARD_DB, JOBBOARD_LOG_LEVEL, etc.)
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    try:
        settings = Settings.from_env()
    except ValidationError as e:
        raise SystemExit(f"Invalid configuration: {e}")
    get_logger(level=settings.log_level, log_dir=settings.log_dir)

    if hasattr(args, "func"):
        args.func(args, settings)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
