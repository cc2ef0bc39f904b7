#!/usr/bin/env python3
"""
Venue inventory management CLI.

Usage:
    python manage.py migrate             Apply pending database migrations
    python manage.py migration-status    Show applied and pending migrations
    python manage.py check               Run schema integrity checks
    python manage.py sweep-expired       Mark batches past their expiry date
    python manage.py serve               Start the API server
"""

import argparse
import asyncio
import subprocess
import sys
from datetime import datetime
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent
SRC_DIR = ROOT_DIR / "src"

# Run from a checkout without installing the package
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply pending migrations."""
    from venue_inventory.infrastructure.storage.sqlite.migrations import run_migrations

    results = asyncio.run(
        run_migrations(
            db_path=Path(args.db) if args.db else None,
            create_backup_before=not args.no_backup,
        )
    )
    if not results:
        print("Database is up to date.")
        return

    for result in results:
        state = "OK" if result.success else f"FAILED: {result.error}"
        print(f"  {result.version}: {state}")
    if not all(r.success for r in results):
        sys.exit(1)


def cmd_migration_status(args: argparse.Namespace) -> None:
    from venue_inventory.infrastructure.storage.sqlite.migrations import get_migration_status

    status = asyncio.run(get_migration_status(Path(args.db) if args.db else None))
    if not status["exists"]:
        print("Database does not exist yet.")
    print(f"Current version: {status['current_version'] or '-'}")
    print(f"Applied: {', '.join(status['applied_migrations']) or '-'}")
    print(f"Pending: {', '.join(status['pending_migrations']) or '-'}")


def cmd_check(args: argparse.Namespace) -> None:
    """Run schema integrity checks."""
    from venue_inventory.infrastructure.storage.sqlite.migrations import verify_schema_integrity

    checks = asyncio.run(verify_schema_integrity(Path(args.db) if args.db else None))
    failed = False
    for check in checks:
        print(f"  {check['check']}: {check['status']}")
        failed = failed or check["status"] != "PASS"
    if failed:
        sys.exit(1)


async def _sweep(args: argparse.Namespace):
    from venue_inventory.application.dto.requests import ExpireBatchesRequest
    from venue_inventory.application.use_cases import SweepExpiredBatchesUseCase
    from venue_inventory.infrastructure.storage.sqlite import close_pool

    request = ExpireBatchesRequest(
        as_of=datetime.fromisoformat(args.as_of) if args.as_of else None,
        product_id=args.product,
        location_id=args.location,
        performed_by=args.performed_by,
    )
    try:
        return await SweepExpiredBatchesUseCase().execute(request)
    finally:
        await close_pool()


def cmd_sweep_expired(args: argparse.Namespace) -> None:
    """Mark expired batches across all records."""
    from venue_inventory.config import configure_logging

    configure_logging()
    result = asyncio.run(_sweep(args))
    print(
        f"Checked {result.inventories_checked} records, "
        f"updated {result.inventories_updated}, "
        f"expired {len(result.expired)} batches."
    )
    for ref in result.expired:
        print(f"  {ref.product_id}@{ref.location_id} {ref.batch_id} ({ref.quantity:g})")


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the API server."""
    uvicorn_cmd = [
        sys.executable, "-m", "uvicorn",
        "venue_inventory.api.main:app",
        "--app-dir", str(SRC_DIR),
        "--host", args.host,
        "--port", str(args.port),
    ]
    if args.reload:
        uvicorn_cmd.append("--reload")
    if args.workers > 1:
        uvicorn_cmd.extend(["--workers", str(args.workers)])

    print(f"Starting server on {args.host}:{args.port}...")
    try:
        subprocess.run(uvicorn_cmd, cwd=str(ROOT_DIR), check=False)
    except KeyboardInterrupt:
        print("\nServer stopped.")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Venue inventory management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply pending migrations")
    p_migrate.add_argument("--db", help="Database path (default: from settings)")
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip the pre-migration backup")
    p_migrate.set_defaults(func=cmd_migrate)

    # migration-status
    p_status = sub.add_parser("migration-status", help="Show migration status")
    p_status.add_argument("--db", help="Database path (default: from settings)")
    p_status.set_defaults(func=cmd_migration_status)

    # check
    p_check = sub.add_parser("check", help="Run schema integrity checks")
    p_check.add_argument("--db", help="Database path (default: from settings)")
    p_check.set_defaults(func=cmd_check)

    # sweep-expired
    p_sweep = sub.add_parser("sweep-expired", help="Mark batches past their expiry date")
    p_sweep.add_argument("--as-of", help="ISO timestamp to sweep at (default: now)")
    p_sweep.add_argument("--product", help="Limit to one product")
    p_sweep.add_argument("--location", help="Limit to one location")
    p_sweep.add_argument("--performed-by", default="system", help="Actor recorded on movements")
    p_sweep.set_defaults(func=cmd_sweep_expired)

    # serve
    p_serve = sub.add_parser("serve", help="Start the API server")
    p_serve.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    p_serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    p_serve.add_argument("--workers", type=int, default=1, help="Number of uvicorn workers")
    p_serve.set_defaults(func=cmd_serve)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
