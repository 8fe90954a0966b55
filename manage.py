#!/usr/bin/env python3
"""
ERP ledger management CLI.

Usage:
    python manage.py start          Start the API server (runs migrations on startup)
    python manage.py stop           Graceful shutdown
    python manage.py restart        Stop + start
    python manage.py status         Check if server is running
    python manage.py migrate        Apply pending database migrations
    python manage.py replenish      Run one replenishment scan now
    python manage.py verify-ledger  Compare stored stock with the movement log
"""

import argparse
import asyncio
import os
import platform
import signal
import socket
import subprocess
import sys
import time
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent
PID_FILE = ROOT_DIR / ".erp.pid"

IS_WINDOWS = platform.system() == "Windows"


def _is_pid_alive(pid: int) -> bool:
    """Check if a process with the given PID is running."""
    if IS_WINDOWS:
        try:
            result = subprocess.run(
                ["tasklist", "/FI", f"PID eq {pid}", "/NH"],
                capture_output=True,
                text=True,
            )
            return str(pid) in result.stdout
        except OSError:
            return False
    try:
        os.kill(pid, 0)
        return True
    except OSError:
        return False


def _read_pid() -> int | None:
    """Read PID from .erp.pid, return None if missing or stale."""
    if not PID_FILE.exists():
        return None
    try:
        pid = int(PID_FILE.read_text().strip())
    except (ValueError, OSError):
        return None
    if _is_pid_alive(pid):
        return pid
    PID_FILE.unlink(missing_ok=True)
    return None


def _terminate(pid: int) -> None:
    """Ask the server to shut down so the lifespan can stop the scheduler."""
    try:
        if IS_WINDOWS:
            subprocess.run(["taskkill", "/PID", str(pid), "/T"], capture_output=True)
        else:
            os.kill(pid, signal.SIGTERM)
    except OSError:
        pass


def _wait_for_exit(pid: int, timeout: float = 10.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if not _is_pid_alive(pid):
            return True
        time.sleep(0.1)
    return not _is_pid_alive(pid)


def _is_port_free(port: int) -> bool:
    """Check if a port is available for binding."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", port))
        return True
    except OSError:
        return False


def cmd_start(args: argparse.Namespace) -> None:
    """Start the server in the background."""
    existing_pid = _read_pid()
    if existing_pid is not None:
        print(f"Server already running (PID {existing_pid}). Use 'restart' or 'stop' first.")
        sys.exit(1)

    if not _is_port_free(args.port):
        print(f"Error: Port {args.port} is in use.")
        sys.exit(1)

    # Single worker: the replenishment scheduler runs in-process
    uvicorn_cmd = [
        sys.executable, "-m", "uvicorn",
        "src.api.main:app",
        "--host", args.host,
        "--port", str(args.port),
    ]

    print(f"Starting server on {args.host}:{args.port}...")
    if IS_WINDOWS:
        proc = subprocess.Popen(
            uvicorn_cmd,
            cwd=str(ROOT_DIR),
            creationflags=subprocess.CREATE_NEW_PROCESS_GROUP,
        )
    else:
        proc = subprocess.Popen(uvicorn_cmd, cwd=str(ROOT_DIR))

    PID_FILE.write_text(str(proc.pid))
    print(f"Server started (PID {proc.pid}).")
    print(f"  API docs:  http://{args.host}:{args.port}/docs (API_DEBUG=true)")
    print(f"  PID file:  {PID_FILE}")


def cmd_stop(args: argparse.Namespace) -> None:
    """Stop the running server."""
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
        return

    print(f"Stopping server (PID {pid})...")
    _terminate(pid)
    if not _wait_for_exit(pid):
        print("Warning: Server may still be running.")
        return

    PID_FILE.unlink(missing_ok=True)
    print("Server stopped.")


def cmd_restart(args: argparse.Namespace) -> None:
    """Stop then start the server."""
    cmd_stop(args)
    cmd_start(args)


def cmd_status(args: argparse.Namespace) -> None:
    """Check if the server is running."""
    pid = _read_pid()
    if pid is not None:
        print(f"Server is running (PID {pid}).")
    elif not _is_port_free(args.port):
        print(f"No PID file. Port {args.port} is in use by another process.")
    else:
        print(f"Server is not running (port {args.port} is free).")


def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply pending migrations, then check the ledger schema."""
    from src.infrastructure.storage.sqlite.migrations import (
        get_migration_status,
        initialize_database,
        verify_schema_integrity,
    )

    async def run() -> None:
        db_path = Path(args.db_path) if args.db_path else None
        results = await initialize_database(db_path, create_backup_before=not args.no_backup)
        for result in results:
            state = "ok" if result.success else f"FAILED: {result.error}"
            print(f"  v{result.version} {result.name}: {state} ({result.execution_time_ms}ms)")
        status = await get_migration_status(db_path)
        print(f"Current version: {status.get('current_version')}")

        failed_checks = [c for c in await verify_schema_integrity(db_path) if c["status"] != "PASS"]
        for check in failed_checks:
            print(f"  [FAIL] {check['check']}: {check}")
        if failed_checks or any(not r.success for r in results):
            sys.exit(1)

    asyncio.run(run())


def cmd_replenish(args: argparse.Namespace) -> None:
    """Run one replenishment scan against the configured database."""
    from src.application.services import get_services, shutdown_services
    from src.core.exceptions import SchedulerError

    async def run() -> None:
        services = await get_services()
        try:
            if args.dry_run:
                requests = await services.scheduler.auto_requests()
                for r in requests:
                    print(
                        f"  {r.sku}: stock {r.current_stock:g} / min {r.min_stock_level:g}"
                        f" -> order {r.suggested_quantity:g} from {r.supplier_id} [{r.priority.value}]"
                    )
                print(f"{len(requests)} product(s) need replenishment.")
                return

            report = await services.scheduler.generate_auto_purchase_orders(reason="cli")
            if report is None:
                print("A replenishment run is already in progress.")
                return
            print(f"Created {report.created_count} purchase order(s): {', '.join(report.created) or '-'}")
            print(f"Skipped {len(report.skipped)} product(s) with open auto orders.")
            for failure in report.failures:
                print(f"  FAILED {failure.sku or failure.product_id}: {failure.error}")
            if not report.ok:
                sys.exit(1)
        except SchedulerError as e:
            print(f"Error: {e.message}")
            sys.exit(1)
        finally:
            await shutdown_services()

    asyncio.run(run())


def cmd_verify_ledger(args: argparse.Namespace) -> None:
    """Report products whose stock differs from the sum of their movements."""
    from src.application.services import get_services, shutdown_services

    async def run() -> None:
        services = await get_services()
        try:
            discrepancies = await services.ledger.verify_ledger()
        finally:
            await shutdown_services()

        if not discrepancies:
            print("Ledger verified: stock matches the movement log for every product.")
            return
        for d in discrepancies:
            print(
                f"  {d.sku}: stored {d.current_stock:g}, ledger {d.ledger_stock:g}"
                f" (difference {d.difference:g})"
            )
        sys.exit(1)

    asyncio.run(run())


def main() -> None:
    parser = argparse.ArgumentParser(
        description="ERP ledger management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # start / restart
    for name, func, help_text in (
        ("start", cmd_start, "Start the API server"),
        ("restart", cmd_restart, "Restart the API server"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
        p.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
        p.set_defaults(func=func)

    # stop
    p_stop = sub.add_parser("stop", help="Stop the server")
    p_stop.set_defaults(func=cmd_stop)

    # status
    p_status = sub.add_parser("status", help="Check if server is running")
    p_status.add_argument("--port", type=int, default=8000, help="Port to check (default: 8000)")
    p_status.set_defaults(func=cmd_status)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply pending database migrations")
    p_migrate.add_argument("--db-path", help="Database path (default from settings)")
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip the pre-migration backup")
    p_migrate.set_defaults(func=cmd_migrate)

    # replenish
    p_replenish = sub.add_parser("replenish", help="Run one replenishment scan now")
    p_replenish.add_argument(
        "--dry-run", action="store_true", help="List what would be ordered without ordering"
    )
    p_replenish.set_defaults(func=cmd_replenish)

    # verify-ledger
    p_verify = sub.add_parser("verify-ledger", help="Check stock against the movement log")
    p_verify.set_defaults(func=cmd_verify_ledger)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
