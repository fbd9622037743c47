#!/usr/bin/env python3
"""
Stockroom management CLI.

Usage:
    python manage.py start       Start the API server in the background
    python manage.py stop        Graceful shutdown
    python manage.py restart     Stop + start
    python manage.py dev         API server with auto-reload (foreground)
    python manage.py status      Check if server is running
    python manage.py migrate     Apply pending SQLite migrations
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
PID_FILE = ROOT_DIR / ".stockroom.pid"

IS_WINDOWS = platform.system() == "Windows"


def _is_pid_alive(pid: int) -> bool:
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
    """Read PID from the PID file, return None if missing or stale."""
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


def _kill_pid(pid: int) -> bool:
    """Send termination signal to a process. Returns True if successful."""
    try:
        if IS_WINDOWS:
            subprocess.run(["taskkill", "/PID", str(pid), "/T", "/F"], capture_output=True)
        else:
            os.kill(pid, signal.SIGTERM)
        return True
    except OSError:
        return False


def _wait_for_exit(pid: int, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if not _is_pid_alive(pid):
            return True
        time.sleep(0.1)
    return not _is_pid_alive(pid)


def _is_port_free(port: int) -> bool:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", port))
        return True
    except OSError:
        return False


def _uvicorn_cmd(args: argparse.Namespace, reload: bool = False) -> list[str]:
    cmd = [
        sys.executable, "-m", "uvicorn",
        "src.api.main:app",
        "--host", args.host,
        "--port", str(args.port),
    ]
    if reload:
        cmd.append("--reload")
    elif getattr(args, "workers", 1) > 1:
        cmd += ["--workers", str(args.workers)]
    return cmd


def cmd_start(args: argparse.Namespace) -> None:
    """Start the server in the background."""
    existing_pid = _read_pid()
    if existing_pid is not None:
        print(f"Server already running (PID {existing_pid}). Use 'restart' or 'stop' first.")
        sys.exit(1)

    if not _is_port_free(args.port):
        print(f"Error: Port {args.port} is in use by another process.")
        sys.exit(1)

    print(f"Starting server on {args.host}:{args.port}...")
    kwargs = {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP} if IS_WINDOWS else {}
    proc = subprocess.Popen(_uvicorn_cmd(args), cwd=str(ROOT_DIR), **kwargs)

    PID_FILE.write_text(str(proc.pid))
    print(f"Server started (PID {proc.pid}).")
    print(f"  API:      http://{args.host}:{args.port}/api/products")
    print(f"  PID file: {PID_FILE}")


def cmd_stop(args: argparse.Namespace) -> None:
    """Stop the running server."""
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
        return

    print(f"Stopping server (PID {pid})...")
    if _kill_pid(pid) and not _wait_for_exit(pid):
        print("Warning: Process did not exit within 3 seconds.")

    PID_FILE.unlink(missing_ok=True)
    if _is_pid_alive(pid):
        print("Warning: Server may still be running.")
    else:
        print("Server stopped.")


def cmd_restart(args: argparse.Namespace) -> None:
    """Stop then start the server."""
    cmd_stop(args)
    cmd_start(args)


def cmd_dev(args: argparse.Namespace) -> None:
    """Run the server in the foreground with auto-reload."""
    print(f"Starting backend on {args.host}:{args.port} (reload mode)...")
    proc = subprocess.Popen(_uvicorn_cmd(args, reload=True), cwd=str(ROOT_DIR))
    try:
        proc.wait()
    except KeyboardInterrupt:
        print("\nShutting down...")
        proc.terminate()
        try:
            proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            proc.kill()


def cmd_status(args: argparse.Namespace) -> None:
    """Check if the server is running."""
    pid = _read_pid()
    if pid is not None:
        print(f"Server is running (PID {pid}).")
    elif not _is_port_free(args.port):
        print(f"No PID file, but port {args.port} is in use.")
    else:
        print(f"Server is not running (port {args.port} is free).")


def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply pending migrations to the SQLite database."""
    from src.config import configure_logging
    from src.infrastructure.storage.sqlite.migrations import (
        get_migration_status,
        initialize_database,
    )

    configure_logging()
    db_path = Path(args.db) if args.db else None

    if args.status:
        status = asyncio.run(get_migration_status(db_path))
        print(f"Applied: {', '.join(status['applied_migrations']) or '-'}")
        print(f"Pending: {', '.join(status['pending_migrations']) or '-'}")
        return

    results = asyncio.run(initialize_database(db_path, create_backup_before=not args.no_backup))
    if not results:
        print("Database is up to date.")
        return
    for result in results:
        state = "ok" if result.success else f"FAILED ({result.error})"
        print(f"  {result.version}: {state}")
    if not all(r.success for r in results):
        sys.exit(1)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Stockroom management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def server_args(p: argparse.ArgumentParser, workers: bool = False) -> None:
        p.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
        p.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
        if workers:
            p.add_argument("--workers", type=int, default=1, help="Number of uvicorn workers")

    p_start = sub.add_parser("start", help="Start server")
    server_args(p_start, workers=True)
    p_start.set_defaults(func=cmd_start)

    p_stop = sub.add_parser("stop", help="Stop the server")
    p_stop.set_defaults(func=cmd_stop)

    p_restart = sub.add_parser("restart", help="Restart the server")
    server_args(p_restart, workers=True)
    p_restart.set_defaults(func=cmd_restart)

    p_dev = sub.add_parser("dev", help="Start server with auto-reload")
    server_args(p_dev)
    p_dev.set_defaults(func=cmd_dev)

    p_status = sub.add_parser("status", help="Check if server is running")
    p_status.add_argument("--port", type=int, default=8000, help="Port to check (default: 8000)")
    p_status.set_defaults(func=cmd_status)

    p_migrate = sub.add_parser("migrate", help="Apply pending SQLite migrations")
    p_migrate.add_argument("--db", help="Database path (default from settings)")
    p_migrate.add_argument("--status", action="store_true", help="Show migration status only")
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip the pre-migration backup")
    p_migrate.set_defaults(func=cmd_migrate)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
