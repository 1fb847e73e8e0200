"""RackBox server control script.

Usage:
    rackbox-server start [--port PORT] [--reload] [--foreground]
    rackbox-server stop
    rackbox-server restart [--port PORT]
    rackbox-server status
"""

import argparse
import json
import os
import signal
import subprocess
import sys
import time
import urllib.request
from pathlib import Path

from rackbox.config import settings

APP_PATH = "rackbox.main:app"


def pid_file() -> Path:
    return settings.data_dir / "rackbox.pid"


def log_file() -> Path:
    return settings.config.storage.log_dir / "rackbox.log"


def ensure_directories() -> None:
    """Ensure required directories exist."""
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.image_storage_path.mkdir(parents=True, exist_ok=True)
    log_file().parent.mkdir(parents=True, exist_ok=True)


def get_pid() -> int | None:
    """Get the PID of the running server, if any."""
    path = pid_file()
    if not path.exists():
        return None

    try:
        pid = int(path.read_text().strip())
        # Signal 0 only checks that the process exists
        os.kill(pid, 0)
        return pid
    except (ValueError, ProcessLookupError, PermissionError):
        path.unlink(missing_ok=True)
        return None


def find_running_server() -> int | None:
    """Find any running rackbox uvicorn process."""
    try:
        result = subprocess.run(
            ["pgrep", "-f", f"uvicorn {APP_PATH}"],
            capture_output=True,
            text=True,
        )
    except OSError:
        return None
    if result.returncode == 0 and result.stdout.strip():
        return int(result.stdout.strip().split()[0])
    return None


def build_command(host: str, port: int, reload: bool = False) -> list[str]:
    cmd = [
        sys.executable, "-m", "uvicorn",
        APP_PATH,
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        cmd.append("--reload")
    elif settings.config.server.workers > 1:
        cmd.extend(["--workers", str(settings.config.server.workers)])
    return cmd


def start_server(port: int, host: str, reload: bool = False, foreground: bool = False) -> bool:
    """Start the RackBox server.

    Returns:
        True if server started successfully
    """
    pid = get_pid() or find_running_server()
    if pid:
        print(f"Server is already running (PID: {pid})")
        return False

    ensure_directories()
    cmd = build_command(host, port, reload)

    print(f"Starting RackBox server on http://{host}:{port}")

    if foreground:
        print("Press Ctrl+C to stop the server")
        try:
            subprocess.run(cmd)
        except KeyboardInterrupt:
            print("\nServer stopped")
        return True

    with open(log_file(), "a") as log:
        process = subprocess.Popen(
            cmd,
            stdout=log,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )

    time.sleep(1)
    if process.poll() is not None:
        print(f"Failed to start server. Check {log_file()} for details.")
        return False

    pid_file().write_text(str(process.pid))
    print(f"Server started with PID: {process.pid}")
    print(f"Logs available at: {log_file()}")
    return True


def stop_server() -> bool:
    """Stop the RackBox server.

    Returns:
        True if server was stopped
    """
    pid = get_pid() or find_running_server()
    if not pid:
        print("Server is not running")
        return False

    print(f"Stopping server (PID: {pid})...")

    try:
        os.kill(pid, signal.SIGTERM)

        for _ in range(10):
            time.sleep(0.5)
            try:
                os.kill(pid, 0)
            except ProcessLookupError:
                break
        else:
            print("Server didn't stop gracefully, forcing...")
            os.kill(pid, signal.SIGKILL)

        print("Server stopped")
        pid_file().unlink(missing_ok=True)
        return True

    except ProcessLookupError:
        print("Server was not running")
        pid_file().unlink(missing_ok=True)
        return False
    except PermissionError:
        print(f"Permission denied to stop process {pid}")
        return False


def server_status(port: int) -> bool:
    """Print the server status. Returns True if it is running."""
    pid = get_pid() or find_running_server()
    if not pid:
        print("RackBox server is not running")
        return False

    print(f"RackBox server is running (PID: {pid})")
    try:
        with urllib.request.urlopen(f"http://localhost:{port}/health", timeout=2) as response:
            data = json.loads(response.read().decode())
        print(f"  Status: {data.get('status', 'unknown')}")
        print(f"  Version: {data.get('version', 'unknown')}")
    except (OSError, ValueError):
        print("  (Could not fetch health status)")
    return True


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="RackBox server control script",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s start                  Start server on the configured port
  %(prog)s start --port 8080      Start server on port 8080
  %(prog)s start --reload         Start with auto-reload for development
  %(prog)s stop                   Stop the server
  %(prog)s status                 Check server status
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    for name, help_text in (("start", "Start the server"), ("restart", "Restart the server")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--port", "-p", type=int, default=settings.port,
                         help=f"Port to bind to (default: {settings.port})")
        sub.add_argument("--host", default=settings.host,
                         help=f"Host to bind to (default: {settings.host})")
        if name == "start":
            sub.add_argument("--reload", "-r", action="store_true",
                             help="Enable auto-reload for development")
            sub.add_argument("--foreground", "-f", action="store_true",
                             help="Run in foreground (blocking)")

    subparsers.add_parser("stop", help="Stop the server")
    subparsers.add_parser("status", help="Check server status")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "start":
            ok = start_server(args.port, args.host, reload=args.reload, foreground=args.foreground)
        elif args.command == "stop":
            ok = stop_server()
        elif args.command == "restart":
            print("Restarting RackBox server...")
            stop_server()
            time.sleep(1)
            ok = start_server(args.port, args.host)
        else:
            ok = server_status(settings.port)
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
