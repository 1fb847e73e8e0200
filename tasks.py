"""Invoke tasks for RackBox application management."""

import shutil
import sys
import time
from pathlib import Path

from invoke import task
from invoke.context import Context

DATA_DIR = Path("data")
DB_PATH = DATA_DIR / "rackbox.db"
IMAGES_PATH = DATA_DIR / "images"
LOG_FILE = DATA_DIR / "logs" / "rackbox.log"


@task
def start(ctx: Context, host: str = "0.0.0.0", port: int = 8000, reload: bool = False) -> None:
    """Start the RackBox server in the foreground.

    Args:
        ctx: Invoke context
        host: Host to bind to (default: 0.0.0.0)
        port: Port to bind to (default: 8000)
        reload: Enable auto-reload for development
    """
    cmd = f"uv run rackbox-server start --host {host} --port {port} --foreground"
    if reload:
        cmd += " --reload"

    try:
        ctx.run(cmd, pty=True)
    except KeyboardInterrupt:
        print("\nServer stopped")
        sys.exit(0)


@task(name="start-background")
def start_background(ctx: Context, host: str = "0.0.0.0", port: int = 8000) -> None:
    """Start the RackBox server in the background."""
    ctx.run(f"uv run rackbox-server start --host {host} --port {port}")


@task
def stop(ctx: Context) -> None:
    """Stop the RackBox server."""
    ctx.run("uv run rackbox-server stop")


@task
def restart(ctx: Context, host: str = "0.0.0.0", port: int = 8000) -> None:
    ctx.run(f"uv run rackbox-server restart --host {host} --port {port}")


@task
def status(ctx: Context) -> None:
    ctx.run("uv run rackbox-server status")


@task
def logs(ctx: Context, follow: bool = False, lines: int = 50) -> None:
    """View the RackBox server logs.

    Args:
        ctx: Invoke context
        follow: Follow log output (like tail -f)
        lines: Number of lines to show (default: 50)
    """
    if not LOG_FILE.exists():
        print("No log file found. Server may not have been started in background mode.")
        return

    if follow:
        ctx.run(f"tail -f {LOG_FILE}", pty=True)
    else:
        ctx.run(f"tail -n {lines} {LOG_FILE}")


@task
def test(ctx: Context, verbose: bool = False, coverage: bool = False) -> None:
    """Run the test suite.

    Args:
        ctx: Invoke context
        verbose: Enable verbose output
        coverage: Run with coverage report
    """
    cmd = "uv run pytest"
    if verbose:
        cmd += " -v"
    if coverage:
        cmd += " --cov=rackbox --cov-report=term-missing"
    ctx.run(cmd, pty=True)


@task(name="init-db")
def init_db(ctx: Context) -> None:
    """Create the database tables."""
    print("Initializing database...")
    ctx.run("uv run python -c 'import asyncio; from rackbox.database import init_db; asyncio.run(init_db())'")
    print("Database initialized successfully")


@task
def clean(ctx: Context) -> None:
    """Remove caches and build artifacts."""
    for pattern in ["__pycache__", "*.pyc", "*.pyo", ".pytest_cache"]:
        ctx.run(f"find . -name '{pattern}' -exec rm -rf {{}} + 2>/dev/null || true", warn=True)

    for path in ["build", "dist", "*.egg-info", ".eggs"]:
        ctx.run(f"rm -rf {path} 2>/dev/null || true", warn=True)

    print("Cleanup complete")


@task
def purge(ctx: Context, include_images: bool = False, force: bool = False) -> None:
    """Delete the database and optionally rack images. Stops the server if running.

    The layout edit secret is kept.

    Args:
        ctx: Invoke context
        include_images: Also delete all rack images
        force: Skip confirmation prompt
    """
    items_to_delete = []
    if DB_PATH.exists():
        items_to_delete.append(f"Database: {DB_PATH}")
    if include_images and IMAGES_PATH.exists():
        image_count = len(list(IMAGES_PATH.glob("*")))
        if image_count > 0:
            items_to_delete.append(f"Images: {image_count} files in {IMAGES_PATH}")

    if not items_to_delete:
        print("Nothing to purge.")
        return

    if not force:
        print("The following will be deleted:")
        for item in items_to_delete:
            print(f"  - {item}")
        response = input("\nAre you sure you want to purge? [y/N]: ").strip().lower()
        if response not in ("y", "yes"):
            print("Purge cancelled.")
            return

    # SQLite requires exclusive access
    print("Stopping server if running...")
    ctx.run("uv run rackbox-server stop", warn=True)
    time.sleep(1)

    if DB_PATH.exists():
        try:
            DB_PATH.unlink()
            print(f"Deleted database: {DB_PATH}")
        except PermissionError:
            print(f"Error: Could not delete {DB_PATH} - file may still be locked")
            return

    if include_images and IMAGES_PATH.exists():
        shutil.rmtree(IMAGES_PATH)
        IMAGES_PATH.mkdir(parents=True)
        print(f"Deleted all images and recreated: {IMAGES_PATH}")

    print("\nPurge complete.")


@task(name="docs-build")
def docs_build(ctx: Context) -> None:
    """Build the Sphinx documentation."""
    ctx.run("uv run sphinx-build -b html docs docs/_build/html", pty=True)
    print("Documentation built at docs/_build/html/index.html")
