"""Administration script for RackBox.

Commands:
    employee add ID NAME      Register an employee
    employee list             List employees
    catalog import FILE       Load part descriptions from CSV or XLSX
    secret set                Change the layout edit secret
    rack add IMAGE            Register a rack from a photograph
    rack list                 List racks
    rack show RACK_ID         Show a rack's cells and items
    stock RACK CELL PART N    Add (N > 0) or take (N < 0) parts in a cell
    search PART               Find cells holding a part
    history                   Show recent transactions
"""

import argparse
import asyncio
import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from getpass import getpass
from pathlib import Path
from typing import NoReturn

from sqlalchemy.ext.asyncio import AsyncSession

from rackbox import database
from rackbox.exceptions import RackBoxError
from rackbox.services import catalog, employees, ledger, registry
from rackbox.services.access_gate import AccessGate
from rackbox.services.employees import EmployeeSession
from rackbox.services.layout import DEFAULT_COLS, DEFAULT_ROWS


@asynccontextmanager
async def db_session(skip_db_init: bool = False) -> AsyncIterator[AsyncSession]:
    """Open a session, initializing the database unless the caller already did."""
    if not skip_db_init:
        await database.init_db()
    try:
        async with database.get_session_factory()() as session:
            yield session
    finally:
        if not skip_db_init:
            await database.close_db()


def fail(message: str) -> NoReturn:
    print(f"Error: {message}")
    sys.exit(1)


async def add_employee(employee_id: str, name: str, skip_db_init: bool = False) -> None:
    """Register an employee."""
    async with db_session(skip_db_init) as db:
        try:
            await employees.add_employee(db, employee_id, name)
        except RackBoxError as e:
            fail(e.message)
    print(f"Employee '{employee_id}' added.")


async def list_employees(skip_db_init: bool = False) -> None:
    async with db_session(skip_db_init) as db:
        staff = await employees.list_employees(db)

    if not staff:
        print("No employees found.")
        return

    print(f"{'Employee ID':<20} {'Name':<40}")
    print("-" * 60)
    for employee in staff:
        print(f"{employee.employee_id:<20} {employee.name:<40}")


async def import_catalog(path: Path, skip_db_init: bool = False) -> None:
    """Bulk-load the parts catalog from a file."""
    if not path.is_file():
        fail(f"File '{path}' not found.")

    try:
        rows = catalog.read_catalog_file(path.read_bytes(), path.name)
    except ValueError as e:
        fail(str(e))

    async with db_session(skip_db_init) as db:
        count = await catalog.bulk_import(db, rows)
    print(f"Imported {count} catalog rows from {path.name}.")


def set_secret(new_secret: str) -> None:
    """Replace the layout edit secret."""
    try:
        AccessGate().set_secret(new_secret)
    except ValueError as e:
        fail(str(e))
    print("Layout edit secret updated.")


async def add_rack(
    image: Path,
    rows: int = DEFAULT_ROWS,
    cols: int = DEFAULT_COLS,
    replace: bool = False,
    skip_db_init: bool = False,
) -> None:
    """Register a rack photograph with an initial grid."""
    if not image.is_file():
        fail(f"Image '{image}' not found.")

    rack_id = registry.rack_id_from_filename(str(image))
    async with db_session(skip_db_init) as db:
        try:
            rack = await registry.create_rack_with_grid(
                db, rack_id, str(image.resolve()), rows, cols, replace=replace
            )
        except RackBoxError as e:
            fail(e.message)
    print(f"Rack '{rack.rack_id}' registered with {rows}x{cols} cells.")


async def list_racks(skip_db_init: bool = False) -> None:
    async with db_session(skip_db_init) as db:
        racks = await registry.list_racks(db)

    if not racks:
        print("No racks found.")
        return

    print(f"{'Rack ID':<30} {'Cells':<6} {'Updated':<17}")
    print("-" * 55)
    for rack in racks:
        updated = rack.updated_at.strftime("%Y-%m-%d %H:%M")
        print(f"{rack.rack_id:<30} {len(rack.cells):<6} {updated:<17}")


async def show_rack(rack_id: str, skip_db_init: bool = False) -> None:
    """Print a rack's cells with their current items."""
    async with db_session(skip_db_init) as db:
        try:
            rack = await registry.get_rack(db, rack_id)
            items = await ledger.get_items_for_rack(db, rack_id)
        except RackBoxError as e:
            fail(e.message)

    print(f"Rack: {rack.rack_id}")
    print(f"Image: {rack.image_path}")
    for cell in rack.cells:
        print(
            f"  Cell {cell.id}: x={cell.x:.3f} y={cell.y:.3f} "
            f"w={cell.width:.3f} h={cell.height:.3f}"
        )
        for item in items.get(cell.id, []):
            description = f"  {item.description}" if item.description else ""
            print(f"    {item.part_number:<20} {item.quantity:>6}{description}")


async def record_stock(
    rack_id: str,
    cell_index: int,
    part_number: str,
    quantity_change: int,
    employee_id: str,
    skip_db_init: bool = False,
) -> None:
    """Record one quantity change."""
    async with db_session(skip_db_init) as db:
        try:
            quantity = await ledger.record_transaction(
                db,
                rack_id,
                cell_index,
                part_number,
                quantity_change,
                EmployeeSession(employee_id=employee_id),
            )
        except RackBoxError as e:
            fail(e.message)
    print(f"{part_number} in {rack_id} cell {cell_index}: {quantity}")


async def search_parts(partial: str, skip_db_init: bool = False) -> None:
    async with db_session(skip_db_init) as db:
        locations = await ledger.search_part_number_global(db, partial)

    if not locations:
        print(f"No cells hold a part matching '{partial}'.")
        return

    print(f"{'Rack ID':<30} {'Cell':<6} {'Part':<20} {'Qty':>6}")
    print("-" * 65)
    for loc in locations:
        print(f"{loc.rack_id:<30} {loc.cell_index:<6} {loc.part_number:<20} {loc.quantity:>6}")


async def show_history(
    rack_id: str | None = None,
    part_number: str | None = None,
    employee_id: str | None = None,
    limit: int = 20,
    skip_db_init: bool = False,
) -> None:
    async with db_session(skip_db_init) as db:
        transactions = await ledger.list_transactions(
            db,
            rack_id=rack_id,
            part_number=part_number,
            employee_id=employee_id,
            limit=limit,
        )

    if not transactions:
        print("No transactions found.")
        return

    print(f"{'When':<17} {'Rack ID':<24} {'Cell':<5} {'Part':<20} {'Change':>7} {'Employee':<12}")
    print("-" * 90)
    for t in transactions:
        when = t.timestamp.strftime("%Y-%m-%d %H:%M")
        print(
            f"{when:<17} {t.rack_id:<24} {t.cell_index:<5} {t.part_number:<20} "
            f"{t.quantity_change:>+7} {t.employee_id:<12}"
        )


def get_secret_interactive() -> str:
    """Prompt for a new edit secret twice."""
    secret = getpass("New edit secret: ")
    if not secret:
        fail("Edit secret cannot be empty.")
    if getpass("Confirm edit secret: ") != secret:
        fail("Secrets do not match.")
    return secret


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Administration for RackBox",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Employees
    employee_parser = subparsers.add_parser("employee", help="Manage employees")
    employee_sub = employee_parser.add_subparsers(dest="action")
    employee_add = employee_sub.add_parser("add", help="Register an employee")
    employee_add.add_argument("employee_id", help="Employee identifier")
    employee_add.add_argument("name", help="Display name")
    employee_sub.add_parser("list", help="List employees")

    # Catalog
    catalog_parser = subparsers.add_parser("catalog", help="Manage the parts catalog")
    catalog_sub = catalog_parser.add_subparsers(dest="action")
    catalog_import = catalog_sub.add_parser("import", help="Import a CSV or XLSX file")
    catalog_import.add_argument("file", type=Path, help="Catalog file; first row is a header")

    # Edit secret
    secret_parser = subparsers.add_parser("secret", help="Manage the layout edit secret")
    secret_sub = secret_parser.add_subparsers(dest="action")
    secret_set = secret_sub.add_parser("set", help="Change the layout edit secret")
    secret_set.add_argument("--secret", "-s", help="New secret (will prompt if not provided)")

    # Racks
    rack_parser = subparsers.add_parser("rack", help="Manage racks")
    rack_sub = rack_parser.add_subparsers(dest="action")
    rack_add = rack_sub.add_parser("add", help="Register a rack photograph")
    rack_add.add_argument("image", type=Path, help="Rack image; its file name becomes the rack id")
    rack_add.add_argument("--rows", type=int, default=DEFAULT_ROWS, help=f"Grid rows (default: {DEFAULT_ROWS})")
    rack_add.add_argument("--cols", type=int, default=DEFAULT_COLS, help=f"Grid columns (default: {DEFAULT_COLS})")
    rack_add.add_argument("--replace", action="store_true", help="Replace an existing rack of the same name")
    rack_sub.add_parser("list", help="List racks")
    rack_show = rack_sub.add_parser("show", help="Show cells and items of a rack")
    rack_show.add_argument("rack_id")

    # Stock movements
    stock_parser = subparsers.add_parser("stock", help="Add or take parts in a cell")
    stock_parser.add_argument("rack_id")
    stock_parser.add_argument("cell_index", type=int)
    stock_parser.add_argument("part_number")
    stock_parser.add_argument("quantity_change", type=int, help="Positive to add, negative to take")
    stock_parser.add_argument("--employee", "-e", required=True, help="Acting employee id")

    search_parser = subparsers.add_parser("search", help="Find cells holding a part")
    search_parser.add_argument("part", help="Part number fragment")

    history_parser = subparsers.add_parser("history", help="Show recent transactions")
    history_parser.add_argument("--rack", help="Filter by rack id")
    history_parser.add_argument("--part", help="Filter by part number")
    history_parser.add_argument("--employee", help="Filter by employee id")
    history_parser.add_argument("--limit", type=int, default=20)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "employee" and args.action == "add":
            asyncio.run(add_employee(args.employee_id, args.name))
        elif args.command == "employee" and args.action == "list":
            asyncio.run(list_employees())
        elif args.command == "catalog" and args.action == "import":
            asyncio.run(import_catalog(args.file))
        elif args.command == "secret" and args.action == "set":
            set_secret(args.secret if args.secret else get_secret_interactive())
        elif args.command == "rack" and args.action == "add":
            asyncio.run(add_rack(args.image, args.rows, args.cols, args.replace))
        elif args.command == "rack" and args.action == "list":
            asyncio.run(list_racks())
        elif args.command == "rack" and args.action == "show":
            asyncio.run(show_rack(args.rack_id))
        elif args.command == "stock":
            asyncio.run(
                record_stock(
                    args.rack_id,
                    args.cell_index,
                    args.part_number,
                    args.quantity_change,
                    args.employee,
                )
            )
        elif args.command == "search":
            asyncio.run(search_parts(args.part))
        elif args.command == "history":
            asyncio.run(show_history(args.rack, args.part, args.employee, args.limit))
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nAborted.")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
