"""Command-line interface for Rental Ledger."""

import argparse
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path

from rental_ledger import __version__
from rental_ledger.config import LogLevel, get_settings
from rental_ledger.container import Container
from rental_ledger.domain.dates import format_date
from rental_ledger.domain.properties import Unit
from rental_ledger.domain.value_objects import PartialReason, format_currency
from rental_ledger.exceptions import RentalLedgerError
from rental_ledger.logging_config import configure_logging
from rental_ledger.repositories.sqlite import SQLiteDatabase
from rental_ledger.services import export


def get_default_db_path() -> Path:
    """Get the database path from settings (RL_SQLITE_PATH)."""
    return Path(get_settings().sqlite_path).expanduser()


def _date_arg(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid date {value!r}, expected YYYY-MM-DD"
        ) from None


def _amount_arg(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount {value!r}") from None


def _db_path(args: argparse.Namespace) -> Path:
    return Path(args.database) if args.database else get_default_db_path()


def _open_container(args: argparse.Namespace) -> Container | None:
    """Open an existing database, or print why it can't be opened."""
    db_path = _db_path(args)
    if not db_path.exists():
        print(f"Error: Database not found at {db_path}")
        print("Run 'rl init' to create a new database")
        return None

    db = SQLiteDatabase(str(db_path))
    db.initialize()
    return Container(database=db)


def _money(value: Decimal) -> str:
    return format_currency(value, get_settings().currency.value)


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize a new database."""
    db_path = _db_path(args)

    if db_path.exists() and not args.force:
        print(f"Database already exists at {db_path}")
        print("Use --force to reinitialize (WARNING: will delete existing data)")
        return 1

    if db_path.exists() and args.force:
        db_path.unlink()

    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = SQLiteDatabase(str(db_path))
    db.initialize()
    db.close()

    print(f"Initialized database at {db_path}")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Show database status."""
    db_path = _db_path(args)
    if not db_path.exists():
        print(f"No database found at {db_path}")
        print("Run 'rl init' to create a new database")
        return 1

    container = _open_container(args)
    if container is None:
        return 1

    properties = container.property_service.list_properties()
    records = list(container.rent_record_repo.list_all())
    unpaid = [r for r in records if not r.is_paid]
    outstanding = sum((r.amount_remaining for r in unpaid), Decimal("0"))

    print(f"Database: {db_path}")
    print(f"Properties: {len(properties)}")
    for prop in properties:
        units = container.property_service.list_units(prop.id)
        print(f"  - {prop.name}: {len(units)} units")
    print(f"Rent records: {len(records)} ({len(unpaid)} unpaid)")
    print(f"Outstanding: {_money(outstanding)}")
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    """Show version information."""
    print(f"Rental Ledger v{__version__}")
    return 0


# Property commands
def cmd_property_add(args: argparse.Namespace) -> int:
    container = _open_container(args)
    if container is None:
        return 1
    try:
        prop = container.property_service.create_property(
            name=args.name,
            address=args.address or "",
            notes=args.notes or "",
            image_url=args.image_url or "",
        )
    except RentalLedgerError as e:
        print(f"Error: {e.message}")
        return 1

    print(f"Property created: {prop.id}")
    print(f"  Name: {prop.name}")
    return 0


def cmd_property_list(args: argparse.Namespace) -> int:
    container = _open_container(args)
    if container is None:
        return 1

    properties = container.property_service.list_properties()
    if not properties:
        print("No properties found")
        return 0

    print(f"{'ID':<34} {'Name':<30} {'Units':>5}")
    print("-" * 71)
    for prop in properties:
        units = container.property_service.list_units(prop.id)
        print(f"{prop.id:<34} {prop.name:<30} {len(units):>5}")
    return 0


def cmd_property_delete(args: argparse.Namespace) -> int:
    container = _open_container(args)
    if container is None:
        return 1
    try:
        removed = container.property_service.delete_property(args.property_id)
    except RentalLedgerError as e:
        print(f"Error: {e.message}")
        return 1

    print(f"Deleted property {args.property_id} and {removed} unit(s)")
    return 0


# Unit commands
def cmd_unit_add(args: argparse.Namespace) -> int:
    container = _open_container(args)
    if container is None:
        return 1

    unit = Unit(
        property_id=args.property_id,
        number=args.number,
        tenant_name=args.tenant or "",
        rent_amount=args.rent,
        move_in_date=args.move_in,
        phone_number=args.phone or "",
        email=args.email or "",
        lease_start_date=args.lease_start,
        lease_end_date=args.lease_end,
        lease_term=args.lease_term or "",
        security_deposit_amount=args.deposit,
        rent_increment_amount=args.increment,
        rent_increment_effective_date=args.increment_date,
        notes=args.notes or "",
    )
    try:
        unit, result = container.property_service.add_unit(unit, as_of=args.as_of)
    except RentalLedgerError as e:
        print(f"Error: {e.message}")
        return 1

    print(f"Unit created: {unit.id}")
    print(f"  Property: {unit.property_name}")
    print(f"  Unit: {unit.number} ({unit.tenant_name or 'vacant'})")
    print(f"  Rent: {_money(unit.rent_amount)}")
    print(f"  Rent records created: {result.created}")
    return 0


def cmd_unit_list(args: argparse.Namespace) -> int:
    container = _open_container(args)
    if container is None:
        return 1

    units = container.property_service.list_units(args.property_id)
    if not units:
        print("No units found")
        return 0

    print(f"{'ID':<34} {'Property':<20} {'Unit':<8} {'Tenant':<20} {'Rent':>14}")
    print("-" * 100)
    for unit in units:
        print(
            f"{unit.id:<34} {unit.property_name[:20]:<20} {unit.number:<8} "
            f"{unit.tenant_name[:20]:<20} {_money(unit.rent_amount):>14}"
        )
    return 0


def cmd_unit_delete(args: argparse.Namespace) -> int:
    container = _open_container(args)
    if container is None:
        return 1
    try:
        removed = container.property_service.delete_unit(args.unit_id)
    except RentalLedgerError as e:
        print(f"Error: {e.message}")
        return 1

    print(f"Deleted unit {args.unit_id} and {removed} rent record(s)")
    return 0


# Rent commands
def cmd_rent_generate(args: argparse.Namespace) -> int:
    """Bring rent records up to date for one unit or all units."""
    container = _open_container(args)
    if container is None:
        return 1

    as_of = args.as_of or date.today()
    ledger = container.rent_ledger_service
    try:
        if args.unit_id:
            results = [ledger.regenerate_unit(args.unit_id, as_of)]
        else:
            results = ledger.catch_up_all(as_of)
    except RentalLedgerError as e:
        print(f"Error: {e.message}")
        return 1

    failed = [r for r in results if not r.ok]
    print(f"Rent records generated through {as_of.isoformat()}")
    print(f"  Units: {len(results)}")
    print(f"  Created: {sum(r.created for r in results)}")
    print(f"  Updated: {sum(r.updated for r in results)}")
    print(f"  Skipped: {sum(1 for r in results if r.skipped)}")
    if failed:
        print(f"  Failed: {len(failed)}")
        for result in failed:
            print(f"    - {result.unit_id}: {result.error}")
        return 1
    return 0


def cmd_rent_list(args: argparse.Namespace) -> int:
    container = _open_container(args)
    if container is None:
        return 1

    repo = container.rent_record_repo
    if args.unit_id:
        records = list(repo.list_by_unit(args.unit_id))
    elif args.property_id:
        records = list(repo.list_by_property(args.property_id))
    elif args.month:
        records = list(repo.list_by_month(args.month))
    else:
        records = list(repo.list_all())
    if args.month:
        records = [r for r in records if r.month_year == args.month]
    if args.unpaid:
        records = [r for r in records if not r.is_paid]

    if not records:
        print("No rent records found")
        return 0

    print(
        f"{'Month':<8} {'Property':<20} {'Unit':<8} {'Due':<13} "
        f"{'Amount':>14} {'Received':>14} {'Status':<8}"
    )
    print("-" * 92)
    for r in records:
        if r.is_paid:
            state = "paid"
        elif r.is_partial_payment:
            state = "partial"
        else:
            state = "unpaid"
        print(
            f"{r.month_year:<8} {r.property_name[:20]:<20} {r.unit_number:<8} "
            f"{format_date(r.due_date):<13} {_money(r.amount):>14} "
            f"{_money(r.amount_received):>14} {state:<8}"
        )
    return 0


def cmd_rent_pay(args: argparse.Namespace) -> int:
    container = _open_container(args)
    if container is None:
        return 1
    try:
        outcome = container.payment_service.record_payment(
            args.record_id,
            payment_date=args.date or date.today(),
            amount_received=args.amount,
            reason=args.reason,
            notes=args.notes or "",
        )
    except RentalLedgerError as e:
        print(f"Error: {e.message}")
        return 1

    record = outcome.record
    print(f"Payment recorded for {record.id}")
    print(f"  Received: {_money(record.amount_received)} of {_money(record.amount)}")
    if record.is_paid:
        print("  Status: paid")
    else:
        print(f"  Status: partial ({record.partial_reason})")
    if outcome.expense is not None:
        print(f"  Maintenance expense: {_money(outcome.expense.amount)}")
    return 0


def cmd_rent_arrears(args: argparse.Namespace) -> int:
    container = _open_container(args)
    if container is None:
        return 1

    entries = container.payment_service.arrears(
        args.as_of or date.today(), property_id=args.property_id
    )
    if not entries:
        print("No arrears")
        return 0

    total = sum((e.amount_remaining for e in entries), Decimal("0"))
    print(f"{'Month':<8} {'Property':<20} {'Unit':<8} {'Tenant':<20} {'Days':>5} {'Owed':>14}")
    print("-" * 80)
    for entry in entries:
        r = entry.record
        print(
            f"{r.month_year:<8} {r.property_name[:20]:<20} {r.unit_number:<8} "
            f"{r.tenant_name[:20]:<20} {entry.days_overdue:>5} "
            f"{_money(entry.amount_remaining):>14}"
        )
    print("-" * 80)
    print(f"Total outstanding: {_money(total)}")
    return 0


def cmd_rent_mark_paid(args: argparse.Namespace) -> int:
    container = _open_container(args)
    if container is None:
        return 1
    try:
        updated = container.payment_service.mark_many_paid(
            args.record_ids, args.date or date.today()
        )
    except RentalLedgerError as e:
        print(f"Error: {e.message}")
        return 1

    print(f"Marked {len(updated)} record(s) as paid")
    return 0


def cmd_rent_mark_unpaid(args: argparse.Namespace) -> int:
    container = _open_container(args)
    if container is None:
        return 1
    try:
        updated = container.payment_service.mark_many_unpaid(args.record_ids)
    except RentalLedgerError as e:
        print(f"Error: {e.message}")
        return 1

    print(f"Marked {len(updated)} record(s) as unpaid")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "rental_ledger.api.app:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=args.reload,
    )
    return 0


# Export commands
def cmd_export(args: argparse.Namespace) -> int:
    """Export rent records, expenses or properties as CSV or JSON."""
    container = _open_container(args)
    if container is None:
        return 1

    if args.kind == "rent":
        rows = [export.rent_record_row(r) for r in container.rent_record_repo.list_all()]
        headers = export.RENT_RECORD_HEADERS
    elif args.kind == "expenses":
        rows = [export.expense_row(e) for e in container.expense_repo.list_all()]
        headers = export.EXPENSE_HEADERS
    else:
        rows = export.property_unit_rows(
            container.property_repo.list_all(), container.unit_repo.list_all()
        )
        headers = export.PROPERTY_UNIT_HEADERS

    if args.format == "json":
        content = export.to_json(rows)
    else:
        content = export.to_csv(rows, headers)

    if args.output:
        output_path = Path(args.output)
        output_path.write_text(content, encoding="utf-8")
        print(f"Exported {len(rows)} row(s) to {output_path}")
    else:
        sys.stdout.write(content)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="rl",
        description="Rental Ledger - monthly rent schedules, payments and arrears",
    )
    parser.add_argument(
        "--database",
        "-d",
        help="Path to SQLite database file",
        default=None,
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show informational log messages",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init command
    init_parser = subparsers.add_parser("init", help="Initialize a new database")
    init_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Force reinitialization (deletes existing data)",
    )
    init_parser.set_defaults(func=cmd_init)

    # status command
    status_parser = subparsers.add_parser("status", help="Show database status")
    status_parser.set_defaults(func=cmd_status)

    # version command
    version_parser = subparsers.add_parser("version", help="Show version")
    version_parser.set_defaults(func=cmd_version)

    # property command group
    property_parser = subparsers.add_parser("property", help="Property commands")
    property_subparsers = property_parser.add_subparsers(
        dest="property_command", help="Property subcommands"
    )

    property_add_parser = property_subparsers.add_parser("add", help="Add a property")
    property_add_parser.add_argument("name", help="Property name")
    property_add_parser.add_argument("--address", default=None)
    property_add_parser.add_argument("--notes", default=None)
    property_add_parser.add_argument("--image-url", default=None)
    property_add_parser.set_defaults(func=cmd_property_add)

    property_list_parser = property_subparsers.add_parser(
        "list", help="List properties"
    )
    property_list_parser.set_defaults(func=cmd_property_list)

    property_delete_parser = property_subparsers.add_parser(
        "delete", help="Delete a property with its units and rent records"
    )
    property_delete_parser.add_argument("property_id", help="Property ID")
    property_delete_parser.set_defaults(func=cmd_property_delete)

    # unit command group
    unit_parser = subparsers.add_parser("unit", help="Unit commands")
    unit_subparsers = unit_parser.add_subparsers(
        dest="unit_command", help="Unit subcommands"
    )

    unit_add_parser = unit_subparsers.add_parser(
        "add", help="Add a unit and generate its rent records"
    )
    unit_add_parser.add_argument("--property-id", required=True, help="Property ID")
    unit_add_parser.add_argument("--number", required=True, help="Unit number")
    unit_add_parser.add_argument("--tenant", default=None, help="Tenant name")
    unit_add_parser.add_argument(
        "--rent", required=True, type=_amount_arg, help="Monthly rent"
    )
    unit_add_parser.add_argument(
        "--move-in", required=True, type=_date_arg, help="Move-in date (YYYY-MM-DD)"
    )
    unit_add_parser.add_argument(
        "--increment",
        type=_amount_arg,
        default=Decimal("0"),
        help="One-time rent increment amount",
    )
    unit_add_parser.add_argument(
        "--increment-date",
        type=_date_arg,
        default=None,
        help="Date the increment takes effect (YYYY-MM-DD)",
    )
    unit_add_parser.add_argument("--phone", default=None)
    unit_add_parser.add_argument("--email", default=None)
    unit_add_parser.add_argument(
        "--deposit", type=_amount_arg, default=Decimal("0"), help="Security deposit"
    )
    unit_add_parser.add_argument("--lease-start", type=_date_arg, default=None)
    unit_add_parser.add_argument("--lease-end", type=_date_arg, default=None)
    unit_add_parser.add_argument("--lease-term", default=None)
    unit_add_parser.add_argument("--notes", default=None)
    unit_add_parser.add_argument(
        "--as-of", type=_date_arg, default=None, help="Generate through this date"
    )
    unit_add_parser.set_defaults(func=cmd_unit_add)

    unit_list_parser = unit_subparsers.add_parser("list", help="List units")
    unit_list_parser.add_argument("--property-id", default=None)
    unit_list_parser.set_defaults(func=cmd_unit_list)

    unit_delete_parser = unit_subparsers.add_parser(
        "delete", help="Delete a unit and its rent records"
    )
    unit_delete_parser.add_argument("unit_id", help="Unit ID")
    unit_delete_parser.set_defaults(func=cmd_unit_delete)

    # rent command group
    rent_parser = subparsers.add_parser("rent", help="Rent record commands")
    rent_subparsers = rent_parser.add_subparsers(
        dest="rent_command", help="Rent subcommands"
    )

    rent_generate_parser = rent_subparsers.add_parser(
        "generate", help="Generate or refresh rent records"
    )
    rent_generate_parser.add_argument(
        "--unit-id", default=None, help="Only this unit (default: all units)"
    )
    rent_generate_parser.add_argument("--as-of", type=_date_arg, default=None)
    rent_generate_parser.set_defaults(func=cmd_rent_generate)

    rent_list_parser = rent_subparsers.add_parser("list", help="List rent records")
    rent_list_parser.add_argument("--unit-id", default=None)
    rent_list_parser.add_argument("--property-id", default=None)
    rent_list_parser.add_argument("--month", default=None, help="Month (YYYY-MM)")
    rent_list_parser.add_argument(
        "--unpaid", action="store_true", help="Only unpaid records"
    )
    rent_list_parser.set_defaults(func=cmd_rent_list)

    rent_pay_parser = rent_subparsers.add_parser("pay", help="Record a payment")
    rent_pay_parser.add_argument("record_id", help="Rent record ID")
    rent_pay_parser.add_argument(
        "--amount", required=True, type=_amount_arg, help="Amount received"
    )
    rent_pay_parser.add_argument(
        "--date", type=_date_arg, default=None, help="Payment date (default: today)"
    )
    rent_pay_parser.add_argument(
        "--reason",
        choices=[r.name.lower() for r in PartialReason],
        default=None,
        help="Reason when the amount is short",
    )
    rent_pay_parser.add_argument("--notes", default=None)
    rent_pay_parser.set_defaults(func=cmd_rent_pay)

    rent_arrears_parser = rent_subparsers.add_parser(
        "arrears", help="Show overdue unpaid rent"
    )
    rent_arrears_parser.add_argument("--as-of", type=_date_arg, default=None)
    rent_arrears_parser.add_argument("--property-id", default=None)
    rent_arrears_parser.set_defaults(func=cmd_rent_arrears)

    rent_mark_paid_parser = rent_subparsers.add_parser(
        "mark-paid", help="Mark records as fully paid"
    )
    rent_mark_paid_parser.add_argument("record_ids", nargs="+", help="Rent record IDs")
    rent_mark_paid_parser.add_argument("--date", type=_date_arg, default=None)
    rent_mark_paid_parser.set_defaults(func=cmd_rent_mark_paid)

    rent_mark_unpaid_parser = rent_subparsers.add_parser(
        "mark-unpaid", help="Mark records as unpaid"
    )
    rent_mark_unpaid_parser.add_argument(
        "record_ids", nargs="+", help="Rent record IDs"
    )
    rent_mark_unpaid_parser.set_defaults(func=cmd_rent_mark_unpaid)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.add_argument("--reload", action="store_true")
    serve_parser.set_defaults(func=cmd_serve)

    # export command
    export_parser = subparsers.add_parser("export", help="Export data")
    export_parser.add_argument("kind", choices=list(export.EXPORT_KINDS))
    export_parser.add_argument("--format", choices=["csv", "json"], default="csv")
    export_parser.add_argument(
        "--output", "-o", default=None, help="Output file (default: stdout)"
    )
    export_parser.set_defaults(func=cmd_export)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    for group, group_parser in (
        ("property", property_parser),
        ("unit", unit_parser),
        ("rent", rent_parser),
    ):
        if args.command == group and getattr(args, f"{group}_command", None) is None:
            group_parser.print_help()
            return 0

    settings = get_settings()
    if not args.verbose:
        settings = settings.model_copy(update={"log_level": LogLevel.WARNING})
    configure_logging(settings, stream=sys.stderr)

    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
