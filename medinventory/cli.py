"""Command-line interface for browsing and maintaining the medicine inventory."""

import sys
from typing import Optional

import click

from .services.inventory_service import InventoryService
from .utils.config import get_config
from .utils.exceptions import AuthenticationError, BaseAppException, InvalidArgumentError
from .views.inventory_view import InventoryView, SortDirection, SortField

STATE_MARKERS = {"expired": "❌ ", "expiring_soon": "⚠️  ", "ok": ""}


def _get_service(ctx: click.Context) -> InventoryService:
    """Service injected through ``ctx.obj`` (tests) or built from config."""
    ctx.ensure_object(dict)
    if "service" not in ctx.obj:
        ctx.obj["service"] = InventoryService()
    return ctx.obj["service"]


def _fail(message: str) -> None:
    click.echo(click.style(f"✗ {message}", fg="red"), err=True)
    sys.exit(1)


def _loaded_service(ctx: click.Context) -> InventoryService:
    service = _get_service(ctx)
    try:
        service.refresh()
    except AuthenticationError as e:
        _fail(f"Not authorized: {e.message} (set MEDINVENTORY_API_TOKEN)")
    except BaseAppException as e:
        _fail(f"Could not load medicines: {e.message}")
    return service


def _echo_record_line(view: InventoryView, record) -> None:
    status = view.status_for(record)
    line = (
        f"{STATE_MARKERS[status.state.value]}{record.name}: {record.quantity} units, "
        f"Exp: {record.expiry_display}"
    )
    if status.is_expired:
        click.echo(click.style(line, fg="red"))
    elif status.is_expiring_soon:
        click.echo(click.style(line, fg="yellow"))
    else:
        click.echo(line)


@click.group()
@click.version_option(version="1.0.0")
@click.pass_context
def cli(ctx):
    """
    Medicine inventory client.

    Browse, search, export and maintain medicines stored by the inventory API.
    """
    ctx.ensure_object(dict)


@cli.command("list")
@click.option("--search", "-s", default="", help="Case-insensitive name filter")
@click.option(
    "--sort",
    "sort_field",
    type=click.Choice([f.value for f in SortField]),
    default=SortField.EXPIRY_DATE.value,
    show_default=True
)
@click.option(
    "--direction",
    type=click.Choice([d.value for d in SortDirection]),
    default=SortDirection.ASC.value,
    show_default=True
)
@click.option("--page", default=1, show_default=True, help="Page number (1-based)")
@click.option("--page-size", default=None, type=int, help="Rows per page")
@click.pass_context
def list_medicines(ctx, search: str, sort_field: str, direction: str, page: int, page_size: Optional[int]):
    """List medicines with search, sort and pagination."""
    service = _loaded_service(ctx)
    view = service.view
    page_size = page_size or get_config().inventory.default_page_size

    try:
        view.set_search_term(search)
        view.set_sort(sort_field, direction)
        rows = view.get_page(page - 1, page_size)
        pages = view.page_count(page_size)
    except InvalidArgumentError as e:
        _fail(e.message)

    if not rows:
        click.echo("No medicines found.")
        return

    for record in rows:
        _echo_record_line(view, record)

    click.echo()
    click.echo(f"Page {page} of {pages} ({len(view.filtered_records())} medicines)")


@cli.command()
@click.pass_context
def summary(ctx):
    """Show dashboard counts."""
    service = _loaded_service(ctx)
    result = service.view.compute_summary()

    click.echo("Inventory Summary:")
    click.echo("=" * 40)
    for tile in result.tiles():
        click.echo(f"  {tile.title:<18} {tile.value}")
    click.echo(f"  {'Expired':<18} {result.expired}")
    if result.invalid_dates:
        click.echo(click.style(f"  {'Invalid dates':<18} {result.invalid_dates}", fg="yellow"))


@cli.command()
@click.pass_context
def alerts(ctx):
    """Show medicines expiring soon and low on stock."""
    service = _loaded_service(ctx)
    view = service.view
    found = service.alerts()
    window = view.settings.list_expiry_window_days

    expiring = found["expiring_soon"]
    if expiring:
        click.echo(click.style(
            f"⚠️  {len(expiring)} medicine(s) expiring in the next {window} days:",
            fg="yellow",
            bold=True
        ))
        for record in expiring:
            click.echo(f"  - {record.name}: Exp {record.expiry_display}")
    else:
        click.echo(f"No medicines expiring in the next {window} days.")

    click.echo()
    low_stock = found["low_stock"]
    if low_stock:
        click.echo(click.style(f"{len(low_stock)} medicine(s) low on stock:", fg="yellow", bold=True))
        for record in low_stock:
            click.echo(f"  - {record.name}: {record.quantity} units")
    else:
        click.echo("No medicines low on stock.")


@cli.command()
@click.option("--format", "file_format", type=click.Choice(["csv", "pdf"]), default="csv", show_default=True)
@click.option("--output", "-o", default=None, help="Output file path")
@click.option("--search", "-s", default="", help="Only export medicines matching this name")
@click.pass_context
def export(ctx, file_format: str, output: Optional[str], search: str):
    """Export medicines, sorted by expiry date, to CSV or PDF."""
    service = _loaded_service(ctx)
    if len(service.view) == 0:
        click.echo("No medicines to export.")
        return

    try:
        service.view.set_search_term(search)
        path = service.export(file_format, output)
    except BaseAppException as e:
        _fail(e.message)

    click.echo(click.style(f"✓ Exported to {path}", fg="green"))


@cli.command()
@click.option("--name", required=True)
@click.option("--quantity", required=True, type=int)
@click.option("--expiry-date", required=True, help="YYYY-MM-DD")
@click.option("--description", default=None)
@click.option("--price", default=None, type=float)
@click.option("--manufacturer", default=None)
@click.option("--barcode", default=None)
@click.pass_context
def add(ctx, name, quantity, expiry_date, description, price, manufacturer, barcode):
    """Add a medicine."""
    service = _get_service(ctx)
    try:
        record = service.add_medicine({
            "name": name,
            "quantity": quantity,
            "expiryDate": expiry_date,
            "description": description,
            "price": price,
            "manufacturer": manufacturer,
            "barcode": barcode,
        })
    except BaseAppException as e:
        _fail(f"Error adding medicine: {e.message}")

    click.echo(click.style(f"✓ Added {record.name} ({record.id})", fg="green"))


@cli.command()
@click.argument("medicine_id")
@click.option("--name", default=None)
@click.option("--quantity", default=None, type=int)
@click.option("--expiry-date", default=None, help="YYYY-MM-DD")
@click.option("--description", default=None)
@click.option("--price", default=None, type=float)
@click.option("--manufacturer", default=None)
@click.option("--barcode", default=None)
@click.pass_context
def update(ctx, medicine_id, name, quantity, expiry_date, description, price, manufacturer, barcode):
    """
    Update a medicine.

    MEDICINE_ID: Identifier assigned by the API
    """
    service = _loaded_service(ctx)
    try:
        record = service.update_medicine(medicine_id, {
            "name": name,
            "quantity": quantity,
            "expiryDate": expiry_date,
            "description": description,
            "price": price,
            "manufacturer": manufacturer,
            "barcode": barcode,
        })
    except BaseAppException as e:
        _fail(f"Failed to update medicine: {e.message}")

    click.echo(click.style(f"✓ Updated {record.name}", fg="green"))


@cli.command()
@click.argument("medicine_id")
@click.confirmation_option(prompt="Delete this medicine?")
@click.pass_context
def delete(ctx, medicine_id):
    """
    Delete a medicine.

    MEDICINE_ID: Identifier assigned by the API
    """
    service = _get_service(ctx)
    try:
        service.delete_medicine(medicine_id)
    except BaseAppException as e:
        _fail(f"Failed to delete medicine: {e.message}")

    click.echo(click.style(f"✓ Deleted {medicine_id}", fg="green"))


@cli.command()
@click.option("--limit", default=20, show_default=True)
@click.pass_context
def logs(ctx, limit: int):
    """Show the most recent inventory changes."""
    service = _get_service(ctx)
    try:
        entries = service.get_logs()
    except BaseAppException as e:
        _fail(f"Failed to fetch logs: {e.message}")

    if not entries:
        click.echo("No inventory logs available")
        return

    colours = {"added": "green", "deleted": "red", "updated": "blue"}
    for entry in entries[:limit]:
        action = click.style(f"{entry.action:<8}", fg=colours.get(entry.action))
        details = f": {entry.details}" if entry.details else ""
        click.echo(f"{entry.timestamp_display:<22} {action} {entry.medicine_name}{details}")


@cli.command()
def config_info():
    """Display current configuration settings."""
    try:
        config = get_config()

        click.echo("Configuration Settings:")
        click.echo("=" * 60)
        click.echo()

        click.echo("Environment:")
        click.echo(f"  Environment:     {config.env.environment}")
        click.echo(f"  Log level:       {config.logging.level}")
        click.echo()

        click.echo("API:")
        click.echo(f"  Base URL:        {config.env.api_base_url}")
        token = config.env.api_token
        click.echo(f"  Token:           {token[:6] + '...' if token else '(not set)'}")
        click.echo(f"  Timeout:         {config.api.timeout}s")
        click.echo()

        inventory = config.inventory
        click.echo("Inventory:")
        click.echo(f"  Low stock below: {inventory.low_stock_threshold}")
        click.echo(f"  List window:     {inventory.list_expiry_window_days} days")
        click.echo(f"  Summary window:  {inventory.summary_expiry_window_days} days")
        click.echo(f"  Page sizes:      {', '.join(str(s) for s in inventory.page_size_options)}")
        click.echo(f"  Barcode lookup:  {config.features.barcode_lookup}")
        click.echo()

    except Exception as e:
        click.echo(click.style(f"✗ Error loading config: {str(e)}", fg="red"), err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
