"""Invoice commands."""

import click
from pathxpress.domain.client import ClientService
from pathxpress.domain.entities import InvoiceStatus
from pathxpress.domain.errors import DomainError
from pathxpress.domain.invoice import InvoiceService
from pathxpress.cli.client_resolution import resolve_client_or_exit
from pathxpress.cli.date_filters import resolve_cli_period
from pathxpress.cli.error_handling import handle_domain_error
from pathxpress.cli.value_parsing import amount_or_exit, date_or_exit


@click.group()
def invoice_group():
    """Bill clients and manage invoices."""
    pass


@invoice_group.command("generate")
@click.argument("client", metavar="CLIENT")
@click.option("--period", help="Billing period: this-month, last-month or YYYY-MM")
@click.option("--start-date", help="Period start (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="Period end (YYYY-MM-DD or relative like 'today')")
@click.option("--shipment", "shipment_ids", type=int, multiple=True, help="Bill only this shipment ID")
@click.pass_context
def generate_invoice(
    ctx,
    client: str,
    period: str | None,
    start_date: str | None,
    end_date: str | None,
    shipment_ids: tuple[int, ...],
):
    """Invoice a client's delivered shipments for a period.

    Examples:
        pathxpress invoice generate "Acme Trading" --period last-month
        pathxpress invoice generate 1 --start-date 2025-01-01 --end-date 2025-01-15
    """
    db = ctx.obj["db"]
    client_id = resolve_client_or_exit(ctx, ClientService(db), client)
    start, end = resolve_cli_period(ctx, period=period, start_date=start_date, end_date=end_date)

    try:
        invoice = InvoiceService(db).generate_invoice(
            client_id, start, end, shipment_ids=list(shipment_ids) or None
        )
        click.echo(
            f"Created invoice {invoice.invoice_number} (ID: {invoice.id}) "
            f"total {invoice.total} {invoice.currency}, due {invoice.due_date}"
        )
    except DomainError as e:
        handle_domain_error(ctx, e)


@invoice_group.command("list")
@click.option("--client", help="Client name or ID")
@click.pass_context
def list_invoices(ctx, client: str | None):
    """List invoices, newest first."""
    db = ctx.obj["db"]
    client_id = resolve_client_or_exit(ctx, ClientService(db), client) if client else None
    invoices = InvoiceService(db).list_invoices(client_id=client_id)
    if not invoices:
        click.echo("No invoices found.")
        return

    click.echo("\nInvoices:")
    click.echo("-" * 85)
    for inv in invoices:
        adjusted = " (adjusted)" if inv.is_adjusted else ""
        click.echo(
            f"ID: {inv.id:3d} | {inv.invoice_number} | client {inv.client_id:3d} | "
            f"{inv.period_from} - {inv.period_to} | {inv.total:>10} {inv.currency} | "
            f"{inv.status.value}{adjusted}"
        )


@invoice_group.command("show")
@click.argument("invoice_id", type=int)
@click.pass_context
def show_invoice(ctx, invoice_id: int):
    """Show an invoice with its line items."""
    try:
        details = InvoiceService(ctx.obj["db"]).get_invoice_details(invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    inv = details.invoice
    click.echo(f"\nInvoice {inv.invoice_number} ({inv.status.value})")
    click.echo(f"Period: {inv.period_from} - {inv.period_to}   Issued: {inv.issue_date}   Due: {inv.due_date}")
    click.echo("-" * 70)
    for item in details.items:
        click.echo(f"{item.description:45s} {item.quantity:3d} x {item.unit_price:>8} = {item.total:>9}")
    click.echo("-" * 70)
    click.echo(f"{'Subtotal':59s} {inv.subtotal:>10}")
    click.echo(f"{'Taxes':59s} {inv.taxes:>10}")
    click.echo(f"{'Total (' + inv.currency + ')':59s} {inv.total:>10}")
    click.echo(f"{'Paid':59s} {inv.amount_paid:>10}")
    click.echo(f"{'Balance':59s} {inv.balance:>10}")
    if inv.adjustment_notes:
        click.echo(f"\nAdjustment: {inv.adjustment_notes}")


@invoice_group.command("status")
@click.argument("invoice_id", type=int)
@click.argument("status", type=click.Choice([s.value for s in InvoiceStatus]))
@click.option("--payment-date", help="Payment date when marking paid (defaults to today)")
@click.option("--reference", help="Payment reference")
@click.pass_context
def update_status(
    ctx, invoice_id: int, status: str, payment_date: str | None, reference: str | None
):
    """Change an invoice's payment status.

    Examples:
        pathxpress invoice status 3 paid --reference TRX-991
        pathxpress invoice status 4 overdue
    """
    try:
        invoice = InvoiceService(ctx.obj["db"]).update_status(
            invoice_id,
            InvoiceStatus(status),
            payment_date=date_or_exit(ctx, payment_date, "payment date"),
            payment_reference=reference,
        )
        click.echo(f"Invoice {invoice.invoice_number} is now {invoice.status.value}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@invoice_group.command("adjust")
@click.argument("invoice_id", type=int)
@click.option("--subtotal", help="New subtotal")
@click.option("--taxes", help="New taxes")
@click.option("--amount-paid", help="New amount paid")
@click.option("--notes", help="Invoice notes")
@click.option("--reason", "adjustment_notes", help="Reason for the adjustment")
@click.option("--by", "adjusted_by", type=int, help="User ID making the adjustment")
@click.pass_context
def adjust_invoice(
    ctx,
    invoice_id: int,
    subtotal: str | None,
    taxes: str | None,
    amount_paid: str | None,
    notes: str | None,
    adjustment_notes: str | None,
    adjusted_by: int | None,
):
    """Correct an invoice's amounts; total and balance are recomputed.

    Examples:
        pathxpress invoice adjust 3 --subtotal 120 --reason "Credit for damaged parcel"
    """
    try:
        invoice = InvoiceService(ctx.obj["db"]).adjust_invoice(
            invoice_id,
            adjusted_by=adjusted_by,
            subtotal=amount_or_exit(ctx, subtotal, "subtotal"),
            taxes=amount_or_exit(ctx, taxes, "taxes"),
            amount_paid=amount_or_exit(ctx, amount_paid, "amount paid"),
            notes=notes,
            adjustment_notes=adjustment_notes,
        )
        click.echo(
            f"Adjusted invoice {invoice.invoice_number}: total {invoice.total}, "
            f"balance {invoice.balance}"
        )
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
