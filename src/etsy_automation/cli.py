"""Command-line interface for Etsy Automation."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from etsy_automation import __version__
from etsy_automation.exceptions import ConfigurationError, EtsyAutomationError
from etsy_automation.utils.config import Settings, load_settings
from etsy_automation.utils.logging import setup_logging


app = typer.Typer(
    name="etsy-automation",
    help="Browser automation for an Etsy seller account",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


# =============================================================================
# Helper Functions
# =============================================================================


def run_async(coro):
    """Run async coroutine in sync context."""
    try:
        return asyncio.run(coro)
    except EtsyAutomationError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e


def prepare(verbose: bool = False, headless: bool | None = None) -> Settings:
    """Load settings and configure logging for a command."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(code=2) from e

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_format=settings.log_json,
    )
    if headless is not None:
        settings.browser.headless = headless
    return settings


def ensure_logged_in(etsy) -> bool:
    if etsy.is_authenticated:
        return True
    console.print(
        "[yellow]Not logged in. Run 'etsy-automation login' first.[/yellow]"
    )
    return False


def display_conversations(conversations: list) -> None:
    """Display conversations in a table."""
    table = Table(title=f"Conversations: {len(conversations)}")
    table.add_column("ID", style="cyan")
    table.add_column("Customer", style="white")
    table.add_column("Preview", style="white", max_width=50)
    table.add_column("Unread", style="yellow")
    table.add_column("Quote", style="magenta")

    for convo in conversations:
        table.add_row(
            convo.id or "-",
            convo.customer_name,
            convo.preview_text[:50],
            "●" if convo.is_unread else "",
            "✓" if convo.needs_quote else "",
        )

    console.print(table)


def display_orders(orders: list) -> None:
    """Display orders in a table."""
    table = Table(title=f"Orders: {len(orders)}")
    table.add_column("Order", style="cyan")
    table.add_column("Buyer", style="white")
    table.add_column("Status", style="yellow")
    table.add_column("Total", style="green")
    table.add_column("Items", style="white", max_width=40)
    table.add_column("3D", style="magenta")

    for order in orders:
        items = ", ".join(f"{i.quantity}x {i.title}" for i in order.items)
        table.add_row(
            order.order_id or "-",
            order.buyer_name,
            order.status,
            order.total,
            items[:40],
            "✓" if order.is_3d_print else "",
        )

    console.print(table)


# =============================================================================
# Commands
# =============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold blue]etsy-automation[/bold blue] v{__version__}")


@app.command()
def login(
    email: str = typer.Option(None, "--email", "-e", envvar="ETSY_EMAIL", help="Etsy account email"),
    password: str = typer.Option(
        None, "--password", "-p", envvar="ETSY_PASSWORD", help="Etsy password", hide_input=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Login to Etsy and save the session (manual login if no credentials)."""
    settings = prepare(verbose, headless=False)

    async def _login():
        from etsy_automation.core.automation import EtsyAutomation
        from etsy_automation.models.records import Credentials

        credentials = Credentials(email, password) if email and password else None
        if credentials:
            console.print(f"[bold]Logging in as:[/bold] {email[:3]}***\n")
        else:
            console.print("[dim]No credentials given: log in in the browser window[/dim]\n")

        async with EtsyAutomation(settings) as etsy:
            if etsy.is_authenticated:
                console.print("[green]✓ Already logged in (session restored)[/green]")
                return

            if await etsy.login(credentials):
                console.print("[green]✓ Login successful![/green]")
                console.print(f"[dim]Shop: {etsy.auth.shop_identifier or 'unknown'}[/dim]")
                console.print(f"[dim]Session saved to: {settings.session_file}[/dim]")
            else:
                console.print("[red]✗ Login failed[/red]")

    run_async(_login())


@app.command()
def messages(
    unread: bool = typer.Option(False, "--unread", "-u", help="Only unread conversations"),
    headless: bool = typer.Option(True, "--headless/--no-headless", help="Run headless"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """List inbox conversations."""
    settings = prepare(verbose, headless)

    async def _messages():
        from etsy_automation.core.automation import EtsyAutomation

        async with EtsyAutomation(settings) as etsy:
            if not ensure_logged_in(etsy):
                return
            conversations = await etsy.get_messages(only_unread=unread)
            if conversations:
                display_conversations(conversations)
            else:
                console.print("[yellow]No conversations found[/yellow]")

    run_async(_messages())


@app.command()
def conversation(
    conversation_id: str = typer.Argument(..., help="Conversation ID"),
    headless: bool = typer.Option(True, "--headless/--no-headless", help="Run headless"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Show the messages of one conversation."""
    settings = prepare(verbose, headless)

    async def _conversation():
        from etsy_automation.core.automation import EtsyAutomation
        from etsy_automation.utils.inquiry import parse_quote_request

        async with EtsyAutomation(settings) as etsy:
            if not ensure_logged_in(etsy):
                return
            detail = await etsy.get_message_details(conversation_id)

            customer = detail.customer_info.name or "Unknown"
            console.print(f"[bold]Conversation {conversation_id}[/bold] with [cyan]{customer}[/cyan]")
            if detail.order_info.order_number:
                console.print(f"[dim]Order: {detail.order_info.order_number}[/dim]")
            console.print()

            for message in detail.messages:
                console.print(f"[cyan]{message.sender}[/cyan] [dim]{message.timestamp_raw}[/dim]")
                console.print(f"  {message.content}")
                for attachment in message.attachments:
                    console.print(f"  [blue]📎 {attachment.name}[/blue]")

                quote = parse_quote_request(message.content)
                if quote:
                    size = f"{quote.size.value}{quote.size.unit}" if quote.size else "-"
                    console.print(
                        f"  [magenta]Quote request:[/magenta] qty={quote.quantity} "
                        f"material={quote.material} size={size} urgent={quote.urgent}"
                    )
                console.print()

    run_async(_conversation())


@app.command()
def reply(
    conversation_id: str = typer.Argument(..., help="Conversation ID"),
    text: str = typer.Argument(..., help="Message text"),
    headless: bool = typer.Option(True, "--headless/--no-headless", help="Run headless"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Send a reply in a conversation."""
    settings = prepare(verbose, headless)

    async def _reply():
        from etsy_automation.core.automation import EtsyAutomation

        async with EtsyAutomation(settings) as etsy:
            if not ensure_logged_in(etsy):
                return
            await etsy.send_message(conversation_id, text)
            console.print("[green]✓ Message sent[/green]")

    run_async(_reply())


@app.command()
def orders(
    status: str = typer.Option("all", "--status", "-s", help='Exact status label, or "all"'),
    headless: bool = typer.Option(True, "--headless/--no-headless", help="Run headless"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """List sold orders."""
    settings = prepare(verbose, headless)

    async def _orders():
        from etsy_automation.core.automation import EtsyAutomation

        async with EtsyAutomation(settings) as etsy:
            if not ensure_logged_in(etsy):
                return
            found = await etsy.get_orders(status)
            if found:
                display_orders(found)
            else:
                console.print("[yellow]No orders found[/yellow]")

    run_async(_orders())


@app.command()
def ship(
    order_id: str = typer.Argument(..., help="Order ID"),
    tracking: str = typer.Option(None, "--tracking", "-t", help="Tracking number"),
    headless: bool = typer.Option(True, "--headless/--no-headless", help="Run headless"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Mark an order as shipped."""
    settings = prepare(verbose, headless)

    async def _ship():
        from etsy_automation.core.automation import EtsyAutomation

        async with EtsyAutomation(settings) as etsy:
            if not ensure_logged_in(etsy):
                return
            await etsy.mark_order_shipped(order_id, tracking)
            console.print(f"[green]✓ Order {order_id} marked as shipped[/green]")

    run_async(_ship())


@app.command()
def watch(
    message_interval: float = typer.Option(None, "--message-interval", help="Seconds between message polls"),
    order_interval: float = typer.Option(None, "--order-interval", help="Seconds between order polls"),
    headless: bool = typer.Option(True, "--headless/--no-headless", help="Run headless"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Poll messages and orders and print events until Ctrl+C."""
    settings = prepare(verbose, headless)

    async def _watch():
        from etsy_automation.core.automation import EtsyAutomation
        from etsy_automation.core.events import Event

        async with EtsyAutomation(settings) as etsy:
            if not ensure_logged_in(etsy):
                return

            etsy.on(
                Event.MESSAGES_UPDATED,
                lambda s: console.print(
                    f"[dim]messages: {s.total} total, {s.unread} unread, "
                    f"{s.quote_requests} quote requests[/dim]"
                ),
            )
            etsy.on(
                Event.ORDERS_UPDATED,
                lambda s: console.print(
                    f"[dim]orders: {s.total} total, {s.new} new, {s.print_orders} 3D print[/dim]"
                ),
            )
            etsy.on(Event.NEW_MESSAGES, display_conversations)
            etsy.on(Event.NEW_ORDERS, display_orders)

            etsy.start_message_polling(message_interval)
            etsy.start_order_polling(order_interval)
            console.print("[bold]Watching shop[/bold] [dim](Ctrl+C to stop)[/dim]\n")

            try:
                await asyncio.Event().wait()
            finally:
                etsy.stop_polling()

    try:
        run_async(_watch())
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped[/dim]")


@app.command()
def clear_session() -> None:
    """Delete the saved login session."""
    from etsy_automation.core.session import SessionStore

    settings = prepare()
    SessionStore(settings.session_file).clear()
    console.print("[green]✓ Session cleared[/green]")


if __name__ == "__main__":
    app()
