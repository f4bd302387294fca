"""Main CLI application using Typer."""
import asyncio
import logging
import os
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from ..animation import TypingAnimator
from ..config import MAX_MESSAGE_LENGTH
from ..models import ToolContext
from ..session import LoggingAnalyticsRecorder, Notifier
from ..sponsor import SponsorRecord
from .logging_setup import setup_logging
from .providers import build_session, get_history_store, get_llm, get_sponsor_inventory

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Create Typer app
app = typer.Typer(
    name="toolchat",
    help="Chat with AI directory tools: sponsored interstitials, bounded context and typed replies",
    no_args_is_help=True,
    add_completion=True,
)
sponsors_app = typer.Typer(help="Manage the sponsor inventory", no_args_is_help=True)
history_app = typer.Typer(help="Manage saved conversations", no_args_is_help=True)
app.add_typer(sponsors_app, name="sponsors")
app.add_typer(history_app, name="history")

# Console for rich output
console = Console()


def _slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "tool"


def _make_tool(
    name: str,
    prompt: str | None,
    prompt_file: Path | None,
    tool_id: str | None,
    welcome: str | None,
    suggestions: bool,
) -> ToolContext:
    if prompt_file is not None:
        prompt = prompt_file.read_text(encoding="utf-8")
    if prompt is None:
        console.print("[red]Error: provide --prompt or --prompt-file[/red]")
        raise typer.Exit(code=1)
    return ToolContext(
        tool_id=tool_id or _slugify(name),
        tool_name=name,
        tool_prompt=prompt,
        suggestions_enabled=suggestions,
        welcome_message=welcome,
    )


def _log_level(option: str | None) -> str:
    return option or os.getenv("TOOLCHAT_LOG_LEVEL", "WARNING")


async def _no_pause(_delay: float) -> None:
    return None


@app.command()
def chat(
    name: str = typer.Option(..., "--name", "-n", help="Display name of the tool"),
    prompt: str | None = typer.Option(None, "--prompt", "-p", help="Tool instructions"),
    prompt_file: Path | None = typer.Option(
        None,
        "--prompt-file",
        exists=True,
        dir_okay=False,
        help="Read tool instructions from a file"
    ),
    tool_id: str | None = typer.Option(None, "--tool-id", help="Directory id (default: slug of name)"),
    welcome: str | None = typer.Option(None, "--welcome", help="Custom welcome message"),
    suggestions: bool = typer.Option(
        True,
        "--suggestions/--no-suggestions",
        help="Offer follow-up suggestions"
    ),
    sponsors: bool = typer.Option(
        True,
        "--sponsors/--no-sponsors",
        help="Show sponsored interstitials from the inventory"
    ),
    authenticated: bool = typer.Option(
        False,
        "--authenticated",
        help="Treat the visitor as signed in (turn count survives resets)"
    ),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="debug, info, warning or error"),
):
    """Open the interactive chat surface for one tool."""
    tool = _make_tool(name, prompt, prompt_file, tool_id, welcome, suggestions)
    setup_logging(
        _log_level(log_level),
        log_file=os.getenv("TOOLCHAT_LOG_FILE", "toolchat.log"),
        console=False,
    )

    async def _chat():
        from ..ui import run_chat_app

        llm = get_llm(console)
        inventory = get_sponsor_inventory() if sponsors else None
        history = get_history_store()

        try:
            if inventory is not None:
                try:
                    await inventory.connect()
                except Exception as e:
                    logger.warning("Sponsor inventory unavailable, sponsors disabled: %s", e)
                    inventory = None
            await history.connect()

            session = build_session(tool, llm, inventory, authenticated=authenticated)
            await run_chat_app(session, history)
        finally:
            if inventory is not None:
                await inventory.disconnect()
            await history.disconnect()
            if llm is not None:
                await llm.close()
            console.print("\n[dim]Goodbye![/dim]")

    try:
        asyncio.run(_chat())
    except KeyboardInterrupt:
        pass


@app.command()
def ask(
    text: str = typer.Argument(..., help="Message to send"),
    name: str = typer.Option(..., "--name", "-n", help="Display name of the tool"),
    prompt: str | None = typer.Option(None, "--prompt", "-p", help="Tool instructions"),
    prompt_file: Path | None = typer.Option(
        None,
        "--prompt-file",
        exists=True,
        dir_okay=False,
        help="Read tool instructions from a file"
    ),
    tool_id: str | None = typer.Option(None, "--tool-id", help="Directory id (default: slug of name)"),
    suggestions: bool = typer.Option(
        True,
        "--suggestions/--no-suggestions",
        help="Print follow-up suggestions"
    ),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="debug, info, warning or error"),
):
    """Send a single message and print the reply."""
    tool = _make_tool(name, prompt, prompt_file, tool_id, None, suggestions)
    setup_logging(_log_level(log_level), log_file=os.getenv("TOOLCHAT_LOG_FILE"), console=True)

    async def _ask() -> int:
        llm = get_llm(console)
        notifier = Notifier(analytics=LoggingAnalyticsRecorder(level=logging.DEBUG))
        session = build_session(
            tool,
            llm,
            animator=TypingAnimator(sleep=_no_pause),
            notifier=notifier,
        )
        notices = []
        session.add_error_listener(notices.append)

        try:
            session.open()
            with console.status("[dim]Thinking...[/dim]"):
                accepted = await session.send(text)
            session.close()
            await notifier.drain()
        finally:
            if llm is not None:
                await llm.close()

        if not accepted:
            if notices:
                console.print(f"[red]{notices[-1].message}[/red]")
            else:
                console.print(f"[red]Message must contain text and be at most {MAX_MESSAGE_LENGTH} characters[/red]")
            return 1
        if notices:
            notice = notices[-1]
            console.print(Panel(notice.message, title=notice.title, border_style="red"))
            return 1

        reply = session.messages[-1]
        console.print(Panel(Markdown(reply.content), title=tool.tool_name, border_style="green"))
        if session.suggestions:
            console.print("[dim]Try next:[/dim]")
            for suggestion in session.suggestions:
                console.print(f"  [cyan]•[/cyan] {suggestion}")
        return 0

    exit_code = asyncio.run(_ask())
    if exit_code:
        raise typer.Exit(code=exit_code)


@sponsors_app.command("list")
def sponsors_list():
    """List sponsor records, newest first."""
    async def _list():
        inventory = get_sponsor_inventory()
        try:
            await inventory.connect()
            records = await inventory.list_records()
        finally:
            await inventory.disconnect()

        if not records:
            console.print("[dim]No sponsor records.[/dim]")
            return

        now = datetime.now(timezone.utc)
        table = Table(title="Sponsor inventory", show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("Title")
        table.add_column("Link")
        table.add_column("Window")
        table.add_column("Live", justify="center")

        for record in records:
            window = f"{record.start_date:%Y-%m-%d} → {record.end_date:%Y-%m-%d}"
            live = "[green]yes[/green]" if record.covers(now) else "[dim]no[/dim]"
            table.add_row(record.id[:8], record.title, record.link, window, live)

        console.print(table)

    asyncio.run(_list())


@sponsors_app.command("add")
def sponsors_add(
    title: str = typer.Argument(..., help="Sponsor headline"),
    link: str = typer.Argument(..., help="Click-through URL"),
    description: str = typer.Option("", "--description", "-d", help="Body text"),
    link_text: str = typer.Option("Learn more", "--link-text", help="Button label"),
    image_url: str = typer.Option("", "--image-url", help="Image shown with the sponsor"),
    days: int = typer.Option(30, "--days", min=1, help="Days the record stays live"),
    start: datetime | None = typer.Option(
        None,
        "--start",
        formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"],
        help="Start of the live window in UTC (default: now)"
    ),
    inactive: bool = typer.Option(False, "--inactive", help="Store the record switched off"),
):
    """Add a sponsor record to the inventory."""
    start_date = start or datetime.now(timezone.utc)
    if start_date.tzinfo is None:
        start_date = start_date.replace(tzinfo=timezone.utc)
    record = SponsorRecord(
        title=title,
        description=description,
        image_url=image_url,
        link=link,
        link_text=link_text,
        is_active=not inactive,
        start_date=start_date,
        end_date=start_date + timedelta(days=days),
    )

    async def _add():
        inventory = get_sponsor_inventory()
        try:
            await inventory.connect()
            await inventory.add_record(record)
        finally:
            await inventory.disconnect()

    asyncio.run(_add())
    console.print(f"[green]Added sponsor {record.id}[/green]")


@history_app.command("show")
def history_show(tool_id: str = typer.Argument(..., help="Tool whose conversation to print")):
    """Print a saved conversation."""
    async def _show():
        store = get_history_store()
        try:
            await store.connect()
            return await store.load(tool_id)
        finally:
            await store.disconnect()

    transcript = asyncio.run(_show())
    if transcript is None:
        console.print(f"[dim]No saved conversation for {tool_id}.[/dim]")
        return

    for entry in transcript.messages:
        style = "yellow" if entry.role == "user" else "green"
        console.print(f"[bold {style}]{entry.role}:[/bold {style}] {entry.content}")
    console.print(f"\n[dim]{transcript.user_turn_count} visitor turns[/dim]")


@history_app.command("clear")
def history_clear(
    tool_id: str = typer.Argument(..., help="Tool whose conversation to forget"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
):
    """Forget the saved conversation for a tool."""
    if not yes:
        confirm = typer.confirm(f"Clear the saved conversation for {tool_id}?")
        if not confirm:
            console.print("[dim]Aborted.[/dim]")
            return

    async def _clear():
        store = get_history_store()
        try:
            await store.connect()
            await store.clear(tool_id)
        finally:
            await store.disconnect()

    asyncio.run(_clear())
    console.print(f"[green]Cleared conversation for {tool_id}[/green]")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
