"""CLI commands for chatjournal."""

import asyncio
import math
import sys

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from chatjournal import __logo__, __version__
from chatjournal.builder import build_memory, build_provider
from chatjournal.config.loader import get_config_path, load_config
from chatjournal.errors import ChatJournalError

app = typer.Typer(
    name="chatjournal",
    help=f"{__logo__} chatjournal - Conversation memory with checkpoint compaction",
    no_args_is_help=True,
)

console = Console()

EXIT_COMMANDS = {"exit", "quit", "/exit", "/quit"}


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} chatjournal v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logs"),
):
    """chatjournal - Conversation memory with checkpoint compaction."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


# ============================================================================
# Inspection
# ============================================================================


@app.command()
def history(
    conversation_id: str = typer.Argument(..., help="Conversation ID"),
    page: int = typer.Option(0, "--page", "-p", min=0, help="Page number, newest first"),
    size: int = typer.Option(20, "--size", "-s", min=1, help="Messages per page"),
):
    """Show user and assistant messages of a conversation."""
    memory = build_memory(load_config())

    async def run():
        entries = await memory.entry_store.find_visible_entries(
            conversation_id, offset=page * size, limit=size
        )
        total = await memory.entry_store.count_visible_entries(conversation_id)
        return entries, total

    entries, total = asyncio.run(run())

    if not entries:
        console.print(f"No messages for conversation '{conversation_id}'.")
        return

    table = Table(title=f"Conversation {conversation_id}")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Role")
    table.add_column("Message")
    table.add_column("Tokens", justify="right")

    for entry in entries:
        role = "[green]user[/green]" if entry.role == "USER" else "[magenta]assistant[/magenta]"
        table.add_row(str(entry.index), role, entry.content, str(entry.tokens))

    console.print(table)
    pages = max(1, math.ceil(total / size))
    console.print(f"Page {page + 1} of {pages} ({total} messages)")


@app.command()
def usage(
    conversation_id: str = typer.Argument(..., help="Conversation ID"),
):
    """Show token usage against the checkpoint threshold."""
    memory = build_memory(load_config())
    stats = asyncio.run(memory.get_memory_usage(conversation_id))

    table = Table(title=f"Memory usage: {conversation_id}")
    table.add_column("Current tokens", justify="right")
    table.add_column("Max tokens", justify="right")
    table.add_column("Used", justify="right")
    table.add_column("Remaining", justify="right")

    used = stats.percentage_used()
    style = "red" if used > 100 else "green"
    table.add_row(
        str(stats.current_tokens),
        str(stats.max_tokens),
        f"[{style}]{used:.1f}%[/{style}]",
        str(stats.tokens_remaining()),
    )
    console.print(table)


# ============================================================================
# Maintenance
# ============================================================================


@app.command()
def compact(
    conversation_id: str = typer.Argument(..., help="Conversation ID"),
):
    """Checkpoint a conversation now, regardless of its token usage."""
    memory = build_memory(load_config())

    async def run():
        before = await memory.get_memory_usage(conversation_id)
        await memory.checkpointer.checkpoint(conversation_id)
        after = await memory.get_memory_usage(conversation_id)
        return before, after

    try:
        before, after = asyncio.run(run())
    except ChatJournalError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if after.current_tokens == before.current_tokens:
        console.print("Nothing to compact.")
    else:
        console.print(
            f"[green]✓[/green] Compacted {conversation_id}: "
            f"{before.current_tokens} → {after.current_tokens} tokens"
        )


@app.command()
def clear(
    conversation_id: str = typer.Argument(..., help="Conversation ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a conversation's messages and checkpoint."""
    if not yes and not typer.confirm(f"Delete conversation '{conversation_id}'?", default=False):
        raise typer.Exit()

    memory = build_memory(load_config())
    asyncio.run(memory.clear(conversation_id))
    console.print(f"[green]✓[/green] Cleared {conversation_id}")


# ============================================================================
# Chat
# ============================================================================


@app.command()
def chat(
    conversation_id: str = typer.Argument(..., help="Conversation ID"),
    message: str = typer.Option(None, "--message", "-m", help="Send one message and exit"),
):
    """Chat with the configured model, remembering the conversation."""
    config = load_config()
    provider = build_provider(config)
    memory = build_memory(config, provider=provider)

    async def turn(text: str) -> str | None:
        await memory.add(conversation_id, [{"role": "user", "content": text}])
        response = await provider.chat(messages=await memory.get(conversation_id))
        if response.is_error:
            console.print(f"[red]{response.content}[/red]")
            return None
        reply = response.content or ""
        await memory.add(conversation_id, [{"role": "assistant", "content": reply}])
        return reply

    async def run():
        try:
            if message is not None:
                reply = await turn(message)
                if reply is not None:
                    console.print(reply)
                return

            console.print(f"{__logo__} Chatting in '{conversation_id}' (type 'exit' to quit)\n")
            while True:
                try:
                    text = console.input("[bold blue]You:[/bold blue] ").strip()
                except (EOFError, KeyboardInterrupt):
                    break
                if not text:
                    continue
                if text.lower() in EXIT_COMMANDS:
                    break
                reply = await turn(text)
                if reply is not None:
                    console.print(f"[bold green]{__logo__}[/bold green] {reply}\n")
        finally:
            # Let in-flight checkpoints finish before the loop closes.
            await memory.scheduler.drain()

    try:
        asyncio.run(run())
    except ChatJournalError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


# ============================================================================
# Status
# ============================================================================


@app.command()
def status():
    """Show chatjournal configuration."""
    config_path = get_config_path()
    config = load_config()

    console.print(f"{__logo__} chatjournal Status\n")
    console.print(f"Config: {config_path} {'[green]✓[/green]' if config_path.exists() else '[dim]defaults[/dim]'}")
    console.print(f"Storage: {config.storage.backend} ({config.storage_path})")
    console.print(f"Tokenizer: {config.tokenizer.strategy}")
    console.print(f"Summarizer: {config.summarizer.model}")
    console.print(
        f"Checkpoint at: {config.journal.max_tokens} tokens, "
        f"keeping {config.journal.min_retained_entries} recent messages"
    )


if __name__ == "__main__":
    app()
