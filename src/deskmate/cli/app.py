"""Main CLI application using Typer."""
import asyncio
import logging
import signal
from contextlib import suppress

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..chat import NO_SPEECH_MESSAGE
from ..llm import ChatMessage, ProviderKind
from ..prompts import STYLE_LABELS, STYLES, resolve_style
from ..settings import AppSettings, load_settings, update_settings
from ..speech import SUPPORTED_LANGUAGES, Interim, SynthesisError, TranscriptionError, TranscriptionGateway
from ..store import ChatHistory
from .providers import (
    configure_logging,
    get_assistant,
    get_gateway,
    get_router,
    get_store,
    get_synthesizer,
)

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="deskmate",
    help="Desktop chat assistant with local commands, local/cloud models and voice input",
    no_args_is_help=True,
    add_completion=True,
)
config_app = typer.Typer(help="Show or change settings", no_args_is_help=True)
history_app = typer.Typer(help="Show or clear the chat history", no_args_is_help=True)
app.add_typer(config_app, name="config")
app.add_typer(history_app, name="history")

# Console for rich output
console = Console()
logger = logging.getLogger(__name__)


def stop_on_interrupt(gateway: TranscriptionGateway, pending: set[asyncio.Task]) -> asyncio.Task:
    """SIGINT handler for `listen`: finish the session in a tracked task.

    The task stays in `pending` until it completes; a failure to stop is logged.
    """
    task = asyncio.get_running_loop().create_task(gateway.stop_listening())
    pending.add(task)

    def finished(done: asyncio.Task) -> None:
        pending.discard(done)
        if not done.cancelled() and done.exception() is not None:
            logger.warning("Could not stop listening: %s", done.exception())

    task.add_done_callback(finished)
    return task


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level: debug, info, warning or error (default: $DESKMATE_LOG_LEVEL or warning)"
    ),
):
    # The TUI shows logs in its own panel
    if ctx.invoked_subcommand != "tui":
        configure_logging(log_level)


def print_message(message: ChatMessage) -> None:
    """Print one chat message."""
    content = escape(message.content)
    if message.role == "user":
        console.print(f"[bold yellow]You:[/bold yellow] {content}")
    elif message.role == "system":
        console.print(f"[dim]{content}[/dim]")
    else:
        console.print(f"[bold green]Deskmate:[/bold green] {content}")


def _apply_overrides(
    settings: AppSettings,
    provider: str | None,
    model: str | None,
    style: str | None,
) -> AppSettings:
    settings = settings.model_copy()
    if provider:
        settings.provider = provider
    if model:
        if settings.provider == ProviderKind.CLOUD.value:
            settings.gemini_model = model
        else:
            settings.ollama_model = model
    if style:
        settings.style = style
    return settings


@app.command()
def ask(
    text: str = typer.Argument(..., help="Message or command, e.g. 'open example.com' or '2+3*4'"),
    provider: str | None = typer.Option(
        None,
        "--provider",
        "-p",
        help="Model backend: local (ollama) or cloud (gemini)"
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Model id for the selected backend"
    ),
    style: str | None = typer.Option(
        None,
        "--style",
        "-s",
        help=f"Assistant style: {', '.join(STYLES)}"
    ),
    no_history: bool = typer.Option(
        False,
        "--no-history",
        help="Do not read or save the chat history"
    ),
):
    """Send one message through the chat flow."""
    async def _ask():
        store = get_store()
        assistant = get_assistant()

        try:
            await store.connect()
            settings = _apply_overrides(await load_settings(store), provider, model, style)
            history = ChatHistory(store)
            previous = [] if no_history else await history.load()

            new_messages = await assistant.submit(text, previous, settings.to_provider_config())
            for message in new_messages[1:]:
                print_message(message)

            if not no_history:
                await history.extend(new_messages)

        except Exception as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            raise typer.Exit(code=1)
        finally:
            await assistant.router.close()
            await store.disconnect()

    asyncio.run(_ask())


@app.command()
def chat():
    """Interactive chat in the terminal."""
    async def _chat():
        store = get_store()
        assistant = get_assistant()

        try:
            await store.connect()
            settings = await load_settings(store)
            history = ChatHistory(store)
            messages = await history.load()

            console.print("[bold cyan]Deskmate Chat[/bold cyan]")
            console.print(
                f"[dim]{settings.provider} backend, {STYLE_LABELS[settings.style]} style. "
                "Type 'exit', 'quit', or 'q' to leave[/dim]\n"
            )

            while True:
                try:
                    user_input = console.input("[bold yellow]You:[/bold yellow] ")

                    if not user_input.strip():
                        continue

                    if user_input.strip().lower() in ('exit', 'quit', 'q'):
                        console.print("[dim]Goodbye![/dim]")
                        break

                    with console.status("[dim]Thinking...[/dim]"):
                        new_messages = await assistant.submit(
                            user_input, messages, settings.to_provider_config()
                        )

                    for message in new_messages[1:]:
                        print_message(message)
                    console.print()

                    messages = await history.extend(new_messages)

                except KeyboardInterrupt:
                    console.print("\n[dim]Goodbye![/dim]")
                    break
                except EOFError:
                    console.print("\n[dim]Goodbye![/dim]")
                    break

        except Exception as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            raise typer.Exit(code=1)
        finally:
            await assistant.router.close()
            await store.disconnect()

    asyncio.run(_chat())


@app.command(name="tui")
def tui_command(
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Show log panel with level: debug (all), info, warning, or error"
    ),
    in_memory: bool = typer.Option(
        False,
        "--in-memory",
        help="Keep settings and history for this session only"
    ),
):
    """Launch the interactive TUI."""
    async def _tui():
        from ..ui import run_textual_tui

        store = get_store(in_memory=in_memory)
        assistant = get_assistant()

        try:
            await store.connect()
            await run_textual_tui(
                assistant=assistant,
                store=store,
                gateway=get_gateway(),
                synthesizer=get_synthesizer(),
                log_level=log_level,
            )
        finally:
            await assistant.router.close()
            await store.disconnect()
            console.print("\n[dim]Goodbye![/dim]")

    with suppress(KeyboardInterrupt):
        asyncio.run(_tui())


@app.command()
def status():
    """Check the local model service and cloud credential."""
    async def _status():
        store = get_store()
        router = get_router()

        try:
            await store.connect()
            settings = await load_settings(store)

            local = await router.status(ProviderKind.LOCAL)
            if local.running:
                console.print("[green]+[/green] Ollama: RUNNING")
                table = Table(show_header=False, box=None)
                table.add_column("Model", style="bold cyan")
                table.add_column("Selected")
                for name in local.models:
                    table.add_row(name, "*" if name == settings.ollama_model else "")
                console.print(table)
            else:
                console.print("[yellow]![/yellow] Ollama: NOT RUNNING (start it with: ollama serve)")

            if settings.gemini_api_key:
                console.print("[green]+[/green] Gemini API key: SET (settings)")
            elif (await router.status(ProviderKind.CLOUD)).running:
                console.print("[green]+[/green] Gemini API key: SET (environment)")
            else:
                console.print("[yellow]![/yellow] Gemini API key: NOT SET")

            console.print(f"[dim]Active backend: {settings.provider}[/dim]")

        except Exception as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            raise typer.Exit(code=1)
        finally:
            await router.close()
            await store.disconnect()

    asyncio.run(_status())


@app.command()
def styles():
    """List the assistant styles."""
    table = Table(show_header=True)
    table.add_column("Id", style="bold cyan")
    table.add_column("Name")
    table.add_column("System prompt", style="dim")

    for style_id in STYLES:
        table.add_row(style_id, STYLE_LABELS[style_id], resolve_style(style_id))

    console.print(table)


@config_app.command("show")
def config_show():
    """Show the current settings."""
    async def _show():
        store = get_store()

        try:
            await store.connect()
            settings = await load_settings(store)

            table = Table(show_header=False, box=None)
            table.add_column("Setting", style="bold cyan")
            table.add_column("Value")
            for name, value in settings.masked().items():
                table.add_row(name, str(value))
            console.print(table)

        finally:
            await store.disconnect()

    asyncio.run(_show())


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Setting name, e.g. provider or style"),
    value: str = typer.Argument(..., help="New value"),
):
    """Change one setting."""
    async def _set():
        store = get_store()

        try:
            await store.connect()
            settings = await update_settings(store, **{key: value})
            shown = settings.masked()[key]
            console.print(f"[green]{key} = {escape(str(shown))}[/green]")

        except (KeyError, ValueError) as e:
            message = e.args[0] if e.args else str(e)
            console.print(f"[red]Error: {escape(str(message))}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

    asyncio.run(_set())


@history_app.command("show")
def history_show(
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        help="Number of recent messages to show"
    ),
):
    """Show recent chat messages."""
    async def _show():
        store = get_store()

        try:
            await store.connect()
            messages = await ChatHistory(store).recent(limit)

            if not messages:
                console.print("[dim]No chat history.[/dim]")
                return

            for message in messages:
                console.print(f"[dim]{message.timestamp:%Y-%m-%d %H:%M}[/dim] ", end="")
                print_message(message)

        finally:
            await store.disconnect()

    asyncio.run(_show())


@history_app.command("clear")
def history_clear(
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompt"
    ),
):
    """Delete the chat history."""
    async def _clear():
        if not yes:
            confirm = typer.confirm("Delete the whole chat history?")
            if not confirm:
                console.print("[dim]Aborted.[/dim]")
                return

        store = get_store()

        try:
            await store.connect()
            await ChatHistory(store).clear()
            console.print("[green]Chat history cleared.[/green]")
        finally:
            await store.disconnect()

    asyncio.run(_clear())


@app.command()
def listen(
    backend: str | None = typer.Option(
        None,
        "--backend",
        "-b",
        help="Speech backend: browser, native or openai (default: from settings)"
    ),
    language: str | None = typer.Option(
        None,
        "--language",
        help=f"Language tag, e.g. {', '.join(code for code, _ in SUPPORTED_LANGUAGES[:4])}"
    ),
):
    """Transcribe one utterance. Press Ctrl+C to finish speaking."""
    async def _listen():
        store = get_store()
        gateway = get_gateway()

        try:
            await store.connect()
            settings = await load_settings(store)
        finally:
            await store.disconnect()

        def on_event(event) -> None:
            if isinstance(event, Interim):
                console.print(f"[dim]{escape(event.text)}[/dim]")

        loop = asyncio.get_running_loop()
        stopping: set[asyncio.Task] = set()
        with suppress(NotImplementedError):
            loop.add_signal_handler(signal.SIGINT, stop_on_interrupt, gateway, stopping)

        console.print("[dim]Listening... (Ctrl+C to stop)[/dim]")
        try:
            text = await gateway.start_listening(
                language or settings.speech_language,
                backend or settings.stt_provider,
                on_event=on_event,
            )
        except TranscriptionError as e:
            console.print(f"[red]Error: {escape(e.user_message)}[/red]")
            raise typer.Exit(code=1)
        finally:
            with suppress(NotImplementedError):
                loop.remove_signal_handler(signal.SIGINT)
            if stopping:
                await asyncio.wait(stopping)

        if text:
            console.print(text)
        else:
            console.print(f"[yellow]{NO_SPEECH_MESSAGE}[/yellow]")

    asyncio.run(_listen())


@app.command()
def say(
    text: str = typer.Argument(..., help="Text to speak"),
):
    """Speak text with the configured voice settings."""
    async def _say():
        store = get_store()

        try:
            await store.connect()
            settings = await load_settings(store)
        finally:
            await store.disconnect()

        try:
            await get_synthesizer().speak(text, settings.speech_rate, settings.speech_pitch)
        except SynthesisError as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            raise typer.Exit(code=1)

    asyncio.run(_say())


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
