#!/usr/bin/env python
# Console UI utilities
import asyncio
import os
import sys
import threading
from datetime import datetime
from typing import Dict, List, Any, Optional, Awaitable, Tuple
from rich.console import Console
from rich.prompt import Prompt, Confirm, IntPrompt
from rich.panel import Panel
from rich.text import Text
from rich.table import Table

# Initialize Rich console
console = Console()


def clear_screen():
    """Clear the terminal screen"""
    os.system('cls' if os.name == 'nt' else 'clear')


def show_title(title: str, subtitle: Optional[str] = None, style="bold cyan"):
    """Display a title panel"""
    clear_screen()
    console.print(Panel(Text(title, style=style), expand=False))

    if subtitle:
        console.print(f"\n{subtitle}\n")


def create_menu(title: str, options: List[Tuple[str, str]], subtitle: Optional[str] = None):
    """Display a numbered menu and return the selected option key"""
    show_title(title, subtitle)

    for i, (key, description) in enumerate(options, 1):
        console.print(f"[cyan]{i}.[/cyan] {description}")

    console.print(f"[red]0.[/red] Exit")

    while True:
        choice = IntPrompt.ask("Enter your choice", default=0)

        if choice == 0:
            return None
        elif 1 <= choice <= len(options):
            return options[choice-1][0]
        else:
            console.print("[yellow]Invalid choice. Please try again.[/yellow]")


async def display_loading(message: str, coro: Awaitable):
    """Display a loading spinner while awaiting a coroutine"""
    with console.status(f"[bold green]{message}[/bold green]"):
        result = await coro
    return result


def show_error(message: str, retry_hint: Optional[str] = None):
    """Display an error message, optionally with how to retry"""
    console.print(f"[bold red]Error:[/bold red] {message}")
    if retry_hint:
        console.print(f"[dim]{retry_hint}[/dim]")


def show_success(message: str):
    console.print(f"[bold green]Success:[/bold green] {message}")


def show_warning(message: str):
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def show_info(message: str):
    console.print(f"[bold blue]Info:[/bold blue] {message}")


def prompt_input(field_name: str, description: str, default: str = "", password: bool = False) -> str:
    """Prompt for user input with consistent formatting"""
    console.print(f"[bold]{description}[/bold]")
    return Prompt.ask(field_name, password=password, default=default)


def confirm_action(prompt: str, default: bool = False) -> bool:
    """Ask for confirmation before performing an action"""
    return Confirm.ask(prompt, default=default)


def format_timestamp(value: Optional[str]) -> str:
    """Render an ISO timestamp from the API as local HH:MM"""
    if not value:
        return ""
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).astimezone().strftime("%H:%M")
    except ValueError:
        return value


def conversation_title(conversation: Dict[str, Any]) -> str:
    if conversation.get("is_self"):
        return "Notes to self"
    name = f"{conversation.get('first_name') or ''} {conversation.get('last_name') or ''}".strip()
    return name or conversation.get("email") or f"User {conversation.get('other_user_id')}"


def display_conversations(conversations: List[Dict[str, Any]], current_user_id: Optional[int]):
    """Display the conversation list as a numbered table"""
    table = Table(title="Conversations")
    table.add_column("#", style="cyan")
    table.add_column("With", style="bold")
    table.add_column("Last message")
    table.add_column("At", style="dim")
    table.add_column("Unread", style="magenta")

    for i, conversation in enumerate(conversations, 1):
        preview = conversation.get("last_message_content") or ""
        if conversation.get("last_message_sender_id") == current_user_id and not conversation.get("is_self"):
            preview = f"You: {preview}"
        if len(preview) > 50:
            preview = preview[:47] + "..."

        unread = conversation.get("unread_count") or 0
        table.add_row(
            str(i),
            conversation_title(conversation),
            preview,
            format_timestamp(conversation.get("last_message_at")),
            str(unread) if unread else ""
        )

    console.print(table)


def print_message(message: Dict[str, Any], current_user_id: Optional[int]):
    """Print one chat message"""
    is_self = message.get("sender_id") == current_user_id
    name_style = "blue italic" if is_self else "green"
    sender = "You" if is_self else (
        f"{message.get('first_name') or ''} {message.get('last_name') or ''}".strip() or "Unknown"
    )
    console.print(
        f"[{name_style}]{sender}[/{name_style}] "
        f"[dim]({format_timestamp(message.get('created_at'))})[/dim]: ",
        end=""
    )
    # Content is user text; keep rich markup out of it
    console.print(Text(message.get("content") or ""))


class KeyReader:
    """
    Reads the user's input on a background thread.

    On a POSIX terminal keys are read one at a time in cbreak mode, so every
    keystroke is reported as ("key", ch) and a completed line as
    ("line", text). Elsewhere whole lines are read and only ("line", text)
    is reported.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop or asyncio.get_running_loop()
        self.queue: asyncio.Queue = asyncio.Queue()
        self._stop = threading.Event()
        self._saved_attrs = None
        self._thread = None
        self.char_mode = os.name == "posix" and sys.stdin.isatty()

    def start(self):
        if self.char_mode:
            import termios
            import tty

            self._saved_attrs = termios.tcgetattr(sys.stdin.fileno())
            tty.setcbreak(sys.stdin.fileno())

        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self):
        self._stop.set()
        if self._saved_attrs is not None:
            import termios

            termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None

    def _put(self, kind: str, value: str):
        self.loop.call_soon_threadsafe(self.queue.put_nowait, (kind, value))

    def _run(self):
        if self.char_mode:
            self._read_keys()
        else:
            self._read_lines()

    def _read_lines(self):
        while not self._stop.is_set():
            try:
                line = input()
            except EOFError:
                self._put("line", "/quit")
                return
            self._put("line", line)

    def _read_keys(self):
        buffer = []
        while not self._stop.is_set():
            ch = sys.stdin.read(1)
            if not ch:
                self._put("line", "/quit")
                return
            if self._stop.is_set():
                return

            if ch in ("\n", "\r"):
                sys.stdout.write("\n")
                sys.stdout.flush()
                self._put("line", "".join(buffer))
                buffer = []
            elif ch in ("\x7f", "\b"):
                if buffer:
                    buffer.pop()
                    sys.stdout.write("\b \b")
                    sys.stdout.flush()
            elif ch.isprintable():
                buffer.append(ch)
                sys.stdout.write(ch)
                sys.stdout.flush()
                self._put("key", ch)
