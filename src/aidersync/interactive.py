"""Interactive REPL standing in for an editor.

Slash commands simulate editor actions (opening documents, explicit
add/drop, dictation); any other line is relayed to the assistant as a prompt.
"""

from __future__ import annotations

import asyncio
import os
import shlex
from collections.abc import Awaitable, Callable
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import FileHistory
from rich.console import Console
from rich.table import Table

from aidersync.config.schema import Config
from aidersync.dictation import DictationState
from aidersync.engine import ReconciliationEngine
from aidersync.errors import AiderSyncError
from aidersync.session.providers import model_display_name

console = Console()

Handler = Callable[[list[str]], Awaitable[None]]


class InteractiveRepl:
    """Prompt loop driving one ReconciliationEngine."""

    def __init__(
        self,
        config: Config,
        start_dir: str,
        history_file: Path | None = None,
        engine: ReconciliationEngine | None = None,
    ) -> None:
        self.config = config
        self.start_dir = start_dir
        self.engine = engine or ReconciliationEngine(config, start_dir=start_dir)
        self.engine.on_output(self._print_output)
        self.engine.on_close(lambda session: console.print(
            f"[yellow]Session {session.session_id} closed.[/yellow]"
        ))
        self._running = False
        self._history_file = history_file
        self._prompt: PromptSession[str] | None = None

        self._handlers: dict[str, Handler] = {
            "/help": self._cmd_help,
            "/status": self._cmd_status,
            "/open": self._cmd_open,
            "/close": self._cmd_close,
            "/add": self._cmd_add,
            "/drop": self._cmd_drop,
            "/read-only": self._cmd_read_only,
            "/visit": self._cmd_visit,
            "/leave": self._cmd_leave,
            "/sync": self._cmd_sync,
            "/ignore": self._cmd_ignore,
            "/unignore": self._cmd_unignore,
            "/voice": self._cmd_voice,
            "/readme": self._cmd_readme,
            "/raw": self._cmd_raw,
            "/quit": self._cmd_quit,
        }

    @staticmethod
    def _print_output(text: str) -> None:
        console.out(text, end="", highlight=False)

    def _resolve(self, path: str) -> str:
        return os.path.abspath(os.path.join(self.start_dir, os.path.expanduser(path)))

    @property
    def prompt(self) -> PromptSession[str]:
        # Created on first use so handle() works without a terminal
        if self._prompt is None:
            history = FileHistory(str(self._history_file)) if self._history_file else None
            self._prompt = PromptSession(
                history=history,
                auto_suggest=AutoSuggestFromHistory(),
            )
        return self._prompt

    async def run(self, open_session: bool = True) -> None:
        """Run the REPL until /quit or EOF."""
        self._running = True
        prompt = self.prompt
        console.print("[bold]aidersync[/bold] - type [bold]/help[/bold] for commands.\n")

        if open_session:
            # A bad key or model is reported, then the REPL stays up for /open
            try:
                await self._cmd_open([])
            except AiderSyncError as e:
                console.print(f"[red]{e}[/red]")

        try:
            while self._running:
                try:
                    line = await asyncio.get_event_loop().run_in_executor(
                        None,
                        lambda: prompt.prompt("aider> "),
                    )
                except KeyboardInterrupt:
                    continue
                except EOFError:
                    break

                await self.handle(line)
        finally:
            self._running = False
            await self.engine.close()

    async def handle(self, line: str) -> None:
        """Dispatch one input line."""
        line = line.strip()
        if not line:
            return

        if not line.startswith("/"):
            if not self.engine.send_command(line):
                console.print("[dim]No session. Use /open first.[/dim]")
            return

        try:
            parts = shlex.split(line)
        except ValueError as e:
            console.print(f"[red]Cannot parse command: {e}[/red]")
            return

        handler = self._handlers.get(parts[0].lower())
        if handler is None:
            console.print(f"[red]Unknown command: {parts[0]}[/red]")
            console.print("Use [bold]/raw[/bold] to pass a slash command to aider.")
            return

        try:
            await handler(parts[1:])
        except AiderSyncError as e:
            console.print(f"[red]{e}[/red]")

    async def _cmd_help(self, args: list[str]) -> None:
        table = Table(title="Commands")
        table.add_column("Command", style="bold")
        table.add_column("Description")
        for name, description in [
            ("/open", "Start (or restart) the aider session"),
            ("/close", "Close the aider session"),
            ("/add <path...>", "Add files to aider now"),
            ("/drop <path...>", "Drop files from aider now"),
            ("/read-only <path...>", "Add files as read-only"),
            ("/visit <path...>", "Simulate the editor opening files"),
            ("/leave <path...>", "Simulate the editor closing files"),
            ("/sync", "Reconcile open files with aider now"),
            ("/ignore [pattern]", "List or add ignore patterns"),
            ("/unignore <pattern>", "Remove an ignore pattern"),
            ("/voice", "Start dictation; /voice again to confirm"),
            ("/readme", "Ask aider to generate a README"),
            ("/raw <text>", "Send text to aider verbatim (one line)"),
            ("/status", "Show session and file state"),
            ("/quit", "Close the session and exit"),
        ]:
            table.add_row(name, description)
        console.print(table)

    async def _cmd_status(self, args: list[str]) -> None:
        info = self.engine.debug_info()
        console.print(f"Model: {model_display_name(self.engine.config.aider.model)}")
        for key, value in info.items():
            if isinstance(value, list):
                console.print(f"{key}:")
                for item in value:
                    console.print(f"  {item}")
            else:
                console.print(f"{key}: {value}")

    async def _cmd_open(self, args: list[str]) -> None:
        session = await self.engine.open()
        console.print(
            f"[green]Session {session.session_id}[/green] in {session.working_directory}"
        )

    async def _cmd_close(self, args: list[str]) -> None:
        if not self.engine.is_active():
            console.print("[dim]Aider is not running.[/dim]")
            return
        await self.engine.close()

    async def _cmd_add(self, args: list[str]) -> None:
        added = await self.engine.add_files(self._resolve(p) for p in args)
        console.print(f"Added {len(added)} file(s).")

    async def _cmd_drop(self, args: list[str]) -> None:
        dropped = self.engine.drop_files(self._resolve(p) for p in args)
        console.print(f"Dropped {len(dropped)} file(s).")

    async def _cmd_read_only(self, args: list[str]) -> None:
        added = self.engine.add_read_only_files(self._resolve(p) for p in args)
        console.print(f"Added {len(added)} read-only file(s).")

    async def _cmd_visit(self, args: list[str]) -> None:
        for path in args:
            self.engine.document_opened(self._resolve(path))

    async def _cmd_leave(self, args: list[str]) -> None:
        for path in args:
            self.engine.document_closed(self._resolve(path))

    async def _cmd_sync(self, args: list[str]) -> None:
        result = self.engine.sync_now()
        if result is None:
            console.print("[dim]Aider is not running.[/dim]")
            return
        console.print(f"+{len(result.added)} -{len(result.dropped)} (ignored {len(result.ignored)})")

    async def _cmd_ignore(self, args: list[str]) -> None:
        if not args:
            for pattern in self.engine.ignore_patterns():
                console.print(f"  {pattern}")
            return
        for pattern in args:
            if not self.engine.add_ignore_pattern(pattern):
                console.print(f"[yellow]Stored, but {pattern!r} is not a valid regex[/yellow]")

    async def _cmd_unignore(self, args: list[str]) -> None:
        for pattern in args:
            self.engine.remove_ignore_pattern(pattern)

    async def _cmd_voice(self, args: list[str]) -> None:
        # Terminal input has no key-up event: first /voice presses, the next releases
        if self.engine.dictation.state is DictationState.IDLE:
            self.engine.toggle_dictation(True)
            console.print("Recording. Type [bold]/voice[/bold] again to finish.")
        else:
            self.engine.toggle_dictation(False)

    async def _cmd_readme(self, args: list[str]) -> None:
        if self.engine.generate_readme():
            console.print("README request sent to aider.")

    async def _cmd_raw(self, args: list[str]) -> None:
        self.engine.send_command(" ".join(args))

    async def _cmd_quit(self, args: list[str]) -> None:
        self._running = False
