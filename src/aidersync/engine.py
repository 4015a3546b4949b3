"""The collaborator-facing engine.

``ReconciliationEngine`` wires one command channel, one session controller,
one reconciler and one dictation toggle together. There is no module-level
state: every engine is independent, which is what the tests rely on.

Typical use from an editor integration::

    engine = ReconciliationEngine(load_config(project_root=folder))
    await engine.open(start_dir=folder)
    engine.document_opened(EditorDocument("/proj/src/app.py"))
    ...
    await engine.close()
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable, Iterable
from typing import Any

from aidersync.config.loader import on_config_reload
from aidersync.config.schema import AiderConfig, Config
from aidersync.dictation import DictationToggle
from aidersync.ignore import IgnoreFilter, IgnoreList
from aidersync.logging import get_logger
from aidersync.paths import PathResolver
from aidersync.prompts import README_PROMPT, REFACTOR_TASK, snippet_prompt
from aidersync.session.controller import Session, SessionController, TransportFactory
from aidersync.sync.documents import EditorDocument, EditorView
from aidersync.sync.reconciler import FileSetReconciler, ReconcileResult
from aidersync.sync.scheduler import AsyncioScheduler, Debouncer, Scheduler
from aidersync.terminal.channel import CommandChannel
from aidersync.terminal.protocol import OutputHandler
from aidersync.terminal.subprocess_transport import SubprocessTransport

log = get_logger("engine")

CloseCallback = Callable[[Session], None]


def _as_document(document: EditorDocument | str) -> EditorDocument:
    if isinstance(document, EditorDocument):
        return document
    return EditorDocument(path=document)


class ReconciliationEngine:
    """Keeps an assistant session's file set in step with the editor.

    Args:
        config: Full configuration; defaults apply when None.
        transport_factory: Builds the transport for each session.
        resolver: Workspace root and membership rules.
        scheduler: Timer source for debouncing and dictation.
        start_dir: Where root resolution starts when the config has no
            working_directory (defaults to the process cwd).
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        transport_factory: TransportFactory = SubprocessTransport,
        resolver: PathResolver | None = None,
        scheduler: Scheduler | None = None,
        start_dir: str | None = None,
    ) -> None:
        self._config = config or Config()
        self._resolver = resolver or PathResolver()
        self._scheduler = scheduler or AsyncioScheduler()
        self._start_dir = start_dir

        self._channel = CommandChannel()
        self._controller = SessionController(self._channel, transport_factory, self._resolver)
        self._view = EditorView()
        self._reconciler = FileSetReconciler(
            self._channel,
            root=lambda: self._controller.root,
            documents=self._view.snapshot,
            patterns=self.ignore_patterns,
            resolver=self._resolver,
        )
        self._debouncer = Debouncer(
            self._scheduler, self._config.sync.debounce_ms / 1000, self._debounced_sync
        )
        self._dictation = DictationToggle(
            self._channel, self._scheduler, self._config.sync.dictation_delay_ms / 1000
        )

        self._close_callbacks: list[CloseCallback] = []
        self._output_handlers: list[OutputHandler] = []
        self._background: set[asyncio.Task[Any]] = set()
        self._controller.add_close_listener(self._on_session_closed)

    # -- properties ---------------------------------------------------------------

    @property
    def config(self) -> Config:
        return self._config

    @property
    def session(self) -> Session | None:
        return self._controller.session

    @property
    def root(self) -> str | None:
        """Workspace root of the active session."""
        return self._controller.root

    @property
    def known_files(self) -> frozenset[str]:
        return self._reconciler.known

    @property
    def documents(self) -> EditorView:
        return self._view

    @property
    def dictation(self) -> DictationToggle:
        return self._dictation

    def is_active(self) -> bool:
        return self._controller.is_active()

    # -- lifecycle ----------------------------------------------------------------

    async def open(self, config: AiderConfig | None = None, start_dir: str | None = None) -> Session:
        """Start (or restart) the session and add the editor's open files.

        Raises:
            ConfigurationError: Credentials, model, or directory missing.
            SessionStartError: The terminal could not be spawned.
        """
        if config is not None:
            self._config.aider = config
        if start_dir is not None:
            self._start_dir = start_dir

        session = await self._controller.start(self._config.aider, self._start_dir)

        transport = self._controller.transport
        if transport is not None:
            for handler in self._output_handlers:
                transport.on_output(handler)

        self._reconciler.reconcile()
        return session

    async def close(self) -> None:
        await self._controller.stop()

    async def __aenter__(self) -> ReconciliationEngine:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    def on_close(self, callback: CloseCallback) -> Callable[[], None]:
        """Register ``callback(session)`` for every session end, however caused."""
        self._close_callbacks.append(callback)

        def unregister() -> None:
            if callback in self._close_callbacks:
                self._close_callbacks.remove(callback)

        return unregister

    def _on_session_closed(self, session: Session, reason: str) -> None:
        self._debouncer.cancel()
        self._dictation.cancel()
        self._reconciler.reset()
        log.debug("Session %s closed (%s)", session.session_id, reason)

        for callback in list(self._close_callbacks):
            try:
                callback(session)
            except Exception as e:
                log.warning("Close callback error: %s", e)

    # -- explicit file operations -------------------------------------------------

    async def add_file(self, path: str) -> list[str]:
        return await self.add_files([path])

    async def add_files(self, paths: Iterable[str]) -> list[str]:
        """Add files now, opening a session first if none is active."""
        paths = list(paths)
        if not paths:
            return []
        if not self.is_active():
            await self.open()
        return self._reconciler.add(paths)

    def add_read_only_file(self, path: str) -> list[str]:
        return self.add_read_only_files([path])

    def add_read_only_files(self, paths: Iterable[str]) -> list[str]:
        return self._reconciler.add(paths, read_only=True)

    def drop_file(self, path: str) -> list[str]:
        return self.drop_files([path])

    def drop_files(self, paths: Iterable[str]) -> list[str]:
        return self._reconciler.drop(paths)

    def is_workspace_file(self, path: str) -> bool:
        root = self._controller.root
        return root is not None and self._resolver.is_workspace_file(path, root)

    # -- editor events --------------------------------------------------------------

    def document_opened(self, document: EditorDocument | str) -> None:
        if self._view.opened(_as_document(document)):
            self._schedule_sync()

    def document_closed(self, document: EditorDocument | str) -> None:
        if self._view.closed(_as_document(document)):
            self._schedule_sync()

    def set_documents(self, documents: Iterable[EditorDocument | str]) -> None:
        """Replace the editor snapshot wholesale and schedule a sync."""
        self._view.replace(_as_document(d) for d in documents)
        self._schedule_sync()

    def _schedule_sync(self) -> None:
        if self.is_active():
            self._debouncer.trigger()

    def _debounced_sync(self) -> None:
        if self.is_active():
            self._reconciler.reconcile()

    def sync_now(self) -> ReconcileResult | None:
        """Run a reconciliation pass immediately, absorbing any pending one."""
        self._debouncer.cancel()
        if not self.is_active():
            log.info("Sync requested with no active session")
            return None
        return self._reconciler.reconcile()

    # -- prompts and dictation ------------------------------------------------------

    def send_command(self, text: str) -> bool:
        """Send free text (a prompt or slash command) as one line."""
        return self._channel.send(text)

    def toggle_dictation(self, pressed: bool) -> None:
        self._dictation.toggle(pressed)

    def refactor_snippet(self, path: str, line: int, snippet: str) -> bool:
        return self.modify_snippet(path, line, snippet, REFACTOR_TASK)

    def modify_snippet(self, path: str, line: int, snippet: str, task: str) -> bool:
        """Ask the assistant to change a selected snippet.

        Returns False (nothing sent) without a session, selection, or task.
        """
        root = self._controller.root
        if root is None or not snippet or not task.strip():
            return False
        display = self._resolver.to_display_path(path, root)
        return self._channel.send(snippet_prompt(task.strip(), display, line, snippet))

    def generate_readme(self) -> bool:
        return self._channel.send(README_PROMPT)

    # -- ignore patterns ------------------------------------------------------------

    def _project_root(self) -> str:
        root = self._controller.root
        if root is not None:
            return root
        start = self._config.aider.working_directory or self._start_dir or os.getcwd()
        return self._resolver.resolve_root(start)

    def ignore_list(self) -> IgnoreList:
        return IgnoreList(self._project_root())

    def ignore_patterns(self) -> list[str]:
        """Configured patterns followed by the project's persisted list."""
        return [*self._config.aider.ignore_files, *self.ignore_list().load()]

    def add_ignore_pattern(self, pattern: str) -> bool:
        """Persist a pattern. Returns False if it does not compile (still stored)."""
        self.ignore_list().append(pattern)
        self._schedule_sync()
        return bool(IgnoreFilter.compile([pattern]))

    def remove_ignore_pattern(self, pattern: str) -> None:
        self.ignore_list().remove(pattern)
        self._schedule_sync()

    # -- configuration --------------------------------------------------------------

    async def update_config(self, config: Config) -> bool:
        """Adopt new configuration; restart the session if launch settings changed.

        Returns True when a running session was restarted.
        """
        previous = self._config.aider.launch_signature()
        self._config = config
        self._debouncer.delay = config.sync.debounce_ms / 1000
        self._dictation.confirm_delay = config.sync.dictation_delay_ms / 1000

        if not self.is_active() or config.aider.launch_signature() == previous:
            return False

        log.info("Launch settings changed, restarting session")
        await self.open()
        return True

    def watch_config(self, adjust: Callable[[Config], None] | None = None) -> Callable[[], None]:
        """Follow config reloads (see ConfigWatcher). Returns an unregister function.

        ``adjust`` is applied to each reloaded config before it is adopted, so
        overrides that live outside the config files survive a reload.
        """

        def on_reload(config: Config) -> None:
            if adjust is not None:
                adjust(config)
            task = asyncio.ensure_future(self.update_config(config))
            self._background.add(task)
            task.add_done_callback(self._background.discard)
            task.add_done_callback(_log_task_error)

        return on_config_reload(on_reload)

    # -- output and diagnostics -----------------------------------------------------

    def on_output(self, handler: OutputHandler) -> None:
        self._output_handlers.append(handler)
        transport = self._controller.transport
        if transport is not None:
            transport.on_output(handler)

    def off_output(self, handler: OutputHandler) -> None:
        self._output_handlers = [h for h in self._output_handlers if h is not handler]
        transport = self._controller.transport
        if transport is not None:
            transport.off_output(handler)

    def debug_info(self) -> dict[str, Any]:
        session = self._controller.session
        return {
            "active": self.is_active(),
            "session_id": session.session_id if session else None,
            "state": session.state.value if session else None,
            "working_directory": self.root,
            "config_working_directory": self._config.aider.working_directory,
            "command_line": session.startup_command_line if session else None,
            "known_files": sorted(self._reconciler.known),
            "editor_documents": sorted(d.path for d in self._view.snapshot()),
            "dictation": self._dictation.state.value,
        }


def _log_task_error(task: asyncio.Task[Any]) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        log.error("Config update failed: %s", error)
