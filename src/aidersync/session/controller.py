"""Lifecycle of the single assistant session.

A session goes NOT_STARTED -> ACTIVE -> CLOSED. Starting a new session while
one is active tears the old one down first; start and stop are serialized so
no state from a previous session leaks into the next one.
"""

from __future__ import annotations

import asyncio
import os
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from functools import partial

from aidersync.config.schema import AiderConfig
from aidersync.errors import ConfigurationError
from aidersync.logging import get_logger
from aidersync.paths import PathResolver
from aidersync.session.providers import (
    ProviderConfig,
    model_flag,
    resolve_provider,
    validate_provider,
)
from aidersync.terminal.channel import CommandChannel
from aidersync.terminal.launch import LaunchSpec
from aidersync.terminal.protocol import Transport
from aidersync.terminal.subprocess_transport import SubprocessTransport

log = get_logger("session")

TransportFactory = Callable[[], Transport]
CloseListener = Callable[["Session", str], None]


class SessionState(Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass
class Session:
    """One assistant process and the settings it was launched with."""

    session_id: str
    working_directory: str  # The resolved workspace root
    startup_command_line: str
    environment: dict[str, str] = field(default_factory=dict, repr=False)
    state: SessionState = SessionState.NOT_STARTED
    started_at: float = field(default_factory=time.time)

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE


def build_command_line(config: AiderConfig, provider: ProviderConfig) -> str:
    """Assemble the startup command line.

    Order: base command, model flag (absent for custom), startup arguments,
    then feature flags. A feature flag already present anywhere in the line
    built so far is not appended again.
    """
    line = config.command_line.strip()
    flag = model_flag(provider)
    if flag:
        line = f"{line} {flag}"
    if config.startup_args.strip():
        line = f"{line} {config.startup_args.strip()}"
    for feature in config.feature_flags:
        feature = feature.strip()
        if feature and feature not in line:
            line = f"{line} {feature}"
    return line.strip()


class SessionController:
    """Starts, stops and watches the assistant process.

    The CommandChannel passed in is long-lived; the controller attaches the
    live transport to it while a session is active and detaches it on close.
    """

    def __init__(
        self,
        channel: CommandChannel,
        transport_factory: TransportFactory = SubprocessTransport,
        resolver: PathResolver | None = None,
    ) -> None:
        self._channel = channel
        self._transport_factory = transport_factory
        self._resolver = resolver or PathResolver()
        self._session: Session | None = None
        self._transport: Transport | None = None
        self._lock = asyncio.Lock()
        self._close_listeners: list[CloseListener] = []
        self._reaper: asyncio.Task[None] | None = None

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def transport(self) -> Transport | None:
        return self._transport

    @property
    def root(self) -> str | None:
        return self._session.working_directory if self.is_active() else None

    def is_active(self) -> bool:
        return self._session is not None and self._session.is_active

    def add_close_listener(self, listener: CloseListener) -> Callable[[], None]:
        """Call ``listener(session, reason)`` whenever a session closes.

        ``reason`` is "stopped" for stop()/restart and "exited" when the
        process ended on its own.
        """
        self._close_listeners.append(listener)

        def unregister() -> None:
            if listener in self._close_listeners:
                self._close_listeners.remove(listener)

        return unregister

    def prepare(self, config: AiderConfig, start_dir: str | None = None) -> tuple[LaunchSpec, Session]:
        """Validate configuration and build the launch description.

        Raises:
            ConfigurationError: Nothing is spawned and no session is kept.
        """
        directory = config.working_directory or start_dir or os.getcwd()
        if not os.path.isdir(directory):
            raise ConfigurationError(
                f"Working directory {directory!r} does not exist",
                setting="aider.working_directory",
            )
        root = self._resolver.resolve_root(directory)

        provider = resolve_provider(config, project_root=root)
        env = dict(config.env)
        env.update(validate_provider(provider))
        command_line = build_command_line(config, provider)

        launch = LaunchSpec(cwd=root, command_line=command_line, env=env)
        session = Session(
            session_id=uuid.uuid4().hex[:8],
            working_directory=root,
            startup_command_line=command_line,
            environment=env,
        )
        return launch, session

    async def start(self, config: AiderConfig, start_dir: str | None = None) -> Session:
        """Start a session, replacing any active one.

        Raises:
            ConfigurationError: Missing credential, model, or directory.
            SessionStartError: The shell could not be spawned.
        """
        async with self._lock:
            # Validate before touching the running session
            launch, session = self.prepare(config, start_dir)

            if self.is_active():
                await self._stop_locked()

            transport = self._transport_factory()
            await transport.start(launch, partial(self._handle_exit, session.session_id))

            session.state = SessionState.ACTIVE
            self._session = session
            self._transport = transport
            self._channel.attach(transport, session.working_directory)

            log.info(
                "Session %s started in %s: %s",
                session.session_id,
                session.working_directory,
                launch.command_line,
            )
            return session

    async def stop(self) -> None:
        """Close the active session. No-op when nothing is active."""
        async with self._lock:
            await self._stop_locked()

    async def _stop_locked(self) -> None:
        session = self._session
        if session is None or not session.is_active:
            return

        transport = self._transport
        self._channel.send("/exit")
        self._close(session, "stopped")

        if transport is not None:
            await transport.dispose()
        log.info("Session %s stopped", session.session_id)

    def _close(self, session: Session, reason: str) -> None:
        session.state = SessionState.CLOSED
        self._channel.detach()
        self._transport = None

        for listener in list(self._close_listeners):
            try:
                listener(session, reason)
            except Exception as e:
                log.warning("Close listener error: %s", e)

    def _handle_exit(self, session_id: str, returncode: int | None) -> None:
        """Out-of-band termination: same cleanup as stop(), minus /exit."""
        session = self._session
        if session is None or session.session_id != session_id or not session.is_active:
            return

        log.info("Session %s ended (code=%s)", session_id, returncode)
        transport = self._transport
        self._close(session, "exited")

        if transport is not None:
            # Reap pipes and reader tasks of the dead process
            self._reaper = asyncio.ensure_future(transport.dispose())
