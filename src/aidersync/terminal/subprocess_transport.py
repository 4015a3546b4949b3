"""Subprocess-backed transport: a local shell whose stdin is the command channel."""

from __future__ import annotations

import asyncio
import contextlib
import os
import signal
import sys

from aidersync.errors import SessionStartError, TransportClosedError
from aidersync.logging import TRACE, get_logger
from aidersync.terminal.launch import LaunchSpec
from aidersync.terminal.protocol import ExitCallback, OutputHandler

log = get_logger("terminal")


class SubprocessTransport:
    """Run the assistant inside a shell spawned with asyncio subprocess pipes.

    The startup command line replaces the shell (``exec`` on POSIX, ``/C`` for
    cmd.exe), so the user's PATH still applies and the process lifetime is the
    assistant's lifetime: once it exits, later lines cannot fall through to a
    shell prompt. An empty command line leaves the bare shell running. Output
    is streamed to handlers as it arrives; nothing waits for it.

    Note:
        Pipes rather than a PTY are used, so the assistant sees a non-interactive
        stdin. That is enough for line-oriented slash commands.
    """

    _DEFAULT_SHELLS = {
        "win32": ("cmd.exe", "/Q"),  # /Q disables echo
    }
    _FALLBACK_SHELL = ("/bin/sh",)

    def __init__(self) -> None:
        self._process: asyncio.subprocess.Process | None = None
        self._output_task: asyncio.Task[None] | None = None
        self._exit_task: asyncio.Task[None] | None = None
        self._handlers: list[OutputHandler] = []
        self._disposed = False

    @property
    def is_alive(self) -> bool:
        return (
            not self._disposed
            and self._process is not None
            and self._process.returncode is None
            and self._process.stdin is not None
            and not self._process.stdin.is_closing()
        )

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    def _shell_command(self, launch: LaunchSpec) -> list[str]:
        if launch.shell:
            shell = list(launch.shell)
        else:
            shell = list(self._DEFAULT_SHELLS.get(sys.platform, self._FALLBACK_SHELL))
        if launch.command_line and sys.platform == "win32":
            # cmd.exe has no exec
            shell += ["/C", launch.command_line]
        return shell

    @staticmethod
    def _startup_line(launch: LaunchSpec) -> str | None:
        if not launch.command_line or sys.platform == "win32":
            return None
        return f"exec {launch.command_line}"

    async def start(self, launch: LaunchSpec, on_exit: ExitCallback) -> None:
        shell_cmd = self._shell_command(launch)

        process_env = os.environ.copy()
        process_env.update(launch.env)
        process_env["PYTHONUNBUFFERED"] = "1"

        try:
            self._process = await asyncio.create_subprocess_exec(
                *shell_cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,  # Merge stderr into stdout
                cwd=launch.cwd,
                env=process_env,
            )
        except FileNotFoundError as e:
            raise SessionStartError(" ".join(shell_cmd), "shell not found") from e
        except PermissionError as e:
            raise SessionStartError(" ".join(shell_cmd), "permission denied") from e
        except OSError as e:
            raise SessionStartError(" ".join(shell_cmd), str(e)) from e

        log.info("Started shell pid=%s in %s", self._process.pid, launch.cwd)
        self._output_task = asyncio.create_task(self._stream_output())
        self._exit_task = asyncio.create_task(self._watch_exit(on_exit))

        startup = self._startup_line(launch)
        if startup is not None:
            self.send_text(startup)

    async def _stream_output(self) -> None:
        assert self._process is not None and self._process.stdout is not None
        stdout = self._process.stdout
        with contextlib.suppress(asyncio.CancelledError, ConnectionError):
            while True:
                chunk = await stdout.read(1024)
                if not chunk:
                    break
                text = chunk.decode("utf-8", errors="replace")
                log.log(TRACE, "<< %r", text)
                for handler in list(self._handlers):
                    try:
                        handler(text)
                    except Exception as e:
                        log.warning("Output handler error: %s", e)

    async def _watch_exit(self, on_exit: ExitCallback) -> None:
        assert self._process is not None
        returncode = await self._process.wait()
        if self._disposed:
            return
        log.info("Shell exited on its own (code=%s)", returncode)
        self._disposed = True
        try:
            on_exit(returncode)
        except Exception as e:
            log.error("Exit callback error: %s", e)

    def send_text(self, text: str, add_newline: bool = True) -> None:
        if not self.is_alive:
            raise TransportClosedError("terminal is not running")
        assert self._process is not None and self._process.stdin is not None
        payload = text + os.linesep if add_newline else text
        log.log(TRACE, ">> %r", payload)
        try:
            self._process.stdin.write(payload.encode("utf-8"))
        except (BrokenPipeError, ConnectionResetError) as e:
            raise TransportClosedError(str(e)) from e

    async def dispose(self) -> None:
        if self._disposed and self._process is None:
            return
        self._disposed = True
        process = self._process
        if process is None:
            return

        if process.stdin is not None:
            with contextlib.suppress(OSError, asyncio.TimeoutError):
                await asyncio.wait_for(process.stdin.drain(), timeout=1.0)
            process.stdin.close()

        if process.returncode is None:
            try:
                if sys.platform == "win32":
                    process.terminate()
                else:
                    process.send_signal(signal.SIGTERM)
                try:
                    await asyncio.wait_for(process.wait(), timeout=2.0)
                except asyncio.TimeoutError:
                    process.kill()
                    await process.wait()
            except ProcessLookupError:
                pass  # Already gone

        for task in (self._output_task, self._exit_task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._output_task = None
        self._exit_task = None
        self._process = None
        log.debug("Terminal disposed (code=%s)", process.returncode)

    def on_output(self, handler: OutputHandler) -> None:
        self._handlers.append(handler)

    def off_output(self, handler: OutputHandler) -> None:
        self._handlers = [h for h in self._handlers if h is not handler]
