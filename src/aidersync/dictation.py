"""Push-to-talk dictation on top of the command channel.

Pressing the key arms voice mode (``/voice``). Releasing starts a short timer;
when it fires the confirm keystroke is sent and the toggle returns to idle.
Pressing again before the timer fires cancels the pending confirmation, so a
quick re-press keeps the recording going.
"""

from __future__ import annotations

from enum import Enum

from aidersync.logging import get_logger
from aidersync.sync.scheduler import Scheduler, TimerHandle
from aidersync.terminal.channel import CommandChannel

log = get_logger("dictation")

VOICE_COMMAND = "/voice"
DEFAULT_CONFIRM_DELAY = 0.5


class DictationState(Enum):
    IDLE = "idle"
    ARMED = "armed"


class DictationToggle:
    def __init__(
        self,
        channel: CommandChannel,
        scheduler: Scheduler,
        confirm_delay: float = DEFAULT_CONFIRM_DELAY,
    ) -> None:
        self._channel = channel
        self._scheduler = scheduler
        self.confirm_delay = confirm_delay
        self._state = DictationState.IDLE
        self._pending: TimerHandle | None = None

    @property
    def state(self) -> DictationState:
        return self._state

    @property
    def confirmation_pending(self) -> bool:
        return self._pending is not None

    def toggle(self, pressed: bool) -> None:
        if pressed:
            self.activate()
        else:
            self.deactivate()

    def activate(self) -> None:
        if self._state is DictationState.IDLE:
            if not self._channel.is_attached or not self._channel.send(VOICE_COMMAND):
                log.debug("No session, dictation stays idle")
                return
            self._state = DictationState.ARMED
            log.debug("Dictation armed")
        elif self._pending is not None:
            # Still speaking
            self._cancel_pending()

    def deactivate(self) -> None:
        if self._state is not DictationState.ARMED:
            return
        self._cancel_pending()
        self._pending = self._scheduler.call_later(self.confirm_delay, self._confirm)

    def cancel(self) -> None:
        """Drop any pending confirmation and return to idle without sending."""
        self._cancel_pending()
        self._state = DictationState.IDLE

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _confirm(self) -> None:
        self._pending = None
        self._state = DictationState.IDLE
        self._channel.send_enter()
        log.debug("Dictation confirmed")
