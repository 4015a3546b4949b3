"""Terminal transport and command channel for the assistant process.

The Transport protocol is the raw send-text pipe; CommandChannel sits on top
of it and owns command formatting.
"""

from aidersync.terminal.channel import CommandChannel, format_command, format_path
from aidersync.terminal.launch import LaunchSpec
from aidersync.terminal.protocol import Transport
from aidersync.terminal.subprocess_transport import SubprocessTransport

__all__ = [
    "CommandChannel",
    "LaunchSpec",
    "SubprocessTransport",
    "Transport",
    "format_command",
    "format_path",
]
