"""Command implementations."""

from pyparcel.commands.base import Command, CommandContext
from pyparcel.commands.publish import PublishCommand, handle_publish_command, publish

__all__ = [
    "Command",
    "CommandContext",
    "PublishCommand",
    "handle_publish_command",
    "publish",
]
