"""Textual command handlers for the storehouse operator."""

from .storage_commands import COMMANDS, process_command

__all__ = ["COMMANDS", "process_command"]
