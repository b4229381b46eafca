"""User-facing status output."""

from interaction.status import ConsoleStatusSink, PreviewStatusSink, StatusSink

__all__ = ["ConsoleStatusSink", "PreviewStatusSink", "StatusSink"]
