"""Diagnostic sinks for the per-operation transaction trace."""

import logging
from typing import Callable, Optional, TextIO

DiagnosticSink = Callable[[str], None]

logger = logging.getLogger(__name__)


def logging_sink(
    target_logger: Optional[logging.Logger] = None, level: int = logging.DEBUG
) -> DiagnosticSink:
    """Route trace lines to a logger (this module's logger by default)."""
    target_logger = target_logger or logger

    def sink(line: str) -> None:
        target_logger.log(level, line)

    return sink


def stream_sink(stream: TextIO) -> DiagnosticSink:
    """Write trace lines, one per line, to a writable text stream."""
    if not hasattr(stream, "write"):
        raise TypeError("the transaction debug stream must provide write()")

    def sink(line: str) -> None:
        stream.write(line + "\n")

    return sink


class DiagnosticTrace:
    """Formats trace lines indented by nesting depth and hands them to a sink."""

    def __init__(self, sink: Optional[DiagnosticSink] = None, checkpoints: bool = False):
        self.sink = sink
        self.checkpoints = checkpoints

    @property
    def enabled(self) -> bool:
        return self.sink is not None

    def emit(self, marker: str, level: int, message: str) -> None:
        """Emit one line prefixed by marker repeated once per open level."""
        if self.sink is None:
            return
        if level > 0:
            self.sink(f"{marker * level} {message}")
        else:
            self.sink(message)

    def emit_checkpoint(self, level: int, checkpoint) -> None:
        if self.sink is None or not self.checkpoints:
            return
        self.emit("|", level, repr(checkpoint))
