"""Configuration for transaction managers."""

from dataclasses import dataclass, field
from typing import Optional

from .diagnostics import DiagnosticSink, DiagnosticTrace
from .snapshot_codec import DeepCopyCodec, Snapshotter


@dataclass
class TransactionConfig:
    """
    Settings injected into a TransactionManager at construction.

    Args:
        sink: Callable receiving one diagnostic line per operation.
            Defaults to None (no trace).
        debug_checkpoints: Also emit the repr of the current checkpoint
            after each state change. Defaults to False.
        codec: Snapshotter used to capture and restore state.
            Defaults to DeepCopyCodec.
    """

    sink: Optional[DiagnosticSink] = None
    debug_checkpoints: bool = False
    codec: Snapshotter = field(default_factory=DeepCopyCodec)

    def __post_init__(self):
        if self.sink is not None and not callable(self.sink):
            raise TypeError("the transaction debug sink must be callable")

    @classmethod
    def default(cls) -> "TransactionConfig":
        """Return a fresh configuration with all defaults."""
        return cls()

    def make_trace(self) -> DiagnosticTrace:
        return DiagnosticTrace(self.sink, self.debug_checkpoints)
