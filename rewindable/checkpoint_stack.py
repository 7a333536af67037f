"""Per-object stack of transaction checkpoints."""

from typing import Any, Hashable, List, Optional, Tuple

from .exceptions.transaction_error import NoOpenTransaction
from .models.checkpoint import Checkpoint


class CheckpointStack:
    """
    Ordered checkpoints, names and block markers for one object.

    The newest checkpoint is ``top``; each checkpoint chains to the one opened
    before it. ``names`` holds one entry per open level, so the level is
    always ``len(names)`` and ``top`` is None exactly when the level is 0.
    """

    def __init__(self):
        self.top: Optional[Checkpoint] = None
        self.names: List[Optional[Hashable]] = []
        self.markers: List[Tuple[int, Any]] = []

    @property
    def level(self) -> int:
        return len(self.names)

    def push(self, name: Optional[Hashable], data: Any) -> Checkpoint:
        """Open a new level holding data."""
        checkpoint = Checkpoint(
            level=self.level + 1, name=name, data=data, previous=self.top
        )
        self.top = checkpoint
        self.names.append(name)
        return checkpoint

    def pop(self) -> Checkpoint:
        """Close the top level and return its checkpoint."""
        if self.top is None:
            raise NoOpenTransaction("no transaction open.")
        checkpoint = self.top
        self.top = checkpoint.previous
        self.names.pop()
        return checkpoint

    def has_name(self, name: Hashable) -> bool:
        return name is not None and name in self.names

    def position(self, name: Hashable) -> int:
        """Return the 1-based level at which name was opened."""
        return self.names.index(name) + 1

    def enter_block(self, block: Any) -> int:
        """Record the current level as the marker of block and return it."""
        marker = self.level
        self.markers.append((marker, block))
        return marker

    def leave_block(self, block: Any) -> None:
        for index in range(len(self.markers) - 1, -1, -1):
            if self.markers[index][1] is block:
                del self.markers[index]
                return

    @property
    def block_marker(self) -> Optional[Tuple[int, Any]]:
        """The innermost active (level, block) pair, if any."""
        return self.markers[-1] if self.markers else None
