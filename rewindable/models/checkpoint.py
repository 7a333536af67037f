"""Checkpoint data model for rewind functionality."""

import time
from dataclasses import dataclass, field
from typing import Any, Hashable, Optional


@dataclass(frozen=True)
class Checkpoint:
    """Represents the captured state of an object at one transaction level."""

    level: int
    name: Optional[Hashable]
    data: Any = field(repr=False)
    previous: Optional["Checkpoint"] = field(default=None, repr=False)
    timestamp: float = field(default_factory=time.time)
