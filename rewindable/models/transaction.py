"""Transaction-related enums."""

from enum import Enum


class BlockOutcome(Enum):
    """Value a block body may return to decide how the block ends."""

    CONTINUE = "continue"
    ABORT = "abort"
    COMMIT = "commit"


class BlockState(Enum):
    """Enumeration of the states a block transaction goes through."""

    RUNNING = "running"
    ABORTING = "aborting"
    COMMITTING = "committing"
    DONE = "done"
