"""Transaction management for in-memory object checkpoints."""

from typing import Any, Hashable, Optional

from .checkpoint_stack import CheckpointStack
from .config import TransactionConfig
from .exceptions.transaction_error import (
    CannotCrossBlockBoundary,
    DuplicateTransactionName,
    NoOpenTransaction,
    TransactionAborted,
    TransactionCommitted,
    UnknownTransactionName,
)
from .models.checkpoint import Checkpoint
from .snapshot_codec import (
    SKIP_TRANSACTION_ATTRS,
    get_items,
    get_state,
    replace_items,
    set_state,
)


class TransactionManager:
    """
    Manages nested, optionally named transactions on one mutable object.

    Each ``start`` captures the whole state of the target. ``rewind`` puts a
    level's captured state back without closing it, ``abort`` puts it back and
    closes the level, ``commit`` closes the level and keeps the current state.
    Restoring copies the captured attributes onto the live target, so outside
    references to the target stay valid. A target may define
    ``_post_transaction_rewind()`` to repair back-references after a restore.
    """

    def __init__(self, target: Any, config: Optional[TransactionConfig] = None):
        self.target = target
        self.config = config or TransactionConfig.default()
        self.codec = self.config.codec
        self.trace = self.config.make_trace()
        self.stack = CheckpointStack()
        self._exclusions = set()
        self._started = False

    @property
    def level(self) -> int:
        """Number of currently open transactions."""
        return self.stack.level

    @property
    def exclusions(self):
        """
        Attribute names never captured or restored.

        A mutable set until the first transaction starts; a frozenset after.
        """
        return self._exclusions

    def is_open(self, name: Optional[Hashable] = None) -> bool:
        """Check if any transaction, or the named one, is open."""
        if name is None:
            has_transaction = self.stack.level > 0
        else:
            has_transaction = self.stack.has_name(name)

        state = "open" if has_transaction else "closed"
        self._debug(">", f"Transaction [{state}]")
        return has_transaction

    def name(self) -> Optional[Hashable]:
        """Return the name of the innermost open transaction."""
        if self.stack.level == 0:
            raise NoOpenTransaction("no transaction open.")

        name = self.stack.names[-1]
        self._debug("|", f"Transaction Name({name!r})")
        return name

    def start(self, name: Optional[Hashable] = None) -> Checkpoint:
        """Open a new transaction level, optionally named."""
        if self.stack.has_name(name):
            raise DuplicateTransactionName("named transactions must be unique.", name)

        if not self._started:
            self._exclusions = frozenset(self._exclusions)
            self._started = True

        data = self.codec.capture(self.target, self._skip_attrs())
        checkpoint = self.stack.push(name, data)

        self._debug(">", f"Start Transaction({name!r})")
        self.trace.emit_checkpoint(self.stack.level, checkpoint)
        return checkpoint

    def rewind(self, name: Optional[Hashable] = None) -> "TransactionManager":
        """
        Restore the state of a transaction without closing it.

        With a name, every level above the named one is restored and closed
        first; the named level stays open.
        """
        self._require_open("rewind")
        self._require_name(name, "rewind")
        self._check_block(name, "rewind")

        if name is not None:
            while self.stack.names[-1] != name:
                self._restore(self.stack.top)
                self._debug("<", f"Rewind Transaction({name!r})")
                self.stack.pop()

        self._restore(self.stack.top)
        self._debug("|", f"Rewind Transaction({name!r})")
        self.trace.emit_checkpoint(self.stack.level, self.stack.top)
        return self

    def abort(self, name: Optional[Hashable] = None) -> "TransactionManager":
        """
        Restore the state of a transaction and close it.

        With a name, the named level and every level above it are closed and
        the state from before the named level started is restored.
        """
        self._require_open("abort")
        self._require_name(name, "abort")
        block = self._check_block(name, "abort")
        if block is not None:
            raise TransactionAborted(block)

        if name is None:
            self._abort_top(name)
        else:
            while self.stack.has_name(name):
                self._abort_top(name)
        return self

    def commit(self, name: Optional[Hashable] = None) -> "TransactionManager":
        """
        Close a transaction, keeping the current state.

        With a name, the named level and every level above it are closed.
        """
        self._require_open("commit")
        self._require_name(name, "commit")
        block = self._check_block(name, "commit")
        if block is not None:
            raise TransactionCommitted(block)

        if name is None:
            self._commit_top(name)
        else:
            while self.stack.has_name(name):
                self._commit_top(name)
        return self

    def _abort_top(self, name: Optional[Hashable]) -> None:
        self._restore(self.stack.top)
        self._debug("<", f"Abort Transaction({name!r})")
        self.stack.pop()
        self.trace.emit_checkpoint(self.stack.level, self.stack.top)

    def _commit_top(self, name: Optional[Hashable]) -> None:
        self._debug("<", f"Commit Transaction({name!r})")
        self.stack.pop()
        self.trace.emit_checkpoint(self.stack.level, self.stack.top)

    def _restore(self, checkpoint: Checkpoint) -> None:
        """Copy a checkpoint's state onto the live target."""
        restored = self.codec.restore(checkpoint.data)
        skip = self._skip_attrs()

        replace_items(self.target, get_items(restored))
        set_state(self.target, get_state(restored, skip), skip)

        hook = getattr(self.target, "_post_transaction_rewind", None)
        if callable(hook):
            hook()

    def _require_open(self, operation: str) -> None:
        if self.stack.level == 0:
            raise NoOpenTransaction(
                f"cannot {operation}; there is no current transaction."
            )

    def _require_name(self, name: Optional[Hashable], operation: str) -> None:
        if name is not None and not self.stack.has_name(name):
            raise UnknownTransactionName(
                f"cannot {operation} nonexistent transaction {name!r}.", name
            )

    def _check_block(self, name: Optional[Hashable], operation: str) -> Any:
        """
        Validate the target level against the active block marker.

        Returns the active block when abort/commit targets the block's own
        level, so the caller can signal it instead of acting.
        """
        marker = self.stack.block_marker
        if marker is None:
            return None

        block_level, block = marker
        if name is None:
            target_level = self.stack.level
        else:
            target_level = self.stack.position(name)

        if target_level < block_level:
            raise CannotCrossBlockBoundary(
                f"cannot {operation} a transaction started before the execution block."
            )
        if target_level == block_level and operation != "rewind":
            return block
        return None

    def _skip_attrs(self) -> frozenset:
        return SKIP_TRANSACTION_ATTRS | frozenset(self._exclusions)

    def _debug(self, marker: str, message: str) -> None:
        self.trace.emit(marker, self.stack.level, message)

    def __repr__(self):
        return (
            f"<{type(self).__name__} target={type(self.target).__name__} "
            f"level={self.stack.level} names={self.stack.names!r}>"
        )
