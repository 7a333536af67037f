"""Block-scoped transactions with automatic commit."""

import logging
from typing import Any, Callable, Hashable, List, Optional, Tuple

from .exceptions.transaction_error import (
    BlockSignal,
    EmptyBlockTransaction,
    TransactionAborted,
    TransactionCommitted,
)
from .models.checkpoint import Checkpoint
from .models.transaction import BlockOutcome, BlockState
from .transaction_manager import TransactionManager
from .transactional import manager_for

logger = logging.getLogger(__name__)


class TransactionBlock:
    """
    Context manager running a code block inside one transaction per object.

    On entry a transaction (optionally named) is started on every object and
    its level is recorded as that object's block marker. Leaving the block
    normally commits every level opened at or above the marker. Calling
    ``abort()``/``commit()`` on a participant for the block's own level, or
    on the block itself, ends the block early for all participants. An
    unrelated exception aborts the block's levels and propagates.

    Example:
        with TransactionBlock(cart) as tx:
            cart.items.append("milk")
            if out_of_stock:
                tx.abort_transaction()   # leaves the block, cart unchanged
    """

    def __init__(self, *objects: Any, name: Optional[Hashable] = None):
        if not objects:
            raise EmptyBlockTransaction(
                "cannot start a block transaction with no objects."
            )
        self.objects = objects
        self.name = name
        self.managers = [manager_for(obj) for obj in objects]
        self.state = BlockState.RUNNING
        self._entered: List[Tuple[TransactionManager, int]] = []

    @property
    def handles(self) -> Tuple[Any, ...]:
        return self.objects

    def __enter__(self):
        try:
            for manager in self.managers:
                manager.start(self.name)
                marker = manager.stack.enter_block(self)
                self._entered.append((manager, marker))
        except BaseException:
            self._unwind(commit=False)
            raise

        if len(self.objects) == 1:
            return self.objects[0]
        return self.objects

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self._unwind(commit=True)
            return False

        if isinstance(exc, BlockSignal):
            self._unwind(commit=isinstance(exc, TransactionCommitted))
            return exc.block is self

        logger.debug(
            "Aborting block transaction %r after %s", self.name, exc_type.__name__
        )
        self._unwind(commit=False)
        return False

    def abort(self) -> None:
        """Leave the block, discarding its changes on every object."""
        raise TransactionAborted(self)

    def commit(self) -> None:
        """Leave the block, keeping its changes on every object."""
        raise TransactionCommitted(self)

    def _unwind(self, commit: bool) -> None:
        self.state = BlockState.COMMITTING if commit else BlockState.ABORTING
        for manager in self.managers:
            manager.stack.leave_block(self)
        for manager, marker in reversed(self._entered):
            while manager.stack.level >= marker:
                if commit:
                    manager.commit()
                else:
                    manager.abort()
        self._entered = []
        self.state = BlockState.DONE


def run_block(
    *objects: Any,
    body: Callable[..., Optional[BlockOutcome]],
    name: Optional[Hashable] = None,
) -> None:
    """
    Run body inside a block transaction over objects.

    body receives the objects as positional arguments. It may return
    BlockOutcome.ABORT or BlockOutcome.COMMIT to end the block explicitly;
    any other return value commits the block normally.
    """
    block = TransactionBlock(*objects, name=name)
    with block:
        outcome = body(*block.handles)
        if outcome is BlockOutcome.ABORT:
            block.abort()
        elif outcome is BlockOutcome.COMMIT:
            block.commit()


def start(*objects: Any, name: Optional[Hashable] = None) -> List[Checkpoint]:
    """Start a transaction, optionally named, on each of objects."""
    if not objects:
        raise EmptyBlockTransaction("cannot start a transaction with no objects.")
    return [manager_for(obj).start(name) for obj in objects]
