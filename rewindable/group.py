"""Transaction groups: one transaction across several objects."""

import logging
from typing import Any, Hashable, Optional, Tuple, Type

from .config import TransactionConfig
from .exceptions.transaction_error import TransactionError
from .threadsafe import ThreadSafeTransactionManager
from .transaction_manager import TransactionManager
from .transactional import manager_for

logger = logging.getLogger(__name__)


class TransactionGroup:
    """
    Manages a group of objects as one object for transaction purposes.

    Every operation is applied to the members in registration order. The
    first member that rejects an operation stops the fan-out; members before
    it have already applied the operation and are not rolled back.

    Used as a context manager, the group commits whatever is still open on
    its members when the block exits.
    """

    manager_class: Optional[Type[TransactionManager]] = None

    def __init__(self, *objects: Any, config: Optional[TransactionConfig] = None):
        self._objects = tuple(objects)
        self.managers: Tuple[TransactionManager, ...] = tuple(
            manager_for(obj, self.manager_class, config) for obj in objects
        )

    @property
    def objects(self) -> Tuple[Any, ...]:
        return self._objects

    def transaction_open(self, name: Optional[Hashable] = None) -> bool:
        """Check if the transaction is open on every member."""
        return bool(self.managers) and all(
            manager.is_open(name) for manager in self.managers
        )

    def start_transaction(self, name: Optional[Hashable] = None):
        self._fan_out("start", name)
        return self

    def rewind_transaction(self, name: Optional[Hashable] = None):
        self._fan_out("rewind", name)
        return self

    def abort_transaction(self, name: Optional[Hashable] = None):
        self._fan_out("abort", name)
        return self

    def commit_transaction(self, name: Optional[Hashable] = None):
        self._fan_out("commit", name)
        return self

    def clear(self) -> None:
        """Commit every level still open on the members and release them."""
        for manager in self.managers:
            while manager.stack.level > 0:
                manager.commit()
        self._objects = ()
        self.managers = ()

    def _fan_out(self, operation: str, name: Optional[Hashable]) -> None:
        for index, manager in enumerate(self.managers):
            try:
                getattr(manager, operation)(name)
            except TransactionError as e:
                if index > 0:
                    logger.warning(
                        "Group %s(%r) failed at member %d of %d; "
                        "earlier members keep the change: %s",
                        operation,
                        name,
                        index + 1,
                        len(self.managers),
                        e,
                    )
                raise

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.clear()
        return False


class ThreadSafeTransactionGroup(TransactionGroup):
    """TransactionGroup whose members use thread-safe managers."""

    manager_class = ThreadSafeTransactionManager
