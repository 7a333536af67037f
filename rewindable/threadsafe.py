"""Fail-fast thread-safe transaction management."""

import functools
import logging
import threading
from typing import Any, Optional

from .config import TransactionConfig
from .exceptions.transaction_error import LockUnavailable
from .transaction_manager import TransactionManager
from .transactional import Transactional

logger = logging.getLogger(__name__)


def _exclusive(method):
    """Run method under the manager's mutex, failing at once if it is held."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if not self.mutex.acquire(blocking=False):
            logger.debug(
                "Transaction lock busy for %s on %s", method.__name__, self.target
            )
            raise LockUnavailable(
                f"cannot obtain transaction lock for #{method.__name__}.",
                method.__name__,
            )
        try:
            return method(self, *args, **kwargs)
        finally:
            self.mutex.release()

    return wrapper


class ThreadSafeTransactionManager(TransactionManager):
    """
    TransactionManager whose operations are mutually exclusive per object.

    The lock is never waited on: a call made while another call on the same
    object is in flight raises LockUnavailable immediately. Only transaction
    state transitions are serialized; changes the caller makes to the object
    between calls are not.
    """

    def __init__(self, target: Any, config: Optional[TransactionConfig] = None):
        super().__init__(target, config)
        self.mutex = threading.Lock()

    is_open = _exclusive(TransactionManager.is_open)
    name = _exclusive(TransactionManager.name)
    start = _exclusive(TransactionManager.start)
    rewind = _exclusive(TransactionManager.rewind)
    abort = _exclusive(TransactionManager.abort)
    commit = _exclusive(TransactionManager.commit)


class ThreadSafeTransactional(Transactional):
    """Transactional mixin backed by a ThreadSafeTransactionManager."""

    transaction_manager_class = ThreadSafeTransactionManager
