"""Attach transaction managers to arbitrary objects."""

import threading
from typing import Any, Hashable, Optional, Type

from .config import TransactionConfig
from .models.checkpoint import Checkpoint
from .transaction_manager import TransactionManager

_attach_lock = threading.Lock()


def manager_for(
    obj: Any,
    manager_class: Optional[Type[TransactionManager]] = None,
    config: Optional[TransactionConfig] = None,
) -> TransactionManager:
    """
    Return the transaction manager of obj, attaching one on first use.

    The manager is stored on the object itself in ``_transaction_manager``,
    an attribute that is never captured or restored. Objects without a
    ``__dict__`` (plain lists, dicts, slotted classes) cannot carry one and
    must be wrapped in a TransactionManager explicitly.

    The manager class and config default to the object's class attributes
    ``transaction_manager_class`` and ``transaction_config`` (see
    Transactional). When manager_class is given and the attached manager is
    of another class, it is replaced as long as no transaction is open on it.
    The replacement keeps the old manager's config and exclusions.
    """
    if isinstance(obj, TransactionManager):
        return obj

    default_class = getattr(type(obj), "transaction_manager_class", TransactionManager)

    try:
        attrs = vars(obj)
    except TypeError:
        raise TypeError(
            f"cannot attach transactions to {type(obj).__name__!r} objects; "
            "wrap it in a TransactionManager"
        ) from None

    with _attach_lock:
        manager = attrs.get("_transaction_manager")
        if manager is not None and (
            manager_class is None or isinstance(manager, manager_class)
        ):
            return manager

        if manager is None:
            if config is None:
                config = getattr(type(obj), "transaction_config", None)
            manager = (manager_class or default_class)(obj, config)
        else:
            manager = _replace_manager(manager, manager_class, config)

        object.__setattr__(obj, "_transaction_manager", manager)
        return manager


def _replace_manager(
    previous: TransactionManager,
    manager_class: Type[TransactionManager],
    config: Optional[TransactionConfig],
) -> TransactionManager:
    """Build an idle manager of manager_class keeping the settings of previous."""
    if previous.level > 0:
        raise TypeError(
            f"cannot switch to {manager_class.__name__} while a transaction is open"
        )

    manager = manager_class(previous.target, config or previous.config)
    manager._exclusions = previous._exclusions
    manager._started = previous._started
    return manager


class Transactional:
    """
    Mixin giving an object its own transaction methods.

    Example:
        class Cart(Transactional):
            def __init__(self):
                self.items = []

        cart = Cart()
        cart.start_transaction()
        cart.items.append("milk")
        cart.abort_transaction()   # cart.items == []
    """

    transaction_manager_class: Type[TransactionManager] = TransactionManager
    transaction_config: Optional[TransactionConfig] = None

    @property
    def transaction_manager(self) -> TransactionManager:
        return manager_for(self, self.transaction_manager_class)

    @property
    def transaction_exclusions(self):
        return self.transaction_manager.exclusions

    def transaction_open(self, name: Optional[Hashable] = None) -> bool:
        return self.transaction_manager.is_open(name)

    def transaction_name(self) -> Optional[Hashable]:
        return self.transaction_manager.name()

    def start_transaction(self, name: Optional[Hashable] = None) -> Checkpoint:
        return self.transaction_manager.start(name)

    def rewind_transaction(self, name: Optional[Hashable] = None):
        self.transaction_manager.rewind(name)
        return self

    def abort_transaction(self, name: Optional[Hashable] = None):
        self.transaction_manager.abort(name)
        return self

    def commit_transaction(self, name: Optional[Hashable] = None):
        self.transaction_manager.commit(name)
        return self
