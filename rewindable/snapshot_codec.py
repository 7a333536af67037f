"""Snapshot capture and restore for transaction checkpoints."""

import copy
from typing import Any, Dict, Iterable, List, Optional, Protocol

# Attributes owned by the transaction engine itself; never captured or restored.
SKIP_TRANSACTION_ATTRS = frozenset({"_transaction_manager"})


class Snapshotter(Protocol):
    """Capability used by a transaction manager to checkpoint an object."""

    def capture(self, target: Any, skip: Iterable[str] = ()) -> Any:
        """Return an independent copy of the observable state of target."""
        ...

    def restore(self, data: Any) -> Any:
        """Return a new value equivalent to the captured data."""
        ...


def slot_names(cls: type) -> List[str]:
    """Collect the ``__slots__`` declared across the class hierarchy."""
    names = []
    for klass in cls.__mro__:
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name not in ("__dict__", "__weakref__") and name not in names:
                names.append(name)
    return names


def get_state(obj: Any, skip: Iterable[str] = ()) -> Dict[str, Any]:
    """Return the instance attributes of obj, leaving out the names in skip."""
    skip = frozenset(skip)
    state: Dict[str, Any] = {}
    if hasattr(obj, "__dict__"):
        state.update(
            (name, value) for name, value in vars(obj).items() if name not in skip
        )
    for name in slot_names(type(obj)):
        if name in skip or name in state:
            continue
        try:
            state[name] = object.__getattribute__(obj, name)
        except AttributeError:
            continue
    return state


def set_state(obj: Any, state: Dict[str, Any], skip: Iterable[str] = ()) -> None:
    """Copy state onto obj attribute by attribute; drop attributes not in state."""
    current = get_state(obj, skip)
    for name, value in state.items():
        object.__setattr__(obj, name, value)
    for name in current:
        if name not in state:
            object.__delattr__(obj, name)


def get_items(obj: Any) -> Optional[Any]:
    """Return the content of a built-in container (or subclass), else None."""
    if isinstance(obj, dict):
        return dict.copy(obj)
    if isinstance(obj, list):
        return list.copy(obj)
    if isinstance(obj, set):
        return set.copy(obj)
    if isinstance(obj, bytearray):
        return bytes(obj)
    return None


def replace_items(obj: Any, items: Optional[Any]) -> None:
    """Replace the content of a built-in container in place."""
    if items is None:
        return
    if isinstance(obj, dict):
        dict.clear(obj)
        dict.update(obj, items)
    elif isinstance(obj, list):
        list.__setitem__(obj, slice(None), items)
    elif isinstance(obj, set):
        set.clear(obj)
        set.update(obj, items)
    elif isinstance(obj, bytearray):
        bytearray.__setitem__(obj, slice(None), items)


class DeepCopyCodec:
    """
    Snapshotter based on ``copy.deepcopy``.

    The captured value is a new instance of the target's class holding a deep
    copy of its attributes and container content. Sharing and cycles inside the
    captured graph are preserved; references back to the target itself point
    at the new root instance, never at the live object.

    Attributes holding values that cannot be deep-copied (locks, sockets, open
    files) must be listed in the manager's exclusions.
    """

    def capture(self, target: Any, skip: Iterable[str] = ()) -> Any:
        cls = type(target)
        clone = cls.__new__(cls)
        memo = {id(target): clone}
        state, items = copy.deepcopy(
            (get_state(target, skip), get_items(target)), memo
        )
        set_state(clone, state)
        replace_items(clone, items)
        return clone

    def restore(self, data: Any) -> Any:
        # A fresh copy per call; the same checkpoint can be rewound many times.
        return self.capture(data)
