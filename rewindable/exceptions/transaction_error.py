"""Exceptions raised by the transaction engine."""


class TransactionError(Exception):
    """Base class for all errors raised by the transaction engine."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return f"Transaction Error: {self.message}"


class NoOpenTransaction(TransactionError):
    """Raised when an operation needs an open transaction and there is none."""


class UnknownTransactionName(TransactionError):
    """Raised when a named transaction is not open on the object."""

    def __init__(self, message: str, name=None):
        super().__init__(message)
        self.name = name


class DuplicateTransactionName(TransactionError):
    """Raised when a transaction name is already in use on the object."""

    def __init__(self, message: str, name=None):
        super().__init__(message)
        self.name = name


class CannotCrossBlockBoundary(TransactionError):
    """Raised when a block tries to act on a level opened before it started."""


class EmptyBlockTransaction(TransactionError):
    """Raised when a block transaction is started without any objects."""


class LockUnavailable(TransactionError):
    """Raised when the per-object transaction lock is already held."""

    def __init__(self, message: str, operation: str = ""):
        super().__init__(message)
        self.operation = operation


class BlockSignal(BaseException):
    """
    Structured early exit from a block transaction.

    Derives from BaseException so that ``except Exception`` clauses in the
    block body never intercept it. Signals are consumed by the block runner
    and never reach the caller.
    """

    def __init__(self, block=None):
        super().__init__(block)
        self.block = block


class TransactionAborted(BlockSignal):
    """Abort the current block transaction."""


class TransactionCommitted(BlockSignal):
    """Commit the current block transaction."""
