"""Exception hierarchy.

Contention is never an exception: ``acquire_lock`` and ``release_lock``
report it through their boolean result.  Transport failures are the
redis-py exceptions themselves and are not wrapped.
"""


class ScriptLockError(Exception):
    """Base class for errors raised by this package."""


class InvalidLeaseError(ScriptLockError, ValueError):
    """Raised when a lock would be written without a positive expiry."""


class LockNotAcquiredError(ScriptLockError):
    """Raised by ``DistributedLock`` when used as a context manager on a held lock."""


class UnexpectedReplyError(ScriptLockError):
    """Raised when the store answers with a reply of the wrong shape."""
