# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Lock handles usable as context managers.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Hashable, Optional, Tuple

if TYPE_CHECKING:
    from zklock.core.lock.manager import LockManager


class BaseLock(ABC):
    """Abstract base class for lock handles.

    Attributes:
        timeout: Seconds to wait while queued (None means the default timeout).
        owner: The owner locks are recorded for (None means the calling thread).
        acquired: Whether this handle currently holds its lock.
    """

    def __init__(self, timeout: Optional[float] = None, owner: Optional[Hashable] = None):
        self.timeout = timeout
        self.owner = owner
        self.acquired = False

    def __enter__(self):
        """Context manager entry - acquires the lock."""
        self.acquire()
        return self

    def __exit__(self, *args, **kwargs):
        """Context manager exit - releases the lock."""
        self.release()

    @abstractmethod
    def acquire(self, timeout: Optional[float] = None) -> None:
        """Acquire the lock.

        Args:
            timeout: Overrides the handle's timeout for this call.

        Raises:
            LockError: If the lock cannot be acquired.
        """

    @abstractmethod
    def release(self) -> None:
        """Release the lock.

        This method is safe to call even if the lock is not held.
        """


class KeyLock(BaseLock):
    """Handle on the lock of a single key.

    Example:
        >>> with manager.lock("orders:42", timeout=5):
        ...     # Critical section
        ...     pass
    """

    def __init__(self, manager: "LockManager", key: str, timeout: Optional[float] = None,
                 owner: Optional[Hashable] = None):
        super().__init__(timeout, owner)
        self.manager = manager
        self.key = key

    def acquire(self, timeout: Optional[float] = None):
        if timeout is None:
            timeout = self.timeout
        self.manager.lock_acquire(self.key, timeout=timeout, owner=self.owner)
        self.acquired = True

    def release(self):
        self.manager.lock_release(self.key, owner=self.owner)
        self.acquired = False


class MultiKeyLock(BaseLock):
    """Handle on the locks of a key set, taken in global key order.

    If acquisition fails part-way, the keys already taken stay held until
    ``release`` is called; ``__enter__`` does not call it for you.
    """

    def __init__(self, manager: "LockManager", keys: Tuple[str, ...], timeout: Optional[float] = None,
                 owner: Optional[Hashable] = None):
        super().__init__(timeout, owner)
        self.manager = manager
        self.keys = keys

    def acquire(self, timeout: Optional[float] = None):
        if timeout is None:
            timeout = self.timeout
        self.manager.locks_acquire(*self.keys, timeout=timeout, owner=self.owner)
        self.acquired = True

    def release(self):
        self.manager.locks_release(*self.keys, owner=self.owner)
        self.acquired = False
