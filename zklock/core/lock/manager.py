# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Entry point of the lock API.
"""

from typing import Hashable, List, Optional

import zklock
from zklock.client.log import logger
from zklock.core.coordination import CoordinationClient, create_client
from zklock.core.lock.base import KeyLock, MultiKeyLock
from zklock.core.lock.multi import MultiKeyLocker
from zklock.core.lock.protocol import SequenceLockProtocol
from zklock.core.lock.session import LockSessionTracker, current_owner
from zklock.util.exceptions import CoordinationError


class LockManager:
    """Owns one coordination client and exposes the lock operations on it.

    Create one manager per process at startup, share it between threads and
    close it at shutdown. Closing ends the store session, which releases every
    lock still held through it.

    Example:
        >>> manager = LockManager()  # ZooKeeper at zklock.constants.ZK_HOSTS
        >>> manager.start()
        >>> manager.lock_acquire("orders:42", timeout=5)
        >>> try:
        ...     pass  # Critical section
        ... finally:
        ...     manager.lock_release("orders:42")
        >>> manager.locks_acquire("stock:7", "orders:42")
        >>> manager.locks_release("stock:7", "orders:42")
        >>> manager.close()

    Args:
        client: Coordination client to use. Built with ``create_client`` from
            configuration when omitted.
        root: Parent node of all lock namespaces (default: ``zklock.constants.LOCK_ROOT``).
        default_timeout: Timeout used when a call passes none
            (default: ``zklock.constants.DEFAULT_LOCK_TIMEOUT``).
        **client_kwargs: Passed to ``create_client`` when ``client`` is omitted.
    """

    def __init__(
        self,
        client: Optional[CoordinationClient] = None,
        root: Optional[str] = None,
        default_timeout: Optional[float] = None,
        **client_kwargs,
    ):
        self.client = client if client is not None else create_client(**client_kwargs)
        self.root = root or zklock.constants.LOCK_ROOT
        self.default_timeout = (
            zklock.constants.DEFAULT_LOCK_TIMEOUT if default_timeout is None else default_timeout
        )
        self.tracker = LockSessionTracker()
        self.protocol = SequenceLockProtocol(self.client, self.tracker, root=self.root)
        self.multi = MultiKeyLocker(self.protocol)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *args, **kwargs):
        self.close()

    def start(self):
        """Connect to the store and make sure the root node exists.

        Raises:
            ConnectionLostError: If the store cannot be reached.
            CoordinationError: If the root node cannot be created.
        """
        self.client.start()
        try:
            self.client.ensure_node(self.root)
        except CoordinationError:
            self.client.close()
            raise
        logger.debug("Lock manager ready under %s", self.root)

    def close(self):
        """Release the shared coordination client."""
        self.client.close()

    def _timeout(self, timeout: Optional[float]) -> float:
        return self.default_timeout if timeout is None else timeout

    def lock_acquire(self, key: str, timeout: Optional[float] = None, owner: Optional[Hashable] = None):
        """Block until ``key`` is locked for ``owner`` (default: calling thread).

        Raises:
            UsageError: Empty key or non-positive timeout.
            LockTimeout: The wait exceeded ``timeout`` seconds. Call
                ``lock_release`` to withdraw from the queue.
            LockLost: This owner's place in the queue vanished.
            WatchEstablishFailed: The store kept failing while queueing.
        """
        self.protocol.acquire(key, timeout=self._timeout(timeout), owner=owner)

    def lock_release(self, key: str, owner: Optional[Hashable] = None):
        """Release ``key``. Never raises, and does nothing if ``key`` is not held."""
        self.protocol.release(key, owner=owner)

    def locks_acquire(self, *keys: str, timeout: Optional[float] = None, owner: Optional[Hashable] = None):
        """Lock every key in ascending order. Keys taken before a failure stay held.

        Raises:
            UsageError: If no non-empty key is given.
        """
        self.multi.acquire(*keys, timeout=self._timeout(timeout), owner=owner)

    def locks_release(self, *keys: str, owner: Optional[Hashable] = None):
        """Release every key in descending order.

        Raises:
            UsageError: If no non-empty key is given.
        """
        self.multi.release(*keys, owner=owner)

    def lock(self, key: str, timeout: Optional[float] = None, owner: Optional[Hashable] = None) -> KeyLock:
        return KeyLock(self, key, timeout=timeout, owner=owner)

    def locks(self, *keys: str, timeout: Optional[float] = None, owner: Optional[Hashable] = None) -> MultiKeyLock:
        return MultiKeyLock(self, keys, timeout=timeout, owner=owner)

    def held_keys(self, owner: Optional[Hashable] = None) -> List[str]:
        """Keys with a recorded sequence node for ``owner``, including ones still queued after a timeout."""
        return self.tracker.held_keys(current_owner() if owner is None else owner)
