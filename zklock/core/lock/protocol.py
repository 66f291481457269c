# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Single-key lock protocol over ephemeral sequential nodes.

Every contender for a key creates an ephemeral sequential node under the
key's namespace node. The contender with the lowest sequence holds the lock;
every other contender watches only its immediate predecessor, so a release
wakes exactly one waiter and the lock is granted in creation order.

A deleted predecessor is not proof of ownership: a waiter that timed out and
withdrew also deletes its node. The contenders are listed again after every
wake-up and the lock is held only at the lowest sequence.
"""

import threading
import time
from functools import partial
from typing import Callable, Hashable, Optional

import zklock
from zklock.client.log import logger
from zklock.core.coordination.provider import CoordinationClient
from zklock.core.lock.session import LockSessionTracker, current_owner
from zklock.util.exceptions import (
    CoordinationError,
    LockLost,
    LockTimeout,
    NodeExistsError,
    NoNodeError,
    UsageError,
    WatchEstablishFailed,
)
from zklock.util.keys import get_namespace_path, get_node_path, sort_contenders


class WaitGate:
    """One-shot signal a waiting thread blocks on.

    It is opened from the coordination client's notification thread. Only the
    first ``open`` counts; later calls are ignored.
    """

    PROMOTED = "predecessor deleted"
    LOST = "own node deleted"

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: Optional[str] = None

    def open(self, reason: str):
        with self._lock:
            if self._reason is not None:
                return
            self._reason = reason
        self._event.set()

    def opener(self, reason: str) -> Callable[[], None]:
        return partial(self.open, reason)

    def wait(self, timeout: float) -> Optional[str]:
        """Block up to ``timeout`` seconds; return the reason the gate opened, or None."""
        if self._event.wait(timeout):
            return self._reason
        return None

    @property
    def is_open(self) -> bool:
        return self._event.is_set()


class SequenceLockProtocol:
    """Acquire and release one key at a time.

    Args:
        client: A started coordination client shared by all threads.
        tracker: Where acquired sequence nodes are recorded (a new one if None).
        root: Parent node of all lock namespaces (default: ``zklock.constants.LOCK_ROOT``).
        watch_retry_times: How many failed attempts at listing contenders and
            registering the predecessor watch are retried.
    """

    def __init__(
        self,
        client: CoordinationClient,
        tracker: Optional[LockSessionTracker] = None,
        root: Optional[str] = None,
        watch_retry_times: Optional[int] = None,
    ):
        self.client = client
        self.tracker = tracker if tracker is not None else LockSessionTracker()
        self.root = root or zklock.constants.LOCK_ROOT
        self.watch_retry_times = (
            zklock.constants.WATCH_RETRY_TIMES if watch_retry_times is None else watch_retry_times
        )

    def acquire(self, key: str, timeout: Optional[float] = None, owner: Optional[Hashable] = None):
        """Block until the lock for ``key`` is held by ``owner``.

        Args:
            key: The lock key.
            timeout: Seconds to wait once queued behind another contender.
                None means ``zklock.constants.DEFAULT_LOCK_TIMEOUT``.
            owner: The owner the lock is recorded for (default: calling thread).

        Raises:
            UsageError: If ``key`` is empty or ``timeout`` is not positive.
            LockTimeout: If the predecessor did not go away in time. The
                sequence node stays queued until ``release`` is called.
            LockLost: If this contender's sequence node disappeared.
            WatchEstablishFailed: If the store kept failing while queueing.
        """
        if timeout is None:
            timeout = zklock.constants.DEFAULT_LOCK_TIMEOUT
        if timeout <= 0:
            raise UsageError(f"lock failed, illegal timeout value {timeout}")
        if not key:
            raise UsageError("lock key must be a non-empty string")
        if owner is None:
            owner = current_owner()

        namespace = get_namespace_path(self.root, key)
        node = self._create_sequence_node(key, namespace)
        # Recorded before waiting so release can always find the node.
        self.tracker.record(owner, key, node)
        try:
            self._wait_for_turn(key, namespace, node, timeout)
        except (LockTimeout, LockLost, WatchEstablishFailed) as e:
            logger.warning("Lock on '%s' failed: %s", key, e)
            raise

    def release(self, key: str, owner: Optional[Hashable] = None):
        """Give up ``owner``'s node for ``key``. Never raises.

        Releasing a key that is not held is a no-op.
        """
        if owner is None:
            owner = current_owner()
        node = self.tracker.pop(owner, key)
        if node is None:
            logger.debug("No lock held on '%s', nothing to release", key)
            return

        namespace = get_namespace_path(self.root, key)
        node_path = get_node_path(namespace, node)
        try:
            self.client.delete(node_path)
            logger.debug("Node %s deleted, lock released", node_path)
        except CoordinationError as e:
            # Session expiry reclaims the node if this delete never landed.
            logger.debug("Could not delete %s: %s", node_path, e)

        try:
            self.client.delete(namespace)
            logger.debug("All locks on '%s' released, deleted namespace %s", key, namespace)
        except CoordinationError as e:
            # Usually other contenders are still queued here.
            logger.debug("Namespace %s kept: %s", namespace, e)

    def _ensure_namespace(self, namespace: str):
        try:
            self.client.ensure_node(namespace)
        except NodeExistsError:
            logger.debug("Lock namespace %s already exists", namespace)

    def _create_sequence_node(self, key: str, namespace: str) -> str:
        vanished = 0
        while True:
            try:
                self._ensure_namespace(namespace)
                node = self.client.create_sequential_ephemeral(namespace)
            except NoNodeError as e:
                # A releaser removed the namespace between ensure and create.
                vanished += 1
                if vanished > zklock.constants.NAMESPACE_RETRY_TIMES:
                    raise LockLost(key, reason="lock namespace kept disappearing") from e
                logger.debug("Namespace %s deleted concurrently, recreating it", namespace)
                continue
            except CoordinationError as e:
                raise WatchEstablishFailed(key, 1, reason=str(e)) from e
            logger.debug("Created node %s", get_node_path(namespace, node))
            return node

    def _wait_for_turn(self, key: str, namespace: str, node: str, timeout: float):
        deadline = time.monotonic() + timeout
        failures = 0
        while True:
            try:
                if self._try_hold(key, namespace, node, timeout, deadline):
                    return
            except NoNodeError as e:
                # The namespace cannot vanish while our node is inside it.
                raise LockLost(key, node, reason="lock namespace is gone") from e
            except CoordinationError as e:
                failures += 1
                if failures > self.watch_retry_times:
                    raise WatchEstablishFailed(key, failures, reason=str(e)) from e
                logger.debug("Watch failed on '%s', will try again (%d/%d)", key, failures, self.watch_retry_times)

    def _try_hold(self, key: str, namespace: str, node: str, timeout: float, deadline: float) -> bool:
        """One pass over the contenders.

        Returns:
            bool: True once the lock is held, False if the contenders must be listed again.
        """
        children = sort_contenders(self.client.list_children(namespace))
        logger.debug("Contenders for '%s': %s", key, children)
        if node not in children:
            logger.info("My sequence node %s may have been deleted", get_node_path(namespace, node))
            raise LockLost(key, node)

        rank = children.index(node)
        if rank == 0:
            logger.debug("Gained the lock on '%s'", key)
            return True

        predecessor_path = get_node_path(namespace, children[rank - 1])
        gate = WaitGate()
        lost = gate.opener(WaitGate.LOST)
        # Watches of an abandoned pass stay registered and fire into a gate nobody waits on.
        logger.debug("Monitoring node %s", predecessor_path)
        if not self.client.watch_deletion(predecessor_path, gate.opener(WaitGate.PROMOTED), on_lost=lost):
            logger.debug("Predecessor %s already gone, checking contenders again", predecessor_path)
            return False
        if not self.client.watch_deletion(get_node_path(namespace, node), lost, on_lost=lost):
            raise LockLost(key, node)

        reason = gate.wait(max(deadline - time.monotonic(), 0))
        if reason is None:
            raise LockTimeout(key, timeout)
        if reason == WaitGate.LOST:
            raise LockLost(key, node)
        logger.debug("Previous node %s deleted, checking contenders again", predecessor_path)
        return False
