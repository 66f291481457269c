# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
In-process coordination store.

``MemoryStore`` keeps a node tree with ZooKeeper semantics: persistent and
ephemeral nodes, per-parent sequence counters, one-shot deletion watches and
sessions whose ephemeral nodes vanish when the session ends. Every
``MemoryCoordinationClient`` opened on the same store is one session, so
several clients on one store behave like several processes sharing an
ensemble.
"""

import itertools
import posixpath
import threading
from typing import Callable, Dict, List, Optional, Set

from zklock.client.log import logger
from zklock.constants import LOCK_NODE_PREFIX, SEQUENCE_DIGITS
from zklock.core.coordination.provider import CoordinationClient
from zklock.util.exceptions import (
    ConnectionLostError,
    NoNodeError,
    NodeExistsError,
    NotEmptyError,
)


class _Node:
    __slots__ = ("ephemeral_owner", "children", "next_sequence")

    def __init__(self, ephemeral_owner: Optional[int] = None):
        self.ephemeral_owner = ephemeral_owner
        self.children: Set[str] = set()
        self.next_sequence = 0


class _Watch:
    __slots__ = ("session_id", "callback", "on_lost")

    def __init__(self, session_id: Optional[int], callback: Callable[[], None], on_lost: Optional[Callable[[], None]]):
        self.session_id = session_id
        self.callback = callback
        self.on_lost = on_lost


class MemoryStore:
    """Thread-safe node tree shared by ``MemoryCoordinationClient`` sessions."""

    def __init__(self):
        self._lock = threading.RLock()
        self._nodes: Dict[str, _Node] = {"/": _Node()}
        self._watches: Dict[str, List[_Watch]] = {}
        self._session_ids = itertools.count(1)
        self._sessions: Set[int] = set()

    def open_session(self) -> int:
        with self._lock:
            session_id = next(self._session_ids)
            self._sessions.add(session_id)
            return session_id

    def close_session(self, session_id: int):
        """End a session, delete every ephemeral node it owns and drop its watches."""
        with self._lock:
            self._sessions.discard(session_id)
            owned = [path for path, node in self._nodes.items() if node.ephemeral_owner == session_id]
        for path in owned:
            try:
                self.delete(path)
            except NoNodeError:
                pass

        dropped = []
        with self._lock:
            for path in list(self._watches):
                watches = self._watches[path]
                dropped.extend(w for w in watches if w.session_id == session_id)
                kept = [w for w in watches if w.session_id != session_id]
                if kept:
                    self._watches[path] = kept
                else:
                    del self._watches[path]
        for watch in dropped:
            if watch.on_lost is not None:
                watch.on_lost()

    def create(self, path: str, ephemeral_owner: Optional[int] = None, sequence: bool = False) -> str:
        parent_path, name = posixpath.split(path)
        with self._lock:
            parent = self._nodes.get(parent_path)
            if parent is None:
                raise NoNodeError(parent_path)
            if sequence:
                name = f"{name}{parent.next_sequence:0{SEQUENCE_DIGITS}d}"
                parent.next_sequence += 1
                path = posixpath.join(parent_path, name)
            if path in self._nodes:
                raise NodeExistsError(path)
            self._nodes[path] = _Node(ephemeral_owner)
            parent.children.add(name)
        return path

    def ensure_path(self, path: str):
        with self._lock:
            current = "/"
            for part in path.strip("/").split("/"):
                current = posixpath.join(current, part)
                if current not in self._nodes:
                    self.create(current)

    def delete(self, path: str):
        with self._lock:
            node = self._nodes.get(path)
            if node is None:
                raise NoNodeError(path)
            if node.children:
                raise NotEmptyError(path)
            del self._nodes[path]
            parent_path, name = posixpath.split(path)
            self._nodes[parent_path].children.discard(name)
            watchers = self._watches.pop(path, [])
        for watch in watchers:
            watch.callback()

    def get_children(self, path: str) -> List[str]:
        with self._lock:
            node = self._nodes.get(path)
            if node is None:
                raise NoNodeError(path)
            return list(node.children)

    def exists(self, path: str) -> bool:
        with self._lock:
            return path in self._nodes

    def add_deletion_watch(
        self,
        path: str,
        callback: Callable[[], None],
        session_id: Optional[int] = None,
        on_lost: Optional[Callable[[], None]] = None,
    ) -> bool:
        with self._lock:
            if path not in self._nodes:
                return False
            self._watches.setdefault(path, []).append(_Watch(session_id, callback, on_lost))
            return True

    def watch_count(self, path: str) -> int:
        with self._lock:
            return len(self._watches.get(path, []))


class MemoryCoordinationClient(CoordinationClient):
    """Coordination client backed by a ``MemoryStore``.

    Example:
        >>> store = MemoryStore()
        >>> client_a = MemoryCoordinationClient(store)
        >>> client_b = MemoryCoordinationClient(store)  # a second "process"

    Args:
        store: The shared store. A private one is created when omitted.
    """

    def __init__(self, store: Optional[MemoryStore] = None):
        self.store = store if store is not None else MemoryStore()
        self.session_id: Optional[int] = None

    def start(self):
        if self.started:
            return
        self.session_id = self.store.open_session()
        self.started = True
        logger.debug("Opened in-memory session %s", self.session_id)

    def close(self):
        if not self.started:
            return
        self.started = False
        self.store.close_session(self.session_id)
        logger.debug("Closed in-memory session %s", self.session_id)

    def expire_session(self):
        """Simulate the store expiring this session; the client stays unusable until restarted."""
        self.close()

    def _check_session(self):
        if not self.started:
            raise ConnectionLostError(message="in-memory session is not open")

    def ensure_node(self, path: str):
        self._check_session()
        self.store.ensure_path(path)

    def create_sequential_ephemeral(self, parent_path: str, prefix: str = LOCK_NODE_PREFIX) -> str:
        self._check_session()
        created = self.store.create(
            posixpath.join(parent_path, prefix),
            ephemeral_owner=self.session_id,
            sequence=True,
        )
        return posixpath.basename(created)

    def list_children(self, path: str) -> List[str]:
        self._check_session()
        return self.store.get_children(path)

    def watch_deletion(
        self,
        path: str,
        callback: Callable[[], None],
        on_lost: Optional[Callable[[], None]] = None,
    ) -> bool:
        self._check_session()
        return self.store.add_deletion_watch(path, callback, session_id=self.session_id, on_lost=on_lost)

    def delete(self, path: str):
        self._check_session()
        self.store.delete(path)

    def exists(self, path: str) -> bool:
        self._check_session()
        return self.store.exists(path)
