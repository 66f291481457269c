# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from zklock.constants import LOCK_NODE_PREFIX


class CoordinationClient(ABC):
    """Primitives of a hierarchical coordination store used by the lock protocol.

    A single instance is shared by every thread of the process. Implementations
    must be thread-safe and translate their native errors into the
    ``CoordinationError`` family of ``zklock.util.exceptions``.
    """

    started = False

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *args, **kwargs):
        self.close()

    @abstractmethod
    def start(self):
        """Open the session with the store."""

    @abstractmethod
    def close(self):
        """End the session. Ephemeral nodes created by it are reclaimed by the store."""

    @abstractmethod
    def ensure_node(self, path: str):
        """Create a persistent node at ``path`` unless one exists.

        Raises:
            ConnectionLostError: If the store cannot be reached.
        """

    @abstractmethod
    def create_sequential_ephemeral(self, parent_path: str, prefix: str = LOCK_NODE_PREFIX) -> str:
        """Create an ephemeral, store-sequenced child of ``parent_path``.

        Returns:
            str: The child name (not the full path), e.g. ``lock0000000003``.

        Raises:
            NoNodeError: If ``parent_path`` does not exist.
        """

    @abstractmethod
    def list_children(self, path: str) -> List[str]:
        """Names of the children of ``path``.

        Raises:
            NoNodeError: If ``path`` does not exist.
        """

    @abstractmethod
    def watch_deletion(
        self,
        path: str,
        callback: Callable[[], None],
        on_lost: Optional[Callable[[], None]] = None,
    ) -> bool:
        """Call ``callback`` once, from any thread, when ``path`` is deleted.

        If the session ends before that, the watch is dropped and ``on_lost``
        is called instead. The session's ephemeral nodes are gone by then.

        Returns:
            bool: False if the node was already gone, in which case no watch is left behind.
        """

    @abstractmethod
    def delete(self, path: str):
        """Delete the node at ``path``.

        Raises:
            NoNodeError: If the node does not exist.
            NotEmptyError: If the node still has children.
        """

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass
