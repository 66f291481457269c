# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
ZooKeeper coordination client built on kazoo.
"""

import posixpath
from contextlib import contextmanager
from typing import Callable, List, Optional

from kazoo import exceptions as kazoo_exceptions
from kazoo.client import KazooClient
from kazoo.handlers.threading import KazooTimeoutError
from kazoo.protocol.states import EventType, KazooState

import zklock
from zklock.client.log import logger
from zklock.constants import LOCK_NODE_PREFIX
from zklock.core.coordination.provider import CoordinationClient
from zklock.util.exceptions import (
    ConnectionLostError,
    NoNodeError,
    NodeExistsError,
    NotEmptyError,
)


@contextmanager
def _translate_errors(path: Optional[str] = None):
    """Re-raise kazoo errors as coordination errors."""
    try:
        yield
    except kazoo_exceptions.NoNodeError as e:
        raise NoNodeError(path) from e
    except kazoo_exceptions.NodeExistsError as e:
        raise NodeExistsError(path) from e
    except kazoo_exceptions.NotEmptyError as e:
        raise NotEmptyError(path) from e
    except (kazoo_exceptions.KazooException, KazooTimeoutError) as e:
        raise ConnectionLostError(path, f"{e.__class__.__name__} at {path}: {e}") from e


class ZooKeeperClient(CoordinationClient):
    """Coordination client talking to a ZooKeeper ensemble.

    Example:
        >>> client = ZooKeeperClient("127.0.0.1:2181")
        >>> client.start()
        >>> client.ensure_node("/service/orders")
        >>> client.create_sequential_ephemeral("/service/orders")
        'lock0000000000'
        >>> client.close()

    Args:
        hosts: Comma separated ``host:port`` list (default: ``zklock.constants.ZK_HOSTS``).
        session_timeout: Session timeout in seconds. Ephemeral nodes of a dead
            client disappear this long after it stops heart-beating.
        connect_timeout: How long ``start`` waits for the first connection.
        kazoo_client: Optional pre-built ``KazooClient`` (for dependency injection).
    """

    def __init__(
        self,
        hosts: Optional[str] = None,
        session_timeout: Optional[float] = None,
        connect_timeout: Optional[float] = None,
        kazoo_client: Optional[KazooClient] = None,
    ):
        self.hosts = hosts or zklock.constants.ZK_HOSTS
        self.session_timeout = session_timeout or zklock.constants.ZK_SESSION_TIMEOUT
        self.connect_timeout = connect_timeout or zklock.constants.ZK_CONNECT_TIMEOUT
        if kazoo_client is None:
            kazoo_client = KazooClient(hosts=self.hosts, timeout=self.session_timeout)
        self.zk = kazoo_client
        self.zk.add_listener(self._on_state_change)

    @staticmethod
    def _on_state_change(state):
        if state == KazooState.LOST:
            logger.warning("ZooKeeper session lost, held lock nodes are being reclaimed")
        else:
            logger.debug("ZooKeeper connection state changed to %s", state)

    def start(self):
        if self.started:
            return
        with _translate_errors():
            self.zk.start(timeout=self.connect_timeout)
        self.started = True
        logger.debug("Connected to ZooKeeper at %s", self.hosts)

    def close(self):
        if not self.started:
            return
        self.started = False
        try:
            self.zk.stop()
            self.zk.close()
        except kazoo_exceptions.KazooException as e:
            logger.debug("ZooKeeper close failed: %s", e)

    def ensure_node(self, path: str):
        with _translate_errors(path):
            self.zk.ensure_path(path)

    def create_sequential_ephemeral(self, parent_path: str, prefix: str = LOCK_NODE_PREFIX) -> str:
        with _translate_errors(parent_path):
            created = self.zk.create(posixpath.join(parent_path, prefix), b"", ephemeral=True, sequence=True)
        return posixpath.basename(created)

    def list_children(self, path: str) -> List[str]:
        with _translate_errors(path):
            return self.zk.get_children(path)

    def watch_deletion(
        self,
        path: str,
        callback: Callable[[], None],
        on_lost: Optional[Callable[[], None]] = None,
    ) -> bool:
        def _watcher(event):
            if event.type == EventType.DELETED:
                callback()
            elif event.type == EventType.NONE:
                # kazoo drops every watch with a NONE event when the session ends.
                logger.debug("Watch on %s dropped, session state %s", path, event.state)
                if on_lost is not None:
                    on_lost()
            else:
                logger.debug("Ignoring %s event on %s", event.type, path)

        try:
            with _translate_errors(path):
                # A data watch is only left behind when the node exists.
                self.zk.get(path, watch=_watcher)
        except NoNodeError:
            return False
        return True

    def delete(self, path: str):
        with _translate_errors(path):
            self.zk.delete(path)

    def exists(self, path: str) -> bool:
        with _translate_errors(path):
            return self.zk.exists(path) is not None
