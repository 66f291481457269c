# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

from typing import Optional

import zklock
from zklock.core.coordination.memory import MemoryCoordinationClient, MemoryStore
from zklock.core.coordination.provider import CoordinationClient


def create_client(client_type: Optional[str] = None, **kwargs) -> CoordinationClient:
    """Factory function to create the coordination client named by configuration.

    Args:
        client_type: ``"zookeeper"`` or ``"memory"``. Uses ``zklock.constants.CLIENT_TYPE`` if None.
        **kwargs: Passed to the client constructor (``hosts``, ``session_timeout``,
            ``connect_timeout`` for ZooKeeper; ``store`` for memory).

    Returns:
        An unstarted coordination client.

    Raises:
        ValueError: If the client type is unknown.
    """
    if client_type is None:
        client_type = getattr(zklock.constants, "CLIENT_TYPE", "zookeeper")

    if client_type == "memory":
        return MemoryCoordinationClient(**kwargs)
    if client_type == "zookeeper":
        from zklock.core.coordination.zookeeper import ZooKeeperClient
        return ZooKeeperClient(**kwargs)
    raise ValueError(f"Unknown coordination client type '{client_type}'")


__all__ = [
    "CoordinationClient",
    "MemoryCoordinationClient",
    "MemoryStore",
    "create_client",
]
