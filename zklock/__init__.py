# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

from zklock import constants
from zklock.core.coordination import (
    CoordinationClient,
    MemoryCoordinationClient,
    MemoryStore,
    create_client,
)
from zklock.core.lock import KeyLock, LockManager, MultiKeyLock
from zklock.util.exceptions import (
    LockError,
    LockLost,
    LockTimeout,
    UsageError,
    WatchEstablishFailed,
)

__version__ = "0.1.0"

__all__ = [
    "constants",
    "CoordinationClient",
    "MemoryCoordinationClient",
    "MemoryStore",
    "create_client",
    "KeyLock",
    "LockManager",
    "MultiKeyLock",
    "LockError",
    "LockLost",
    "LockTimeout",
    "UsageError",
    "WatchEstablishFailed",
]
