# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Lock module for zklock.

Provides fair distributed mutual exclusion on top of a coordination store:
single keys through ``SequenceLockProtocol``, key sets through
``MultiKeyLocker``, both wrapped by ``LockManager``.
"""

from zklock.core.lock.base import BaseLock, KeyLock, MultiKeyLock
from zklock.core.lock.manager import LockManager
from zklock.core.lock.multi import MultiKeyLocker, order_keys
from zklock.core.lock.protocol import SequenceLockProtocol, WaitGate
from zklock.core.lock.session import LockSessionTracker, current_owner

__all__ = [
    "BaseLock",
    "KeyLock",
    "MultiKeyLock",
    "LockManager",
    "MultiKeyLocker",
    "SequenceLockProtocol",
    "WaitGate",
    "LockSessionTracker",
    "current_owner",
    "order_keys",
]
