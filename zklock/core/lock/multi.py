# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Locking several keys at once in one global order.
"""

from typing import Hashable, Iterable, List, Optional

from zklock.client.log import logger
from zklock.core.lock.protocol import SequenceLockProtocol
from zklock.util.exceptions import UsageError


def order_keys(keys: Iterable[Optional[str]], reverse: bool = False) -> List[str]:
    """Drop empty entries and duplicates, then sort lexicographically.

    Example:
        >>> order_keys(["b", "a", None, "b", ""])
        ['a', 'b']
    """
    return sorted({key for key in keys if key}, reverse=reverse)


class MultiKeyLocker:
    """Acquires key sets in ascending order and releases them in descending order.

    Every caller goes through the same total order, so two callers asking for
    overlapping key sets can never wait on each other in a cycle.

    A failure part-way through acquisition is not rolled back: the keys taken
    before the failing one stay held and the caller releases them, for
    example with ``release`` on the same key set.
    """

    def __init__(self, protocol: SequenceLockProtocol):
        self.protocol = protocol

    def acquire(self, *keys: str, timeout: Optional[float] = None, owner: Optional[Hashable] = None) -> List[str]:
        if not keys:
            raise UsageError("have no key to lock")
        ordered = order_keys(keys)
        if not ordered:
            raise UsageError("have no non-empty key to lock")
        for key in ordered:
            self.protocol.acquire(key, timeout=timeout, owner=owner)
        logger.debug("Locked keys %s", ordered)
        return ordered

    def release(self, *keys: str, owner: Optional[Hashable] = None) -> List[str]:
        if not keys:
            raise UsageError("have no key to release")
        ordered = order_keys(keys, reverse=True)
        if not ordered:
            raise UsageError("have no non-empty key to release")
        for key in ordered:
            self.protocol.release(key, owner=owner)
        return ordered
