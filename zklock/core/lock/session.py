# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Per-owner bookkeeping of the sequence nodes created by lock acquisitions.
"""

import threading
from collections import defaultdict
from typing import Dict, Hashable, List, Optional


def current_owner() -> Hashable:
    """The default owner of a lock: the calling thread."""
    return threading.get_ident()


class LockSessionTracker:
    """Maps ``(owner, key)`` to the sequence node created for that key.

    Owners are isolated from each other and one owner may hold several keys.
    An owner's map is dropped as soon as its last entry is removed so that
    long-lived worker threads do not accumulate empty maps.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: Dict[Hashable, Dict[str, str]] = defaultdict(dict)

    def record(self, owner: Hashable, key: str, node: str):
        with self._lock:
            self._sessions[owner][key] = node

    def get(self, owner: Hashable, key: str) -> Optional[str]:
        with self._lock:
            entries = self._sessions.get(owner)
            return entries.get(key) if entries else None

    def pop(self, owner: Hashable, key: str) -> Optional[str]:
        """Remove and return the node recorded for ``key``, or None if there is none."""
        with self._lock:
            entries = self._sessions.get(owner)
            if not entries:
                return None
            node = entries.pop(key, None)
            if not entries:
                del self._sessions[owner]
            return node

    def held_keys(self, owner: Hashable) -> List[str]:
        with self._lock:
            return sorted(self._sessions.get(owner, {}))

    @property
    def owner_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __len__(self):
        with self._lock:
            return sum(len(entries) for entries in self._sessions.values())
