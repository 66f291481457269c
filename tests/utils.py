# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import time

import pytest

from zklock.util.keys import sort_contenders


def wait_until(predicate, timeout=5.0, interval=0.005):
    """Poll ``predicate`` until it is true; fail the test after ``timeout`` seconds."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return
        time.sleep(interval)
    pytest.fail("condition not reached in time")


def contenders(store, path):
    """Sequence nodes queued under a lock namespace, in grant order."""
    if not store.exists(path):
        return []
    return sort_contenders(store.get_children(path))
