# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import pytest

from zklock import LockManager, MemoryCoordinationClient, MemoryStore


@pytest.fixture
def store():
    """A coordination store shared by every manager of a test."""
    return MemoryStore()


@pytest.fixture
def make_manager(store):
    """Build started managers, each with its own session on the shared store."""
    managers = []

    def _make(**kwargs):
        manager = LockManager(client=MemoryCoordinationClient(store), **kwargs)
        manager.start()
        managers.append(manager)
        return manager

    yield _make
    for manager in managers:
        manager.close()


@pytest.fixture
def manager(make_manager):
    return make_manager()


@pytest.fixture
def other_manager(make_manager):
    """A second process contending on the same store."""
    return make_manager()
