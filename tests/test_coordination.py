# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Tests for the coordination clients.

The ZooKeeper client is tested against a mocked kazoo client, plus a live
round trip that is skipped when no ZooKeeper server is reachable.
"""

import threading
import uuid
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from kazoo import exceptions as kazoo_exceptions
from kazoo.handlers.threading import KazooTimeoutError
from kazoo.protocol.states import EventType, KazooState, KeeperState

import zklock
from zklock import LockLost, LockManager, LockTimeout, MemoryCoordinationClient, MemoryStore, create_client
from zklock.core.coordination.zookeeper import ZooKeeperClient
from zklock.core.lock import SequenceLockProtocol
from zklock.util.exceptions import (
    ConnectionLostError,
    NodeExistsError,
    NoNodeError,
    NotEmptyError,
)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def memory_client(store):
    client = MemoryCoordinationClient(store)
    client.start()
    yield client
    client.close()


@pytest.fixture
def kazoo_client():
    """A mocked kazoo client."""
    return MagicMock()


@pytest.fixture
def zk_client(kazoo_client):
    return ZooKeeperClient(hosts="zk1:2181", session_timeout=10, connect_timeout=2, kazoo_client=kazoo_client)


@pytest.fixture
def live_manager():
    """A manager on a real ZooKeeper server, skip if none is available."""
    root = f"/zklock-test-{uuid.uuid4().hex}"
    managers = []

    def _make():
        client = ZooKeeperClient(connect_timeout=1)
        manager = LockManager(client=client, root=root)
        try:
            manager.start()
        except ConnectionLostError:
            pytest.skip("ZooKeeper is not available")
        managers.append(manager)
        return manager

    yield _make
    for manager in managers:
        manager.close()


# ============================================================================
# Test MemoryStore
# ============================================================================

class TestMemoryStore:
    """Tests for the in-process node tree."""

    def test_sequential_names(self, memory_client):
        """Test that sequential children get increasing zero-padded suffixes."""
        memory_client.ensure_node("/service/x")

        first = memory_client.create_sequential_ephemeral("/service/x")
        second = memory_client.create_sequential_ephemeral("/service/x")

        assert first == "lock0000000000"
        assert second == "lock0000000001"
        assert sorted(memory_client.list_children("/service/x")) == [first, second]

    def test_ensure_node_is_idempotent(self, memory_client):
        """Test that ensuring an existing node is not an error."""
        memory_client.ensure_node("/service/x")
        memory_client.ensure_node("/service/x")
        assert memory_client.exists("/service/x")

    def test_create_without_parent(self, memory_client):
        """Test that a missing parent raises NoNodeError."""
        with pytest.raises(NoNodeError):
            memory_client.create_sequential_ephemeral("/service/missing")

    def test_create_existing(self, store):
        """Test that creating an existing persistent node raises NodeExistsError."""
        store.create("/service")
        with pytest.raises(NodeExistsError):
            store.create("/service")

    def test_delete_non_empty(self, memory_client):
        """Test that a namespace with children cannot be deleted."""
        memory_client.ensure_node("/service/x")
        memory_client.create_sequential_ephemeral("/service/x")

        with pytest.raises(NotEmptyError):
            memory_client.delete("/service/x")

    def test_delete_missing(self, memory_client):
        with pytest.raises(NoNodeError):
            memory_client.delete("/service/missing")

    def test_watch_fires_once(self, memory_client, store):
        """Test that a deletion watch fires exactly once."""
        memory_client.ensure_node("/service/x")
        node = memory_client.create_sequential_ephemeral("/service/x")
        fired = []

        assert memory_client.watch_deletion(f"/service/x/{node}", lambda: fired.append(node))
        assert store.watch_count(f"/service/x/{node}") == 1

        memory_client.delete(f"/service/x/{node}")
        assert fired == [node]
        assert store.watch_count(f"/service/x/{node}") == 0

    def test_watch_on_missing_node(self, memory_client, store):
        """Test that watching a missing node returns False and registers nothing."""
        assert not memory_client.watch_deletion("/service/missing", lambda: None)
        assert store.watch_count("/service/missing") == 0

    def test_session_end_removes_ephemeral_nodes(self, store, memory_client):
        """Test that closing a session deletes its ephemeral nodes and fires watches."""
        other = MemoryCoordinationClient(store)
        other.start()
        memory_client.ensure_node("/service/x")
        node = other.create_sequential_ephemeral("/service/x")
        fired = threading.Event()
        memory_client.watch_deletion(f"/service/x/{node}", fired.set)

        other.expire_session()

        assert fired.is_set()
        assert memory_client.list_children("/service/x") == []
        # Persistent nodes outlive the session.
        assert memory_client.exists("/service/x")

    def test_session_end_drops_watches(self, store, memory_client):
        """Test that the watches of an ended session are dropped and reported as lost."""
        other = MemoryCoordinationClient(store)
        other.start()
        memory_client.ensure_node("/service/x")
        node = other.create_sequential_ephemeral("/service/x")
        fired = []
        lost = []
        memory_client.watch_deletion(f"/service/x/{node}", lambda: fired.append(node), on_lost=lambda: lost.append(node))

        memory_client.expire_session()

        assert lost == [node]
        assert store.watch_count(f"/service/x/{node}") == 0
        other.close()
        assert fired == []

    def test_closed_client(self, store):
        """Test that a client without an open session refuses to work."""
        client = MemoryCoordinationClient(store)
        with pytest.raises(ConnectionLostError):
            client.ensure_node("/service")

    def test_context_manager(self, store):
        """Test that the client opens and closes its session as a context manager."""
        with MemoryCoordinationClient(store) as client:
            assert client.started
            client.ensure_node("/service/x")
            client.create_sequential_ephemeral("/service/x")
        assert not client.started
        assert store.get_children("/service/x") == []


# ============================================================================
# Test create_client
# ============================================================================

class TestCreateClient:
    """Tests for the coordination client factory."""

    def test_create_memory_client(self):
        store = MemoryStore()
        client = create_client("memory", store=store)
        assert isinstance(client, MemoryCoordinationClient)
        assert client.store is store

    def test_create_zookeeper_client(self):
        """Test that the ZooKeeper client is built from the given hosts."""
        with patch("zklock.core.coordination.zookeeper.KazooClient") as kazoo_cls:
            client = create_client("zookeeper", hosts="zk1:2181,zk2:2181", session_timeout=12)

        assert isinstance(client, ZooKeeperClient)
        kazoo_cls.assert_called_once_with(hosts="zk1:2181,zk2:2181", timeout=12)

    def test_default_type_from_constants(self):
        """Test that the configured client type is used by default."""
        with patch("zklock.constants.CLIENT_TYPE", "memory"):
            assert isinstance(create_client(), MemoryCoordinationClient)

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            create_client("etcd")

    def test_manager_builds_client(self):
        """Test that a manager without a client builds one from its keyword arguments."""
        manager = LockManager(client_type="memory")
        assert isinstance(manager.client, MemoryCoordinationClient)
        assert manager.root == zklock.constants.LOCK_ROOT


# ============================================================================
# Test ZooKeeperClient
# ============================================================================

class TestZooKeeperClient:
    """Tests for the kazoo adapter."""

    def test_listener_registered(self, zk_client, kazoo_client):
        kazoo_client.add_listener.assert_called_once_with(zk_client._on_state_change)

    def test_state_change_logging(self, zk_client):
        """Test that connection state changes are logged, loss as a warning."""
        with patch("zklock.core.coordination.zookeeper.logger") as logger:
            zk_client._on_state_change(KazooState.SUSPENDED)
            zk_client._on_state_change(KazooState.LOST)
        logger.debug.assert_called_once()
        logger.warning.assert_called_once()

    def test_start_and_close(self, zk_client, kazoo_client):
        """Test session lifecycle."""
        zk_client.start()
        zk_client.start()
        kazoo_client.start.assert_called_once_with(timeout=2)
        assert zk_client.started

        zk_client.close()
        zk_client.close()
        kazoo_client.stop.assert_called_once()
        kazoo_client.close.assert_called_once()
        assert not zk_client.started

    def test_start_timeout(self, zk_client, kazoo_client):
        """Test that a connection timeout becomes ConnectionLostError."""
        kazoo_client.start.side_effect = KazooTimeoutError("Connection time-out")
        with pytest.raises(ConnectionLostError):
            zk_client.start()
        assert not zk_client.started

    def test_ensure_node(self, zk_client, kazoo_client):
        zk_client.ensure_node("/service/x")
        kazoo_client.ensure_path.assert_called_once_with("/service/x")

    def test_create_sequential_ephemeral(self, zk_client, kazoo_client):
        """Test that only the child name of the created node is returned."""
        kazoo_client.create.return_value = "/service/x/lock0000000003"

        assert zk_client.create_sequential_ephemeral("/service/x") == "lock0000000003"
        kazoo_client.create.assert_called_once_with("/service/x/lock", b"", ephemeral=True, sequence=True)

    @pytest.mark.parametrize(
        "kazoo_error, expected",
        [
            (kazoo_exceptions.NoNodeError(), NoNodeError),
            (kazoo_exceptions.NodeExistsError(), NodeExistsError),
            (kazoo_exceptions.ConnectionLoss(), ConnectionLostError),
            (kazoo_exceptions.SessionExpiredError(), ConnectionLostError),
        ],
    )
    def test_error_translation(self, zk_client, kazoo_client, kazoo_error, expected):
        """Test that kazoo errors never leak out of the adapter."""
        kazoo_client.create.side_effect = kazoo_error
        with pytest.raises(expected) as excinfo:
            zk_client.create_sequential_ephemeral("/service/x")
        assert excinfo.value.path == "/service/x"

    def test_list_children(self, zk_client, kazoo_client):
        kazoo_client.get_children.return_value = ["lock0000000001", "lock0000000000"]
        assert zk_client.list_children("/service/x") == ["lock0000000001", "lock0000000000"]

    def test_delete_not_empty(self, zk_client, kazoo_client):
        kazoo_client.delete.side_effect = kazoo_exceptions.NotEmptyError()
        with pytest.raises(NotEmptyError):
            zk_client.delete("/service/x")

    def test_exists(self, zk_client, kazoo_client):
        kazoo_client.exists.return_value = None
        assert not zk_client.exists("/service/x")
        kazoo_client.exists.return_value = MagicMock()
        assert zk_client.exists("/service/x")

    def test_watch_deletion_fires_on_delete_only(self, zk_client, kazoo_client):
        """Test that only deletion events reach the callback."""
        callback = MagicMock()

        assert zk_client.watch_deletion("/service/x/lock0000000000", callback)
        watcher = kazoo_client.get.call_args.kwargs["watch"]

        watcher(SimpleNamespace(type=EventType.CHANGED))
        callback.assert_not_called()
        watcher(SimpleNamespace(type=EventType.DELETED))
        callback.assert_called_once_with()

    def test_watch_deletion_session_expired(self, zk_client, kazoo_client):
        """Test that a watch dropped by session expiry is reported as lost, not as a deletion."""
        callback = MagicMock()
        on_lost = MagicMock()

        zk_client.watch_deletion("/service/x/lock0000000000", callback, on_lost=on_lost)
        watcher = kazoo_client.get.call_args.kwargs["watch"]
        watcher(SimpleNamespace(type=EventType.NONE, state=KeeperState.EXPIRED_SESSION))

        callback.assert_not_called()
        on_lost.assert_called_once_with()

    def test_waiter_fails_when_session_expires(self, zk_client, kazoo_client):
        """Test that a queued acquire raises LockLost as soon as kazoo drops its watches."""
        kazoo_client.create.return_value = "/service/x/lock0000000001"
        kazoo_client.get_children.return_value = ["lock0000000000", "lock0000000001"]
        watchers = []
        registered = threading.Event()

        def get(path, watch=None):
            watchers.append(watch)
            if len(watchers) == 2:
                registered.set()
            return b"", MagicMock()

        kazoo_client.get.side_effect = get
        protocol = SequenceLockProtocol(zk_client, root="/service")
        errors = []

        def waiter():
            try:
                protocol.acquire("x", timeout=5, owner="me")
            except LockLost as e:
                errors.append(e)

        thread = threading.Thread(target=waiter)
        thread.start()
        assert registered.wait(5)

        for watcher in watchers:
            watcher(SimpleNamespace(type=EventType.NONE, state=KeeperState.EXPIRED_SESSION))
        thread.join(5)

        assert not thread.is_alive()
        assert len(errors) == 1
        assert errors[0].node == "lock0000000001"

    def test_watch_deletion_on_missing_node(self, zk_client, kazoo_client):
        """Test that a node gone at registration is reported instead of hanging."""
        kazoo_client.get.side_effect = kazoo_exceptions.NoNodeError()
        assert not zk_client.watch_deletion("/service/x/lock0000000000", MagicMock())

    def test_watch_deletion_connection_loss(self, zk_client, kazoo_client):
        kazoo_client.get.side_effect = kazoo_exceptions.ConnectionLoss()
        with pytest.raises(ConnectionLostError):
            zk_client.watch_deletion("/service/x/lock0000000000", MagicMock())


# ============================================================================
# Test against a live ZooKeeper
# ============================================================================

class TestLiveZooKeeper:
    """Round trips against a real server."""

    def test_acquire_release(self, live_manager):
        manager = live_manager()
        manager.lock_acquire("x", timeout=5)
        assert manager.held_keys() == ["x"]
        manager.lock_release("x")
        assert manager.held_keys() == []

    def test_contention_between_sessions(self, live_manager):
        """Test that a second session waits for the first one and times out."""
        first = live_manager()
        second = live_manager()

        first.lock_acquire("x", timeout=5)
        with pytest.raises(LockTimeout):
            second.lock_acquire("x", timeout=0.2)
        second.lock_release("x")
        first.lock_release("x")

        second.lock_acquire("x", timeout=5)
        second.lock_release("x")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
