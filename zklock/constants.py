# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import os

# Connection
ZK_HOSTS = os.getenv("ZKLOCK_HOSTS", "127.0.0.1:2181")
ZK_SESSION_TIMEOUT = float(os.getenv("ZKLOCK_SESSION_TIMEOUT", "30"))  # seconds
ZK_CONNECT_TIMEOUT = float(os.getenv("ZKLOCK_CONNECT_TIMEOUT", "15"))  # seconds
CLIENT_TYPE = os.getenv("ZKLOCK_CLIENT_TYPE", "zookeeper")

# Node layout: <LOCK_ROOT>/<encoded key>/<LOCK_NODE_PREFIX><sequence>
LOCK_ROOT = os.getenv("ZKLOCK_ROOT", "/service")
LOCK_NODE_PREFIX = "lock"
SEQUENCE_DIGITS = 10

# Acquisition
DEFAULT_LOCK_TIMEOUT = float(os.getenv("ZKLOCK_DEFAULT_TIMEOUT", "15"))  # seconds
WATCH_RETRY_TIMES = 3
NAMESPACE_RETRY_TIMES = 1
