# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

from typing import Optional


class LockError(Exception):
    """Base class of every error the lock API raises to its callers."""


class UsageError(LockError, ValueError):
    def __init__(self, message: str = "Invalid use of the lock API."):
        super().__init__(message)


class LockTimeout(LockError):
    def __init__(self, key: str, timeout: float):
        self.key = key
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout}s waiting for lock '{key}'.")


class LockLost(LockError):
    def __init__(self, key: str, node: Optional[str] = None, reason: str = "sequence node vanished"):
        self.key = key
        self.node = node
        self.reason = reason
        super().__init__(f"Lost position for lock '{key}' (node={node}): {reason}.")


class WatchEstablishFailed(LockError):
    def __init__(self, key: str, attempts: int, reason: Optional[str] = None):
        self.key = key
        self.attempts = attempts
        message = f"Could not establish the wait for lock '{key}' after {attempts} attempt(s)"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message + ".")


class CoordinationError(Exception):
    """Store-level failure raised by a coordination client."""

    def __init__(self, path: Optional[str] = None, message: Optional[str] = None):
        self.path = path
        if message is None:
            message = f"{self.__class__.__name__} at {path}" if path else self.__class__.__name__
        super().__init__(message)


class NoNodeError(CoordinationError):
    pass


class NodeExistsError(CoordinationError):
    pass


class NotEmptyError(CoordinationError):
    pass


class ConnectionLostError(CoordinationError):
    pass
