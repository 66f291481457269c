# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import logging
import os

logger = logging.getLogger("zklock")
logger.addHandler(logging.NullHandler())

_level = os.getenv("ZKLOCK_LOG_LEVEL")
if _level:
    logger.setLevel(_level.upper())


def configure_logging(level=logging.INFO, fmt: str = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"):
    """Attach a stream handler to the package logger.

    Applications that already configure the root logger do not need this.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler
