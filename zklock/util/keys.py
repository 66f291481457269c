# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import posixpath
import re
from typing import Iterable, List
from urllib.parse import quote, unquote

_SEQUENCE_SUFFIX = re.compile(r"(\d+)$")


def encode_key(key: str) -> str:
    """Turn an arbitrary lock key into a single legal node name.

    Example:
        >>> encode_key("orders/42")
        'orders%2F42'
    """
    name = quote(key, safe="")
    if name in (".", ".."):
        name = name.replace(".", "%2E")
    return name


def decode_key(name: str) -> str:
    return unquote(name)


def get_namespace_path(root: str, key: str) -> str:
    return posixpath.join(root, encode_key(key))


def get_node_path(namespace_path: str, node: str) -> str:
    return posixpath.join(namespace_path, node)


def sequence_number(node: str) -> int:
    """Store-assigned sequence of a child name, ``lock0000000007`` -> ``7``."""
    match = _SEQUENCE_SUFFIX.search(node)
    if match is None:
        raise ValueError(f"'{node}' is not a sequential node name")
    return int(match.group(1))


def sort_contenders(children: Iterable[str]) -> List[str]:
    """Order the children of a lock namespace by sequence, skipping foreign names."""
    contenders = [child for child in children if _SEQUENCE_SUFFIX.search(child)]
    return sorted(contenders, key=sequence_number)
