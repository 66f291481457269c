# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import os

from setuptools import find_packages, setup


project_name = "zklock"
this_directory = os.path.abspath(os.path.dirname(__file__))


def read_version():
    """Function to read __version__ from the package without importing it."""
    with open(os.path.join(this_directory, project_name, "__init__.py"), encoding="utf-8") as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip('"')
    raise RuntimeError("Unable to find __version__")


setup(
    name=project_name,
    version=read_version(),
    description="Fair distributed locks on ZooKeeper ephemeral sequential nodes.",
    license="MPL-2.0",
    python_requires=">=3.8",
    packages=find_packages(include=[project_name, f"{project_name}.*"]),
    install_requires=[
        "kazoo>=2.9",
    ],
    extras_require={
        "test": [
            "pytest>=7",
        ],
    },
)
