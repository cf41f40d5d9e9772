# THIS FILE IS PART OF E3SM-BOOTSTRAP.
# Copyright (C) NIWA & British Crown (Met Office) & Contributors.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.
"""Information about the local system: cores, disk space, git identity."""

import os
from typing import Tuple

import psutil

from e3sm.bootstrap.subproc import get_output


DEFAULT_USER_NAME = 'Your Name'
DEFAULT_USER_EMAIL = 'your.email@example.com'
NO_GIT_HASH = 'nogit'

GIB = 1024 ** 3


def get_cpu_count() -> int:
    """Return the number of logical CPU cores (at least 1)."""
    return psutil.cpu_count(logical=True) or 1


def get_free_space_gb(path: str) -> float:
    """Return the free disk space in GiB on the filesystem containing path.

    If path does not exist yet the nearest existing parent is used.
    """
    path = os.path.abspath(path)
    while not os.path.exists(path):
        parent = os.path.dirname(path)
        if parent == path:
            break
        path = parent
    return psutil.disk_usage(path).free / GIB


def get_git_identity() -> Tuple[str, str]:
    """Return the git (user.name, user.email), with placeholder fallbacks."""
    name = get_output(['git', 'config', 'user.name'])
    email = get_output(['git', 'config', 'user.email'])
    return (name or DEFAULT_USER_NAME, email or DEFAULT_USER_EMAIL)


def get_git_hash(repo: str) -> str:
    """Return the abbreviated hash of the HEAD commit of a repository.

    Returns "nogit" if this is not a git repository.
    """
    return get_output(
        ['git', 'log', '-n', '1', '--format=%h'], cwd=repo
    ) or NO_GIT_HASH
