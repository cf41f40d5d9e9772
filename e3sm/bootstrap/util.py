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
"""Misc functionality."""

import os
from typing import (
    Dict,
    Iterable,
    Optional,
    Sequence,
)


def format_cmd(cmd: Sequence[str], maxlen: int = 60) -> str:
    r"""Convert a shell command list to a user-friendly representation.

    Examples:
        >>> format_cmd(['make', '-j8'])
        'make -j8'
        >>> format_cmd(['make', '-j8', 'install'], 5)
        'make \\ \n    -j8 \\ \n    install'

    """
    ret = []
    line = cmd[0]
    for part in cmd[1:]:
        if line and (len(line) + len(part) + 3) > maxlen:
            ret.append(line)
            line = part
        else:
            line += f' {part}'
    if line:
        ret.append(line)
    return ' \\ \n    '.join(ret)


def prepend_path(
    value: str,
    existing: Optional[str],
    sep: str = os.pathsep,
) -> str:
    """Prepend a directory to a search path, skipping duplicates.

    Examples:
        >>> prepend_path('/a/bin', '/usr/bin:/bin')
        '/a/bin:/usr/bin:/bin'
        >>> prepend_path('/a/bin', None)
        '/a/bin'
        >>> prepend_path('/a/bin', '/a/bin:/usr/bin')
        '/a/bin:/usr/bin'

    """
    items = [item for item in (existing or '').split(sep) if item]
    if value in items:
        items.remove(value)
    return sep.join([value, *items])


def prepend_env_paths(
    env: Dict[str, str],
    paths: Dict[str, Iterable[str]],
) -> Dict[str, str]:
    """Prepend directories onto path-type variables in an environment.

    Args:
        env: The environment to update (modified in place).
        paths: {variable: [directory, ...]}

    Examples:
        >>> env = {'PATH': '/bin'}
        >>> prepend_env_paths(env, {'PATH': ['/x/bin'], 'LIBS': ['/x/lib']})
        {'PATH': '/x/bin:/bin', 'LIBS': '/x/lib'}

    """
    for key, dirs in paths.items():
        for dir_ in dirs:
            env[key] = prepend_path(dir_, env.get(key))
    return env
