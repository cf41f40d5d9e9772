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
"""Helpers for printing and layering nested config dicts.

Sections are dicts, settings are simple values or lists of strings.
"""

import sys
from typing import Iterable, List, Optional, TextIO


def itemstr(
    parents: Optional[Iterable[str]] = None,
    item: Optional[str] = None,
    value: object = None,
) -> str:
    """Return the global.conf notation for a setting.

    Examples:
        >>> itemstr(['install', 'hdf5'], 'version', '1.14.5')
        '[install][hdf5]version = 1.14.5'
        >>> itemstr(['cime'], 'machine')
        '[cime]machine'
        >>> itemstr(['install', 'compilers'])
        '[install][compilers]'

    """
    text = ''.join(f'[{parent}]' for parent in parents or [])
    if item:
        text += item
    if value is not None:
        text += f' = {value}'
    return text


def listjoin(values: List[str], none_str: str = '') -> str:
    """Format a list setting the way it would be written in global.conf.

    Examples:
        >>> listjoin(['--enable-cxx', '--disable-dap'])
        '--enable-cxx, --disable-dap'
        >>> listjoin([], 'None')
        'None'

    """
    if not values:
        return none_str
    return ', '.join(str(value) for value in values)


def merge(target: dict, source: dict) -> None:
    """Copy source into target, source values win.

    Examples:
        >>> site = {'install': {'prefix': '/site', 'make jobs': 2}}
        >>> merge(site, {'install': {'prefix': '/user'}})
        >>> site
        {'install': {'prefix': '/user', 'make jobs': 2}}

    """
    for key, value in source.items():
        if isinstance(value, dict):
            merge(target.setdefault(key, {}), value)
        elif isinstance(value, list):
            target[key] = list(value)
        else:
            target[key] = value


def printcfg(
    cfg: object,
    level: int = 0,
    prefix: str = '',
    none_str: str = '',
    handle: Optional[TextIO] = None,
) -> None:
    """Write a setting or section out in global.conf format.

    Settings are written before sub-sections, each sub-section is indented
    four more spaces than its parent.

    Args:
        cfg:
            A value or (nested) dict, as returned by ParsecConfig.get.
        level:
            The nesting level of cfg, i.e. the number of brackets around
            its sub-section headings, less one.
        prefix:
            Written at the start of every line.
        none_str:
            Written for unset values.
        handle:
            Output stream, defaults to stdout.

    Examples:
        >>> printcfg({'prefix': '/opt', 'compilers': {'fc': None}},
        ...          none_str='None')
        prefix = /opt
        [compilers]
            fc = None

    """
    if handle is None:
        # looked up at call time so pytest capsys sees it
        handle = sys.stdout
    if not isinstance(cfg, dict):
        handle.write(f'{prefix}{_format_value(cfg, none_str)}\n')
        return
    _print_section(cfg, level, 0, prefix, none_str, handle)


def _print_section(cfg, level, depth, prefix, none_str, handle):
    indent = prefix + ' ' * 4 * depth
    sections = []
    for key, value in cfg.items():
        if isinstance(value, dict):
            sections.append((key, value))
        else:
            handle.write(
                f'{indent}{key} = {_format_value(value, none_str)}\n'
            )
    brackets = level + 1
    for key, value in sections:
        handle.write(f'{indent}{"[" * brackets}{key}{"]" * brackets}\n')
        _print_section(value, level + 1, depth + 1, prefix, none_str, handle)


def _format_value(value, none_str):
    if value is None:
        return none_str
    if isinstance(value, list):
        return listjoin(value, none_str)
    return str(value)
