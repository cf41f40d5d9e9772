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
"""Read global.conf files into nested dicts.

A file whose first line is ``#!jinja2`` is rendered with Jinja2 before it
is parsed. Values are left as raw strings, they are converted by the
validator once their type is known from the spec.

.. code-block:: ini

   # comment
   [install]
       prefix = ~/local/gcc11
       [[hdf5]]
           configure options = --enable-threadsafe  # comment
"""

import os
import re
from typing import Any, Dict, List, Optional

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateSyntaxError,
)

from e3sm.bootstrap import LOG, __version__
from e3sm.bootstrap.parsec.exceptions import FileParseError, Jinja2Error
from e3sm.bootstrap.parsec.util import itemstr


_HEADING = re.compile(r'^\s*(\[+)\s*([^\[\]]+?)\s*(\]+)\s*(?:#.*)?$')
_KEY_VALUE = re.compile(r'^\s*([\w+\-. ]+?)\s*=\s*(.*?)\s*$')
_SKIP = re.compile(r'^\s*(?:#.*)?$')
_JINJA2_SHEBANG = re.compile(r'^#![jJ]inja2\s*$')


def jinja2environment(dir_: str) -> Environment:
    """Return the environment used to render #!jinja2 config files.

    Templates can {% include %} files from dir_ and read environment
    variables e.g. {{ environ['HOME'] }}.
    """
    # B701: autoescape is for HTML, this renders a config file
    env = Environment(  # nosec
        loader=FileSystemLoader(dir_),
        undefined=StrictUndefined,
    )
    env.globals['environ'] = os.environ
    return env


def jinja2process(
    fpath: str,
    lines: List[str],
    template_vars: Optional[Dict[str, Any]] = None,
) -> List[str]:
    """Render the lines of a #!jinja2 file, dropping the blank ones.

    Examples:
        >>> jinja2process(
        ...     'global.conf',
        ...     ['#!jinja2', '{% set v = "1.14.5" %}', 'version = {{ v }}'],
        ... )
        ['version = 1.14.5']

    """
    env = jinja2environment(os.path.dirname(fpath) or os.curdir)
    try:
        text = env.from_string('\n'.join(lines[1:])).render(
            template_vars or {})
    except TemplateSyntaxError as exc:
        # +1 for the shebang which is not part of the template
        raise Jinja2Error(
            exc, fpath, exc.lineno + 1 if exc.lineno else None
        ) from None
    except Exception as exc:
        raise Jinja2Error(exc, fpath) from None
    return [line for line in text.splitlines() if line.strip()]


def read_and_proc(
    fpath: str, template_vars: Optional[Dict[str, Any]] = None
) -> List[str]:
    """Return the lines of a config file, rendered with Jinja2 if needed."""
    LOG.debug(f'Reading file {fpath}')
    with open(fpath) as handle:
        lines = [line.rstrip() for line in handle]
    if lines and _JINJA2_SHEBANG.match(lines[0]):
        LOG.debug('Processing with Jinja2')
        lines = jinja2process(
            fpath,
            lines,
            {**(template_vars or {}), 'E3SM_BOOTSTRAP_VERSION': __version__},
        )
    return lines


def parse(
    fpath: str,
    output_fname: Optional[str] = None,
    template_vars: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Parse a config file into a nested dict of raw values.

    Args:
        fpath:
            The config file.
        output_fname:
            If set, the processed (e.g. Jinja2 rendered) lines are written
            to this file.
        template_vars:
            Extra Jinja2 template variables.

    Raises:
        FileParseError

    """
    lines = read_and_proc(fpath, template_vars)
    if output_fname:
        with open(output_fname, 'w') as handle:
            handle.write('\n'.join(lines) + '\n')
        LOG.debug(f'Processed configuration dumped: {output_fname}')

    config: Dict[str, Any] = {}
    parents: List[str] = []
    for line_num, line in enumerate(lines, start=1):
        if _SKIP.match(line):
            continue

        match = _HEADING.match(line)
        if match:
            opening, name, closing = match.groups()
            if len(opening) != len(closing):
                raise FileParseError(
                    'bracket mismatch', fpath, line_num, line)
            if len(opening) > len(parents) + 1:
                raise FileParseError(
                    f'{itemstr(parents)}{opening}{name}{closing}'
                    ' has no parent section',
                    fpath, line_num, line,
                )
            parents = parents[:len(opening) - 1] + [name]
            _get_section(config, parents, fpath, line_num, line)
            continue

        match = _KEY_VALUE.match(line)
        if not match:
            raise FileParseError('Invalid line', fpath, line_num, line)
        key, value = match.groups()
        section = _get_section(config, parents, fpath, line_num, line)
        if isinstance(section.get(key), dict):
            raise FileParseError(
                f'{itemstr(parents, key)} is already a section',
                fpath, line_num, line,
            )
        if key in section:
            LOG.debug(
                f'{itemstr(parents, key)} overridden:'
                f' {section[key]!r} -> {value!r}'
            )
        section[key] = value

    return config


def _get_section(config, parents, fpath, line_num, line):
    """Return the section given by parents, creating it if needed."""
    section = config
    for depth, name in enumerate(parents):
        section = section.setdefault(name, {})
        if not isinstance(section, dict):
            raise FileParseError(
                f'{itemstr(parents[:depth], name)} is already a setting',
                fpath, line_num, line,
            )
    return section
