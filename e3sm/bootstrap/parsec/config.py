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
"""The config spec and the loaded config.

A spec is declared as a tree of ConfigNodes. A ParsecConfig loads files
against the spec, keeping what the files set (sparse) apart from the
full config with defaults filled in (dense).
"""

import re
from textwrap import dedent
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from e3sm.bootstrap.parsec.exceptions import (
    InvalidConfigError,
    ItemNotFoundError,
    NotSingleItemError,
)
from e3sm.bootstrap.parsec.fileparse import parse
from e3sm.bootstrap.parsec.util import itemstr, merge, printcfg
from e3sm.bootstrap.parsec.validate import (
    ParsecValidator as VDR,
    parsec_validate,
)


class ConfigNode:
    """A section or setting of a config spec.

    Nodes created inside the ``with`` block of a section belong to it.

    Attributes:
        vdr:
            The value type of a setting (see ParsecValidator).
        default:
            The value of a setting which has not been configured.
        desc:
            Description, dedented and stripped.

    Examples:
        >>> with ConfigNode('global.conf') as conf:
        ...     with ConfigNode('install'):
        ...         prefix = ConfigNode('prefix', default='~/local/gcc11')
        ...         with ConfigNode('compilers'):
        ...             pass
        >>> prefix
        global.conf[install]prefix
        >>> conf.get('install', 'prefix') is prefix
        True
        >>> [node.name for node in conf['install']]
        ['prefix', 'compilers']
        >>> conf['install']['compilers'].is_leaf()
        False

    """

    UNSET = '*value unset*'

    # sections whose with block is open, innermost last
    _OPEN: List['ConfigNode'] = []

    def __init__(
        self,
        name: str,
        vdr: str = VDR.V_STRING,
        default: object = UNSET,
        desc: Optional[str] = None,
    ):
        self.name = name
        self.vdr = vdr
        self.default = default
        self.desc = dedent(desc).strip() if desc else None
        self.parent: Optional['ConfigNode'] = None
        self._children: Optional[Dict[str, 'ConfigNode']] = None
        if self._OPEN:
            self._OPEN[-1]._add(self)

    def _add(self, node: 'ConfigNode') -> None:
        if self._children is None:
            self._children = {}
        self._children[node.name] = node
        node.parent = self

    def __enter__(self) -> 'ConfigNode':
        if self._children is None:
            self._children = {}
        self._OPEN.append(self)
        return self

    def __exit__(self, *args) -> None:
        self._OPEN.pop()

    def __iter__(self) -> Iterator['ConfigNode']:
        return iter((self._children or {}).values())

    def __contains__(self, name: str) -> bool:
        return name in (self._children or {})

    def __getitem__(self, name: str) -> 'ConfigNode':
        if self._children is None:
            raise TypeError(f'{self!r} is a setting not a section')
        return self._children[name]

    def get(self, *names: str) -> 'ConfigNode':
        """Return the node below this one given by names."""
        node = self
        for name in names:
            node = node[name]
        return node

    def is_leaf(self) -> bool:
        return self._children is None

    def parents(self) -> Iterator['ConfigNode']:
        node = self.parent
        while node:
            yield node
            node = node.parent

    def __repr__(self):
        names = [node.name for node in self.parents()][::-1]
        if not names:
            return self.name
        text = names[0] + ''.join(f'[{name}]' for name in names[1:])
        if self.is_leaf():
            return text + self.name
        return text + f'[{self.name}]'


class ParsecConfig:
    """A config loaded from file(s) and checked against a spec.

    Args:
        spec:
            The root ConfigNode.
        output_fname:
            Write the processed config file here (for debugging Jinja2).
        tvars:
            Jinja2 template variables.
        validator:
            Checks and converts the parsed values, defaults to
            parsec_validate.

    """

    def __init__(
        self,
        spec: ConfigNode,
        output_fname: Optional[str] = None,
        tvars: Optional[dict] = None,
        validator: Optional[Callable] = None,
    ):
        self.spec = spec
        self.output_fname = output_fname
        self.tvars = tvars
        self.validator = validator or parsec_validate
        self.sparse: dict = {}
        self.dense: dict = {}

    def loadcfg(self, rcfile, title: str = '') -> None:
        """Load a config file, its settings override any already loaded."""
        sparse = parse(str(rcfile), self.output_fname, self.tvars)
        self.validate(sparse)
        merge(self.sparse, sparse)

    def validate(self, sparse: dict) -> None:
        self.validator(sparse, self.spec)

    def expand(self) -> None:
        """Fill in the dense config from the spec defaults, once."""
        if not self.dense:
            dense = self._defaults(self.spec)
            merge(dense, self.sparse)
            self.dense = dense

    @classmethod
    def _defaults(cls, section: ConfigNode) -> dict:
        defaults: dict = {}
        for node in section:
            if not node.is_leaf():
                defaults[node.name] = cls._defaults(node)
            elif node.default == ConfigNode.UNSET:
                defaults[node.name] = (
                    [] if node.vdr.endswith('_LIST') else None)
            else:
                defaults[node.name] = node.default
        return defaults

    def get(self, keys: Optional[Iterable[str]] = None, sparse: bool = False):
        """Return a setting or section given by its keys.

        E.G. ``['install', 'hdf5', 'version']`` for
        ``[install][hdf5]version``.

        Raises:
            InvalidConfigError: If the spec does not define the keys.
            ItemNotFoundError: If sparse and the keys are not configured.

        """
        if sparse:
            cfg = self.sparse
        else:
            self.expand()
            cfg = self.dense
        node = self.spec
        parents: List[str] = []
        for key in keys or []:
            if key not in node:
                raise InvalidConfigError(itemstr(parents, key), self.spec.name)
            node = node[key]
            try:
                cfg = cfg[key]
            except KeyError:
                if node.is_leaf():
                    raise ItemNotFoundError(itemstr(parents, key)) from None
                raise ItemNotFoundError(itemstr([*parents, key])) from None
            parents.append(key)
        return cfg

    def idump(
        self,
        items: Optional[List[str]] = None,
        sparse: bool = False,
        prefix: str = '',
        oneline: bool = False,
        none_str: str = '',
        handle=None,
    ) -> None:
        """Print settings or sections given as e.g. ``[install][hdf5]``.

        With oneline, print the values of single settings space separated
        on one line, unset values are printed as none_str or "None".
        """
        all_keys = [_split_item(item) for item in items or []] or [[]]
        if oneline:
            values = []
            for keys in all_keys:
                value = self.get(keys, sparse)
                if isinstance(value, (dict, list)):
                    raise NotSingleItemError(itemstr(keys))
                if value is None or value == '':
                    value = none_str or 'None'
                values.append(str(value))
            print(prefix + ' '.join(values), file=handle)
            return
        for keys in all_keys:
            printcfg(
                self.get(keys, sparse),
                level=len(keys),
                prefix=prefix,
                none_str=none_str,
                handle=handle,
            )


def _split_item(item: str) -> List[str]:
    """Return the keys of a setting or section.

    Examples:
        >>> _split_item('[install][hdf5]version')
        ['install', 'hdf5', 'version']
        >>> _split_item('[install][compilers]')
        ['install', 'compilers']
        >>> _split_item('cime')
        ['cime']

    """
    return [key for key in re.split(r'[\[\]]+', item) if key]
