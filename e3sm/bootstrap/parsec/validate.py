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
"""Check a parsed config against its spec and convert the values.

Every section and setting must be defined by the spec. Raw string values
are converted according to the setting's value type (``vdr``).
"""

import re
from typing import Callable, Dict, List, Optional

from packaging.version import InvalidVersion, Version

from e3sm.bootstrap.parsec.exceptions import (
    IllegalItemError,
    IllegalValueError,
)


class ParsecValidator:
    """Convert global.conf values from strings.

    Attributes:
        coercers:
            Map of value type to the method which converts it.

    """

    # a whole value in matching quotes, optionally followed by a comment
    _REC_QUOTED = re.compile(r'''^(['"])(.*?)\1\s*(?:#.*)?$''')

    V_INTEGER = 'V_INTEGER'
    V_STRING = 'V_STRING'
    V_SPACELESS_STRING_LIST = 'V_SPACELESS_STRING_LIST'

    def __init__(self):
        self.coercers: Dict[str, Callable] = {
            self.V_INTEGER: self.coerce_int,
            self.V_STRING: self.coerce_str,
            self.V_SPACELESS_STRING_LIST: self.coerce_spaceless_str_list,
        }

    def validate(self, cfg: dict, spec, keys: Optional[List[str]] = None):
        """Check cfg against spec, converting values in place.

        Raises:
            IllegalItemError: For names the spec does not define.
            IllegalValueError: For values of the wrong type.

        """
        keys = keys or []
        for key, value in cfg.items():
            if key not in spec:
                raise IllegalItemError(keys, key)
            node = spec[key]
            if isinstance(value, dict):
                if node.is_leaf():
                    raise IllegalItemError(
                        keys, key,
                        f'"{key}" should be a setting not a [section]',
                    )
                self.validate(value, node, keys + [key])
            elif not node.is_leaf():
                raise IllegalItemError(
                    keys, key, f'"{key}" should be a [section] not a setting'
                )
            elif value is not None:
                cfg[key] = self.coercers[node.vdr](value, keys, key)

    __call__ = validate

    @classmethod
    def strip_and_unquote(cls, keys: List[str], key: str, value: str) -> str:
        """Remove quotes or a trailing comment.

        Examples:
            >>> ParsecValidator.strip_and_unquote([], 'x', '"gnu11"  # gcc')
            'gnu11'
            >>> ParsecValidator.strip_and_unquote([], 'x', ' clang # cc ')
            'clang'

        """
        value = value.strip()
        match = cls._REC_QUOTED.match(value)
        if match:
            return match[2]
        if value.startswith(('"', "'")):
            raise IllegalValueError(
                'string', keys, key, value, msg='unclosed quote')
        return value.split('#', 1)[0].strip()

    @classmethod
    def coerce_str(cls, value: str, keys: List[str], key: str) -> str:
        return cls.strip_and_unquote(keys, key, value)

    @classmethod
    def coerce_int(
        cls, value: str, keys: List[str], key: str
    ) -> Optional[int]:
        """Convert to an integer, blank means unset.

        Examples:
            >>> ParsecValidator.coerce_int('8', [], 'make jobs')
            8
            >>> ParsecValidator.coerce_int('', [], 'make jobs')

        """
        value = cls.strip_and_unquote(keys, key, value)
        if not value:
            return None
        try:
            return int(value)
        except ValueError:
            raise IllegalValueError('integer', keys, key, value) from None

    @classmethod
    def coerce_spaceless_str_list(
        cls, value: str, keys: List[str], key: str
    ) -> List[str]:
        """Split a comma separated list, items cannot contain spaces.

        Examples:
            >>> ParsecValidator.coerce_spaceless_str_list(
            ...     '--enable-cxx, "--disable-dap",', [], 'configure options')
            ['--enable-cxx', '--disable-dap']

        """
        items = []
        for item in value.split('#', 1)[0].split(','):
            item = cls.strip_and_unquote(keys, key, item)
            if not item:
                continue
            if ' ' in item:
                raise IllegalValueError(
                    'spaceless list', keys, key, value,
                    msg=f'list item "{item}" cannot contain a space character'
                )
            items.append(item)
        return items


def parsec_validate(cfg_root: dict, spec_root) -> None:
    ParsecValidator().validate(cfg_root, spec_root)


class BootstrapConfigValidator(ParsecValidator):
    """Adds the package version type used by [install]."""

    V_VERSION = 'V_VERSION'

    def __init__(self):
        super().__init__()
        self.coercers[self.V_VERSION] = self.coerce_version

    @classmethod
    def coerce_version(
        cls, value: str, keys: List[str], key: str
    ) -> Optional[Version]:
        """Convert to a packaging Version, blank means unset.

        Examples:
            >>> BootstrapConfigValidator.coerce_version('4.9.3', [], 'v')
            <Version('4.9.3')>

        """
        value = cls.strip_and_unquote(keys, key, value)
        if not value:
            return None
        try:
            return Version(value)
        except InvalidVersion as exc:
            raise IllegalValueError(
                'version', keys, key, value, msg=str(exc)) from None


def bootstrap_config_validate(cfg_root: dict, spec_root) -> None:
    BootstrapConfigValidator().validate(cfg_root, spec_root)
