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
"""Errors raised while reading or querying global.conf."""

from typing import List, Optional

from e3sm.bootstrap.parsec.util import itemstr


class ParsecError(Exception):
    """Base class for configuration errors."""


class ItemNotFoundError(ParsecError, KeyError):
    """A valid setting which has no value (sparse lookups only)."""

    def __init__(self, item: str):
        self.item = item

    def __str__(self):
        return f'You have not set "{self.item}" in this config.'


class InvalidConfigError(ParsecError, KeyError):
    """A setting or section which the config does not define."""

    def __init__(self, item: str, specname: str):
        self.item = item
        self.specname = specname

    def __str__(self):
        return (
            f'"{self.item}" is not a valid configuration for'
            f' {self.specname}.'
        )


class NotSingleItemError(ParsecError, TypeError):
    """A section was requested where a single value was expected."""

    def __init__(self, item: str):
        self.item = item

    def __str__(self):
        return f'Not a singular item: {self.item}'


class FileParseError(ParsecError):
    """A config file could not be read.

    Args:
        reason:
            What went wrong.
        fpath:
            The file.
        line_num:
            Line number, counting from 1.
        line:
            The offending line.

    """

    def __init__(
        self,
        reason: str,
        fpath: Optional[str] = None,
        line_num: Optional[int] = None,
        line: Optional[str] = None,
    ):
        self.reason = reason
        self.fpath = fpath
        self.line_num = line_num
        self.line = line

    def __str__(self):
        where: List[str] = []
        if self.fpath:
            where.append(f'in {self.fpath}')
        if self.line_num is not None:
            where.append(f'line {self.line_num}')
        msg = self.reason
        if where:
            msg += f' ({" ".join(where)})'
        if self.line:
            msg += f':\n   {self.line.strip()}'
        return msg


class Jinja2Error(FileParseError):
    """Rendering a "#!jinja2" config failed."""

    def __init__(
        self,
        exc: Exception,
        fpath: Optional[str] = None,
        line_num: Optional[int] = None,
    ):
        super().__init__(
            f'{type(exc).__name__}: {exc}',
            fpath=fpath,
            line_num=line_num,
        )


class ValidationError(ParsecError):
    """Base class for settings which do not match the config spec.

    Args:
        keys:
            The sections leading to the problem item.
        key:
            The item name.
        value:
            The raw value, for bad values.
        msg:
            Extra detail.

    """

    def __init__(
        self,
        keys: List[str],
        key: str,
        value: Optional[str] = None,
        msg: Optional[str] = None,
    ):
        self.keys = keys
        self.key = key
        self.value = value
        self.msg = msg

    def __str__(self):
        msg = itemstr(self.keys, self.key, self.value)
        if self.msg:
            msg += f' - ({self.msg})'
        return msg


class IllegalItemError(ValidationError):
    """A section or setting name which the spec does not define."""

    def __init__(self, keys: List[str], key: str, msg: Optional[str] = None):
        super().__init__(keys, key, msg=msg)


class IllegalValueError(ValidationError):
    """A value which cannot be converted to the setting's type.

    Args:
        vtype:
            Short name of the expected type (e.g. "integer").

    """

    def __init__(
        self,
        vtype: str,
        keys: List[str],
        key: str,
        value: str,
        msg: Optional[str] = None,
    ):
        self.vtype = vtype
        super().__init__(keys, key, value=value, msg=msg)

    def __str__(self):
        return f'(type={self.vtype}) {super().__str__()}'
