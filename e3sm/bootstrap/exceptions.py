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
"""Exceptions for "expected" errors."""

from typing import (
    TYPE_CHECKING,
    Iterable,
    Optional,
    Sequence,
    Union,
)

from e3sm.bootstrap.util import format_cmd


if TYPE_CHECKING:
    from e3sm.bootstrap.subprocctx import SubProcContext


class BootstrapError(Exception):
    """Generic exception for e3sm-bootstrap errors.

    This exception is raised in-place of "expected" errors where a short
    message to the user is more appropriate than traceback.

    CLI commands will catch this exception and exit with str(exception).
    """


class InputError(BootstrapError):
    """Exception covering erroneous user input to a CLI command.

    Ideally this would be handled in the interface (e.g. argument parser).
    If this isn't possible raise InputError.

    """


class BootstrapConfigError(BootstrapError):
    """Generic exception to handle an error in a configuration file."""


class GlobalConfigError(BootstrapConfigError):
    """Exception for configuration errors in the global configuration."""


class PrerequisiteError(BootstrapError):
    """A tool or directory required before building is not available.

    Args:
        message: What is missing.
        hint: How to obtain it.

    """

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        self.message = message
        self.hint = hint

    def __str__(self) -> str:
        if self.hint:
            return f'{self.message}\n{self.hint}'
        return self.message


class MissingCompilersError(BootstrapError):
    """One or more compilers could not be located."""

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing = list(missing)

    def __str__(self) -> str:
        return 'Missing compilers: ' + ' '.join(self.missing)


class DownloadError(BootstrapError):
    """A source tarball could not be fetched or unpacked."""

    def __init__(self, url: str, exc: Union[str, Exception]) -> None:
        self.url = url
        self.exc = exc

    def __str__(self) -> str:
        return f'Could not download {self.url}\n{self.exc}'


class InstallError(BootstrapError):
    """Installed libraries failed verification."""


class CaseError(BootstrapError):
    """Exception for errors setting up an E3SM case."""


class CommandFailedError(BootstrapError):
    """An external command (configure, make, CIME tool) returned non-zero.

    Args:
        message:
            Short description of the step which failed.
        ctx:
            The subprocess context (provides cmd, ret_code, out, err).
        cmd:
            The command which was run (if ctx is not provided).
        ret_code:
            The command's return code.
        out:
            The command's captured stdout.
        err:
            The command's captured stderr.

    """

    def __init__(
        self,
        message: str,
        *,
        ctx: 'Optional[SubProcContext]' = None,
        cmd: Union[str, Sequence[str], None] = None,
        ret_code: Optional[int] = None,
        out: Optional[str] = None,
        err: Optional[str] = None
    ) -> None:
        self.msg = message
        if ctx:
            self.cmd = ctx.cmd
            self.ret_code = ctx.ret_code
            self.out = ctx.out
            self.err = ctx.err
        else:
            self.cmd = cmd
            self.ret_code = ret_code
            self.out = out
            self.err = err
        # convert the cmd object to a str if needed
        if self.cmd and not isinstance(self.cmd, str):
            self.cmd = format_cmd(self.cmd)

    def __str__(self):
        ret = f'{self.msg}'
        for label, item in [
            ('COMMAND', self.cmd),
            ('RETURN CODE', self.ret_code),
            ('STDOUT', self.out),
            ('STDERR', self.err)
        ]:
            if item is not None:
                ret += f'\n{label}:'
                for line in str(item).splitlines():
                    ret += f"\n    {line}"
        return ret
