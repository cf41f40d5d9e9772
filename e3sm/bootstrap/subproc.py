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
"""Run external commands (configure, make, CIME tools, probes)."""

import shutil
from subprocess import DEVNULL, PIPE, Popen  # nosec
from typing import List, Optional

from e3sm.bootstrap import LOG
from e3sm.bootstrap.exceptions import CommandFailedError
from e3sm.bootstrap.subprocctx import SubProcContext
from e3sm.bootstrap.util import format_cmd


def run_cmd(
    ctx: SubProcContext,
    capture: bool = False,
    check: bool = True,
    message: Optional[str] = None,
) -> SubProcContext:
    """Execute the command in ctx and record its exit status.

    Arguments:
        ctx:
            A context object containing the command to run and its status.
        capture:
            If True, capture stdout/stderr into ctx.out/ctx.err, else let
            the command write straight to the terminal (used for builds).
        check:
            If True raise CommandFailedError if the command fails.
        message:
            Error message used if the command fails.

    Raises:
        CommandFailedError

    """
    LOG.debug(
        f'running command{" in " + ctx.cwd if ctx.cwd else ""}:'
        f'\n$ {format_cmd(ctx.cmd)}'
    )
    stdout = PIPE if capture else None
    stderr = PIPE if capture else None
    try:
        # subprocess call - commands are built from config, not user input
        proc = Popen(  # nosec
            ctx.cmd,
            stdin=DEVNULL,
            stdout=stdout,
            stderr=stderr,
            cwd=ctx.cwd,
            env=ctx.env,
            text=True,
        )
    except OSError as exc:
        if exc.filename is None:
            exc.filename = ctx.cmd[0]
        ctx.ret_code = 1
        ctx.err = str(exc)
    else:
        out, err = proc.communicate()
        ctx.ret_code = proc.wait()
        if capture:
            ctx.out, ctx.err = out, err
    LOG.debug(ctx)
    if check and ctx.ret_code:
        raise CommandFailedError(
            message or f'{ctx.cmd_key} failed', ctx=ctx)
    return ctx


def get_output(
    cmd: List[str], cwd: Optional[str] = None
) -> Optional[str]:
    """Return the stripped stdout of a command, or None if it fails.

    Used to probe tools for information (versions, git settings).
    """
    ctx = run_cmd(
        SubProcContext(cmd[0], cmd, cwd=cwd), capture=True, check=False)
    if ctx.ret_code:
        return None
    return (ctx.out or '').strip()


def which(name: str, path: Optional[str] = None) -> Optional[str]:
    """Return the full path of an executable on PATH, or None.

    Equivalent to ``command -v``.
    """
    return shutil.which(name, path=path)
