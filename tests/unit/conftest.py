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

import os
from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import Mock

import pytest

from e3sm.bootstrap.subprocctx import SubProcContext


@pytest.fixture
def monkeymock(monkeypatch: pytest.MonkeyPatch):
    """Fixture that patches a function/attr with a Mock and returns that Mock.

    Args:
        pypath: The Python-style import path to be patched.
        **kwargs: Any kwargs to set on the Mock.

    Example:
        mock_run = monkeymock('e3sm.bootstrap.install.run_cmd')
        something()  # calls install.run_cmd
        assert mock_run.called is True
    """
    def _monkeymock(pypath: str, **kwargs: Any) -> Mock:
        _mock = Mock(**kwargs)
        monkeypatch.setattr(pypath, _mock)
        return _mock
    return _monkeymock


@pytest.fixture
def mock_run_cmd(monkeypatch: pytest.MonkeyPatch):
    """Replace run_cmd in a module with a stub which records the contexts.

    Args:
        pypath: The run_cmd to replace, e.g. `e3sm.bootstrap.case.run_cmd`.
        ret_codes: {cmd_key: ret_code} for commands which should fail.

    Returns:
        List of the SubProcContext objects "run".

    """
    def _mock_run_cmd(
        pypath: str, ret_codes: Dict[str, int] | None = None
    ) -> List[SubProcContext]:
        from e3sm.bootstrap.exceptions import CommandFailedError
        calls: List[SubProcContext] = []

        def _run_cmd(ctx, capture=False, check=True, message=None):
            calls.append(ctx)
            ctx.ret_code = (ret_codes or {}).get(ctx.cmd_key, 0)
            if check and ctx.ret_code:
                raise CommandFailedError(
                    message or f'{ctx.cmd_key} failed', ctx=ctx)
            return ctx

        monkeypatch.setattr(pypath, _run_cmd)
        return calls

    return _mock_run_cmd


@pytest.fixture
def prefix(tmp_path: Path) -> Path:
    """An empty installation prefix."""
    path = tmp_path / 'prefix'
    (path / 'bin').mkdir(parents=True)
    return path


@pytest.fixture
def make_executable():
    """Create an executable file (e.g. a fake compiler)."""
    def _make_executable(path: Path, content: str = '#!/bin/sh\n') -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        os.chmod(path, 0o755)
        return path
    return _make_executable


@pytest.fixture
def stdinput(monkeypatch):
    """Simulate lines of user input to prompts.

    Exception instances in the lines are raised instead, e.g. EOFError() for
    Ctrl+D.
    """
    def _input(*lines):
        lines = list(lines)

        def __input(_message):
            nonlocal lines
            try:
                line = lines.pop(0)
            except IndexError:
                raise Exception('stdinput ran out of lines') from None
            if isinstance(line, BaseException):
                raise line
            return line

        monkeypatch.setattr(
            'e3sm.bootstrap.terminal.input',
            __input,
        )

    return _input

