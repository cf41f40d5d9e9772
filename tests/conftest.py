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

from pathlib import Path
import re
from typing import List, Optional, Tuple

import pytest

from e3sm.bootstrap import LOG
from e3sm.bootstrap.cfgspec.globalcfg import SPEC, GlobalConfig
from e3sm.bootstrap.parsec.validate import bootstrap_config_validate


@pytest.fixture
def mock_glbl_cfg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """A Pytest fixture for fiddling global config values.

    * Hacks the specified `glbl_cfg` object.
    * Can be called multiple times within a test function.

    Args:
        pypath (str):
            The python-like path to the global configuation object you want
            to fiddle.
            E.G. if you want to hack the `glbl_cfg` in
            `e3sm.bootstrap.install` you would provide
            `e3sm.bootstrap.install.glbl_cfg`
        global_config (str):
            The globlal configuration as a multi-line string.

    Example:
        Change the value of `make jobs` in the global config as seen from
        the `install` module.

        def test_something(mock_glbl_cfg):
            mock_glbl_cfg(
                'e3sm.bootstrap.install.glbl_cfg',
                '''
                    [install]
                        make jobs = 2
                '''
            )

    """
    def _mock_glbl_cfg(pypath: str, global_config: str) -> GlobalConfig:
        nonlocal tmp_path, monkeypatch
        global_config_path = tmp_path / 'global.conf'
        global_config_path.write_text(global_config)
        glbl_cfg = GlobalConfig(SPEC, validator=bootstrap_config_validate)
        glbl_cfg.loadcfg(global_config_path)

        def _inner(cached=False):
            nonlocal glbl_cfg
            return glbl_cfg

        monkeypatch.setattr(pypath, _inner)
        return glbl_cfg

    return _mock_glbl_cfg


@pytest.fixture(autouse=True)
def _isolated_global_config(
    tmp_path_factory: pytest.TempPathFactory,
    monkeypatch: pytest.MonkeyPatch,
) -> Path:
    """Stop tests reading the site/user global config or environment."""
    conf_dir = tmp_path_factory.mktemp('conf')
    monkeypatch.setenv('E3SM_BOOTSTRAP_CONF_PATH', str(conf_dir))
    for var in ('INSTALL_PREFIX', 'SDKROOT', 'E3SM_ROOT'):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(GlobalConfig, '_DEFAULT', None)
    return conf_dir


@pytest.fixture
def global_conf(
    _isolated_global_config: Path, monkeypatch: pytest.MonkeyPatch
):
    """Write the global config file and reload the global config.

    Unlike `mock_glbl_cfg` this affects `glbl_cfg()` in every module.

    Example:
        def test_something(global_conf):
            global_conf('''
                [cime]
                    compiler = gnu13
            ''')

    """
    def _global_conf(global_config: str) -> GlobalConfig:
        (_isolated_global_config / GlobalConfig.CONF_BASENAME).write_text(
            global_config
        )
        monkeypatch.setattr(GlobalConfig, '_DEFAULT', None)
        return GlobalConfig.get_inst()

    return _global_conf


@pytest.fixture
def log_filter():
    """Filter caplog record_tuples.

    Args:
        log: The caplog instance.
        name: Filter out records if they don't match this logger name.
        level: Filter out records if they aren't at this logging level.
        contains: Filter out records if this string is not in the message.
        regex: Filter out records if the message doesn't match this regex.
        exact_match: Filter out records if the message does not exactly match
            this string.
    """
    def _log_filter(
        log: pytest.LogCaptureFixture,
        name: Optional[str] = None,
        level: Optional[int] = None,
        contains: Optional[str] = None,
        regex: Optional[str] = None,
        exact_match: Optional[str] = None,
    ) -> List[Tuple[str, int, str]]:
        return [
            (log_name, log_level, log_message)
            for log_name, log_level, log_message in log.record_tuples
            if (name is None or name == log_name)
            and (level is None or level == log_level)
            and (contains is None or contains in log_message)
            and (regex is None or re.search(regex, log_message))
            and (exact_match is None or exact_match == log_message)
        ]
    return _log_filter


@pytest.fixture
def capcall(monkeypatch):
    """Capture function calls without running the function.

    Returns a list which is populated with function calls.

    Args:
        function_string:
            The function to replace as it would be specified to
            monkeypatch.setattr.
        substitute_function:
            An optional function to replace it with, otherwise the captured
            function will return None.

    Returns:
        [(args: Tuple, kwargs: Dict), ...]

    Example:
        def test_something(capcall):
            capsys = capcall('sys.exit')
            sys.exit(1)
            assert capsys == [(1,), {}]

    """

    def _capcall(function_string, substitute_function=None):
        calls = []

        def _call(*args, **kwargs):
            nonlocal calls
            nonlocal substitute_function
            calls.append((args, kwargs))
            if substitute_function:
                return substitute_function(*args, **kwargs)

        monkeypatch.setattr(function_string, _call)
        return calls

    return _capcall


@pytest.fixture(autouse=True)
def _restore_log():
    """Undo the log handlers and level set up by the CLI option parser."""
    handlers = list(LOG.handlers)
    level = LOG.level
    yield
    LOG.handlers[:] = handlers
    LOG.setLevel(level)
