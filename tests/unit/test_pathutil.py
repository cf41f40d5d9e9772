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
"""Tests for "e3sm.bootstrap.pathutil"."""

import os
from pathlib import Path

import pytest

from e3sm.bootstrap.pathutil import (
    expand_path,
    get_cime_config_dir,
    get_cime_scripts_dir,
    get_cmake_macros_dir,
    get_install_prefix,
    get_packages_dir,
    get_sdk_root,
)


HOME = Path.home()


@pytest.mark.parametrize(
    'path, expected',
    [('~/moo', os.path.join(HOME, 'moo')),
     ('$HOME/moo', os.path.join(HOME, 'moo')),
     ('~/local/gcc11/../gcc13', os.path.join(HOME, 'local', 'gcc13')),
     ('/opt/e3sm/', '/opt/e3sm')]
)
def test_expand_path(path: str, expected: str):
    assert expand_path(path) == expected


def test_expand_path_args():
    assert expand_path('~', 'packages', 'hdf5-1.14.5') == (
        os.path.join(HOME, 'packages', 'hdf5-1.14.5'))


def test_defaults():
    assert get_install_prefix() == os.path.join(HOME, 'local', 'gcc11')
    assert get_install_prefix('bin', 'mpicc') == (
        os.path.join(HOME, 'local', 'gcc11', 'bin', 'mpicc'))
    assert get_packages_dir() == os.path.join(HOME, 'packages')
    assert get_sdk_root() == (
        '/Library/Developer/CommandLineTools/SDKs/MacOSX.sdk')
    assert get_cime_config_dir('config_machines.xml') == (
        os.path.join(HOME, '.cime', 'config_machines.xml'))
    assert get_cmake_macros_dir('gnu11_mymac.cmake') == (
        os.path.join(HOME, '.cime', 'cmake_macros', 'gnu11_mymac.cmake'))


def test_configured(mock_glbl_cfg):
    mock_glbl_cfg(
        'e3sm.bootstrap.pathutil.glbl_cfg',
        '''
            [install]
                prefix = /opt/e3sm
                packages dir = $HOME/src
                sdk root = /sdk
            [cime]
                config dir = /etc/cime
        '''
    )
    assert get_install_prefix('lib') == '/opt/e3sm/lib'
    assert get_packages_dir() == os.path.join(HOME, 'src')
    assert get_sdk_root() == '/sdk'
    assert get_cmake_macros_dir() == '/etc/cime/cmake_macros'


def test_install_prefix_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv('INSTALL_PREFIX', '/usr/local/e3sm')
    assert get_install_prefix() == '/usr/local/e3sm'


def test_get_cime_scripts_dir():
    assert get_cime_scripts_dir('/src/E3SM') == '/src/E3SM/cime/scripts'
