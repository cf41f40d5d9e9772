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
"""Functions to return paths to install, source and CIME directories."""

import os
from pathlib import Path
from typing import Union

from e3sm.bootstrap.cfgspec.glbl_cfg import glbl_cfg


CMAKE_MACROS_DIRNAME = 'cmake_macros'


def expand_path(*args: Union[Path, str]) -> str:
    """Expand both vars and user in path and normalise it, joining any
    extra args.

    Examples:
        >>> expand_path('/opt', 'gcc11', '..', 'gcc13')
        '/opt/gcc13'

    """
    return os.path.normpath(os.path.expanduser(os.path.expandvars(
        os.path.join(*args)
    )))


def get_install_prefix(*args: Union[Path, str]) -> str:
    """Return the library installation prefix, joining any extra args."""
    return expand_path(glbl_cfg().get(['install', 'prefix']), *args)


def get_packages_dir(*args: Union[Path, str]) -> str:
    """Return the source download directory, joining any extra args."""
    return expand_path(glbl_cfg().get(['install', 'packages dir']), *args)


def get_sdk_root() -> str:
    """Return the macOS SDK root."""
    return expand_path(glbl_cfg().get(['install', 'sdk root']))


def get_cime_config_dir(*args: Union[Path, str]) -> str:
    """Return the CIME user config directory (~/.cime), joining any extra
    args."""
    return expand_path(glbl_cfg().get(['cime', 'config dir']), *args)


def get_cmake_macros_dir(*args: Union[Path, str]) -> str:
    """Return the CIME CMake macros directory, joining any extra args."""
    return get_cime_config_dir(CMAKE_MACROS_DIRNAME, *args)


def get_cime_scripts_dir(e3sm_root: Union[Path, str]) -> str:
    """Return the CIME scripts directory of an E3SM source tree."""
    return os.path.join(e3sm_root, 'cime', 'scripts')
