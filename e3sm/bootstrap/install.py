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
"""Build and verify the third-party libraries E3SM depends on.

The first step to fail raises an exception which aborts the run, there is
no retry or recovery. Libraries which are already installed (their
sentinel executable exists) are skipped so the install can be re-run.
"""

import os
import sys
from typing import Dict, List, Optional

from ansimarkup import parse as cparse

from e3sm.bootstrap import LOG
from e3sm.bootstrap.cfgspec.glbl_cfg import glbl_cfg
from e3sm.bootstrap.compilers import get_fortran_compiler, get_serial_compilers
from e3sm.bootstrap.download import download, extract
from e3sm.bootstrap.exceptions import InstallError, PrerequisiteError
from e3sm.bootstrap.hostuserutil import IS_MAC_OS
from e3sm.bootstrap.packages import Package, iter_packages
from e3sm.bootstrap.pathutil import (
    get_install_prefix,
    get_packages_dir,
    get_sdk_root,
)
from e3sm.bootstrap.subproc import run_cmd, which
from e3sm.bootstrap.subprocctx import SubProcContext
from e3sm.bootstrap.sysinfo import get_cpu_count, get_free_space_gb
from e3sm.bootstrap.util import prepend_env_paths


TICK = '<green>✓</green>'
CROSS = '<red>✗</red>'

LIBRARY_PATH_VARS = ('LD_LIBRARY_PATH', 'DYLD_LIBRARY_PATH')


def get_make_jobs() -> int:
    """Return the number of parallel make jobs."""
    return glbl_cfg().get(['install', 'make jobs']) or get_cpu_count()


def check_prerequisites() -> None:
    """Check the tools needed to build the libraries are available.

    Installs the Fortran compiler with the package manager if it is
    missing.

    Raises:
        PrerequisiteError

    """
    LOG.info('Checking prerequisites...')
    cfg = glbl_cfg().get(['install'])

    manager = cfg['package manager']
    if not which(manager):
        raise PrerequisiteError(
            f'{manager} not found.',
            'Install Homebrew from https://brew.sh/'
            if manager == 'brew' else None
        )

    fc = cfg['compilers']['fc']
    if not which(fc):
        formula = cfg['compilers']['gcc formula']
        LOG.warning(f'{fc} not found. Installing {formula} via {manager}...')
        run_cmd(SubProcContext(
            f'{manager}-install', [manager, 'install', formula]))
    accepted = get_fortran_compiler()
    if not accepted:
        raise PrerequisiteError(f'No Fortran compiler found ({fc}).')
    if accepted != fc:
        LOG.warning(f'{fc} not found, using {accepted}')
    else:
        LOG.info(f'Using Fortran compiler {accepted}')

    sdk_root = get_sdk_root()
    if IS_MAC_OS and not os.path.isdir(sdk_root):
        raise PrerequisiteError(
            f'macOS SDK not found at {sdk_root}',
            'Install Xcode Command Line Tools: xcode-select --install'
        )

    packages_dir = get_packages_dir()
    min_free = cfg['minimum free space']
    if min_free and get_free_space_gb(packages_dir) < min_free:
        LOG.warning(f'Less than {min_free}GB free space available')

    LOG.info('Prerequisites OK')


def update_environment(
    prefix: str, env: Optional[Dict[str, str]] = None
) -> Dict[str, str]:
    """Put the installed libraries on the search paths.

    Prepends <prefix>/bin to PATH and <prefix>/lib to the library paths so
    that later builds find the MPI wrappers.

    Args:
        prefix: The install prefix.
        env: The environment to modify, defaults to os.environ.

    """
    if env is None:
        env = os.environ  # type: ignore[assignment]
    paths = {'PATH': [os.path.join(prefix, 'bin')]}
    for var in LIBRARY_PATH_VARS:
        paths[var] = [os.path.join(prefix, 'lib')]
    return prepend_env_paths(env, paths)


def install_package(pkg: Package, prefix: Optional[str] = None) -> bool:
    """Download, configure, build and install a library.

    Args:
        pkg: The library to install.
        prefix: The install prefix, defaults to the configured one.

    Returns:
        False if the library was already installed, else True.

    Raises:
        DownloadError, InstallError, CommandFailedError

    """
    if prefix is None:
        prefix = get_install_prefix()
    LOG.info(f'Installing {pkg.title} {pkg.version}...')

    if pkg.is_installed(prefix):
        LOG.warning(f'{pkg.title} already installed, skipping')
        return False

    packages_dir = get_packages_dir()
    os.makedirs(packages_dir, exist_ok=True)
    os.makedirs(prefix, exist_ok=True)

    tarball = download(pkg.url, os.path.join(packages_dir, pkg.local_tarball))
    extract(tarball, packages_dir)
    source_dir = os.path.join(packages_dir, pkg.source_dir)
    if not os.path.isdir(source_dir):
        raise InstallError(
            f'{os.path.basename(tarball)} did not unpack to {source_dir}')

    env = pkg.environment(prefix, get_sdk_root())
    jobs = get_make_jobs()
    for key, cmd in (
        ('configure', pkg.configure_command(prefix, get_serial_compilers())),
        ('make', ['make', f'-j{jobs}']),
        ('make-install', ['make', 'install']),
    ):
        run_cmd(
            SubProcContext(f'{pkg.name}-{key}', cmd, cwd=source_dir, env=env),
            message=f'{pkg.title} {key} failed',
        )

    update_environment(prefix)
    LOG.info(f'{pkg.title} installed successfully')
    return True


def get_shell_exports(prefix: str, sdk_root: str) -> List[str]:
    """Return the shell lines to add to ~/.zshrc.

    Examples:
        >>> get_shell_exports('/opt/e3sm', '/sdk')[:2]
        ['export INSTALL_PREFIX=/opt/e3sm', 'export SDKROOT=/sdk']

    """
    return [
        f'export INSTALL_PREFIX={prefix}',
        f'export SDKROOT={sdk_root}',
        'export LIBRARY_PATH=$SDKROOT/usr/lib:$LIBRARY_PATH',
        'export PATH=$INSTALL_PREFIX/bin:$PATH',
        'export LD_LIBRARY_PATH=$INSTALL_PREFIX/lib:$LD_LIBRARY_PATH',
        'export DYLD_LIBRARY_PATH=$INSTALL_PREFIX/lib:$DYLD_LIBRARY_PATH',
        'export NETCDF_PATH=$INSTALL_PREFIX',
        'export NETCDF_C_PATH=$INSTALL_PREFIX',
        'export NETCDF_FORTRAN_PATH=$INSTALL_PREFIX',
    ]


def verify_installation(handle=None) -> bool:
    """Report which libraries are installed.

    Args:
        handle: Where to write the report, defaults to stdout.

    Returns:
        True if all libraries are installed.

    Raises:
        InstallError: If any library is missing.

    """
    if handle is None:
        handle = sys.stdout
    LOG.info('Verifying installation...')
    prefix = get_install_prefix()
    all_ok = True
    for pkg in iter_packages(glbl_cfg()):
        if pkg.is_installed(prefix):
            info = pkg.get_version_info(prefix) or ''
            print(cparse(f'{TICK} {pkg.title}: ') + info, file=handle)
        else:
            print(cparse(f'{CROSS} {pkg.title}: NOT FOUND'), file=handle)
            all_ok = False

    if not all_ok:
        raise InstallError('Some packages failed to install')

    LOG.info('All packages installed successfully!')
    LOG.info('Add these to your ~/.zshrc:')
    for line in get_shell_exports(prefix, get_sdk_root()):
        print(line, file=handle)
    return True


def install_all() -> None:
    """Check prerequisites, install every library then verify."""
    check_prerequisites()
    prefix = get_install_prefix()
    cfg = glbl_cfg()
    for pkg in iter_packages(cfg):
        install_package(pkg, prefix)
    verify_installation()
