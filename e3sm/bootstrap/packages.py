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
"""Definitions of the third-party libraries E3SM needs.

Each library is built from an upstream source tarball with the usual
``./configure && make && make install`` and is considered installed when
its sentinel executable exists in ``<prefix>/bin``.

The libraries must be installed in INSTALL_ORDER, later ones are compiled
with the MPI wrappers provided by OpenMPI and link against HDF5.
"""

import os
from typing import (
    TYPE_CHECKING,
    Dict,
    Iterator,
    List,
    Optional,
    Type,
)

from packaging.version import Version

from e3sm.bootstrap.exceptions import InputError
from e3sm.bootstrap.subproc import get_output
from e3sm.bootstrap.util import prepend_path

if TYPE_CHECKING:
    from e3sm.bootstrap.compilers import SerialCompilers
    from e3sm.bootstrap.parsec.config import ParsecConfig


INSTALL_ORDER = ('openmpi', 'hdf5', 'netcdf-c', 'netcdf-fortran')


class Package:
    """A library to build from source.

    Class Attributes:
        name:
            The install target name (e.g. "netcdf-c").
        title:
            Human readable name (e.g. "NetCDF-C").
        default_version:
            Version built if not configured.
        url_template:
            Download URL, may contain {version}, {major} and {minor}.
        source_dir_template:
            Directory the tarball unpacks to, may contain {version}.
        sentinel:
            Executable in <prefix>/bin which marks the library installed.

    Args:
        version:
            Override the default version.
        url:
            Override the URL template.
        configure_options:
            Extra options appended to the configure command.

    """

    name: str
    title: str
    default_version: str
    url_template: str
    source_dir_template: str
    sentinel: str

    def __init__(
        self,
        version: Optional[Version] = None,
        url: Optional[str] = None,
        configure_options: Optional[List[str]] = None,
    ):
        self.version = version or Version(self.default_version)
        self._url_template = url or self.url_template
        self.configure_options = list(configure_options or [])

    def __repr__(self):
        return f'<{type(self).__name__} {self.name}-{self.version}>'

    def _fmt(self, template: str) -> str:
        release = self.version.release + (0, 0)
        return template.format(
            version=self.version,
            major=release[0],
            minor=release[1],
        )

    @property
    def url(self) -> str:
        """The download URL for this version."""
        return self._fmt(self._url_template)

    @property
    def tarball(self) -> str:
        """The name of the file the URL downloads to."""
        return self.url.rstrip('/').rsplit('/', 1)[-1]

    @property
    def local_tarball(self) -> str:
        """The name the tarball is saved as in the packages directory.

        GitHub release archives are named "v<version>.tar.gz", so prefix
        them with the package name to keep them apart.
        """
        if self.tarball.startswith(self.name):
            return self.tarball
        return f'{self.name}-{self.tarball}'

    @property
    def source_dir(self) -> str:
        """The directory name the tarball unpacks to."""
        return self._fmt(self.source_dir_template)

    def sentinel_path(self, prefix: str) -> str:
        return os.path.join(prefix, 'bin', self.sentinel)

    def is_installed(self, prefix: str) -> bool:
        """Return True if the sentinel executable exists."""
        return os.path.isfile(self.sentinel_path(prefix))

    def configure_args(
        self, prefix: str, compilers: 'SerialCompilers'
    ) -> List[str]:
        """Return the arguments for the upstream configure script."""
        raise NotImplementedError()

    def configure_command(
        self, prefix: str, compilers: 'SerialCompilers'
    ) -> List[str]:
        """Return the full configure command, including user options."""
        return [
            './configure',
            *self.configure_args(prefix, compilers),
            *self.configure_options,
        ]

    def environment(
        self,
        prefix: str,
        sdk_root: Optional[str] = None,
        base: Optional[Dict[str, str]] = None,
    ) -> Dict[str, str]:
        """Return the environment to build in.

        Args:
            prefix:
                The install prefix, exported as INSTALL_PREFIX.
            sdk_root:
                The macOS SDK, exported as SDKROOT with its usr/lib on
                LIBRARY_PATH so the compilers can link against it.
            base:
                The environment to start from, defaults to os.environ.

        """
        env = dict(os.environ if base is None else base)
        env['INSTALL_PREFIX'] = prefix
        if sdk_root:
            env['SDKROOT'] = sdk_root
            env['LIBRARY_PATH'] = prepend_path(
                os.path.join(sdk_root, 'usr', 'lib'),
                env.get('LIBRARY_PATH'),
            )
        return env

    def get_version_info(self, prefix: str) -> Optional[str]:
        """Ask the installed library for its version (for verification)."""
        return get_output([self.sentinel_path(prefix), '--version'])


class OpenMPI(Package):
    """The MPI implementation, built with the serial compilers."""

    name = 'openmpi'
    title = 'OpenMPI'
    default_version = '5.0.6'
    url_template = (
        'https://download.open-mpi.org/release/open-mpi/'
        'v{major}.{minor}/openmpi-{version}.tar.gz'
    )
    source_dir_template = 'openmpi-{version}'
    sentinel = 'mpicc'

    def configure_args(self, prefix, compilers):
        return [
            f'CC={compilers.cc}',
            f'CXX={compilers.cxx}',
            f'FC={compilers.fc}',
            f'--prefix={prefix}',
            '--enable-mpi-fortran=yes',
            '--with-libevent=internal',
        ]

    def get_version_info(self, prefix):
        output = get_output([self.sentinel_path(prefix), '--version'])
        if output:
            return output.splitlines()[0]
        return output


class HDF5(Package):
    """Parallel HDF5 with Fortran bindings."""

    name = 'hdf5'
    title = 'HDF5'
    default_version = '1.14.5'
    url_template = (
        'https://support.hdfgroup.org/ftp/HDF5/releases/'
        'hdf5-{major}.{minor}/hdf5-{version}/src/hdf5-{version}.tar.gz'
    )
    source_dir_template = 'hdf5-{version}'
    sentinel = 'h5pcc'

    def configure_args(self, prefix, compilers):
        return [
            f'--prefix={prefix}',
            '--enable-fortran',
            '--enable-parallel',
            f'CC={prefix}/bin/mpicc',
            f'FC={prefix}/bin/mpif90',
        ]

    def get_version_info(self, prefix):
        output = get_output([self.sentinel_path(prefix), '-showconfig'])
        for line in (output or '').splitlines():
            if 'HDF5 Version' in line:
                return line.split(':', 1)[-1].strip()
        return None


class _NetCDF(Package):
    """Common behaviour of the NetCDF libraries."""

    def environment(self, prefix, sdk_root=None, base=None):
        env = super().environment(prefix, sdk_root, base)
        env['CPPFLAGS'] = f'-I{prefix}/include'
        env['LDFLAGS'] = f'-L{prefix}/lib'
        return env


class NetCDFC(_NetCDF):
    """NetCDF-C with parallel NetCDF-4 support."""

    name = 'netcdf-c'
    title = 'NetCDF-C'
    default_version = '4.9.3'
    url_template = (
        'https://github.com/Unidata/netcdf-c/archive/refs/tags/'
        'v{version}.tar.gz'
    )
    source_dir_template = 'netcdf-c-{version}'
    sentinel = 'nc-config'

    def configure_args(self, prefix, compilers):
        return [
            f'--prefix={prefix}',
            '--enable-netcdf4',
            '--enable-parallel4',
            '--disable-dap',
            f'CC={prefix}/bin/mpicc',
        ]

    def get_version_info(self, prefix):
        version = get_output([self.sentinel_path(prefix), '--version'])
        if version is None:
            return None
        parallel = get_output(
            [self.sentinel_path(prefix), '--has-parallel4'])
        return f'{version} (parallel: {parallel})'


class NetCDFFortran(_NetCDF):
    """The NetCDF Fortran bindings."""

    name = 'netcdf-fortran'
    title = 'NetCDF-Fortran'
    default_version = '4.6.2'
    url_template = (
        'https://github.com/Unidata/netcdf-fortran/archive/refs/tags/'
        'v{version}.tar.gz'
    )
    source_dir_template = 'netcdf-fortran-{version}'
    sentinel = 'nf-config'

    def configure_args(self, prefix, compilers):
        return [
            f'--prefix={prefix}',
            f'CC={prefix}/bin/mpicc',
            f'FC={prefix}/bin/mpif90',
        ]


PACKAGES: Dict[str, Type[Package]] = {
    cls.name: cls
    for cls in (OpenMPI, HDF5, NetCDFC, NetCDFFortran)
}


def get_package(name: str, cfg: 'Optional[ParsecConfig]' = None) -> Package:
    """Return the package called name, with any configured overrides.

    Args:
        name:
            The install target name.
        cfg:
            The global config, [install][<name>] overrides the defaults.

    Raises:
        InputError: If the package name is not known.

    Examples:
        >>> get_package('netcdf-c').local_tarball
        'netcdf-c-v4.9.3.tar.gz'
        >>> get_package('hdf5').url.rsplit('/', 3)[1:]
        ['hdf5-1.14.5', 'src', 'hdf5-1.14.5.tar.gz']

    """
    try:
        cls = PACKAGES[name]
    except KeyError:
        raise InputError(
            f'Unknown package: {name}'
            f'\nValid packages are: {", ".join(INSTALL_ORDER)}'
        ) from None
    overrides = {}
    if cfg is not None:
        install_cfg = cfg.get(['install'])
        if name in install_cfg:
            overrides = {
                'version': install_cfg[name]['version'],
                'url': install_cfg[name]['url'],
                'configure_options': install_cfg[name]['configure options'],
            }
    return cls(**overrides)


def iter_packages(
    cfg: 'Optional[ParsecConfig]' = None
) -> Iterator[Package]:
    """Yield all packages in installation order."""
    for name in INSTALL_ORDER:
        yield get_package(name, cfg)
