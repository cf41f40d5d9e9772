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

import pytest
from packaging.version import Version

from e3sm.bootstrap.compilers import SerialCompilers
from e3sm.bootstrap.exceptions import InputError
from e3sm.bootstrap.packages import (
    HDF5,
    INSTALL_ORDER,
    NetCDFC,
    NetCDFFortran,
    OpenMPI,
    PACKAGES,
    get_package,
    iter_packages,
)


SERIAL = SerialCompilers('clang', 'clang++', 'gfortran-11')


def test_install_order():
    assert list(INSTALL_ORDER) == list(PACKAGES)
    assert [pkg.name for pkg in iter_packages()] == [
        'openmpi', 'hdf5', 'netcdf-c', 'netcdf-fortran']


@pytest.mark.parametrize(
    'name, url, local_tarball, source_dir, sentinel',
    [
        pytest.param(
            'openmpi',
            'https://download.open-mpi.org/release/open-mpi/v5.0/'
            'openmpi-5.0.6.tar.gz',
            'openmpi-5.0.6.tar.gz',
            'openmpi-5.0.6',
            'mpicc',
            id='openmpi'
        ),
        pytest.param(
            'hdf5',
            'https://support.hdfgroup.org/ftp/HDF5/releases/hdf5-1.14/'
            'hdf5-1.14.5/src/hdf5-1.14.5.tar.gz',
            'hdf5-1.14.5.tar.gz',
            'hdf5-1.14.5',
            'h5pcc',
            id='hdf5'
        ),
        pytest.param(
            'netcdf-c',
            'https://github.com/Unidata/netcdf-c/archive/refs/tags/'
            'v4.9.3.tar.gz',
            'netcdf-c-v4.9.3.tar.gz',
            'netcdf-c-4.9.3',
            'nc-config',
            id='netcdf-c'
        ),
        pytest.param(
            'netcdf-fortran',
            'https://github.com/Unidata/netcdf-fortran/archive/refs/tags/'
            'v4.6.2.tar.gz',
            'netcdf-fortran-v4.6.2.tar.gz',
            'netcdf-fortran-4.6.2',
            'nf-config',
            id='netcdf-fortran'
        ),
    ]
)
def test_package_defaults(name, url, local_tarball, source_dir, sentinel):
    pkg = get_package(name)
    assert pkg.url == url
    assert pkg.local_tarball == local_tarball
    assert pkg.source_dir == source_dir
    assert pkg.sentinel == sentinel


def test_version_override():
    pkg = OpenMPI(version=Version('4.1.6'))
    assert pkg.url.endswith('/v4.1/openmpi-4.1.6.tar.gz')
    assert pkg.source_dir == 'openmpi-4.1.6'
    assert repr(pkg) == '<OpenMPI openmpi-4.1.6>'


def test_url_override():
    pkg = HDF5(url='https://example.com/hdf5/{major}/hdf5-{version}.tgz')
    assert pkg.url == 'https://example.com/hdf5/1/hdf5-1.14.5.tgz'
    assert pkg.tarball == 'hdf5-1.14.5.tgz'


def test_get_package_unknown():
    with pytest.raises(InputError) as excinfo:
        get_package('netcdf-cxx')
    assert str(excinfo.value) == (
        'Unknown package: netcdf-cxx'
        '\nValid packages are: openmpi, hdf5, netcdf-c, netcdf-fortran'
    )


def test_get_package_config(global_conf):
    cfg = global_conf('''
        [install]
            [[netcdf-c]]
                version = 4.9.2
                configure options = --disable-byterange, --disable-libxml2
    ''')
    pkg = get_package('netcdf-c', cfg)
    assert pkg.version == Version('4.9.2')
    assert pkg.local_tarball == 'netcdf-c-v4.9.2.tar.gz'
    assert pkg.configure_command('/opt', SERIAL)[-2:] == [
        '--disable-byterange', '--disable-libxml2']
    # other packages are unaffected
    assert get_package('hdf5', cfg).version == Version('1.14.5')
    assert get_package('hdf5', cfg).configure_options == []


def test_configure_openmpi():
    assert OpenMPI().configure_command('/opt/e3sm', SERIAL) == [
        './configure',
        'CC=clang',
        'CXX=clang++',
        'FC=gfortran-11',
        '--prefix=/opt/e3sm',
        '--enable-mpi-fortran=yes',
        '--with-libevent=internal',
    ]


def test_configure_hdf5():
    assert HDF5().configure_command('/opt/e3sm', SERIAL) == [
        './configure',
        '--prefix=/opt/e3sm',
        '--enable-fortran',
        '--enable-parallel',
        'CC=/opt/e3sm/bin/mpicc',
        'FC=/opt/e3sm/bin/mpif90',
    ]


def test_configure_netcdf():
    assert NetCDFC().configure_args('/opt/e3sm', SERIAL) == [
        '--prefix=/opt/e3sm',
        '--enable-netcdf4',
        '--enable-parallel4',
        '--disable-dap',
        'CC=/opt/e3sm/bin/mpicc',
    ]
    assert NetCDFFortran().configure_args('/opt/e3sm', SERIAL) == [
        '--prefix=/opt/e3sm',
        'CC=/opt/e3sm/bin/mpicc',
        'FC=/opt/e3sm/bin/mpif90',
    ]


def test_environment():
    base = {'PATH': '/bin', 'CPPFLAGS': '-Iold'}
    assert OpenMPI().environment('/opt', base=base) == {
        **base, 'INSTALL_PREFIX': '/opt'}
    env = NetCDFFortran().environment('/opt', base=base)
    assert env == {
        'PATH': '/bin',
        'INSTALL_PREFIX': '/opt',
        'CPPFLAGS': '-I/opt/include',
        'LDFLAGS': '-L/opt/lib',
    }
    # the base environment is not modified
    assert base['CPPFLAGS'] == '-Iold'


@pytest.mark.parametrize(
    'library_path, expected',
    [
        (None, '/sdk/usr/lib'),
        ('/usr/local/lib', '/sdk/usr/lib:/usr/local/lib'),
    ]
)
def test_environment_sdk(library_path, expected):
    base = {'PATH': '/bin'}
    if library_path:
        base['LIBRARY_PATH'] = library_path
    env = HDF5().environment('/opt', '/sdk', base=base)
    assert env['SDKROOT'] == '/sdk'
    assert env['LIBRARY_PATH'] == expected
    assert env['INSTALL_PREFIX'] == '/opt'


def test_is_installed(prefix: Path, make_executable):
    pkg = HDF5()
    assert not pkg.is_installed(str(prefix))
    make_executable(prefix / 'bin' / 'h5pcc')
    assert pkg.is_installed(str(prefix))
    assert pkg.sentinel_path(str(prefix)) == str(prefix / 'bin' / 'h5pcc')


def test_version_info(prefix: Path, make_executable):
    make_executable(
        prefix / 'bin' / 'mpicc',
        '#!/bin/sh\necho "Apple clang version 15.0.0"\necho "Target: arm"\n'
    )
    make_executable(
        prefix / 'bin' / 'h5pcc',
        '#!/bin/sh\necho "General Information:"\n'
        'echo "                   HDF5 Version: 1.14.5"\n'
    )
    make_executable(
        prefix / 'bin' / 'nc-config',
        '#!/bin/sh\n'
        'if [ "$1" = "--version" ]; then echo "netCDF 4.9.3"; '
        'else echo "yes"; fi\n'
    )
    make_executable(
        prefix / 'bin' / 'nf-config',
        '#!/bin/sh\necho "netCDF-Fortran 4.6.2"\n'
    )
    assert OpenMPI().get_version_info(str(prefix)) == (
        'Apple clang version 15.0.0')
    assert HDF5().get_version_info(str(prefix)) == '1.14.5'
    assert NetCDFC().get_version_info(str(prefix)) == (
        'netCDF 4.9.3 (parallel: yes)')
    assert NetCDFFortran().get_version_info(str(prefix)) == (
        'netCDF-Fortran 4.6.2')


def test_version_info_failed(prefix: Path, make_executable):
    make_executable(prefix / 'bin' / 'mpicc', '#!/bin/sh\nexit 1\n')
    assert OpenMPI().get_version_info(str(prefix)) is None
    assert HDF5().get_version_info(str(prefix)) is None
    make_executable(prefix / 'bin' / 'nc-config', '#!/bin/sh\nexit 1\n')
    assert NetCDFC().get_version_info(str(prefix)) is None
