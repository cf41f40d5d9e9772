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
"""Locate the serial compilers and MPI compiler wrappers."""

import os
from typing import Dict, NamedTuple, Optional

from e3sm.bootstrap import LOG
from e3sm.bootstrap.cfgspec.glbl_cfg import glbl_cfg
from e3sm.bootstrap.exceptions import MissingCompilersError
from e3sm.bootstrap.subproc import which


MPI_WRAPPERS = ('mpicc', 'mpicxx', 'mpif90')


class SerialCompilers(NamedTuple):
    """The serial C, C++ and Fortran compilers."""

    cc: str
    cxx: str
    fc: str


class CompilerSet(NamedTuple):
    """Full paths to all compilers CIME needs.

    The field names match the CIME compiler variables.
    """

    mpicc: str
    mpicxx: str
    mpifc: str
    scc: str
    scxx: str
    sfc: str

    def as_dict(self) -> Dict[str, str]:
        """Return {CIME_VARIABLE: path}.

        Examples:
            >>> CompilerSet(*'abcdef').as_dict()['MPIFC']
            'c'

        """
        return {key.upper(): value for key, value in self._asdict().items()}


def _cfg_compilers():
    return glbl_cfg().get(['install', 'compilers'])


def get_fortran_compiler() -> Optional[str]:
    """Return the name of the serial Fortran compiler, if it is on PATH.

    The configured compiler (e.g. gfortran-11) is preferred, the fallback
    (e.g. gfortran) is used if it is not available.
    """
    cfg = _cfg_compilers()
    for name in (cfg['fc'], cfg['fallback fc']):
        if name and which(name):
            return name
    return None


def get_serial_compilers() -> SerialCompilers:
    """Return the serial compiler commands used to build OpenMPI."""
    cfg = _cfg_compilers()
    return SerialCompilers(
        cc=cfg['cc'],
        cxx=cfg['cxx'],
        fc=get_fortran_compiler() or cfg['fc'],
    )


def get_mpi_wrappers(prefix: str) -> Dict[str, Optional[str]]:
    """Return the paths of the MPI wrappers.

    Those installed under prefix are used if <prefix>/bin/mpicc exists,
    otherwise they are searched for on PATH.
    """
    if os.path.isfile(os.path.join(prefix, 'bin', 'mpicc')):
        return {
            name: os.path.join(prefix, 'bin', name)
            for name in MPI_WRAPPERS
        }
    return {name: which(name) for name in MPI_WRAPPERS}


def detect_compilers(prefix: str) -> CompilerSet:
    """Locate all compilers.

    Raises:
        MissingCompilersError: Listing every compiler which could not be
            found.

    """
    LOG.info('Detecting compilers...')
    cfg = _cfg_compilers()
    fortran = get_fortran_compiler()
    serial = {
        cfg['cc']: which(cfg['cc']),
        cfg['cxx']: which(cfg['cxx']),
        cfg['fc']: which(fortran) if fortran else None,
    }
    mpi = get_mpi_wrappers(prefix)
    missing = [
        name
        for name, path in (*serial.items(), *mpi.items())
        if not path
    ]
    if missing:
        raise MissingCompilersError(missing)
    compilers = CompilerSet(
        mpicc=mpi['mpicc'],
        mpicxx=mpi['mpicxx'],
        mpifc=mpi['mpif90'],
        scc=serial[cfg['cc']],
        scxx=serial[cfg['cxx']],
        sfc=serial[cfg['fc']],
    )
    for label, path in (
        ('Serial C compiler', compilers.scc),
        ('Serial C++ compiler', compilers.scxx),
        ('Serial Fortran', compilers.sfc),
        ('MPI C compiler', compilers.mpicc),
        ('MPI C++ compiler', compilers.mpicxx),
        ('MPI Fortran compiler', compilers.mpifc),
    ):
        LOG.info(f'{label + ":":<22} {path}')
    return compilers
