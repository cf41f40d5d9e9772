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
"""e3sm-bootstrap site and user configuration file spec."""

import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from e3sm.bootstrap import LOG
from e3sm.bootstrap.exceptions import GlobalConfigError
from e3sm.bootstrap.hostuserutil import get_user_home
from e3sm.bootstrap.packages import INSTALL_ORDER
from e3sm.bootstrap.parsec.config import (
    ConfigNode as Conf,
    ParsecConfig,
)
from e3sm.bootstrap.parsec.exceptions import ParsecError
from e3sm.bootstrap.parsec.validate import (
    BootstrapConfigValidator as VDR,
    bootstrap_config_validate,
)


SITE_CONFIG = 'site config'
USER_CONFIG = 'user config'

DEFAULT_SDK_ROOT = '/Library/Developer/CommandLineTools/SDKs/MacOSX.sdk'

# Environment variables which override the default of a setting (but not a
# value set in a config file).
ENV_DEFAULTS: Dict[str, List[str]] = {
    'INSTALL_PREFIX': ['install', 'prefix'],
    'SDKROOT': ['install', 'sdk root'],
}

# Settings which must be at least 1 if configured.
POSITIVE_INTEGERS: List[Tuple[str, str]] = [
    ('install', 'make jobs'),
    ('cime', 'max cores'),
]


with Conf('global.conf', desc='''
    The global configuration which defines default e3sm-bootstrap settings
    for a user or site.

    To view your global config, run::

       $ e3sm-bootstrap config

    The configuration is loaded from the site directory (defaults to
    ``/etc/e3sm-bootstrap/``) then the user directory
    (``~/.e3sm-bootstrap/``); a setting in the user file overrides the same
    setting in the site file.

    .. envvar:: E3SM_BOOTSTRAP_CONF_PATH

       If set this bypasses the default site/user configuration hierarchy.
       This should be set to a directory containing a ``global.conf`` file.

    .. envvar:: E3SM_BOOTSTRAP_SITE_CONF_PATH

       Overrides the site configuration directory.

    The ``global.conf`` file can be templated using Jinja2 by starting it
    with the line ``#!jinja2``.
''') as SPEC:
    with Conf('install', desc='''
        Settings for building the third-party libraries (OpenMPI, HDF5,
        NetCDF-C and NetCDF-Fortran) which E3SM depends on.
    '''):
        Conf('prefix', VDR.V_STRING, '~/local/gcc11', desc='''
            Installation prefix for the libraries.

            The default can be overridden by the ``INSTALL_PREFIX``
            environment variable.
        ''')
        Conf('packages dir', VDR.V_STRING, '~/packages', desc='''
            Directory where source tarballs are downloaded and unpacked.
        ''')
        Conf('sdk root', VDR.V_STRING, DEFAULT_SDK_ROOT, desc='''
            The macOS SDK root.

            The default can be overridden by the ``SDKROOT`` environment
            variable.
        ''')
        Conf('make jobs', VDR.V_INTEGER, desc='''
            Number of parallel jobs passed to ``make -j``.

            Defaults to the number of CPU cores.
        ''')
        Conf('minimum free space', VDR.V_INTEGER, 10, desc='''
            Warn if less than this many gigabytes are free in the packages
            directory.
        ''')
        Conf('package manager', VDR.V_STRING, 'brew', desc='''
            The system package manager used to install a missing Fortran
            compiler.
        ''')
        with Conf('compilers', desc='''
            Serial compilers used to build OpenMPI.
        '''):
            Conf('cc', VDR.V_STRING, 'clang')
            Conf('cxx', VDR.V_STRING, 'clang++')
            Conf('fc', VDR.V_STRING, 'gfortran-11', desc='''
                The preferred Fortran compiler.
            ''')
            Conf('fallback fc', VDR.V_STRING, 'gfortran', desc='''
                Fortran compiler to use if ``fc`` cannot be found.
            ''')
            Conf('gcc formula', VDR.V_STRING, 'gcc@11', desc='''
                The package manager formula which provides ``fc``.
            ''')
            Conf('gcc lib dir', VDR.V_STRING, '/opt/homebrew/lib/gcc/11',
                 desc='''
                The GCC runtime library directory, added to the linker flags
                of the generated CMake macros.
            ''')
        for package in INSTALL_ORDER:
            with Conf(package, desc=f'''
                Override the build of {package}.
            '''):
                Conf('version', VDR.V_VERSION, desc='''
                    The upstream release to build.
                ''')
                Conf('url', VDR.V_STRING, desc='''
                    Download URL; ``{version}``, ``{major}`` and ``{minor}``
                    are replaced with the version components.
                ''')
                Conf('configure options', VDR.V_SPACELESS_STRING_LIST,
                     desc='''
                    Extra options appended to the ``./configure`` command.
                ''')

    with Conf('cime', desc='''
        Settings for the generated CIME configuration files.
    '''):
        Conf('config dir', VDR.V_STRING, '~/.cime', desc='''
            Directory the CIME configuration files are written to.
        ''')
        Conf('machine', VDR.V_STRING, desc='''
            The CIME machine name.

            Defaults to the short host name.
        ''')
        Conf('compiler', VDR.V_STRING, 'gnu11')
        Conf('max cores', VDR.V_INTEGER, desc='''
            Tasks per node and ``GMAKE_J``.

            Defaults to the number of CPU cores.
        ''')
        Conf('os', VDR.V_STRING, 'Darwin')
        Conf('mpilib', VDR.V_STRING, 'openmpi')
        Conf('project', VDR.V_STRING, 'E3SM')
        Conf('output root', VDR.V_STRING,
             '$ENV{HOME}/projects/e3sm/scratch')
        Conf('input data root', VDR.V_STRING,
             '$ENV{HOME}/projects/e3sm/inputdata')
        Conf('clm forcing root', VDR.V_STRING,
             '$ENV{HOME}/projects/e3sm/inputdata/atm/datm7')
        Conf('archive root', VDR.V_STRING,
             '$CIME_OUTPUT_ROOT/archive/$CASE')
        Conf('baseline root', VDR.V_STRING,
             '$ENV{HOME}/projects/e3sm/baselines')
        Conf('cprnc', VDR.V_STRING, '$ENV{HOME}/local/gcc11/bin/cprnc')
        Conf('batch system', VDR.V_STRING, 'none')
        Conf('omp stacksize', VDR.V_STRING, '256M')

    with Conf('case', desc='''
        Default settings for ``e3sm-bootstrap create-case``.
    '''):
        Conf('e3sm root', VDR.V_STRING, desc='''
            Path to the E3SM source repository.

            If unset the ``E3SM_ROOT`` environment variable is used, then
            a few conventional locations are searched.
        ''')
        Conf('case dir', VDR.V_STRING, desc='''
            Parent directory for new cases.

            Defaults to ``<e3sm root>/cime/scripts``.
        ''')
        Conf('resolution', VDR.V_STRING, '1x1_brazil')
        Conf('compset', VDR.V_STRING, 'I1850ELM')
        Conf('compiler', VDR.V_STRING, 'gnu11')
        Conf('datm end year', VDR.V_INTEGER, 1948, desc='''
            Last year of atmospheric forcing data, limits data download.
        ''')


class GlobalConfig(ParsecConfig):
    """
    Handle global site and user configuration for e3sm-bootstrap.
    User file values override site file values.
    """

    _DEFAULT: Optional['GlobalConfig'] = None
    CONF_BASENAME: str = "global.conf"
    DEFAULT_SITE_CONF_PATH: str = os.path.join(os.sep, 'etc', 'e3sm-bootstrap')
    USER_CONF_PATH: str = os.path.join(
        os.getenv('HOME') or get_user_home(), '.e3sm-bootstrap'
    )

    def __init__(self, *args, **kwargs) -> None:
        site_conf_root = (
            os.getenv('E3SM_BOOTSTRAP_SITE_CONF_PATH')
            or self.DEFAULT_SITE_CONF_PATH
        )
        self.conf_dir_hierarchy: List[Tuple[str, str]] = [
            (SITE_CONFIG, site_conf_root),
            (USER_CONFIG, self.USER_CONF_PATH),
        ]
        super().__init__(*args, **kwargs)

    @classmethod
    def get_inst(cls, cached: bool = True) -> 'GlobalConfig':
        """Return a GlobalConfig instance.

        Args:
            cached (bool):
                If cached create if necessary and return the singleton
                instance, else return a new instance.
        """
        if not cached:
            # Return an up-to-date global config without affecting the
            # singleton.
            new_instance = cls(SPEC, validator=bootstrap_config_validate)
            new_instance.load()
            return new_instance
        elif not cls._DEFAULT:
            cls._DEFAULT = cls(SPEC, validator=bootstrap_config_validate)
            cls._DEFAULT.load()
        return cls._DEFAULT

    def _load(self, fname: Union[Path, str], conf_type: str) -> None:
        if not os.access(fname, os.F_OK | os.R_OK):
            return
        try:
            self.loadcfg(fname, conf_type)
            self._validate_counts()
        except ParsecError:
            LOG.error(f'bad {conf_type} {fname}')
            raise

    def load(self) -> None:
        """Load or reload configuration from files."""
        self.sparse.clear()
        self.dense.clear()
        LOG.debug("Loading site/user config files")
        conf_path_str = os.getenv("E3SM_BOOTSTRAP_CONF_PATH")
        if conf_path_str:
            # Explicit config file override.
            fname = os.path.join(conf_path_str, self.CONF_BASENAME)
            self._load(fname, USER_CONFIG)
        else:
            # Use default locations.
            for conf_type, conf_dir in self.conf_dir_hierarchy:
                fname = os.path.join(conf_dir, self.CONF_BASENAME)
                self._load(fname, conf_type)

        # Flesh out with defaults
        self.expand()
        self._apply_environment()

    def _apply_environment(self) -> None:
        """Let environment variables override unconfigured defaults."""
        for var, keys in ENV_DEFAULTS.items():
            value = os.getenv(var)
            if not value:
                continue
            section, key = keys
            if key in self.sparse.get(section, {}):
                continue
            LOG.debug(f'[{section}]{key} = {value} (from ${var})')
            self.dense[section][key] = value

    def _validate_counts(self) -> None:
        """Check configured job and core counts are positive."""
        for keys in POSITIVE_INTEGERS:
            section, key = keys
            value = self.sparse.get(section, {}).get(key)
            if value is not None and value < 1:
                raise GlobalConfigError(
                    f'[{section}]{key} must be a positive integer, got {value}'
                )
