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
"""Generate the CIME machine, compiler and CMake configuration files.

CIME reads user machine definitions from ``~/.cime``:

* ``config_machines.xml``
* ``config_compilers.xml``
* ``cmake_macros/<compiler>_<machine>.cmake``

The files are rendered from the Jinja2 templates in ``etc/templates``.
"""

import os
from typing import Callable, Dict, List, NamedTuple, Optional

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    select_autoescape,
)

from e3sm.bootstrap import LOG
from e3sm.bootstrap.cfgspec.glbl_cfg import glbl_cfg
from e3sm.bootstrap.compilers import CompilerSet
from e3sm.bootstrap.hostuserutil import get_short_host
from e3sm.bootstrap.pathutil import (
    get_cime_config_dir,
    get_cmake_macros_dir,
    get_install_prefix,
    get_sdk_root,
)
from e3sm.bootstrap.sysinfo import get_cpu_count, get_git_identity


TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), 'etc', 'templates')

FORTRAN_FLAGS = [
    '-DCPRGNU',
    '-DNO_IEEE_ARITHMETIC',
    '-fallow-argument-mismatch',
    '-fallow-invalid-boz',
    '-ffree-line-length-none',
    '-mcmodel=small',
]
LANGUAGES = ['Fortran', 'C', 'CXX']


class SystemInfo(NamedTuple):
    """The machine specific settings written to the CIME files."""

    machine: str
    compiler: str
    max_cores: int
    install_prefix: str
    sdk_root: str
    user_name: str
    user_email: str

    @property
    def supported_by(self) -> str:
        return f'{self.user_name} ({self.user_email})'


class ConfigFile(NamedTuple):
    """A generated configuration file."""

    label: str
    template: str
    path: str


def detect_system(
    machine: Optional[str] = None,
    compiler: Optional[str] = None,
    max_cores: Optional[int] = None,
    install_prefix: Optional[str] = None,
) -> SystemInfo:
    """Work out the machine settings.

    Arguments override the global config which overrides detected values.
    """
    LOG.info('Detecting system configuration...')
    cfg = glbl_cfg().get(['cime'])
    sdk_root = get_sdk_root()
    if not os.path.isdir(sdk_root):
        LOG.warning(
            f'macOS SDK not found at {sdk_root}'
            '\nYou may need to run: xcode-select --install'
        )
    user_name, user_email = get_git_identity()
    info = SystemInfo(
        machine=machine or cfg['machine'] or get_short_host(),
        compiler=compiler or cfg['compiler'],
        max_cores=max_cores or cfg['max cores'] or get_cpu_count(),
        install_prefix=install_prefix or get_install_prefix(),
        sdk_root=sdk_root,
        user_name=user_name,
        user_email=user_email,
    )
    LOG.info(f'{"Machine name:":<22} {info.machine}')
    LOG.info(f'{"CPU cores:":<22} {info.max_cores}')
    LOG.info(f'{"macOS SDK:":<22} {info.sdk_root}')
    LOG.info(f'{"Supported by:":<22} {info.supported_by}')
    return info


def get_template_env() -> Environment:
    """Return the Jinja2 environment for the CIME templates.

    XML templates are autoescaped.
    """
    return Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        autoescape=select_autoescape(
            enabled_extensions=('xml.j2',),
            default_for_string=False,
        ),
    )


def get_config_files(info: SystemInfo) -> List[ConfigFile]:
    """Return the files to generate for this machine and compiler."""
    return [
        ConfigFile(
            'config_machines.xml',
            'config_machines.xml.j2',
            get_cime_config_dir('config_machines.xml'),
        ),
        ConfigFile(
            'config_compilers.xml',
            'config_compilers.xml.j2',
            get_cime_config_dir('config_compilers.xml'),
        ),
        ConfigFile(
            'cmake macros',
            'macros.cmake.j2',
            get_cmake_macros_dir(f'{info.compiler}_{info.machine}.cmake'),
        ),
    ]


def get_template_vars(
    info: SystemInfo, compilers: CompilerSet
) -> Dict[str, object]:
    """Return the variables used to render the templates."""
    cfg = glbl_cfg().get(['cime'])
    return {
        'machine': info.machine,
        'compiler': info.compiler,
        'max_cores': info.max_cores,
        'supported_by': info.supported_by,
        'install_prefix': info.install_prefix,
        'os': cfg['os'],
        'mpilib': cfg['mpilib'],
        'project': cfg['project'],
        'output_root': cfg['output root'],
        'input_data_root': cfg['input data root'],
        'clm_forcing_root': cfg['clm forcing root'],
        'archive_root': cfg['archive root'],
        'baseline_root': cfg['baseline root'],
        'cprnc': cfg['cprnc'],
        'batch_system': cfg['batch system'],
        'omp_stacksize': cfg['omp stacksize'],
        'compilers': compilers.as_dict(),
        'gcc_lib_dir': glbl_cfg().get(
            ['install', 'compilers', 'gcc lib dir']).rstrip('/'),
        'fortran_flags': FORTRAN_FLAGS,
        'languages': LANGUAGES,
    }


def render(template: str, template_vars: Dict[str, object]) -> str:
    """Render one of the CIME templates."""
    return get_template_env().get_template(template).render(template_vars)


def write_config_file(
    config_file: ConfigFile,
    template_vars: Dict[str, object],
    force: bool = False,
    confirm_overwrite: Optional[Callable[[str], bool]] = None,
) -> bool:
    """Render a template to its config file.

    Args:
        config_file:
            The file to write.
        template_vars:
            Variables to render the template with.
        force:
            Overwrite an existing file without asking.
        confirm_overwrite:
            Called with the path of an existing file, the file is only
            overwritten if this returns True. If not provided existing files
            are skipped.

    Returns:
        True if the file was written.

    """
    path = config_file.path
    if os.path.exists(path) and not force:
        LOG.warning(f'File exists: {path}')
        if confirm_overwrite is None or not confirm_overwrite(path):
            LOG.info(f'Skipping {config_file.label}')
            return False
    LOG.info(f'Generating {config_file.label}...')
    os.makedirs(os.path.dirname(path), exist_ok=True)
    content = render(config_file.template, template_vars)
    with open(path, 'w') as handle:
        handle.write(content)
    LOG.info(f'Created: {path}')
    return True


def generate_cime_config(
    info: SystemInfo,
    compilers: CompilerSet,
    force: bool = False,
    confirm_overwrite: Optional[Callable[[str], bool]] = None,
) -> List[str]:
    """Write all of the CIME configuration files.

    Returns:
        The paths of the files written.

    """
    os.makedirs(get_cmake_macros_dir(), exist_ok=True)
    template_vars = get_template_vars(info, compilers)
    return [
        config_file.path
        for config_file in get_config_files(info)
        if write_config_file(
            config_file, template_vars, force, confirm_overwrite)
    ]


def get_summary(info: SystemInfo) -> List[str]:
    """Return the closing summary and next steps."""
    return [
        'Generated files:',
        *(f'  - {cf.path}' for cf in get_config_files(info)),
        '',
        f'Machine name: {info.machine}',
        f'Compiler: {info.compiler}',
        '',
        'Next steps:',
        '1. Ensure the environment variables from'
        ' "e3sm-bootstrap install-libs verify" are in ~/.zshrc',
        '2. Create directories:',
        '   mkdir -p ~/projects/e3sm/{scratch,inputdata,baselines}',
        '3. Test with:'
        ' cd $E3SM_ROOT/cime/scripts && ./query_config --machines',
    ]
