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
"""Create, configure, build and submit E3SM cases.

Wraps the CIME case control tools:

1. ``cime/scripts/create_newcase``
2. ``xmlchange`` (in the case directory)
3. ``case.setup``
4. ``case.build`` (optional)
5. ``case.submit`` (optional)
"""

import os
from typing import List, NamedTuple, Optional, Tuple
from xml.etree import ElementTree  # nosec (parses the user's own file)

from e3sm.bootstrap import LOG
from e3sm.bootstrap.cfgspec.glbl_cfg import glbl_cfg
from e3sm.bootstrap.exceptions import CaseError
from e3sm.bootstrap.hostuserutil import get_short_host
from e3sm.bootstrap.pathutil import (
    expand_path,
    get_cime_config_dir,
    get_cime_scripts_dir,
)
from e3sm.bootstrap.subproc import run_cmd
from e3sm.bootstrap.subprocctx import SubProcContext
from e3sm.bootstrap.sysinfo import get_git_hash
from e3sm.bootstrap.wallclock import get_current_date_string


E3SM_ROOT_ENV = 'E3SM_ROOT'

# searched in order if the E3SM root is not specified
E3SM_ROOT_SEARCH_PATHS = [
    os.path.join('~', 'projects', 'e3sm', 'e3sm'),
    os.path.join('~', 'e3sm'),
    os.path.join('~', 'E3SM'),
]


class CaseSettings(NamedTuple):
    """Everything needed to create a case."""

    e3sm_root: str
    machine: str
    compiler: str
    resolution: str
    compset: str
    case_name: str
    case_dir: str
    datm_end_year: int
    git_hash: str
    build: bool = False
    submit: bool = False


def is_e3sm_root(path: str) -> bool:
    """Return True if path looks like an E3SM source tree."""
    return os.path.isdir(get_cime_scripts_dir(path))


def detect_e3sm_root(e3sm_root: Optional[str] = None) -> str:
    """Locate the E3SM source tree.

    In order of preference: the argument, $E3SM_ROOT, then a search of
    conventional locations and the current directory.

    Raises:
        CaseError: If none is found or the tree is not valid.

    """
    if e3sm_root:
        root = expand_path(e3sm_root)
    elif os.getenv(E3SM_ROOT_ENV):
        root = expand_path(os.environ[E3SM_ROOT_ENV])
        LOG.info(f'Using E3SM_ROOT from environment: {root}')
    else:
        for path in [*E3SM_ROOT_SEARCH_PATHS, os.getcwd()]:
            path = expand_path(path)
            if is_e3sm_root(path):
                root = path
                LOG.info(f'Auto-detected E3SM root: {root}')
                break
        else:
            raise CaseError(
                'Cannot find E3SM repository'
                '\nPlease specify with --e3sm-root or set the E3SM_ROOT'
                ' environment variable'
            )
    if not is_e3sm_root(root):
        raise CaseError(
            f'Invalid E3SM root: {root}'
            '\nDirectory does not contain cime/scripts/'
        )
    return root


def read_cime_machine(path: Optional[str] = None) -> Optional[str]:
    """Return the first MACH in a CIME config_machines.xml file.

    Returns None if the file does not exist, cannot be parsed or does not
    define a machine.
    """
    if path is None:
        path = get_cime_config_dir('config_machines.xml')
    if not os.path.isfile(path):
        return None
    try:
        tree = ElementTree.parse(path)  # nosec
    except ElementTree.ParseError as exc:
        LOG.warning(f'Could not parse {path}: {exc}')
        return None
    for machine in tree.getroot().iter('machine'):
        if machine.get('MACH'):
            return machine.get('MACH')
    return None


def detect_machine(machine: Optional[str] = None) -> str:
    """Return the CIME machine name.

    The argument, else the first machine in ~/.cime/config_machines.xml,
    else the short host name.
    """
    if machine:
        return machine
    machine = read_cime_machine()
    if machine:
        LOG.info(f'Detected machine from CIME config: {machine}')
        return machine
    machine = get_short_host()
    LOG.warning(
        'Could not detect machine from CIME config,'
        f' using hostname: {machine}'
    )
    return machine


def generate_case_name(
    resolution: str,
    compset: str,
    machine: str,
    compiler: str,
    git_hash: str,
    date: Optional[str] = None,
) -> str:
    """Return the default case name.

    Examples:
        >>> generate_case_name(
        ...     '1x1_brazil', 'I1850ELM', 'MyMac', 'gnu11', 'abc1234',
        ...     '2026-02-13')
        '1x1_brazil.I1850ELM.MyMac.gnu11.abc1234.2026-02-13'

    """
    if date is None:
        date = get_current_date_string()
    return '.'.join([resolution, compset, machine, compiler, git_hash, date])


def get_case_settings(
    e3sm_root: Optional[str] = None,
    machine: Optional[str] = None,
    compiler: Optional[str] = None,
    resolution: Optional[str] = None,
    compset: Optional[str] = None,
    case_name: Optional[str] = None,
    case_dir: Optional[str] = None,
    datm_end_year: Optional[int] = None,
    build: bool = False,
    submit: bool = False,
) -> CaseSettings:
    """Resolve the case settings.

    Arguments override the [case] section of the global config.
    """
    cfg = glbl_cfg().get(['case'])
    root = detect_e3sm_root(e3sm_root or cfg['e3sm root'])
    machine = detect_machine(machine)
    compiler = compiler or cfg['compiler']
    resolution = resolution or cfg['resolution']
    compset = compset or cfg['compset']
    git_hash = get_git_hash(root)
    if not case_name:
        case_name = generate_case_name(
            resolution, compset, machine, compiler, git_hash)
    parent_dir = case_dir or cfg['case dir']
    if parent_dir:
        case_path = os.path.join(expand_path(parent_dir), case_name)
    else:
        case_path = os.path.join(get_cime_scripts_dir(root), case_name)
    return CaseSettings(
        e3sm_root=root,
        machine=machine,
        compiler=compiler,
        resolution=resolution,
        compset=compset,
        case_name=case_name,
        case_dir=case_path,
        datm_end_year=(
            cfg['datm end year'] if datm_end_year is None else datm_end_year
        ),
        git_hash=git_hash,
        # submitting requires a build
        build=build or submit,
        submit=submit,
    )


def validate_settings(settings: CaseSettings) -> None:
    """Check the case can be created.

    Raises:
        CaseError

    """
    LOG.info('Validating configuration...')
    scripts_dir = get_cime_scripts_dir(settings.e3sm_root)
    if not os.path.isfile(os.path.join(scripts_dir, 'create_newcase')):
        raise CaseError(
            f'create_newcase script not found at: {scripts_dir}')
    if os.path.isdir(settings.case_dir):
        raise CaseError(
            f'Case directory already exists: {settings.case_dir}'
            '\nRemove it first or choose a different case name'
        )
    for label, value in (
        ('E3SM root', settings.e3sm_root),
        ('Machine', settings.machine),
        ('Compiler', settings.compiler),
        ('Resolution', settings.resolution),
        ('Compset', settings.compset),
        ('Case name', settings.case_name),
        ('Case directory', settings.case_dir),
        ('DATM end year', settings.datm_end_year),
        ('Git hash', settings.git_hash),
    ):
        LOG.info(f'{label + ":":<18} {value}')


def get_xml_changes(settings: CaseSettings) -> List[Tuple[str, str]]:
    """Return the (variable, value) pairs set with xmlchange.

    Examples:
        >>> settings = CaseSettings(
        ...     '/e3sm', 'mac', 'gnu11', '1x1_brazil', 'I1850ELM', 'c',
        ...     '/cases/c', 1948, 'abc')
        >>> dict(get_xml_changes(settings))['RUNDIR']
        '/cases/c/run'

    """
    return [
        # limits the atmospheric forcing data download
        ('DATM_CLMNCEP_YR_END', str(settings.datm_end_year)),
        ('PIO_TYPENAME', 'netcdf'),
        ('MPILIB', 'openmpi'),
        ('PIO_VERSION', '2'),
        ('RUNDIR', os.path.join(settings.case_dir, 'run')),
        ('EXEROOT', os.path.join(settings.case_dir, 'bld')),
    ]


def create_case(settings: CaseSettings) -> None:
    """Run create_newcase."""
    LOG.info('Creating E3SM case...')
    scripts_dir = get_cime_scripts_dir(settings.e3sm_root)
    run_cmd(
        SubProcContext(
            'create_newcase',
            [
                './create_newcase',
                '--case', settings.case_dir,
                '--res', settings.resolution,
                '--mach', settings.machine,
                '--compiler', settings.compiler,
                '--compset', settings.compset,
                '--run-unsupported',
            ],
            cwd=scripts_dir,
        ),
        message='Case creation failed',
    )
    LOG.info('Case created successfully')


def configure_case(settings: CaseSettings) -> None:
    """Apply the xmlchange settings then run case.setup."""
    LOG.info('Configuring case...')
    for key, value in get_xml_changes(settings):
        LOG.info(f'Setting {key}={value}')
        run_cmd(
            SubProcContext(
                'xmlchange',
                ['./xmlchange', f'{key}={value}'],
                cwd=settings.case_dir,
            ),
            message=f'xmlchange {key} failed',
        )
    LOG.info('Running case.setup...')
    run_cmd(
        SubProcContext(
            'case.setup', ['./case.setup'], cwd=settings.case_dir),
        message='Case setup failed',
    )
    LOG.info('Case configured successfully')


def build_case(settings: CaseSettings) -> None:
    """Run case.build."""
    LOG.info('Building case...')
    run_cmd(
        SubProcContext(
            'case.build', ['./case.build'], cwd=settings.case_dir),
        message='Build failed',
    )
    LOG.info('Build completed successfully')


def submit_case(settings: CaseSettings) -> None:
    """Run case.submit."""
    LOG.info('Submitting case...')
    run_cmd(
        SubProcContext(
            'case.submit', ['./case.submit'], cwd=settings.case_dir),
        message='Submit failed',
    )
    LOG.info('Case submitted successfully')


def run_case_workflow(settings: CaseSettings) -> None:
    """Create and set up the case, then build and submit if requested."""
    create_case(settings)
    configure_case(settings)
    if settings.build:
        build_case(settings)
    if settings.submit:
        submit_case(settings)


def get_next_steps(settings: CaseSettings) -> List[str]:
    """Return the closing summary, depending on what has been run."""
    case_dir = settings.case_dir
    if not settings.build:
        return [
            '1. Navigate to case directory:',
            f'   cd {case_dir}',
            '2. Review configuration (optional):',
            '   ./xmlquery STOP_OPTION',
            '   ./xmlquery DATM_CLMNCEP_YR_END',
            '3. Build the case:',
            '   ./case.build',
            '4. Download input data:',
            '   ./check_input_data --download',
            '5. Submit the run:',
            '   ./case.submit',
        ]
    if not settings.submit:
        return [
            '1. Navigate to case directory:',
            f'   cd {case_dir}',
            '2. Download input data:',
            '   ./check_input_data --download',
            '3. Submit the run:',
            '   ./case.submit',
        ]
    return [
        'Case is running! Monitor progress:',
        f'   cd {case_dir}',
        '   tail -f run/e3sm.log.*',
    ]
