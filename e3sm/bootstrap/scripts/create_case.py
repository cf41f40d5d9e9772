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

"""e3sm-bootstrap create-case [OPTIONS]

Create and configure a single-point land model case for E3SM.

Runs CIME's create_newcase, applies the case settings with xmlchange and
runs case.setup. With --build the case is also built, with --submit it is
built and submitted.

The generated case name (if --case-name is not given) has the format:
  <res>.<compset>.<machine>.<compiler>.<git-hash>.<date>
e.g. 1x1_brazil.I1850ELM.MyMac.gnu11.abc1234.2026-02-13

Defaults can be set in the [case] section of the global config.

Examples:
  # auto-detect the E3SM root, use defaults
  $ e3sm-bootstrap create-case

  # specify the E3SM location
  $ e3sm-bootstrap create-case --e3sm-root ~/projects/e3sm/e3sm

  # custom machine and build immediately
  $ e3sm-bootstrap create-case --machine MyMacBook --build

  # different resolution and compset
  $ e3sm-bootstrap create-case --res 1x1_mexicocityMEX --compset I2000ELM

  # custom case name and directory
  $ e3sm-bootstrap create-case --case-name my_test --case-dir ~/e3sm_cases

  # download more years of forcing data
  $ e3sm-bootstrap create-case --datm-end-year 1950

Common Resolutions:
  1x1_brazil          # single point in Brazil
  1x1_mexicocityMEX   # single point in Mexico City
  1x1_vancouverCAN    # single point in Vancouver
  1x1_urbanc_alpha    # urban test point
  CLM_USRDAT          # user-defined domain

Common Compsets:
  I1850ELM            # land-only, 1850 conditions
  I2000ELM            # land-only, 2000 conditions
  I1850CRUELMCN       # land with CRU-NCEP forcing
"""

from typing import TYPE_CHECKING

from e3sm.bootstrap import LOG
from e3sm.bootstrap.case import (
    get_case_settings,
    get_next_steps,
    run_case_workflow,
    validate_settings,
)
from e3sm.bootstrap.option_parsers import BootstrapOptionParser as BOP
from e3sm.bootstrap.terminal import cli_function, confirm

if TYPE_CHECKING:
    from optparse import Values


def get_option_parser() -> BOP:
    parser = BOP(__doc__, confirm=True)

    parser.add_option(
        '-e', '--e3sm-root',
        help='Path to the E3SM repository'
        ' (default: $E3SM_ROOT or auto-detect).',
        metavar='DIR', action='store', dest='e3sm_root')

    parser.add_option(
        '-m', '--machine',
        help='Machine name (default: auto-detect from the CIME config).',
        metavar='NAME', action='store', dest='machine')

    parser.add_option(
        '-c', '--compiler',
        help='Compiler name (default: gnu11).',
        metavar='NAME', action='store', dest='compiler')

    parser.add_option(
        '-r', '--res',
        help='Grid resolution (default: 1x1_brazil).',
        metavar='RESOLUTION', action='store', dest='resolution')

    parser.add_option(
        '--compset',
        help='Component set (default: I1850ELM).',
        metavar='COMPSET', action='store', dest='compset')

    parser.add_option(
        '--case-name',
        help='Custom case name (default: generated, see above).',
        metavar='NAME', action='store', dest='case_name')

    parser.add_option(
        '--case-dir',
        help='Parent directory for the case'
        ' (default: <e3sm-root>/cime/scripts).',
        metavar='DIR', action='store', dest='case_dir')

    parser.add_option(
        '--datm-end-year',
        help='DATM forcing end year (default: 1948, limits data download).',
        metavar='YEAR', action='store', type='int', dest='datm_end_year')

    parser.add_option(
        '--build',
        help='Build the case immediately after setup.',
        action='store_true', default=False, dest='build')

    parser.add_option(
        '--submit',
        help='Submit the case after building (implies --build).',
        action='store_true', default=False, dest='submit')

    return parser


@cli_function(get_option_parser)
def main(_parser: BOP, options: 'Values') -> None:
    settings = get_case_settings(
        e3sm_root=options.e3sm_root,
        machine=options.machine,
        compiler=options.compiler,
        resolution=options.resolution,
        compset=options.compset,
        case_name=options.case_name,
        case_dir=options.case_dir,
        datm_end_year=options.datm_end_year,
        build=options.build,
        submit=options.submit,
    )
    validate_settings(settings)

    if not options.assume_yes and not confirm(
        'Continue with case creation', default=True
    ):
        LOG.info('Aborted by user')
        return

    run_case_workflow(settings)

    LOG.info('Case setup complete!')
    print(f'Case name: {settings.case_name}')
    print(f'Case directory: {settings.case_dir}')
    print('')
    print('Next steps:')
    for line in get_next_steps(settings):
        print(line)
