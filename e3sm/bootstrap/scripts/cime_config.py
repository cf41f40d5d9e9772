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

"""e3sm-bootstrap cime-config [OPTIONS]

Generate the CIME configuration files for this machine.

Detects the machine name, CPU cores, macOS SDK and compilers then writes:
  ~/.cime/config_machines.xml
  ~/.cime/config_compilers.xml
  ~/.cime/cmake_macros/<compiler>_<machine>.cmake

Existing files are only overwritten with --force or after confirmation.

The MPI compiler wrappers are taken from the installation prefix if
"e3sm-bootstrap install-libs" has been run, otherwise from $PATH.

Examples:
  # auto-detect everything
  $ e3sm-bootstrap cime-config

  # specify a custom machine name
  $ e3sm-bootstrap cime-config --machine MyMacBook

  # use a different compiler name and install prefix
  $ e3sm-bootstrap cime-config --compiler gnu13 --install-prefix /opt/gcc13

  # overwrite existing files without asking
  $ e3sm-bootstrap cime-config --force --yes
"""

from typing import TYPE_CHECKING

from e3sm.bootstrap import LOG
from e3sm.bootstrap.cime_config import (
    detect_system,
    generate_cime_config,
    get_summary,
)
from e3sm.bootstrap.compilers import detect_compilers
from e3sm.bootstrap.option_parsers import BootstrapOptionParser as BOP
from e3sm.bootstrap.pathutil import expand_path
from e3sm.bootstrap.terminal import cli_function, confirm

if TYPE_CHECKING:
    from optparse import Values


def confirm_overwrite(path: str) -> bool:
    return confirm(f'Overwrite {path}', default=False)


def get_option_parser() -> BOP:
    parser = BOP(__doc__, confirm=True)

    parser.add_option(
        '-m', '--machine',
        help='Machine name (default: the short host name).',
        metavar='NAME', action='store', dest='machine')

    parser.add_option(
        '-c', '--compiler',
        help='Compiler name (default: gnu11).',
        metavar='NAME', action='store', dest='compiler')

    parser.add_option(
        '--install-prefix',
        help='Installation prefix of the libraries (default: ~/local/gcc11).',
        metavar='DIR', action='store', dest='install_prefix')

    parser.add_option(
        '--cores',
        help='Number of CPU cores (default: auto-detect).',
        metavar='NUM', action='store', type='int', dest='cores')

    parser.add_option(
        '--force',
        help='Overwrite existing configuration files.',
        action='store_true', default=False, dest='force')

    return parser


@cli_function(get_option_parser)
def main(parser: BOP, options: 'Values') -> None:
    if options.cores is not None and options.cores < 1:
        parser.error('--cores must be a positive integer')
    info = detect_system(
        machine=options.machine,
        compiler=options.compiler,
        max_cores=options.cores,
        install_prefix=(
            expand_path(options.install_prefix)
            if options.install_prefix else None
        ),
    )
    compilers = detect_compilers(info.install_prefix)

    if not options.assume_yes and not confirm(
        'Continue with configuration', default=True
    ):
        LOG.info('Aborted by user')
        return

    generate_cime_config(
        info,
        compilers,
        force=options.force,
        confirm_overwrite=confirm_overwrite,
    )
    LOG.info('CIME configuration complete!')
    for line in get_summary(info):
        print(line)
