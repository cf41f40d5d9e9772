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

"""e3sm-bootstrap install-libs [OPTIONS] [TARGET]

Build and install the libraries E3SM depends on.

Downloads, configures, builds and installs OpenMPI, HDF5, NetCDF-C and
NetCDF-Fortran (in that order) into the installation prefix. Libraries
which are already installed are skipped. The first failure aborts the run.

If no TARGET is given an interactive menu is shown.

The installation prefix defaults to "~/local/gcc11", this can be changed
with the INSTALL_PREFIX environment variable or in the global config
(see "e3sm-bootstrap config").

Examples:
  # install everything (recommended)
  $ e3sm-bootstrap install-libs all

  # install a single library
  $ e3sm-bootstrap install-libs netcdf-c

  # check the installation and print the environment for ~/.zshrc
  $ e3sm-bootstrap install-libs verify

  # check the build tools are available
  $ e3sm-bootstrap install-libs check
"""

from functools import partial
from typing import TYPE_CHECKING, Callable, Dict, List

from e3sm.bootstrap import LOG, terminal
from e3sm.bootstrap.cfgspec.glbl_cfg import glbl_cfg
from e3sm.bootstrap.exceptions import InputError
from e3sm.bootstrap.install import (
    check_prerequisites,
    install_all,
    install_package,
    verify_installation,
)
from e3sm.bootstrap.option_parsers import BootstrapOptionParser as BOP
from e3sm.bootstrap.packages import INSTALL_ORDER, get_package
from e3sm.bootstrap.pathutil import get_install_prefix
from e3sm.bootstrap.terminal import cli_function, handle_sigint

if TYPE_CHECKING:
    from optparse import Values


TARGET_ARG_DOC = (
    'TARGET',
    f'all|{"|".join(INSTALL_ORDER)}|verify|check',
)

EXIT_OPTION = '0'
ALL_OPTION = '1'


def install_one(name: str) -> None:
    """Install a single library."""
    install_package(get_package(name, glbl_cfg()))


def get_targets() -> Dict[str, Callable[[], object]]:
    """Return {target: action}."""
    return {
        'all': install_all,
        **{name: partial(install_one, name) for name in INSTALL_ORDER},
        'verify': verify_installation,
        'check': check_prerequisites,
    }


def get_menu() -> Dict[str, str]:
    """Return {option: target} for the interactive menu.

    Examples:
        >>> get_menu()['1'], get_menu()['5'], get_menu()['7']
        ('all', 'netcdf-fortran', 'check')

    """
    return {
        str(number): target
        for number, target in enumerate(
            ['all', *INSTALL_ORDER, 'verify', 'check'],
            start=1,
        )
    }


def get_menu_lines(prefix: str) -> List[str]:
    """Return the interactive menu text."""
    cfg = glbl_cfg()
    titles = {
        name: get_package(name, cfg).title
        for name in INSTALL_ORDER
    }
    labels = {
        'all': 'Install all packages (recommended)',
        **{
            name: f'Install {title} only'
            for name, title in titles.items()
        },
        'verify': 'Verify installation',
        'check': 'Check prerequisites',
    }
    return [
        '',
        'E3SM Libraries Installation',
        '===========================',
        f'Installation prefix: {prefix}',
        '',
        *(f'{option}) {labels[target]}' for option, target in
          get_menu().items()),
        f'{EXIT_OPTION}) Exit',
        '',
    ]


def run_target(target: str) -> None:
    """Run the action for a named target.

    Raises:
        InputError: If the target is not recognised.

    """
    targets = get_targets()
    if target not in targets:
        raise InputError(
            f'Unknown target: {target}'
            f'\nValid targets are: {TARGET_ARG_DOC[1]}'
        )
    targets[target]()


def interactive_menu() -> None:
    """Show the menu until the user exits or installs everything."""
    menu = get_menu()
    prefix = get_install_prefix()
    while True:
        for line in get_menu_lines(prefix):
            print(line)
        with handle_sigint():
            choice = terminal.input('Choose an option: ').strip()
        if choice == EXIT_OPTION:
            return
        if choice not in menu:
            LOG.error(f'Invalid option: {choice}')
            continue
        run_target(menu[choice])
        if choice == ALL_OPTION:
            return


def get_option_parser() -> BOP:
    return BOP(
        __doc__,
        argdoc=[BOP.optional(TARGET_ARG_DOC)],
    )


@cli_function(get_option_parser)
def main(_parser: BOP, _options: 'Values', target: str = '') -> None:
    if target:
        run_target(target)
    else:
        interactive_menu()
