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

"""e3sm-bootstrap config [OPTIONS]

Parse and print the e3sm-bootstrap global configuration.

The site config (/etc/e3sm-bootstrap/global.conf) is loaded first, then
the user config (~/.e3sm-bootstrap/global.conf). Settings in the user
config override those in the site config.

By default, unset values are printed as an empty string, or (for
historical reasons) as "None" with -o/--one-line. These defaults
can be changed with the -n/--null-value option.

Examples:
  # print the global configuration, including defaults
  $ e3sm-bootstrap config

  # print only the settings which have been configured
  $ e3sm-bootstrap config --sparse

  # print a specific setting
  $ e3sm-bootstrap config -i '[install]prefix'

  # print the settings for one library
  $ e3sm-bootstrap config -i '[install][hdf5]'

  # print the config files which are looked for
  $ e3sm-bootstrap config --print-hierarchy
"""

import os.path
from typing import TYPE_CHECKING, List

from e3sm.bootstrap.cfgspec.glbl_cfg import glbl_cfg
from e3sm.bootstrap.option_parsers import BootstrapOptionParser as BOP
from e3sm.bootstrap.terminal import cli_function

if TYPE_CHECKING:
    from optparse import Values


def get_option_parser() -> BOP:
    parser = BOP(__doc__)

    parser.add_option(
        "-i", "--item", metavar="[SEC...]ITEM",
        help="Item or section to print (multiple use allowed).",
        action="append", dest="item", default=[])

    parser.add_option(
        '-s', '--sparse',
        help='Only print settings which have been configured'
        ' (exclude the default values).',
        action='store_true',
        default=False
    )

    parser.add_option(
        "-n", "--null-value",
        help="The string to print for unset values (default nothing).",
        metavar="STRING", action="store", default='', dest="none_str")

    parser.add_option(
        "-o", "--one-line",
        help="Print multiple single-value items at once.",
        action="store_true", default=False, dest="oneline")

    parser.add_option(
        "--print-hierarchy", "--print-filenames", "--hierarchy",
        help=(
            "Print the list of locations in which configuration files are "
            "looked for. An existing configuration file lower down the list "
            "overrides any settings it shares with those higher up."),
        action="store_true", default=False, dest="print_hierarchy")

    return parser


def get_config_file_hierarchy() -> List[str]:
    return [
        os.path.join(path, glbl_cfg().CONF_BASENAME)
        for _, path in glbl_cfg().conf_dir_hierarchy
    ]


@cli_function(get_option_parser)
def main(_parser: BOP, options: 'Values') -> None:
    if options.print_hierarchy:
        print("\n".join(get_config_file_hierarchy()))
        return

    glbl_cfg().idump(
        options.item,
        options.sparse,
        oneline=options.oneline,
        none_str=options.none_str
    )
