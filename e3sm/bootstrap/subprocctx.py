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
"""Context objects for external commands run by e3sm-bootstrap."""

from shlex import quote


class SubProcContext:  # noqa: SIM119 (not really relevant to this case)
    """Represent the context of an external command to run as a subprocess.

    Attributes:
        .cmd (list):
            The command to run expressed as a list.
        .cmd_key (str):
            A key to identify the type of command. E.g. "hdf5-configure".
        .cmd_kwargs (dict):
            Extra information about the command. This may contain:
                cwd (str):
                    Directory to run the command in.
                env (dict):
                    Complete environment for command.
                err (str):
                    Default STDERR content.
                out (str):
                    Default STDOUT content.
                ret_code (int):
                    Default return code.
        .err (str):
            Content of the command's STDERR (if captured).
        .out (str)
            Content of the command's STDOUT (if captured).
        .ret_code (int):
            Return code of the command.

    Examples:
        >>> ctx = SubProcContext('make', ['make', '-j8'], cwd='/src')
        >>> ctx.ret_code = 2
        >>> print(ctx)
        [make cmd] make -j8
        [make ret_code] 2
    """

    # Format string for single line output
    LOG_FMT_1 = '[%(cmd_key)s %(attr)s] %(mesg)s'
    # Format string for multi-line output
    LOG_FMT_M = '[%(cmd_key)s %(attr)s]\n%(mesg)s'

    def __init__(self, cmd_key, cmd, **cmd_kwargs):
        self.cmd_key = cmd_key
        self.cmd = cmd
        self.cmd_kwargs = cmd_kwargs

        self.err = cmd_kwargs.get('err')
        self.ret_code = cmd_kwargs.get('ret_code')
        self.out = cmd_kwargs.get('out')

    @property
    def cwd(self):
        return self.cmd_kwargs.get('cwd')

    @property
    def env(self):
        return self.cmd_kwargs.get('env')

    def __str__(self):
        ret = ''
        for attr in 'cmd', 'ret_code', 'out', 'err':
            value = getattr(self, attr, None)
            if value is not None and str(value).strip():
                if attr == 'cmd' and isinstance(value, list):
                    mesg = ' '.join(quote(item) for item in value)
                else:
                    mesg = str(value).strip()
                if len(mesg.splitlines()) > 1:
                    fmt = self.LOG_FMT_M
                else:
                    fmt = self.LOG_FMT_1
                if not mesg.endswith('\n'):
                    mesg += '\n'
                ret += fmt % {
                    'cmd_key': self.cmd_key,
                    'attr': attr,
                    'mesg': mesg}
        return ret.rstrip()
