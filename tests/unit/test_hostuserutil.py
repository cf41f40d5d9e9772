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

import os

import pytest

from e3sm.bootstrap.hostuserutil import (
    HostUtil,
    get_host,
    get_short_host,
    get_user_home,
)


@pytest.fixture
def host_util(monkeypatch: pytest.MonkeyPatch):
    """A fresh HostUtil singleton with a known host name."""
    monkeypatch.setattr(
        'e3sm.bootstrap.hostuserutil.socket.gethostname',
        lambda: 'mymac.example.org',
    )
    return HostUtil.get_inst(new=True)


def test_get_host(host_util):
    assert get_host() == 'mymac.example.org'
    assert get_short_host() == 'mymac'


def test_get_user_home(monkeypatch: pytest.MonkeyPatch):
    """It falls back to the password entry if $USER is unset."""
    monkeypatch.delenv("USER", raising=False)
    HostUtil.get_inst(new=True)
    assert os.path.isdir(get_user_home())


def test_singleton_expires(host_util):
    assert HostUtil.get_inst() is host_util
    assert HostUtil.get_inst(expire=-1) is host_util
    # an expired singleton is replaced on the next call
    expired = HostUtil.get_inst(new=True, expire=-1)
    assert HostUtil.get_inst() is not expired
