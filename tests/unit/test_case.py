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

import logging
from pathlib import Path

import pytest

from e3sm.bootstrap.case import (
    CaseSettings,
    detect_e3sm_root,
    detect_machine,
    generate_case_name,
    get_case_settings,
    get_next_steps,
    get_xml_changes,
    read_cime_machine,
    run_case_workflow,
    validate_settings,
)
from e3sm.bootstrap.exceptions import CaseError, CommandFailedError


MACHINES_XML = '''<?xml version="1.0"?>
<config_machines version="2.0">
  <machine MACH="mymac">
    <OS>Darwin</OS>
  </machine>
</config_machines>
'''


@pytest.fixture
def e3sm_root(tmp_path: Path, make_executable) -> Path:
    """An E3SM source tree with a create_newcase script."""
    root = tmp_path / 'E3SM'
    make_executable(root / 'cime' / 'scripts' / 'create_newcase')
    return root


@pytest.fixture
def cime_dir(global_conf, tmp_path: Path) -> Path:
    path = tmp_path / 'cime'
    path.mkdir()
    global_conf(f'[cime]\n    config dir = {path}\n')
    return path


@pytest.fixture
def mock_host(monkeypatch):
    monkeypatch.setattr(
        'e3sm.bootstrap.case.get_short_host', lambda: 'myhost')
    monkeypatch.setattr(
        'e3sm.bootstrap.case.get_git_hash', lambda repo: 'abc1234')
    monkeypatch.setattr(
        'e3sm.bootstrap.case.get_current_date_string', lambda: '2026-10-19')


@pytest.fixture
def settings(e3sm_root: Path, tmp_path: Path) -> CaseSettings:
    return CaseSettings(
        e3sm_root=str(e3sm_root),
        machine='mymac',
        compiler='gnu11',
        resolution='1x1_brazil',
        compset='I1850ELM',
        case_name='test_case',
        case_dir=str(tmp_path / 'cases' / 'test_case'),
        datm_end_year=1950,
        git_hash='abc1234',
    )


class TestDetectE3SMRoot:

    def test_argument(self, e3sm_root, monkeypatch):
        monkeypatch.setenv('E3SM_ROOT', '/not/used')
        assert detect_e3sm_root(str(e3sm_root)) == str(e3sm_root)

    def test_environment(self, e3sm_root, monkeypatch):
        monkeypatch.setenv('E3SM_ROOT', str(e3sm_root))
        assert detect_e3sm_root() == str(e3sm_root)

    def test_search(self, e3sm_root, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(
            'e3sm.bootstrap.case.E3SM_ROOT_SEARCH_PATHS',
            [str(tmp_path / 'nope'), str(e3sm_root)],
        )
        assert detect_e3sm_root() == str(e3sm_root)

    def test_search_cwd(self, e3sm_root, monkeypatch):
        monkeypatch.chdir(e3sm_root)
        monkeypatch.setattr('e3sm.bootstrap.case.E3SM_ROOT_SEARCH_PATHS', [])
        assert detect_e3sm_root() == str(e3sm_root)

    def test_not_found(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr('e3sm.bootstrap.case.E3SM_ROOT_SEARCH_PATHS', [])
        with pytest.raises(CaseError) as excinfo:
            detect_e3sm_root()
        assert 'Cannot find E3SM repository' in str(excinfo.value)

    def test_invalid(self, tmp_path):
        with pytest.raises(CaseError) as excinfo:
            detect_e3sm_root(str(tmp_path))
        assert str(excinfo.value) == (
            f'Invalid E3SM root: {tmp_path}'
            '\nDirectory does not contain cime/scripts/'
        )


def test_read_cime_machine(tmp_path: Path, caplog, log_filter):
    path = tmp_path / 'config_machines.xml'
    assert read_cime_machine(str(path)) is None

    path.write_text(MACHINES_XML)
    assert read_cime_machine(str(path)) == 'mymac'

    path.write_text('<config_machines><machine/></config_machines>')
    assert read_cime_machine(str(path)) is None

    path.write_text('<config_machines><machine MACH="x">')
    assert read_cime_machine(str(path)) is None
    assert log_filter(
        caplog, level=logging.WARNING, contains='Could not parse')


def test_detect_machine(cime_dir: Path, mock_host, caplog, log_filter):
    assert detect_machine('argmac') == 'argmac'
    assert detect_machine() == 'myhost'
    assert log_filter(
        caplog, level=logging.WARNING, contains='using hostname: myhost')
    (cime_dir / 'config_machines.xml').write_text(MACHINES_XML)
    assert detect_machine() == 'mymac'


def test_generate_case_name(mock_host):
    assert generate_case_name(
        'ne4pg2_oQU480', 'F2010', 'mymac', 'gnu11', 'abc1234'
    ) == 'ne4pg2_oQU480.F2010.mymac.gnu11.abc1234.2026-10-19'


def test_get_case_settings(e3sm_root, cime_dir, mock_host):
    settings = get_case_settings(e3sm_root=str(e3sm_root))
    case_name = '1x1_brazil.I1850ELM.myhost.gnu11.abc1234.2026-10-19'
    assert settings == CaseSettings(
        e3sm_root=str(e3sm_root),
        machine='myhost',
        compiler='gnu11',
        resolution='1x1_brazil',
        compset='I1850ELM',
        case_name=case_name,
        case_dir=str(e3sm_root / 'cime' / 'scripts' / case_name),
        datm_end_year=1948,
        git_hash='abc1234',
        build=False,
        submit=False,
    )


def test_get_case_settings_overrides(
    e3sm_root, global_conf, mock_host, tmp_path
):
    global_conf(f'''
        [case]
            e3sm root = {e3sm_root}
            case dir = {tmp_path / 'cases'}
            compset = F2010
            datm end year = 1960
    ''')
    settings = get_case_settings(
        machine='mymac', resolution='ne4pg2_oQU480', case_name='mycase',
        datm_end_year=0, submit=True,
    )
    assert settings.e3sm_root == str(e3sm_root)
    assert settings.compset == 'F2010'
    assert settings.resolution == 'ne4pg2_oQU480'
    assert settings.case_dir == str(tmp_path / 'cases' / 'mycase')
    assert settings.datm_end_year == 0
    # submitting requires a build
    assert settings.build is True
    assert settings.submit is True

    settings = get_case_settings(machine='mymac', case_dir=str(tmp_path))
    assert settings.datm_end_year == 1960
    assert settings.case_dir.startswith(f'{tmp_path}/1x1_brazil.F2010.')


def test_validate_settings(settings, caplog):
    caplog.set_level(logging.INFO, 'e3sm-bootstrap')
    validate_settings(settings)
    assert f'Case directory:    {settings.case_dir}' in caplog.messages


def test_validate_settings_no_create_newcase(settings):
    Path(settings.e3sm_root, 'cime', 'scripts', 'create_newcase').unlink()
    with pytest.raises(CaseError) as excinfo:
        validate_settings(settings)
    assert 'create_newcase script not found' in str(excinfo.value)


def test_validate_settings_case_exists(settings):
    Path(settings.case_dir).mkdir(parents=True)
    with pytest.raises(CaseError) as excinfo:
        validate_settings(settings)
    assert 'Case directory already exists' in str(excinfo.value)


def test_get_xml_changes(settings):
    assert get_xml_changes(settings) == [
        ('DATM_CLMNCEP_YR_END', '1950'),
        ('PIO_TYPENAME', 'netcdf'),
        ('MPILIB', 'openmpi'),
        ('PIO_VERSION', '2'),
        ('RUNDIR', f'{settings.case_dir}/run'),
        ('EXEROOT', f'{settings.case_dir}/bld'),
    ]


@pytest.mark.parametrize(
    'build, submit, expected',
    [
        pytest.param(
            False, False,
            ['create_newcase'] + ['xmlchange'] * 6 + ['case.setup'],
            id='setup-only'
        ),
        pytest.param(
            True, False,
            ['create_newcase'] + ['xmlchange'] * 6
            + ['case.setup', 'case.build'],
            id='build'
        ),
        pytest.param(
            True, True,
            ['create_newcase'] + ['xmlchange'] * 6
            + ['case.setup', 'case.build', 'case.submit'],
            id='submit'
        ),
    ]
)
def test_run_case_workflow(settings, mock_run_cmd, build, submit, expected):
    calls = mock_run_cmd('e3sm.bootstrap.case.run_cmd')
    run_case_workflow(settings._replace(build=build, submit=submit))
    assert [ctx.cmd_key for ctx in calls] == expected

    create = calls[0]
    assert create.cwd == f'{settings.e3sm_root}/cime/scripts'
    assert create.cmd == [
        './create_newcase',
        '--case', settings.case_dir,
        '--res', '1x1_brazil',
        '--mach', 'mymac',
        '--compiler', 'gnu11',
        '--compset', 'I1850ELM',
        '--run-unsupported',
    ]
    assert calls[1].cmd == ['./xmlchange', 'DATM_CLMNCEP_YR_END=1950']
    assert {ctx.cwd for ctx in calls[1:]} == {settings.case_dir}


def test_run_case_workflow_fails(settings, mock_run_cmd):
    calls = mock_run_cmd('e3sm.bootstrap.case.run_cmd', {'case.setup': 1})
    with pytest.raises(CommandFailedError) as excinfo:
        run_case_workflow(settings._replace(build=True))
    assert str(excinfo.value).startswith('Case setup failed')
    assert calls[-1].cmd_key == 'case.setup'


@pytest.mark.parametrize(
    'build, submit, first, last',
    [
        (False, False, '1. Navigate to case directory:', '   ./case.submit'),
        (True, False, '1. Navigate to case directory:', '   ./case.submit'),
        (True, True, 'Case is running! Monitor progress:',
         '   tail -f run/e3sm.log.*'),
    ]
)
def test_get_next_steps(settings, build, submit, first, last):
    steps = get_next_steps(settings._replace(build=build, submit=submit))
    assert steps[0] == first
    assert steps[-1] == last
    assert f'   cd {settings.case_dir}' in steps
    assert ('   ./case.build' in steps) is (not build)
