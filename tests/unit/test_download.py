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

import io
from pathlib import Path
import tarfile
from unittest.mock import MagicMock

import pytest
import requests

from e3sm.bootstrap.download import PARTIAL_SUFFIX, download, extract
from e3sm.bootstrap.exceptions import DownloadError, InstallError


URL = 'https://example.com/hdf5-1.14.5.tar.gz'


@pytest.fixture
def mock_get(monkeypatch):
    """Replace requests.get with a mock which streams the given chunks."""
    def _mock_get(chunks=(b'data',), exc=None):
        resp = MagicMock()
        resp.__enter__.return_value = resp
        resp.iter_content.return_value = iter(chunks)
        if exc:
            resp.raise_for_status.side_effect = exc
        get = MagicMock(return_value=resp)
        monkeypatch.setattr('e3sm.bootstrap.download.requests.get', get)
        return get
    return _mock_get


def make_tarball(path: Path, members: dict) -> Path:
    """Write a gzipped tarball containing {name: content}."""
    with tarfile.open(path, 'w:gz') as tar:
        for name, content in members.items():
            data = content.encode()
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return path


def test_download(tmp_path: Path, mock_get):
    get = mock_get([b'abc', b'def'])
    dest = str(tmp_path / 'hdf5-1.14.5.tar.gz')
    assert download(URL, dest) == dest
    assert Path(dest).read_bytes() == b'abcdef'
    assert not Path(dest + PARTIAL_SUFFIX).exists()
    assert get.call_args[0] == (URL,)
    assert get.call_args[1]['stream'] is True


def test_download_existing(tmp_path: Path, mock_get):
    get = mock_get()
    dest = tmp_path / 'hdf5-1.14.5.tar.gz'
    dest.write_bytes(b'cached')
    assert download(URL, str(dest)) == str(dest)
    assert not get.called
    assert dest.read_bytes() == b'cached'


def test_download_http_error(tmp_path: Path, mock_get):
    mock_get(exc=requests.exceptions.HTTPError('404 Client Error'))
    dest = tmp_path / 'hdf5-1.14.5.tar.gz'
    with pytest.raises(DownloadError) as excinfo:
        download(URL, str(dest))
    assert str(excinfo.value) == f'Could not download {URL}\n404 Client Error'
    assert not dest.exists()
    assert not Path(str(dest) + PARTIAL_SUFFIX).exists()


@pytest.mark.parametrize(
    'exc, expected',
    [
        pytest.param(
            requests.exceptions.ConnectionError('connection reset'),
            DownloadError,
            id='connection-reset',
        ),
        pytest.param(KeyboardInterrupt(), KeyboardInterrupt, id='ctrl-c'),
    ]
)
def test_download_interrupted(tmp_path: Path, monkeypatch, exc, expected):
    """A failure part way through leaves no files behind."""
    def _chunks(chunk_size):
        yield b'abc'
        raise exc

    resp = MagicMock()
    resp.__enter__.return_value = resp
    resp.iter_content.side_effect = _chunks
    monkeypatch.setattr(
        'e3sm.bootstrap.download.requests.get',
        MagicMock(return_value=resp),
    )
    dest = tmp_path / 'hdf5-1.14.5.tar.gz'
    with pytest.raises(expected):
        download(URL, str(dest))
    assert list(tmp_path.iterdir()) == []


def test_extract(tmp_path: Path):
    tarball = make_tarball(tmp_path / 'hdf5-1.14.5.tar.gz', {
        'hdf5-1.14.5/configure': '#!/bin/sh\n',
        'hdf5-1.14.5/README': 'HDF5',
    })
    dest = tmp_path / 'packages'
    dest.mkdir()
    extract(str(tarball), str(dest))
    assert (dest / 'hdf5-1.14.5' / 'README').read_text() == 'HDF5'


def test_extract_corrupt(tmp_path: Path):
    tarball = tmp_path / 'hdf5-1.14.5.tar.gz'
    tarball.write_bytes(b'<html>Not Found</html>')
    with pytest.raises(InstallError) as excinfo:
        extract(str(tarball), str(tmp_path))
    assert 'Remove the file to download it again' in str(excinfo.value)


def test_extract_unsafe(tmp_path: Path):
    tarball = make_tarball(tmp_path / 'evil.tar.gz', {
        '../outside.txt': 'oops',
    })
    dest = tmp_path / 'packages'
    dest.mkdir()
    with pytest.raises(InstallError):
        extract(str(tarball), str(dest))
    assert not (tmp_path / 'outside.txt').exists()
