import io
import os
import tarfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from zipfile import ZipFile

import pytest

MTIME = datetime(2024, 12, 1, 12, 30, 15, 250000, tzinfo=UTC)

DISTRIBUTIONS = [
    ("Demo", "1.0", "demo-1.0-py3-none-any.whl"),
    ("Demo", "1.0", "demo-1.0.tar.gz"),
    ("Demo", "2.1", "demo-2.1-py3-none-any.whl"),
    ("other", "0.1.0", "sub/other-0.1.0-py3-none-any.whl"),
]


def core_metadata(name: str, version: str) -> bytes:
    return f"Metadata-Version: 2.1\nName: {name}\nVersion: {version}\nRequires-Python: >=3.8\n".encode()


def write_wheel(file: Path, name: str, version: str) -> None:
    distribution, wheel_version, _ = file.name.split("-", 2)
    with ZipFile(file, "w") as zip:
        zip.writestr(f"{distribution}-{wheel_version}.dist-info/METADATA", core_metadata(name, version))


def write_sdist(file: Path, name: str, version: str) -> None:
    content = core_metadata(name, version)
    info = tarfile.TarInfo(f"{file.name.removesuffix('.tar.gz')}/PKG-INFO")
    info.size = len(content)
    with tarfile.open(file, "w:gz") as tar:
        tar.addfile(info, io.BytesIO(content))


@pytest.fixture
def files_dir(tmp_path: Path) -> Path:
    files = tmp_path / "files"
    for name, version, entry in DISTRIBUTIONS:
        file = files / entry
        file.parent.mkdir(parents=True, exist_ok=True)
        if file.suffix == ".whl":
            write_wheel(file, name, version)
        else:
            write_sdist(file, name, version)
    files.joinpath("not-a-dist.txt").touch()
    files.joinpath("invalid-dist.tar.gz").touch()
    for file in files.rglob("*.*"):
        os.utime(file, (MTIME.timestamp(), MTIME.timestamp()))
    return files


@pytest.fixture
def document() -> dict[str, Any]:
    return {
        "meta": {"api_version": "1.1"},
        "name": "pkg",
        "versions": ["1.0", "2.0"],
        "files": [
            {
                "filename": "pkg-1.0.tar.gz",
                "url": "/files/pkg-1.0.tar.gz",
                "hashes": {"sha256": "0" * 64},
                "size": 1024,
                "upload_time": "2022-01-01T00:00:00.000000Z",
            },
            {
                "filename": "pkg-2.0-py3-none-any.whl",
                "url": "/files/pkg-2.0-py3-none-any.whl",
                "hashes": {"sha256": "1" * 64},
                "requires_python": ">=3.8",
                "size": 2048,
                "upload_time": "2022-02-01T10:20:30.123456Z",
            },
        ],
    }
