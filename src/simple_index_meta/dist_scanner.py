import hashlib
import logging
from collections import defaultdict
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from tarfile import TarFile
from zipfile import ZipFile

from packaging.metadata import parse_email
from packaging.utils import (
    NormalizedName,
    canonicalize_name,
    canonicalize_version,
    parse_sdist_filename,
    parse_wheel_filename,
)
from packaging.version import Version

from .builder import build_project_detail
from .models import DistributionFile, ProjectDetail

logger = logging.getLogger(__name__)


class ScannerError(Exception):
    pass


class UnhandledFileTypeError(ScannerError):
    pass


class InvalidFileError(ValueError):
    pass


def read_project_metadata(file: Path) -> bytes:
    if file.suffix == ".whl":
        parse_wheel_filename(file.name)
        # https://packaging.python.org/en/latest/specifications/binary-distribution-format/
        distribution, version, _ = file.name.split("-", 2)
        subdir = f"{distribution}-{version}.dist-info"
        with ZipFile(file) as zip, zip.open(f"{subdir}/METADATA") as fp:
            return fp.read()

    elif file.name.endswith(".tar.gz"):
        parse_sdist_filename(file.name)
        # https://packaging.python.org/en/latest/specifications/source-distribution-format/
        subdir = file.name.removesuffix(".tar.gz")
        with TarFile.open(file) as tar_file:
            pkg_info = tar_file.extractfile(f"{subdir}/PKG-INFO")
            if pkg_info is None:
                raise InvalidFileError(f"{file.name} has no PKG-INFO file")
            with pkg_info as fp:
                return fp.read()

    raise UnhandledFileTypeError(f"Can't handle type {file.name}")


def _get_file_hashes(filename: Path, blocksize: int = 2 << 13) -> dict[str, str]:
    hash_obj = hashlib.sha256()
    with open(filename, "rb") as fp:
        while fb := fp.read(blocksize):
            hash_obj.update(fb)
    return {hash_obj.name: hash_obj.hexdigest()}


@dataclass
class ProjectFileReader:
    files_dir: Path
    files_url: str = "/files"
    include_size: bool = True
    include_upload_time: bool = True

    def iter_files(self) -> Iterator[Path]:
        for file in sorted(self.files_dir.rglob("*.*")):
            if file.is_file():
                yield file

    def read(self, file: Path) -> tuple[NormalizedName, DistributionFile]:
        try:
            metadata_content = read_project_metadata(file)
            metadata, _ = parse_email(metadata_content)
            name = canonicalize_name(metadata["name"])  # type: ignore
            version = canonicalize_version(metadata["version"])  # type: ignore
        except ScannerError:
            raise
        except Exception as e:
            raise InvalidFileError(f"Can't read {file.name}: {e!r}") from e

        file_stat = file.stat()
        dist = DistributionFile(
            filename=file.name,
            url=f"{self.files_url.rstrip('/')}/{file.relative_to(self.files_dir).as_posix()}",
            hashes=_get_file_hashes(file),
            version=version,
            size=file_stat.st_size if self.include_size else None,
            upload_time=(
                datetime.fromtimestamp(file_stat.st_mtime, tz=UTC) if self.include_upload_time else None
            ),
            requires_python=metadata.get("requires_python"),
            core_metadata={"sha256": hashlib.sha256(metadata_content).hexdigest()},
        )
        return name, dist


def scan_projects(reader: ProjectFileReader) -> dict[NormalizedName, list[DistributionFile]]:
    projects = defaultdict[NormalizedName, list[DistributionFile]](list)
    for file in reader.iter_files():
        try:
            name, dist = reader.read(file)
        except UnhandledFileTypeError:
            logger.debug("Ignoring %s", file.relative_to(reader.files_dir))
            continue
        except InvalidFileError as e:
            logger.error(e)
            continue
        projects[name].append(dist)
    return dict(projects)


def build_index(
    reader: ProjectFileReader, include_versions: bool = True
) -> dict[NormalizedName, ProjectDetail]:
    logger.info("Scanning distributions in %s", reader.files_dir)
    index = {}
    for name, files in sorted(scan_projects(reader).items()):
        files.sort(key=lambda f: f.filename)
        versions = None
        if include_versions:
            # canonicalized already, equal versions collapse
            versions = sorted({f.version for f in files if f.version}, key=Version)
        index[name] = build_project_detail(name, files, versions)
    logger.info(
        "Index with %d projects and %d distributions",
        len(index),
        sum(len(d.files) for d in index.values()),
    )
    return index
