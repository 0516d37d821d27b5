import logging
from collections.abc import Iterable

from msgspec import UNSET
from packaging.version import Version

from .errors import (
    DuplicateVersionError,
    InconsistentCoverageError,
    MissingRequiredFieldError,
    NegativeSizeError,
    TypeMismatchError,
    UnlistedVersionError,
)
from .models import DistributionFile, ProjectDetail, ProjectFile
from .utils import format_upload_time, parse_version, version_from_filename

logger = logging.getLogger(__name__)

OPTIONAL_FILE_FIELDS = ("size", "upload_time")


def _check_coverage(files: list[DistributionFile]) -> None:
    for field in OPTIONAL_FILE_FIELDS:
        missing = [f.filename for f in files if getattr(f, field) is None]
        if missing and len(missing) != len(files):
            raise InconsistentCoverageError(
                f"{field} is set for some files but missing for {', '.join(missing)}"
            )


def _collect_versions(versions: Iterable[str]) -> dict[Version, str]:
    listed: dict[Version, str] = {}
    for value in versions:
        version = parse_version(value)
        if version in listed:
            raise DuplicateVersionError(f"{value!r} duplicates {listed[version]!r}")
        listed[version] = value
    return listed


def _file_version(file: DistributionFile) -> Version | None:
    if file.version is not None:
        return parse_version(file.version)
    return version_from_filename(file.filename)


def build_project_file(file: DistributionFile) -> ProjectFile:
    if not file.filename:
        raise MissingRequiredFieldError("filename must not be empty")
    if file.size is not None and (isinstance(file.size, bool) or not isinstance(file.size, int)):
        raise TypeMismatchError(f"{file.filename} has a size of type {type(file.size).__name__}")
    if file.size is not None and file.size < 0:
        raise NegativeSizeError(f"{file.filename} has a negative size of {file.size}")

    return ProjectFile(
        filename=file.filename,
        url=file.url,
        hashes=dict(file.hashes),
        requires_python=file.requires_python,
        yanked=file.yanked,
        core_metadata=file.core_metadata,
        size=file.size,
        upload_time=format_upload_time(file.upload_time) if file.upload_time is not None else None,
    )


def build_project_detail(
    name: str,
    files: Iterable[DistributionFile],
    versions: Iterable[str] | None = None,
) -> ProjectDetail:
    """Create a project detail document for the given distribution files

    Files keep their order. ``size`` and ``upload_time`` are emitted for either
    all files or none, and ``versions`` is only emitted if given. Raises a
    ``DocumentError`` on the first problem found.
    """
    if not name:
        raise MissingRequiredFieldError("project name must not be empty")

    files = list(files)
    _check_coverage(files)

    listed = None if versions is None else _collect_versions(versions)
    project_files = []
    for file in files:
        project_files.append(build_project_file(file))
        if listed is None:
            continue
        version = _file_version(file)
        if version is not None and version not in listed:
            raise UnlistedVersionError(f"{file.filename} belongs to unlisted version {version}")

    logger.debug("Built project detail for %s with %d files", name, len(project_files))
    return ProjectDetail(
        name=name,
        versions=list(listed.values()) if listed is not None else UNSET,
        files=project_files,
    )
