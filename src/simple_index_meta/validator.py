"""
Validation of Simple Index project detail documents

The validator works on the generic JSON tree (dicts, lists, str, int ...) and
reports every problem it finds instead of stopping at the first one. Keys with
a leading underscore are private extensions and are skipped everywhere.

https://peps.python.org/pep-0691/
https://peps.python.org/pep-0700/
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import msgspec
from msgspec import Struct
from packaging.version import Version

from .errors import AnomalyCode, DocumentError, ViolationCode
from .utils import parse_upload_time, parse_version, version_from_filename

logger = logging.getLogger(__name__)

# name: (accepted types, type description)
REQUIRED_FIELDS = {
    "name": ((str,), "a string"),
    "files": ((list,), "an array"),
    "meta": ((Mapping,), "an object"),
}
REQUIRED_FILE_FIELDS = {
    "filename": ((str,), "a string"),
    "url": ((str,), "a string"),
    "hashes": ((Mapping,), "an object"),
}
OPTIONAL_FILE_FIELDS = {
    "requires_python": ((str,), "a string"),
    "yanked": ((bool, str), "a boolean or string"),
    "core_metadata": ((bool, Mapping), "a boolean or object"),
    "dist_info_metadata": ((bool, Mapping), "a boolean or object"),
    "gpg_sig": ((bool,), "a boolean"),
}
KNOWN_FIELDS = {*REQUIRED_FIELDS, "versions"}
KNOWN_FILE_FIELDS = {*REQUIRED_FILE_FIELDS, *OPTIONAL_FILE_FIELDS, "size", "upload_time"}
COVERAGE_FIELDS = ("size", "upload_time")


class Violation(Struct, frozen=True):
    code: str
    path: str
    message: str


class ValidationResult(Struct):
    violations: list[Violation] = []
    anomalies: list[Violation] = []

    @property
    def ok(self) -> bool:
        return not self.violations

    @property
    def codes(self) -> set[str]:
        return {v.code for v in self.violations}


class IndexValidationResult(Struct):
    documents: dict[str, ValidationResult] = {}
    # index wide violations
    violations: list[Violation] = []

    @property
    def ok(self) -> bool:
        return not self.violations and all(r.ok for r in self.documents.values())


def _is_private(key: Any) -> bool:
    return isinstance(key, str) and key.startswith("_")


def _is_type(value: Any, types: tuple[type, ...]) -> bool:
    # JSON true/false are no numbers
    if isinstance(value, bool) and bool not in types:
        return False
    return isinstance(value, types)


@dataclass
class _DocumentValidator:
    document: Any
    result: ValidationResult = field(default_factory=ValidationResult)

    def violation(self, code: ViolationCode, path: str, message: str) -> None:
        self.result.violations.append(Violation(code, path, message))

    def anomaly(self, code: AnomalyCode, path: str, message: str) -> None:
        self.result.anomalies.append(Violation(code, path, message))

    def check_fields(self, obj: Mapping, path: str, fields: Mapping, required: bool) -> None:
        for name, (types, description) in fields.items():
            if name not in obj:
                if required:
                    self.violation(
                        ViolationCode.MISSING_REQUIRED_FIELD, f"{path}.{name}", f"{name} is required"
                    )
            elif not _is_type(obj[name], types):
                self.violation(
                    ViolationCode.TYPE_MISMATCH, f"{path}.{name}", f"{name} must be {description}"
                )

    def check_unknown(self, obj: Mapping, path: str, known: set[str]) -> None:
        for key in obj:
            if key not in known and not _is_private(key):
                self.anomaly(AnomalyCode.UNKNOWN_FIELD, f"{path}.{key}", f"unknown field {key!r}")

    def run(self) -> ValidationResult:
        document = self.document
        if not isinstance(document, Mapping):
            self.violation(ViolationCode.TYPE_MISMATCH, "$", "document must be an object")
            return self.result

        self.check_fields(document, "$", REQUIRED_FIELDS, required=True)
        self.check_unknown(document, "$", KNOWN_FIELDS)

        listed = self.check_versions(document["versions"]) if "versions" in document else None

        files = document.get("files")
        if not isinstance(files, list):
            return self.result

        entries = {}
        for i, entry in enumerate(files):
            if self.check_file(entry, f"$.files[{i}]"):
                entries[i] = entry

        self.check_coverage(entries)
        if listed is not None:
            self.check_membership(entries, listed)
        return self.result

    def check_versions(self, versions: Any) -> set[Version] | None:
        if not isinstance(versions, list):
            self.violation(ViolationCode.TYPE_MISMATCH, "$.versions", "versions must be an array")
            return None

        listed: dict[Version, str] = {}
        for i, value in enumerate(versions):
            path = f"$.versions[{i}]"
            if not isinstance(value, str):
                self.violation(ViolationCode.TYPE_MISMATCH, path, "versions must be strings")
                continue
            try:
                version = parse_version(value)
            except DocumentError as e:
                self.violation(e.code, path, str(e))
                continue
            if version in listed:
                self.violation(
                    ViolationCode.DUPLICATE_VERSION, path, f"{value!r} duplicates {listed[version]!r}"
                )
                continue
            listed[version] = value
        return set(listed)

    def check_file(self, entry: Any, path: str) -> bool:
        if not isinstance(entry, Mapping):
            self.violation(ViolationCode.TYPE_MISMATCH, path, "file entries must be objects")
            return False

        self.check_fields(entry, path, REQUIRED_FILE_FIELDS, required=True)
        self.check_fields(entry, path, OPTIONAL_FILE_FIELDS, required=False)
        self.check_unknown(entry, path, KNOWN_FILE_FIELDS)

        hashes = entry.get("hashes")
        if isinstance(hashes, Mapping):
            for name, digest in hashes.items():
                if not _is_private(name) and not isinstance(digest, str):
                    self.violation(
                        ViolationCode.TYPE_MISMATCH, f"{path}.hashes.{name}", "digests must be strings"
                    )

        if "size" in entry:
            size = entry["size"]
            if not _is_type(size, (int,)):
                self.violation(ViolationCode.TYPE_MISMATCH, f"{path}.size", "size must be an integer")
            elif size < 0:
                self.violation(
                    ViolationCode.NEGATIVE_SIZE, f"{path}.size", f"size must not be negative, got {size}"
                )

        if "upload_time" in entry:
            upload_time = entry["upload_time"]
            if not isinstance(upload_time, str):
                self.violation(
                    ViolationCode.TYPE_MISMATCH, f"{path}.upload_time", "upload_time must be a string"
                )
            else:
                try:
                    parse_upload_time(upload_time)
                except DocumentError as e:
                    self.violation(e.code, f"{path}.upload_time", str(e))
        return True

    def check_coverage(self, entries: Mapping[int, Mapping]) -> None:
        for name in COVERAGE_FIELDS:
            missing = [i for i, entry in entries.items() if name not in entry]
            if missing and len(missing) != len(entries):
                self.violation(
                    ViolationCode.INCONSISTENT_OPTIONAL_FIELD_COVERAGE,
                    "$.files",
                    f"{name} is set for some files but missing for files {missing}",
                )

    def check_membership(self, entries: Mapping[int, Mapping], listed: set[Version]) -> None:
        for i, entry in entries.items():
            filename = entry.get("filename")
            if not isinstance(filename, str):
                continue
            path = f"$.files[{i}].filename"
            version = version_from_filename(filename)
            if version is None:
                self.anomaly(
                    AnomalyCode.UNPARSEABLE_FILENAME, path, f"can't derive a version from {filename!r}"
                )
            elif version not in listed:
                self.violation(
                    ViolationCode.UNLISTED_VERSION_REFERENCE,
                    path,
                    f"{filename} belongs to version {version} which is not in versions",
                )


def validate_project_detail(document: Any) -> ValidationResult:
    result = _DocumentValidator(document).run()
    logger.debug(
        "Validated %s: %d violations, %d anomalies",
        document.get("name") if isinstance(document, Mapping) else "document",
        len(result.violations),
        len(result.anomalies),
    )
    return result


def validate_json(data: bytes | str) -> ValidationResult:
    try:
        document = msgspec.json.decode(data)
    except msgspec.DecodeError as e:
        return ValidationResult(violations=[Violation(ViolationCode.TYPE_MISMATCH, "$", str(e))])
    return validate_project_detail(document)


def _carries(document: Mapping, name: str) -> bool | None:
    """whether all files of a document carry a field, None if there is nothing to tell"""
    files = [f for f in document.get("files") or () if isinstance(f, Mapping)]
    if not files:
        return None
    return any(name in f for f in files)


def validate_index(documents: Iterable[Any]) -> IndexValidationResult:
    """Validate all project documents of an index

    Next to the checks per document, the optional fields must be used by
    either all projects of the index or none of them.
    """
    result = IndexValidationResult()
    coverage: dict[str, dict[bool, list[str]]] = {
        name: {True: [], False: []} for name in ("versions", *COVERAGE_FIELDS)
    }

    for i, document in enumerate(documents):
        name = document.get("name") if isinstance(document, Mapping) else None
        key = name if isinstance(name, str) and name not in result.documents else f"#{i}"
        result.documents[key] = validate_project_detail(document)
        if not isinstance(document, Mapping):
            continue

        coverage["versions"]["versions" in document].append(key)
        for field_name in COVERAGE_FIELDS:
            if (carries := _carries(document, field_name)) is not None:
                coverage[field_name][carries].append(key)

    for field_name, projects in coverage.items():
        if projects[True] and projects[False]:
            result.violations.append(
                Violation(
                    ViolationCode.INCONSISTENT_OPTIONAL_FIELD_COVERAGE,
                    "$",
                    f"{field_name} is used by some projects but missing for {', '.join(projects[False])}",
                )
            )
    return result
