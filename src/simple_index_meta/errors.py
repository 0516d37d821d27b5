from enum import StrEnum
from typing import ClassVar


class ViolationCode(StrEnum):
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    TYPE_MISMATCH = "TypeMismatch"
    INVALID_VERSION_STRING = "InvalidVersionString"
    DUPLICATE_VERSION = "DuplicateVersion"
    INVALID_TIMESTAMP_FORMAT = "InvalidTimestampFormat"
    NON_UTC_TIMESTAMP = "NonUtcTimestamp"
    NEGATIVE_SIZE = "NegativeSize"
    INCONSISTENT_OPTIONAL_FIELD_COVERAGE = "InconsistentOptionalFieldCoverage"
    UNLISTED_VERSION_REFERENCE = "UnlistedVersionReference"


class AnomalyCode(StrEnum):
    """informational findings, never fatal"""

    UNKNOWN_FIELD = "UnknownField"
    UNPARSEABLE_FILENAME = "UnparseableFilename"


class DocumentError(ValueError):
    code: ClassVar[ViolationCode]


class MissingRequiredFieldError(DocumentError):
    code = ViolationCode.MISSING_REQUIRED_FIELD


class InvalidVersionError(DocumentError):
    code = ViolationCode.INVALID_VERSION_STRING


class DuplicateVersionError(DocumentError):
    code = ViolationCode.DUPLICATE_VERSION


class TimestampFormatError(DocumentError):
    code = ViolationCode.INVALID_TIMESTAMP_FORMAT


class NonUtcTimestampError(TimestampFormatError):
    code = ViolationCode.NON_UTC_TIMESTAMP


class NegativeSizeError(DocumentError):
    code = ViolationCode.NEGATIVE_SIZE


class InconsistentCoverageError(DocumentError):
    code = ViolationCode.INCONSISTENT_OPTIONAL_FIELD_COVERAGE


class UnlistedVersionError(DocumentError):
    code = ViolationCode.UNLISTED_VERSION_REFERENCE


class TypeMismatchError(DocumentError):
    code = ViolationCode.TYPE_MISMATCH
