import re
from datetime import UTC, datetime, timedelta

from packaging.utils import (
    InvalidSdistFilename,
    InvalidWheelFilename,
    parse_sdist_filename,
    parse_wheel_filename,
)
from packaging.version import InvalidVersion, Version

from .errors import InvalidVersionError, NonUtcTimestampError, TimestampFormatError

UPLOAD_TIME_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{6}Z")
UPLOAD_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def format_upload_time(instant: datetime) -> str:
    if instant.utcoffset() is None:
        raise NonUtcTimestampError(f"Can't express naive timestamp {instant.isoformat()} in UTC")
    try:
        utc = instant.astimezone(UTC).replace(tzinfo=None)
    except OverflowError as e:
        raise TimestampFormatError(f"{instant.isoformat()} is out of range in UTC") from e
    # isoformat() zero pads the year, strftime() doesn't on all platforms
    return utc.isoformat(timespec="microseconds") + "Z"


def parse_upload_time(value: str) -> datetime:
    if not UPLOAD_TIME_PATTERN.fullmatch(value):
        try:
            instant = datetime.fromisoformat(value)
        except ValueError:
            raise TimestampFormatError(f"{value!r} is not a timestamp") from None
        if instant.utcoffset() != timedelta(0):
            raise NonUtcTimestampError(f"{value!r} is not in UTC")
        raise TimestampFormatError(f"{value!r} is not formatted as yyyy-mm-ddThh:mm:ss.ffffffZ")

    try:
        return datetime.strptime(value, UPLOAD_TIME_FORMAT).replace(tzinfo=UTC)
    except ValueError as e:
        raise TimestampFormatError(f"{value!r} is not a valid date: {e}") from None


def parse_version(value: str) -> Version:
    try:
        return Version(value)
    except InvalidVersion:
        raise InvalidVersionError(f"{value!r} is not a valid version") from None


def version_from_filename(filename: str) -> Version | None:
    # https://packaging.python.org/en/latest/specifications/binary-distribution-format/
    # https://packaging.python.org/en/latest/specifications/source-distribution-format/
    try:
        if filename.endswith(".whl"):
            _, version, _, _ = parse_wheel_filename(filename)
        else:
            _, version = parse_sdist_filename(filename)
    except (InvalidWheelFilename, InvalidSdistFilename, InvalidVersion):
        return None
    return version
