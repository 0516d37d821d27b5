"""
Model for Simple Index project detail documents

https://packaging.python.org/en/latest/specifications/simple-repository-api/
"""

from datetime import datetime
from typing import Annotated

import msgspec
from msgspec import UNSET, Struct, UnsetType
from msgspec import Meta as M

# https://peps.python.org/pep-0508/#names
ProjectName = Annotated[str, M(pattern=r"^([A-Za-z0-9]|[A-Za-z0-9][A-Za-z0-9._-]*[A-Za-z0-9])$")]
# PEP-700, always UTC with microseconds
UploadTime = Annotated[str, M(pattern=r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{6}Z$")]
FileSize = Annotated[int, M(ge=0)]


class Meta(Struct, frozen=True):
    # api_version: str = "1.0"  # PEP-629
    api_version: str = "1.1"  # PEP-700


class ProjectFile(Struct, omit_defaults=True):
    # PEP-503
    filename: str
    # PEP-503
    url: str
    # Limited to a len() of 1 in HTML
    hashes: dict[str, str]
    # PEP-503 (updated)
    requires_python: str | None = None
    # PEP-592
    yanked: bool | str | None = None
    # PEP-658, renamed from dist_info_metadata in PEP-714
    core_metadata: bool | dict[str, str] | None = None
    gpg_sig: bool | None = None
    # PEP-700
    size: FileSize | None = None
    # PEP-700
    upload_time: UploadTime | None = None


class ProjectDetail(Struct, kw_only=True):
    """details on project - /simple/$NORM_NAME/"""

    # PEP-629
    meta: Meta = Meta()
    # PEP-691
    name: ProjectName
    # PEP-700, omitted when the index doesn't publish versions
    versions: list[str] | UnsetType = UNSET
    # PEP-503
    files: list[ProjectFile]


class DistributionFile(Struct, kw_only=True):
    """a distribution file as known to the index, input for the document builder"""

    filename: str
    url: str
    hashes: dict[str, str] = {}
    # derived from the filename when missing
    version: str | None = None
    size: int | None = None
    upload_time: datetime | None = None
    requires_python: str | None = None
    yanked: bool | str | None = None
    core_metadata: bool | dict[str, str] | None = None


_encoder = msgspec.json.Encoder()
_decoder = msgspec.json.Decoder(ProjectDetail)


def encode_project_detail(detail: ProjectDetail) -> bytes:
    return _encoder.encode(detail)


def decode_project_detail(data: bytes | str) -> ProjectDetail:
    return _decoder.decode(data)
