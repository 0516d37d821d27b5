import argparse
import logging
import sys
from pathlib import Path

from packaging.utils import canonicalize_name

from . import config
from .dist_scanner import ProjectFileReader, build_index
from .models import encode_project_detail
from .validator import validate_json

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="simple-index-meta")
    sub = parser.add_subparsers(dest="cmd", required=True)

    validate = sub.add_parser("validate", help="Validate project detail JSON documents.")
    validate.add_argument("files", nargs="+", type=Path, help="JSON documents, '-' reads stdin")

    build = sub.add_parser("build", help="Print the project detail JSON document of a project.")
    build.add_argument("project", help="Project name, normalized before lookup")
    build.add_argument("--files-dir", type=Path, default=None, help="Distributions directory")
    build.add_argument("--files-url", default=None, help="URL prefix of the distribution files")
    return parser


def _setup_logging() -> None:
    root_logger = logging.getLogger(__package__)
    if root_logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s:     %(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(config.LOG_LEVEL)


def validate(files: list[Path]) -> int:
    failed = 0
    for file in files:
        data = sys.stdin.buffer.read() if file == Path("-") else file.read_bytes()
        result = validate_json(data)
        for violation in result.violations:
            print(f"{file}: {violation.path}: {violation.code}: {violation.message}")
        for anomaly in result.anomalies:
            print(f"{file}: {anomaly.path}: {anomaly.code} (info): {anomaly.message}")
        if not result.ok:
            failed += 1
    logger.info("Validated %d documents, %d failed", len(files), failed)
    return 1 if failed else 0


def build(project: str, files_dir: Path | None, files_url: str | None) -> int:
    reader = ProjectFileReader(
        files_dir=files_dir or config.FILES_DIR,
        files_url=files_url or config.FILES_URL,
        include_size=config.INCLUDE_SIZE,
        include_upload_time=config.INCLUDE_UPLOAD_TIME,
    )
    index = build_index(reader, include_versions=config.INCLUDE_VERSIONS)
    try:
        detail = index[canonicalize_name(project)]
    except KeyError:
        logger.error("Can't find project %s in %s", project, reader.files_dir)
        return 1
    print(encode_project_detail(detail).decode())
    return 0


def main(argv: list[str] | None = None) -> int:
    _setup_logging()
    args = _build_parser().parse_args(argv)

    match args.cmd:
        case "validate":
            return validate(args.files)
        case "build":
            return build(args.project, args.files_dir, args.files_url)
    return 2
