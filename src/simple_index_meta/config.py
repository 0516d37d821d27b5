from pathlib import Path

from starlette.config import Config

config = Config(env_file=".env", env_prefix="SIMPLE_META_")

FILES_DIR = config("FILES_DIR", cast=Path, default=Path.cwd())
FILES_URL = config("FILES_URL", default="/files")
INCLUDE_VERSIONS = config("INCLUDE_VERSIONS", cast=bool, default=True)
INCLUDE_SIZE = config("INCLUDE_SIZE", cast=bool, default=True)
INCLUDE_UPLOAD_TIME = config("INCLUDE_UPLOAD_TIME", cast=bool, default=True)
LOG_LEVEL = config("LOG_LEVEL", default="INFO")
