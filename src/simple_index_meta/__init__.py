from .builder import build_project_detail
from .models import DistributionFile, ProjectDetail, ProjectFile, encode_project_detail
from .validator import validate_index, validate_json, validate_project_detail

__version__ = "0.1.0"

__all__ = [
    "DistributionFile",
    "ProjectDetail",
    "ProjectFile",
    "build_project_detail",
    "encode_project_detail",
    "validate_index",
    "validate_json",
    "validate_project_detail",
]
