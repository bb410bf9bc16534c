"""
artifactml: trainer and scoring pipeline stages around serialized model artifacts.
"""

from .config import Settings, get_settings
from .context import DataContext, ExecutionContext
from .exceptions import (
    ArtifactFormatError,
    ArtifactMLException,
    ConfigurationError,
    ExecutionContextError,
    ReconstructionError,
    UnsupportedCategoryError,
)
from .modeling import ModelCategory
from .persistence import load, save
from .stages import DRF, GBM, GLM, AlgorithmStage, KMeans, ScoringModel
from .version import __version__

__all__ = [
    "DRF",
    "GBM",
    "GLM",
    "AlgorithmStage",
    "ArtifactFormatError",
    "ArtifactMLException",
    "ConfigurationError",
    "DataContext",
    "ExecutionContext",
    "ExecutionContextError",
    "KMeans",
    "ModelCategory",
    "ReconstructionError",
    "ScoringModel",
    "Settings",
    "UnsupportedCategoryError",
    "__version__",
    "get_settings",
    "load",
    "save",
]
