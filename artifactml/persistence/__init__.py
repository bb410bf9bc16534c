from .io import AlgorithmWriter, ModelWriter, StageReader, StageWriter, load, save
from .metadata import StageMetadata, load_metadata
from .registry import STAGE_REGISTRY, StageEntry, register_stage

__all__ = [
    "AlgorithmWriter",
    "ModelWriter",
    "STAGE_REGISTRY",
    "StageEntry",
    "StageMetadata",
    "StageReader",
    "StageWriter",
    "load",
    "load_metadata",
    "register_stage",
    "save",
]
