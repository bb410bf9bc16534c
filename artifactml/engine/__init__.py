from .artifact import ArtifactHeader, ModelDefinition, read_artifact, write_artifact
from .params import TrainingParams
from .predictor import Predictor
from .training import SklearnTrainingEngine, TrainingEngine

__all__ = [
    "ArtifactHeader",
    "ModelDefinition",
    "Predictor",
    "SklearnTrainingEngine",
    "TrainingEngine",
    "TrainingParams",
    "read_artifact",
    "write_artifact",
]
