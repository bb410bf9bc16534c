from .algorithm import AlgorithmStage
from .algos import DRF, GBM, GLM, KMeans
from .model import ScoringModel
from .params import Params, PipelineStage

__all__ = ["DRF", "GBM", "GLM", "AlgorithmStage", "KMeans", "Params", "PipelineStage", "ScoringModel"]
