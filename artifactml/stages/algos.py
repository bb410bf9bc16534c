from typing import Any, ClassVar, Dict

from ..persistence.registry import register_stage
from .algorithm import AlgorithmStage


# --- Gradient Boosting ---
@register_stage("algorithm")
class GBM(AlgorithmStage):
    algorithm: ClassVar[str] = "gbm"
    uid_prefix: ClassVar[str] = "gbm"
    default_file_name: ClassVar[str] = "gbm_params"
    default_hyperparameters: ClassVar[Dict[str, Any]] = {
        "max_iter": 100,
        "learning_rate": 0.1,
        "max_depth": None,
    }


# --- Distributed Random Forest ---
@register_stage("algorithm")
class DRF(AlgorithmStage):
    algorithm: ClassVar[str] = "drf"
    uid_prefix: ClassVar[str] = "drf"
    default_file_name: ClassVar[str] = "drf_params"
    default_hyperparameters: ClassVar[Dict[str, Any]] = {
        "n_estimators": 50,
        "max_depth": 10,
        "min_samples_leaf": 2,
    }


# --- Generalized Linear Model ---
@register_stage("algorithm")
class GLM(AlgorithmStage):
    """Logistic regression for categorical responses, ridge regression otherwise."""

    algorithm: ClassVar[str] = "glm"
    uid_prefix: ClassVar[str] = "glm"
    default_file_name: ClassVar[str] = "glm_params"


# --- K-Means ---
@register_stage("algorithm")
class KMeans(AlgorithmStage):
    algorithm: ClassVar[str] = "kmeans"
    uid_prefix: ClassVar[str] = "kmeans"
    default_file_name: ClassVar[str] = "kmeans_params"
    requires_response: ClassVar[bool] = False
    default_hyperparameters: ClassVar[Dict[str, Any]] = {
        "n_clusters": 3,
        "n_init": 10,
    }
