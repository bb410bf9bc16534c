"""
Training engine.

The engine reads the frames referenced by a TrainingParams value from the
frame store, fits a scikit-learn pipeline and returns the artifact bytes.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple, Type

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator
from sklearn.cluster import KMeans
from sklearn.ensemble import (
    HistGradientBoostingClassifier,
    HistGradientBoostingRegressor,
    RandomForestClassifier,
    RandomForestRegressor,
)
from sklearn.impute import SimpleImputer
from sklearn.linear_model import LogisticRegression, Ridge
from sklearn.pipeline import Pipeline

from ..data.frame_store import FrameStore
from ..modeling.categories import ModelCategory
from ..preprocessing.casting import is_string_column
from .artifact import ArtifactHeader, write_artifact
from .params import TrainingParams

logger = logging.getLogger(__name__)

_ESTIMATORS: Dict[Tuple[str, str], Tuple[Type[BaseEstimator], Dict[str, Any]]] = {
    ("gbm", "classification"): (HistGradientBoostingClassifier, {}),
    ("gbm", "regression"): (HistGradientBoostingRegressor, {}),
    ("drf", "classification"): (RandomForestClassifier, {"n_estimators": 50}),
    ("drf", "regression"): (RandomForestRegressor, {"n_estimators": 50}),
    ("glm", "classification"): (LogisticRegression, {"max_iter": 1000, "solver": "lbfgs"}),
    ("glm", "regression"): (Ridge, {"alpha": 1.0}),
    ("kmeans", "clustering"): (KMeans, {"n_clusters": 8, "n_init": 10}),
}


class TrainingEngine(ABC):
    @abstractmethod
    def train(self, params: TrainingParams, store: FrameStore) -> bytes:
        """
        Fits a model on ``params.train`` and returns the trained artifact bytes.
        """
        raise NotImplementedError


def _is_categorical(series: pd.Series) -> bool:
    return isinstance(series.dtype, pd.CategoricalDtype) or is_string_column(series)


def _levels(series: pd.Series) -> List[str]:
    return sorted({str(v) for v in series.dropna().unique()})


def encode_features(
    frame: pd.DataFrame,
    feature_names: List[str],
    domains: Dict[str, List[str]],
) -> np.ndarray:
    """Numeric matrix in ``feature_names`` order; categorical levels become domain indices."""
    matrix = np.full((len(frame), len(feature_names)), np.nan, dtype=np.float64)
    for j, name in enumerate(feature_names):
        if name not in frame.columns:
            continue
        series = frame[name]
        if name in domains:
            lookup = {level: float(idx) for idx, level in enumerate(domains[name])}
            values = series.astype(object).map(lambda v: lookup.get(str(v), np.nan) if pd.notna(v) else np.nan)
        else:
            values = pd.to_numeric(series, errors="coerce")
        matrix[:, j] = values.to_numpy(dtype=np.float64, na_value=np.nan)
    return matrix


def _finite_or_none(value: Any) -> Optional[float]:
    value = float(value)
    return value if math.isfinite(value) else None


class SklearnTrainingEngine(TrainingEngine):
    """Training engine backed by scikit-learn estimators."""

    def resolve_category(self, params: TrainingParams, frame: pd.DataFrame) -> Tuple[ModelCategory, List[str]]:
        """Returns the model category and, for classifiers, the response domain."""
        if params.algorithm == "kmeans":
            return ModelCategory.CLUSTERING, []

        response = params.response_column
        if not response:
            raise ValueError("Response column must be set for supervised training")
        if response not in frame.columns:
            raise ValueError(f"Response column '{response}' not found in training frame")

        series = frame[response]
        if not _is_categorical(series):
            return ModelCategory.REGRESSION, []

        domain = _levels(series)
        if len(domain) < 2:
            raise ValueError(
                f"Response column '{response}' needs at least two classes, found {domain}"
            )
        category = ModelCategory.BINOMIAL if len(domain) == 2 else ModelCategory.MULTINOMIAL
        return category, domain

    def build_estimator(self, params: TrainingParams, problem: str) -> Pipeline:
        key = (params.algorithm, problem)
        if key not in _ESTIMATORS:
            available = ", ".join(str(k) for k in _ESTIMATORS)
            raise ValueError(f"No estimator for {key}. Available: {available}")

        model_class, default_params = _ESTIMATORS[key]
        model_params = default_params.copy()
        model_params.update(params.hyperparameters)
        if "random_state" in model_class._get_param_names():
            model_params.setdefault("random_state", params.seed)

        return Pipeline(
            [
                ("impute", SimpleImputer(strategy="mean", keep_empty_features=True)),
                ("model", model_class(**model_params)),
            ]
        )

    def train(self, params: TrainingParams, store: FrameStore) -> bytes:
        if params.train is None:
            raise ValueError("Training frame key is not set")

        frame = store.get(params.train)
        category, response_domain = self.resolve_category(params, frame)
        response = params.response_column

        feature_names = [c for c in frame.columns if c != response]
        domains = {name: _levels(frame[name]) for name in feature_names if _is_categorical(frame[name])}

        if category == ModelCategory.CLUSTERING:
            problem = "clustering"
        elif category == ModelCategory.REGRESSION:
            problem = "regression"
        else:
            problem = "classification"

        estimator = self.build_estimator(params, problem)
        logger.info(
            f"Training {params.algorithm} ({category.value}) on {len(frame)} rows, "
            f"{len(feature_names)} features"
        )

        target = response if problem != "clustering" else None
        X, y = self._prepare(frame, feature_names, domains, target, response_domain)
        estimator.fit(X, y)

        metrics: Dict[str, Optional[float]] = {"train_score": _finite_or_none(estimator.score(X, y))}
        if params.valid is not None:
            valid_frame = store.get(params.valid)
            X_valid, y_valid = self._prepare(valid_frame, feature_names, domains, target, response_domain)
            if len(X_valid):
                metrics["valid_score"] = _finite_or_none(estimator.score(X_valid, y_valid))

        logger.info(f"Training finished: {metrics}")

        header = ArtifactHeader(
            algorithm=params.algorithm,
            category=category,
            feature_names=feature_names,
            source_columns=list(params.source_columns) or feature_names,
            feature_domains=domains,
            response_column=target,
            response_domain=response_domain,
            metrics=metrics,
        )
        return write_artifact(header, estimator)

    def _prepare(
        self,
        frame: pd.DataFrame,
        feature_names: List[str],
        domains: Dict[str, List[str]],
        response: Optional[str],
        response_domain: List[str],
    ) -> Tuple[np.ndarray, Optional[np.ndarray]]:
        if response is None:
            return encode_features(frame, feature_names, domains), None

        # rows without a response value do not take part in training or scoring
        frame = frame[frame[response].notna()]
        X = encode_features(frame, feature_names, domains)
        if response_domain:
            lookup = {level: idx for idx, level in enumerate(response_domain)}
            codes = frame[response].astype(object).map(lambda v: lookup.get(str(v), -1)).to_numpy(dtype=np.int64)
            known = codes >= 0
            return X[known], codes[known]
        return X, pd.to_numeric(frame[response], errors="coerce").to_numpy(dtype=np.float64)
