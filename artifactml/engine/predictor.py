"""Per-category prediction routines over feature records."""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..modeling.categories import ModelCategory
from .artifact import ModelDefinition


@dataclass(frozen=True)
class BinomialPrediction:
    label: str
    class_probabilities: Tuple[float, ...]


@dataclass(frozen=True)
class MultinomialPrediction:
    label: str
    class_probabilities: Tuple[float, ...]


@dataclass(frozen=True)
class RegressionPrediction:
    value: float


@dataclass(frozen=True)
class ClusteringPrediction:
    cluster: int


class Predictor:
    """
    Wraps a ModelDefinition and scores string-valued feature records.

    Record values are parsed per feature: categorical features are looked up in
    their training domain, everything else is read as a float. Unknown levels,
    unparsable strings and absent keys become NaN and are imputed by the
    estimator pipeline.
    """

    def __init__(self, definition: ModelDefinition):
        self.definition = definition
        self._estimator = definition.estimator
        self._feature_names = definition.feature_names
        self._domains: Dict[str, Dict[str, int]] = {
            name: {level: idx for idx, level in enumerate(levels)}
            for name, levels in definition.header.feature_domains.items()
        }

    def _parse(self, name: str, value: Optional[str]) -> float:
        if value is None:
            return np.nan
        levels = self._domains.get(name)
        if levels is not None:
            idx = levels.get(value)
            return np.nan if idx is None else float(idx)
        try:
            return float(value)
        except ValueError:
            return np.nan

    def to_matrix(self, records: Sequence[Mapping[str, str]]) -> np.ndarray:
        matrix = np.empty((len(records), len(self._feature_names)), dtype=np.float64)
        for i, record in enumerate(records):
            for j, name in enumerate(self._feature_names):
                matrix[i, j] = self._parse(name, record.get(name))
        return matrix

    def _check_category(self, *expected: ModelCategory) -> None:
        if self.definition.category not in expected:
            names = ", ".join(c.value for c in expected)
            raise ValueError(
                f"Model category is {self.definition.category.value}, expected one of: {names}"
            )

    # --- batch routines ---

    def class_probabilities(self, records: Sequence[Mapping[str, str]]) -> np.ndarray:
        """Probabilities in response-domain order, shape (n_records, n_classes)."""
        self._check_category(ModelCategory.BINOMIAL, ModelCategory.MULTINOMIAL)
        n_classes = len(self.definition.response_domain)
        if not records:
            return np.empty((0, n_classes))
        raw = self._estimator.predict_proba(self.to_matrix(records))
        # classes_ holds domain indices; levels never seen in training keep probability 0
        probabilities = np.zeros((len(records), n_classes))
        for column, code in enumerate(self._estimator.classes_):
            probabilities[:, int(code)] = raw[:, column]
        return probabilities

    def regression_values(self, records: Sequence[Mapping[str, str]]) -> np.ndarray:
        self._check_category(ModelCategory.REGRESSION)
        if not records:
            return np.empty(0)
        return np.asarray(self._estimator.predict(self.to_matrix(records)), dtype=np.float64)

    def cluster_indices(self, records: Sequence[Mapping[str, str]]) -> np.ndarray:
        self._check_category(ModelCategory.CLUSTERING)
        if not records:
            return np.empty(0, dtype=np.int64)
        return np.asarray(self._estimator.predict(self.to_matrix(records)), dtype=np.int64)

    # --- single record routines ---

    def _labelled(self, record: Mapping[str, str]) -> Tuple[str, Tuple[float, ...]]:
        probabilities = self.class_probabilities([record])[0]
        label = self.definition.response_domain[int(np.argmax(probabilities))]
        return label, tuple(float(p) for p in probabilities)

    def predict_binomial(self, record: Mapping[str, str]) -> BinomialPrediction:
        self._check_category(ModelCategory.BINOMIAL)
        label, probabilities = self._labelled(record)
        return BinomialPrediction(label=label, class_probabilities=probabilities)

    def predict_multinomial(self, record: Mapping[str, str]) -> MultinomialPrediction:
        self._check_category(ModelCategory.MULTINOMIAL)
        label, probabilities = self._labelled(record)
        return MultinomialPrediction(label=label, class_probabilities=probabilities)

    def predict_regression(self, record: Mapping[str, str]) -> RegressionPrediction:
        return RegressionPrediction(value=float(self.regression_values([record])[0]))

    def predict_clustering(self, record: Mapping[str, str]) -> ClusteringPrediction:
        return ClusteringPrediction(cluster=int(self.cluster_indices([record])[0]))

