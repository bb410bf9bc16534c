"""
Category-keyed prediction dispatch and output schema derivation.

Only binomial, multinomial, regression and clustering artifacts can be
scored. The remaining categories are declared and fail explicitly.
"""

from typing import Callable, Dict, List, Mapping, Sequence, Tuple

from ..data.schema import Schema
from ..engine.artifact import ModelDefinition
from ..engine.predictor import Predictor
from ..exceptions import UnsupportedCategoryError
from .categories import ModelCategory

PredictionRow = Tuple[float, ...]

_UNSUPPORTED = frozenset(
    {
        ModelCategory.AUTOENCODER,
        ModelCategory.DIM_REDUCTION,
        ModelCategory.WORD_EMBEDDING,
        ModelCategory.UNKNOWN,
    }
)
_SUPPORTED = frozenset(
    {
        ModelCategory.BINOMIAL,
        ModelCategory.MULTINOMIAL,
        ModelCategory.REGRESSION,
        ModelCategory.CLUSTERING,
    }
)

if _SUPPORTED | _UNSUPPORTED != set(ModelCategory):
    raise RuntimeError(f"Unrouted model categories: {set(ModelCategory) - _SUPPORTED - _UNSUPPORTED}")


def output_schema(definition: ModelDefinition) -> Schema:
    """Schema of the rows produced for ``definition``'s category."""
    category = definition.category
    if category.is_classification:
        return Schema.of_doubles(definition.response_domain)
    if category == ModelCategory.REGRESSION:
        return Schema.of_doubles(["value"])
    if category == ModelCategory.CLUSTERING:
        return Schema.of_doubles(["cluster"])
    raise UnsupportedCategoryError(category, "output schema")


class CategoryDispatcher:
    """
    Routes feature records to the prediction routine of the artifact's category.

    Each instance owns its own Predictor; create one per unit of parallel work.
    """

    def __init__(self, definition: ModelDefinition):
        self.definition = definition
        self.category = definition.category
        self._predictor = Predictor(definition)
        self._routes: Dict[ModelCategory, Callable[[Sequence[Mapping[str, str]]], List[PredictionRow]]] = {
            ModelCategory.BINOMIAL: self._class_probabilities,
            ModelCategory.MULTINOMIAL: self._class_probabilities,
            ModelCategory.REGRESSION: self._regression,
            ModelCategory.CLUSTERING: self._clustering,
        }
        for unsupported in _UNSUPPORTED:
            self._routes[unsupported] = self._unsupported

    def _class_probabilities(self, records: Sequence[Mapping[str, str]]) -> List[PredictionRow]:
        return [tuple(float(p) for p in row) for row in self._predictor.class_probabilities(records)]

    def _regression(self, records: Sequence[Mapping[str, str]]) -> List[PredictionRow]:
        return [(float(v),) for v in self._predictor.regression_values(records)]

    def _clustering(self, records: Sequence[Mapping[str, str]]) -> List[PredictionRow]:
        return [(float(c),) for c in self._predictor.cluster_indices(records)]

    def _unsupported(self, records: Sequence[Mapping[str, str]]) -> List[PredictionRow]:
        raise UnsupportedCategoryError(self.category, "prediction")

    def predict(self, record: Mapping[str, str]) -> PredictionRow:
        return self.predict_batch([record])[0]

    def predict_batch(self, records: Sequence[Mapping[str, str]]) -> List[PredictionRow]:
        """One prediction row per record, same order. Rows are scored independently."""
        return self._routes[self.category](records)

