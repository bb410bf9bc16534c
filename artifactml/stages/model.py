"""Scoring stage around an immutable trained artifact."""

import logging
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Union

import pandas as pd

from ..context import DataContext
from ..data.schema import Schema, flatten_table
from ..engine.artifact import ModelDefinition, read_artifact, read_artifact_file
from ..exceptions import ConfigurationError
from ..modeling.categories import ModelCategory
from ..modeling.dispatch import CategoryDispatcher, output_schema
from ..persistence.io import ModelWriter, StageReader
from ..persistence.registry import register_stage
from ..preprocessing.coercion import row_to_feature_record
from .params import PipelineStage

logger = logging.getLogger(__name__)


@register_stage("model")
class ScoringModel(PipelineStage):
    """
    Scores tabular data with a trained artifact.

    Output rows follow the artifact category: class probabilities (one column
    per response level), a ``value`` column or a ``cluster`` column.
    """

    uid_prefix: ClassVar[str] = "scoringModel"
    default_file_name: ClassVar[str] = "model_artifact"
    _param_docs: ClassVar[Dict[str, str]] = {
        "featuresCols": "Name of feature columns; unset means the columns the artifact was trained on",
        "predictionCol": "Prediction column name",
    }
    _defaults: ClassVar[Dict[str, Any]] = {
        "featuresCols": [],
        "predictionCol": "prediction",
    }

    def __init__(
        self,
        definition: ModelDefinition,
        artifact_bytes: bytes,
        uid: Optional[str] = None,
        data_context: Optional[DataContext] = None,
    ):
        super().__init__(uid)
        self.definition = definition
        self._artifact_bytes = bytes(artifact_bytes)
        self.data_context = data_context or DataContext()
        self._output_schema: Optional[Schema] = None

    @classmethod
    def build(
        cls,
        definition: ModelDefinition,
        artifact_bytes: bytes,
        uid: Optional[str],
        data_context: Optional[DataContext],
    ) -> "ScoringModel":
        return cls(definition, artifact_bytes, uid=uid, data_context=data_context)

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        uid: Optional[str] = None,
        data_context: Optional[DataContext] = None,
    ) -> "ScoringModel":
        return cls(read_artifact(data), data, uid=uid, data_context=data_context)

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs: Any) -> "ScoringModel":
        data, definition = read_artifact_file(path)
        return cls(definition, data, **kwargs)

    @property
    def artifact_bytes(self) -> bytes:
        return self._artifact_bytes

    @property
    def category(self) -> ModelCategory:
        return self.definition.category

    # --- params ---

    def get_features_cols(self) -> List[str]:
        if self.is_set("featuresCols"):
            return self.get_or_default("featuresCols")
        return self.definition.source_columns

    def set_features_cols(self, *cols: Any) -> "ScoringModel":
        if len(cols) == 1 and isinstance(cols[0], (list, tuple)):
            cols = tuple(cols[0])
        if not cols:
            raise ConfigurationError("Array with feature columns must contain at least one column")
        self._set(featuresCols=list(cols))
        return self

    def get_predictions_col(self) -> str:
        return self.get_or_default("predictionCol")

    def set_predictions_col(self, value: str) -> "ScoringModel":
        self._set(predictionCol=value)
        return self

    # --- scoring ---

    def output_schema(self) -> Schema:
        if self._output_schema is None:
            self._output_schema = output_schema(self.definition)
        return self._output_schema

    def transform_schema(self, schema: Optional[Schema] = None) -> Schema:
        """Schema of ``transform``'s output; the input schema does not affect it."""
        return self.output_schema()

    def transform(self, dataset: Any) -> pd.DataFrame:
        table = flatten_table(self.data_context.as_table(dataset))
        fields = Schema.from_arrow(table.schema).fields
        schema = self.output_schema()
        features = frozenset(self.get_features_cols())
        definition = self.definition

        def score(rows: List[dict]) -> List[tuple]:
            dispatcher = CategoryDispatcher(definition)
            records = [row_to_feature_record(row, fields, features) for row in rows]
            return dispatcher.predict_batch(records)

        batches = self.data_context.batches(table)
        scored = self.data_context.map_batches(score, batches)
        rows = [row for batch in scored for row in batch]

        logger.debug(f"{self.uid} scored {len(rows)} rows ({self.category.value})")
        return self.data_context.create_frame(rows, schema)

    # --- persistence ---

    def writer(self) -> ModelWriter:
        return ModelWriter(self)

    def save(self, path: Union[str, Path], overwrite: bool = False) -> None:
        self.writer().save(path, overwrite=overwrite)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ScoringModel":
        return StageReader(cls.class_name()).load(path)
