"""Base trainer stage."""

import logging
from abc import ABC
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Union

from ..config import get_settings
from ..context import DataContext, ExecutionContext
from ..data.container import PartitionKeys
from ..data.schema import Schema, flatten_table
from ..engine.params import TrainingParams
from ..exceptions import ConfigurationError
from ..persistence.io import AlgorithmWriter, StageReader
from ..preprocessing.casting import all_string_columns_to_categorical
from ..preprocessing.split import DatasetSplitter
from .model import ScoringModel
from .params import PipelineStage

logger = logging.getLogger(__name__)


class AlgorithmStage(PipelineStage, ABC):
    """
    Trainer stage: selects features, optionally splits off a validation
    partition, delegates to the training engine and returns a ScoringModel.
    """

    algorithm: ClassVar[str]
    default_hyperparameters: ClassVar[Dict[str, Any]] = {}
    # clustering algorithms train without a response column
    requires_response: ClassVar[bool] = True

    _param_docs: ClassVar[Dict[str, str]] = {
        "ratio": "Determines in which ratios split the dataset",
        "predictionCol": "Prediction column name",
        "featuresCols": "Name of feature columns",
    }
    # ratio 1.0 uses the whole frame for training
    _defaults: ClassVar[Dict[str, Any]] = {
        "ratio": 1.0,
        "predictionCol": "prediction",
        "featuresCols": [],
    }

    def __init__(
        self,
        params: Optional[TrainingParams] = None,
        uid: Optional[str] = None,
        execution_context: Optional[ExecutionContext] = None,
        data_context: Optional[DataContext] = None,
    ):
        super().__init__(uid)
        self.execution_context = execution_context or ExecutionContext.get_or_create()
        self.data_context = data_context or DataContext()

        if params is None:
            params = TrainingParams(
                algorithm=self.algorithm,
                hyperparameters=dict(self.default_hyperparameters),
                response_column=self._defaults["predictionCol"] if self.requires_response else None,
                seed=get_settings().DEFAULT_SEED,
            )
        elif params.algorithm != self.algorithm:
            raise ConfigurationError(
                f"{type(self).__name__} cannot use parameters for algorithm '{params.algorithm}'"
            )
        self._training_params = params

        if params.response_column:
            self._set(predictionCol=params.response_column)

    @classmethod
    def build(
        cls,
        params: TrainingParams,
        uid: Optional[str],
        execution_context: ExecutionContext,
        data_context: DataContext,
    ) -> "AlgorithmStage":
        return cls(params=params, uid=uid, execution_context=execution_context, data_context=data_context)

    # --- params ---

    def get_train_ratio(self) -> float:
        return self.get_or_default("ratio")

    def set_train_ratio(self, value: float) -> "AlgorithmStage":
        if not 0.0 < value <= 1.0:
            raise ConfigurationError(f"Ratio must be in (0, 1], got {value}")
        self._set(ratio=float(value))
        return self

    def get_predictions_col(self) -> str:
        return self.get_or_default("predictionCol")

    def set_predictions_col(self, value: str) -> "AlgorithmStage":
        if self.requires_response:
            self._training_params = self._training_params.model_copy(update={"response_column": value})
        self._set(predictionCol=value)
        return self

    def get_features_cols(self) -> List[str]:
        return self.get_or_default("featuresCols")

    def set_features_cols(self, *cols: Any) -> "AlgorithmStage":
        if len(cols) == 1 and isinstance(cols[0], (list, tuple)):
            cols = tuple(cols[0])
        if not cols:
            raise ConfigurationError("Array with feature columns must contain at least one column")
        self._set(featuresCols=list(cols))
        return self

    def set_features_col(self, first: str) -> "AlgorithmStage":
        return self.set_features_cols(first)

    def get_hyperparameters(self) -> Dict[str, Any]:
        return dict(self._training_params.hyperparameters)

    def set_hyperparameters(self, **values: Any) -> "AlgorithmStage":
        merged = {**self._training_params.hyperparameters, **values}
        self._training_params = self._training_params.model_copy(update={"hyperparameters": merged})
        return self

    def get_training_params(self) -> TrainingParams:
        return self._training_params

    # --- training ---

    def fit(self, dataset: Any) -> ScoringModel:
        table = flatten_table(self.data_context.as_table(dataset))

        # if this is left empty select all
        if not self.is_set("featuresCols"):
            self.set_features_cols(table.column_names)

        features = self.get_features_cols()
        prediction_col = self.get_predictions_col()
        missing = [c for c in features if c not in table.column_names]
        if missing:
            raise ValueError(f"Feature columns not found: {missing}")

        feature_cols = [c for c in features if c != prediction_col]
        columns = list(feature_cols)
        if prediction_col in table.column_names:
            columns.append(prediction_col)
        elif self.requires_response:
            raise ValueError(f"Prediction column '{prediction_col}' not found in dataset")

        store = self.execution_context.frame_store
        input_key = self.execution_context.as_frame(table.select(columns))

        ratio = self.get_train_ratio()
        if ratio < 1.0:
            stratify_col = prediction_col if prediction_col in columns else None
            partitions = DatasetSplitter(store, random_state=self._training_params.seed).split(
                input_key, ratio, stratify_col=stratify_col
            )
        else:
            partitions = PartitionKeys(train=input_key)

        params = self._training_params.model_copy(
            update={
                "train": partitions.train,
                "valid": partitions.valid,
                "source_columns": feature_cols,
            }
        )

        try:
            train_frame = all_string_columns_to_categorical(store.get(params.train))
            store.put(params.train, train_frame)

            logger.info(
                f"Fitting {type(self).__name__} {self.uid}: ratio={ratio}, "
                f"features={len(feature_cols)}, "
                f"validation={'yes' if params.valid else 'no'}"
            )
            model = self.train_model(params)
        finally:
            # partition frames are only valid for this fit call
            for key in {input_key, *partitions.keys()}:
                store.remove(key)

        # pass some parameters set on algo to model
        model.set_features_cols(feature_cols or features)
        model.set_predictions_col(prediction_col)
        return model

    def train_model(self, params: TrainingParams) -> ScoringModel:
        artifact = self.execution_context.training_engine.train(params, self.execution_context.frame_store)
        return ScoringModel.from_bytes(artifact, data_context=self.data_context)

    def transform_schema(self, schema: Schema) -> Schema:
        return schema

    # --- persistence ---

    def writer(self) -> AlgorithmWriter:
        return AlgorithmWriter(self)

    def save(self, path: Union[str, Path], overwrite: bool = False) -> None:
        self.writer().save(path, overwrite=overwrite)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "AlgorithmStage":
        return StageReader(cls.class_name()).load(path)
