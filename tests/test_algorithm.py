import numpy as np
import pytest
from pydantic import ValidationError

from artifactml.context import ExecutionContext
from artifactml.data.frame_store import FrameStore
from artifactml.engine.params import TrainingParams
from artifactml.engine.training import SklearnTrainingEngine
from artifactml.exceptions import ConfigurationError
from artifactml.modeling.categories import ModelCategory
from artifactml.preprocessing.split import DatasetSplitter
from artifactml.stages import DRF, GBM, GLM, KMeans, ScoringModel


class RecordingEngine(SklearnTrainingEngine):
    """Records what the engine sees for each training call."""

    def __init__(self):
        self.calls = []
        self.train_frames = []

    def train(self, params, store):
        valid_rows = len(store.get(params.valid)) if params.valid else None
        self.calls.append((params, len(store.get(params.train)), valid_rows))
        self.train_frames.append(store.get(params.train).copy())
        return super().train(params, store)


@pytest.fixture
def recording_context():
    return ExecutionContext(training_engine=RecordingEngine())


def test_defaults():
    algo = GBM()

    assert algo.get_train_ratio() == 1.0
    assert algo.get_predictions_col() == "prediction"
    assert algo.get_features_cols() == []
    assert algo.get_training_params().algorithm == "gbm"
    assert algo.get_training_params().response_column == "prediction"
    assert algo.get_hyperparameters()["learning_rate"] == 0.1
    assert algo.uid.startswith("gbm_")
    assert "ratio" in algo.explain_params()


def test_stage_starts_execution_context():
    assert ExecutionContext.active() is None
    GLM()
    assert ExecutionContext.active() is not None


def test_full_ratio_trains_without_validation(tiny_binomial_data, recording_context):
    algo = GLM(execution_context=recording_context).set_predictions_col("label")

    model = algo.fit(tiny_binomial_data)

    (params, train_rows, valid_rows), = recording_context.training_engine.calls
    assert params.valid is None
    assert params.response_column == "label"
    assert train_rows == 10
    assert valid_rows is None
    assert isinstance(model, ScoringModel)
    assert "valid_score" not in model.definition.header.metrics


def test_ratio_split_passes_both_partitions(tiny_binomial_data, recording_context):
    algo = GLM(execution_context=recording_context).set_predictions_col("label").set_train_ratio(0.8)

    model = algo.fit(tiny_binomial_data)

    (params, train_rows, valid_rows), = recording_context.training_engine.calls
    assert params.train is not None and params.valid is not None
    assert (train_rows, valid_rows) == (8, 2)
    assert model.definition.header.metrics["valid_score"] is not None


def test_fit_removes_partition_frames(tiny_binomial_data, recording_context):
    GLM(execution_context=recording_context).set_predictions_col("label").set_train_ratio(0.8).fit(
        tiny_binomial_data
    )
    assert recording_context.frame_store.keys() == []


def test_fit_does_not_mutate_stage_training_params(tiny_binomial_data):
    algo = GLM().set_predictions_col("label").set_train_ratio(0.8)
    before = algo.get_training_params()

    algo.fit(tiny_binomial_data)

    assert algo.get_training_params() == before
    assert algo.get_training_params().train is None


def test_training_params_are_immutable():
    params = GBM().get_training_params()
    with pytest.raises(ValidationError):
        params.response_column = "other"


def test_fit_propagates_columns_to_model(tiny_binomial_data):
    model = GLM().set_predictions_col("label").fit(tiny_binomial_data)

    assert model.get_features_cols() == ["x"]
    assert model.get_predictions_col() == "label"
    assert model.definition.feature_names == ["x"]
    assert model.category == ModelCategory.BINOMIAL


def test_empty_features_default_to_all_columns(tiny_binomial_data):
    algo = GLM().set_predictions_col("label")
    algo.fit(tiny_binomial_data)
    assert algo.get_features_cols() == ["x", "label"]


def test_multinomial_with_categorical_feature(sample_classification_data):
    model = DRF().set_predictions_col("target").fit(sample_classification_data)

    assert model.category == ModelCategory.MULTINOMIAL
    assert model.definition.response_domain == ["A", "B", "C"]
    assert model.definition.header.feature_domains["colour"] == ["green", "red"]


def test_numeric_response_trains_regression(sample_regression_data):
    model = GBM().set_hyperparameters(max_iter=10).set_predictions_col("target").fit(sample_regression_data)
    assert model.category == ModelCategory.REGRESSION


def test_kmeans_needs_no_response(sample_regression_data):
    algo = KMeans().set_features_cols("feature1", "feature2")

    model = algo.fit(sample_regression_data)

    assert model.category == ModelCategory.CLUSTERING
    assert algo.get_training_params().response_column is None


@pytest.mark.parametrize("ratio", [0.0, -0.5, 1.01])
def test_invalid_ratio_rejected(ratio):
    with pytest.raises(ConfigurationError):
        GBM().set_train_ratio(ratio)


def test_empty_feature_list_rejected():
    with pytest.raises(ConfigurationError, match="at least one column"):
        GBM().set_features_cols()
    with pytest.raises(ConfigurationError):
        GBM().set_features_cols([])


def test_set_features_col_single():
    assert GBM().set_features_col("x").get_features_cols() == ["x"]


def test_missing_columns_fail_fit(tiny_binomial_data):
    with pytest.raises(ValueError, match="Feature columns not found"):
        GLM().set_predictions_col("label").set_features_cols("nope").fit(tiny_binomial_data)
    with pytest.raises(ValueError, match="Prediction column 'prediction' not found"):
        GLM().set_features_cols("x").fit(tiny_binomial_data)


def test_set_hyperparameters_merges_defaults():
    algo = DRF().set_hyperparameters(n_estimators=5)
    hyperparameters = algo.get_hyperparameters()

    assert hyperparameters["n_estimators"] == 5
    assert hyperparameters["min_samples_leaf"] == 2


def test_params_for_other_algorithm_rejected():
    with pytest.raises(ConfigurationError):
        GBM(params=TrainingParams(algorithm="drf"))


def test_copy_keeps_uid_and_isolates_params():
    algo = GBM().set_train_ratio(0.7)
    copied = algo.copy({"ratio": 0.5})

    assert copied.uid == algo.uid
    assert copied.get_train_ratio() == 0.5
    assert algo.get_train_ratio() == 0.7


def test_transform_schema_is_identity():
    from artifactml.data.schema import Schema

    schema = Schema.of_doubles(["a", "b"])
    assert GBM().transform_schema(schema) is schema


def test_sorted_labels_with_half_ratio_fit(tiny_binomial_data, recording_context):
    model = (
        GLM(execution_context=recording_context)
        .set_predictions_col("label")
        .set_train_ratio(0.5)
        .fit(tiny_binomial_data)
    )

    (params, train_rows, valid_rows), = recording_context.training_engine.calls
    assert (train_rows, valid_rows) == (5, 5)
    assert model.definition.response_domain == ["no", "yes"]


def test_split_follows_training_seed(sample_regression_data, recording_context):
    params = GLM().get_training_params().model_copy(update={"seed": 3, "response_column": "target"})
    GLM(params=params, execution_context=recording_context).set_train_ratio(0.5).fit(sample_regression_data)

    store = FrameStore()
    store.put("input", sample_regression_data[["feature1", "feature2", "target"]])
    expected = DatasetSplitter(store, random_state=3).split("input", 0.5, stratify_col="target")

    (train_frame,) = recording_context.training_engine.train_frames
    np.testing.assert_allclose(train_frame["feature1"], store.get(expected.train)["feature1"])


def test_fit_records_source_columns(tiny_binomial_data, recording_context):
    model = GLM(execution_context=recording_context).set_predictions_col("label").fit(tiny_binomial_data)

    (params, _, _), = recording_context.training_engine.calls
    assert params.source_columns == ["x"]
    assert model.definition.header.source_columns == ["x"]


def test_features_cols_is_set_only_after_setter():
    algo = GBM()
    assert not algo.is_set("featuresCols")
    algo.set_features_cols("x")
    assert algo.is_set("featuresCols")
    with pytest.raises(KeyError):
        algo.is_set("unknown")
