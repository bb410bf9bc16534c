import numpy as np
import pandas as pd
import polars as pl
import pyarrow as pa
import pytest

from artifactml.context import DataContext
from artifactml.data.schema import Schema
from artifactml.exceptions import ConfigurationError
from artifactml.stages import GLM, ScoringModel


@pytest.fixture
def binomial_model(tiny_binomial_data):
    return GLM().set_predictions_col("label").fit(tiny_binomial_data)


def test_binomial_end_to_end(binomial_model, tiny_binomial_data):
    scored = binomial_model.transform(tiny_binomial_data)

    assert list(scored.columns) == ["no", "yes"]
    assert len(scored) == 10
    np.testing.assert_allclose(scored.sum(axis=1).to_numpy(), np.ones(10))
    assert scored.loc[0, "no"] > scored.loc[0, "yes"]
    assert scored.loc[9, "yes"] > scored.loc[9, "no"]


def test_transform_schema_ignores_input(binomial_model):
    first = binomial_model.transform_schema()
    second = binomial_model.transform_schema(Schema.of_doubles(["anything"]))

    assert first == second
    assert first.names == ["no", "yes"]


def test_output_columns_are_doubles(binomial_model, tiny_binomial_data):
    scored = binomial_model.transform(tiny_binomial_data)
    assert all(dtype == np.float64 for dtype in scored.dtypes)


def test_multinomial_scoring(sample_classification_data):
    model = GLM().set_predictions_col("target").fit(sample_classification_data)

    scored = model.transform(sample_classification_data)

    assert list(scored.columns) == ["A", "B", "C"]
    np.testing.assert_allclose(scored.sum(axis=1).to_numpy(), np.ones(len(scored)))
    accuracy = (scored.idxmax(axis=1) == sample_classification_data["target"]).mean()
    assert accuracy > 0.8


def test_regression_scoring(sample_regression_data):
    model = GLM().set_predictions_col("target").fit(sample_regression_data)

    scored = model.transform(sample_regression_data)

    assert list(scored.columns) == ["value"]
    correlation = np.corrcoef(scored["value"], sample_regression_data["target"])[0, 1]
    assert correlation > 0.95


def test_struct_columns_are_flattened():
    np.random.seed(42)
    a = np.random.normal(0, 1, 40)
    b = np.random.normal(0, 1, 40)
    table = pa.table({
        "point": pa.array([{"a": float(x), "b": float(y)} for x, y in zip(a, b)]),
        "y": a + 2 * b,
    })

    model = GLM().set_predictions_col("y").fit(table)
    scored = model.transform(table)

    assert model.definition.feature_names == ["point.a", "point.b"]
    assert len(scored) == 40
    assert np.corrcoef(scored["value"], table.column("y").to_numpy())[0, 1] > 0.95


def test_accepts_arrow_and_polars(binomial_model, tiny_binomial_data):
    expected = binomial_model.transform(tiny_binomial_data)

    from_arrow = binomial_model.transform(pa.Table.from_pandas(tiny_binomial_data))
    from_polars = binomial_model.transform(pl.from_pandas(tiny_binomial_data))

    pd.testing.assert_frame_equal(from_arrow, expected)
    pd.testing.assert_frame_equal(from_polars, expected)


def test_parallel_scoring_keeps_row_order(sample_classification_data):
    model = GLM().set_predictions_col("target").fit(sample_classification_data)
    sequential = model.transform(sample_classification_data)

    parallel_model = ScoringModel.from_bytes(
        model.artifact_bytes, data_context=DataContext(n_jobs=2, batch_size=7)
    )
    parallel = parallel_model.transform(sample_classification_data)

    pd.testing.assert_frame_equal(parallel, sequential)


def test_empty_dataset_gives_empty_frame(binomial_model, tiny_binomial_data):
    scored = binomial_model.transform(tiny_binomial_data.iloc[:0])

    assert list(scored.columns) == ["no", "yes"]
    assert len(scored) == 0


def test_features_default_to_artifact(binomial_model):
    fresh = ScoringModel.from_bytes(binomial_model.artifact_bytes)

    assert fresh.get_features_cols() == ["x"]
    assert fresh.get_predictions_col() == "prediction"


def test_unknown_dataset_type_rejected(binomial_model):
    with pytest.raises(TypeError, match="Unsupported dataset type"):
        binomial_model.transform([{"x": 1}])


def test_set_features_cols_requires_columns(binomial_model):
    with pytest.raises(ConfigurationError):
        binomial_model.set_features_cols()


def test_from_file(binomial_model, tmp_path):
    path = tmp_path / "artifact.zip"
    path.write_bytes(binomial_model.artifact_bytes)

    model = ScoringModel.from_file(path)

    assert model.artifact_bytes == binomial_model.artifact_bytes
    assert model.definition.header.artifact_id == binomial_model.definition.header.artifact_id


@pytest.fixture
def array_table():
    np.random.seed(42)
    a = np.random.normal(0, 1, 40)
    b = np.random.normal(0, 1, 40)
    return pa.table({
        "arr": pa.array([[float(x), float(y)] for x, y in zip(a, b)]),
        "y": a + 2 * b,
    })


def test_array_trained_artifact_scores_from_bytes_and_load(array_table, tmp_path):
    model = GLM().set_predictions_col("y").fit(array_table)
    target = array_table.column("y").to_numpy()

    assert model.definition.feature_names == ["arr0", "arr1"]
    assert model.definition.source_columns == ["arr"]

    fresh = ScoringModel.from_bytes(model.artifact_bytes)
    assert fresh.get_features_cols() == ["arr"]
    fresh_scores = fresh.transform(array_table)["value"]
    assert fresh_scores.std() > 0.5
    assert np.corrcoef(fresh_scores, target)[0, 1] > 0.95

    model.save(tmp_path / "model")
    loaded = ScoringModel.load(tmp_path / "model")
    pd.testing.assert_frame_equal(loaded.transform(array_table), model.transform(array_table))
    assert np.corrcoef(loaded.transform(array_table)["value"], target)[0, 1] > 0.95


def test_from_file_defaults_to_source_columns(array_table, tmp_path):
    model = GLM().set_predictions_col("y").fit(array_table)
    path = tmp_path / "artifact.zip"
    path.write_bytes(model.artifact_bytes)

    assert ScoringModel.from_file(path).get_features_cols() == ["arr"]
