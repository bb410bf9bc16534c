import json

import pandas as pd
import pytest

from artifactml.context import ExecutionContext
from artifactml.exceptions import ExecutionContextError, ReconstructionError
from artifactml.persistence import STAGE_REGISTRY, StageEntry, load, save
from artifactml.persistence.metadata import METADATA_FILE_NAME
from artifactml.stages import DRF, GBM, GLM, KMeans, ScoringModel


@pytest.fixture
def configured_gbm():
    return (
        GBM()
        .set_predictions_col("label")
        .set_train_ratio(0.8)
        .set_features_cols("x", "label")
        .set_hyperparameters(max_iter=7)
    )


def test_registry_contains_all_stages():
    registered = STAGE_REGISTRY.registered()
    for stage in (GBM, DRF, GLM, KMeans, ScoringModel):
        assert stage.class_name() in registered


def test_duplicate_registration_rejected():
    entry = StageEntry(GBM.class_name(), "algorithm", "gbm_params", GBM.build)
    with pytest.raises(ValueError, match="already registered"):
        STAGE_REGISTRY.register(entry)


def test_algorithm_round_trip(configured_gbm, tmp_path):
    path = tmp_path / "gbm"
    configured_gbm.save(path)

    assert (path / METADATA_FILE_NAME).exists()
    assert (path / "gbm_params").exists()

    loaded = GBM.load(path)

    assert isinstance(loaded, GBM)
    assert loaded.uid == configured_gbm.uid
    assert loaded.get_train_ratio() == 0.8
    assert loaded.get_predictions_col() == "label"
    assert loaded.get_features_cols() == ["x", "label"]
    assert loaded.get_hyperparameters()["max_iter"] == 7
    assert loaded.get_training_params() == configured_gbm.get_training_params()


def test_metadata_contents(configured_gbm, tmp_path):
    path = tmp_path / "gbm"
    save(configured_gbm, path)

    metadata = json.loads((path / METADATA_FILE_NAME).read_text(encoding="utf-8"))

    assert metadata["class_name"] == GBM.class_name()
    assert metadata["uid"] == configured_gbm.uid
    assert metadata["param_map"]["ratio"] == 0.8
    assert metadata["default_param_map"]["ratio"] == 1.0


def test_generic_load_resolves_class(configured_gbm, tmp_path):
    save(configured_gbm, tmp_path / "stage")
    assert isinstance(load(tmp_path / "stage"), GBM)


def test_loaded_algorithm_can_fit(configured_gbm, tiny_binomial_data, tmp_path):
    configured_gbm.save(tmp_path / "gbm")
    model = GBM.load(tmp_path / "gbm").set_train_ratio(1.0).fit(tiny_binomial_data)
    assert list(model.transform(tiny_binomial_data).columns) == ["no", "yes"]


def test_model_artifact_is_byte_identical(tiny_binomial_data, tmp_path):
    model = GLM().set_predictions_col("label").fit(tiny_binomial_data)
    path = tmp_path / "model"
    model.save(path)

    assert (path / "model_artifact").read_bytes() == model.artifact_bytes

    loaded = ScoringModel.load(path)

    assert loaded.uid == model.uid
    assert loaded.artifact_bytes == model.artifact_bytes
    assert loaded.get_features_cols() == ["x"]
    assert loaded.get_predictions_col() == "label"
    pd.testing.assert_frame_equal(loaded.transform(tiny_binomial_data), model.transform(tiny_binomial_data))


def test_model_loads_without_execution_context(tiny_binomial_data, tmp_path):
    model = GLM().set_predictions_col("label").fit(tiny_binomial_data)
    model.save(tmp_path / "model")
    ExecutionContext.active().stop()

    loaded = load(tmp_path / "model")

    assert isinstance(loaded, ScoringModel)
    assert ExecutionContext.active() is None


def test_algorithm_load_requires_execution_context(configured_gbm, tmp_path):
    configured_gbm.save(tmp_path / "gbm")
    ExecutionContext.active().stop()

    with pytest.raises(ExecutionContextError, match="execution context has to be started"):
        GBM.load(tmp_path / "gbm")


def test_existing_path_requires_overwrite(configured_gbm, tmp_path):
    path = tmp_path / "gbm"
    configured_gbm.save(path)

    with pytest.raises(FileExistsError):
        configured_gbm.save(path)

    configured_gbm.set_train_ratio(0.5)
    configured_gbm.save(path, overwrite=True)

    assert GBM.load(path).get_train_ratio() == 0.5
    # no staging directories are left behind
    assert [p.name for p in tmp_path.iterdir()] == ["gbm"]


def test_class_mismatch(configured_gbm, tmp_path):
    configured_gbm.save(tmp_path / "gbm")
    with pytest.raises(ReconstructionError, match="expected class name"):
        DRF.load(tmp_path / "gbm")


def test_unknown_class(configured_gbm, tmp_path):
    path = tmp_path / "gbm"
    configured_gbm.save(path)
    metadata_path = path / METADATA_FILE_NAME
    metadata = json.loads(metadata_path.read_text(encoding="utf-8"))
    metadata["class_name"] = "somewhere.else.Unknown"
    metadata_path.write_text(json.dumps(metadata), encoding="utf-8")

    with pytest.raises(ReconstructionError, match="No registered stage"):
        load(path)


def test_unknown_param_in_metadata(configured_gbm, tmp_path):
    path = tmp_path / "gbm"
    configured_gbm.save(path)
    metadata_path = path / METADATA_FILE_NAME
    metadata = json.loads(metadata_path.read_text(encoding="utf-8"))
    metadata["param_map"]["bogus"] = 1
    metadata_path.write_text(json.dumps(metadata), encoding="utf-8")

    with pytest.raises(ReconstructionError, match="bogus"):
        GBM.load(path)


def test_missing_metadata(tmp_path):
    (tmp_path / "empty").mkdir()
    with pytest.raises(ReconstructionError, match="Metadata not found"):
        load(tmp_path / "empty")


def test_corrupt_configuration_blob(configured_gbm, tmp_path):
    path = tmp_path / "gbm"
    configured_gbm.save(path)
    (path / "gbm_params").write_bytes(b"garbage")

    with pytest.raises(ReconstructionError):
        GBM.load(path)
