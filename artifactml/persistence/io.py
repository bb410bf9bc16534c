"""
Stage persistence.

Layout of a saved stage directory::

    <path>/metadata            StageMetadata as JSON
    <path>/<default_file_name> trainer: joblib TrainingParams blob
                               scorer: raw trained artifact bytes

Writers stage every file in a sibling temporary directory and move it into
place only once complete.
"""

import logging
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Union

import joblib

from ..context import DataContext, ExecutionContext
from ..engine.artifact import read_artifact
from ..engine.params import TrainingParams
from ..exceptions import ReconstructionError
from ..utils.logging_utils import log_stage_action
from .metadata import StageMetadata, get_and_set_params, load_metadata, save_metadata
from .registry import STAGE_REGISTRY, StageEntry

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

EXECUTION_CONTEXT_MESSAGE = (
    "An execution context has to be started in order to load pipeline stages."
)


class StageWriter(ABC):
    def __init__(self, instance: Any):
        self.instance = instance

    def save(self, path: PathLike, overwrite: bool = False) -> None:
        target = Path(path)
        if target.exists() and not overwrite:
            raise FileExistsError(
                f"Path {target} already exists. Use overwrite=True to replace it."
            )
        target.parent.mkdir(parents=True, exist_ok=True)

        staging = Path(tempfile.mkdtemp(prefix=f".{target.name}.", dir=target.parent))
        try:
            save_metadata(self.instance, staging)
            self.save_impl(staging)
            if target.exists():
                shutil.rmtree(target)
            os.replace(staging, target)
        except Exception:
            shutil.rmtree(staging, ignore_errors=True)
            log_stage_action("save", success=False, details=f"{self.instance!r} -> {target}")
            raise

        log_stage_action("save", details=f"{self.instance!r} -> {target}")

    @abstractmethod
    def save_impl(self, path: Path) -> None:
        raise NotImplementedError


class AlgorithmWriter(StageWriter):
    def save_impl(self, path: Path) -> None:
        joblib.dump(self.instance.get_training_params(), path / self.instance.default_file_name)


class ModelWriter(StageWriter):
    def save_impl(self, path: Path) -> None:
        # verbatim: the artifact is never re-encoded
        (path / self.instance.default_file_name).write_bytes(self.instance.artifact_bytes)


class StageReader:
    """Loads a stage, optionally insisting on a specific class."""

    def __init__(self, class_name: Optional[str] = None):
        self.class_name = class_name

    def load(self, path: PathLike) -> Any:
        path = Path(path)
        metadata = load_metadata(path, expected_class_name=self.class_name)
        entry = STAGE_REGISTRY.resolve(metadata.class_name)

        if entry.kind == "algorithm":
            stage = self._load_algorithm(path, metadata, entry)
        else:
            stage = self._load_model(path, metadata, entry)

        get_and_set_params(stage, metadata)
        log_stage_action("load", details=f"{stage!r} <- {path}")
        return stage

    def _load_algorithm(self, path: Path, metadata: StageMetadata, entry: StageEntry) -> Any:
        blob = path / entry.file_name
        if not blob.exists():
            raise ReconstructionError(f"Algorithm configuration not found: {blob}")
        try:
            params = joblib.load(blob)
        except Exception as exc:
            raise ReconstructionError(f"Could not deserialize algorithm configuration {blob}: {exc}") from exc
        if not isinstance(params, TrainingParams):
            raise ReconstructionError(
                f"Expected TrainingParams in {blob}, found {type(params).__name__}"
            )

        execution_context = ExecutionContext.ensure(EXECUTION_CONTEXT_MESSAGE)
        return entry.builder(params, metadata.uid, execution_context, DataContext())

    def _load_model(self, path: Path, metadata: StageMetadata, entry: StageEntry) -> Any:
        artifact_path = path / entry.file_name
        if not artifact_path.exists():
            raise ReconstructionError(f"Model artifact not found: {artifact_path}")
        data = artifact_path.read_bytes()
        definition = read_artifact(data)
        return entry.builder(definition, data, metadata.uid, DataContext())


def save(stage: Any, path: PathLike, overwrite: bool = False) -> None:
    """Persist a trainer or scoring stage to ``path``."""
    stage.writer().save(path, overwrite=overwrite)


def load(path: PathLike) -> Any:
    """Rebuild whichever registered stage was saved at ``path``."""
    return StageReader().load(path)
