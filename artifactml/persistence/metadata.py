"""Pipeline metadata written next to every persisted stage."""

import json
import time
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from ..exceptions import ReconstructionError
from ..version import __version__

METADATA_FILE_NAME = "metadata"


class StageMetadata(BaseModel):
    class_name: str
    uid: str
    timestamp: int
    library_version: str = __version__
    param_map: Dict[str, Any] = Field(default_factory=dict)
    default_param_map: Dict[str, Any] = Field(default_factory=dict)


def save_metadata(stage: Any, path: Path) -> StageMetadata:
    metadata = StageMetadata(
        class_name=stage.class_name(),
        uid=stage.uid,
        timestamp=int(time.time() * 1000),
        param_map=stage.explicit_param_map(),
        default_param_map=stage.default_param_map(),
    )
    (Path(path) / METADATA_FILE_NAME).write_text(metadata.model_dump_json(indent=2), encoding="utf-8")
    return metadata


def load_metadata(path: Path, expected_class_name: Optional[str] = None) -> StageMetadata:
    metadata_path = Path(path) / METADATA_FILE_NAME
    if not metadata_path.exists():
        raise ReconstructionError(f"Metadata not found in {path}", details={"path": str(path)})

    try:
        metadata = StageMetadata.model_validate_json(metadata_path.read_text(encoding="utf-8"))
    except (ValidationError, json.JSONDecodeError) as exc:
        raise ReconstructionError(f"Invalid metadata in {path}: {exc}") from exc

    if expected_class_name is not None and metadata.class_name != expected_class_name:
        raise ReconstructionError(
            f"Error loading metadata: expected class name {expected_class_name} "
            f"but found class name {metadata.class_name}",
            details={"expected": expected_class_name, "found": metadata.class_name},
        )
    return metadata


def get_and_set_params(stage: Any, metadata: StageMetadata) -> None:
    """Re-apply the persisted explicit params onto a freshly built stage."""
    unknown = [name for name in metadata.param_map if not stage.has_param(name)]
    if unknown:
        raise ReconstructionError(
            f"{type(stage).__name__} has no params {unknown}", details={"unknown": unknown}
        )
    stage._set(**metadata.param_map)
