"""
Trained artifact format.

An artifact is a zip container with two entries:

- ``model.json``: the ArtifactHeader (category, feature names, domains, ...)
- ``model.joblib``: the fitted scikit-learn estimator

Bytes are produced once by the training engine and are never rewritten.
"""

import io
import logging
import uuid
import zipfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import joblib
from pydantic import BaseModel, Field, ValidationError

from ..exceptions import ArtifactFormatError
from ..modeling.categories import ModelCategory

logger = logging.getLogger(__name__)

ARTIFACT_FORMAT_VERSION = "1.0"
HEADER_ENTRY = "model.json"
ESTIMATOR_ENTRY = "model.joblib"


class ArtifactHeader(BaseModel):
    """Descriptive part of a trained artifact."""

    format_version: str = ARTIFACT_FORMAT_VERSION
    artifact_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    algorithm: str
    category: ModelCategory
    feature_names: List[str] = Field(default_factory=list)
    # dataset columns the features were derived from (arrays expand to name0..nameN)
    source_columns: List[str] = Field(default_factory=list)
    # categorical input features: column -> ordered levels
    feature_domains: Dict[str, List[str]] = Field(default_factory=dict)
    response_column: Optional[str] = None
    response_domain: List[str] = Field(default_factory=list)
    metrics: Dict[str, Optional[float]] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class ModelDefinition:
    """Parsed artifact: header plus the fitted estimator."""

    header: ArtifactHeader
    estimator: Any

    @property
    def category(self) -> ModelCategory:
        return self.header.category

    @property
    def feature_names(self) -> List[str]:
        return list(self.header.feature_names)

    @property
    def source_columns(self) -> List[str]:
        return list(self.header.source_columns or self.header.feature_names)

    @property
    def response_domain(self) -> List[str]:
        return list(self.header.response_domain)

    @property
    def n_classes(self) -> int:
        return len(self.header.response_domain) if self.category.is_classification else 1


def write_artifact(header: ArtifactHeader, estimator: Any) -> bytes:
    """Serialize a header and fitted estimator into artifact bytes."""
    estimator_buffer = io.BytesIO()
    joblib.dump(estimator, estimator_buffer)

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(HEADER_ENTRY, header.model_dump_json(indent=2))
        archive.writestr(ESTIMATOR_ENTRY, estimator_buffer.getvalue())
    return buffer.getvalue()


def read_artifact(data: bytes) -> ModelDefinition:
    """Parse artifact bytes into a ModelDefinition. The bytes are not modified."""
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        raise ArtifactFormatError("Artifact is not a valid model archive") from exc

    with archive:
        names = set(archive.namelist())
        missing = [entry for entry in (HEADER_ENTRY, ESTIMATOR_ENTRY) if entry not in names]
        if missing:
            raise ArtifactFormatError(
                f"Artifact is missing entries: {missing}", details={"missing": missing}
            )

        try:
            header = ArtifactHeader.model_validate_json(archive.read(HEADER_ENTRY))
        except ValidationError as exc:
            raise ArtifactFormatError(f"Invalid artifact header: {exc}") from exc

        major = header.format_version.split(".")[0]
        if major != ARTIFACT_FORMAT_VERSION.split(".")[0]:
            raise ArtifactFormatError(
                f"Unsupported artifact format version {header.format_version}",
                details={"format_version": header.format_version},
            )

        estimator = joblib.load(io.BytesIO(archive.read(ESTIMATOR_ENTRY)))

    logger.debug(
        f"Read artifact {header.artifact_id} ({header.algorithm}, {header.category.value})"
    )
    return ModelDefinition(header=header, estimator=estimator)


def read_artifact_file(path: Union[str, Path]) -> Tuple[bytes, ModelDefinition]:
    data = Path(path).read_bytes()
    return data, read_artifact(data)
