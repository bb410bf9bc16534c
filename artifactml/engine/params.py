"""Engine-facing training configuration."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TrainingParams(BaseModel):
    """
    Immutable configuration handed to the training engine.

    Stages never mutate an instance; they rebuild it with ``model_copy`` before
    each delegation so the engine cannot observe later changes.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    algorithm: str
    hyperparameters: Dict[str, Any] = Field(default_factory=dict)
    response_column: Optional[str] = None
    # input columns before array expansion; scoring selects these by default
    source_columns: List[str] = Field(default_factory=list)
    train: Optional[str] = Field(default=None, alias="_train")
    valid: Optional[str] = Field(default=None, alias="_valid")
    seed: int = 42
