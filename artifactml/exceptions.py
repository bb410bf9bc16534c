"""Exception hierarchy for artifactml stages."""

from typing import Any, Dict, Optional


class ArtifactMLException(Exception):
    """Base exception for pipeline stage errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(ArtifactMLException, ValueError):
    """Invalid stage configuration (raised at configuration time)."""


class UnsupportedCategoryError(ArtifactMLException):
    """Prediction or schema derivation requested for an unimplemented model category."""

    def __init__(self, category: Any, operation: str):
        name = getattr(category, "value", category)
        super().__init__(
            f"Model category '{name}' is not supported for {operation}",
            details={"category": str(name), "operation": operation},
        )
        self.category = category
        self.operation = operation


class ReconstructionError(ArtifactMLException):
    """A persisted stage could not be rebuilt."""


class ExecutionContextError(ReconstructionError):
    """No execution context is available."""


class ArtifactFormatError(ArtifactMLException):
    """Trained artifact bytes could not be parsed."""
