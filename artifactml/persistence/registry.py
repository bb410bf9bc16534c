"""
Registry of persistable stage classes.

Persisted metadata names a class; the registry maps that name to the builder
that constructs the stage, so loading never resolves classes dynamically.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Literal, TypeVar

from ..exceptions import ReconstructionError

StageKind = Literal["algorithm", "model"]
S = TypeVar("S", bound=type)


@dataclass(frozen=True)
class StageEntry:
    class_name: str
    kind: StageKind
    file_name: str
    builder: Callable[..., object]


class StageRegistry:
    def __init__(self):
        self._entries: Dict[str, StageEntry] = {}

    def register(self, entry: StageEntry) -> None:
        if entry.class_name in self._entries:
            raise ValueError(f"Stage {entry.class_name} is already registered")
        self._entries[entry.class_name] = entry

    def resolve(self, class_name: str) -> StageEntry:
        try:
            return self._entries[class_name]
        except KeyError:
            raise ReconstructionError(
                f"No registered stage for class {class_name}",
                details={"class_name": class_name, "registered": self.registered()},
            ) from None

    def registered(self) -> List[str]:
        return sorted(self._entries)


STAGE_REGISTRY = StageRegistry()


def register_stage(kind: StageKind) -> Callable[[S], S]:
    """Class decorator: register ``cls.build`` under ``cls.class_name()``."""

    def decorator(cls: S) -> S:
        STAGE_REGISTRY.register(
            StageEntry(
                class_name=cls.class_name(),
                kind=kind,
                file_name=cls.default_file_name,
                builder=cls.build,
            )
        )
        return cls

    return decorator
