"""Generic parameter map shared by pipeline stages."""

import copy
import uuid
from typing import Any, ClassVar, Dict, Optional


def random_uid(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[-12:]}"


class Params:
    """
    Named parameters with class-level defaults and per-instance explicit values.
    """

    # name -> description
    _param_docs: ClassVar[Dict[str, str]] = {}
    _defaults: ClassVar[Dict[str, Any]] = {}

    def __init__(self):
        self._param_map: Dict[str, Any] = {}

    def has_param(self, name: str) -> bool:
        return name in self._param_docs

    def _check(self, name: str) -> None:
        if not self.has_param(name):
            raise KeyError(f"{type(self).__name__} has no param '{name}'")

    def is_set(self, name: str) -> bool:
        self._check(name)
        return name in self._param_map

    def get_or_default(self, name: str) -> Any:
        self._check(name)
        if name in self._param_map:
            return copy.deepcopy(self._param_map[name])
        return copy.deepcopy(self._defaults.get(name))

    def _set(self, **values: Any) -> "Params":
        for name, value in values.items():
            self._check(name)
            self._param_map[name] = copy.deepcopy(value)
        return self

    def explicit_param_map(self) -> Dict[str, Any]:
        return copy.deepcopy(self._param_map)

    def default_param_map(self) -> Dict[str, Any]:
        return copy.deepcopy(self._defaults)

    def extract_param_map(self) -> Dict[str, Any]:
        merged = self.default_param_map()
        merged.update(self.explicit_param_map())
        return merged

    def explain_params(self) -> str:
        lines = []
        for name, doc in self._param_docs.items():
            current = f"current: {self._param_map[name]!r}" if name in self._param_map else "undefined"
            lines.append(f"{name}: {doc} (default: {self._defaults.get(name)!r}, {current})")
        return "\n".join(lines)


class PipelineStage(Params):
    uid_prefix: ClassVar[str] = "stage"
    default_file_name: ClassVar[str] = ""

    def __init__(self, uid: Optional[str] = None):
        super().__init__()
        self.uid = uid or random_uid(self.uid_prefix)

    @classmethod
    def class_name(cls) -> str:
        return f"{cls.__module__}.{cls.__qualname__}"

    def copy(self, extra: Optional[Dict[str, Any]] = None) -> "PipelineStage":
        """Shallow copy with the same uid; ``extra`` overrides params on the copy."""
        that = copy.copy(self)
        that._param_map = self.explicit_param_map()
        if extra:
            that._set(**extra)
        return that

    def __repr__(self) -> str:
        return f"{type(self).__name__}(uid={self.uid!r})"
