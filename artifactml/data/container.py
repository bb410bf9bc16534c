from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class PartitionKeys:
    """Frame-store keys of the partitions produced for one fit call."""

    train: str
    valid: Optional[str] = None

    @classmethod
    def from_keys(cls, keys: List[str]) -> "PartitionKeys":
        if not keys:
            raise ValueError("At least one partition key is required")
        return cls(train=keys[0], valid=keys[1] if len(keys) > 1 else None)

    def keys(self) -> List[str]:
        return [self.train] if self.valid is None else [self.train, self.valid]
