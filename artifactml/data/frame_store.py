"""In-process key/value store for engine-native frames."""

import logging
import threading
import uuid
from typing import Dict, List, Optional, Sequence

import pandas as pd
from sklearn.model_selection import train_test_split

logger = logging.getLogger(__name__)


def make_key(prefix: str) -> str:
    """Generate a fresh, unique frame key."""
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


class FrameStore:
    """
    Holds pandas frames published for the training engine.

    Every writer uses its own generated key, so puts never race on a key; the
    lock only protects the dictionary itself.
    """

    def __init__(self):
        self._frames: Dict[str, pd.DataFrame] = {}
        self._lock = threading.Lock()

    def put(self, key: str, frame: pd.DataFrame) -> str:
        with self._lock:
            self._frames[key] = frame
        logger.debug(f"Stored frame {key} ({len(frame)} rows, {len(frame.columns)} columns)")
        return key

    def get(self, key: str) -> pd.DataFrame:
        with self._lock:
            if key not in self._frames:
                raise KeyError(f"Frame not found: {key}")
            return self._frames[key]

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._frames

    def remove(self, key: str) -> None:
        with self._lock:
            self._frames.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._frames)

    def clear(self) -> None:
        with self._lock:
            self._frames.clear()

    def split(
        self,
        key: str,
        ratio: float,
        destination_keys: Sequence[str],
        random_state: int = 42,
        shuffle: bool = True,
        stratify_col: Optional[str] = None,
    ) -> List[str]:
        """
        Split a stored frame into two partitions with ``train_test_split``.

        ``round(ratio * n)`` rows go to the first destination key and the rest
        to the second. Each row lands in exactly one partition. When a
        partition would be empty the whole frame is stored under the first key
        and only that key is returned.

        ``stratify_col`` keeps its label proportions in both partitions when
        every label has at least two rows and each partition can hold one row
        per label; otherwise the split is not stratified.
        """
        if len(destination_keys) != 2:
            raise ValueError(f"Expected 2 destination keys, got {len(destination_keys)}")
        if not 0.0 <= ratio <= 1.0:
            raise ValueError(f"Invalid split ratio: {ratio}")

        frame = self.get(key)
        n_rows = len(frame)
        n_train = int(round(ratio * n_rows))
        train_key, valid_key = destination_keys

        if n_train <= 0 or n_train >= n_rows:
            self.put(train_key, frame.reset_index(drop=True))
            logger.info(f"Split frame {key} ({n_rows} rows) into 1 partition")
            return [train_key]

        stratify = self._stratify_labels(frame, stratify_col, n_train) if shuffle else None
        train, valid = train_test_split(
            frame,
            train_size=n_train,
            random_state=random_state,
            shuffle=shuffle,
            stratify=stratify,
        )
        self.put(train_key, train.reset_index(drop=True))
        self.put(valid_key, valid.reset_index(drop=True))

        logger.info(
            f"Split frame {key} ({n_rows} rows) into {len(train)}/{len(valid)} rows"
            f"{' stratified on ' + stratify_col if stratify is not None else ''}"
        )
        return [train_key, valid_key]

    @staticmethod
    def _stratify_labels(frame: pd.DataFrame, column: Optional[str], n_train: int) -> Optional[pd.Series]:
        if column is None or column not in frame.columns:
            return None
        labels = frame[column].astype(object).where(frame[column].notna(), "__missing__")
        counts = labels.value_counts()
        n_labels = len(counts)
        if n_labels < 2 or counts.min() < 2 or n_labels > min(n_train, len(frame) - n_train):
            logger.debug(f"Column {column} cannot stratify this split; splitting without it")
            return None
        return labels
