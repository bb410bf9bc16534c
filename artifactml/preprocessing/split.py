import logging
from typing import Optional

from ..config import get_settings
from ..data.container import PartitionKeys
from ..data.frame_store import FrameStore, make_key

logger = logging.getLogger(__name__)


class DatasetSplitter:
    """
    Splits a stored frame into train and, when rows remain, validation partitions.
    """

    def __init__(
        self,
        store: FrameStore,
        train_prefix: str = "train",
        valid_prefix: str = "valid",
        random_state: Optional[int] = None,
        shuffle: bool = True,
    ):
        self.store = store
        self.train_prefix = train_prefix
        self.valid_prefix = valid_prefix
        self.random_state = random_state if random_state is not None else get_settings().DEFAULT_SEED
        self.shuffle = shuffle

    def split(self, key: str, ratio: float, stratify_col: Optional[str] = None) -> PartitionKeys:
        """
        Split the frame stored under ``key`` approximately ``ratio : 1 - ratio``.

        Runs synchronously and is reproducible for a given ``random_state``.
        Only the keys of non-empty partitions are returned, so the validation
        key may be missing.
        """
        if not 0.0 < ratio < 1.0:
            raise ValueError(f"Split ratio must be strictly between 0 and 1, got {ratio}")

        frame = self.store.get(key)
        if frame.empty:
            raise ValueError("Cannot split empty frame")

        destination = [make_key(self.train_prefix), make_key(self.valid_prefix)]
        produced = self.store.split(
            key,
            ratio,
            destination,
            random_state=self.random_state,
            shuffle=self.shuffle,
            stratify_col=stratify_col,
        )

        partitions = PartitionKeys.from_keys(produced)
        logger.info(
            f"Split {key} with ratio {ratio}: train={partitions.train}, valid={partitions.valid}"
        )
        return partitions
