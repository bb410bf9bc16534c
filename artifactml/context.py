"""
Execution and data contexts.

ExecutionContext owns the frame store and the training engine; one context
is active per process. DataContext normalises user datasets to arrow tables
and runs row batches, optionally on joblib worker threads.
"""

import logging
import threading
from typing import Any, Callable, List, Optional, Sequence, TypeVar

import pandas as pd
import polars as pl
import pyarrow as pa
from joblib import Parallel, delayed

from .config import get_settings
from .data.frame_store import FrameStore, make_key
from .data.schema import Schema
from .engine.training import SklearnTrainingEngine, TrainingEngine
from .exceptions import ExecutionContextError
from .preprocessing.casting import table_to_frame

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class ExecutionContext:
    _active: Optional["ExecutionContext"] = None
    _lock = threading.Lock()

    def __init__(
        self,
        frame_store: Optional[FrameStore] = None,
        training_engine: Optional[TrainingEngine] = None,
    ):
        self.frame_store = frame_store or FrameStore()
        self.training_engine = training_engine or SklearnTrainingEngine()

    @classmethod
    def get_or_create(cls, **kwargs: Any) -> "ExecutionContext":
        """Return the active context, starting one if needed."""
        with cls._lock:
            if cls._active is None:
                cls._active = cls(**kwargs)
                logger.info("Started execution context")
            return cls._active

    @classmethod
    def active(cls) -> Optional["ExecutionContext"]:
        with cls._lock:
            return cls._active

    @classmethod
    def ensure(cls, message: str) -> "ExecutionContext":
        """Return the active context or fail with ``message``."""
        context = cls.active()
        if context is None:
            raise ExecutionContextError(message)
        return context

    def stop(self) -> None:
        self.frame_store.clear()
        with ExecutionContext._lock:
            if ExecutionContext._active is self:
                ExecutionContext._active = None
        logger.info("Stopped execution context")

    def as_frame(self, table: pa.Table, key: Optional[str] = None) -> str:
        """Publish ``table`` to the frame store as an engine frame; returns its key."""
        frame = table_to_frame(table)
        return self.frame_store.put(key or make_key("frame"), frame)


class DataContext:
    def __init__(self, n_jobs: Optional[int] = None, batch_size: Optional[int] = None):
        settings = get_settings()
        self.n_jobs = n_jobs if n_jobs is not None else settings.SCORING_N_JOBS
        self.batch_size = batch_size if batch_size is not None else settings.SCORING_BATCH_SIZE

    def as_table(self, dataset: Any) -> pa.Table:
        if isinstance(dataset, pa.Table):
            return dataset
        if isinstance(dataset, pd.DataFrame):
            return pa.Table.from_pandas(dataset, preserve_index=False)
        if isinstance(dataset, pl.DataFrame):
            return dataset.to_arrow()
        raise TypeError(f"Unsupported dataset type: {type(dataset).__name__}")

    def batches(self, table: pa.Table) -> List[List[dict]]:
        """Row dictionaries in order, cut into batches of ``batch_size`` rows."""
        return [
            table.slice(offset, self.batch_size).to_pylist()
            for offset in range(0, table.num_rows, self.batch_size)
        ]

    def map_batches(self, fn: Callable[[T], R], batches: Sequence[T]) -> List[R]:
        """Apply ``fn`` to every batch; results keep the input order."""
        if self.n_jobs == 1 or len(batches) <= 1:
            return [fn(batch) for batch in batches]
        return Parallel(n_jobs=self.n_jobs, prefer="threads")(delayed(fn)(batch) for batch in batches)

    def create_frame(self, rows: Sequence[Sequence[Any]], schema: Schema) -> pd.DataFrame:
        arrow_schema = schema.to_arrow()
        columns = list(zip(*rows)) if rows else [()] * len(schema)
        arrays = [
            pa.array(list(values), type=arrow_field.type)
            for values, arrow_field in zip(columns, arrow_schema)
        ]
        return pa.Table.from_arrays(arrays, schema=arrow_schema).to_pandas()
