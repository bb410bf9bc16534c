"""Column casting helpers applied to frames before training."""

import logging
from typing import Any, Dict, List

import pandas as pd
import pyarrow as pa

from ..data.schema import LogicalType, Schema, flatten_table
from .coercion import epoch_millis

logger = logging.getLogger(__name__)


def is_string_column(series: pd.Series) -> bool:
    if isinstance(series.dtype, pd.StringDtype):
        return True
    if series.dtype == object:
        return pd.api.types.infer_dtype(series, skipna=True) == "string"
    return False


def string_columns(frame: pd.DataFrame) -> List[str]:
    return [column for column in frame.columns if is_string_column(frame[column])]


def all_string_columns_to_categorical(frame: pd.DataFrame) -> pd.DataFrame:
    """Convert every all-string column of ``frame`` to ``category`` dtype, in place."""
    converted = string_columns(frame)
    for column in converted:
        frame[column] = frame[column].astype("category")
    if converted:
        logger.debug(f"Converted string columns to categorical: {converted}")
    return frame


def _expand_sequences(name: str, values: List[Any]) -> Dict[str, pd.Series]:
    width = max((len(v) for v in values if v is not None), default=0)
    expanded: Dict[str, pd.Series] = {}
    for idx in range(width):
        expanded[f"{name}{idx}"] = pd.Series(
            [v[idx] if v is not None and idx < len(v) else None for v in values]
        )
    return expanded


def table_to_frame(table: pa.Table) -> pd.DataFrame:
    """
    Convert an arrow table into the engine-native pandas frame.

    Structs are flattened, arrays and vectors expand into ``name0 .. nameN``
    columns (shorter rows padded with missing values), booleans become 0/1,
    timestamps and dates become epoch milliseconds and decimals become floats.
    Columns of unsupported types are dropped.
    """
    table = flatten_table(table)
    schema = Schema.from_arrow(table.schema)

    columns: Dict[str, pd.Series] = {}
    dropped: List[str] = []
    for field, column in zip(schema, table.columns):
        dtype = field.dtype
        if dtype in (LogicalType.ARRAY, LogicalType.VECTOR):
            columns.update(_expand_sequences(field.name, column.to_pylist()))
        elif dtype == LogicalType.BOOLEAN:
            columns[field.name] = pd.Series(column.to_pylist(), dtype="float64")
        elif dtype in (LogicalType.TIMESTAMP, LogicalType.DATE):
            columns[field.name] = pd.Series(
                [None if v is None else epoch_millis(v) for v in column.to_pylist()],
                dtype="float64",
            )
        elif dtype == LogicalType.DECIMAL:
            columns[field.name] = pd.Series(
                [None if v is None else float(v) for v in column.to_pylist()],
                dtype="float64",
            )
        elif dtype in (LogicalType.STRUCT, LogicalType.OTHER):
            dropped.append(field.name)
        else:
            columns[field.name] = column.to_pandas()

    if dropped:
        logger.warning(f"Dropping columns with unsupported types: {dropped}")
    return pd.DataFrame(columns, index=pd.RangeIndex(table.num_rows))
