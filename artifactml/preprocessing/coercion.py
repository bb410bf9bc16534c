"""
Feature coercion matrix.

Turns one tabular row into the string-keyed feature record consumed by the
prediction routines. Every LogicalType has exactly one coercer below.

Known limitations:
- Nulls and unsupported types both become "0", which cannot be told apart
  from a genuine zero value.
- Array and vector columns expand to ``name0 .. nameN`` per row. Rows with
  different lengths for the same column produce differently keyed records;
  no padding or truncation happens here.
"""

from datetime import date, datetime, timezone
from typing import Any, Callable, Container, Dict, Iterable, List, Mapping, Tuple

import numpy as np

from ..data.schema import Field, LogicalType

FeatureRecord = Dict[str, str]

# Stands in for missing values and unsupported column types
NA_SENTINEL = "0"

_EPOCH = datetime(1970, 1, 1)
_EPOCH_DATE = date(1970, 1, 1)

Coercer = Callable[[Field, Any], List[Tuple[str, str]]]


def epoch_millis(value: Any) -> int:
    """Milliseconds since the unix epoch; naive timestamps are read as UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        delta = value - _EPOCH
    elif isinstance(value, date):
        delta = value - _EPOCH_DATE
    else:
        raise TypeError(f"Cannot convert {type(value).__name__} to epoch milliseconds")
    return delta.days * 86_400_000 + delta.seconds * 1000 + delta.microseconds // 1000


def _boolean(field: Field, value: Any) -> List[Tuple[str, str]]:
    return [(field.name, "1" if value else "0")]


def _integer(field: Field, value: Any) -> List[Tuple[str, str]]:
    return [(field.name, str(int(value)))]


def _float32(field: Field, value: Any) -> List[Tuple[str, str]]:
    # shortest repr of the 32-bit value, e.g. 0.1 rather than 0.10000000149011612
    return [(field.name, str(np.float32(value)))]


def _float64(field: Field, value: Any) -> List[Tuple[str, str]]:
    return [(field.name, str(float(value)))]


def _string(field: Field, value: Any) -> List[Tuple[str, str]]:
    return [(field.name, value if isinstance(value, str) else str(value))]


def _temporal(field: Field, value: Any) -> List[Tuple[str, str]]:
    return [(field.name, str(epoch_millis(value)))]


def _sequence(field: Field, value: Any) -> List[Tuple[str, str]]:
    # elements use the coercer of the element type, so a float32 array element
    # renders exactly like a float32 column value
    element = field.element or LogicalType.STRING
    pairs: List[Tuple[str, str]] = []
    for idx, item in enumerate(value):
        pairs.extend(coerce_value(Field(f"{field.name}{idx}", element), item))
    return pairs


def _fallback(field: Field, value: Any) -> List[Tuple[str, str]]:
    return [(field.name, NA_SENTINEL)]


_COERCERS: Dict[LogicalType, Coercer] = {
    LogicalType.BOOLEAN: _boolean,
    LogicalType.INT8: _integer,
    LogicalType.INT16: _integer,
    LogicalType.INT32: _integer,
    LogicalType.INT64: _integer,
    LogicalType.FLOAT32: _float32,
    LogicalType.FLOAT64: _float64,
    LogicalType.DECIMAL: _float64,
    LogicalType.STRING: _string,
    LogicalType.TIMESTAMP: _temporal,
    LogicalType.DATE: _temporal,
    LogicalType.ARRAY: _sequence,
    LogicalType.VECTOR: _sequence,
    # structs are flattened before scoring; one that slips through is unsupported
    LogicalType.STRUCT: _fallback,
    LogicalType.OTHER: _fallback,
}

_missing = set(LogicalType) - set(_COERCERS)
if _missing:
    raise RuntimeError(f"No coercer registered for logical types: {sorted(t.value for t in _missing)}")


def coerce_value(field: Field, value: Any) -> List[Tuple[str, str]]:
    """Return the (key, value) pairs one column contributes to a feature record."""
    if value is None:
        return [(field.name, NA_SENTINEL)]
    return _COERCERS[field.dtype](field, value)


def row_to_feature_record(
    row: Mapping[str, Any],
    fields: Iterable[Field],
    features: Container[str],
) -> FeatureRecord:
    """
    Build the feature record for a single row.

    Args:
        row: Mapping of (flattened) column name to python value.
        fields: Flattened schema fields, in column order.
        features: Names of the columns to keep; all others are skipped.
    """
    record: FeatureRecord = {}
    for field in fields:
        if field.name not in features:
            continue
        for key, value in coerce_value(field, row.get(field.name)):
            record[key] = value
    return record
