"""Column schemas over a closed set of logical types."""

from dataclasses import dataclass, field as dataclass_field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

import pyarrow as pa


class LogicalType(str, Enum):
    BOOLEAN = "boolean"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    DECIMAL = "decimal"
    STRING = "string"
    TIMESTAMP = "timestamp"
    DATE = "date"
    ARRAY = "array"
    VECTOR = "vector"
    STRUCT = "struct"
    OTHER = "other"


_SCALAR_ARROW_TYPES: Dict[LogicalType, pa.DataType] = {
    LogicalType.BOOLEAN: pa.bool_(),
    LogicalType.INT8: pa.int8(),
    LogicalType.INT16: pa.int16(),
    LogicalType.INT32: pa.int32(),
    LogicalType.INT64: pa.int64(),
    LogicalType.FLOAT32: pa.float32(),
    LogicalType.FLOAT64: pa.float64(),
    LogicalType.DECIMAL: pa.decimal128(38, 18),
    LogicalType.STRING: pa.string(),
    LogicalType.TIMESTAMP: pa.timestamp("ms"),
    LogicalType.DATE: pa.date32(),
}


def logical_type_from_arrow(dtype: pa.DataType) -> LogicalType:
    """Map an arrow data type onto its LogicalType."""
    if pa.types.is_dictionary(dtype):
        return logical_type_from_arrow(dtype.value_type)
    if pa.types.is_boolean(dtype):
        return LogicalType.BOOLEAN
    if pa.types.is_int8(dtype):
        return LogicalType.INT8
    if pa.types.is_int16(dtype) or pa.types.is_uint8(dtype):
        return LogicalType.INT16
    if pa.types.is_int32(dtype) or pa.types.is_uint16(dtype):
        return LogicalType.INT32
    if pa.types.is_int64(dtype) or pa.types.is_uint32(dtype) or pa.types.is_uint64(dtype):
        return LogicalType.INT64
    if pa.types.is_float16(dtype) or pa.types.is_float32(dtype):
        return LogicalType.FLOAT32
    if pa.types.is_float64(dtype):
        return LogicalType.FLOAT64
    if pa.types.is_decimal(dtype):
        return LogicalType.DECIMAL
    if pa.types.is_string(dtype) or pa.types.is_large_string(dtype):
        return LogicalType.STRING
    if pa.types.is_timestamp(dtype):
        return LogicalType.TIMESTAMP
    if pa.types.is_date(dtype):
        return LogicalType.DATE
    if pa.types.is_fixed_size_list(dtype):
        return LogicalType.VECTOR
    if pa.types.is_list(dtype) or pa.types.is_large_list(dtype):
        return LogicalType.ARRAY
    if pa.types.is_struct(dtype):
        return LogicalType.STRUCT
    return LogicalType.OTHER


@dataclass(frozen=True)
class Field:
    name: str
    dtype: LogicalType
    nullable: bool = True
    children: Tuple["Field", ...] = ()
    # element type of ARRAY / VECTOR fields
    element: Optional[LogicalType] = None

    @classmethod
    def from_arrow(cls, arrow_field: pa.Field) -> "Field":
        dtype = logical_type_from_arrow(arrow_field.type)
        children: Tuple[Field, ...] = ()
        element = None
        if dtype == LogicalType.STRUCT:
            children = tuple(
                cls.from_arrow(arrow_field.type.field(i))
                for i in range(arrow_field.type.num_fields)
            )
        elif dtype in (LogicalType.ARRAY, LogicalType.VECTOR):
            element = logical_type_from_arrow(arrow_field.type.value_type)
        return cls(
            name=arrow_field.name,
            dtype=dtype,
            nullable=arrow_field.nullable,
            children=children,
            element=element,
        )

    def to_arrow(self) -> pa.Field:
        if self.dtype == LogicalType.STRUCT:
            arrow_type = pa.struct([child.to_arrow() for child in self.children])
        elif self.dtype in (LogicalType.ARRAY, LogicalType.VECTOR):
            value_type = _SCALAR_ARROW_TYPES.get(self.element or LogicalType.FLOAT64, pa.float64())
            arrow_type = pa.list_(value_type)
        elif self.dtype in _SCALAR_ARROW_TYPES:
            arrow_type = _SCALAR_ARROW_TYPES[self.dtype]
        else:
            arrow_type = pa.null()
        return pa.field(self.name, arrow_type, nullable=self.nullable)


@dataclass(frozen=True)
class Schema:
    """Ordered sequence of fields."""

    fields: Tuple[Field, ...] = dataclass_field(default_factory=tuple)

    @classmethod
    def from_arrow(cls, schema: pa.Schema) -> "Schema":
        return cls(tuple(Field.from_arrow(f) for f in schema))

    @classmethod
    def of_doubles(cls, names: List[str]) -> "Schema":
        return cls(tuple(Field(name, LogicalType.FLOAT64) for name in names))

    def to_arrow(self) -> pa.Schema:
        return pa.schema([f.to_arrow() for f in self.fields])

    @property
    def names(self) -> List[str]:
        return [f.name for f in self.fields]

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __getitem__(self, name: str) -> Field:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    def flatten(self) -> "Schema":
        """
        Expand struct fields into dotted leaf fields.

        Depth first: a struct's leaves take the struct's position, children in
        declaration order.
        """
        return Schema(tuple(_flatten_fields(self.fields, prefix=None)))


def _flatten_fields(fields: Tuple[Field, ...], prefix: Optional[str]) -> List[Field]:
    flat: List[Field] = []
    for f in fields:
        name = f.name if prefix is None else f"{prefix}.{f.name}"
        if f.dtype == LogicalType.STRUCT:
            flat.extend(_flatten_fields(f.children, prefix=name))
        else:
            flat.append(Field(name, f.dtype, f.nullable, (), f.element))
    return flat


def flatten_table(table: pa.Table) -> pa.Table:
    """Recursively flatten struct columns into ``parent.child`` columns."""
    while any(pa.types.is_struct(column_type) for column_type in table.schema.types):
        table = table.flatten()
    return table
