from .container import PartitionKeys
from .frame_store import FrameStore, make_key
from .schema import Field, LogicalType, Schema, flatten_table

__all__ = ["Field", "FrameStore", "LogicalType", "PartitionKeys", "Schema", "flatten_table", "make_key"]
