"""Row coercion, frame casting and dataset splitting helpers."""

from .casting import all_string_columns_to_categorical, table_to_frame
from .coercion import NA_SENTINEL, FeatureRecord, coerce_value, row_to_feature_record
from .split import DatasetSplitter

__all__ = [
    "NA_SENTINEL",
    "DatasetSplitter",
    "FeatureRecord",
    "all_string_columns_to_categorical",
    "coerce_value",
    "row_to_feature_record",
    "table_to_frame",
]
