"""Metadata engines: readers for embedded metadata and the OS content index."""
from .content_index import MdlsContentIndex, NullContentIndex
from .metadata import HachoirContainerMetadataReader, PillowImageMetadataReader
from .timestamps import (
    parse_gps_date_stamp,
    parse_index_timestamp,
    parse_metadata_timestamp,
)

__all__ = [
    "MdlsContentIndex",
    "NullContentIndex",
    "HachoirContainerMetadataReader",
    "PillowImageMetadataReader",
    "parse_gps_date_stamp",
    "parse_index_timestamp",
    "parse_metadata_timestamp",
]
