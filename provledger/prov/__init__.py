"""
W3C PROV document model for content hashes.

Components:
- graph: immutable ProvenanceRecord plus the primary/segment builders
- serializer: PROV-XML rendering (fixed element order) and parsing
"""

from .graph import (
    ACTIVITY_ID,
    PRIMARY_ENTITY_ID,
    SEGMENT_ENTITY_ID,
    Activity,
    Entity,
    ProvenanceRecord,
    Relation,
    build_primary,
    build_segment,
    parse_generation_time,
)
from .serializer import parse_document, serialize, serialize_bytes

__all__ = [
    "ACTIVITY_ID",
    "PRIMARY_ENTITY_ID",
    "SEGMENT_ENTITY_ID",
    "Activity",
    "Entity",
    "ProvenanceRecord",
    "Relation",
    "build_primary",
    "build_segment",
    "parse_generation_time",
    "parse_document",
    "serialize",
    "serialize_bytes",
]
