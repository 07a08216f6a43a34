"""
PROV graph model and builders.

A ProvenanceRecord is a fixed-shape graph: one primary entity, an optional
segment entity, one activity, one agent and three (primary) or four (segment)
relations. Node ids are constants scoped to a single document; only one node
of each kind exists per record, and an agent id may not reuse a fixed id.

Builders are pure: the timestamp and agent id are validated before anything
is built, and the result is a frozen value.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterator

from ..errors import ArgumentError, TimestampFormatError
from ..models import Agent

# Fixed node ids
PRIMARY_ENTITY_ID = "theobject"
SEGMENT_ENTITY_ID = "thesegment"
ACTIVITY_ID = "theobjectcreation"
RESERVED_IDS = frozenset({PRIMARY_ENTITY_ID, SEGMENT_ENTITY_ID, ACTIVITY_ID})

PRIMARY_LABEL = "The object document"
SEGMENT_LABEL = "The CDA Segment"
ENTITY_TYPE = "XML"

# Relation kinds
WAS_GENERATED_BY = "wasGeneratedBy"
WAS_ASSOCIATED_WITH = "wasAssociatedWith"
WAS_ATTRIBUTED_TO = "wasAttributedTo"
USED = "used"
WAS_DERIVED_FROM = "wasDerivedFrom"

# kind -> (source role, target role), as named in PROV-XML
RELATION_ROLES: dict[str, tuple[str, str]] = {
    WAS_GENERATED_BY: ("entity", "activity"),
    WAS_ASSOCIATED_WITH: ("activity", "agent"),
    WAS_ATTRIBUTED_TO: ("entity", "agent"),
    USED: ("activity", "entity"),
    WAS_DERIVED_FROM: ("generatedEntity", "usedEntity"),
}

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
_TIMESTAMP_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}\.[0-9]{3}Z")


@dataclass(frozen=True)
class Entity:
    id: str
    label: str
    value: str  # content hash
    type: str = ENTITY_TYPE


@dataclass(frozen=True)
class Activity:
    id: str
    type: str  # the action, e.g. "ex:CREATE"


@dataclass(frozen=True)
class Relation:
    kind: str
    source: str
    target: str
    time: str | None = None  # wasGeneratedBy only

    @property
    def roles(self) -> tuple[str, str]:
        return RELATION_ROLES[self.kind]


@dataclass(frozen=True)
class ProvenanceRecord:
    """
    Immutable PROV graph for one document or segment.

    INVARIANT: every relation endpoint is a node id of this record.
    """

    entities: tuple[Entity, ...]
    activity: Activity
    agent: Agent
    relations: tuple[Relation, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        ids = [e.id for e in self.entities] + [self.activity.id, self.agent.id]
        duplicates = {i for i in ids if ids.count(i) > 1}
        if duplicates:
            raise ValueError(f"Duplicate node ids: {', '.join(sorted(duplicates))}")
        missing = self.dangling_references()
        if missing:
            raise ValueError(f"Relations reference unknown nodes: {', '.join(sorted(missing))}")

    def node_ids(self) -> set[str]:
        ids = {e.id for e in self.entities}
        ids.add(self.activity.id)
        ids.add(self.agent.id)
        return ids

    def dangling_references(self) -> set[str]:
        ids = self.node_ids()
        missing: set[str] = set()
        for rel in self.relations:
            for endpoint in (rel.source, rel.target):
                if endpoint not in ids:
                    missing.add(endpoint)
        return missing

    def entity(self, entity_id: str) -> Entity | None:
        for e in self.entities:
            if e.id == entity_id:
                return e
        return None

    def relations_of(self, kind: str) -> list[Relation]:
        return [r for r in self.relations if r.kind == kind]

    def iter_edges(self) -> Iterator[tuple[str, str, str]]:
        """Yield (kind, source, target) triples in document order."""
        for rel in self.relations:
            yield rel.kind, rel.source, rel.target

    @property
    def is_segment(self) -> bool:
        return self.entity(SEGMENT_ENTITY_ID) is not None

    @property
    def content_hash(self) -> str:
        primary = self.entity(PRIMARY_ENTITY_ID)
        return primary.value if primary else ""

    @property
    def generated_at(self) -> str | None:
        for rel in self.relations_of(WAS_GENERATED_BY):
            return rel.time
        return None


def parse_generation_time(value: str) -> datetime:
    """
    Parse a YYYY-MM-DDTHH:MM:SS.sssZ timestamp (exactly three fractional digits).

    Raises:
        TimestampFormatError: wrong shape or not a real calendar instant.
    """
    if not isinstance(value, str) or not _TIMESTAMP_RE.fullmatch(value):
        raise TimestampFormatError(str(value))
    try:
        parsed = datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError as exc:
        raise TimestampFormatError(value) from exc
    return parsed.replace(tzinfo=timezone.utc)


def _entity(entity_id: str, content_hash: str, label: str) -> Entity:
    return Entity(id=entity_id, label=label, value=content_hash)


def _check_inputs(agent: Agent, timestamp: str) -> None:
    parse_generation_time(timestamp)
    if agent.id in RESERVED_IDS:
        raise ArgumentError(f"Agent id {agent.id!r} collides with a fixed node id")


def _activity(action: str) -> Activity:
    return Activity(id=ACTIVITY_ID, type=action)


def _generation_and_association(agent: Agent, timestamp: str) -> tuple[Relation, ...]:
    return (
        Relation(WAS_GENERATED_BY, PRIMARY_ENTITY_ID, ACTIVITY_ID, time=timestamp),
        Relation(WAS_ASSOCIATED_WITH, ACTIVITY_ID, agent.id),
    )


def build_primary(content_hash: str, agent: Agent, action: str, timestamp: str) -> ProvenanceRecord:
    """Build the graph of a whole document: entity generated by the activity, attributed to the agent."""
    _check_inputs(agent, timestamp)
    return ProvenanceRecord(
        entities=(_entity(PRIMARY_ENTITY_ID, content_hash, PRIMARY_LABEL),),
        activity=_activity(action),
        agent=agent,
        relations=_generation_and_association(agent, timestamp)
        + (Relation(WAS_ATTRIBUTED_TO, PRIMARY_ENTITY_ID, agent.id),),
    )


def build_segment(
    segment_hash: str,
    content_hash: str,
    agent: Agent,
    action: str,
    timestamp: str,
) -> ProvenanceRecord:
    """Build the graph of a segment derived from the primary document."""
    _check_inputs(agent, timestamp)
    return ProvenanceRecord(
        entities=(
            _entity(PRIMARY_ENTITY_ID, content_hash, PRIMARY_LABEL),
            _entity(SEGMENT_ENTITY_ID, segment_hash, SEGMENT_LABEL),
        ),
        activity=_activity(action),
        agent=agent,
        relations=_generation_and_association(agent, timestamp)
        + (
            Relation(USED, ACTIVITY_ID, PRIMARY_ENTITY_ID),
            Relation(WAS_DERIVED_FROM, SEGMENT_ENTITY_ID, PRIMARY_ENTITY_ID),
        ),
    )
