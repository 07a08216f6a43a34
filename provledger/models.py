"""Data models for provenance write requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Agent:
    """Who performed an action (a clinician, a system)."""

    type: str  # role or OID, e.g. "1.2.3.4"
    id: str
    name: str
    identity_provider: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "id": self.id,
            "name": self.name,
            "identity_provider": self.identity_provider,
        }


@dataclass(frozen=True)
class Location:
    """Where an action occurred. Decoded, not part of the PROV graph."""

    id: str
    name: str
    locality: str
    doc_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "locality": self.locality,
            "doc_id": self.doc_id,
        }


@dataclass(frozen=True)
class SegmentDigest:
    """One trailing (label, digest) pair of a write request."""

    label: str  # not used by the builder
    digest: str


@dataclass(frozen=True)
class WriteRequest:
    """Typed form of the positional write arguments."""

    content_hash: str
    agent: Agent
    location: Location
    action: str
    date: str
    segments: tuple[SegmentDigest, ...] = field(default_factory=tuple)

    @property
    def segment_hashes(self) -> list[str]:
        return [s.digest for s in self.segments]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "content_hash": self.content_hash,
            "agent": self.agent.to_dict(),
            "location": self.location.to_dict(),
            "action": self.action,
            "date": self.date,
            "segments": [{"label": s.label, "digest": s.digest} for s in self.segments],
        }
