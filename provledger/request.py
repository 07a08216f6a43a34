"""
Positional write-request decoding.

The wire shape is a flat list of alternating name/value strings:

    [hash, "agentInfo.atype", <type>, "agentInfo.id", <id>, ...,
     "action", <action>, "date", <date>, "digest1", <hash1>, ...]

Only values are read, by position. Names are never checked. This module is
the single place that knows the positions.
"""

from __future__ import annotations

import logging
from typing import Sequence

from .errors import ArgumentError
from .models import Agent, Location, SegmentDigest, WriteRequest

logger = logging.getLogger(__name__)

MIN_ARGS = 20

HASH_POS = 0
AGENT_POS = (2, 4, 6, 8)  # type, id, name, identity provider
LOCATION_POS = (10, 12, 14, 16)  # id, name, locality, doc id
ACTION_POS = 18
DATE_POS = 20
SEGMENTS_START = 21


def decode_segments(args: Sequence[str]) -> tuple[SegmentDigest, ...]:
    """Decode trailing (label, digest) pairs. A dangling last argument is dropped."""
    segments: list[SegmentDigest] = []
    i = SEGMENTS_START
    while i + 1 < len(args):
        segments.append(SegmentDigest(label=args[i], digest=args[i + 1]))
        i += 2
    if i < len(args):
        logger.debug("Ignoring unpaired trailing argument %r", args[i])
    return tuple(segments)


def decode_write_args(args: Sequence[str]) -> WriteRequest:
    """
    Decode a positional write request.

    Raises:
        ArgumentError: fewer than 20 arguments, or no date value at position 20.
    """
    if len(args) < MIN_ARGS:
        raise ArgumentError(
            f"Invalid number of parameters. Expected at least {MIN_ARGS}, received {len(args)}"
        )
    if len(args) <= DATE_POS:
        raise ArgumentError(f"Missing date value at position {DATE_POS}")

    values = [str(a) for a in args]
    agent = Agent(*(values[p] for p in AGENT_POS))
    location = Location(*(values[p] for p in LOCATION_POS))

    request = WriteRequest(
        content_hash=values[HASH_POS],
        agent=agent,
        location=location,
        action=values[ACTION_POS],
        date=values[DATE_POS],
        segments=decode_segments(values),
    )
    logger.debug(
        "Decoded write request for %s with %d segment(s)",
        request.content_hash,
        len(request.segments),
    )
    return request


def encode_write_args(request: WriteRequest) -> list[str]:
    """Inverse of decode_write_args, using the conventional argument names."""
    args = [
        request.content_hash,
        "agentInfo.atype", request.agent.type,
        "agentInfo.id", request.agent.id,
        "agentInfo.name", request.agent.name,
        "agentInfo.idp", request.agent.identity_provider,
        "location.id", request.location.id,
        "location.name", request.location.name,
        "location.locality", request.location.locality,
        "location.docid", request.location.doc_id,
        "action", request.action,
        "date", request.date,
    ]
    for segment in request.segments:
        args.extend([segment.label, segment.digest])
    return args
