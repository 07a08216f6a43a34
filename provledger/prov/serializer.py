"""
PROV-XML rendering and parsing.

The element order and the per-element namespace attributes are fixed:
downstream validators expect every node and reference element to declare
its own xmlns:ns1, so declarations are written literally rather than being
hoisted to the document root.

    <prov:document xmlns:prov=... xmlns:xsi=... xmlns:ex=...>
      <prov:entity xmlns:ns1=... ns1:id="theobject">...</prov:entity>
      <prov:activity .../>
      <prov:agent .../>
      <prov:wasGeneratedBy>...</prov:wasGeneratedBy>
      ...
    </prov:document>
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from ..errors import DocumentFormatError
from ..models import Agent
from .graph import (
    RELATION_ROLES,
    WAS_GENERATED_BY,
    Activity,
    Entity,
    ProvenanceRecord,
    Relation,
)

PROV_NS = "http://www.w3.org/ns/prov#"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
EX_NS = "urn:tiani:prova"
HPD_NS = "IHEHPD"
IDP_NS = "idp"

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

_ROLE_BY_NAME = {roles: kind for kind, roles in RELATION_ROLES.items()}


# -----------------------------------------------------------------------------
# Rendering
# -----------------------------------------------------------------------------


def _child(
    parent: ET.Element, tag: str, text: str | None = None, attrs: dict[str, str] | None = None
) -> ET.Element:
    el = ET.SubElement(parent, tag, attrs or {})
    if text is not None:
        el.text = text
    return el


def _node(parent: ET.Element, tag: str, node_id: str) -> ET.Element:
    return ET.SubElement(parent, tag, {"xmlns:ns1": PROV_NS, "ns1:id": node_id})


def _ref(parent: ET.Element, tag: str, node_id: str) -> ET.Element:
    return ET.SubElement(parent, tag, {"xmlns:ns1": PROV_NS, "ns1:ref": node_id})


def _render_entity(root: ET.Element, entity: Entity) -> None:
    el = _node(root, "prov:entity", entity.id)
    _child(el, "prov:label", entity.label)
    _child(el, "prov:location")
    _child(el, "prov:type", entity.type)
    _child(el, "prov:value", entity.value)


def _render_activity(root: ET.Element, activity: Activity) -> None:
    el = _node(root, "prov:activity", activity.id)
    _child(el, "prov:type", activity.type)


def _render_agent(root: ET.Element, agent: Agent) -> None:
    el = _node(root, "prov:agent", agent.id)
    _child(el, "prov:type", agent.type)
    _child(el, "hpd:doctorid", agent.id, {"xmlns:hpd": HPD_NS})
    _child(el, "hpd:doctorname", agent.name, {"xmlns:hpd": HPD_NS})
    _child(el, "hpd:idp", agent.identity_provider, {"xmlns:hpd": IDP_NS})


def _render_relation(root: ET.Element, relation: Relation) -> None:
    el = ET.SubElement(root, f"prov:{relation.kind}")
    source_role, target_role = relation.roles
    _ref(el, f"prov:{source_role}", relation.source)
    _ref(el, f"prov:{target_role}", relation.target)
    if relation.kind == WAS_GENERATED_BY:
        _child(el, "prov:time", relation.time or "")


def to_element(record: ProvenanceRecord) -> ET.Element:
    """Build the prov:document element tree for a record."""
    root = ET.Element(
        "prov:document",
        {"xmlns:prov": PROV_NS, "xmlns:xsi": XSI_NS, "xmlns:ex": EX_NS},
    )
    for entity in record.entities:
        _render_entity(root, entity)
    _render_activity(root, record.activity)
    _render_agent(root, record.agent)
    for relation in record.relations:
        _render_relation(root, relation)
    return root


def serialize(record: ProvenanceRecord) -> str:
    """Render a record as a PROV-XML document string."""
    body = ET.tostring(to_element(record), encoding="unicode")
    # ET writes empty elements as <tag />; the wire form is <tag/>. A literal
    # " />" cannot occur elsewhere since ">" is escaped in text and attributes.
    return XML_DECLARATION + body.replace(" />", "/>")


def serialize_bytes(record: ProvenanceRecord) -> bytes:
    return serialize(record).encode("utf-8")


# -----------------------------------------------------------------------------
# Parsing
# -----------------------------------------------------------------------------


def _q(local: str, ns: str = PROV_NS) -> str:
    return f"{{{ns}}}{local}"


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _text(el: ET.Element, local: str, ns: str = PROV_NS) -> str:
    child = el.find(_q(local, ns))
    if child is None:
        raise DocumentFormatError(f"<{_local(el.tag)}> is missing <{local}>")
    return child.text or ""


def _attr(el: ET.Element, name: str) -> str:
    value = el.get(_q(name))
    if value is None:
        raise DocumentFormatError(f"<{_local(el.tag)}> is missing ns1:{name}")
    return value


def _parse_relation(el: ET.Element) -> Relation:
    kind = _local(el.tag)
    refs = [c for c in el if _local(c.tag) != "time"]
    if kind not in RELATION_ROLES or len(refs) != 2:
        raise DocumentFormatError(f"Unsupported relation element <{kind}>")
    roles = (_local(refs[0].tag), _local(refs[1].tag))
    if _ROLE_BY_NAME.get(roles) != kind:
        raise DocumentFormatError(f"<{kind}> has unexpected roles {roles}")
    time = _text(el, "time") if kind == WAS_GENERATED_BY else None
    return Relation(kind, _attr(refs[0], "ref"), _attr(refs[1], "ref"), time=time)


def parse_document(text: str | bytes) -> ProvenanceRecord:
    """
    Parse a PROV-XML document produced by serialize().

    Structural inverse of serialize: namespace declarations are not
    preserved, nodes and relations are.

    Raises:
        DocumentFormatError: not XML, or not the fixed PROV document shape.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise DocumentFormatError(f"Not a well-formed document: {exc}") from exc

    if root.tag != _q("document"):
        raise DocumentFormatError(f"Unexpected root element <{_local(root.tag)}>")

    entities: list[Entity] = []
    activity: Activity | None = None
    agent: Agent | None = None
    relations: list[Relation] = []

    for el in root:
        name = _local(el.tag)
        if el.tag == _q("entity"):
            entities.append(
                Entity(
                    id=_attr(el, "id"),
                    label=_text(el, "label"),
                    value=_text(el, "value"),
                    type=_text(el, "type"),
                )
            )
        elif el.tag == _q("activity"):
            activity = Activity(id=_attr(el, "id"), type=_text(el, "type"))
        elif el.tag == _q("agent"):
            agent = Agent(
                type=_text(el, "type"),
                id=_attr(el, "id"),
                name=_text(el, "doctorname", HPD_NS),
                identity_provider=_text(el, "idp", IDP_NS),
            )
        elif name in RELATION_ROLES:
            relations.append(_parse_relation(el))
        else:
            raise DocumentFormatError(f"Unexpected element <{name}>")

    if not entities or activity is None or agent is None:
        raise DocumentFormatError("Document needs at least one entity, an activity and an agent")

    try:
        return ProvenanceRecord(
            entities=tuple(entities),
            activity=activity,
            agent=agent,
            relations=tuple(relations),
        )
    except ValueError as exc:
        raise DocumentFormatError(str(exc)) from exc
