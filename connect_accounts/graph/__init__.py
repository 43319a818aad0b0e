"""
A small property-graph store on top of SQLAlchemy.

The account system only needs a handful of graph primitives: match nodes by
label and property equality, match ``(start)-[TYPE]->(end)`` patterns,
create nodes and relationships, set a property on matched nodes, and delete
nodes together with all their relationships. Each primitive works inside a
session obtained from :meth:`.GraphStore.transaction`, so several of them can
be combined into one atomic operation.

Matches are always returned as lists, so callers can tell zero, one and many
results apart.
"""

from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import aliased
from sqlalchemy.orm.session import Session

from .models import DBNode, DBNodeProperty, DBRelationship
from .util import GraphStore, encode_value, decode_value

Properties = Dict[str, Any]


class Node(NamedTuple):
    """A node loaded from the store."""

    node_id: int
    label: str
    properties: Properties


def _has_properties(node: Any, properties: Optional[Properties]) -> List[Any]:
    return [
        node.node_id.in_(
            select(DBNodeProperty.node_id)
            .where(DBNodeProperty.key == key)
            .where(DBNodeProperty.value == encode_value(value))
        )
        for key, value in (properties or {}).items()
    ]


def _load(session: Session, node_ids: List[int]) -> Dict[int, Node]:
    """Load labels and properties for ``node_ids``."""
    if not node_ids:
        return {}
    labels = dict(session.execute(
        select(DBNode.node_id, DBNode.label)
        .where(DBNode.node_id.in_(node_ids))
    ).all())
    properties: Dict[int, Properties] = {node_id: {} for node_id in labels}
    rows = session.execute(
        select(DBNodeProperty.node_id, DBNodeProperty.key,
               DBNodeProperty.value)
        .where(DBNodeProperty.node_id.in_(node_ids))
    ).all()
    for node_id, key, value in rows:
        properties[node_id][key] = decode_value(value)
    return {node_id: Node(node_id, label, properties[node_id])
            for node_id, label in labels.items()}


def match_nodes(session: Session, label: str, for_update: bool = False,
                **properties: Any) -> List[Node]:
    """
    Find all nodes with ``label`` whose properties equal ``properties``.

    Parameters
    ----------
    session : :class:`.Session`
    label : str
    for_update : bool
        Lock the matched rows until the transaction ends, where the database
        supports ``SELECT ... FOR UPDATE``.
    properties : kwargs
        Property values the node must have.

    Returns
    -------
    list
        Items are :class:`Node`, ordered by node id.

    """
    stmt = select(DBNode.node_id) \
        .where(DBNode.label == label, *_has_properties(DBNode, properties)) \
        .order_by(DBNode.node_id)
    if for_update:
        stmt = stmt.with_for_update()
    node_ids = list(session.scalars(stmt))
    nodes = _load(session, node_ids)
    return [nodes[node_id] for node_id in node_ids if node_id in nodes]


def match_related(session: Session, start_label: str, rel_type: str,
                  end_label: str, start_properties: Optional[Properties] = None,
                  end_properties: Optional[Properties] = None,
                  for_update: bool = False) -> List[Tuple[Node, Node]]:
    """Find all ``(start)-[rel_type]->(end)`` pairs matching the pattern."""
    start = aliased(DBNode)
    end = aliased(DBNode)
    stmt = (
        select(start.node_id, end.node_id)
        .join(DBRelationship, DBRelationship.start_id == start.node_id)
        .join(end, DBRelationship.end_id == end.node_id)
        .where(start.label == start_label,
               DBRelationship.type == rel_type,
               end.label == end_label,
               *_has_properties(start, start_properties),
               *_has_properties(end, end_properties))
        .order_by(start.node_id, end.node_id)
    )
    if for_update:
        stmt = stmt.with_for_update()
    pairs = session.execute(stmt).all()
    nodes = _load(session, list({n for pair in pairs for n in pair}))
    return [(nodes[s], nodes[e]) for s, e in pairs
            if s in nodes and e in nodes]


def create_node(session: Session, label: str,
                properties: Optional[Properties] = None) -> Node:
    """Create a node and its properties."""
    properties = dict(properties or {})
    db_node = DBNode(label=label)
    session.add(db_node)
    session.flush()
    for key, value in properties.items():
        session.add(DBNodeProperty(node_id=db_node.node_id, key=key,
                                   value=encode_value(value)))
    session.flush()
    return Node(db_node.node_id, label, properties)


def create_relationship(session: Session, rel_type: str, start: Node,
                        end: Node) -> None:
    """Create a ``(start)-[rel_type]->(end)`` relationship."""
    session.add(DBRelationship(type=rel_type, start_id=start.node_id,
                               end_id=end.node_id))
    session.flush()


def set_property(session: Session, nodes: Iterable[Node], key: str,
                 value: Any) -> int:
    """Set ``key`` to ``value`` on every node in ``nodes``."""
    count = 0
    for node in nodes:
        session.merge(DBNodeProperty(node_id=node.node_id, key=key,
                                     value=encode_value(value)))
        count += 1
    session.flush()
    return count


def detach_delete(session: Session, nodes: Iterable[Node]) -> int:
    """
    Delete nodes along with their properties and relationships.

    Returns
    -------
    int
        Number of nodes actually deleted. This may be fewer than were passed
        if a concurrent transaction removed some of them first.

    """
    node_ids = list({node.node_id for node in nodes})
    if not node_ids:
        return 0
    session.execute(
        delete(DBRelationship)
        .where(or_(DBRelationship.start_id.in_(node_ids),
                   DBRelationship.end_id.in_(node_ids)))
        .execution_options(synchronize_session=False)
    )
    session.execute(
        delete(DBNodeProperty)
        .where(DBNodeProperty.node_id.in_(node_ids))
        .execution_options(synchronize_session=False)
    )
    result = session.execute(
        delete(DBNode)
        .where(DBNode.node_id.in_(node_ids))
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount)
