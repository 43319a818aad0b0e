"""
Tables backing the property graph.

A node is a row in ``graph_nodes`` with a label. Its properties live in
``graph_node_properties``, one row per key, with the value JSON-encoded so
that strings, integers and booleans can all be matched by equality.
Relationships are typed, directed edges between two nodes.

No uniqueness constraint is placed on any property: the store behaves like a
graph database without enforced constraints.
"""

from sqlalchemy import Column, ForeignKey, Index, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class DBNode(Base):  # type: ignore
    """A labelled node."""

    __tablename__ = 'graph_nodes'

    node_id = Column(Integer, primary_key=True, autoincrement=True)
    label = Column(String(64), nullable=False, index=True)


class DBNodeProperty(Base):  # type: ignore
    """A single property of a :class:`DBNode`."""

    __tablename__ = 'graph_node_properties'
    __table_args__ = (
        Index('ix_graph_node_properties_key_value', 'key', 'value'),
    )

    node_id = Column(ForeignKey('graph_nodes.node_id', ondelete='CASCADE'),
                     primary_key=True)
    key = Column(String(64), primary_key=True)
    value = Column(String(512), nullable=False)


class DBRelationship(Base):  # type: ignore
    """A typed edge from ``start_id`` to ``end_id``."""

    __tablename__ = 'graph_relationships'

    relationship_id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(64), nullable=False, index=True)
    start_id = Column(ForeignKey('graph_nodes.node_id', ondelete='CASCADE'),
                      nullable=False, index=True)
    end_id = Column(ForeignKey('graph_nodes.node_id', ondelete='CASCADE'),
                    nullable=False, index=True)
