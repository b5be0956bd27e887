"""
Snapshot of a committing graph transaction.

The graph store supplies these values from its pre-commit hook. Node states
are immutable copies, so translation never reads back into the store.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

NodeId = Union[int, str]


@dataclass(frozen=True)
class NodeState:
    """Labels and properties of one node at a point in the transaction."""

    id: NodeId
    labels: Tuple[str, ...] = ()
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "labels", tuple(self.labels))
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @property
    def document_id(self) -> str:
        return str(self.id)

    def has_label(self, label: str) -> bool:
        return label in self.labels

    def has_property(self, key: str) -> bool:
        # A property set to null does not exist on the node
        return self.properties.get(key) is not None

    def get_property(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)


@dataclass(frozen=True)
class NodeChange:
    """A node whose labels or properties changed; previous is the pre-tx state."""

    previous: Optional[NodeState]
    current: Optional[NodeState]


@dataclass(frozen=True)
class RelationshipState:
    id: NodeId
    type: str
    start_node: NodeId
    end_node: NodeId
    properties: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TransactionData:
    """Everything the graph store reports for one committing transaction."""

    created_nodes: Tuple[NodeState, ...] = ()
    deleted_nodes: Tuple[NodeState, ...] = ()
    changed_nodes: Tuple[NodeChange, ...] = ()
    created_relationships: Tuple[RelationshipState, ...] = ()
    deleted_relationships: Tuple[RelationshipState, ...] = ()
    changed_relationships: Tuple[Any, ...] = ()

    def __post_init__(self):
        for name in (
            "created_nodes",
            "deleted_nodes",
            "changed_nodes",
            "created_relationships",
            "deleted_relationships",
            "changed_relationships",
        ):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    def is_empty(self) -> bool:
        return not (self.created_nodes or self.deleted_nodes or self.changed_nodes)


@dataclass(frozen=True)
class FilteredTransactionData:
    """Transaction view restricted to nodes the index table cares about."""

    created_nodes: Tuple[NodeState, ...] = ()
    deleted_nodes: Tuple[NodeState, ...] = ()
    changed_nodes: Tuple[NodeChange, ...] = ()

    def is_empty(self) -> bool:
        return not (self.created_nodes or self.deleted_nodes or self.changed_nodes)


def node(node_id: NodeId, labels: Iterable[str] = (), **properties: Any) -> NodeState:
    """Shorthand constructor: ``node(7, ["Person"], first_name="Ada")``."""
    return NodeState(id=node_id, labels=tuple(labels), properties=properties)


__all__ = [
    "NodeId",
    "NodeState",
    "NodeChange",
    "RelationshipState",
    "TransactionData",
    "FilteredTransactionData",
    "node",
]
