"""
Graph Sanitizer - Repairs synthesized or edited architecture graphs.

Shared by the synthesizer and the editor so that every mutation path
enforces the same structural rules:
- No duplicate node IDs
- No human-actor nodes (users, developers, admins, ...)
- No orphaned edges left behind by a removed node
- No edges referencing missing nodes

Quality signals that do not block the graph:
- Edges without a label
- Nodes with no connections

Data-quality problems are repaired (the offending element is dropped) and
reported as warnings. Only programming-contract violations raise.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

import networkx as nx

from archforge.ir.graph import Edge, Node

logger = logging.getLogger(__name__)


# Categories that can only describe a person, never a service
DISALLOWED_CATEGORIES = {"user", "users", "actor", "person", "human", "customer"}

# Case-insensitive substrings of category / label / product
ACTOR_LEXICON = (
    "user",
    "scientist",
    "developer",
    "admin",
    "human",
)


class WarningKind(str, Enum):
    DROPPED_EDGE = "dropped-edge"          # endpoint missing from the node set
    DROPPED_NODE = "dropped-node"          # disallowed actor or duplicate id
    ORPHANED_EDGE = "orphaned-edge"        # endpoint removed by sanitization
    UNLABELED_EDGE = "unlabeled-edge"
    ISOLATED_NODE = "isolated-node"
    SKIPPED_MODIFICATION = "skipped-modification"


@dataclass
class SanitizationWarning:
    """A single repaired or reported data-quality problem"""
    kind: WarningKind
    detail: str
    node_id: Optional[str] = None
    edge_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "detail": self.detail,
            "nodeId": self.node_id,
            "edgeId": self.edge_id,
        }


@dataclass
class SanitizeResult:
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    warnings: List[SanitizationWarning] = field(default_factory=list)

    def of_kind(self, kind: WarningKind) -> List[SanitizationWarning]:
        return [w for w in self.warnings if w.kind == kind]

    def get_summary(self) -> str:
        counts: Dict[str, int] = {}
        for w in self.warnings:
            counts[w.kind.value] = counts.get(w.kind.value, 0) + 1
        detail = ", ".join(f"{k}: {v}" for k, v in sorted(counts.items())) or "clean"
        return f"Nodes: {len(self.nodes)}, Edges: {len(self.edges)} | {detail}"


def is_disallowed_actor(
    category: Optional[str],
    label: Optional[str],
    product: Optional[str],
) -> bool:
    """True when a component represents a human rather than a technical service."""
    if isinstance(category, str) and category.strip().lower() in DISALLOWED_CATEGORIES:
        return True

    for value in (category, label, product):
        if not isinstance(value, str):
            continue
        lowered = value.lower()
        if any(token in lowered for token in ACTOR_LEXICON):
            return True
    return False


def _warn(
    warnings: List[SanitizationWarning],
    kind: WarningKind,
    detail: str,
    node_id: Optional[str] = None,
    edge_id: Optional[str] = None,
) -> None:
    logger.warning("%s: %s", kind.value, detail)
    warnings.append(SanitizationWarning(kind, detail, node_id=node_id, edge_id=edge_id))


def sanitize_payload(
    raw_nodes: Any,
    raw_edges: Any,
    check_connectivity: bool = True,
) -> SanitizeResult:
    """
    Build and sanitize a graph from an untrusted model payload.

    The declared category is checked before it is normalized onto the
    closed category set, so ``{"type": "user"}`` is still rejected.
    """
    warnings: List[SanitizationWarning] = []
    nodes: List[Node] = []
    declared: Dict[str, str] = {}

    for item in raw_nodes or []:
        if not isinstance(item, dict):
            _warn(warnings, WarningKind.DROPPED_NODE, f"Malformed node entry ignored: {item!r}")
            continue
        node = Node.from_dict(item)
        raw_category = item.get("category", item.get("type"))
        if isinstance(raw_category, str):
            declared.setdefault(node.id, raw_category)
        nodes.append(node)

    edges: List[Edge] = []
    for item in raw_edges or []:
        if not isinstance(item, dict):
            _warn(warnings, WarningKind.DROPPED_EDGE, f"Malformed edge entry ignored: {item!r}")
            continue
        edges.append(Edge.from_dict(item))

    result = sanitize_graph(
        nodes,
        edges,
        check_connectivity=check_connectivity,
        declared_categories=declared,
    )
    result.warnings[:0] = warnings
    return result


def sanitize_graph(
    nodes: List[Node],
    edges: List[Edge],
    check_connectivity: bool = True,
    declared_categories: Optional[Dict[str, str]] = None,
) -> SanitizeResult:
    """
    Sanitize typed nodes and edges. Returns new lists; inputs are not mutated.

    ``declared_categories`` maps node ids to the category string the model
    originally used, for categories that fall outside the closed set.
    """
    if nodes is None or edges is None:
        raise TypeError("sanitize_graph requires node and edge lists, got None")

    declared_categories = declared_categories or {}
    warnings: List[SanitizationWarning] = []

    kept_nodes, removed_ids = _filter_nodes(nodes, declared_categories, warnings)
    kept_ids = {node.id for node in kept_nodes}
    kept_edges = _filter_edges(edges, kept_ids, removed_ids, warnings)

    if check_connectivity:
        for node_id in _isolated_nodes(kept_nodes, kept_edges):
            _warn(
                warnings,
                WarningKind.ISOLATED_NODE,
                f"Node '{node_id}' has no connections",
                node_id=node_id,
            )

    return SanitizeResult(nodes=kept_nodes, edges=kept_edges, warnings=warnings)


def _filter_nodes(
    nodes: Iterable[Node],
    declared_categories: Dict[str, str],
    warnings: List[SanitizationWarning],
) -> Tuple[List[Node], Set[str]]:
    kept: List[Node] = []
    seen: Set[str] = set()
    removed: Set[str] = set()

    for node in nodes:
        if node is None:
            raise TypeError("node list contains None")

        if node.id in seen:
            _warn(
                warnings,
                WarningKind.DROPPED_NODE,
                f"Duplicate node id '{node.id}' ({node.label}) dropped",
                node_id=node.id,
            )
            continue

        category = declared_categories.get(node.id, node.category.value)
        if is_disallowed_actor(category, node.label, node.product):
            _warn(
                warnings,
                WarningKind.DROPPED_NODE,
                f"Human actor node '{node.label}' ({node.id}) is not allowed",
                node_id=node.id,
            )
            removed.add(node.id)
            continue

        seen.add(node.id)
        kept.append(node)

    # a dropped actor must not keep its id alive through a duplicate
    removed -= seen
    return kept, removed


def _filter_edges(
    edges: Iterable[Edge],
    node_ids: Set[str],
    removed_ids: Set[str],
    warnings: List[SanitizationWarning],
) -> List[Edge]:
    kept: List[Edge] = []
    edge_ids: Set[str] = set()

    for edge in edges:
        if edge is None:
            raise TypeError("edge list contains None")

        endpoint_text = f"{edge.source} -> {edge.target}"

        if edge.source in removed_ids or edge.target in removed_ids:
            _warn(
                warnings,
                WarningKind.ORPHANED_EDGE,
                f"Edge {endpoint_text} removed with its endpoint",
                edge_id=edge.id,
            )
            continue

        missing = [end for end in (edge.source, edge.target) if end not in node_ids]
        if missing:
            _warn(
                warnings,
                WarningKind.DROPPED_EDGE,
                f"Edge {endpoint_text} references missing node(s): {', '.join(missing)}",
                edge_id=edge.id,
            )
            continue

        if edge.id in edge_ids:
            edge = Edge(source=edge.source, target=edge.target, label=edge.label)
        edge_ids.add(edge.id)

        if not edge.label or not edge.label.strip():
            _warn(
                warnings,
                WarningKind.UNLABELED_EDGE,
                f"Edge {endpoint_text} has no label",
                edge_id=edge.id,
            )

        kept.append(edge)

    return kept


def _isolated_nodes(nodes: List[Node], edges: List[Edge]) -> List[str]:
    graph = nx.DiGraph()
    graph.add_nodes_from(node.id for node in nodes)
    graph.add_edges_from((edge.source, edge.target) for edge in edges)
    isolated = set(nx.isolates(graph))
    # keep node order stable for reporting
    return [node.id for node in nodes if node.id in isolated]
