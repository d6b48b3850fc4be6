"""
Graph editing: (current graph, change request) -> new ArchitectureGraph.

The model returns a diff (modifications + newEdges). The diff is applied
step by step to a private copy of the graph; the caller's graph is only
replaced once the whole edit succeeded.

Application order:
1. modifications, in the order given (add / modify / remove)
2. newEdges, appended unless the same connection exists
3. the shared sanitizer over the merged graph, which drops edges whose
   endpoints are missing from the post-modification node set
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from archforge import config
from archforge.inference.base import LLMClient
from archforge.inference.prompt import edit_system_prompt, edit_user_message
from archforge.ir.errors import EditError, JSONExtractionError, LLMError
from archforge.ir.graph import ArchitectureGraph, Category, Edge, Node, NodeConfig
from archforge.store.session_store import SessionStore
from archforge.utils.identifiers import epoch_millis, generate_node_id
from archforge.utils.json_extract import extract_json
from archforge.validation.sanitizer import (
    SanitizationWarning,
    WarningKind,
    sanitize_graph,
)

logger = logging.getLogger(__name__)

ACTIONS = {"add", "modify", "remove"}


@dataclass
class Modification:
    action: str
    node_id: Optional[str]
    fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "Modification":
        if not isinstance(data, dict):
            raise EditError(f"Invalid modification entry: {data!r}")

        action = str(data.get("action") or "").strip().lower()
        if action not in ACTIONS:
            raise EditError(f"Unknown modification action: {data.get('action')!r}")

        node_id = data.get("nodeId") or data.get("node_id") or data.get("id")
        fields = {
            key: value
            for key, value in data.items()
            if key not in {"action", "nodeId", "node_id", "id"}
        }
        if "type" in fields and "category" not in fields:
            fields["category"] = fields.pop("type")
        fields.pop("type", None)

        return cls(action=action, node_id=str(node_id) if node_id else None, fields=fields)


@dataclass
class EditDiff:
    description: str
    modifications: List[Modification]
    new_edges: List[Dict[str, Any]]

    @classmethod
    def from_dict(cls, data: dict) -> "EditDiff":
        raw_mods = data.get("modifications") or []
        raw_edges = data.get("newEdges", data.get("new_edges")) or []

        if not isinstance(raw_mods, list):
            raise EditError("Model response 'modifications' is not a list")
        if not isinstance(raw_edges, list):
            raise EditError("Model response 'newEdges' is not a list")

        return cls(
            description=str(data.get("description") or "Architecture updated"),
            modifications=[Modification.from_dict(m) for m in raw_mods],
            new_edges=[e for e in raw_edges if isinstance(e, dict)],
        )


class GraphEditor:
    def __init__(
        self,
        client: Optional[LLMClient],
        store: Optional[SessionStore] = None,
        temperature: Optional[float] = None,
    ):
        self.client = client
        self.store = store
        self.temperature = config.EDIT_TEMPERATURE if temperature is None else temperature

    # ------------------------------------------------------------
    # Public boundary (all-or-nothing)
    # ------------------------------------------------------------

    def edit(self, current: ArchitectureGraph, instruction: str) -> ArchitectureGraph:
        if current is None:
            raise TypeError("edit requires a current architecture graph")
        if not instruction or not instruction.strip():
            raise EditError("Edit request is required")
        if self.client is None:
            raise EditError("Language model API key not configured")

        raw = self._call_model(current, instruction)

        try:
            data = extract_json(raw)
        except JSONExtractionError as e:
            raise EditError(f"Could not understand the edit response: {e}") from e

        diff = EditDiff.from_dict(data)
        updated = self.apply(current, diff, instruction)

        if self.store is not None:
            self.store.set(updated.id, updated)

        logger.info(
            "Architecture %s edited: %d nodes, %d edges (%d warnings)",
            updated.id,
            len(updated.nodes),
            len(updated.edges),
            len(updated.warnings),
        )
        return updated

    def _call_model(self, current: ArchitectureGraph, instruction: str) -> str:
        messages = [
            {"role": "system", "content": edit_system_prompt(str(epoch_millis()))},
            {"role": "user", "content": edit_user_message(current, instruction)},
        ]
        try:
            return self.client.generate(
                messages,
                temperature=self.temperature,
                json_mode=True,
            )
        except LLMError as e:
            raise EditError(f"Failed to edit architecture: {e.message}") from e

    # ------------------------------------------------------------
    # Diff application (works on a copy)
    # ------------------------------------------------------------

    def apply(
        self,
        current: ArchitectureGraph,
        diff: EditDiff,
        instruction: str = "",
    ) -> ArchitectureGraph:
        graph = current.copy()
        warnings: List[SanitizationWarning] = []
        declared: Dict[str, str] = {}

        for mod in diff.modifications:
            if mod.action == "add":
                self._add(graph, mod, instruction, declared)
            elif mod.action == "modify":
                self._modify(graph, mod, declared, warnings)
            else:
                self._remove(graph, mod, warnings)

        self._connect(graph, diff.new_edges)

        # same rules as synthesis, over the merged graph
        result = sanitize_graph(
            graph.nodes,
            graph.edges,
            check_connectivity=True,
            declared_categories=declared,
        )

        graph.nodes = result.nodes
        graph.edges = result.edges
        graph.description = diff.description
        graph.components = graph.product_names()
        graph.warnings = warnings + result.warnings
        return graph

    def _add(
        self,
        graph: ArchitectureGraph,
        mod: Modification,
        instruction: str,
        declared: Dict[str, str],
    ) -> None:
        label = str(mod.fields.get("label") or mod.fields.get("product") or "New Component")
        product = str(mod.fields.get("product") or label)
        raw_category = mod.fields.get("category")
        category = Category.normalize(raw_category)

        node_id = mod.node_id
        if not node_id or graph.get_node(node_id) is not None:
            node_id = generate_node_id(label)

        raw_config = mod.fields.get("config")
        if isinstance(raw_config, dict) and raw_config:
            node_config = NodeConfig.from_dict(raw_config)
        else:
            reason = f"Added on request: {instruction}" if instruction else ""
            node_config = NodeConfig.default_for(label, product, category, reason)

        graph.nodes.append(
            Node(
                id=node_id,
                label=label,
                product=product,
                category=category,
                config=node_config,
            )
        )
        if isinstance(raw_category, str):
            declared[node_id] = raw_category

    def _modify(
        self,
        graph: ArchitectureGraph,
        mod: Modification,
        declared: Dict[str, str],
        warnings: List[SanitizationWarning],
    ) -> None:
        node = graph.get_node(mod.node_id) if mod.node_id else None
        if node is None:
            self._skip(warnings, f"Cannot modify unknown node '{mod.node_id}'", mod.node_id)
            return

        if mod.fields.get("label"):
            node.label = str(mod.fields["label"])
        if mod.fields.get("product"):
            node.product = str(mod.fields["product"])
        if mod.fields.get("category"):
            raw_category = mod.fields["category"]
            node.category = Category.normalize(raw_category)
            if isinstance(raw_category, str):
                declared[node.id] = raw_category

        raw_config = mod.fields.get("config")
        if isinstance(raw_config, dict) and raw_config:
            if node.config is None:
                node.config = NodeConfig()
            node.config.update(NodeConfig.from_dict(raw_config), raw_config.keys())

    def _remove(
        self,
        graph: ArchitectureGraph,
        mod: Modification,
        warnings: List[SanitizationWarning],
    ) -> None:
        if not mod.node_id or graph.get_node(mod.node_id) is None:
            self._skip(warnings, f"Cannot remove unknown node '{mod.node_id}'", mod.node_id)
            return

        graph.nodes = [n for n in graph.nodes if n.id != mod.node_id]
        # cascade: no edge may outlive its endpoint
        graph.edges = [
            e for e in graph.edges
            if e.source != mod.node_id and e.target != mod.node_id
        ]

    def _connect(self, graph: ArchitectureGraph, new_edges: List[Dict[str, Any]]) -> None:
        # endpoint checks happen in the sanitizer pass against the final node set
        existing = {(e.source, e.target) for e in graph.edges}

        for item in new_edges:
            edge = Edge.from_dict(item)
            if (edge.source, edge.target) in existing:
                logger.debug("Edge %s -> %s already present", edge.source, edge.target)
                continue
            existing.add((edge.source, edge.target))
            graph.edges.append(edge)

    @staticmethod
    def _skip(warnings: List[SanitizationWarning], detail: str, node_id: Optional[str]) -> None:
        logger.warning("%s: %s", WarningKind.SKIPPED_MODIFICATION.value, detail)
        warnings.append(
            SanitizationWarning(WarningKind.SKIPPED_MODIFICATION, detail, node_id=node_id)
        )


def edit(
    current: ArchitectureGraph,
    instruction: str,
    client: Optional[LLMClient],
    store: Optional[SessionStore] = None,
) -> ArchitectureGraph:
    return GraphEditor(client, store=store).edit(current, instruction)
