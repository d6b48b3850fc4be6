"""
Architecture graph - the root aggregate of one editing session.

Nodes are architecture components (cloud services, stores, gateways),
edges are labelled data-flow relationships between them. The graph is the
only input the layout, rendering and IaC export collaborators ever see.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from archforge.utils.identifiers import (
    generate_edge_id,
    generate_node_id,
    utc_timestamp,
)


class Category(str, Enum):
    COMPUTE = "compute"
    STORAGE = "storage"
    DATABASE = "database"
    MESSAGING = "messaging"
    ANALYTICS = "analytics"
    FRONTEND = "frontend"
    GATEWAY = "gateway"
    OTHER = "other"

    @classmethod
    def normalize(cls, value: Optional[str]) -> "Category":
        """Map a model-supplied category onto the closed set (unknown -> other)."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.OTHER
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.OTHER


# camelCase (wire) <-> snake_case (attribute)
_CONFIG_FIELDS = {
    "tier": "tier",
    "skuName": "sku",
    "region": "region",
    "rationale": "rationale",
    "technicalDetails": "technical_details",
    "features": "features",
    "useCases": "use_cases",
    "bestPractices": "best_practices",
}

_CONFIG_ALIASES = {
    "sku": "sku",
    "technical_details": "technical_details",
    "use_cases": "use_cases",
    "best_practices": "best_practices",
}

_LIST_FIELDS = {"features", "use_cases", "best_practices"}


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    return [str(value)]


@dataclass
class NodeConfig:
    """Descriptive attributes of a component. Pass-through data only."""
    tier: Optional[str] = None
    sku: Optional[str] = None
    region: Optional[str] = None
    rationale: Optional[str] = None
    technical_details: Optional[str] = None
    features: List[str] = field(default_factory=list)
    use_cases: List[str] = field(default_factory=list)
    best_practices: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "NodeConfig":
        config = cls()
        if not isinstance(data, dict):
            return config

        for key, value in data.items():
            attr = _CONFIG_FIELDS.get(key) or _CONFIG_ALIASES.get(key)
            if attr is None:
                config.extra[key] = value
            elif attr in _LIST_FIELDS:
                setattr(config, attr, _as_str_list(value))
            else:
                setattr(config, attr, None if value is None else str(value))
        return config

    @classmethod
    def default_for(
        cls,
        label: str,
        product: str,
        category: "Category",
        reason: str = "",
    ) -> "NodeConfig":
        """Config bag for a component the model added without describing it."""
        name = product or label
        return cls(
            tier="Standard",
            region="East US",
            rationale=reason or f"{name} was added to the architecture on request.",
            technical_details=f"{name} provides {category.value} capabilities for {label}.",
            features=[],
            use_cases=[],
            best_practices=[],
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for wire_key, attr in _CONFIG_FIELDS.items():
            value = getattr(self, attr)
            if attr in _LIST_FIELDS:
                out[wire_key] = list(value)
            elif value is not None:
                out[wire_key] = value
        for key, value in self.extra.items():
            out.setdefault(key, value)
        return out

    def update(self, other: "NodeConfig", present_keys) -> None:
        """Overwrite only the fields named in ``present_keys`` (wire or attribute names)."""
        for key in present_keys:
            attr = _CONFIG_FIELDS.get(key) or _CONFIG_ALIASES.get(key)
            if attr is None:
                self.extra[key] = other.extra.get(key)
            else:
                setattr(self, attr, copy.deepcopy(getattr(other, attr)))


@dataclass
class Node:
    id: str
    label: str
    product: str
    category: Category = Category.OTHER
    config: Optional[NodeConfig] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Node":
        label = str(data.get("label") or data.get("name") or data.get("product") or "")
        product = str(data.get("product") or label)
        raw_category = data.get("category", data.get("type"))
        config = data.get("config")
        return cls(
            id=str(data.get("id") or generate_node_id(label or product)),
            label=label,
            product=product,
            category=Category.normalize(raw_category),
            config=NodeConfig.from_dict(config) if isinstance(config, dict) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "id": self.id,
            "label": self.label,
            "product": self.product,
            "category": self.category.value,
            # the original frontend reads the category from "type"
            "type": self.category.value,
        }
        if self.config is not None:
            out["config"] = self.config.to_dict()
        return out


@dataclass
class Edge:
    source: str
    target: str
    label: str = ""
    id: str = ""

    def __post_init__(self):
        if not self.id:
            self.id = generate_edge_id(self.source, self.target)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Edge":
        return cls(
            source=str(data.get("source") or ""),
            target=str(data.get("target") or ""),
            label=str(data.get("label") or ""),
            id=str(data.get("id") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "label": self.label,
        }


@dataclass
class ArchitectureGraph:
    id: str
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    requirements_text: Optional[str] = None
    description: str = ""
    components: List[str] = field(default_factory=list)
    created_at: str = field(default_factory=utc_timestamp)

    # sanitization warnings from the operation that produced this graph;
    # never persisted
    warnings: List[Any] = field(default_factory=list, compare=False)

    def node_ids(self) -> set:
        return {node.id for node in self.nodes}

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def product_names(self) -> List[str]:
        seen = []
        for node in self.nodes:
            if node.product and node.product not in seen:
                seen.append(node.product)
        return seen

    def copy(self) -> "ArchitectureGraph":
        clone = copy.deepcopy(self)
        clone.warnings = []
        return clone

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "requirements": self.requirements_text,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "description": self.description,
            "components": list(self.components),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArchitectureGraph":
        return cls(
            id=str(data["id"]),
            requirements_text=data.get("requirements", data.get("requirementsText")),
            nodes=[Node.from_dict(n) for n in data.get("nodes") or [] if isinstance(n, dict)],
            edges=[Edge.from_dict(e) for e in data.get("edges") or [] if isinstance(e, dict)],
            description=data.get("description") or "",
            components=list(data.get("components") or []),
            created_at=data.get("createdAt") or utc_timestamp(),
        )
