from typing import Any, Dict, Optional

from archforge.ir.graph import ArchitectureGraph

EXPORT_FORMATS = ("terraform", "bicep", "arm")


def serialize_graph(graph: ArchitectureGraph) -> Dict[str, Any]:
    """Wire format of a graph, including the warnings of the step that produced it."""
    payload = graph.to_dict()
    payload["warnings"] = [w.to_dict() for w in graph.warnings]
    return payload


def to_export_payload(
    graph: ArchitectureGraph,
    fmt: str,
    configurations: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Input contract of the IaC export collaborator.

    Only the sanitized graph is exposed: nodes with product, category and
    config, edges with labels. The collaborator picks the text format.
    """
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")
    if not graph.nodes:
        raise ValueError("Please generate an architecture first.")

    return {
        "format": fmt,
        "architectureId": graph.id,
        "nodes": [
            {
                "id": n.id,
                "label": n.label,
                "product": n.product,
                "category": n.category.value,
                "config": n.config.to_dict() if n.config else {},
            }
            for n in graph.nodes
        ],
        "edges": [
            {"source": e.source, "target": e.target, "label": e.label}
            for e in graph.edges
        ],
        "configurations": dict(configurations or {}),
    }
