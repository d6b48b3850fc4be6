# backend/archforge/compiler/render_mermaid.py

import re
from collections import defaultdict

from archforge.ir.graph import ArchitectureGraph


def _mermaid_id(node_id: str) -> str:
    return re.sub(r"[^A-Za-z0-9_]", "_", node_id)


def _text(value: str) -> str:
    return (value or "").replace('"', "'")


def render_mermaid(graph: ArchitectureGraph) -> str:
    lines = ["flowchart TD"]

    # -------------------------
    # Group nodes by category
    # -------------------------
    by_category = defaultdict(list)
    for node in graph.nodes:
        by_category[node.category.value].append(node)

    for category, nodes in by_category.items():
        lines.append(f'subgraph {category}_layer["{category.title()}"]')
        for node in nodes:
            label = _text(node.label)
            if node.product and node.product != node.label:
                label = f"{label}<br/>{_text(node.product)}"
            lines.append(f'  {_mermaid_id(node.id)}["{label}"]')
        lines.append("end")

    # -------------------------
    # Render edges
    # -------------------------
    for edge in graph.edges:
        label = f'|"{_text(edge.label)}"|' if edge.label else ""
        lines.append(
            f"{_mermaid_id(edge.source)} -->{label} {_mermaid_id(edge.target)}"
        )

    return "\n".join(lines)
