"""
Layered top-to-bottom layout.

Input:  [{nodeId, width, height}] nodes, [{source, target}] edges
Output: [{nodeId, x, y}] top-left positions

Ranks are the topological generations of the graph's condensation, so a
cycle collapses into a single rank instead of failing the layout.
"""

from typing import Dict, List

import networkx as nx

from archforge.ir.graph import ArchitectureGraph

NODE_WIDTH = 180
NODE_HEIGHT = 180
RANK_SEP = 200
NODE_SEP = 150


def _ranks(node_ids: List[str], edges: List[Dict]) -> Dict[str, int]:
    graph = nx.DiGraph()
    graph.add_nodes_from(node_ids)
    known = set(node_ids)
    for edge in edges:
        source, target = edge.get("source"), edge.get("target")
        if source in known and target in known and source != target:
            graph.add_edge(source, target)

    condensed = nx.condensation(graph)
    members = condensed.graph["mapping"]  # node id -> component index

    component_rank: Dict[int, int] = {}
    for rank, generation in enumerate(nx.topological_generations(condensed)):
        for component in generation:
            component_rank[component] = rank

    return {node_id: component_rank[members[node_id]] for node_id in node_ids}


def compute_layout(
    nodes: List[Dict],
    edges: List[Dict],
    rank_sep: int = RANK_SEP,
    node_sep: int = NODE_SEP,
) -> List[Dict]:
    node_ids = [n["nodeId"] for n in nodes]
    sizes = {
        n["nodeId"]: (n.get("width", NODE_WIDTH), n.get("height", NODE_HEIGHT))
        for n in nodes
    }
    ranks = _ranks(node_ids, edges)

    rows: Dict[int, List[str]] = {}
    for node_id in node_ids:
        rows.setdefault(ranks[node_id], []).append(node_id)

    # rank y offsets use the tallest node of every previous rank
    row_top: Dict[int, float] = {}
    y = 0.0
    for rank in sorted(rows):
        row_top[rank] = y
        y += max(sizes[n][1] for n in rows[rank]) + rank_sep

    row_width = {
        rank: sum(sizes[n][0] for n in members) + node_sep * (len(members) - 1)
        for rank, members in rows.items()
    }
    widest = max(row_width.values(), default=0)

    positions: Dict[str, Dict] = {}
    for rank, members in rows.items():
        x = (widest - row_width[rank]) / 2
        for node_id in members:
            positions[node_id] = {"nodeId": node_id, "x": x, "y": row_top[rank]}
            x += sizes[node_id][0] + node_sep

    return [positions[node_id] for node_id in node_ids]


def layout_graph(graph: ArchitectureGraph) -> List[Dict]:
    return compute_layout(
        [{"nodeId": n.id, "width": NODE_WIDTH, "height": NODE_HEIGHT} for n in graph.nodes],
        [{"source": e.source, "target": e.target} for e in graph.edges],
    )
