from archforge.compiler.layout import compute_layout, layout_graph
from archforge.compiler.render_mermaid import render_mermaid

__all__ = ["compute_layout", "layout_graph", "render_mermaid"]
