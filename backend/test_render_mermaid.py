from archforge.compiler.render_mermaid import render_mermaid
from archforge.ir.graph import ArchitectureGraph, Category, Edge, Node


def test_render_grouped_by_category(api_db_graph):
    expected = "\n".join(
        [
            "flowchart TD",
            'subgraph gateway_layer["Gateway"]',
            '  api["API<br/>Azure API Management"]',
            "end",
            'subgraph database_layer["Database"]',
            '  db["Database<br/>Azure SQL Database"]',
            "end",
            'api -->|"SQL Queries"| db',
        ]
    )
    assert render_mermaid(api_db_graph) == expected


def test_ids_and_labels_are_escaped():
    graph = ArchitectureGraph(
        id="arch_x",
        nodes=[
            Node(id="order-queue-1", label='The "orders" queue', product='The "orders" queue', category=Category.MESSAGING),
            Node(id="fn.worker", label="Worker", product="Azure Functions", category=Category.COMPUTE),
        ],
        edges=[Edge(source="order-queue-1", target="fn.worker", label="")],
    )

    output = render_mermaid(graph)

    assert "  order_queue_1[\"The 'orders' queue\"]" in output
    assert "fn_worker" in output
    assert output.endswith("order_queue_1 --> fn_worker")
