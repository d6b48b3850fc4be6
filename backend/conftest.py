import json

import pytest

from archforge.inference.base import LLMClient
from archforge.ir.errors import LLMError
from archforge.ir.graph import ArchitectureGraph, Category, Edge, Node
from archforge.store.session_store import InMemorySessionStore


class FakeLLMClient(LLMClient):
    """Returns scripted responses in order and records every call."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def generate(self, messages, temperature=None, max_tokens=None, json_mode=False, model=None):
        self.calls.append(
            {
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "json_mode": json_mode,
                "model": model,
            }
        )
        if not self.responses:
            raise LLMError("No scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        return response


def make_node(id: str, label: str, product: str = "", category: Category = Category.COMPUTE) -> Node:
    return Node(id=id, label=label, product=product or label, category=category)


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def api_db_graph():
    return ArchitectureGraph(
        id="arch_test",
        requirements_text="api with a database",
        nodes=[
            make_node("api", "API", "Azure API Management", Category.GATEWAY),
            make_node("db", "Database", "Azure SQL Database", Category.DATABASE),
        ],
        edges=[Edge(source="api", target="db", label="SQL Queries", id="e-api-db")],
        description="API in front of a database",
    )


@pytest.fixture
def chain_graph():
    return ArchitectureGraph(
        id="arch_chain",
        nodes=[
            make_node("A", "Front Door", "Azure Front Door", Category.GATEWAY),
            make_node("B", "Functions", "Azure Functions", Category.COMPUTE),
            make_node("C", "Cosmos", "Azure Cosmos DB", Category.DATABASE),
        ],
        edges=[
            Edge(source="A", target="B", label="HTTPS Requests", id="e-ab"),
            Edge(source="B", target="C", label="Document Writes", id="e-bc"),
        ],
    )


@pytest.fixture
def fake_llm():
    """Factory: fake_llm(response, ...) -> FakeLLMClient"""
    return FakeLLMClient
