import pytest

from archforge import config
from archforge.inference.base import LLMClient
from archforge.ir.errors import EditError, SessionBusyError
from archforge.pipeline.controller import (
    NO_MODEL_REPLY,
    ArchitectureAssistant,
    ArchitectureSession,
    BusyRegistry,
)
from archforge.pipeline.intent import Intent

SMALL_ARCHITECTURE = {
    "nodes": [
        {"id": "fn", "label": "API", "product": "Azure Functions", "category": "compute"},
        {"id": "cosmos", "label": "Store", "product": "Azure Cosmos DB", "category": "database"},
    ],
    "edges": [{"source": "fn", "target": "cosmos", "label": "Document Writes"}],
    "description": "Serverless API over Cosmos DB",
}


def intent(label, confidence=0.9):
    return {"intent": label, "confidence": confidence, "explanation": "scripted"}


class TestRouting:
    def test_generate(self, fake_llm, store):
        client = fake_llm(intent("GENERATE_ARCHITECTURE"), SMALL_ARCHITECTURE)

        reply = ArchitectureAssistant(client, store=store).handle("build a serverless api")

        assert reply.intent.intent == Intent.GENERATE
        assert reply.changed_graph
        assert reply.graph.node_ids() == {"fn", "cosmos"}
        assert reply.message == "Serverless API over Cosmos DB"
        assert store.exists(reply.graph.id)

    def test_modify_without_graph_becomes_generate(self, fake_llm):
        client = fake_llm(intent("MODIFY_ARCHITECTURE"), SMALL_ARCHITECTURE)

        reply = ArchitectureAssistant(client).handle("add a cache")

        assert reply.intent.intent == Intent.GENERATE
        assert reply.graph is not None

    def test_modify(self, fake_llm, api_db_graph):
        client = fake_llm(
            intent("MODIFY_ARCHITECTURE"),
            {"modifications": [{"action": "remove", "nodeId": "db"}], "newEdges": [], "description": "Removed the database"},
        )

        reply = ArchitectureAssistant(client).handle("remove the database", api_db_graph)

        assert reply.intent.intent == Intent.MODIFY
        assert reply.message == "✓ Removed the database"
        assert reply.graph.node_ids() == {"api"}
        assert api_db_graph.node_ids() == {"api", "db"}

    def test_question_is_answered_without_touching_the_graph(self, fake_llm, api_db_graph):
        client = fake_llm(intent("ask_question"), "Azure SQL Database is a managed relational database.")

        reply = ArchitectureAssistant(client).handle("what is the database for?", api_db_graph)

        assert reply.intent.intent == Intent.ASK_QUESTION
        assert reply.message == "Azure SQL Database is a managed relational database."
        assert reply.graph is api_db_graph
        assert not reply.changed_graph

        chat_call = client.calls[1]
        assert "- id: db | label: Database" in chat_call["messages"][0]["content"]
        assert chat_call["json_mode"] is False

    def test_chat_settings_come_from_config(self, fake_llm, monkeypatch):
        monkeypatch.setattr(config, "CHAT_TEMPERATURE", 0.25)
        monkeypatch.setattr(config, "CHAT_MAX_TOKENS", 321)
        client = fake_llm(intent("general_chat"), "Hello!")

        ArchitectureAssistant(client).handle("hello there")

        chat_call = client.calls[1]
        assert chat_call["temperature"] == 0.25
        assert chat_call["max_tokens"] == 321

    def test_chat_without_model(self):
        reply = ArchitectureAssistant(None).handle("hello there")
        assert reply.intent.intent == Intent.GENERAL_CHAT
        assert reply.message == NO_MODEL_REPLY


class TestSession:
    def test_successful_edit_replaces_graph(self, fake_llm, api_db_graph):
        client = fake_llm(
            intent("modify_architecture"),
            {"modifications": [{"action": "modify", "nodeId": "db", "label": "Orders DB"}], "newEdges": []},
        )
        session = ArchitectureSession(ArchitectureAssistant(client), api_db_graph)

        session.submit("rename the database")

        assert session.graph is not api_db_graph
        assert session.graph.get_node("db").label == "Orders DB"
        assert not session.busy

    def test_failed_edit_leaves_graph_untouched(self, fake_llm, api_db_graph):
        client = fake_llm(intent("modify_architecture"), "no json here")
        session = ArchitectureSession(ArchitectureAssistant(client), api_db_graph)

        with pytest.raises(EditError):
            session.submit("add a cache")

        assert session.graph is api_db_graph
        assert session.graph.node_ids() == {"api", "db"}
        assert not session.busy

    def test_second_request_while_busy_is_rejected(self, api_db_graph):
        rejected = []

        class ReentrantClient(LLMClient):
            def generate(self, messages, temperature=None, max_tokens=None, json_mode=False, model=None):
                try:
                    session.submit("another request")
                except SessionBusyError as e:
                    rejected.append(e)
                return '{"intent": "general_chat", "confidence": 1}'

        session = ArchitectureSession(ArchitectureAssistant(ReentrantClient()), api_db_graph)
        session.submit("hi")

        assert len(rejected) >= 1
        assert not session.busy


class TestBusyRegistry:
    def test_hold_is_exclusive_per_architecture(self):
        registry = BusyRegistry()

        with registry.hold("arch_1"):
            assert registry.is_busy("arch_1")
            with pytest.raises(SessionBusyError):
                with registry.hold("arch_1"):
                    pass
            with registry.hold("arch_2"):
                assert registry.is_busy("arch_2")

        assert not registry.is_busy("arch_1")
        assert not registry.is_busy("arch_2")

    def test_released_after_failure(self):
        registry = BusyRegistry()
        with pytest.raises(RuntimeError):
            with registry.hold("arch_1"):
                raise RuntimeError("boom")
        assert not registry.is_busy("arch_1")

    def test_no_id_is_never_busy(self):
        registry = BusyRegistry()
        with registry.hold(None):
            with registry.hold(None):
                pass
