"""
Graph synthesis: requirements text -> ArchitectureGraph.

The model is told the JSON contract, but every rule it is told is
re-checked locally by the shared sanitizer.
"""

import logging
from typing import Optional

from archforge import config
from archforge.inference.base import LLMClient
from archforge.inference.prompt import SYNTHESIS_SYSTEM_PROMPT, synthesis_user_message
from archforge.ir.errors import GenerationError, JSONExtractionError, LLMError
from archforge.ir.graph import ArchitectureGraph
from archforge.store.session_store import SessionStore
from archforge.utils.identifiers import generate_architecture_id
from archforge.utils.json_extract import extract_json
from archforge.validation.sanitizer import sanitize_payload

logger = logging.getLogger(__name__)


class GraphSynthesizer:
    def __init__(
        self,
        client: Optional[LLMClient],
        store: Optional[SessionStore] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        self.client = client
        self.store = store
        self.temperature = config.SYNTHESIS_TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or config.SYNTHESIS_MAX_TOKENS

    def synthesize(self, requirements_text: str) -> ArchitectureGraph:
        if not requirements_text or not requirements_text.strip():
            raise GenerationError("Requirements are required")

        if self.client is None:
            raise GenerationError("Language model API key not configured")

        raw = self._call_model(requirements_text)

        try:
            data = extract_json(raw)
        except JSONExtractionError as e:
            raise GenerationError(f"Failed to parse architecture from model response: {e}") from e

        graph = self._build_graph(requirements_text, data)

        if self.store is not None:
            self.store.set(graph.id, graph)

        logger.info(
            "Architecture generated successfully: %s (%d nodes, %d edges, %d warnings)",
            graph.id,
            len(graph.nodes),
            len(graph.edges),
            len(graph.warnings),
        )
        return graph

    def _call_model(self, requirements_text: str) -> str:
        messages = [
            {"role": "system", "content": SYNTHESIS_SYSTEM_PROMPT},
            {"role": "user", "content": synthesis_user_message(requirements_text)},
        ]
        try:
            return self.client.generate(
                messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                json_mode=True,
            )
        except LLMError as e:
            raise GenerationError(
                f"Failed to generate architecture from AI service: {e.message}"
            ) from e

    def _build_graph(self, requirements_text: str, data: dict) -> ArchitectureGraph:
        raw_nodes = data.get("nodes")
        raw_edges = data.get("edges") or []

        if not isinstance(raw_nodes, list):
            raise GenerationError("Model response has no 'nodes' list")
        if not isinstance(raw_edges, list):
            raise GenerationError("Model response 'edges' is not a list")

        result = sanitize_payload(raw_nodes, raw_edges, check_connectivity=True)

        if not result.nodes:
            raise GenerationError("Model response contained no usable components")

        graph = ArchitectureGraph(
            id=generate_architecture_id(),
            requirements_text=requirements_text,
            nodes=result.nodes,
            edges=result.edges,
            description=str(data.get("description") or ""),
            warnings=result.warnings,
        )
        graph.components = self._components(data.get("components"), graph)
        return graph

    @staticmethod
    def _components(raw, graph: ArchitectureGraph) -> list:
        # the model's own summary may still name a dropped actor node
        products = set(graph.product_names())
        if isinstance(raw, list):
            listed = [str(c) for c in raw if isinstance(c, str) and c in products]
            if listed:
                return listed
        return graph.product_names()


def synthesize(
    requirements_text: str,
    client: Optional[LLMClient],
    store: Optional[SessionStore] = None,
) -> ArchitectureGraph:
    return GraphSynthesizer(client, store=store).synthesize(requirements_text)
