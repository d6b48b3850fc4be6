"""
Routes one chat utterance through the pipeline:

    utterance -> intent -> {synthesize | edit | chat} -> sanitized graph

All graph state lives in the caller-owned ArchitectureSession and the
session store; the assistant itself keeps nothing between calls.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import List, Optional

from archforge import config
from archforge.inference.base import LLMClient
from archforge.inference.prompt import chat_system_prompt
from archforge.ir.errors import LLMError, SessionBusyError
from archforge.ir.graph import ArchitectureGraph
from archforge.pipeline.editor import GraphEditor
from archforge.pipeline.intent import Intent, IntentResult, build_classifier
from archforge.pipeline.synthesizer import GraphSynthesizer
from archforge.store.session_store import SessionStore
from archforge.validation.sanitizer import SanitizationWarning

logger = logging.getLogger(__name__)

NO_MODEL_REPLY = (
    "I can design and edit cloud architectures. Describe the system you want "
    "to build, or ask me to add, remove or change a component."
)


@dataclass
class AssistantReply:
    intent: IntentResult
    message: str
    graph: Optional[ArchitectureGraph] = None
    warnings: List[SanitizationWarning] = field(default_factory=list)

    @property
    def changed_graph(self) -> bool:
        return self.intent.intent in (Intent.GENERATE, Intent.MODIFY) and self.graph is not None


class ArchitectureAssistant:
    def __init__(self, client: Optional[LLMClient], store: Optional[SessionStore] = None):
        self.client = client
        self.store = store
        self.classifier = build_classifier(client)
        self.synthesizer = GraphSynthesizer(client, store=store)
        self.editor = GraphEditor(client, store=store)

    def handle(
        self,
        utterance: str,
        graph: Optional[ArchitectureGraph] = None,
    ) -> AssistantReply:
        """
        GenerationError / EditError propagate unchanged; ``graph`` is never
        mutated.
        """
        result = self.classifier.classify(utterance, graph is not None)
        intent = result.intent

        # an edit needs something to edit
        if intent == Intent.MODIFY and graph is None:
            intent = Intent.GENERATE
            result = IntentResult(
                intent=intent,
                confidence=result.confidence,
                explanation=f"{result.explanation or ''} (no architecture to modify)".strip(),
            )

        if intent == Intent.GENERATE:
            new_graph = self.synthesizer.synthesize(utterance)
            return AssistantReply(
                intent=result,
                message=new_graph.description
                or f"Created {len(new_graph.nodes)} components",
                graph=new_graph,
                warnings=list(new_graph.warnings),
            )

        if intent == Intent.MODIFY:
            new_graph = self.editor.edit(graph, utterance)
            return AssistantReply(
                intent=result,
                message=f"✓ {new_graph.description}",
                graph=new_graph,
                warnings=list(new_graph.warnings),
            )

        return AssistantReply(
            intent=result,
            message=self._chat(utterance, graph),
            graph=graph,
        )

    def _chat(self, utterance: str, graph: Optional[ArchitectureGraph]) -> str:
        if self.client is None:
            return NO_MODEL_REPLY

        messages = [
            {"role": "system", "content": chat_system_prompt(graph)},
            {"role": "user", "content": utterance},
        ]
        try:
            return self.client.generate(
                messages,
                temperature=config.CHAT_TEMPERATURE,
                max_tokens=config.CHAT_MAX_TOKENS,
            )
        except LLMError as e:
            logger.warning("Chat reply failed: %s", e)
            return NO_MODEL_REPLY


class ArchitectureSession:
    """
    One editing session: the current graph plus a busy flag.

    A second request while one is outstanding raises SessionBusyError.
    A failed request leaves the held graph untouched.
    """

    def __init__(
        self,
        assistant: ArchitectureAssistant,
        graph: Optional[ArchitectureGraph] = None,
    ):
        self.assistant = assistant
        self.graph = graph
        self._lock = threading.Lock()
        self.busy = False

    def submit(self, utterance: str) -> AssistantReply:
        with self._lock:
            if self.busy:
                raise SessionBusyError("A request is already in progress for this session")
            self.busy = True

        try:
            reply = self.assistant.handle(utterance, self.graph)
            if reply.changed_graph:
                self.graph = reply.graph
            return reply
        finally:
            with self._lock:
                self.busy = False


class BusyRegistry:
    """Busy flags for sessions identified only by architecture id (HTTP callers)."""

    def __init__(self):
        self._busy = set()
        self._lock = threading.Lock()

    @contextmanager
    def hold(self, architecture_id: Optional[str]):
        if not architecture_id:
            yield
            return

        with self._lock:
            if architecture_id in self._busy:
                raise SessionBusyError(
                    f"A request is already in progress for architecture {architecture_id}"
                )
            self._busy.add(architecture_id)
        try:
            yield
        finally:
            with self._lock:
                self._busy.discard(architecture_id)

    def is_busy(self, architecture_id: str) -> bool:
        with self._lock:
            return architecture_id in self._busy
