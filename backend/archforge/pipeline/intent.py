"""
Intent classification for chat utterances.

Two interchangeable strategies:
- ModelBackedClassifier: asks the language model for {intent, confidence, explanation}
- RuleBasedClassifier: deterministic keyword scoring, no external dependencies

FallbackClassifier composes them; it always resolves to an IntentResult.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from archforge import config
from archforge.inference.base import LLMClient
from archforge.inference.prompt import intent_system_prompt
from archforge.ir.errors import ClassificationError, JSONExtractionError, LLMError
from archforge.utils.json_extract import extract_json

logger = logging.getLogger(__name__)


class Intent(str, Enum):
    # declaration order is the tie-break order of the rule-based strategy
    GENERATE = "generate"
    ASK_QUESTION = "ask_question"
    EXPLAIN_COMPONENT = "explain_component"
    MODIFY = "modify"
    GENERAL_CHAT = "general_chat"


@dataclass
class IntentResult:
    intent: Intent
    confidence: float
    explanation: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "intent": self.intent.value,
            "confidence": self.confidence,
            "explanation": self.explanation,
        }


INTENT_ALIASES: Dict[str, Intent] = {
    "generate": Intent.GENERATE,
    "generate_architecture": Intent.GENERATE,
    "ask_question": Intent.ASK_QUESTION,
    "explain_component": Intent.EXPLAIN_COMPONENT,
    "modify": Intent.MODIFY,
    "modify_architecture": Intent.MODIFY,
    "general_chat": Intent.GENERAL_CHAT,
}


INTENT_PATTERNS: Dict[Intent, List[str]] = {
    Intent.GENERATE: [
        "create", "build", "design", "develop", "make", "set up", "setup",
        "i need", "i want", "build me", "create me", "design me",
        "architecture", "system", "application", "platform", "solution",
        "web app", "api", "database", "serverless", "microservice",
    ],
    Intent.ASK_QUESTION: [
        "what is", "what are", "how does", "how do", "explain", "tell me about",
        "what", "how", "why", "when", "where", "which", "who",
        "?", "question", "help me understand", "can you explain",
    ],
    Intent.EXPLAIN_COMPONENT: [
        "this component", "this service", "this resource", "the storage", "the database",
        "the api", "the function", "explain this", "what does this do",
        "how does this work", "tell me about this", "describe this",
    ],
    Intent.MODIFY: [
        "add", "remove", "delete", "change", "modify", "update", "replace",
        "swap", "connect", "disconnect", "edit", "alter", "adjust",
        "include", "exclude", "integrate", "remove this", "add a",
    ],
    Intent.GENERAL_CHAT: [
        "hello", "hi", "hey", "thanks", "thank you", "good", "great",
        "awesome", "perfect", "nice", "cool", "ok", "okay",
    ],
}

NO_ARCHITECTURE_PENALTY = 0.1
QUESTION_MARK_BONUS = 2
CONFIDENCE_DIVISOR = 3
ZERO_SCORE_CONFIDENCE = 0.3


def normalize_intent_label(label) -> Intent:
    """Map 'MODIFY_ARCHITECTURE', 'modify-architecture', 'Modify' ... onto Intent."""
    if not isinstance(label, str):
        raise ClassificationError(f"Invalid intent: {label!r}")

    normalized = re.sub(r"[\s-]+", "_", label.strip().lower())
    intent = INTENT_ALIASES.get(normalized)
    if intent is None:
        raise ClassificationError(f"Invalid intent: {label} (normalized: {normalized})")
    return intent


def _clamp_confidence(value, default: float = 0.5) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return default
    return min(max(confidence, 0.0), 1.0)


class IntentClassifier(ABC):
    @abstractmethod
    def classify(self, utterance: str, has_existing_architecture: bool) -> IntentResult:
        pass


class RuleBasedClassifier(IntentClassifier):
    """Deterministic keyword scoring. Same input always yields the same result."""

    def __init__(self, patterns: Optional[Dict[Intent, List[str]]] = None):
        self.patterns = patterns or INTENT_PATTERNS

    def score(self, utterance: str, has_existing_architecture: bool) -> Dict[Intent, float]:
        lower = (utterance or "").lower()

        scores: Dict[Intent, float] = {intent: 0.0 for intent in Intent}
        for intent, patterns in self.patterns.items():
            scores[intent] += sum(1 for pattern in patterns if pattern in lower)

        if not has_existing_architecture:
            scores[Intent.EXPLAIN_COMPONENT] *= NO_ARCHITECTURE_PENALTY
            scores[Intent.MODIFY] *= NO_ARCHITECTURE_PENALTY

        if "?" in lower:
            scores[Intent.ASK_QUESTION] += QUESTION_MARK_BONUS

        return scores

    def classify(self, utterance: str, has_existing_architecture: bool) -> IntentResult:
        scores = self.score(utterance, has_existing_architecture)
        max_score = max(scores.values())

        if max_score <= 0:
            intent = Intent.ASK_QUESTION if has_existing_architecture else Intent.GENERATE
            confidence = ZERO_SCORE_CONFIDENCE
        else:
            # first intent in declaration order wins ties
            intent = next(i for i in Intent if scores[i] == max_score)
            confidence = min(max_score / CONFIDENCE_DIVISOR, 1.0)

        return IntentResult(
            intent=intent,
            confidence=confidence,
            explanation=f"Pattern-based detection (score: {max_score:g})",
        )


class ModelBackedClassifier(IntentClassifier):
    """Asks the language model. Raises ClassificationError on any failure."""

    def __init__(
        self,
        client: LLMClient,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        self.client = client
        self.model = model or config.INTENT_MODEL
        self.temperature = config.INTENT_TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or config.INTENT_MAX_TOKENS

    def classify(self, utterance: str, has_existing_architecture: bool) -> IntentResult:
        messages = [
            {"role": "system", "content": intent_system_prompt(has_existing_architecture)},
            {"role": "user", "content": utterance},
        ]

        try:
            raw = self.client.generate(
                messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                model=self.model,
            )
            data = extract_json(raw)
        except (LLMError, JSONExtractionError) as e:
            raise ClassificationError(str(e)) from e

        intent = normalize_intent_label(data.get("intent"))
        explanation = data.get("explanation")

        return IntentResult(
            intent=intent,
            confidence=_clamp_confidence(data.get("confidence")),
            explanation=str(explanation) if explanation is not None else None,
        )


class FallbackClassifier(IntentClassifier):
    """Calls the primary strategy and falls back to the secondary on any error."""

    def __init__(self, primary: IntentClassifier, fallback: IntentClassifier):
        self.primary = primary
        self.fallback = fallback

    def classify(self, utterance: str, has_existing_architecture: bool) -> IntentResult:
        try:
            return self.primary.classify(utterance, has_existing_architecture)
        except Exception as e:
            logger.warning(
                "Model intent detection failed, falling back to pattern matching: %s", e
            )
            return self.fallback.classify(utterance, has_existing_architecture)


def build_classifier(client: Optional[LLMClient] = None) -> IntentClassifier:
    if client is None:
        return RuleBasedClassifier()
    return FallbackClassifier(ModelBackedClassifier(client), RuleBasedClassifier())


def classify(
    utterance: str,
    has_existing_architecture: bool,
    client: Optional[LLMClient] = None,
) -> IntentResult:
    return build_classifier(client).classify(utterance, has_existing_architecture)
