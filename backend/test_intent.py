"""Tests for intent classification (model-backed with rule-based fallback)."""

import pytest

from archforge.ir.errors import ClassificationError, LLMError
from archforge.pipeline.intent import (
    FallbackClassifier,
    Intent,
    ModelBackedClassifier,
    RuleBasedClassifier,
    classify,
    normalize_intent_label,
)


class TestNormalization:
    @pytest.mark.parametrize(
        "label,expected",
        [
            ("MODIFY_ARCHITECTURE", Intent.MODIFY),
            ("modify-architecture", Intent.MODIFY),
            ("Modify Architecture", Intent.MODIFY),
            ("generate_architecture", Intent.GENERATE),
            ("ASK_QUESTION", Intent.ASK_QUESTION),
            ("explain-component", Intent.EXPLAIN_COMPONENT),
            ("GENERAL_CHAT", Intent.GENERAL_CHAT),
        ],
    )
    def test_variants(self, label, expected):
        assert normalize_intent_label(label) == expected

    @pytest.mark.parametrize("label", ["DELETE_EVERYTHING", "question", "explain", "chat", "", None, 3])
    def test_unknown_label_is_a_failure(self, label):
        with pytest.raises(ClassificationError):
            normalize_intent_label(label)


class TestRuleBased:
    def setup_method(self):
        self.classifier = RuleBasedClassifier()

    def test_generate_request(self):
        result = self.classifier.classify("Build me a serverless web app with a database", False)
        assert result.intent == Intent.GENERATE
        assert 0 < result.confidence <= 1.0

    def test_question_mark_bonus(self):
        result = self.classifier.classify("What is Cosmos DB?", True)
        assert result.intent == Intent.ASK_QUESTION

    def test_modify_with_existing_architecture(self):
        result = self.classifier.classify("please add a redis cache and remove the queue", True)
        assert result.intent == Intent.MODIFY

    def test_modify_penalized_without_architecture(self):
        scores = RuleBasedClassifier().score("add a cache", False)
        assert scores[Intent.MODIFY] == pytest.approx(0.2)

    def test_greeting(self):
        result = self.classifier.classify("thanks, awesome", True)
        assert result.intent == Intent.GENERAL_CHAT

    def test_zero_scores_default_depends_on_context(self):
        assert self.classifier.classify("zzz", True).intent == Intent.ASK_QUESTION
        assert self.classifier.classify("zzz", False).intent == Intent.GENERATE
        assert self.classifier.classify("zzz", False).confidence == pytest.approx(0.3)

    def test_ties_break_by_enumeration_order(self):
        classifier = RuleBasedClassifier(
            patterns={
                Intent.GENERATE: ["alpha"],
                Intent.MODIFY: ["alpha"],
                Intent.GENERAL_CHAT: ["alpha"],
            }
        )
        assert classifier.classify("alpha", True).intent == Intent.GENERATE

    def test_confidence_is_capped(self):
        result = self.classifier.classify(
            "create build design develop make an architecture system platform", False
        )
        assert result.confidence == 1.0

    def test_deterministic(self):
        first = self.classifier.classify("How does the API connect to storage?", True)
        second = self.classifier.classify("How does the API connect to storage?", True)
        assert first == second


class TestModelBacked:
    def test_parses_model_answer(self, fake_llm):
        client = fake_llm(
            '```json\n{"intent": "MODIFY_ARCHITECTURE", "confidence": 0.92, "explanation": "adds a cache"}\n```'
        )
        result = ModelBackedClassifier(client).classify("add a cache", True)

        assert result.intent == Intent.MODIFY
        assert result.confidence == pytest.approx(0.92)
        assert result.explanation == "adds a cache"

        system_prompt = client.calls[0]["messages"][0]["content"]
        assert "HAS an existing architecture" in system_prompt

    def test_confidence_is_clamped(self, fake_llm):
        client = fake_llm({"intent": "general_chat", "confidence": 7})
        assert ModelBackedClassifier(client).classify("hi", False).confidence == 1.0

    def test_missing_confidence_defaults(self, fake_llm):
        client = fake_llm({"intent": "general_chat"})
        assert ModelBackedClassifier(client).classify("hi", False).confidence == 0.5

    def test_unknown_intent_raises(self, fake_llm):
        client = fake_llm({"intent": "ORDER_PIZZA", "confidence": 0.9})
        with pytest.raises(ClassificationError):
            ModelBackedClassifier(client).classify("pizza", False)

    def test_transport_error_raises_classification_error(self, fake_llm):
        client = fake_llm(LLMError("boom", status_code=503))
        with pytest.raises(ClassificationError):
            ModelBackedClassifier(client).classify("hello", False)


class TestFallback:
    @pytest.mark.parametrize(
        "response",
        [
            LLMError("network down"),
            "I think the user wants to generate something",
            {"intent": "unknown_thing", "confidence": 0.9},
        ],
    )
    def test_any_model_failure_falls_back(self, fake_llm, response):
        client = fake_llm(response)
        result = classify("Build me a data platform", False, client)

        expected = RuleBasedClassifier().classify("Build me a data platform", False)
        assert result == expected

    def test_model_answer_wins_when_valid(self, fake_llm):
        client = fake_llm({"intent": "explain_component", "confidence": 0.8})
        classifier = FallbackClassifier(ModelBackedClassifier(client), RuleBasedClassifier())
        assert classifier.classify("what does this do", True).intent == Intent.EXPLAIN_COMPONENT

    def test_no_client_uses_rules_only(self):
        result = classify("hello there", False)
        assert result.intent == Intent.GENERAL_CHAT
        assert result.explanation.startswith("Pattern-based detection")
