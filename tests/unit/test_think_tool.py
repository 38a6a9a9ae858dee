"""
Unit tests for the think tool.

Tests cover:
- Depth, strategic value and confidence heuristics
- Defaults for missing or malformed input
- The persisted thought record
- Persistence failures
"""

import re

import pytest

from src.tools.exceptions import ThoughtPersistenceError
from src.tools.think import (
    DEFAULT_NEXT_STEPS,
    DEFAULT_REASONING,
    ThinkTool,
    analyze_thinking_depth,
    calculate_confidence_level,
    calculate_strategic_value,
)

DEEP_REASONING = (
    "The customer wants a new deal for ACME. However, there is already an open deal in the pipeline, "
    "therefore creating a second one could double count revenue. Specifically, the existing deal is in "
    "the proposal stage and was updated last week. "
) + "Further context about the account history and the people involved. " * 6


class TestHeuristics:
    """Test the scoring heuristics"""

    def test_deep_reasoning(self):
        assert len(DEEP_REASONING) > 500
        assert analyze_thinking_depth(DEEP_REASONING) == "deep"

    def test_padded_reasoning_with_three_connectives_is_deep(self):
        reasoning = "however therefore furthermore ".ljust(600, "x")

        assert len(reasoning) == 600
        assert analyze_thinking_depth(reasoning) == "deep"

    def test_long_text_without_connectives_is_shallow(self):
        assert analyze_thinking_depth("x" * 600) == "shallow"

    def test_moderate_reasoning(self):
        text = "Considering the request, " + "a" * 200
        assert analyze_thinking_depth(text) == "moderate"

    @pytest.mark.parametrize("value", ["", None, 42])
    def test_empty_or_non_text_is_shallow(self, value):
        assert analyze_thinking_depth(value) == "shallow"

    def test_strategic_value(self):
        assert calculate_strategic_value("") == 3
        assert calculate_strategic_value("Just do it") == 3
        assert calculate_strategic_value("Prioritize and optimize the workflow") == 6

    def test_strategic_value_is_capped(self):
        strategy = " ".join([
            "prioritize", "optimize", "leverage", "mitigate", "enhance",
            "streamline", "maximize", "minimize", "focus",
        ])
        assert calculate_strategic_value(strategy) == 10

    def test_confidence_level(self):
        assert calculate_confidence_level("short", None, "do it") == 0.8
        assert calculate_confidence_level("r" * 301, None, "1. search 2. create") == 1.0
        assert calculate_confidence_level("short", "c" * 51, "do it") == 0.6


class TestThinkTool:
    """Test ThinkTool"""

    @pytest.fixture
    def tool(self, thought_store):
        return ThinkTool(thought_store, "conv-1")

    def test_definition_requires_core_fields(self):
        definition = ThinkTool.definition()

        assert definition.name == "think"
        assert definition.input_schema["required"] == ["reasoning", "strategy", "next_steps"]
        assert set(definition.input_schema["properties"]) == {
            "acknowledgment", "reasoning", "strategy", "concerns", "next_steps",
        }

    async def test_execute_persists_thought(self, tool, thought_store):
        result = await tool.execute({
            "acknowledgment": "User wants a deal",
            "reasoning": DEEP_REASONING,
            "strategy": "Prioritize the existing deal",
            "next_steps": "1. Search deals 2. Update amount",
        })

        assert result.success
        assert re.fullmatch(r"think_\d{13}_[a-z0-9]{9}", result.id)
        assert result.metadata.thinking_depth == "deep"
        assert result.metadata.strategic_value == 4
        assert result.metadata.confidence_level == 1.0

        thought_store.save_thought.assert_awaited_once()
        record = thought_store.save_thought.call_args.args[0]
        assert record["conversation_id"] == "conv-1"
        assert record["type"] == "reasoning"
        assert record["content"] == DEEP_REASONING
        assert record["next_steps"] == "1. Search deals 2. Update amount"
        assert record["metadata"]["toolType"] == "think"
        assert record["metadata"]["thinkingDepth"] == "deep"
        assert record["reflection_data"] == {
            "thinkingDepth": "deep",
            "strategicValue": 4,
            "confidenceLevel": 1.0,
        }

    async def test_missing_fields_use_defaults(self, tool):
        result = await tool.execute({})

        assert result.reasoning == DEFAULT_REASONING
        assert result.next_steps == DEFAULT_NEXT_STEPS
        assert result.acknowledgment is None
        assert result.metadata.thinking_depth == "shallow"
        assert result.metadata.strategic_value == 3

    async def test_malformed_input_is_tolerated(self, tool, thought_store):
        result = await tool.execute("not a dict")

        assert result.strategy == "No strategy provided"
        thought_store.save_thought.assert_awaited_once()

    async def test_to_dict_uses_camel_case(self, tool):
        data = (await tool.execute({"reasoning": "r", "strategy": "s", "next_steps": "n"})).to_dict()

        assert data["type"] == "thinking"
        assert data["nextSteps"] == "n"
        assert set(data["metadata"]) == {"thinkingDepth", "strategicValue", "confidenceLevel"}

    async def test_persistence_failure_raises(self, tool, thought_store):
        thought_store.save_thought.side_effect = OSError("disk full")

        with pytest.raises(ThoughtPersistenceError) as exc_info:
            await tool.execute({"reasoning": "r"})

        assert exc_info.value.conversation_id == "conv-1"
        assert isinstance(exc_info.value.__cause__, OSError)
        assert "disk full" in str(exc_info.value)
