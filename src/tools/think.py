"""Think tool: structured reasoning capture.

The model calls ``think`` to lay out its reasoning, strategy and next
steps before acting. The tool scores the thought with three cheap
heuristics (depth, strategic value, confidence), persists it to the
thought store for audit, and hands the structured result back.

Malformed input is never rejected: missing fields fall back to
placeholder text so the conversation keeps going.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from src.utils.config.constants import THINK_TOOL, THOUGHT_TYPE_REASONING
from src.utils.storage.thought_store import ThoughtStore

from .base import ToolDefinition, ToolExecutionContext, ToolExecutor, generate_id, logger, utc_now
from .exceptions import ThoughtPersistenceError

COMPLEXITY_INDICATORS = (
    "however", "therefore", "consequently", "alternatively", "furthermore",
    "on the other hand", "in contrast", "specifically", "particularly",
    "given that", "considering", "taking into account",
)

STRATEGIC_INDICATORS = (
    "prioritize", "optimize", "leverage", "mitigate", "enhance",
    "streamline", "maximize", "minimize", "focus", "target",
    "approach", "methodology", "framework", "process", "workflow",
)

DEFAULT_REASONING = "No reasoning provided"
DEFAULT_STRATEGY = "No strategy provided"
DEFAULT_NEXT_STEPS = "No next steps provided"


def analyze_thinking_depth(reasoning: Optional[str]) -> str:
    """Classify reasoning as shallow, moderate or deep.

    Deep reasoning is long (over 500 characters) and uses at least three
    distinct connectives; moderate is over 200 characters with at least one.
    """
    if not reasoning or not isinstance(reasoning, str):
        return "shallow"

    text = reasoning.lower()
    score = sum(1 for indicator in COMPLEXITY_INDICATORS if indicator in text)

    if len(reasoning) > 500 and score >= 3:
        return "deep"
    if len(reasoning) > 200 and score >= 1:
        return "moderate"
    return "shallow"


def calculate_strategic_value(strategy: Optional[str]) -> int:
    """Score a strategy from 1 to 10 (3 plus one per strategic keyword)."""
    if not strategy or not isinstance(strategy, str):
        return 3

    text = strategy.lower()
    score = sum(1 for indicator in STRATEGIC_INDICATORS if indicator in text)
    return min(10, max(1, score + 3))


def calculate_confidence_level(reasoning: Optional[str], concerns: Optional[str],
                               next_steps: Optional[str]) -> float:
    confidence = 0.8

    # Substantial concerns lower confidence
    if isinstance(concerns, str) and len(concerns) > 50:
        confidence -= 0.2
    if isinstance(reasoning, str) and len(reasoning) > 300:
        confidence += 0.1
    # Numbered next steps
    if isinstance(next_steps, str) and ("1." in next_steps or "2." in next_steps):
        confidence += 0.1

    return round(min(1.0, max(0.1, confidence)), 2)


@dataclass(frozen=True)
class ThinkMetadata:
    thinking_depth: str
    strategic_value: int
    confidence_level: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "thinkingDepth": self.thinking_depth,
            "strategicValue": self.strategic_value,
            "confidenceLevel": self.confidence_level,
        }


@dataclass(frozen=True)
class ThinkResult:
    """Structured thought returned to the model."""
    id: str
    reasoning: str
    strategy: str
    next_steps: str
    timestamp: str
    metadata: ThinkMetadata
    acknowledgment: Optional[str] = None
    concerns: Optional[str] = None
    type: str = "thinking"

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "acknowledgment": self.acknowledgment,
            "reasoning": self.reasoning,
            "strategy": self.strategy,
            "concerns": self.concerns,
            "nextSteps": self.next_steps,
            "timestamp": self.timestamp,
            "metadata": self.metadata.to_dict(),
        }

    def to_thought_record(self, conversation_id: str) -> Dict[str, Any]:
        """Row written to the thought store."""
        reflection = self.metadata.to_dict()
        return {
            "conversation_id": conversation_id,
            "type": THOUGHT_TYPE_REASONING,
            "content": self.reasoning,
            "metadata": {
                "acknowledgment": self.acknowledgment,
                "strategy": self.strategy,
                "concerns": self.concerns,
                "nextSteps": self.next_steps,
                **reflection,
                "toolType": THINK_TOOL,
            },
            "reasoning": self.reasoning,
            "strategy": self.strategy,
            "concerns": self.concerns,
            "next_steps": self.next_steps,
            "thinking_budget": None,
            "reflection_data": reflection,
        }


def _text(value: Any, default: Optional[str] = None) -> Optional[str]:
    if value is None or value == "":
        return default
    return value if isinstance(value, str) else str(value)


class ThinkTool(ToolExecutor):
    """Capture a structured thought and persist it for the conversation."""
    name = THINK_TOOL
    description = ("Think through complex problems step by step. Use when you need to reason about "
                   "multiple options, reflect on previous actions, or plan next steps. This tool helps "
                   "you structure your reasoning process and capture strategic insights.")

    class Input(BaseModel):
        acknowledgment: Optional[str] = Field(
            None, description="Your acknowledgment of what the user is asking, written from your perspective")
        reasoning: Optional[str] = Field(
            None, description="Your detailed reasoning about the current situation, including analysis of "
                              "context, data, and user intent")
        strategy: Optional[str] = Field(
            None, description="Your strategic approach for proceeding, including prioritization and methodology")
        concerns: Optional[str] = Field(
            None, description="Any concerns, potential issues, or risks you've identified that should be considered")
        next_steps: Optional[str] = Field(
            None, description="Specific, actionable next steps you plan to take, prioritized and sequenced")

    def __init__(self, thought_store: ThoughtStore, conversation_id: str):
        self.thought_store = thought_store
        self.conversation_id = conversation_id

    @classmethod
    def definition(cls) -> ToolDefinition:
        return ToolDefinition.from_model(cls.name, cls.description, cls.Input,
                                         required=["reasoning", "strategy", "next_steps"])

    def build_result(self, tool_input: Any) -> ThinkResult:
        """Apply defaults and heuristics to raw tool input."""
        data = tool_input if isinstance(tool_input, dict) else {}

        acknowledgment = _text(data.get("acknowledgment"))
        reasoning = _text(data.get("reasoning"), DEFAULT_REASONING)
        strategy = _text(data.get("strategy"), DEFAULT_STRATEGY)
        concerns = _text(data.get("concerns"))
        next_steps = _text(data.get("next_steps"), DEFAULT_NEXT_STEPS)

        return ThinkResult(
            id=generate_id("think", separator="_"),
            acknowledgment=acknowledgment,
            reasoning=reasoning,
            strategy=strategy,
            concerns=concerns,
            next_steps=next_steps,
            timestamp=utc_now(),
            metadata=ThinkMetadata(
                thinking_depth=analyze_thinking_depth(reasoning),
                strategic_value=calculate_strategic_value(strategy),
                confidence_level=calculate_confidence_level(reasoning, concerns, next_steps),
            ),
        )

    async def execute(self, tool_input: Dict[str, Any], context: Optional[ToolExecutionContext] = None) -> ThinkResult:
        if not isinstance(tool_input, dict):
            logger.warning("think_input_malformed",
                           tool_name=self.name,
                           input_type=type(tool_input).__name__)

        result = self.build_result(tool_input)

        try:
            await self.thought_store.save_thought(result.to_thought_record(self.conversation_id))
        except Exception as e:
            logger.error("tool_error",
                         tool_name=self.name,
                         conversation_id=self.conversation_id,
                         error=str(e),
                         error_type=type(e).__name__)
            raise ThoughtPersistenceError(self.conversation_id, e) from e

        logger.info("tool_result",
                    tool_name=self.name,
                    thought_id=result.id,
                    thinking_depth=result.metadata.thinking_depth,
                    strategic_value=result.metadata.strategic_value,
                    confidence_level=result.metadata.confidence_level)
        return result
