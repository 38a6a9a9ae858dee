"""Base classes for the CRM agent tools.

This module provides the foundation every tool builds on:
- Tool definitions derived from pydantic input models
- Per-call execution context (auth, conversation, request id)
- Immutable workflow traces describing what a tool did
- A tagged success/failure result with a JSON-ready rendering
- Consistent logging and error conversion for CRM mutations

Business outcomes (duplicates, conflicts, missing records, bad input) are
always returned as ToolFailure values. Only dispatch problems raise.
"""

import random
import string
import time
import typing
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Sequence, Tuple, Type, Union

from pydantic import BaseModel, ValidationError

from src.utils.config import config as default_config, UnifiedConfig
from src.utils.config.constants import STEP_ERROR, STEP_INITIALIZE, STEP_VALIDATION
from src.utils.logging.framework import SmartLogger

# Initialize SmartLogger
logger = SmartLogger("tools")

_ID_ALPHABET = string.ascii_lowercase + string.digits

# Python annotation -> JSON schema type
_JSON_TYPES = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    dict: "object",
}


def generate_id(prefix: str, separator: str = "-", length: int = 9) -> str:
    """Build ``<prefix><sep><epoch-ms><sep><random base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=length))
    return f"{prefix}{separator}{int(time.time() * 1000)}{separator}{suffix}"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _json_type(annotation: Any) -> str:
    """Map a field annotation to its JSON schema type (Optional unwrapped)."""
    if typing.get_origin(annotation) is Union:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        annotation = args[0] if args else str
    annotation = typing.get_origin(annotation) or annotation
    return _JSON_TYPES.get(annotation, "string")


@dataclass(frozen=True)
class ToolDefinition:
    """Name, description and input schema advertised to the model."""
    name: str
    description: str
    input_schema: Dict[str, Any]

    @classmethod
    def from_model(cls, name: str, description: str, model: Type[BaseModel],
                   required: Optional[Sequence[str]] = None) -> "ToolDefinition":
        """Derive the input schema from a pydantic model.

        Args:
            name: Tool name
            description: What the tool does, phrased for the model
            model: Pydantic model describing the input
            required: Explicit required list (defaults to the model's required fields)
        """
        properties = {
            field_name: {
                "type": _json_type(field_info.annotation),
                "description": field_info.description or "",
            }
            for field_name, field_info in model.model_fields.items()
        }
        if required is None:
            required = [field_name for field_name, field_info in model.model_fields.items()
                        if field_info.is_required()]

        return cls(
            name=name,
            description=description,
            input_schema={
                "type": "object",
                "properties": properties,
                "required": list(required),
            }
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


@dataclass(frozen=True)
class ToolExecutionContext:
    """Per-call context built by the registry."""
    conversation_id: str
    auth_token: Optional[str] = None
    user_id: Optional[str] = None
    request_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.auth_token and self.user_id)


class StepStatus(str, Enum):
    """Status of a single workflow step."""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class WorkflowStep:
    step: str
    status: StepStatus
    timestamp: str
    details: str
    data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "step": self.step,
            "status": self.status.value,
            "timestamp": self.timestamp,
            "details": self.details,
        }
        if self.data:
            result["data"] = self.data
        return result


@dataclass(frozen=True)
class WorkflowTrace:
    """Ordered, immutable record of the steps a tool went through.

    ``add`` returns a new trace, so a trace captured in a result never
    changes after the fact.
    """
    steps: Tuple[WorkflowStep, ...] = ()

    def add(self, step: str, status: Union[StepStatus, str], details: str,
            data: Optional[Dict[str, Any]] = None) -> "WorkflowTrace":
        new_step = WorkflowStep(
            step=step,
            status=StepStatus(status),
            timestamp=utc_now(),
            details=details,
            data=data,
        )
        return WorkflowTrace(self.steps + (new_step,))

    @property
    def last(self) -> Optional[WorkflowStep]:
        return self.steps[-1] if self.steps else None

    def step_names(self) -> List[str]:
        return [s.step for s in self.steps]

    def to_list(self) -> List[Dict[str, Any]]:
        return [s.to_dict() for s in self.steps]

    def __iter__(self) -> Iterator[WorkflowStep]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)


class ErrorCode(str, Enum):
    """Machine-readable failure codes returned by the CRM tools."""
    AUTH_REQUIRED = "AUTH_REQUIRED"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    DUPLICATE_ORGANIZATION = "DUPLICATE_ORGANIZATION"
    DUPLICATE_PERSON = "DUPLICATE_PERSON"
    NAME_CONFLICT = "NAME_CONFLICT"
    EMAIL_CONFLICT = "EMAIL_CONFLICT"
    ORGANIZATION_NOT_FOUND = "ORGANIZATION_NOT_FOUND"
    PERSON_NOT_FOUND = "PERSON_NOT_FOUND"
    DEAL_NOT_FOUND = "DEAL_NOT_FOUND"
    CREATION_FAILED = "CREATION_FAILED"
    UPDATE_FAILED = "UPDATE_FAILED"
    SEARCH_FAILED = "SEARCH_FAILED"


@dataclass(frozen=True)
class ToolSuccess:
    """Successful tool outcome carrying the affected record."""
    entity_key: str
    record: Any
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    workflow_steps: WorkflowTrace = field(default_factory=WorkflowTrace)
    warnings: Tuple[str, ...] = ()
    changes_detected: Optional[int] = None

    success: ClassVar[bool] = True

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "success": True,
            self.entity_key: self.record,
            "message": self.message,
            "details": self.details,
            "workflow_steps": self.workflow_steps.to_list(),
        }
        if self.warnings:
            result["warnings"] = list(self.warnings)
        if self.changes_detected is not None:
            result["changes_detected"] = self.changes_detected
        return result


@dataclass(frozen=True)
class ToolFailure:
    """Business failure returned (never raised) by a tool."""
    error: ErrorCode
    message: str
    entity_key: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    workflow_steps: WorkflowTrace = field(default_factory=WorkflowTrace)
    existing: Optional[Dict[str, Any]] = None
    suggestion: Optional[str] = None

    success: ClassVar[bool] = False

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "success": False,
            "error": self.error.value,
            "message": self.message,
            "details": self.details,
            "workflow_steps": self.workflow_steps.to_list(),
        }
        if self.existing is not None and self.entity_key:
            result[f"existing_{self.entity_key}"] = self.existing
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result


ToolResult = Union[ToolSuccess, ToolFailure]


class ToolExecutor(ABC):
    """Contract for anything the registry can dispatch to."""

    @abstractmethod
    async def execute(self, tool_input: Dict[str, Any], context: ToolExecutionContext) -> Any:
        """Run the tool for one call."""


class BaseCRMTool(ToolExecutor):
    """Base class for all CRM tools.

    Provides:
    - Authentication precondition
    - Input validation through the nested ``Input`` model
    - Workflow trace bookkeeping
    - Consistent logging
    - Conversion of unexpected errors into failure results

    Subclasses set the class attributes below and implement ``_execute``.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    entity_key: ClassVar[str]
    action: ClassVar[str] = "update"
    Input: ClassVar[Type[BaseModel]]

    _FAILURE_CODES: ClassVar[Dict[str, ErrorCode]] = {
        "create": ErrorCode.CREATION_FAILED,
        "update": ErrorCode.UPDATE_FAILED,
        "search": ErrorCode.SEARCH_FAILED,
    }
    _ACTION_NOUNS: ClassVar[Dict[str, str]] = {
        "create": "creation",
        "update": "update",
        "search": "search",
    }

    def __init__(self, settings: Optional[UnifiedConfig] = None):
        self.settings = settings or default_config
        self._trace = WorkflowTrace()

    @classmethod
    def definition(cls) -> ToolDefinition:
        return ToolDefinition.from_model(cls.name, cls.description, cls.Input)

    @property
    def operation(self) -> str:
        """Human-readable operation, e.g. ``organization creation``."""
        return f"{self.entity_key} {self._ACTION_NOUNS[self.action]}"

    @property
    def trace(self) -> WorkflowTrace:
        return self._trace

    def _step(self, step: str, status: str, details: str, data: Optional[Dict[str, Any]] = None):
        self._trace = self._trace.add(step, status, details, data)

    async def execute(self, tool_input: Dict[str, Any], context: ToolExecutionContext) -> ToolResult:
        self._trace = WorkflowTrace()
        self._log_call(tool_input, context)

        if not context.is_authenticated:
            result = self._failure(
                ErrorCode.AUTH_REQUIRED,
                f"❌ Authentication required for {self.operation}."
            )
            self._log_result(result)
            return result

        try:
            params = self.Input.model_validate(tool_input if tool_input is not None else {})
        except ValidationError as e:
            result = self._validation_failure(e)
            self._log_result(result)
            return result

        try:
            result = await self._execute(params, context)
        except Exception as e:
            result = self._handle_error(e)

        self._log_result(result)
        return result

    @abstractmethod
    async def _execute(self, params: BaseModel, context: ToolExecutionContext) -> ToolResult:
        """Tool-specific implementation."""

    def _success(self, record: Any, message: str, details: Optional[Dict[str, Any]] = None,
                 warnings: Sequence[str] = (), changes_detected: Optional[int] = None) -> ToolSuccess:
        return ToolSuccess(
            entity_key=self.entity_key,
            record=record,
            message=message,
            details=details or {},
            workflow_steps=self._trace,
            warnings=tuple(warnings),
            changes_detected=changes_detected,
        )

    def _failure(self, error: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None,
                 existing: Optional[Dict[str, Any]] = None,
                 suggestion: Optional[str] = None) -> ToolFailure:
        return ToolFailure(
            error=error,
            message=message,
            entity_key=self.entity_key,
            details=details or {},
            workflow_steps=self._trace,
            existing=existing,
            suggestion=suggestion,
        )

    def _invalid(self, reason: str, **details) -> ToolFailure:
        """Domain-level validation failure (after the model accepted the input)."""
        self._step(STEP_VALIDATION, "failed", reason)
        return self._failure(
            ErrorCode.VALIDATION_FAILED,
            f"❌ Invalid input for {self.operation}: {reason}",
            details=details,
        )

    def _validation_failure(self, error: ValidationError) -> ToolFailure:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]) or "input", "message": err["msg"]}
            for err in error.errors()
        ]
        first = errors[0] if errors else {"field": "input", "message": "invalid input"}
        return self._invalid(f"{first['field']}: {first['message']}.", errors=errors)

    def _log_call(self, tool_input: Any, context: ToolExecutionContext):
        """Log tool call with consistent format."""
        logger.info("tool_call",
                    tool_name=self.name,
                    tool_args=tool_input,
                    request_id=context.request_id,
                    conversation_id=context.conversation_id)

    def _log_result(self, result: ToolResult):
        """Log tool result with consistent format."""
        log_fields = {
            "tool_name": self.name,
            "success": result.success,
            "steps": len(result.workflow_steps),
            "result_preview": result.message[:200],
        }
        if not result.success:
            log_fields["error_code"] = result.error.value
        logger.info("tool_result", **log_fields)

    def _log_error(self, error: Exception):
        """Log tool error with consistent format."""
        logger.error("tool_error",
                     tool_name=self.name,
                     error=str(error),
                     error_type=type(error).__name__)

    def _handle_error(self, error: Exception) -> ToolFailure:
        """Convert an unexpected exception into a failure result."""
        self._log_error(error)
        self._step(STEP_ERROR, "failed", f"{self.action.capitalize()} failed: {error}")

        return self._failure(
            self._FAILURE_CODES[self.action],
            f"❌ Failed to {self.action} {self.entity_key}: {error}",
            details={
                "error_type": type(error).__name__,
                "error_code": getattr(error, "code", None) or "UNKNOWN_ERROR",
            }
        )

    def _start(self, details: str):
        self._step(STEP_INITIALIZE, "completed", details)

    async def _lookup(self, fetch, *args) -> Optional[Dict[str, Any]]:
        """Fetch a record by id; a raising service counts as not found."""
        try:
            return await fetch(*args)
        except Exception as e:
            logger.warning("tool_lookup_failed",
                           tool_name=self.name,
                           error=str(e),
                           error_type=type(e).__name__)
            return None
