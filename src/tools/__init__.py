"""Tool registry, CRM tools and the think tool."""

from .base import (
    ToolDefinition,
    ToolExecutionContext,
    ToolExecutor,
    BaseCRMTool,
    ErrorCode,
    StepStatus,
    WorkflowStep,
    WorkflowTrace,
    ToolSuccess,
    ToolFailure,
    ToolResult,
)
from .exceptions import ToolError, ToolNotFoundError, ThoughtPersistenceError
from .registry import ToolRegistry, build_default_registry
from .think import ThinkTool, ThinkResult, ThinkMetadata
from .crm import (
    CreateOrganizationTool,
    UpdateOrganizationTool,
    SearchOrganizationsTool,
    CreatePersonTool,
    UpdatePersonTool,
    CreateDealTool,
    UpdateDealTool,
    SearchDealsTool,
)
from .langchain_adapter import to_langchain_tools

__all__ = [
    # Result model
    "ToolDefinition",
    "ToolExecutionContext",
    "ToolExecutor",
    "BaseCRMTool",
    "ErrorCode",
    "StepStatus",
    "WorkflowStep",
    "WorkflowTrace",
    "ToolSuccess",
    "ToolFailure",
    "ToolResult",

    # Errors
    "ToolError",
    "ToolNotFoundError",
    "ThoughtPersistenceError",

    # Registry
    "ToolRegistry",
    "build_default_registry",
    "to_langchain_tools",

    # Tools
    "ThinkTool",
    "ThinkResult",
    "ThinkMetadata",
    "CreateOrganizationTool",
    "UpdateOrganizationTool",
    "SearchOrganizationsTool",
    "CreatePersonTool",
    "UpdatePersonTool",
    "CreateDealTool",
    "UpdateDealTool",
    "SearchDealsTool",
]
