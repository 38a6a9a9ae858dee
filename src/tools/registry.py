"""Tool registry for dispatching model tool calls.

Handles tool registration, definition lookup for model binding, and
per-call dispatch. Every call gets a fresh executor and a fresh
execution context; the registry itself is read-only once the
composition root has finished registering tools.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from src.services.base import DealService, OrganizationService, PersonService
from src.utils.config import UnifiedConfig
from src.utils.config.constants import REQUEST_ID_PREFIX
from src.utils.logging import log_operation
from src.utils.logging.framework import SmartLogger
from src.utils.storage.thought_store import ThoughtStore

from .base import ToolDefinition, ToolExecutionContext, ToolExecutor, generate_id
from .crm import (
    CreateDealTool,
    CreateOrganizationTool,
    CreatePersonTool,
    SearchDealsTool,
    SearchOrganizationsTool,
    UpdateDealTool,
    UpdateOrganizationTool,
    UpdatePersonTool,
)
from .exceptions import ToolNotFoundError
from .think import ThinkTool

logger = SmartLogger("tools")

# (thought_store, conversation_id) -> executor
ExecutorFactory = Callable[[ThoughtStore, str], ToolExecutor]


@dataclass
class RegisteredTool:
    """A tool definition paired with the factory that builds its executor."""
    definition: ToolDefinition
    executor_factory: ExecutorFactory


class ToolRegistry:
    """Name-indexed collection of tools.

    Registration order is preserved so the definitions handed to the
    model are stable between runs.
    """

    def __init__(self):
        self._tools: Dict[str, RegisteredTool] = {}

    def register_tool(self, definition: ToolDefinition, executor_factory: ExecutorFactory):
        """Register a tool; a later registration under the same name wins."""
        if definition.name in self._tools:
            logger.warning("tool_replaced", tool_name=definition.name)

        self._tools[definition.name] = RegisteredTool(definition, executor_factory)

        logger.info("tool_registered",
                    tool_name=definition.name,
                    tool_count=len(self._tools))

    def get_tool_definitions(self) -> List[ToolDefinition]:
        return [tool.definition for tool in self._tools.values()]

    def get_tool_definition(self, tool_name: str) -> Optional[ToolDefinition]:
        tool = self._tools.get(tool_name)
        return tool.definition if tool else None

    def has_tool(self, tool_name: str) -> bool:
        return tool_name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    async def execute_tool(self, tool_name: str, tool_input: Dict[str, Any],
                           thought_store: ThoughtStore, conversation_id: str,
                           auth_token: Optional[str] = None, user_id: Optional[str] = None) -> Any:
        """Dispatch one tool call.

        Args:
            tool_name: Registered tool name
            tool_input: Raw input object from the model
            thought_store: Sink handed to executors that persist reasoning
            conversation_id: Conversation the call belongs to
            auth_token: Caller's auth token (passed through to services)
            user_id: Caller's user id (passed through to services)

        Returns:
            Whatever the executor returns (ToolSuccess, ToolFailure or ThinkResult)

        Raises:
            ToolNotFoundError: If no tool is registered under ``tool_name``
        """
        tool = self._tools.get(tool_name)
        if tool is None:
            logger.error("tool_not_found",
                         tool_name=tool_name,
                         available_tools=list(self._tools.keys()))
            raise ToolNotFoundError(tool_name)

        context = ToolExecutionContext(
            conversation_id=conversation_id,
            auth_token=auth_token,
            user_id=user_id,
            request_id=generate_id(REQUEST_ID_PREFIX),
        )

        with log_operation("tools", "execute_tool",
                           correlation_id=context.request_id,
                           tool_name=tool_name,
                           conversation_id=conversation_id):
            logger.info("tool_dispatch", user_id=user_id)
            executor = tool.executor_factory(thought_store, conversation_id)
            return await executor.execute(tool_input, context)


def build_default_registry(organization_service: OrganizationService,
                           person_service: PersonService,
                           deal_service: DealService,
                           settings: Optional[UnifiedConfig] = None) -> ToolRegistry:
    """Register the think tool and every CRM tool against the given services."""
    registry = ToolRegistry()

    registry.register_tool(
        ThinkTool.definition(),
        lambda thought_store, conversation_id: ThinkTool(thought_store, conversation_id)
    )

    organization_tools = (CreateOrganizationTool, UpdateOrganizationTool, SearchOrganizationsTool)
    for tool_class in organization_tools:
        registry.register_tool(
            tool_class.definition(),
            lambda _store, _conversation, cls=tool_class: cls(organization_service, settings)
        )

    for tool_class in (CreatePersonTool, UpdatePersonTool):
        registry.register_tool(
            tool_class.definition(),
            lambda _store, _conversation, cls=tool_class: cls(person_service, settings)
        )

    registry.register_tool(
        CreateDealTool.definition(),
        lambda _store, _conversation: CreateDealTool(deal_service, organization_service, settings)
    )
    for tool_class in (UpdateDealTool, SearchDealsTool):
        registry.register_tool(
            tool_class.definition(),
            lambda _store, _conversation, cls=tool_class: cls(deal_service, settings)
        )

    return registry
