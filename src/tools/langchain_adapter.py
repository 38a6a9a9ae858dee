"""Expose registry tools as LangChain structured tools.

The registry stays the single dispatch path: each StructuredTool built here
is a thin coroutine around ``ToolRegistry.execute_tool`` bound to one
conversation and caller, so a chat model can be wired up with
``llm.bind_tools(to_langchain_tools(...))``.
"""

from typing import Any, Dict, List, Optional

from langchain_core.tools import StructuredTool

from src.utils.storage.thought_store import ThoughtStore

from .base import ToolDefinition, logger
from .registry import ToolRegistry


def _to_json_ready(result: Any) -> Any:
    return result.to_dict() if hasattr(result, "to_dict") else result


def _make_tool(registry: ToolRegistry, definition: ToolDefinition, thought_store: ThoughtStore,
               conversation_id: str, auth_token: Optional[str], user_id: Optional[str]) -> StructuredTool:

    async def _call(**tool_input) -> Dict[str, Any]:
        result = await registry.execute_tool(
            definition.name,
            tool_input,
            thought_store,
            conversation_id,
            auth_token=auth_token,
            user_id=user_id,
        )
        return _to_json_ready(result)

    return StructuredTool(
        name=definition.name,
        description=definition.description,
        args_schema=definition.input_schema,
        coroutine=_call,
    )


def to_langchain_tools(registry: ToolRegistry, thought_store: ThoughtStore, conversation_id: str,
                       auth_token: Optional[str] = None, user_id: Optional[str] = None) -> List[StructuredTool]:
    """Build one StructuredTool per registered tool, in registration order."""
    tools = [
        _make_tool(registry, definition, thought_store, conversation_id, auth_token, user_id)
        for definition in registry.get_tool_definitions()
    ]
    logger.debug("langchain_tools_built",
                 conversation_id=conversation_id,
                 tool_count=len(tools))
    return tools
