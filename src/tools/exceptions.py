"""Tool Pipeline Exceptions"""


class ToolError(Exception):
    """Base exception for tool dispatch and execution errors"""
    pass


class ToolNotFoundError(ToolError):
    """No tool is registered under the requested name"""
    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool '{tool_name}' not found")


class ThoughtPersistenceError(ToolError):
    """A structured thought could not be written to the thought store"""
    def __init__(self, conversation_id: str, original_error: Exception):
        self.conversation_id = conversation_id
        self.original_error = original_error
        super().__init__(f"Failed to persist thought for conversation {conversation_id}: {str(original_error)}")
