"""Dispatch of suggested actions to the host UI.

The host supplies the two side effects it knows how to perform
(navigation and clipboard writes). A custom ``on_action`` callback, when
given, takes over dispatch entirely.
"""

from typing import Callable, Optional

from src.utils.logging.framework import SmartLogger

from .response_parser import SuggestedAction

logger = SmartLogger("agent")


class ActionDispatcher:
    """Default handler for suggested actions."""

    def __init__(self, navigate: Callable[[str], None], copy_to_clipboard: Callable[[str], None],
                 on_action: Optional[Callable[[SuggestedAction], None]] = None):
        self.navigate = navigate
        self.copy_to_clipboard = copy_to_clipboard
        self.on_action = on_action

    def dispatch(self, action: SuggestedAction) -> None:
        if self.on_action is not None:
            logger.debug("action_delegated", action_id=action.id, action_type=action.action)
            self.on_action(action)
            return

        if action.action == "navigate" and action.target:
            logger.info("action_navigate", action_id=action.id, target=action.target)
            self.navigate(action.target)
        elif action.action == "copy" and action.payload and "value" in action.payload:
            logger.info("action_copy", action_id=action.id)
            self.copy_to_clipboard(str(action.payload["value"]))
        else:
            logger.info("action_unhandled",
                        action_id=action.id,
                        action_type=action.action,
                        entity_id=action.entity_id)
