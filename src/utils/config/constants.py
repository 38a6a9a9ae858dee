"""
Central constants for the CRM agent tool pipeline.

Tool names, workflow step names and entity keys are shared between the
tools, the registry and the response parser; keeping them here avoids
string duplication between producers and consumers.
"""

# Tool names (advertised to the model)
THINK_TOOL = "think"
CREATE_ORGANIZATION_TOOL = "create_organization"
UPDATE_ORGANIZATION_TOOL = "update_organization"
SEARCH_ORGANIZATIONS_TOOL = "search_organizations"
CREATE_PERSON_TOOL = "create_person"
UPDATE_PERSON_TOOL = "update_person"
CREATE_DEAL_TOOL = "create_deal"
UPDATE_DEAL_TOOL = "update_deal"
SEARCH_DEALS_TOOL = "search_deals"

# Entity keys used in tool results ("organization", "existing_organization", ...)
ORGANIZATION_KEY = "organization"
PERSON_KEY = "person"
DEAL_KEY = "deal"

# Workflow step names shared by the mutation tools
STEP_INITIALIZE = "initialize"
STEP_VALIDATION = "validation"
STEP_DUPLICATE_CHECK = "duplicate_check"
STEP_CHANGE_ANALYSIS = "change_analysis"
STEP_ORGANIZATION_RESOLUTION = "organization_resolution"
STEP_ERROR = "error"

# Display placeholders
NOT_SET = "Not set"
NOT_SPECIFIED = "Not specified"
UNNAMED_PERSON = "Unnamed Person"

# Reasoning trace persistence
THOUGHTS_TABLE = "agent_thoughts"
THOUGHT_TYPE_REASONING = "reasoning"

# Prefix of generated tool request ids
REQUEST_ID_PREFIX = "tool"
