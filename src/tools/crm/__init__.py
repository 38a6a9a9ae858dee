"""CRM tools for organizations, people and deals."""

from .organizations import CreateOrganizationTool, UpdateOrganizationTool, SearchOrganizationsTool
from .people import CreatePersonTool, UpdatePersonTool
from .deals import CreateDealTool, UpdateDealTool, SearchDealsTool

__all__ = [
    "CreateOrganizationTool",
    "UpdateOrganizationTool",
    "SearchOrganizationsTool",
    "CreatePersonTool",
    "UpdatePersonTool",
    "CreateDealTool",
    "UpdateDealTool",
    "SearchDealsTool",
]
