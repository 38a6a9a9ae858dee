"""Domain services consumed by the CRM tools."""

from .base import OrganizationService, PersonService, DealService
from .memory import InMemoryOrganizationService, InMemoryPersonService, InMemoryDealService

__all__ = [
    "OrganizationService",
    "PersonService",
    "DealService",
    "InMemoryOrganizationService",
    "InMemoryPersonService",
    "InMemoryDealService",
]
