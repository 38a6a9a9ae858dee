"""Domain service interfaces the CRM tools delegate to.

Records are plain dicts keyed by the CRM's snake_case field names
(``id``, ``name``, ``first_name``, ``organization_id``, ``created_at``, ...).
Every call carries the acting user's id and auth token; access control is
the service's concern, the tools only pass the context through.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

Record = Dict[str, Any]


class OrganizationService(ABC):
    """Organizations visible to a user."""

    @abstractmethod
    async def get_organizations(self, user_id: str, auth_token: str) -> List[Record]:
        ...

    @abstractmethod
    async def get_organization_by_id(self, user_id: str, organization_id: str,
                                     auth_token: str) -> Optional[Record]:
        ...

    @abstractmethod
    async def create_organization(self, user_id: str, data: Record, auth_token: str) -> Optional[Record]:
        ...

    @abstractmethod
    async def update_organization(self, user_id: str, organization_id: str, data: Record,
                                  auth_token: str) -> Optional[Record]:
        ...


class PersonService(ABC):
    """People (contacts) visible to a user."""

    @abstractmethod
    async def get_people(self, user_id: str, auth_token: str) -> List[Record]:
        ...

    @abstractmethod
    async def get_person_by_id(self, user_id: str, person_id: str,
                               auth_token: str) -> Optional[Record]:
        ...

    @abstractmethod
    async def create_person(self, user_id: str, data: Record, auth_token: str) -> Optional[Record]:
        ...

    @abstractmethod
    async def update_person(self, user_id: str, person_id: str, data: Record,
                            auth_token: str) -> Optional[Record]:
        ...


class DealService(ABC):
    """Deals visible to a user."""

    @abstractmethod
    async def get_deals(self, user_id: str, auth_token: str) -> List[Record]:
        ...

    @abstractmethod
    async def get_deal_by_id(self, user_id: str, deal_id: str,
                             auth_token: str) -> Optional[Record]:
        ...

    @abstractmethod
    async def create_deal(self, user_id: str, data: Record, auth_token: str) -> Optional[Record]:
        ...

    @abstractmethod
    async def update_deal(self, user_id: str, deal_id: str, data: Record,
                          auth_token: str) -> Optional[Record]:
        ...
