"""Dict-backed domain services for local runs and integration tests.

Each service keeps its records in memory, partitioned by user id. Record
ids are UUID4 strings so that they are picked up by the response parser's
id detection the same way real CRM ids are.
"""

import copy
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from src.utils.logging.framework import SmartLogger

from .base import DealService, OrganizationService, PersonService, Record

logger = SmartLogger("tools")


class _InMemoryCollection:
    """Shared storage logic for the in-memory services."""

    def __init__(self, kind: str, seed: Optional[Dict[str, List[Record]]] = None):
        self.kind = kind
        self._records: Dict[str, Dict[str, Record]] = {}
        for user_id, records in (seed or {}).items():
            for record in records:
                self._insert(user_id, dict(record))

    def _insert(self, user_id: str, record: Record) -> Record:
        now = datetime.now(timezone.utc).isoformat()
        record.setdefault("id", str(uuid.uuid4()))
        record.setdefault("created_at", now)
        record.setdefault("updated_at", now)
        record["user_id"] = user_id
        self._records.setdefault(user_id, {})[record["id"]] = record
        return record

    def all(self, user_id: str) -> List[Record]:
        return [copy.deepcopy(r) for r in self._records.get(user_id, {}).values()]

    def get(self, user_id: str, record_id: str) -> Optional[Record]:
        record = self._records.get(user_id, {}).get(record_id)
        return copy.deepcopy(record) if record else None

    def create(self, user_id: str, data: Record) -> Record:
        record = self._insert(user_id, {k: v for k, v in data.items() if k != "id"})
        logger.debug(f"{self.kind}_created_in_memory", record_id=record["id"])
        return copy.deepcopy(record)

    def update(self, user_id: str, record_id: str, data: Record) -> Optional[Record]:
        record = self._records.get(user_id, {}).get(record_id)
        if record is None:
            return None
        record.update(data)
        record["updated_at"] = datetime.now(timezone.utc).isoformat()
        logger.debug(f"{self.kind}_updated_in_memory",
                     record_id=record_id,
                     fields=list(data.keys()))
        return copy.deepcopy(record)


class InMemoryOrganizationService(OrganizationService):

    def __init__(self, seed: Optional[Dict[str, List[Record]]] = None):
        self._store = _InMemoryCollection("organization", seed)

    async def get_organizations(self, user_id, auth_token):
        return self._store.all(user_id)

    async def get_organization_by_id(self, user_id, organization_id, auth_token):
        return self._store.get(user_id, organization_id)

    async def create_organization(self, user_id, data, auth_token):
        return self._store.create(user_id, data)

    async def update_organization(self, user_id, organization_id, data, auth_token):
        return self._store.update(user_id, organization_id, data)


class InMemoryPersonService(PersonService):

    def __init__(self, seed: Optional[Dict[str, List[Record]]] = None):
        self._store = _InMemoryCollection("person", seed)

    async def get_people(self, user_id, auth_token):
        return self._store.all(user_id)

    async def get_person_by_id(self, user_id, person_id, auth_token):
        return self._store.get(user_id, person_id)

    async def create_person(self, user_id, data, auth_token):
        return self._store.create(user_id, data)

    async def update_person(self, user_id, person_id, data, auth_token):
        return self._store.update(user_id, person_id, data)


class InMemoryDealService(DealService):

    def __init__(self, seed: Optional[Dict[str, List[Record]]] = None):
        self._store = _InMemoryCollection("deal", seed)

    async def get_deals(self, user_id, auth_token):
        return self._store.all(user_id)

    async def get_deal_by_id(self, user_id, deal_id, auth_token):
        return self._store.get(user_id, deal_id)

    async def create_deal(self, user_id, data, auth_token):
        return self._store.create(user_id, data)

    async def update_deal(self, user_id, deal_id, data, auth_token):
        return self._store.update(user_id, deal_id, data)
