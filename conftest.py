"""
Global pytest configuration and fixtures for the CRM agent tool tests.

This file provides shared fixtures, configuration, and utilities for all tests.
Fixtures are organized by scope and purpose to support unit and integration tests.
"""

import os
import sys
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# Log files go to a scratch directory; must be set before src is imported
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="crm-agent-tools-logs-"))

# Add src to Python path for imports
sys.path.insert(0, str(Path(__file__).parent))

# Import our modules
from src.services.base import DealService, OrganizationService, PersonService
from src.services.memory import InMemoryDealService, InMemoryOrganizationService, InMemoryPersonService
from src.tools.base import ToolExecutionContext
from src.tools.registry import build_default_registry
from src.utils.config import UnifiedConfig
from src.utils.storage.thought_store import SQLiteThoughtStore, ThoughtStore


USER_ID = "user-123"
AUTH_TOKEN = "test-token"


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_settings(tmp_path):
    """Settings built from code defaults only (no config file, no .env)."""
    return UnifiedConfig(config_file=str(tmp_path / "missing_config.json"), load_env_file=False)


# ============================================================================
# Execution Context Fixtures
# ============================================================================

@pytest.fixture
def context():
    """Authenticated execution context."""
    return ToolExecutionContext(
        conversation_id="conv-1",
        auth_token=AUTH_TOKEN,
        user_id=USER_ID,
        request_id="tool-1700000000000-abc123def",
    )


@pytest.fixture
def anonymous_context():
    """Context without credentials."""
    return ToolExecutionContext(conversation_id="conv-1")


# ============================================================================
# Sample CRM Data
# ============================================================================

@pytest.fixture
def sample_organizations():
    return [
        {
            "id": "org-1",
            "name": "ACME corp",
            "address": "1 Main Street",
            "notes": None,
            "created_at": "2024-01-10T09:00:00+00:00",
            "updated_at": "2024-01-10T09:00:00+00:00",
        },
        {
            "id": "org-2",
            "name": "Globex Industries",
            "address": None,
            "notes": "Key account",
            "created_at": "2024-02-01T09:00:00+00:00",
            "updated_at": "2024-02-01T09:00:00+00:00",
        },
    ]


@pytest.fixture
def sample_people():
    return [
        {
            "id": "person-1",
            "first_name": "Jane",
            "last_name": "Doe",
            "email": "jane@acme.com",
            "phone": "(555) 123-4567",
            "organization_id": "org-1",
            "notes": None,
            "created_at": "2024-01-11T09:00:00+00:00",
            "updated_at": "2024-01-11T09:00:00+00:00",
        },
        {
            "id": "person-2",
            "first_name": "John",
            "last_name": "Smith",
            "email": "john@globex.com",
            "phone": None,
            "organization_id": "org-2",
            "notes": None,
            "created_at": "2024-02-02T09:00:00+00:00",
            "updated_at": "2024-02-02T09:00:00+00:00",
        },
    ]


@pytest.fixture
def sample_deals():
    return [
        {
            "id": "deal-1",
            "name": "ACME corp - Platform rollout",
            "amount": 50000,
            "currency": "EUR",
            "expected_close_date": "2024-06-30T00:00:00+00:00",
            "organization_id": "org-1",
            "person_id": "person-1",
            "assigned_to_user_id": USER_ID,
            "deal_specific_probability": 0.4,
            "currentWfmStatus": {"name": "Proposal"},
            "created_at": "2024-03-01T09:00:00+00:00",
            "updated_at": "2024-03-01T09:00:00+00:00",
        },
        {
            "id": "deal-2",
            "name": "Globex renewal",
            "amount": 12000,
            "currency": "USD",
            "expected_close_date": None,
            "organization_id": "org-2",
            "person_id": None,
            "assigned_to_user_id": "user-999",
            "deal_specific_probability": None,
            "currentWfmStatus": {"name": "Qualification"},
            "created_at": "2024-03-05T09:00:00+00:00",
            "updated_at": "2024-03-05T09:00:00+00:00",
        },
    ]


# ============================================================================
# Service Mocks
# ============================================================================

@pytest.fixture
def organization_service(sample_organizations):
    """Mock organization service seeded with the sample organizations."""
    service = AsyncMock(spec=OrganizationService)
    by_id = {org["id"]: org for org in sample_organizations}
    service.get_organizations.return_value = sample_organizations
    service.get_organization_by_id.side_effect = lambda user_id, org_id, token: by_id.get(org_id)
    service.create_organization.side_effect = lambda user_id, data, token: {
        "id": "org-new", "created_at": "2024-04-01T09:00:00+00:00", **data
    }
    service.update_organization.side_effect = lambda user_id, org_id, data, token: {
        **by_id[org_id], **data, "updated_at": "2024-04-02T09:00:00+00:00"
    }
    return service


@pytest.fixture
def person_service(sample_people):
    """Mock person service seeded with the sample people."""
    service = AsyncMock(spec=PersonService)
    by_id = {person["id"]: person for person in sample_people}
    service.get_people.return_value = sample_people
    service.get_person_by_id.side_effect = lambda user_id, person_id, token: by_id.get(person_id)
    service.create_person.side_effect = lambda user_id, data, token: {
        "id": "person-new", "created_at": "2024-04-01T09:00:00+00:00", **data
    }
    service.update_person.side_effect = lambda user_id, person_id, data, token: {
        **by_id[person_id], **data, "updated_at": "2024-04-02T09:00:00+00:00"
    }
    return service


@pytest.fixture
def deal_service(sample_deals):
    """Mock deal service seeded with the sample deals."""
    service = AsyncMock(spec=DealService)
    by_id = {deal["id"]: deal for deal in sample_deals}
    service.get_deals.return_value = sample_deals
    service.get_deal_by_id.side_effect = lambda user_id, deal_id, token: by_id.get(deal_id)
    service.create_deal.side_effect = lambda user_id, data, token: {
        "id": "deal-new", "created_at": "2024-04-01T09:00:00+00:00", **data
    }
    service.update_deal.side_effect = lambda user_id, deal_id, data, token: {
        **by_id[deal_id], **data, "updated_at": "2024-04-02T09:00:00+00:00"
    }
    return service


@pytest.fixture
def thought_store():
    """Mock thought store."""
    return AsyncMock(spec=ThoughtStore)


# ============================================================================
# Real Component Fixtures
# ============================================================================

@pytest.fixture
def sqlite_thought_store(tmp_path):
    """SQLite thought store backed by a temporary database file."""
    return SQLiteThoughtStore(database_path=str(tmp_path / "thoughts.db"), timeout=5)


@pytest.fixture
def memory_services(sample_organizations, sample_people, sample_deals):
    """In-memory services seeded with the sample data for USER_ID."""
    return {
        "organizations": InMemoryOrganizationService({USER_ID: sample_organizations}),
        "people": InMemoryPersonService({USER_ID: sample_people}),
        "deals": InMemoryDealService({USER_ID: sample_deals}),
    }


@pytest.fixture
def registry(memory_services, test_settings):
    """Default registry wired to the in-memory services."""
    return build_default_registry(
        memory_services["organizations"],
        memory_services["people"],
        memory_services["deals"],
        settings=test_settings,
    )


# ============================================================================
# Markers and Test Utilities
# ============================================================================

def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test location."""
    for item in items:
        # Add markers based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)

        if "slow" in item.name:
            item.add_marker(pytest.mark.slow)
