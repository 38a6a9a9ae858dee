"""
Integration tests for the tool pipeline.

Runs model-style tool calls through the default registry against the
in-memory services and the SQLite thought store, then feeds the results
to the response parser the way the chat layer does.
"""

import re

import pytest

from src.agent import ActionDispatcher, ResponseParser
from src.tools.base import ErrorCode

USER_ID = "user-123"
AUTH_TOKEN = "test-token"
UUID_RE = re.compile(r"[a-f0-9-]{36}")


@pytest.fixture
def call(registry, sqlite_thought_store):
    async def _call(tool_name, tool_input, conversation_id="conv-int"):
        return await registry.execute_tool(tool_name, tool_input, sqlite_thought_store, conversation_id,
                                           auth_token=AUTH_TOKEN, user_id=USER_ID)
    return _call


class TestDealWorkflow:
    """Create, update and surface a deal end to end"""

    async def test_deal_for_new_organization(self, call, memory_services, test_settings):
        created = await call("create_deal", {
            "amount": 75000,
            "organization_name": "Initech",
            "project_description": "Pilot",
        })

        assert created.success
        assert created.details["organization_created"] is True
        deal_id = created.record["id"]
        assert UUID_RE.fullmatch(deal_id)
        assert created.record["name"] == "Initech - Pilot"
        assert created.record["currency"] == "EUR"

        found = await call("search_organizations", {"search_term": "initech"})
        assert [org["id"] for org in found.record] == [created.details["organization_id"]]

        updated = await call("update_deal", {"deal_id": deal_id, "deal_specific_probability": 0.6})
        assert updated.changes_detected == 1
        stored = await memory_services["deals"].get_deal_by_id(USER_ID, deal_id, AUTH_TOKEN)
        assert stored["deal_specific_probability"] == 0.6

        # The chat layer records each tool result as a tool_call thought
        thoughts = [
            {"type": "tool_call", "metadata": {"rawData": created.to_dict()}},
            {"type": "tool_call", "metadata": {"rawData": updated.to_dict()}},
        ]
        parser = ResponseParser(test_settings)
        response = parser.parse_response(
            f"I created the deal {deal_id} worth $75,000 and set the probability to 60%.",
            thoughts,
        )

        assert [(e.type, e.id) for e in response.entities] == [("deal", deal_id)]
        assert [a.id for a in response.actions_for(deal_id)] == [f"view-deal-{deal_id}", f"edit-deal-{deal_id}"]
        assert [a.id for a in response.general_actions] == ["create-another-deal"]
        assert [d.value for d in response.actionable_data if d.type == "amount"] == [75000.0]

        visited = []
        dispatcher = ActionDispatcher(visited.append, lambda value: None)
        for action in response.suggested_actions:
            dispatcher.dispatch(action)
        assert visited == [f"/deals/{deal_id}", f"/deals/{deal_id}/edit", "/deals/new"]

    async def test_existing_organization_is_reused(self, call, memory_services):
        created = await call("create_deal", {"amount": 9000, "organization_name": "acme corp"})

        assert created.details["organization_id"] == "org-1"
        organizations = await memory_services["organizations"].get_organizations(USER_ID, AUTH_TOKEN)
        assert len(organizations) == 2


class TestOrganizationAndPeople:
    """Duplicate handling against stored data"""

    async def test_duplicate_organization(self, call):
        result = await call("create_organization", {"name": "Globex industries"})

        assert result.error is ErrorCode.DUPLICATE_ORGANIZATION
        assert result.to_dict()["existing_organization"]["id"] == "org-2"

    async def test_person_lifecycle(self, call, memory_services):
        created = await call("create_person", {
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email": "ada@example.com",
            "phone": "5559876543",
            "organization_id": "org-1",
        })
        person_id = created.record["id"]

        duplicate = await call("create_person", {"first_name": "Augusta", "email": "ada@example.com"})
        assert duplicate.error is ErrorCode.DUPLICATE_PERSON

        cleared = await call("update_person", {"person_id": person_id, "organization_id": None})
        assert cleared.changes_detected == 1

        stored = await memory_services["people"].get_person_by_id(USER_ID, person_id, AUTH_TOKEN)
        assert stored["organization_id"] is None
        assert stored["phone"] == "(555) 987-6543"

        unchanged = await call("update_person", {"person_id": person_id, "phone": "555 987 6543"})
        assert unchanged.changes_detected == 0

    async def test_users_are_isolated(self, registry, sqlite_thought_store):
        result = await registry.execute_tool("search_organizations", {}, sqlite_thought_store, "conv-int",
                                             auth_token=AUTH_TOKEN, user_id="someone-else")

        assert result.success
        assert result.record == []


class TestThinking:
    """Think tool persistence through the registry"""

    async def test_thoughts_are_persisted(self, call, sqlite_thought_store):
        await call("think", {"reasoning": "Check for duplicates first.", "strategy": "Search", "next_steps": "1. search"})
        await call("think", {"reasoning": "No duplicate found.", "strategy": "Create", "next_steps": "2. create"})

        thoughts = await sqlite_thought_store.get_thoughts("conv-int")

        assert [t["content"] for t in thoughts] == ["Check for duplicates first.", "No duplicate found."]
        assert thoughts[0]["metadata"]["toolType"] == "think"
        assert thoughts[1]["reflection_data"]["confidenceLevel"] == 0.9
