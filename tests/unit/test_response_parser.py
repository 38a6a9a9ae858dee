"""
Unit tests for the response parser.

Tests cover:
- Entity detection scoped to the latest tool call
- Deduplication by id
- Deal naming fallbacks
- Copyable ids and amounts
- Suggested actions per entity and from response text
"""

import json

import pytest

from src.agent.response_parser import ResponseParser

DEAL_ID = "3f2b8c1e-9a4d-4e6f-8b7a-1c2d3e4f5a6b"
ORG_ID = "7a6b5c4d-3e2f-4a1b-9c8d-7e6f5a4b3c2d"


def tool_call(raw):
    return {"type": "tool_call", "metadata": {"rawData": raw}}


@pytest.fixture
def parser(test_settings):
    return ResponseParser(test_settings)


class TestEntityDetection:
    """Test detect_entities"""

    def test_no_thoughts(self, parser):
        assert parser.detect_entities(None) == []
        assert parser.detect_entities([{"type": "reasoning", "content": "x"}]) == []

    def test_deal_linked_to_organization(self, parser):
        thoughts = [tool_call([
            {"id": "o1", "name": "ACME corp"},
            {"id": "d1", "name": "", "amount": 50000, "organization_id": "o1",
             "currentWfmStatus": {"name": "Proposal"}},
        ])]

        entities = {e.id: e for e in parser.detect_entities(thoughts)}

        assert entities["o1"].type == "organization"
        assert entities["d1"].type == "deal"
        assert entities["d1"].name == "ACME corp Opportunity"
        assert entities["d1"].organization_name == "ACME corp"
        assert entities["d1"].metadata["status"] == "Proposal"

    @pytest.mark.parametrize("record,expected", [
        ({"id": "d1", "amount": 50000}, "$50,000 Deal"),
        ({"id": "d1", "amount": None}, "Untitled Deal"),
        ({"id": "d1", "name": "Renewal", "amount": 10}, "Renewal"),
    ])
    def test_deal_name_fallbacks(self, parser, record, expected):
        entities = parser.detect_entities([tool_call([record])])

        assert entities[0].name == expected

    def test_only_latest_tool_call_is_used(self, parser):
        thoughts = [
            tool_call([{"id": "old", "name": "Old Org"}]),
            {"type": "reasoning", "content": "thinking"},
            tool_call([{"id": "new", "name": "New Org"}]),
        ]

        assert [e.id for e in parser.detect_entities(thoughts)] == ["new"]

    def test_duplicate_ids_are_merged(self, parser):
        thoughts = [tool_call([
            {"id": "o1", "name": "First"},
            {"id": "o1", "name": "Second"},
        ])]

        entities = parser.detect_entities(thoughts)

        assert len(entities) == 1
        assert entities[0].name == "Second"

    def test_json_string_payload(self, parser):
        thoughts = [{"type": "TOOL_CALL", "rawData": json.dumps({"id": "d1", "name": "Deal", "amount": 5})}]

        assert [e.type for e in parser.detect_entities(thoughts)] == ["deal"]

    def test_unparsable_payload(self, parser):
        assert parser.detect_entities([tool_call("{broken")]) == []

    def test_tool_result_envelope(self, parser):
        result = {
            "success": True,
            "deal": {"id": "d1", "name": "Deal", "amount": 100, "organization_id": "o9"},
            "message": "✅ Successfully created deal",
        }

        entities = parser.detect_entities([tool_call(result)])

        assert [(e.type, e.id) for e in entities] == [("deal", "d1")]
        assert entities[0].organization_name is None

    def test_probability_record_is_not_an_organization(self, parser):
        thoughts = [tool_call([{"id": "x1", "name": "Odd", "deal_specific_probability": 0.5}])]

        assert parser.detect_entities(thoughts) == []

    def test_contacts(self, parser):
        thoughts = [tool_call({"people": [
            {"id": "p1", "first_name": "Jane", "last_name": "Doe", "email": "jane@acme.com"},
        ]})]

        entities = parser.detect_entities(thoughts)

        assert entities[0].type == "contact"
        assert entities[0].name == "Jane Doe"
        assert entities[0].metadata["email"] == "jane@acme.com"


class TestActionableData:
    """Test extract_actionable_data"""

    def test_ids_and_amounts(self, parser):
        data = parser.extract_actionable_data(
            f"Created deal {DEAL_ID} worth $50,000 with 3 contacts and a 100 fee."
        )

        ids = [d for d in data if d.type == "id"]
        amounts = [d for d in data if d.type == "amount"]
        assert [d.value for d in ids] == [DEAL_ID]
        assert ids[0].label == "ID 3f2b8c1e"
        assert [d.value for d in amounts] == [50000.0]
        assert amounts[0].label == "$50,000"
        assert all(d.copyable for d in data)

    def test_decimal_amount(self, parser):
        data = parser.extract_actionable_data("Total: $1,234.56")

        assert data[0].value == 1234.56
        assert data[0].label == "$1,234.56"

    def test_empty_content(self, parser):
        assert parser.extract_actionable_data("") == []


class TestSuggestedActions:
    """Test generate_suggested_actions and parse_response"""

    def test_deal_actions(self, parser):
        response = parser.parse_response(
            "Here is the deal.",
            [tool_call([{"id": "d1", "name": "Renewal", "amount": 500}])],
        )

        assert [a.id for a in response.suggested_actions] == ["view-deal-d1", "edit-deal-d1"]
        view, edit = response.suggested_actions
        assert view.target == "/deals/d1"
        assert edit.target == "/deals/d1/edit"
        assert response.actions_for("d1") == [view, edit]

    def test_organization_actions(self, parser):
        response = parser.parse_response("Found it.", [tool_call([{"id": ORG_ID, "name": "ACME corp"}])])

        targets = [a.target for a in response.actions_for(ORG_ID)]
        assert targets == [f"/organizations/{ORG_ID}", f"/contacts/new?organizationId={ORG_ID}"]

    def test_contact_actions(self, parser):
        response = parser.parse_response("", [tool_call([{"id": "p1", "first_name": "Jane"}])])

        assert [a.id for a in response.suggested_actions] == ["view-contact-p1"]
        assert response.suggested_actions[0].target == "/contacts/p1"

    def test_context_actions(self, parser):
        response = parser.parse_response(
            "I created the deal. Want me to search for more?",
            [tool_call([{"id": "d1", "name": "Renewal", "amount": 500}])],
        )

        general = response.general_actions
        assert [a.id for a in general] == ["create-another-deal", "refine-search"]
        assert general[0].target == "/deals/new"
        assert general[1].action == "create"

    def test_refine_search_needs_entities(self, parser):
        response = parser.parse_response("Your search returned nothing.", [])

        assert response.suggested_actions == []
        assert not response.has_enhancements

    def test_to_dict(self, parser):
        response = parser.parse_response(
            f"New deal {DEAL_ID} for $2,500.",
            [tool_call([{"id": DEAL_ID, "name": "Pilot", "amount": 2500}])],
        )

        data = response.to_dict()
        assert data["has_enhancements"] is True
        assert data["entities"][0]["id"] == DEAL_ID
        assert {d["type"] for d in data["actionable_data"]} == {"id", "amount"}
        assert data["suggested_actions"][0]["entity_id"] == DEAL_ID

    def test_parsing_is_deterministic(self, parser):
        thoughts = [tool_call([{"id": "d1", "name": "Renewal", "amount": 500}])]

        assert parser.parse_response("created", thoughts) == parser.parse_response("created", thoughts)
