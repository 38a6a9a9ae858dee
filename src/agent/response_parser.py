"""Response enhancement: entities, copyable data and suggested actions.

Given the assistant's text response and the tool-call thoughts of the
turn, the parser works out which CRM records the turn was about and what
the user is likely to do next. Only the most recent tool-call payload is
scanned for entities so that records from superseded calls in the same
turn do not resurface.

Parsing is pure: the same inputs always give the same output.
"""

import json
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from src.utils.config import config as default_config, UnifiedConfig
from src.utils.helpers import format_amount, person_display_name
from src.utils.logging.framework import SmartLogger

logger = SmartLogger("agent")

UUID_PATTERN = re.compile(r"([a-f0-9-]{36})")
AMOUNT_PATTERN = re.compile(r"\$?([\d,]+(?:\.\d{2})?)")

# Keys under which tool results carry their record(s)
ENVELOPE_KEYS = ("organization", "organizations", "person", "people", "deal", "deals", "record", "records")


@dataclass
class DetectedEntity:
    type: str  # deal | contact | organization | activity
    id: str
    name: Optional[str] = None
    amount: Optional[float] = None
    organization_name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ActionableData:
    type: str  # id | amount
    value: Any
    label: Optional[str] = None
    copyable: bool = True


@dataclass
class SuggestedAction:
    id: str
    label: str
    action: str  # navigate | copy | create | edit | view | call
    icon: Optional[str] = None
    variant: Optional[str] = None
    target: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
    disabled: bool = False
    tooltip: Optional[str] = None
    entity_id: Optional[str] = None


@dataclass
class EnhancedResponse:
    entities: List[DetectedEntity] = field(default_factory=list)
    actionable_data: List[ActionableData] = field(default_factory=list)
    suggested_actions: List[SuggestedAction] = field(default_factory=list)

    @property
    def has_enhancements(self) -> bool:
        return bool(self.entities or self.actionable_data or self.suggested_actions)

    def actions_for(self, entity_id: str) -> List[SuggestedAction]:
        """Actions generated for one entity."""
        return [a for a in self.suggested_actions if a.entity_id == entity_id]

    @property
    def general_actions(self) -> List[SuggestedAction]:
        """Context actions that belong to no entity."""
        return [a for a in self.suggested_actions if a.entity_id is None]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entities": [asdict(e) for e in self.entities],
            "actionable_data": [asdict(d) for d in self.actionable_data],
            "suggested_actions": [asdict(a) for a in self.suggested_actions],
            "has_enhancements": self.has_enhancements,
        }


def _is_tool_call(thought: Any) -> bool:
    return isinstance(thought, dict) and str(thought.get("type") or "").lower() == "tool_call"


def _raw_payload(thought: Dict[str, Any]) -> Any:
    metadata = thought.get("metadata") or {}
    if not isinstance(metadata, dict):
        metadata = {}
    for candidate in (thought.get("rawData"), metadata.get("rawData"),
                      thought.get("raw_data"), metadata.get("raw_data")):
        if candidate:
            return candidate
    return None


def _records_from_payload(data: Any) -> List[Dict[str, Any]]:
    """Flatten a payload (record, list of records or result envelope) into records."""
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]

    if not isinstance(data, dict):
        return []

    if "id" in data:
        return [data]

    records = []
    for key in ENVELOPE_KEYS:
        value = data.get(key)
        if isinstance(value, dict):
            records.append(value)
        elif isinstance(value, list):
            records.extend(item for item in value if isinstance(item, dict))
    return records


def _is_organization(record: Dict[str, Any]) -> bool:
    return (bool(record.get("id")) and bool(record.get("name"))
            and "amount" not in record and not record.get("deal_specific_probability"))


def _is_deal(record: Dict[str, Any]) -> bool:
    return bool(record.get("id")) and "amount" in record


def _is_contact(record: Dict[str, Any]) -> bool:
    return (bool(record.get("id")) and not record.get("name") and "amount" not in record
            and any(record.get(key) for key in ("first_name", "last_name", "email")))


class ResponseParser:
    """Detects entities and suggests follow-up actions for an assistant response."""

    def __init__(self, settings: Optional[UnifiedConfig] = None):
        self.settings = settings or default_config

    def parse_response(self, content: str, thoughts: Optional[Sequence[Dict[str, Any]]] = None) -> EnhancedResponse:
        content = content or ""
        entities = self.detect_entities(thoughts)
        actionable_data = self.extract_actionable_data(content)
        suggested_actions = self.generate_suggested_actions(entities, content)

        response = EnhancedResponse(
            entities=entities,
            actionable_data=actionable_data,
            suggested_actions=suggested_actions,
        )

        logger.debug("response_parsed",
                     entity_count=len(entities),
                     actionable_count=len(actionable_data),
                     action_count=len(suggested_actions),
                     has_enhancements=response.has_enhancements)
        return response

    def _latest_payload(self, thoughts: Optional[Sequence[Dict[str, Any]]]) -> Any:
        tool_calls = [t for t in (thoughts or []) if _is_tool_call(t)]
        if not tool_calls:
            return None

        raw = _raw_payload(tool_calls[-1])
        if isinstance(raw, str):
            try:
                return json.loads(raw)
            except json.JSONDecodeError as e:
                logger.warning("thought_payload_unparsable",
                               error=str(e),
                               payload_preview=raw[:200])
                return None
        return raw

    def detect_entities(self, thoughts: Optional[Sequence[Dict[str, Any]]]) -> List[DetectedEntity]:
        """Entities described by the most recent tool-call payload, unique by id."""
        records = _records_from_payload(self._latest_payload(thoughts))
        found: Dict[str, DetectedEntity] = {}
        organization_map: Dict[str, Dict[str, Any]] = {}

        # Organizations first so deals can be linked to them
        for record in records:
            if _is_organization(record):
                organization_map[record["id"]] = record
                found[record["id"]] = DetectedEntity(
                    type="organization",
                    id=record["id"],
                    name=record["name"],
                    metadata={
                        "industry": record.get("industry"),
                        "size": record.get("size"),
                        "created_at": record.get("created_at"),
                    },
                )

        for record in records:
            if _is_deal(record):
                found[record["id"]] = self._deal_entity(record, organization_map)

        for record in records:
            if _is_contact(record):
                found[record["id"]] = DetectedEntity(
                    type="contact",
                    id=record["id"],
                    name=person_display_name(record),
                    metadata={
                        "email": record.get("email"),
                        "phone": record.get("phone"),
                        "organization_id": record.get("organization_id"),
                    },
                )

        return list(found.values())

    def _deal_entity(self, record: Dict[str, Any], organization_map: Dict[str, Dict[str, Any]]) -> DetectedEntity:
        organization = organization_map.get(record.get("organization_id")) or {}
        organization_name = organization.get("name")
        amount = record.get("amount")

        name = record.get("name")
        if not name or not str(name).strip():
            if organization_name:
                name = f"{organization_name} Opportunity"
            elif amount is not None:
                name = f"${format_amount(amount)} Deal"
            else:
                name = "Untitled Deal"

        status = (record.get("currentWfmStatus") or {}).get("name") or record.get("status")
        return DetectedEntity(
            type="deal",
            id=record["id"],
            name=name,
            amount=amount,
            organization_name=organization_name,
            metadata={
                "status": status,
                "stage": record.get("stage"),
                "created_at": record.get("created_at"),
                "updated_at": record.get("updated_at"),
                "organization_id": record.get("organization_id"),
            },
        )

    def extract_actionable_data(self, content: str) -> List[ActionableData]:
        """Copyable ids and amounts found in the response text."""
        data = [
            ActionableData(type="id", value=match, label=f"ID {match[:8]}")
            for match in UUID_PATTERN.findall(content)
        ]

        # Digits inside ids are not amounts
        text = UUID_PATTERN.sub(" ", content)
        min_amount = self.settings.parser_min_amount
        for match in AMOUNT_PATTERN.findall(text):
            digits = match.replace(",", "")
            if not digits:
                continue
            value = float(digits)
            if value > min_amount:
                data.append(ActionableData(type="amount", value=value, label=f"${format_amount(value)}"))

        return data

    def generate_suggested_actions(self, entities: Sequence[DetectedEntity], content: str) -> List[SuggestedAction]:
        actions: List[SuggestedAction] = []

        for entity in entities:
            if entity.type == "deal":
                actions.append(SuggestedAction(
                    id=f"view-deal-{entity.id}",
                    label="View Deal",
                    icon="eye",
                    variant="primary",
                    action="navigate",
                    target=f"/deals/{entity.id}",
                    tooltip=f"View details for {entity.name}",
                    entity_id=entity.id,
                ))
                actions.append(SuggestedAction(
                    id=f"edit-deal-{entity.id}",
                    label="Edit",
                    icon="edit",
                    variant="outline",
                    action="navigate",
                    target=f"/deals/{entity.id}/edit",
                    tooltip=f"Edit {entity.name}",
                    entity_id=entity.id,
                ))
            elif entity.type == "organization":
                actions.append(SuggestedAction(
                    id=f"view-org-{entity.id}",
                    label="View Organization",
                    icon="building",
                    variant="primary",
                    action="navigate",
                    target=f"/organizations/{entity.id}",
                    tooltip=f"View details for {entity.name}",
                    entity_id=entity.id,
                ))
                actions.append(SuggestedAction(
                    id=f"add-contact-{entity.id}",
                    label="Add Contact",
                    icon="plus",
                    variant="outline",
                    action="navigate",
                    target=f"/contacts/new?organizationId={entity.id}",
                    tooltip=f"Add new contact to {entity.name}",
                    entity_id=entity.id,
                ))
            elif entity.type == "contact":
                actions.append(SuggestedAction(
                    id=f"view-contact-{entity.id}",
                    label="View Contact",
                    icon="user",
                    variant="primary",
                    action="navigate",
                    target=f"/contacts/{entity.id}",
                    tooltip=f"View details for {entity.name}",
                    entity_id=entity.id,
                ))

        text = content.lower()
        if "created" in text or "new deal" in text:
            actions.append(SuggestedAction(
                id="create-another-deal",
                label="Create Another Deal",
                icon="plus",
                variant="secondary",
                action="navigate",
                target="/deals/new",
                tooltip="Create a new deal",
            ))

        if "search" in text and entities:
            actions.append(SuggestedAction(
                id="refine-search",
                label="Refine Search",
                icon="external",
                variant="outline",
                action="create",
                tooltip="Modify search criteria",
            ))

        return actions
