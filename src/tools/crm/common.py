"""Matching and change-tracking helpers shared by the CRM tools."""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.utils.config.constants import NOT_SET
from src.utils.helpers import person_display_name

Record = Dict[str, Any]


def _lower(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def find_name_matches(name: str, records: Sequence[Record], limit: int = 3,
                      containing_only: bool = False) -> Tuple[Optional[Record], List[Record]]:
    """Split records into an exact (case-insensitive) name match and close matches.

    A close match contains the name or is contained by it. With
    ``containing_only`` only records whose name contains the given name
    count. Close matches are capped at ``limit``; the exact match is never
    among them.
    """
    wanted = _lower(name)
    exact = None
    close = []
    for record in records:
        existing = _lower(record.get("name"))
        if not existing:
            continue
        if existing == wanted:
            exact = exact or record
        elif wanted in existing or (existing in wanted and not containing_only):
            close.append(record)
    return exact, close[:limit]


def find_email_match(email: str, people: Sequence[Record],
                     exclude_id: Optional[str] = None) -> Optional[Record]:
    wanted = _lower(email)
    for person in people:
        if person.get("id") != exclude_id and _lower(person.get("email")) == wanted:
            return person
    return None


def find_similar_people(first_name: Optional[str], last_name: Optional[str],
                        people: Sequence[Record], limit: int = 3) -> List[Record]:
    """People whose first or last name contains the given first or last name."""
    first = _lower(first_name)
    last = _lower(last_name)
    matches = []
    for person in people:
        person_first = _lower(person.get("first_name"))
        person_last = _lower(person.get("last_name"))
        if ((first and (first in person_first or first in person_last)) or
                (last and (last in person_last or last in person_first))):
            matches.append(person)
    return matches[:limit]


def organization_summary(organization: Record) -> Record:
    return {
        "id": organization.get("id"),
        "name": organization.get("name"),
        "created_at": organization.get("created_at"),
    }


def person_summary(person: Record) -> Record:
    return {
        "id": person.get("id"),
        "name": person_display_name(person),
        "first_name": person.get("first_name"),
        "last_name": person.get("last_name"),
        "email": person.get("email"),
        "phone": person.get("phone"),
        "created_at": person.get("created_at"),
    }


class ChangeSet:
    """Fields that differ from the stored record, with readable descriptions."""

    def __init__(self):
        self.changes: List[str] = []
        self.payload: Record = {}

    def add(self, field: str, value: Any, description: str):
        self.changes.append(description)
        self.payload[field] = value

    def replace(self, field: str, old: Any, new: Any, label: Optional[str] = None):
        """Record a quoted ``label: "old" → "new"`` change."""
        self.add(field, new, f'{label or field}: "{old or NOT_SET}" → "{new}"')

    def __len__(self) -> int:
        return len(self.changes)

    def __bool__(self) -> bool:
        return bool(self.changes)

    def describe(self) -> str:
        return ", ".join(self.changes)
