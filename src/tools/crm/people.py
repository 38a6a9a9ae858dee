"""Person (contact) tools: create and update."""

from typing import Optional

from pydantic import BaseModel, Field

from src.services.base import PersonService
from src.utils.config.constants import (
    CREATE_PERSON_TOOL,
    NOT_SPECIFIED,
    PERSON_KEY,
    STEP_CHANGE_ANALYSIS,
    STEP_DUPLICATE_CHECK,
    STEP_VALIDATION,
    UPDATE_PERSON_TOOL,
)
from src.utils.helpers import format_phone_number, person_display_name

from ..base import BaseCRMTool, ErrorCode
from .common import ChangeSet, find_email_match, find_similar_people, person_summary

NO_ORGANIZATION = "No organization"


class CreatePersonTool(BaseCRMTool):
    """Create a person unless one with the same email exists."""
    name = CREATE_PERSON_TOOL
    description = ("Create a new person/contact. Rejects an email address that is already in use "
                   "and reports people with similar names as warnings. Phone numbers are auto-formatted.")
    entity_key = PERSON_KEY
    action = "create"

    class Input(BaseModel):
        first_name: Optional[str] = Field(None, description="First name")
        last_name: Optional[str] = Field(None, description="Last name")
        email: Optional[str] = Field(None, description="Email address (checked for duplicates)")
        phone: Optional[str] = Field(None, description="Phone number (will be auto-formatted)")
        organization_id: Optional[str] = Field(None, description="Organization ID to associate the person with")
        notes: Optional[str] = Field(None, description="Additional notes about the person")

    def __init__(self, person_service: PersonService, settings=None):
        super().__init__(settings)
        self.person_service = person_service

    async def _execute(self, params: Input, context):
        full_name = person_display_name(params.model_dump())
        self._start(f'Starting creation of person "{full_name}"')

        self._step(STEP_VALIDATION, "in_progress", "Validating person details")
        if not (params.first_name or params.last_name or params.email):
            return self._invalid("At least first name, last name, or email is required.")
        self._step(STEP_VALIDATION, "completed", "Person details are valid")

        self._step(STEP_DUPLICATE_CHECK, "in_progress",
                   f'Checking for existing people with email "{params.email}"' if params.email
                   else "Checking for people with similar names")
        people = await self.person_service.get_people(context.user_id, context.auth_token)

        if params.email:
            duplicate = find_email_match(params.email, people)
            if duplicate:
                self._step(STEP_DUPLICATE_CHECK, "failed", f'Email "{params.email}" already in use')
                return self._failure(
                    ErrorCode.DUPLICATE_PERSON,
                    f'❌ Person with email "{params.email}" already exists.',
                    existing=person_summary(duplicate),
                    suggestion=f"Use existing person ID: {duplicate['id']} or use a different email address"
                )

        similar = find_similar_people(params.first_name, params.last_name, people,
                                      self.settings.close_match_limit)
        warnings = [
            f'Similar person exists: "{person_display_name(p)}" (ID: {p["id"]}, email: {p.get("email") or NOT_SPECIFIED})'
            for p in similar
        ]
        self._step(STEP_DUPLICATE_CHECK, "completed", f"No duplicate found ({len(similar)} similar people)")

        phone = format_phone_number(params.phone)

        self._step("person_creation", "in_progress", f'Creating person "{full_name}"')
        created = await self.person_service.create_person(
            context.user_id,
            {
                "first_name": params.first_name or None,
                "last_name": params.last_name or None,
                "email": params.email or None,
                "phone": phone or None,
                "organization_id": params.organization_id or None,
                "notes": params.notes or None,
            },
            context.auth_token
        )

        if not created or not created.get("id"):
            self._step("person_creation", "failed", "Service returned no person")
            return self._failure(ErrorCode.CREATION_FAILED,
                                 f'❌ Failed to create person "{full_name}": no record was returned.')
        self._step("person_creation", "completed", f'Created person "{full_name}"', data={"id": created["id"]})

        return self._success(
            created,
            f'✅ Successfully created person "{full_name}".',
            details={
                "id": created["id"],
                "full_name": full_name,
                "first_name": created.get("first_name") or NOT_SPECIFIED,
                "last_name": created.get("last_name") or NOT_SPECIFIED,
                "email": created.get("email") or NOT_SPECIFIED,
                "phone": created.get("phone") or NOT_SPECIFIED,
                "organization_linked": bool(params.organization_id),
                "created_at": created.get("created_at"),
                "phone_auto_formatted": bool(params.phone) and phone != params.phone,
            },
            warnings=warnings
        )


class UpdatePersonTool(BaseCRMTool):
    """Update a person, writing only the fields that changed."""
    name = UPDATE_PERSON_TOOL
    description = ("Update an existing person/contact. Only fields that differ are written; a new "
                   "email must not belong to another person. Pass organization_id null to remove "
                   "the organization association.")
    entity_key = PERSON_KEY
    action = "update"

    class Input(BaseModel):
        person_id: str = Field(description="ID of the person to update (required)")
        first_name: Optional[str] = Field(None, description="New first name")
        last_name: Optional[str] = Field(None, description="New last name")
        email: Optional[str] = Field(None, description="New email address (will be checked for duplicates)")
        phone: Optional[str] = Field(None, description="New phone number (will be auto-formatted)")
        organization_id: Optional[str] = Field(
            None, description="Organization ID to associate with (or null to remove association)")
        notes: Optional[str] = Field(None, description="Additional notes about the person")

    def __init__(self, person_service: PersonService, settings=None):
        super().__init__(settings)
        self.person_service = person_service

    async def _execute(self, params: Input, context):
        person_id = params.person_id
        self._start(f"Starting update for person ID: {person_id}")

        self._step(STEP_VALIDATION, "in_progress", "Validating person exists and user has access")
        existing = await self._lookup(self.person_service.get_person_by_id,
                                      context.user_id, person_id, context.auth_token)
        if not existing:
            self._step(STEP_VALIDATION, "failed", "Person not found or access denied")
            return self._failure(
                ErrorCode.PERSON_NOT_FOUND,
                f'❌ Person with ID "{person_id}" not found or you don\'t have access.'
            )
        full_name = person_display_name(existing)
        self._step(STEP_VALIDATION, "completed",
                   f'Found person: "{full_name}" ({existing.get("email") or "No email"})')

        if params.email and params.email != existing.get("email"):
            self._step(STEP_DUPLICATE_CHECK, "in_progress", f'Checking for email conflicts: "{params.email}"')
            people = await self.person_service.get_people(context.user_id, context.auth_token)
            conflict = find_email_match(params.email, people, exclude_id=person_id)
            if conflict:
                self._step(STEP_DUPLICATE_CHECK, "failed",
                           f'Email "{params.email}" already in use by another person')
                return self._failure(
                    ErrorCode.EMAIL_CONFLICT,
                    f'❌ Email "{params.email}" is already in use by another person.',
                    existing=person_summary(conflict),
                    suggestion=f"Use existing person ID: {conflict['id']} or use a different email address"
                )
            self._step(STEP_DUPLICATE_CHECK, "completed", f'Email "{params.email}" is available')

        # Compare the normalised number with the stored one
        phone = format_phone_number(params.phone) if params.phone else params.phone
        if params.phone and phone != params.phone:
            self._step("phone_formatting", "completed", f'Formatted phone: "{params.phone}" → "{phone}"')

        self._step(STEP_CHANGE_ANALYSIS, "in_progress", "Analyzing requested changes")
        changes = ChangeSet()
        if params.first_name and params.first_name != existing.get("first_name"):
            changes.replace("first_name", existing.get("first_name"), params.first_name, "first name")
        if params.last_name and params.last_name != existing.get("last_name"):
            changes.replace("last_name", existing.get("last_name"), params.last_name, "last name")
        if params.email and params.email != existing.get("email"):
            changes.replace("email", existing.get("email"), params.email)
        if phone and phone != existing.get("phone"):
            changes.replace("phone", existing.get("phone"), phone)
        # An explicit null clears the association; an omitted field leaves it alone
        if "organization_id" in params.model_fields_set and params.organization_id != existing.get("organization_id"):
            changes.add("organization_id", params.organization_id,
                        f"organization: {existing.get('organization_id') or NO_ORGANIZATION} → "
                        f"{params.organization_id or NO_ORGANIZATION}")
        if params.notes and params.notes != existing.get("notes"):
            changes.add("notes", params.notes, "notes: Updated")

        if not changes:
            self._step(STEP_CHANGE_ANALYSIS, "completed", "No changes detected - person is already up to date")
            return self._success(
                existing,
                f'✅ Person "{full_name}" is already up to date.',
                changes_detected=0
            )
        self._step(STEP_CHANGE_ANALYSIS, "completed", f"Detected {len(changes)} changes: {changes.describe()}")

        self._step("person_update", "in_progress", f"Applying {len(changes)} changes to person")
        updated = await self.person_service.update_person(
            context.user_id, person_id, changes.payload, context.auth_token
        )

        if not updated or updated.get("id") != person_id:
            self._step("person_update", "failed", "Service did not confirm the update")
            return self._failure(
                ErrorCode.UPDATE_FAILED,
                f'❌ Failed to update person "{full_name}": the update was not confirmed.'
            )

        updated_name = person_display_name(updated)
        self._step("person_update", "completed", f'Successfully updated person "{updated_name}"')

        return self._success(
            updated,
            f'✅ Successfully updated person "{updated_name}".',
            details={
                "id": updated["id"],
                "full_name": updated_name,
                "first_name": updated.get("first_name") or NOT_SPECIFIED,
                "last_name": updated.get("last_name") or NOT_SPECIFIED,
                "email": updated.get("email") or NOT_SPECIFIED,
                "phone": updated.get("phone") or NOT_SPECIFIED,
                "organization_id": updated.get("organization_id") or NO_ORGANIZATION,
                "updated_at": updated.get("updated_at"),
                "changes_applied": len(changes),
                "changed_fields": changes.changes,
                "phone_auto_formatted": bool(params.phone) and phone != params.phone,
            },
            changes_detected=len(changes)
        )
