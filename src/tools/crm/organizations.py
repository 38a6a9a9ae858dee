"""Organization tools: create, update and search."""

from typing import Optional

from pydantic import BaseModel, Field

from src.services.base import OrganizationService
from src.utils.config.constants import (
    CREATE_ORGANIZATION_TOOL,
    NOT_SPECIFIED,
    ORGANIZATION_KEY,
    SEARCH_ORGANIZATIONS_TOOL,
    STEP_CHANGE_ANALYSIS,
    STEP_DUPLICATE_CHECK,
    STEP_VALIDATION,
    UPDATE_ORGANIZATION_TOOL,
)

from ..base import BaseCRMTool, ErrorCode, logger
from .common import ChangeSet, find_name_matches, organization_summary


class CreateOrganizationTool(BaseCRMTool):
    """Create an organization unless one with the same name exists."""
    name = CREATE_ORGANIZATION_TOOL
    description = ("Create a new organization in the CRM. Checks for an existing organization "
                   "with the same name first and reports similar names as warnings.")
    entity_key = ORGANIZATION_KEY
    action = "create"

    class Input(BaseModel):
        name: str = Field(description="Organization name (checked for duplicates)")
        address: Optional[str] = Field(None, description="Postal address of the organization")
        notes: Optional[str] = Field(None, description="Additional notes about the organization")

    def __init__(self, organization_service: OrganizationService, settings=None):
        super().__init__(settings)
        self.organization_service = organization_service

    async def _execute(self, params: Input, context):
        name = params.name.strip()
        self._start(f'Starting creation of organization "{name}"')

        self._step(STEP_VALIDATION, "in_progress", "Validating organization name")
        min_length = self.settings.min_organization_name_length
        if len(name) < min_length:
            return self._invalid(f"Organization name must be at least {min_length} characters long.",
                                 name=name)
        self._step(STEP_VALIDATION, "completed", f'Organization name "{name}" is valid')

        # Search before create
        self._step(STEP_DUPLICATE_CHECK, "in_progress", f'Checking for existing organizations named "{name}"')
        organizations = await self.organization_service.get_organizations(context.user_id, context.auth_token)
        exact, close = find_name_matches(name, organizations, self.settings.close_match_limit)

        if exact:
            self._step(STEP_DUPLICATE_CHECK, "failed", f'Organization "{exact["name"]}" already exists')
            return self._failure(
                ErrorCode.DUPLICATE_ORGANIZATION,
                f'❌ Organization "{name}" already exists.',
                existing=organization_summary(exact),
                suggestion=f"Use existing organization ID: {exact['id']} or choose a different name"
            )

        warnings = [f'Similar organization exists: "{org["name"]}" (ID: {org["id"]})' for org in close]
        self._step(STEP_DUPLICATE_CHECK, "completed",
                   f"No duplicate found ({len(close)} similar organizations)",
                   data={"similar": [org["id"] for org in close]} if close else None)

        self._step("organization_creation", "in_progress", f'Creating organization "{name}"')
        created = await self.organization_service.create_organization(
            context.user_id,
            {
                "name": name,
                "address": (params.address or "").strip() or None,
                "notes": (params.notes or "").strip() or None,
            },
            context.auth_token
        )

        if not created or not created.get("id"):
            self._step("organization_creation", "failed", "Service returned no organization")
            return self._failure(ErrorCode.CREATION_FAILED,
                                 f'❌ Failed to create organization "{name}": no record was returned.')

        self._step("organization_creation", "completed",
                   f'Created organization "{created.get("name", name)}"', data={"id": created["id"]})

        return self._success(
            created,
            f'✅ Successfully created organization "{created.get("name", name)}".',
            details={
                "id": created["id"],
                "name": created.get("name", name),
                "address": created.get("address") or NOT_SPECIFIED,
                "notes": created.get("notes") or NOT_SPECIFIED,
                "created_at": created.get("created_at"),
                "similar_organizations": len(close),
            },
            warnings=warnings
        )


class UpdateOrganizationTool(BaseCRMTool):
    """Update an organization, writing only the fields that changed."""
    name = UPDATE_ORGANIZATION_TOOL
    description = ("Update an existing organization. Only fields that differ are written; "
                   "renaming checks that no other organization already uses the name.")
    entity_key = ORGANIZATION_KEY
    action = "update"

    class Input(BaseModel):
        organization_id: str = Field(description="ID of the organization to update (required)")
        name: Optional[str] = Field(None, description="New organization name (checked for conflicts)")
        address: Optional[str] = Field(None, description="New address")
        notes: Optional[str] = Field(None, description="New notes")

    def __init__(self, organization_service: OrganizationService, settings=None):
        super().__init__(settings)
        self.organization_service = organization_service

    async def _execute(self, params: Input, context):
        organization_id = params.organization_id
        self._start(f"Starting update for organization ID: {organization_id}")

        self._step(STEP_VALIDATION, "in_progress", "Validating organization exists and user has access")
        existing = await self._lookup(self.organization_service.get_organization_by_id,
                                      context.user_id, organization_id, context.auth_token)
        if not existing:
            self._step(STEP_VALIDATION, "failed", "Organization not found or access denied")
            return self._failure(
                ErrorCode.ORGANIZATION_NOT_FOUND,
                f'❌ Organization with ID "{organization_id}" not found or you don\'t have access.'
            )
        name = params.name.strip() if params.name is not None else None
        min_length = self.settings.min_organization_name_length
        if name is not None and len(name) < min_length:
            return self._invalid(f"Organization name must be at least {min_length} characters long.",
                                 name=name)
        self._step(STEP_VALIDATION, "completed", f'Found organization: "{existing.get("name")}"')

        if name and name != existing.get("name"):
            self._step(STEP_DUPLICATE_CHECK, "in_progress", f'Checking for name conflicts: "{name}"')
            organizations = await self.organization_service.get_organizations(context.user_id, context.auth_token)
            others = [org for org in organizations if org.get("id") != organization_id]
            conflict, _ = find_name_matches(name, others)
            if conflict:
                self._step(STEP_DUPLICATE_CHECK, "failed", f'Organization name "{name}" already exists')
                return self._failure(
                    ErrorCode.NAME_CONFLICT,
                    f'❌ Organization name "{name}" already exists.',
                    existing=organization_summary(conflict),
                    suggestion=f"Use existing organization ID: {conflict['id']} or choose a different name"
                )
            self._step(STEP_DUPLICATE_CHECK, "completed", f'Organization name "{name}" is available')

        self._step(STEP_CHANGE_ANALYSIS, "in_progress", "Analyzing requested changes")
        changes = ChangeSet()
        if name and name != existing.get("name"):
            changes.replace("name", existing.get("name"), name)
        if params.address and params.address != existing.get("address"):
            changes.replace("address", existing.get("address"), params.address)
        if params.notes and params.notes != existing.get("notes"):
            changes.add("notes", params.notes, "notes: Updated")

        if not changes:
            self._step(STEP_CHANGE_ANALYSIS, "completed", "No changes detected - organization is already up to date")
            return self._success(
                existing,
                f'✅ Organization "{existing.get("name")}" is already up to date.',
                changes_detected=0
            )
        self._step(STEP_CHANGE_ANALYSIS, "completed", f"Detected {len(changes)} changes: {changes.describe()}")

        self._step("organization_update", "in_progress", f"Applying {len(changes)} changes to organization")
        updated = await self.organization_service.update_organization(
            context.user_id, organization_id, changes.payload, context.auth_token
        )

        if not updated or updated.get("id") != organization_id:
            self._step("organization_update", "failed", "Service did not confirm the update")
            return self._failure(
                ErrorCode.UPDATE_FAILED,
                f'❌ Failed to update organization "{existing.get("name")}": the update was not confirmed.'
            )
        self._step("organization_update", "completed", f'Successfully updated organization "{updated.get("name")}"')

        return self._success(
            updated,
            f'✅ Successfully updated organization "{updated.get("name")}".',
            details={
                "id": updated["id"],
                "name": updated.get("name"),
                "address": updated.get("address") or NOT_SPECIFIED,
                "notes": updated.get("notes") or NOT_SPECIFIED,
                "updated_at": updated.get("updated_at"),
                "changes_applied": len(changes),
                "changed_fields": changes.changes,
            },
            changes_detected=len(changes)
        )


class SearchOrganizationsTool(BaseCRMTool):
    """Find organizations whose name or address contains a search term."""
    name = SEARCH_ORGANIZATIONS_TOOL
    description = ("Search organizations by name or address. Use this before creating an "
                   "organization or a deal to reuse existing records. Leave empty to list all.")
    entity_key = "organizations"
    action = "search"

    class Input(BaseModel):
        search_term: Optional[str] = Field(None, description="Text to match against name or address (partial match)")
        limit: Optional[int] = Field(None, ge=1, description="Maximum number of organizations to return")

    def __init__(self, organization_service: OrganizationService, settings=None):
        super().__init__(settings)
        self.organization_service = organization_service

    async def _execute(self, params: Input, context):
        term = (params.search_term or "").strip().lower()
        self._start(f'Searching organizations for "{term}"' if term else "Listing organizations")

        organizations = await self.organization_service.get_organizations(context.user_id, context.auth_token)
        if term:
            organizations = [
                org for org in organizations
                if term in (org.get("name") or "").lower() or term in (org.get("address") or "").lower()
            ]

        total = len(organizations)
        limit = params.limit or self.settings.search_limit
        organizations = organizations[:limit]
        self._step("search", "completed", f"Matched {total} organizations", data={"returned": len(organizations)})

        logger.debug("organization_search_complete",
                     tool_name=self.name,
                     total_count=total,
                     returned=len(organizations))

        if not organizations:
            message = "⚠️ No organizations found matching the search criteria."
        else:
            noun = "organization" if total == 1 else "organizations"
            shown = f" (showing first {len(organizations)})" if total > len(organizations) else ""
            message = f"✅ Found {total} {noun}{shown}."

        return self._success(
            organizations,
            message,
            details={"total_count": total, "search_term": params.search_term, "limit": limit}
        )
