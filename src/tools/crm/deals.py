"""Deal tools: create, update and search."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from src.services.base import DealService, OrganizationService
from src.utils.config.constants import (
    CREATE_DEAL_TOOL,
    DEAL_KEY,
    NOT_SET,
    SEARCH_DEALS_TOOL,
    STEP_CHANGE_ANALYSIS,
    STEP_ORGANIZATION_RESOLUTION,
    STEP_VALIDATION,
    UPDATE_DEAL_TOOL,
)
from src.utils.helpers import date_part, format_amount, format_probability, person_display_name

from ..base import BaseCRMTool, ErrorCode, logger
from .common import ChangeSet, find_name_matches


def generate_deal_name(organization_name: str, project_description: Optional[str] = None) -> str:
    if project_description:
        return f"{organization_name} - {project_description}"
    return f"{organization_name} - New Project {date.today().year}"


class CreateDealTool(BaseCRMTool):
    """Create a deal, finding or creating its organization by name."""
    name = CREATE_DEAL_TOOL
    description = ("Create a new deal in the CRM. Finds the organization by name (exact match first, "
                   "then the closest match) or creates it automatically.")
    entity_key = DEAL_KEY
    action = "create"

    class Input(BaseModel):
        amount: float = Field(gt=0, description="Deal value in the specified currency")
        organization_name: str = Field(
            description="Organization name - will search for existing organization or create new one")
        name: Optional[str] = Field(None, description="Deal name/title (will be auto-generated if not provided)")
        currency: Optional[str] = Field(None, description="Currency code (EUR, USD, GBP, CHF)")
        project_description: Optional[str] = Field(
            None, description="Brief description of the project/deal, used in the generated name")
        expected_close_date: Optional[str] = Field(None, description="Expected closing date (YYYY-MM-DD)")

    def __init__(self, deal_service: DealService, organization_service: OrganizationService, settings=None):
        super().__init__(settings)
        self.deal_service = deal_service
        self.organization_service = organization_service

    async def _resolve_organization(self, organization_name: str, context):
        """Return (organization, warnings, created)."""
        self._step(STEP_ORGANIZATION_RESOLUTION, "in_progress", f'Searching for organization "{organization_name}"')
        organizations = await self.organization_service.get_organizations(context.user_id, context.auth_token)
        # Only reuse organizations whose name contains the requested one
        exact, close = find_name_matches(organization_name, organizations, self.settings.close_match_limit,
                                         containing_only=True)

        if exact:
            self._step(STEP_ORGANIZATION_RESOLUTION, "completed",
                       f'Found exact match: "{exact["name"]}"', data={"id": exact["id"]})
            return exact, [], False

        if close:
            match = close[0]
            self._step(STEP_ORGANIZATION_RESOLUTION, "completed",
                       f'Using close match: "{match["name"]}"', data={"id": match["id"]})
            warning = (f'No organization named "{organization_name}" found; '
                       f'using close match "{match["name"]}" (ID: {match["id"]})')
            return match, [warning], False

        created = await self.organization_service.create_organization(
            context.user_id,
            {
                "name": organization_name,
                "address": None,
                "notes": "Created automatically during deal creation",
            },
            context.auth_token
        )
        if not created or not created.get("id"):
            raise RuntimeError(f'Failed to create organization "{organization_name}"')

        self._step(STEP_ORGANIZATION_RESOLUTION, "completed",
                   f'Created new organization: "{created["name"]}"', data={"id": created["id"]})
        return created, [], True

    async def _execute(self, params: Input, context):
        organization_name = params.organization_name.strip()
        self._start(f'Starting deal creation for "{organization_name}"')

        self._step(STEP_VALIDATION, "in_progress", "Validating deal details")
        if not organization_name:
            return self._invalid("Organization name is required.")
        self._step(STEP_VALIDATION, "completed", "Deal details are valid")

        organization, warnings, organization_created = await self._resolve_organization(organization_name, context)

        deal_name = params.name or generate_deal_name(organization_name, params.project_description)
        currency = params.currency or self.settings.default_currency

        self._step("deal_creation", "in_progress", f'Creating deal "{deal_name}"')
        created = await self.deal_service.create_deal(
            context.user_id,
            {
                "name": deal_name,
                "amount": params.amount,
                "currency": currency,
                "organization_id": organization["id"],
                "expected_close_date": params.expected_close_date,
                "assigned_to_user_id": context.user_id,
            },
            context.auth_token
        )

        if not created or not created.get("id"):
            self._step("deal_creation", "failed", "Service returned no deal")
            return self._failure(ErrorCode.CREATION_FAILED,
                                 f'❌ Failed to create deal "{deal_name}": no record was returned.')
        self._step("deal_creation", "completed", f'Created deal "{created.get("name", deal_name)}"',
                   data={"id": created["id"]})

        amount = format_amount(params.amount, currency)
        return self._success(
            created,
            f'✅ Successfully created deal "{created.get("name", deal_name)}" worth {amount} '
            f'for {organization["name"]}.',
            details={
                "id": created["id"],
                "organization": organization["name"],
                "organization_id": organization["id"],
                "organization_created": organization_created,
                "amount": amount,
                "created_at": created.get("created_at"),
            },
            warnings=warnings
        )


class UpdateDealTool(BaseCRMTool):
    """Update a deal, writing only the fields that changed."""
    name = UPDATE_DEAL_TOOL
    description = ("Update an existing deal (name, amount, currency, close date, contact, "
                   "organization, owner, probability). Only fields that differ are written.")
    entity_key = DEAL_KEY
    action = "update"

    class Input(BaseModel):
        deal_id: str = Field(description="ID of the deal to update (required)")
        name: Optional[str] = Field(None, description="New deal name")
        amount: Optional[float] = Field(None, ge=0, description="New deal value")
        currency: Optional[str] = Field(None, description="New currency code")
        expected_close_date: Optional[str] = Field(None, description="New expected close date (YYYY-MM-DD)")
        person_id: Optional[str] = Field(None, description="ID of the primary contact")
        organization_id: Optional[str] = Field(None, description="ID of the organization")
        assigned_to_user_id: Optional[str] = Field(None, description="ID of the user who owns the deal")
        deal_specific_probability: Optional[float] = Field(
            None, ge=0, le=1, description="Win probability between 0 and 1")

    def __init__(self, deal_service: DealService, settings=None):
        super().__init__(settings)
        self.deal_service = deal_service

    def _analyze_changes(self, params: Input, existing) -> ChangeSet:
        default_currency = self.settings.default_currency
        existing_currency = existing.get("currency") or default_currency
        changes = ChangeSet()

        if params.name and params.name != existing.get("name"):
            changes.replace("name", existing.get("name"), params.name)

        if params.amount is not None and params.amount != existing.get("amount"):
            old_amount = format_amount(existing["amount"], existing_currency) if existing.get("amount") else NOT_SET
            new_amount = format_amount(params.amount, params.currency or existing_currency)
            changes.add("amount", params.amount, f"amount: {old_amount} → {new_amount}")

        if params.currency and params.currency != existing.get("currency"):
            changes.replace("currency", existing_currency, params.currency)

        if params.expected_close_date:
            existing_date = date_part(existing.get("expected_close_date"))
            if date_part(params.expected_close_date) != existing_date:
                changes.replace("expected_close_date", existing_date, params.expected_close_date, "close date")

        if params.person_id and params.person_id != existing.get("person_id"):
            changes.add("person_id", params.person_id, "primary contact: Changed")

        if params.organization_id and params.organization_id != existing.get("organization_id"):
            changes.add("organization_id", params.organization_id, "organization: Changed")

        if params.assigned_to_user_id and params.assigned_to_user_id != existing.get("assigned_to_user_id"):
            changes.add("assigned_to_user_id", params.assigned_to_user_id, "assigned user: Changed")

        probability = params.deal_specific_probability
        if probability is not None and probability != existing.get("deal_specific_probability"):
            changes.add("deal_specific_probability", probability,
                        f"probability: {format_probability(existing.get('deal_specific_probability'))} → "
                        f"{probability * 100:.1f}%")

        return changes

    async def _execute(self, params: Input, context):
        deal_id = params.deal_id
        self._start(f"Starting update for deal ID: {deal_id}")

        self._step(STEP_VALIDATION, "in_progress", "Validating deal exists and user has access")
        existing = await self._lookup(self.deal_service.get_deal_by_id,
                                      context.user_id, deal_id, context.auth_token)
        if not existing:
            self._step(STEP_VALIDATION, "failed", "Deal not found or access denied")
            return self._failure(
                ErrorCode.DEAL_NOT_FOUND,
                f'❌ Deal with ID "{deal_id}" not found or you don\'t have access.'
            )
        amount_label = (format_amount(existing["amount"], existing.get("currency") or self.settings.default_currency)
                        if existing.get("amount") else "No amount set")
        self._step(STEP_VALIDATION, "completed", f'Found deal: "{existing.get("name")}" ({amount_label})')

        self._step(STEP_CHANGE_ANALYSIS, "in_progress", "Analyzing requested changes")
        changes = self._analyze_changes(params, existing)

        if not changes:
            self._step(STEP_CHANGE_ANALYSIS, "completed", "No changes detected - deal is already up to date")
            return self._success(
                existing,
                f'✅ Deal "{existing.get("name")}" is already up to date.',
                changes_detected=0
            )
        self._step(STEP_CHANGE_ANALYSIS, "completed", f"Detected {len(changes)} changes: {changes.describe()}")

        self._step("deal_update", "in_progress", f"Applying {len(changes)} changes to deal")
        updated = await self.deal_service.update_deal(context.user_id, deal_id, changes.payload, context.auth_token)

        if not updated or updated.get("id") != deal_id:
            self._step("deal_update", "failed", "Service did not confirm the update")
            return self._failure(
                ErrorCode.UPDATE_FAILED,
                f'❌ Failed to update deal "{existing.get("name")}": the update was not confirmed.'
            )
        self._step("deal_update", "completed", f'Successfully updated deal "{updated.get("name")}"')

        return self._success(
            updated,
            f'✅ Successfully updated deal "{updated.get("name")}".',
            details={
                "id": updated["id"],
                "name": updated.get("name"),
                "amount": updated.get("amount"),
                "currency": updated.get("currency") or self.settings.default_currency,
                "expected_close_date": updated.get("expected_close_date") or NOT_SET,
                "organization_id": updated.get("organization_id") or "No organization",
                "person_id": updated.get("person_id") or "No contact",
                "updated_at": updated.get("updated_at"),
                "changes_applied": len(changes),
                "changed_fields": changes.changes,
            },
            changes_detected=len(changes)
        )


class SearchDealsTool(BaseCRMTool):
    """Filter the user's deals by text, amount range and stage."""
    name = SEARCH_DEALS_TOOL
    description = ("Search and filter deals. Use this when users ask about finding deals, checking deal "
                   "status or getting pipeline overviews. Leave all filters empty to list every deal.")
    entity_key = "deals"
    action = "search"

    class Input(BaseModel):
        search_term: Optional[str] = Field(
            None, description="Text matched against deal name, description, organization or contact name")
        min_amount: Optional[float] = Field(None, description="Minimum deal value")
        max_amount: Optional[float] = Field(None, description="Maximum deal value")
        stage: Optional[str] = Field(None, description="Deal stage/status, e.g. Proposal or Closed Won")
        limit: Optional[int] = Field(None, ge=1, description="Maximum number of deals to return")

    def __init__(self, deal_service: DealService, settings=None):
        super().__init__(settings)
        self.deal_service = deal_service

    @staticmethod
    def _matches_term(deal, term: str) -> bool:
        organization = deal.get("organization") or {}
        person = deal.get("person") or {}
        candidates = [
            deal.get("name"),
            deal.get("description"),
            organization.get("name"),
            person_display_name(person) if person else None,
        ]
        return any(term in (value or "").lower() for value in candidates)

    @staticmethod
    def _matches_stage(deal, stage: str) -> bool:
        candidates = [
            (deal.get("currentWfmStep") or {}).get("name"),
            (deal.get("currentWfmStatus") or {}).get("name"),
            deal.get("stage"),
            deal.get("status"),
        ]
        return any(stage in (value or "").lower() for value in candidates)

    async def _execute(self, params: Input, context):
        self._start("Searching deals")

        deals = await self.deal_service.get_deals(context.user_id, context.auth_token) or []
        filters = params.model_dump(exclude_none=True)

        if params.search_term:
            term = params.search_term.lower()
            deals = [deal for deal in deals if self._matches_term(deal, term)]
        if params.min_amount is not None:
            deals = [deal for deal in deals if (deal.get("amount") or 0) >= params.min_amount]
        if params.max_amount is not None:
            deals = [deal for deal in deals if (deal.get("amount") or 0) <= params.max_amount]
        if params.stage:
            stage = params.stage.lower()
            deals = [deal for deal in deals if self._matches_stage(deal, stage)]

        total = len(deals)
        limit = params.limit or self.settings.search_limit
        deals = deals[:limit]
        self._step("search", "completed", f"Matched {total} deals", data={"filters": filters})

        logger.debug("deal_search_complete",
                     tool_name=self.name,
                     total_count=total,
                     returned=len(deals))

        if not deals:
            message = "⚠️ No deals found matching the search criteria."
        else:
            noun = "deal" if total == 1 else "deals"
            shown = f" (showing first {len(deals)})" if total > len(deals) else ""
            message = f"✅ Found {total} {noun}{shown}."

        return self._success(
            deals,
            message,
            details={"total_count": total, "filters_applied": filters, "limit": limit}
        )
