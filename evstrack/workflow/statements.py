import hashlib
import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from evstrack.clock import Clock
from evstrack.models.statement import (
    GlobalPenaltyItem,
    GlobalPenaltyStatement,
    GlobalPenaltyStatus,
)
from evstrack.reference.data import ReferenceData
from evstrack.statements.aggregator import (
    StatementAggregate,
    aggregate_invoices,
    apply_item_changes,
    build_draft_statement,
    manual_item,
    recalculate_totals,
)
from evstrack.store.collections import Collection
from evstrack.store.repository import EntityStore
from evstrack.telemetry import emit_statement_telemetry
from evstrack.workflow.access import require_supervisor
from evstrack.workflow.errors import (
    DuplicateStatementError,
    InvalidTransitionError,
    StalePreviewError,
)

logger = logging.getLogger("evstrack.workflow.statements")


def statement_fingerprint(statement: GlobalPenaltyStatement) -> str:
    """
    SHA-256 over every line and the general comment. Any edit, including
    one that keeps the line count, changes it.
    """
    payload = {
        "items": sorted(
            [
                item.id,
                item.violation_name,
                item.occurrence_count,
                item.penalty_per_occurrence,
                item.status.value,
                item.is_manual,
            ]
            for item in statement.items
        ),
        "general_comment": statement.manager_general_comment or "",
    }
    serialized = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class RefreshPreview:
    """
    What a refresh would do to a draft statement. Nothing is written
    until commit_refresh() is called with this preview.
    """
    statement_id: str
    aggregate: StatementAggregate
    discarded_items: int
    fingerprint: str
    discarded_manual_items: List[GlobalPenaltyItem] = field(default_factory=list)
    clears_general_comment: bool = False


class StatementService:
    """Monthly global penalty statements. Only Draft statements are editable."""

    def __init__(
        self,
        store: EntityStore,
        reference: ReferenceData,
        clock: Clock,
        contractor_name: str,
    ):
        self.store = store
        self.reference = reference
        self.clock = clock
        self.contractor_name = contractor_name

    def for_period(self, month: int, year: int) -> Optional[GlobalPenaltyStatement]:
        for statement in self.store.list(Collection.STATEMENTS):
            if statement.month == month and statement.year == year:
                return statement
        return None

    def _aggregate(self, month: int, year: int) -> StatementAggregate:
        return aggregate_invoices(month, year, self.store.list(Collection.PENALTY_INVOICES))

    def create(self, month: int, year: int, actor_id: str) -> GlobalPenaltyStatement:
        require_supervisor(self.reference, actor_id)
        existing = self.for_period(month, year)
        if existing is not None:
            raise DuplicateStatementError(
                f"A statement for {month:02d}/{year} already exists ({existing.reference_number})"
            )

        statement = build_draft_statement(
            month,
            year,
            self._aggregate(month, year),
            contractor_name=self.contractor_name,
            now=self.clock.now(),
        )
        self.store.create(Collection.STATEMENTS, statement)
        emit_statement_telemetry("created")
        logger.info(
            f"statement {statement.reference_number} drafted from "
            f"{statement.total_invoices} invoices"
        )
        return statement

    def _draft(self, statement_id: str) -> GlobalPenaltyStatement:
        statement = self.store.require(Collection.STATEMENTS, statement_id)
        if statement.status != GlobalPenaltyStatus.DRAFT:
            raise InvalidTransitionError(f"Statement {statement.reference_number} is approved")
        return statement

    def _save_items(self, statement_id: str, items: List[GlobalPenaltyItem]) -> GlobalPenaltyStatement:
        total_amount, total_violations = recalculate_totals(items)
        return self.store.update(
            Collection.STATEMENTS,
            statement_id,
            items=items,
            total_amount=total_amount,
            total_violations=total_violations,
        )

    def update_item(self, statement_id: str, item_id: str, actor_id: str, **changes) -> GlobalPenaltyStatement:
        require_supervisor(self.reference, actor_id)
        statement = self._draft(statement_id)

        found = False
        items = []
        for item in statement.items:
            if item.id == item_id:
                item = apply_item_changes(item, **changes)
                found = True
            items.append(item)
        if not found:
            raise KeyError(f"Statement line '{item_id}' not found")

        return self._save_items(statement_id, items)

    def add_manual_item(
        self,
        statement_id: str,
        actor_id: str,
        violation_name: str,
        amount: float,
        count: int,
        linked_cdr_ids: Optional[List[str]] = None,
        notes: str = "",
    ) -> GlobalPenaltyStatement:
        require_supervisor(self.reference, actor_id)
        statement = self._draft(statement_id)
        item = manual_item(violation_name, amount, count, linked_cdr_ids, notes)
        return self._save_items(statement_id, statement.items + [item])

    def delete_item(self, statement_id: str, item_id: str, actor_id: str) -> GlobalPenaltyStatement:
        require_supervisor(self.reference, actor_id)
        statement = self._draft(statement_id)
        items = [i for i in statement.items if i.id != item_id]
        if len(items) == len(statement.items):
            raise KeyError(f"Statement line '{item_id}' not found")
        return self._save_items(statement_id, items)

    def set_general_comment(self, statement_id: str, actor_id: str, comment: str) -> GlobalPenaltyStatement:
        require_supervisor(self.reference, actor_id)
        self._draft(statement_id)
        return self.store.update(Collection.STATEMENTS, statement_id, manager_general_comment=comment)

    def preview_refresh(self, statement_id: str) -> RefreshPreview:
        statement = self._draft(statement_id)
        return RefreshPreview(
            statement_id=statement_id,
            aggregate=self._aggregate(statement.month, statement.year),
            discarded_items=len(statement.items),
            fingerprint=statement_fingerprint(statement),
            discarded_manual_items=[i for i in statement.items if i.is_manual],
            clears_general_comment=bool(statement.manager_general_comment),
        )

    def commit_refresh(self, preview: RefreshPreview, actor_id: str) -> GlobalPenaltyStatement:
        """
        Replace every line with the previewed aggregate. Manual lines and
        line edits are discarded and the general comment is cleared.
        Raises StalePreviewError if the statement was edited after the preview.
        """
        require_supervisor(self.reference, actor_id)
        statement = self._draft(preview.statement_id)
        if statement_fingerprint(statement) != preview.fingerprint:
            raise StalePreviewError(
                f"Statement {statement.reference_number} changed since the refresh was previewed"
            )

        refreshed = self.store.update(
            Collection.STATEMENTS,
            preview.statement_id,
            items=list(preview.aggregate.items),
            total_amount=preview.aggregate.total_amount,
            total_violations=preview.aggregate.total_violations,
            total_invoices=preview.aggregate.total_invoices,
            manager_general_comment="",
        )
        emit_statement_telemetry("refreshed")
        logger.warning(
            f"statement {refreshed.reference_number} refreshed; "
            f"{preview.discarded_items} lines replaced"
        )
        return refreshed

    def approve(self, statement_id: str, actor_id: str) -> GlobalPenaltyStatement:
        supervisor = require_supervisor(self.reference, actor_id)
        self._draft(statement_id)

        approved = self.store.update(
            Collection.STATEMENTS,
            statement_id,
            status=GlobalPenaltyStatus.APPROVED,
            approved_by=supervisor.name,
            approved_date=self.clock.now(),
        )
        emit_statement_telemetry("approved")
        logger.info(f"statement {approved.reference_number} approved by {supervisor.name}")
        return approved
