# evstrack/statements/aggregator.py

import dataclasses
import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from evstrack.models.penalty import PenaltyInvoice, PenaltyStatus
from evstrack.models.statement import (
    GlobalPenaltyItem,
    GlobalPenaltyItemStatus,
    GlobalPenaltyStatement,
    GlobalPenaltyStatus,
)
from evstrack.store.ids import new_id

MANUAL_CATEGORY = "Manual Entry"

# Fields a manager may edit on a statement line
EDITABLE_ITEM_FIELDS = frozenset({
    "violation_name",
    "occurrence_count",
    "penalty_per_occurrence",
    "status",
    "manager_notes",
    "linked_cdr_ids",
})


@dataclass(frozen=True)
class StatementAggregate:
    items: List[GlobalPenaltyItem] = field(default_factory=list)
    total_amount: float = 0.0
    total_violations: int = 0
    total_invoices: int = 0


def _line_total(item: GlobalPenaltyItem) -> float:
    if item.status == GlobalPenaltyItemStatus.REJECTED:
        return 0.0
    return item.occurrence_count * item.penalty_per_occurrence


def recalculate_totals(items: Iterable[GlobalPenaltyItem]) -> Tuple[float, int]:
    """(total_amount, total_violations); rejected lines add no violations."""
    total_amount = 0.0
    total_violations = 0
    for item in items:
        total_amount += item.total
        if item.status != GlobalPenaltyItemStatus.REJECTED:
            total_violations += item.occurrence_count
    return total_amount, total_violations


def aggregated_line_id(description: str, amount: float) -> str:
    """Stable id for an aggregated line, derived from its (description, amount) key."""
    digest = hashlib.sha256(f"{description}|{float(amount)!r}".encode("utf-8")).hexdigest()
    return f"gps-item-{digest[:12]}"


def aggregate_invoices(month: int, year: int, invoices: Iterable[PenaltyInvoice]) -> StatementAggregate:
    """
    Roll the month's deducted invoices up into statement lines.

    Lines are keyed on (description, amount): the same violation at two
    different rates stays as two lines. Line order follows first
    appearance.
    """
    relevant = [
        inv for inv in invoices
        if inv.status == PenaltyStatus.DEDUCTED
        and inv.date_generated.year == year
        and inv.date_generated.month == month
    ]

    grouped: Dict[Tuple[str, float], dict] = {}
    for invoice in relevant:
        for line in invoice.items:
            key = (line.description, line.amount)
            entry = grouped.setdefault(key, {
                "category": line.category,
                "count": 0,
                "cdr_ids": [],
            })
            entry["count"] += 1
            if invoice.cdr_id not in entry["cdr_ids"]:
                entry["cdr_ids"].append(invoice.cdr_id)

    items = [
        GlobalPenaltyItem(
            id=aggregated_line_id(description, amount),
            violation_name=description,
            category=entry["category"],
            occurrence_count=entry["count"],
            penalty_per_occurrence=amount,
            total=entry["count"] * amount,
            status=GlobalPenaltyItemStatus.APPROVED,
            linked_cdr_ids=entry["cdr_ids"],
        )
        for (description, amount), entry in grouped.items()
    ]

    total_amount, total_violations = recalculate_totals(items)
    return StatementAggregate(
        items=items,
        total_amount=total_amount,
        total_violations=total_violations,
        total_invoices=len(relevant),
    )


def apply_item_changes(item: GlobalPenaltyItem, **changes) -> GlobalPenaltyItem:
    """
    Edit a statement line and recompute its total. A rejected line
    keeps its count and rate but totals 0.
    """
    unknown = set(changes) - EDITABLE_ITEM_FIELDS
    if unknown:
        raise ValueError(f"Statement line fields not editable: {sorted(unknown)}")

    if "status" in changes:
        changes["status"] = GlobalPenaltyItemStatus(changes["status"])
    if changes.get("occurrence_count", 0) < 0:
        raise ValueError("occurrence_count cannot be negative")
    if changes.get("penalty_per_occurrence", 0) < 0:
        raise ValueError("penalty_per_occurrence cannot be negative")

    updated = dataclasses.replace(item, **changes)
    return dataclasses.replace(updated, total=_line_total(updated))


def manual_item(
    violation_name: str,
    amount: float,
    count: int,
    linked_cdr_ids: Optional[List[str]] = None,
    notes: str = "",
) -> GlobalPenaltyItem:
    if count < 0 or amount < 0:
        raise ValueError("Manual line amount and count cannot be negative")

    return GlobalPenaltyItem(
        id=new_id("gps-manual"),
        violation_name=violation_name,
        category=MANUAL_CATEGORY,
        occurrence_count=count,
        penalty_per_occurrence=amount,
        total=count * amount,
        status=GlobalPenaltyItemStatus.APPROVED,
        manager_notes=notes,
        linked_cdr_ids=list(linked_cdr_ids or []),
        is_manual=True,
    )


def printable_items(statement: GlobalPenaltyStatement) -> List[GlobalPenaltyItem]:
    return [i for i in statement.items if i.status != GlobalPenaltyItemStatus.REJECTED]


def statement_reference(month: int, year: int) -> str:
    return f"GPS-{year}-{month:02d}-001"


def build_draft_statement(
    month: int,
    year: int,
    aggregate: StatementAggregate,
    contractor_name: str,
    now: datetime,
) -> GlobalPenaltyStatement:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1..12, got {month}")

    return GlobalPenaltyStatement(
        id=new_id("gps"),
        reference_number=statement_reference(month, year),
        month=month,
        year=year,
        status=GlobalPenaltyStatus.DRAFT,
        contractor_name=contractor_name,
        generated_date=now,
        items=list(aggregate.items),
        total_amount=aggregate.total_amount,
        total_violations=aggregate.total_violations,
        total_invoices=aggregate.total_invoices,
    )
