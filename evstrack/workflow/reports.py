import logging
from typing import List, Optional

from evstrack.clock import Clock
from evstrack.models.notification import NotificationType
from evstrack.models.report import (
    DRAFT_REFERENCE,
    InspectionReport,
    InspectionResultItem,
    ReportStatus,
)
from evstrack.reference.data import ReferenceData
from evstrack.scoring.compliance import report_compliance
from evstrack.scoring.thresholds import CRITICAL_COMPLIANCE_THRESHOLD
from evstrack.store.collections import Collection
from evstrack.store.ids import new_id, next_reference
from evstrack.store.repository import EntityStore
from evstrack.workflow.access import require_supervisor, require_user
from evstrack.workflow.errors import AuthorizationError, InvalidTransitionError
from evstrack.workflow.notifications import NotificationService

logger = logging.getLogger("evstrack.workflow.reports")


class ReportService:
    """
    Inspection report lifecycle.

    Draft reports are edited only by their inspector. Submitting assigns
    the INSP reference. Supervisors may only attach a comment.
    """

    def __init__(
        self,
        store: EntityStore,
        reference: ReferenceData,
        clock: Clock,
        notifications: Optional[NotificationService] = None,
    ):
        self.store = store
        self.reference = reference
        self.clock = clock
        self.notifications = notifications

    def start_batch(
        self,
        inspector_id: str,
        location_ids: List[str],
        sub_locations: Optional[List[str]] = None,
    ) -> List[InspectionReport]:
        """
        One Draft per selected location, every item pre-filled at its
        maximum score. Unknown locations are skipped.
        """
        require_user(self.reference, inspector_id)
        now = self.clock.now()

        resolved = []
        for location_id in location_ids:
            form = self.reference.form_for_location(location_id)
            if form is None:
                logger.warning(f"skipping location {location_id}: no form resolved")
                continue
            resolved.append((location_id, form))

        # batch ids name only the locations that actually get a report
        batch = [location_id for location_id, _ in resolved] if len(resolved) > 1 else None

        created = []
        for location_id, form in resolved:
            report = InspectionReport(
                id=new_id("rep"),
                reference_number=DRAFT_REFERENCE,
                inspector_id=inspector_id,
                location_id=location_id,
                date=now,
                status=ReportStatus.DRAFT,
                items=[InspectionResultItem(item_id=i.id, score=i.max_score) for i in form.items],
                sub_locations=list(sub_locations or []),
                batch_location_ids=batch,
            )
            created.append(self.store.create(Collection.REPORTS, report))

        return created

    def _editable_draft(self, report_id: str, user_id: str) -> InspectionReport:
        report = self.store.require(Collection.REPORTS, report_id)
        if report.inspector_id != user_id:
            raise AuthorizationError("Only the owning inspector can edit this report")
        if report.status != ReportStatus.DRAFT:
            raise InvalidTransitionError(f"Report {report.reference_number} is no longer a draft")
        return report

    def score_item(
        self,
        report_id: str,
        user_id: str,
        item_id: str,
        score: float,
        comment: Optional[str] = None,
        defects: Optional[List[str]] = None,
    ) -> InspectionReport:
        report = self._editable_draft(report_id, user_id)
        form = self.reference.form_for_location(report.location_id)
        definition = form.item(item_id) if form else None
        if definition is None:
            raise KeyError(f"Item '{item_id}' is not on this report's form")

        clamped = min(max(score, 0), definition.max_score)

        items = []
        for result in report.items:
            if result.item_id == item_id:
                result = InspectionResultItem(
                    item_id=item_id,
                    score=clamped,
                    comment=result.comment if comment is None else comment,
                    defects=result.defects if defects is None else list(defects),
                    photos=result.photos,
                )
            items.append(result)

        return self.store.update(Collection.REPORTS, report_id, items=items)

    def submit(self, report_id: str, user_id: str) -> InspectionReport:
        report = self._editable_draft(report_id, user_id)
        now = self.clock.now()

        reference_number = report.reference_number
        if reference_number == DRAFT_REFERENCE:
            existing = [r.reference_number for r in self.store.list(Collection.REPORTS)]
            reference_number = next_reference("INSP", now, existing)

        submitted = self.store.update(
            Collection.REPORTS,
            report_id,
            status=ReportStatus.SUBMITTED,
            reference_number=reference_number,
        )
        logger.info(f"report {reference_number} submitted")

        compliance = report_compliance(submitted, self.reference)
        if self.notifications and compliance < CRITICAL_COMPLIANCE_THRESHOLD:
            self.notifications.notify(
                f"Critical inspection {reference_number}: {compliance:.1f}% compliance",
                NotificationType.ALERT,
                link=f"/reports/{report_id}",
            )
        return submitted

    def add_supervisor_comment(self, report_id: str, supervisor_id: str, comment: str) -> InspectionReport:
        require_supervisor(self.reference, supervisor_id)
        report = self.store.require(Collection.REPORTS, report_id)
        if report.status == ReportStatus.DRAFT:
            raise InvalidTransitionError("Draft reports cannot be reviewed")
        return self.store.update(Collection.REPORTS, report_id, supervisor_comment=comment)
