from enum import Enum

from evstrack.models.cdr import CDR
from evstrack.models.notification import Notification
from evstrack.models.penalty import PenaltyInvoice
from evstrack.models.report import InspectionReport
from evstrack.models.statement import GlobalPenaltyStatement


class Collection(str, Enum):
    REPORTS = "reports"
    CDRS = "cdrs"
    PENALTY_INVOICES = "penalty_invoices"
    STATEMENTS = "global_penalty_statements"
    NOTIFICATIONS = "notifications"


ENTITY_TYPES = {
    Collection.REPORTS: InspectionReport,
    Collection.CDRS: CDR,
    Collection.PENALTY_INVOICES: PenaltyInvoice,
    Collection.STATEMENTS: GlobalPenaltyStatement,
    Collection.NOTIFICATIONS: Notification,
}
