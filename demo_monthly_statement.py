import shutil
from datetime import datetime

from evstrack.clock import FixedClock
from evstrack.config import Settings
from evstrack.models.cdr import CDRManagerDecision
from evstrack.statements.aggregator import printable_items
from evstrack.workflow.services import build_services


# --- AUDIT-STYLE UI THEME ---
class Colors:
    OKGREEN = '\033[92m'     # Success (Green)
    WARNING = '\033[93m'     # Warning (Amber)
    FAIL = '\033[91m'        # Critical (Red)

    HEADER = '\033[1m'
    MUTED = '\033[90m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'

    BORDER = MUTED
    LABEL = ENDC
    VALUE = BOLD


def print_separator(char="-"):
    width = shutil.get_terminal_size().columns
    print(Colors.BORDER + (char * width) + Colors.ENDC)


def print_section(title):
    print("\n")
    print_separator("=")
    print(f"  {Colors.HEADER}{title.upper()}{Colors.ENDC}")
    print_separator("=")


def print_kv(key, value, color=Colors.VALUE):
    print(f"{Colors.LABEL}{key:<25}{Colors.ENDC} : {color}{value}{Colors.ENDC}")


# --- MAIN DEMO ---
def run_statement_demo():
    clock = FixedClock(datetime(2025, 3, 20, 10, 30))
    services = build_services(settings=Settings(), clock=clock)
    reference = services.reference

    inspector = reference.inspectors()[0]
    supervisor = reference.supervisors()[0]
    location = reference.locations[0]

    # 1. SETUP
    print_section("Scenario Initialization")
    print_kv("Reference Snapshot", reference.snapshot_version)
    print_kv("Penalty Rates", services.rates.snapshot_version)
    print_kv("Inspector", inspector.name)
    print_kv("Supervisor", supervisor.name)
    print_kv("Location", location.name.en)

    # 2. CDR
    print_section("Step 1: Discrepancy Report")
    cdr = services.cdrs.create_draft(
        inspector.id,
        location.id,
        manpower_discrepancy=["Shortage of staff"],
        material_discrepancy=["Expired items"],
        staff_comment="Two cleaners short on the night shift.",
    )
    cdr = services.cdrs.submit(cdr.id, inspector.id)
    print_kv("Reference", cdr.reference_number)
    print_kv("Status", cdr.status.value, Colors.WARNING)

    services.cdrs.record_decision(cdr.id, supervisor.id, CDRManagerDecision.PENALTY, "Repeat finding")
    result = services.cdrs.finalize(cdr.id, supervisor.id)
    print_kv("Outcome", result.outcome.value)
    print_kv("Message", result.message)

    if result.invoice is None:
        print(f"{Colors.FAIL}✖ No invoice generated.{Colors.ENDC}")
        return

    # 3. INVOICE
    print_section("Step 2: Penalty Invoice")
    for item in result.invoice.items:
        print_kv(item.description, f"{item.amount:g} SAR ({item.category})")
    invoice = services.invoices.approve(result.invoice.id, supervisor.id)
    print_kv("Total", f"{invoice.total_amount:g} SAR")
    print_kv("Status", invoice.status.value, Colors.OKGREEN)

    # 4. STATEMENT
    print_section("Step 3: Monthly Global Statement")
    statement = services.statements.create(3, 2025, supervisor.id)
    print_kv("Reference", statement.reference_number)
    print_kv("Contractor", statement.contractor_name)
    print_kv("Invoices Rolled Up", statement.total_invoices)

    statement = services.statements.add_manual_item(
        statement.id, supervisor.id, "Late waste collection", 250, 2, notes="Reported by ward"
    )
    for item in printable_items(statement):
        print_kv(item.violation_name, f"{item.occurrence_count} x {item.penalty_per_occurrence:g} = {item.total:g} SAR")

    statement = services.statements.approve(statement.id, supervisor.id)

    # 5. RESULT
    print_section("Final Statement")
    print_kv("Total Violations", statement.total_violations)
    print_kv("Total Amount", f"{statement.total_amount:g} SAR", Colors.OKGREEN)
    print_kv("Approved By", statement.approved_by)
    print_separator("=")
    print("\n")


if __name__ == "__main__":
    run_statement_demo()
