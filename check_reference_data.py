import sys

from evstrack.reference.loader import load_penalty_rates, load_reference_snapshot

# ANSI Colors
OK = '\033[92m'
FAIL = '\033[91m'
WARN = '\033[93m'
RESET = '\033[0m'


def audit_reference_snapshot():
    reference = load_reference_snapshot()
    rates = load_penalty_rates()
    print(f"\n=== REFERENCE SNAPSHOT AUDIT ({reference.snapshot_version}) ===\n")

    passed_count = 0
    for location in reference.locations:
        print(f"Checking {location.name.en}...", end=" ")

        zone = reference.zone(location.zone_id)
        form = reference.form(location.form_id)
        if zone is None:
            print(f"{FAIL}FAIL (Unknown zone {location.zone_id}){RESET}")
            continue
        if form is None:
            print(f"{FAIL}FAIL (Unknown form {location.form_id}){RESET}")
            continue
        if form.risk_tier != zone.risk_category:
            print(f"{FAIL}FAIL (Form tier {form.risk_tier.value} in {zone.risk_category.value} zone){RESET}")
            continue
        if form.max_score == 0:
            print(f"{WARN}WARN (Form has no items, compliance is always 0){RESET}")
            continue

        print(f"{OK}PASS{RESET}")
        passed_count += 1

    total = len(reference.locations)
    print(f"\nStatus: {passed_count}/{total} Locations Scoreable.")

    # discrepancy options without an explicit rate
    options = reference.cdr_options
    unpriced = [
        label
        for label in options.manpower_discrepancy
        + options.material_discrepancy
        + options.equipment_discrepancy
        if not rates.is_known(label)
    ]
    for label in unpriced:
        print(f"{WARN}Unpriced discrepancy: {label} (falls back to {rates.default_rate:g} SAR){RESET}")

    if passed_count == total and not unpriced:
        print(f"{OK}REFERENCE DATA: CONSISTENT{RESET}")
        return 0
    print(f"{FAIL}REFERENCE DATA: NEEDS ATTENTION{RESET}")
    return 1


if __name__ == "__main__":
    sys.exit(audit_reference_snapshot())
