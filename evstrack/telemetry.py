"""
Operational telemetry for the derivation layer.

Only categorical values and totals leave the process: no comments,
no staff names, no free text.
"""
import os
import logging
from typing import Literal

from azure.monitor.opentelemetry import configure_azure_monitor
from opentelemetry.trace import get_current_span

logger = logging.getLogger("evstrack.telemetry")


def init_telemetry():
    """
    Initialize Azure Application Insights via OpenTelemetry.
    Disabled unless a connection string is configured.
    """
    connection_string = os.getenv("AZURE_APPINSIGHTS_CONNECTION_STRING")

    if not connection_string:
        return  # local / tests

    configure_azure_monitor(connection_string=connection_string)
    logger.info("Azure Monitor telemetry enabled")


def emit_invoice_telemetry(item_count: int, total_amount: float):
    assert isinstance(item_count, int), "item_count must be int"
    assert isinstance(total_amount, float), "total_amount must be float"

    span = get_current_span()
    if not span:
        return

    span.add_event(
        name="evstrack.invoice_generated",
        attributes={
            "item_count": item_count,
            "total_amount": total_amount,
        },
    )


def emit_statement_telemetry(action: Literal["created", "refreshed", "approved"]):
    assert action in ("created", "refreshed", "approved"), (
        f"action must be one of ('created', 'refreshed', 'approved'), got {action}"
    )

    span = get_current_span()
    if not span:
        return

    span.add_event(
        name="evstrack.statement",
        attributes={"statement_action": action},
    )


def scrub_exception_for_telemetry(exception: Exception) -> str:
    """Only the exception class name; messages may carry staff comments."""
    return type(exception).__name__


def emit_exception_telemetry(exception: Exception):
    span = get_current_span()
    if not span:
        return

    span.add_event(
        name="evstrack.exception",
        attributes={"exception_type": scrub_exception_for_telemetry(exception)},
    )
