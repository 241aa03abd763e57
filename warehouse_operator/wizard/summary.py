"""
Wizard Summary - tabular view of a finished wizard, shown before submit.
"""

from datetime import date
from typing import Any, Dict, List

from tabulate import tabulate

import warehouse_operator.core.models.domain as dm
from warehouse_operator.core.models.results import WizardResult
from warehouse_operator.resolvers.base import SKIPPED
from warehouse_operator.wizard.sequencer import WizardStep


def format_value(value: Any) -> str:
    """Operator-readable rendering of a step value."""
    if value is None:
        return "-"
    if value is SKIPPED:
        return "(skipped)"
    if isinstance(value, dm.TaskProduct):
        return format_value(value.product)
    if isinstance(value, dm.Product):
        return f"{value.name} [{value.barcode}]" if value.barcode else value.name
    if isinstance(value, dm.Container):
        return f"{value.code} (closed)" if value.is_closed else value.code
    if isinstance(value, dm.Location):
        return f"{value.code} / {value.zone}" if value.zone else value.code
    if isinstance(value, dm.ProductStatus):
        return value.value
    if isinstance(value, date):
        return value.strftime("%d.%m.%Y")
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def summary_rows(steps: List[WizardStep], step_values: Dict[str, Any]) -> List[List[str]]:
    rows = []
    for position, step in enumerate(steps, start=1):
        rows.append([
            str(position),
            step.prompt or step.kind.value,
            format_value(step_values.get(step.id)),
        ])
    return rows


def fact_rows(result: WizardResult) -> List[List[str]]:
    item = result.item
    return [
        ["Item", format_value(item)],
        ["Quantity", format_value(item.quantity) if item else "-"],
        ["Condition", format_value(item.status) if item else "-"],
        ["Expiration", format_value(item.expiration_date) if item else "-"],
        ["Source pallet", format_value(result.source_container)],
        ["Destination pallet", format_value(result.destination_container)],
        ["Destination bin", format_value(result.destination_location)],
    ]


def render_summary(
    steps: List[WizardStep],
    step_values: Dict[str, Any],
    result: WizardResult,
    tablefmt: str = "simple",
) -> str:
    """Steps table followed by the fact record that will be submitted."""
    step_table = tabulate(
        summary_rows(steps, step_values),
        headers=["#", "Step", "Value"],
        tablefmt=tablefmt,
    )
    fact_table = tabulate(fact_rows(result), headers=["Field", "Value"], tablefmt=tablefmt)
    return f"{step_table}\n\n{fact_table}"
