"""
Expiration date entry.

Accepts a date, a datetime or a string in one of the configured formats
(ISO and DD.MM.YYYY by default). Skipping the step leaves the expiry empty,
which the validator only allows for items that are not batch tracked.
"""

from datetime import date, datetime, timedelta
from typing import Any, Optional

import warehouse_operator.core.models.domain as dm
from warehouse_operator.core.models.results import WizardResult
from warehouse_operator.resolvers.base import StepOutcome, StepResolver
from warehouse_operator.wizard.sequencer import WizardStep


class ExpirationDateResolver(StepResolver):
    kind = dm.ObjectKind.EXPIRATION_DATE

    def accept_value(self, step: WizardStep, value: Any, snapshot: WizardResult) -> StepOutcome:
        parsed = self.parse_date(value)
        if parsed is None:
            formats = ", ".join(self.context.config.expiration.date_formats)
            return StepOutcome.failed(f"Invalid date: {value} (expected {formats})")
        return StepOutcome.ok(parsed)

    def merge(self, result: WizardResult, value: Any, step: WizardStep) -> WizardResult:
        return result.with_expiration(value)

    def parse_date(self, value: Any) -> Optional[date]:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if not isinstance(value, str):
            return None
        text = value.strip()
        for fmt in self.context.config.expiration.date_formats:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        return None

    def suggested_date(self, today: Optional[date] = None) -> date:
        """Prefill for the date picker."""
        today = today or date.today()
        return today + timedelta(days=self.context.config.expiration.default_offset_days)
