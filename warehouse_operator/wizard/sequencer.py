"""
Step Sequencer - turns an action template into the wizard's ordered step list.

Storage steps (what / how much) always come before placement steps (where):
placement resolvers such as label printing rely on an item or container that a
storage step already resolved.
"""

from dataclasses import dataclass
from typing import List

from warehouse_operator.core.models.domain import (
    ActionStep, ActionTemplate, ObjectKind, TargetField,
)


@dataclass(frozen=True)
class WizardStep:
    """An action step placed in the wizard, with its target field group resolved."""
    step: ActionStep
    target: TargetField
    is_placement: bool = False

    @property
    def id(self) -> str:
        return self.step.id

    @property
    def kind(self) -> ObjectKind:
        return self.step.object_kind

    @property
    def prompt(self) -> str:
        return self.step.prompt


def build_steps(template: ActionTemplate) -> List[WizardStep]:
    """
    storage_steps ++ placement_steps.

    Each list keeps the template's declared `order` (stable for ties); the two
    lists are never interleaved and nothing is de-duplicated.
    """
    steps: List[WizardStep] = []
    for action_step in sorted(template.storage_steps, key=lambda s: s.order):
        steps.append(WizardStep(
            step=action_step,
            target=action_step.resolved_target(placement=False),
            is_placement=False,
        ))
    for action_step in sorted(template.placement_steps, key=lambda s: s.order):
        steps.append(WizardStep(
            step=action_step,
            target=action_step.resolved_target(placement=True),
            is_placement=True,
        ))
    return steps
