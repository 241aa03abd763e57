"""
Wizard errors.

Operator-facing problems (bad input, nothing found, submission rejected)
are not exceptions; they are reported as messages and the wizard stays
where it is. These exceptions cover misuse by the host and init failures.
"""


class WizardError(Exception):
    """Base error for the wizard controller"""
    pass


class WizardNotFoundError(WizardError):
    """Task or planned action missing at initialization; the host must abort"""
    pass


class InvalidWizardOperation(WizardError):
    """Operation not allowed in the current wizard state"""
    pass
