"""
Wizard Signals - Structured messages from the wizard to its host screen.
"""

from enum import Enum

from pydantic import BaseModel


class SignalKind(str, Enum):
    ABORT = "abort"
    COMPLETED_SUCCESSFULLY = "completed_successfully"
    USER_MESSAGE = "user_message"


class WizardSignal(BaseModel):
    """An outbound signal. The host decides how to show it."""
    kind: SignalKind
    action_id: str | None = None         # set on completed_successfully
    message: str = ""                    # operator-facing text

    @classmethod
    def abort(cls, message: str = "") -> 'WizardSignal':
        return cls(kind=SignalKind.ABORT, message=message)

    @classmethod
    def completed_successfully(cls, action_id: str) -> 'WizardSignal':
        return cls(kind=SignalKind.COMPLETED_SUCCESSFULLY, action_id=action_id)

    @classmethod
    def user_message(cls, message: str) -> 'WizardSignal':
        return cls(kind=SignalKind.USER_MESSAGE, message=message)
