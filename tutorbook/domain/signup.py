"""
Tutor onboarding as an explicit state machine.
"""

import enum
from typing import Dict, Optional

from .exceptions import InvalidTransitionError


class SignupStep(str, enum.Enum):
    REGISTRATION = "registration"
    STRIPE_CONNECT = "stripeConnect"
    AVAILABILITY = "availability"
    COMPLETE = "complete"

    @property
    def display_title(self) -> str:
        return {
            SignupStep.REGISTRATION: "Personal Info",
            SignupStep.STRIPE_CONNECT: "Payment Setup",
            SignupStep.AVAILABILITY: "Set Availability",
            SignupStep.COMPLETE: "Done",
        }[self]

    @property
    def step_number(self) -> Optional[int]:
        return {
            SignupStep.REGISTRATION: 1,
            SignupStep.STRIPE_CONNECT: 2,
            SignupStep.AVAILABILITY: 3,
        }.get(self)


_NEXT: Dict[SignupStep, SignupStep] = {
    SignupStep.REGISTRATION: SignupStep.STRIPE_CONNECT,
    SignupStep.STRIPE_CONNECT: SignupStep.AVAILABILITY,
    SignupStep.AVAILABILITY: SignupStep.COMPLETE,
}
_PREVIOUS: Dict[SignupStep, SignupStep] = {
    SignupStep.STRIPE_CONNECT: SignupStep.REGISTRATION,
    SignupStep.AVAILABILITY: SignupStep.STRIPE_CONNECT,
}


class SignupFlow:
    """Tracks a tutor's position in the three-step signup."""

    TOTAL_STEPS = 3

    def __init__(self, step: SignupStep = SignupStep.REGISTRATION):
        self.step = step

    @property
    def is_complete(self) -> bool:
        return self.step is SignupStep.COMPLETE

    def advance(self) -> SignupStep:
        if self.step not in _NEXT:
            raise InvalidTransitionError(f"Cannot advance past {self.step.value}")
        self.step = _NEXT[self.step]
        return self.step

    def back(self) -> SignupStep:
        if self.step not in _PREVIOUS:
            raise InvalidTransitionError(f"Cannot go back from {self.step.value}")
        self.step = _PREVIOUS[self.step]
        return self.step

    def progress(self) -> float:
        """Fraction of steps finished, 0.0 to 1.0."""
        number = self.step.step_number
        if number is None:
            return 1.0
        return (number - 1) / self.TOTAL_STEPS
