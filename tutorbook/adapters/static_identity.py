"""
Fixed identity used in place of a real sign-in.
"""

from dataclasses import dataclass

from ..domain.enums import UserType


@dataclass(frozen=True)
class StaticIdentity:
    """Reports the same signed-in user for every call."""
    current_user_id: str
    current_user_type: UserType
