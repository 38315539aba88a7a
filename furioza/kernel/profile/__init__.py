"""
Profile Core - cooldown-gated self-service edits and admin profile edits.
"""

from furioza.kernel.profile.cooldown import (
    CooldownDecision,
    MutationCooldownGuard,
    ProfileField,
)
from furioza.kernel.profile.profile_service import ProfileService

__all__ = [
    "CooldownDecision",
    "MutationCooldownGuard",
    "ProfileField",
    "ProfileService",
]
