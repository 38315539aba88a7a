"""
Identity Core - Actor resolution and bearer token verification.
"""

from furioza.kernel.identity.actor import Actor
from furioza.kernel.identity.identity_service import IdentityService
from furioza.kernel.identity.jwt import JWTManager, verify_access_token

__all__ = [
    "Actor",
    "IdentityService",
    "JWTManager",
    "verify_access_token",
]
