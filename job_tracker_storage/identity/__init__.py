"""
Identity module.

Who the collections belong to, and whether that identity may sync.
"""

from .config_provider import ConfigFileIdentityProvider
from .source import IdentityListener, IdentitySource
from .types import OFFLINE_USER_ID, UserIdentity

__all__ = [
    "OFFLINE_USER_ID",
    "UserIdentity",
    "IdentitySource",
    "IdentityListener",
    "ConfigFileIdentityProvider",
]
