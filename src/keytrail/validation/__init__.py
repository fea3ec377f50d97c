"""Validation against AWS — authorities and the bounded dispatcher."""

from keytrail.validation.authority import (
    AuthoritySetupError,
    IamLastUsedAuthority,
    StsCallerIdentityAuthority,
    ValidationAuthority,
    build_authority,
    classify_error,
)
from keytrail.validation.dispatcher import ValidationDispatcher

__all__ = [
    "AuthoritySetupError",
    "IamLastUsedAuthority",
    "StsCallerIdentityAuthority",
    "ValidationAuthority",
    "ValidationDispatcher",
    "build_authority",
    "classify_error",
]
