"""Profile entities, validation, and persistence."""

from gitp.profiles.edits import ProfileEditError, build_profile, merge_profile_edits
from gitp.profiles.models import (
    GitIdentity,
    HttpsCredential,
    KeychainReference,
    PlaintextToken,
    Profile,
    Secret,
    SshEntry,
)
from gitp.profiles.store import ProfileStore, load_store, save_store
from gitp.profiles.validation import ProfileValidationError, Rule, validate_profile

__all__ = [
    "GitIdentity",
    "HttpsCredential",
    "KeychainReference",
    "PlaintextToken",
    "Profile",
    "ProfileEditError",
    "ProfileStore",
    "ProfileValidationError",
    "Rule",
    "Secret",
    "SshEntry",
    "build_profile",
    "load_store",
    "merge_profile_edits",
    "save_store",
    "validate_profile",
]
