"""Profile validation rules.

``validate_profile`` checks rules in a fixed order and raises the first
violation it finds. Nothing here touches the store; the only side effect
is the filesystem existence check on the SSH key path.
"""

from __future__ import annotations

import re
from enum import StrEnum

from gitp.exceptions import GitpError
from gitp.profiles.models import KeychainReference, PlaintextToken, Profile

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
# 8, 16, or 40 hex characters (short id, long id, fingerprint).
_GPG_KEY_RE = re.compile(r"^(?:[0-9A-Fa-f]{8}|[0-9A-Fa-f]{16}|[0-9A-Fa-f]{40})$")


class Rule(StrEnum):
    EMPTY_NAME = "empty_name"
    EMPTY_USER_NAME = "empty_user_name"
    EMPTY_EMAIL = "empty_email"
    INVALID_EMAIL = "invalid_email"
    SSH_KEY_NOT_FOUND = "ssh_key_not_found"
    MISSING_SSH_KEY_HOST = "missing_ssh_key_host"
    SSH_HOST_WITHOUT_KEY = "ssh_host_without_key"
    INVALID_GPG_KEY = "invalid_gpg_key"
    EMPTY_HTTPS_HOST = "empty_https_host"
    EMPTY_HTTPS_USERNAME = "empty_https_username"
    EMPTY_HTTPS_SECRET = "empty_https_secret"


class ProfileValidationError(GitpError):
    """Raised when a profile violates one of the validation rules."""

    rule: Rule


class EmptyNameError(ProfileValidationError):
    rule = Rule.EMPTY_NAME


class EmptyUserNameError(ProfileValidationError):
    rule = Rule.EMPTY_USER_NAME


class EmptyEmailError(ProfileValidationError):
    rule = Rule.EMPTY_EMAIL


class InvalidEmailError(ProfileValidationError):
    rule = Rule.INVALID_EMAIL


class SshKeyNotFoundError(ProfileValidationError):
    rule = Rule.SSH_KEY_NOT_FOUND


class MissingSshKeyHostError(ProfileValidationError):
    rule = Rule.MISSING_SSH_KEY_HOST


class SshHostWithoutKeyError(ProfileValidationError):
    rule = Rule.SSH_HOST_WITHOUT_KEY


class InvalidGpgKeyError(ProfileValidationError):
    rule = Rule.INVALID_GPG_KEY


class EmptyHttpsHostError(ProfileValidationError):
    rule = Rule.EMPTY_HTTPS_HOST


class EmptyHttpsUsernameError(ProfileValidationError):
    rule = Rule.EMPTY_HTTPS_USERNAME


class EmptyHttpsSecretError(ProfileValidationError):
    rule = Rule.EMPTY_HTTPS_SECRET


def _blank(value: str | None) -> bool:
    return not str(value or "").strip()


def is_valid_email(email: str) -> bool:
    return _EMAIL_RE.fullmatch(email) is not None


def is_valid_gpg_key_id(key_id: str) -> bool:
    return _GPG_KEY_RE.fullmatch(key_id) is not None


def validate_profile(profile: Profile) -> None:
    """Raise the first rule ``profile`` violates; return None when valid."""
    if _blank(profile.name):
        raise EmptyNameError("Profile name cannot be empty.")

    identity = profile.identity
    if _blank(identity.user_name):
        raise EmptyUserNameError("User name cannot be empty.")
    if _blank(identity.user_email):
        raise EmptyEmailError("User email cannot be empty.")
    if not is_valid_email(identity.user_email):
        raise InvalidEmailError(f"Invalid email format: '{identity.user_email}'.")

    if profile.ssh_key_path is not None:
        if not profile.ssh_key_path.expanduser().exists():
            raise SshKeyNotFoundError(f"SSH key not found: '{profile.ssh_key_path}'.")
        if _blank(profile.ssh_key_host):
            raise MissingSshKeyHostError(
                "SSH key host cannot be empty when an SSH key is provided."
            )
    elif profile.ssh_key_host is not None:
        raise SshHostWithoutKeyError(
            f"SSH key host '{profile.ssh_key_host}' requires an SSH key path."
        )

    if profile.gpg_key_id is not None and not is_valid_gpg_key_id(profile.gpg_key_id):
        raise InvalidGpgKeyError(
            f"Invalid GPG key format: '{profile.gpg_key_id}'. "
            "Expected 8, 16, or 40 hex characters."
        )

    credential = profile.https_credential
    if credential is None:
        return
    if _blank(credential.host):
        raise EmptyHttpsHostError("HTTPS credentials host cannot be empty.")
    if _blank(credential.username):
        raise EmptyHttpsUsernameError("HTTPS credentials username cannot be empty.")
    if _blank(credential.secret.payload):
        if isinstance(credential.secret, PlaintextToken):
            raise EmptyHttpsSecretError(
                "HTTPS credentials token cannot be empty when type is Token."
            )
        if isinstance(credential.secret, KeychainReference):
            raise EmptyHttpsSecretError(
                "HTTPS credentials keychain reference cannot be empty "
                "when type is KeychainRef."
            )
