"""Build and edit profiles from loosely specified field values.

Every field argument follows the same convention: ``None`` leaves the
current value alone, a blank string clears an optional field, anything
else replaces it (surrounding whitespace stripped). Results are not
validated here; callers run ``validate_profile`` before persisting.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from gitp.exceptions import GitpError
from gitp.profiles.models import GitIdentity, HttpsCredential, PlaintextToken, Profile


class ProfileEditError(GitpError):
    """Raised when a requested edit is incomplete or contradictory."""


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _merge_optional(current: str | None, value: str | None) -> str | None:
    if value is None:
        return current
    return _clean(value)


def _merge_https(
    current: HttpsCredential | None,
    *,
    host: str | None,
    username: str | None,
    token: str | None,
) -> HttpsCredential | None:
    if host is None and username is None and token is None:
        return current
    if host is not None and not host.strip():
        return None
    if username is not None and not username.strip():
        raise ProfileEditError("HTTPS username cannot be empty when a host is provided.")

    new_host = _clean(host) or (current.host if current else None)
    new_username = _clean(username) or (current.username if current else None)
    if new_host is None:
        raise ProfileEditError("An HTTPS host is required to configure HTTPS credentials.")
    if new_username is None:
        raise ProfileEditError(
            f"An HTTPS username is required for host '{new_host}'."
        )

    new_token = _clean(token)
    if new_token is not None:
        return HttpsCredential(new_host, new_username, PlaintextToken(new_token))
    if current is not None and (current.host, current.username) == (new_host, new_username):
        return current
    raise ProfileEditError(
        "A new HTTPS token is required when setting or changing the HTTPS "
        "host or username."
    )


def merge_profile_edits(
    current: Profile,
    *,
    user_name: str | None = None,
    user_email: str | None = None,
    signing_key: str | None = None,
    ssh_key_path: str | None = None,
    ssh_key_host: str | None = None,
    gpg_key_id: str | None = None,
    https_host: str | None = None,
    https_username: str | None = None,
    https_token: str | None = None,
) -> Profile:
    """Return ``current`` with the requested field changes applied."""
    identity = GitIdentity(
        user_name=current.identity.user_name if user_name is None else user_name.strip(),
        user_email=current.identity.user_email if user_email is None else user_email.strip(),
        signing_key=_merge_optional(current.identity.signing_key, signing_key),
    )

    key_path = current.ssh_key_path
    key_host = current.ssh_key_host
    if ssh_key_path is not None:
        cleaned = _clean(ssh_key_path)
        if cleaned is None:
            # Dropping the key drops its host as well.
            key_path, key_host = None, None
        else:
            key_path = Path(cleaned).expanduser()
    if ssh_key_host is not None:
        key_host = _clean(ssh_key_host)

    return replace(
        current,
        identity=identity,
        ssh_key_path=key_path,
        ssh_key_host=key_host,
        gpg_key_id=_merge_optional(current.gpg_key_id, gpg_key_id),
        https_credential=_merge_https(
            current.https_credential,
            host=https_host,
            username=https_username,
            token=https_token,
        ),
    )


def build_profile(
    name: str,
    *,
    user_name: str,
    user_email: str,
    signing_key: str | None = None,
    ssh_key_path: str | None = None,
    ssh_key_host: str | None = None,
    gpg_key_id: str | None = None,
    https_host: str | None = None,
    https_username: str | None = None,
    https_token: str | None = None,
) -> Profile:
    """Create a new profile from user-supplied values."""
    base = Profile.create(name.strip(), user_name.strip(), user_email.strip())
    return merge_profile_edits(
        base,
        signing_key=signing_key,
        ssh_key_path=ssh_key_path,
        ssh_key_host=ssh_key_host,
        gpg_key_id=gpg_key_id,
        https_host=https_host,
        https_username=https_username,
        https_token=https_token,
    )
