"""Resolve, store, and retire HTTPS credential secrets."""

from __future__ import annotations

import logging
from dataclasses import replace

from gitp.credentials.keychain import Keychain
from gitp.exceptions import CredentialError
from gitp.profiles.models import HttpsCredential, KeychainReference, PlaintextToken, Profile

logger = logging.getLogger(__name__)


def resolve_secret(credential: HttpsCredential, keychain: Keychain) -> str:
    """Return the usable token for ``credential``.

    Keychain lookups propagate ``KeychainNotFoundError`` / ``KeychainError``.
    """
    secret = credential.secret
    if isinstance(secret, PlaintextToken):
        return secret.token
    return keychain.retrieve(credential.host, secret.account)


def store_credential(
    host: str,
    username: str,
    token: str,
    *,
    use_keychain: bool,
    keychain: Keychain,
) -> HttpsCredential:
    """Build a credential for a freshly supplied token.

    With ``use_keychain`` the token goes to the keychain and the profile
    keeps only a reference. If the keychain write fails the token is
    embedded as plaintext instead of being dropped.
    """
    if use_keychain:
        try:
            keychain.store(host, username, token)
        except CredentialError as e:
            logger.warning(
                "Could not store token in keychain (%s); saving it in the "
                "profile file instead.",
                e,
            )
        else:
            return HttpsCredential(host, username, KeychainReference(username))
    return HttpsCredential(host, username, PlaintextToken(token))


def move_token_to_keychain(profile: Profile, *, keychain: Keychain) -> Profile:
    """Replace an embedded token on ``profile`` with a keychain reference."""
    credential = profile.https_credential
    if credential is None or not isinstance(credential.secret, PlaintextToken):
        return profile
    secured = store_credential(
        credential.host,
        credential.username,
        credential.secret.token,
        use_keychain=True,
        keychain=keychain,
    )
    return replace(profile, https_credential=secured)


def is_superseded(previous: HttpsCredential | None, current: HttpsCredential | None) -> bool:
    """True when ``previous`` points at a keychain entry ``current`` no longer uses."""
    if previous is None or not isinstance(previous.secret, KeychainReference):
        return False
    if current is None or not isinstance(current.secret, KeychainReference):
        return True
    return (
        current.host != previous.host
        or current.secret.account != previous.secret.account
    )


def retire_credential(
    previous: HttpsCredential | None,
    current: HttpsCredential | None,
    keychain: Keychain,
) -> bool:
    """Delete the keychain entry behind ``previous`` if ``current`` replaced it.

    Failures are logged as warnings and reported by returning False; the
    profile change that triggered the cleanup has already happened.
    """
    if previous is None or not is_superseded(previous, current):
        return True
    try:
        keychain.delete(previous.host, previous.secret.payload)
    except CredentialError as e:
        logger.warning("Could not delete old keychain token: %s", e)
        return False
    return True
