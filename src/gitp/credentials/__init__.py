"""HTTPS credential storage helpers."""

from gitp.credentials.keychain import Keychain
from gitp.credentials.resolver import (
    is_superseded,
    move_token_to_keychain,
    resolve_secret,
    retire_credential,
    store_credential,
)

__all__ = [
    "Keychain",
    "is_superseded",
    "move_token_to_keychain",
    "resolve_secret",
    "retire_credential",
    "store_credential",
]
