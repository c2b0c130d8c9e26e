"""OS keychain access for HTTPS tokens via the ``keyring`` library.

Tokens are stored under service ``gitp_https_token_for_<host>`` with the
HTTPS username as the account name.
"""

from __future__ import annotations

import logging

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from gitp.exceptions import KeychainError, KeychainNotFoundError

logger = logging.getLogger(__name__)

SERVICE_PREFIX = "gitp_https_token_for_"


def service_name(host: str) -> str:
    return f"{SERVICE_PREFIX}{host}"


class Keychain:
    """Store, fetch, and delete HTTPS tokens in the system keychain."""

    def store(self, host: str, account: str, secret: str) -> None:
        try:
            keyring.set_password(service_name(host), account, secret)
        except KeyringError as e:
            raise KeychainError(
                f"Failed to store token for host '{host}', user '{account}' "
                f"in keychain: {e}"
            ) from e
        logger.debug("Stored keychain token for %s@%s", account, host)

    def retrieve(self, host: str, account: str) -> str:
        try:
            secret = keyring.get_password(service_name(host), account)
        except KeyringError as e:
            raise KeychainError(
                f"Failed to retrieve token for host '{host}', user '{account}' "
                f"from keychain: {e}"
            ) from e
        if secret is None:
            raise KeychainNotFoundError(
                f"No keychain token found for host '{host}', user '{account}'."
            )
        return secret

    def delete(self, host: str, account: str) -> None:
        try:
            keyring.delete_password(service_name(host), account)
        except PasswordDeleteError as e:
            raise KeychainNotFoundError(
                f"No keychain token found for host '{host}', user '{account}'."
            ) from e
        except KeyringError as e:
            raise KeychainError(
                f"Failed to delete token for host '{host}', user '{account}' "
                f"from keychain: {e}"
            ) from e
        logger.debug("Deleted keychain token for %s@%s", account, host)
