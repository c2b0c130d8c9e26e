"""gitp exception hierarchy.

Provides a structured exception tree so catch blocks can be specific
and the CLI can turn any library failure into one readable message.
"""

from __future__ import annotations


class GitpError(Exception):
    """Base for all gitp exceptions."""


class StoreError(GitpError):
    """Profile store parse, read, or write failures."""


class ProfileNotFoundError(StoreError):
    """No profile with the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Profile '{name}' not found.")
        self.name = name


class ProfileExistsError(StoreError):
    """A profile with the requested name already exists."""

    def __init__(self, name: str):
        super().__init__(f"Profile '{name}' already exists.")
        self.name = name


class SshConfigError(GitpError):
    """SSH config directory, read, backup, or write failures."""


class CredentialError(GitpError):
    """Keychain or secret resolution failures."""


class KeychainError(CredentialError):
    """Keychain backend failure or access denied."""


class KeychainNotFoundError(CredentialError):
    """No keychain entry for the requested host and account."""


class GitError(GitpError):
    """git subprocess failures."""
