"""Identity profile entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class PlaintextToken:
    """HTTPS token embedded directly in the profile file."""

    token: str

    @property
    def payload(self) -> str:
        return self.token


@dataclass(frozen=True)
class KeychainReference:
    """Account name under which the real token lives in the OS keychain."""

    account: str

    @property
    def payload(self) -> str:
        return self.account


Secret = PlaintextToken | KeychainReference


@dataclass(frozen=True)
class HttpsCredential:
    """HTTPS login for one git host."""

    host: str
    username: str
    secret: Secret

    @property
    def uses_keychain(self) -> bool:
        return isinstance(self.secret, KeychainReference)


@dataclass(frozen=True)
class GitIdentity:
    """Values written to git's ``user.*`` settings."""

    user_name: str
    user_email: str
    signing_key: str | None = None


@dataclass(frozen=True)
class SshEntry:
    """One managed SSH config stanza."""

    host: str
    identity_file: Path
    user: str | None = None


@dataclass(frozen=True)
class Profile:
    """One named identity bundle."""

    name: str
    identity: GitIdentity
    ssh_key_path: Path | None = None
    ssh_key_host: str | None = None
    gpg_key_id: str | None = None
    https_credential: HttpsCredential | None = None
    custom_config: dict[str, str] = field(default_factory=dict)

    @classmethod
    def create(cls, name: str, user_name: str, user_email: str) -> Profile:
        """Build a profile carrying only the required identity fields."""
        return cls(name=name, identity=GitIdentity(user_name, user_email))

    def ssh_key_entry(self) -> SshEntry | None:
        """Return the SSH stanza for this profile when both SSH fields are set."""
        if self.ssh_key_path is None or not self.ssh_key_host:
            return None
        return SshEntry(host=self.ssh_key_host, identity_file=self.ssh_key_path)
