"""Profile store loader, renderer, and map helpers.

The store file keeps the original tool's layout::

    current_profile = "work"

    [profiles.work]
    name = "work"
    ssh_key = "/home/me/.ssh/id_work"
    ssh_key_host = "github.com"

    [profiles.work.git_config]
    name = "Jane Doe"
    email = "jane@corp.example"

Loading is lenient about absence (no file, empty file) and strict about
shape. Validation rules are not applied here; see ``validation``.
"""

from __future__ import annotations

import logging
import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

from gitp.exceptions import ProfileExistsError, ProfileNotFoundError, StoreError
from gitp.profiles.models import (
    GitIdentity,
    HttpsCredential,
    KeychainReference,
    PlaintextToken,
    Profile,
    Secret,
)
from gitp.utils.files import atomic_write_text

logger = logging.getLogger(__name__)

_TOKEN_TYPE = "Token"
_KEYCHAIN_TYPE = "KeychainRef"


@dataclass
class ProfileStore:
    """All known profiles plus the name of the active one."""

    profiles: dict[str, Profile] = field(default_factory=dict)
    active_profile_name: str | None = None

    def get(self, name: str) -> Profile:
        try:
            return self.profiles[name]
        except KeyError:
            raise ProfileNotFoundError(name) from None

    def add(self, profile: Profile, *, overwrite: bool = False) -> None:
        """Insert ``profile`` under its own name."""
        if not overwrite and profile.name in self.profiles:
            raise ProfileExistsError(profile.name)
        self.profiles[profile.name] = profile

    def update(self, profile: Profile) -> None:
        """Replace an existing profile with the same name."""
        self.get(profile.name)
        self.profiles[profile.name] = profile

    def remove(self, name: str) -> Profile:
        """Drop ``name`` and clear the active pointer if it referenced it."""
        removed = self.get(name)
        del self.profiles[name]
        if self.active_profile_name == name:
            self.active_profile_name = None
        return removed

    def rename(self, old_name: str, new_name: str) -> Profile:
        """Move a profile to a new key and keep the active pointer on it."""
        clean_new = new_name.strip()
        if not clean_new:
            raise StoreError("New profile name cannot be empty.")
        profile = self.get(old_name)
        if clean_new == old_name:
            return profile
        if clean_new in self.profiles:
            raise ProfileExistsError(clean_new)
        renamed = replace(profile, name=clean_new)
        del self.profiles[old_name]
        self.profiles[clean_new] = renamed
        if self.active_profile_name == old_name:
            self.active_profile_name = clean_new
        return renamed

    def set_active(self, name: str | None) -> None:
        if name is not None:
            self.get(name)
        self.active_profile_name = name

    @property
    def active_profile(self) -> Profile | None:
        if self.active_profile_name is None:
            return None
        return self.profiles.get(self.active_profile_name)


# -- TOML rendering ----------------------------------------------------------

_TOML_BARE_KEY_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_TOML_SHORT_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
}
# Basic strings may not contain raw control characters.
_TOML_ESCAPE_RE = re.compile(r'[\\"\x00-\x1f\x7f]')


def _escape_char(match: re.Match[str]) -> str:
    char = match.group()
    return _TOML_SHORT_ESCAPES.get(char) or f"\\u{ord(char):04X}"


def _toml_escape(value: str) -> str:
    """Render ``value`` as a TOML basic string."""
    return f'"{_TOML_ESCAPE_RE.sub(_escape_char, value)}"'


def _toml_key(key: str) -> str:
    return key if _TOML_BARE_KEY_RE.fullmatch(key) else _toml_escape(key)


def _secret_fields(secret: Secret) -> tuple[str, str]:
    if isinstance(secret, KeychainReference):
        return _KEYCHAIN_TYPE, secret.account
    return _TOKEN_TYPE, secret.token


def _render_profile(profile: Profile, *, table: str) -> list[str]:
    """Render one profile as TOML lines rooted at ``table`` ('' for top level)."""

    def _header(suffix: str) -> str:
        return f"[{table}.{suffix}]" if table else f"[{suffix}]"

    lines: list[str] = []
    if table:
        lines.append(f"[{table}]")
    lines.append(f"name = {_toml_escape(profile.name)}")
    if profile.ssh_key_path is not None:
        lines.append(f"ssh_key = {_toml_escape(str(profile.ssh_key_path))}")
    if profile.ssh_key_host is not None:
        lines.append(f"ssh_key_host = {_toml_escape(profile.ssh_key_host)}")
    if profile.gpg_key_id is not None:
        lines.append(f"gpg_key = {_toml_escape(profile.gpg_key_id)}")

    identity = profile.identity
    lines.append("")
    lines.append(_header("git_config"))
    lines.append(f"name = {_toml_escape(identity.user_name)}")
    lines.append(f"email = {_toml_escape(identity.user_email)}")
    if identity.signing_key is not None:
        lines.append(f"user_signingkey = {_toml_escape(identity.signing_key)}")

    credential = profile.https_credential
    if credential is not None:
        secret_type, secret_value = _secret_fields(credential.secret)
        lines.append("")
        lines.append(_header("https_credentials"))
        lines.append(f"host = {_toml_escape(credential.host)}")
        lines.append(f"username = {_toml_escape(credential.username)}")
        lines.append("")
        lines.append(_header("https_credentials.credential_type"))
        lines.append(f"type = {_toml_escape(secret_type)}")
        lines.append(f"value = {_toml_escape(secret_value)}")

    if profile.custom_config:
        lines.append("")
        lines.append(_header("custom_config"))
        for key in sorted(profile.custom_config):
            lines.append(f"{_toml_key(key)} = {_toml_escape(profile.custom_config[key])}")
    lines.append("")
    return lines


def render_store_toml(store: ProfileStore) -> str:
    """Render the full store file."""
    lines: list[str] = []
    if store.active_profile_name is not None:
        lines.append(f"current_profile = {_toml_escape(store.active_profile_name)}")
        lines.append("")
    for name in sorted(store.profiles):
        lines.extend(
            _render_profile(store.profiles[name], table=f"profiles.{_toml_key(name)}")
        )
    return "\n".join(lines).rstrip() + "\n" if lines else ""


def render_profile_toml(profile: Profile) -> str:
    """Render one profile for export."""
    return "\n".join(_render_profile(profile, table="")).rstrip() + "\n"


# -- TOML parsing ------------------------------------------------------------


def _optional_str(raw: dict, key: str, *, where: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise StoreError(f"Invalid '{key}' in {where}: expected string.")
    return value


def _required_str(raw: dict, key: str, *, where: str) -> str:
    value = _optional_str(raw, key, where=where)
    if value is None:
        raise StoreError(f"{where} is missing required '{key}'.")
    return value


def _parse_secret(raw: object, *, where: str) -> Secret:
    if not isinstance(raw, dict):
        raise StoreError(f"Invalid credential_type in {where}: expected table.")
    secret_type = _required_str(raw, "type", where=f"{where} credential_type")
    value = _required_str(raw, "value", where=f"{where} credential_type")
    if secret_type == _TOKEN_TYPE:
        return PlaintextToken(value)
    if secret_type == _KEYCHAIN_TYPE:
        return KeychainReference(value)
    raise StoreError(
        f"Unknown credential type {secret_type!r} in {where}; "
        f"expected {_TOKEN_TYPE!r} or {_KEYCHAIN_TYPE!r}."
    )


def _parse_custom_config(raw: object, *, where: str) -> dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise StoreError(f"Invalid custom_config in {where}: expected table.")
    result: dict[str, str] = {}
    for key, value in raw.items():
        if isinstance(value, dict):
            raise StoreError(
                f"Invalid custom_config value for '{key}' in {where}: expected scalar."
            )
        result[str(key)] = str(value).lower() if isinstance(value, bool) else str(value)
    return result


def parse_profile(raw: object, *, where: str, default_name: str = "") -> Profile:
    """Build a ``Profile`` from one decoded TOML table."""
    if not isinstance(raw, dict):
        raise StoreError(f"Invalid profile in {where}: expected table.")

    git_raw = raw.get("git_config")
    if not isinstance(git_raw, dict):
        raise StoreError(f"Profile in {where} is missing required [git_config] table.")
    identity = GitIdentity(
        user_name=_required_str(git_raw, "name", where=f"{where} git_config"),
        user_email=_required_str(git_raw, "email", where=f"{where} git_config"),
        signing_key=_optional_str(git_raw, "user_signingkey", where=f"{where} git_config"),
    )

    credential: HttpsCredential | None = None
    https_raw = raw.get("https_credentials")
    if https_raw is not None:
        if not isinstance(https_raw, dict):
            raise StoreError(f"Invalid https_credentials in {where}: expected table.")
        credential = HttpsCredential(
            host=_required_str(https_raw, "host", where=f"{where} https_credentials"),
            username=_required_str(
                https_raw, "username", where=f"{where} https_credentials"
            ),
            secret=_parse_secret(https_raw.get("credential_type"), where=where),
        )

    ssh_key = _optional_str(raw, "ssh_key", where=where)
    name = _optional_str(raw, "name", where=where)
    return Profile(
        name=default_name if name is None else name,
        identity=identity,
        ssh_key_path=Path(ssh_key) if ssh_key is not None else None,
        ssh_key_host=_optional_str(raw, "ssh_key_host", where=where),
        gpg_key_id=_optional_str(raw, "gpg_key", where=where),
        https_credential=credential,
        custom_config=_parse_custom_config(raw.get("custom_config"), where=where),
    )


def parse_store(raw: dict, *, path: Path) -> ProfileStore:
    profiles_raw = raw.get("profiles", {})
    if not isinstance(profiles_raw, dict):
        raise StoreError(f"Invalid profiles in {path}: expected table.")

    profiles: dict[str, Profile] = {}
    for name, profile_raw in profiles_raw.items():
        profiles[name] = parse_profile(
            profile_raw,
            where=f"{path} profile '{name}'",
            default_name=name,
        )

    current = raw.get("current_profile")
    if current is not None and not isinstance(current, str):
        raise StoreError(f"Invalid current_profile in {path}: expected string.")
    return ProfileStore(profiles=profiles, active_profile_name=current)


def load_store(path: Path) -> ProfileStore:
    """Load the store file; a missing or blank file yields an empty store."""
    if not path.exists():
        logger.debug("Profile store %s does not exist; starting empty", path)
        return ProfileStore()
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise StoreError(f"Profile store {path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise StoreError(f"Cannot read profile store {path}: {e}") from e
    if not text.strip():
        return ProfileStore()
    try:
        raw = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise StoreError(f"Invalid TOML in {path}: {e}") from e
    store = parse_store(raw, path=path)
    logger.debug("Loaded %d profile(s) from %s", len(store.profiles), path)
    return store


def save_store(path: Path, store: ProfileStore) -> None:
    """Atomically replace the store file."""
    try:
        atomic_write_text(path, render_store_toml(store))
    except OSError as e:
        raise StoreError(f"Cannot write profile store {path}: {e}") from e
    logger.debug("Saved %d profile(s) to %s", len(store.profiles), path)


def parse_profile_toml(text: str, *, source: str) -> Profile:
    """Decode an exported profile document."""
    if not text.strip():
        raise StoreError("Import data is empty. Nothing to import.")
    try:
        raw = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise StoreError(f"Invalid TOML in {source}: {e}") from e
    return parse_profile(raw, where=source)
