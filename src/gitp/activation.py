"""Switch the active profile: git settings, store pointer, SSH config."""

from __future__ import annotations

import logging
from pathlib import Path

from gitp import git
from gitp.git import GitConfigScope
from gitp.profiles.models import Profile
from gitp.profiles.store import ProfileStore
from gitp.ssh.config import SyncResult, entries_from_profiles, sync_ssh_config

logger = logging.getLogger(__name__)


def git_settings_for(profile: Profile) -> tuple[dict[str, str], list[str]]:
    """Return ``(keys to set, keys to unset)`` for applying ``profile``."""
    to_set: dict[str, str] = {
        "user.name": profile.identity.user_name,
        "user.email": profile.identity.user_email,
    }
    to_unset: list[str] = []

    signing_key = profile.identity.signing_key or profile.gpg_key_id
    if signing_key:
        to_set["user.signingkey"] = signing_key
    else:
        to_unset.append("user.signingkey")

    if profile.gpg_key_id:
        to_set["commit.gpgsign"] = "true"
    else:
        to_unset.append("commit.gpgsign")

    credential = profile.https_credential
    if credential is not None:
        to_set[f"credential.https://{credential.host}.username"] = credential.username

    for key in sorted(profile.custom_config):
        to_set[key] = profile.custom_config[key]
    return to_set, to_unset


def apply_git_identity(profile: Profile, scope: GitConfigScope) -> None:
    to_set, to_unset = git_settings_for(profile)
    for key, value in to_set.items():
        git.set_git_config(key, value, scope)
    for key in to_unset:
        git.unset_git_config(key, scope)
    logger.debug("Applied %d git setting(s) for profile %s", len(to_set), profile.name)


def activate_profile(
    store: ProfileStore,
    name: str,
    *,
    scope: GitConfigScope = GitConfigScope.GLOBAL,
    ssh_config_path: Path | None = None,
) -> SyncResult:
    """Make ``name`` the active profile and regenerate the SSH config.

    The caller is responsible for saving ``store`` afterwards.
    """
    profile = store.get(name)
    apply_git_identity(profile, scope)
    store.set_active(name)
    return sync_ssh_config(
        entries_from_profiles(store.profiles.values()),
        path=ssh_config_path,
    )
