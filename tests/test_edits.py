"""Tests for building and editing profiles from CLI-style field values."""

from __future__ import annotations

from pathlib import Path

import pytest

from gitp.profiles.edits import ProfileEditError, build_profile, merge_profile_edits
from gitp.profiles.models import HttpsCredential, KeychainReference, PlaintextToken


def test_build_profile_strips_and_skips_blank_optionals():
    profile = build_profile(
        " work ",
        user_name=" Jane ",
        user_email="jane@corp.example.com ",
        signing_key="",
        gpg_key_id="  ",
    )
    assert profile.name == "work"
    assert profile.identity.user_name == "Jane"
    assert profile.identity.user_email == "jane@corp.example.com"
    assert profile.identity.signing_key is None
    assert profile.gpg_key_id is None
    assert profile.https_credential is None


def test_build_profile_with_token_uses_plaintext():
    profile = build_profile(
        "work",
        user_name="Jane",
        user_email="jane@corp.example.com",
        https_host="github.com",
        https_username="jane",
        https_token="ghp_x",
    )
    assert profile.https_credential == HttpsCredential(
        "github.com", "jane", PlaintextToken("ghp_x")
    )


def test_build_profile_requires_token_for_https():
    with pytest.raises(ProfileEditError, match="token is required"):
        build_profile(
            "work",
            user_name="Jane",
            user_email="jane@corp.example.com",
            https_host="github.com",
            https_username="jane",
        )


def test_build_profile_requires_username_for_https():
    with pytest.raises(ProfileEditError, match="username is required"):
        build_profile(
            "work",
            user_name="Jane",
            user_email="jane@corp.example.com",
            https_host="github.com",
            https_token="t",
        )


def test_none_leaves_fields_unchanged(make_profile):
    current = make_profile(gpg_key_id="ABCDEF12", custom_config={"a.b": "c"})
    assert merge_profile_edits(current) == current


def test_blank_clears_optional_fields(make_profile):
    current = make_profile(gpg_key_id="ABCDEF12")
    updated = merge_profile_edits(current, gpg_key_id="", signing_key=" ")
    assert updated.gpg_key_id is None
    assert updated.identity.signing_key is None


def test_clearing_key_path_clears_host(make_profile, ssh_key: Path):
    current = make_profile(ssh_key_path=ssh_key, ssh_key_host="github.com")
    updated = merge_profile_edits(current, ssh_key_path="")
    assert updated.ssh_key_path is None
    assert updated.ssh_key_host is None


def test_key_path_is_expanded(make_profile, tmp_path: Path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    updated = merge_profile_edits(make_profile(), ssh_key_path="~/.ssh/id_work")
    assert updated.ssh_key_path == tmp_path / ".ssh" / "id_work"


def test_blank_https_host_removes_credential(make_profile):
    current = make_profile(
        https_credential=HttpsCredential("github.com", "jane", KeychainReference("jane"))
    )
    assert merge_profile_edits(current, https_host="").https_credential is None


def test_new_token_replaces_keychain_reference(make_profile):
    current = make_profile(
        https_credential=HttpsCredential("github.com", "jane", KeychainReference("jane"))
    )
    updated = merge_profile_edits(current, https_token="ghp_new")
    assert updated.https_credential == HttpsCredential(
        "github.com", "jane", PlaintextToken("ghp_new")
    )


def test_unchanged_host_and_username_keep_secret(make_profile):
    credential = HttpsCredential("github.com", "jane", KeychainReference("jane"))
    current = make_profile(https_credential=credential)
    updated = merge_profile_edits(current, https_host="github.com", https_username="jane")
    assert updated.https_credential is credential


def test_changing_username_without_token_is_refused(make_profile):
    current = make_profile(
        https_credential=HttpsCredential("github.com", "jane", KeychainReference("jane"))
    )
    with pytest.raises(ProfileEditError, match="new HTTPS token"):
        merge_profile_edits(current, https_username="janed")


def test_blank_https_username_is_refused(make_profile):
    with pytest.raises(ProfileEditError, match="username cannot be empty"):
        merge_profile_edits(make_profile(), https_host="github.com", https_username=" ")
