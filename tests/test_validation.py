"""Tests for profile validation rules."""

from __future__ import annotations

from pathlib import Path

import pytest

from gitp.exceptions import GitpError
from gitp.profiles.models import GitIdentity, HttpsCredential, KeychainReference, PlaintextToken
from gitp.profiles.validation import (
    EmptyEmailError,
    EmptyHttpsSecretError,
    InvalidEmailError,
    InvalidGpgKeyError,
    MissingSshKeyHostError,
    ProfileValidationError,
    Rule,
    SshHostWithoutKeyError,
    SshKeyNotFoundError,
    is_valid_email,
    is_valid_gpg_key_id,
    validate_profile,
)


def test_minimal_profile_is_valid(make_profile):
    validate_profile(make_profile())


def test_fully_populated_profile_is_valid(make_profile, ssh_key: Path):
    profile = make_profile(
        identity=GitIdentity("Jane Doe", "jane@corp.example.com", signing_key="ABCDEF12"),
        ssh_key_path=ssh_key,
        ssh_key_host="github.com",
        gpg_key_id="0123456789ABCDEF",
        https_credential=HttpsCredential("github.com", "jane", PlaintextToken("ghp_x")),
    )
    validate_profile(profile)


@pytest.mark.parametrize(
    ("overrides", "rule"),
    [
        ({"name": "  "}, Rule.EMPTY_NAME),
        ({"identity": GitIdentity("", "a@b.co")}, Rule.EMPTY_USER_NAME),
        ({"identity": GitIdentity("Jane", " ")}, Rule.EMPTY_EMAIL),
        ({"identity": GitIdentity("Jane", "jane@localhost")}, Rule.INVALID_EMAIL),
        ({"ssh_key_path": Path("/nonexistent/id_rsa"), "ssh_key_host": "github.com"},
         Rule.SSH_KEY_NOT_FOUND),
        ({"ssh_key_host": "github.com"}, Rule.SSH_HOST_WITHOUT_KEY),
        ({"gpg_key_id": "XYZ"}, Rule.INVALID_GPG_KEY),
        ({"https_credential": HttpsCredential(" ", "jane", PlaintextToken("t"))},
         Rule.EMPTY_HTTPS_HOST),
        ({"https_credential": HttpsCredential("github.com", "", PlaintextToken("t"))},
         Rule.EMPTY_HTTPS_USERNAME),
        ({"https_credential": HttpsCredential("github.com", "jane", PlaintextToken(""))},
         Rule.EMPTY_HTTPS_SECRET),
        ({"https_credential": HttpsCredential("github.com", "jane", KeychainReference(" "))},
         Rule.EMPTY_HTTPS_SECRET),
    ],
)
def test_each_rule_is_reported(make_profile, overrides, rule):
    profile = make_profile(**{"name": "work", **overrides})
    with pytest.raises(ProfileValidationError) as excinfo:
        validate_profile(profile)
    assert excinfo.value.rule is rule
    assert isinstance(excinfo.value, GitpError)


def test_key_without_host_is_rejected(make_profile, ssh_key: Path):
    with pytest.raises(MissingSshKeyHostError):
        validate_profile(make_profile(ssh_key_path=ssh_key))
    with pytest.raises(MissingSshKeyHostError):
        validate_profile(make_profile(ssh_key_path=ssh_key, ssh_key_host="  "))


def test_first_violation_wins(make_profile):
    profile = make_profile(
        identity=GitIdentity("Jane", ""),
        gpg_key_id="nothex",
        ssh_key_host="github.com",
    )
    with pytest.raises(EmptyEmailError):
        validate_profile(profile)


def test_email_checked_before_ssh_key(make_profile):
    profile = make_profile(
        identity=GitIdentity("Jane", "not-an-email"),
        ssh_key_path=Path("/nonexistent/key"),
        ssh_key_host="github.com",
    )
    with pytest.raises(InvalidEmailError):
        validate_profile(profile)


def test_missing_key_checked_before_gpg(make_profile):
    profile = make_profile(
        ssh_key_path=Path("/nonexistent/key"),
        ssh_key_host="github.com",
        gpg_key_id="bad",
    )
    with pytest.raises(SshKeyNotFoundError):
        validate_profile(profile)


def test_ssh_key_path_expands_home(make_profile, tmp_path: Path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    (tmp_path / ".ssh").mkdir()
    (tmp_path / ".ssh" / "id_ed25519").write_text("key")
    profile = make_profile(ssh_key_path=Path("~/.ssh/id_ed25519"), ssh_key_host="github.com")
    validate_profile(profile)


def test_host_without_key_message(make_profile):
    with pytest.raises(SshHostWithoutKeyError, match="github.com"):
        validate_profile(make_profile(ssh_key_host="github.com"))


def test_secret_messages_name_the_variant(make_profile):
    token = make_profile(
        https_credential=HttpsCredential("h.example", "u", PlaintextToken(""))
    )
    ref = make_profile(
        https_credential=HttpsCredential("h.example", "u", KeychainReference(""))
    )
    with pytest.raises(EmptyHttpsSecretError, match="Token"):
        validate_profile(token)
    with pytest.raises(EmptyHttpsSecretError, match="KeychainRef"):
        validate_profile(ref)


@pytest.mark.parametrize(
    ("email", "ok"),
    [
        ("jane@example.com", True),
        ("jane.doe+git@mail.corp.example.io", True),
        ("jane@example", False),
        ("jane@example.c", False),
        ("@example.com", False),
        ("jane example@example.com", False),
    ],
)
def test_is_valid_email(email, ok):
    assert is_valid_email(email) is ok


@pytest.mark.parametrize(
    ("key_id", "ok"),
    [
        ("ABCDEF12", True),
        ("abcdef1234567890", True),
        ("0123456789abcdef0123456789ABCDEF01234567", True),
        ("ABCDEF1", False),
        ("ABCDEF123", False),
        ("0123456789abcdef0123456789abcdef", False),
        ("GHIJKLMN", False),
    ],
)
def test_is_valid_gpg_key_id(key_id, ok):
    assert is_valid_gpg_key_id(key_id) is ok


def test_invalid_gpg_error_mentions_lengths(make_profile):
    with pytest.raises(InvalidGpgKeyError, match="8, 16, or 40"):
        validate_profile(make_profile(gpg_key_id="12345"))
