"""Thin wrapper over ``git config``."""

from __future__ import annotations

import logging
import subprocess
from enum import StrEnum

from gitp.exceptions import GitError

logger = logging.getLogger(__name__)

# `git config --unset` exits 5 when the key is absent.
_EXIT_KEY_NOT_SET = 5


class GitConfigScope(StrEnum):
    LOCAL = "local"
    GLOBAL = "global"

    @property
    def flag(self) -> str:
        return f"--{self.value}"


def _run_git(args: list[str]) -> subprocess.CompletedProcess[str]:
    command = ["git", *args]
    logger.debug("Running %s", " ".join(command))
    try:
        return subprocess.run(command, capture_output=True, text=True, check=False)
    except OSError as e:
        raise GitError(f"Failed to execute {' '.join(command)}: {e}") from e


def _failure(args: list[str], result: subprocess.CompletedProcess[str]) -> GitError:
    detail = (result.stderr or "").strip()
    message = f"git {' '.join(args)} failed with exit code {result.returncode}"
    return GitError(f"{message}: {detail}" if detail else message)


def set_git_config(key: str, value: str, scope: GitConfigScope) -> None:
    args = ["config", scope.flag, key, value]
    result = _run_git(args)
    if result.returncode != 0:
        raise _failure(args, result)


def unset_git_config(key: str, scope: GitConfigScope) -> None:
    """Remove ``key``; a key that was never set is not an error."""
    args = ["config", scope.flag, "--unset", key]
    result = _run_git(args)
    if result.returncode in (0, _EXIT_KEY_NOT_SET):
        return
    raise _failure(args, result)


def get_git_config(key: str, scope: GitConfigScope) -> str | None:
    """Return the value of ``key`` or None when it is not set."""
    args = ["config", scope.flag, "--get", key]
    result = _run_git(args)
    if result.returncode == 0:
        value = result.stdout.strip()
        return value or None
    if result.returncode == 1 and not (result.stderr or "").strip():
        return None
    raise _failure(args, result)
