"""Managed-block synchronizer for the user's SSH client config.

gitp owns exactly one region of ``~/.ssh/config``, delimited by
``MANAGED_BLOCK_START`` and ``MANAGED_BLOCK_END``. Everything outside that
region is user content and is carried over unchanged, except that runs of
blank lines are collapsed and the file ends with a single newline.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from gitp.exceptions import SshConfigError
from gitp.profiles.models import Profile, SshEntry
from gitp.utils.files import atomic_write_text

logger = logging.getLogger(__name__)

MANAGED_BLOCK_START = "# BEGIN MANAGED BY GITP"
MANAGED_BLOCK_END = "# END MANAGED BY GITP"
DEFAULT_SSH_USER = "git"

_DIR_MODE = 0o700
_FILE_MODE = 0o600


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one synchronization pass."""

    path: Path
    changed: bool
    backup_path: Path | None = None


def default_ssh_config_path() -> Path:
    return Path.home() / ".ssh" / "config"


def backup_path_for(path: Path) -> Path:
    return path.with_name(f"{path.name}.bak")


def entries_from_profiles(profiles: Iterable[Profile]) -> list[SshEntry]:
    """Collect SSH stanzas for every profile with a key and host.

    Ordered by host, then profile name, so the block is stable across runs.
    """
    keyed: list[tuple[str, str, SshEntry]] = []
    for profile in profiles:
        entry = profile.ssh_key_entry()
        if entry is not None:
            keyed.append((entry.host, profile.name, entry))
    keyed.sort(key=lambda item: (item[0], item[1]))
    return [entry for _host, _name, entry in keyed]


def render_entry(entry: SshEntry) -> str:
    user = entry.user or DEFAULT_SSH_USER
    return (
        f"Host {entry.host}\n"
        f"    HostName {entry.host}\n"
        f"    User {user}\n"
        f"    IdentityFile {entry.identity_file}\n"
        f"    IdentitiesOnly yes\n"
    )


def render_managed_block(entries: list[SshEntry]) -> str:
    """Return the full managed block, or '' when there is nothing to manage."""
    if not entries:
        return ""
    body = "".join(render_entry(entry) for entry in entries)
    return f"{MANAGED_BLOCK_START}\n{body}{MANAGED_BLOCK_END}\n"


def find_managed_block(content: str) -> tuple[int, int] | None:
    """Locate ``[start, end)`` of the managed region in ``content``.

    Uses the first start marker and the last end marker; ``end`` also
    swallows one newline after the end marker. Returns None when either
    marker is missing or they are out of order.
    """
    start = content.find(MANAGED_BLOCK_START)
    end_marker = content.rfind(MANAGED_BLOCK_END)
    if start == -1 or end_marker == -1 or start >= end_marker:
        return None
    end = end_marker + len(MANAGED_BLOCK_END)
    if content[end:end + 1] == "\n":
        end += 1
    return start, end


def merge_managed_block(content: str, block: str) -> str:
    """Splice ``block`` into ``content`` in place of any existing region."""
    span = find_managed_block(content)
    if span is not None:
        start, end = span
        return content[:start] + block + content[end:]
    if not block:
        return content
    if content and not content.endswith("\n"):
        content += "\n"
    return content + block


def normalize_blank_lines(text: str) -> str:
    """Collapse blank-line runs and end with exactly one newline ('' stays '').

    Lines end only at newline characters; form feeds and other Unicode
    separators stay part of the line, as they do for ssh.
    """
    lines: list[str] = []
    previous_blank = False
    for line in text.split("\n"):
        line = line.removesuffix("\r")
        if not line.strip():
            if not previous_blank:
                lines.append("")
            previous_blank = True
        else:
            lines.append(line)
            previous_blank = False
    result = "\n".join(lines).rstrip("\n")
    return f"{result}\n" if result else ""


def render_ssh_config(content: str, entries: list[SshEntry]) -> str:
    """Pure form of ``sync_ssh_config``: the text the file should hold."""
    return normalize_blank_lines(merge_managed_block(content, render_managed_block(entries)))


def _ensure_ssh_dir(directory: Path) -> None:
    if directory.exists():
        return
    try:
        directory.mkdir(parents=True, mode=_DIR_MODE)
        os.chmod(directory, _DIR_MODE)
    except OSError as e:
        raise SshConfigError(f"Failed to create SSH directory {directory}: {e}") from e


def sync_ssh_config(entries: list[SshEntry], *, path: Path | None = None) -> SyncResult:
    """Rewrite the managed region of the SSH config to hold ``entries``.

    Writes only when the normalized result differs from the current file.
    An existing file is copied to ``<path>.bak`` before being replaced.
    """
    config_path = path or default_ssh_config_path()
    _ensure_ssh_dir(config_path.parent)

    existed = config_path.exists()
    try:
        original = config_path.read_text(encoding="utf-8") if existed else ""
    except UnicodeDecodeError as e:
        raise SshConfigError(f"SSH config {config_path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise SshConfigError(f"Failed to read SSH config {config_path}: {e}") from e

    if not entries and find_managed_block(original) is None:
        logger.debug("No SSH entries and no managed block in %s; nothing to do", config_path)
        return SyncResult(path=config_path, changed=False)

    updated = render_ssh_config(original, entries)
    if updated.strip() == original.strip() and (existed or not updated):
        logger.debug("SSH config %s already up to date", config_path)
        return SyncResult(path=config_path, changed=False)

    backup: Path | None = None
    if existed:
        backup = backup_path_for(config_path)
        try:
            shutil.copy2(config_path, backup)
        except OSError as e:
            raise SshConfigError(
                f"Failed to back up SSH config to {backup}: {e}"
            ) from e

    try:
        atomic_write_text(config_path, updated)
        os.chmod(config_path, _FILE_MODE)
    except OSError as e:
        raise SshConfigError(f"Failed to write SSH config {config_path}: {e}") from e

    logger.info("SSH config updated at %s (%d managed host(s))", config_path, len(entries))
    return SyncResult(path=config_path, changed=True, backup_path=backup)
