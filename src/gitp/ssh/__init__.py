"""SSH client config management."""

from gitp.ssh.config import (
    MANAGED_BLOCK_END,
    MANAGED_BLOCK_START,
    SyncResult,
    entries_from_profiles,
    render_ssh_config,
    sync_ssh_config,
)

__all__ = [
    "MANAGED_BLOCK_END",
    "MANAGED_BLOCK_START",
    "SyncResult",
    "entries_from_profiles",
    "render_ssh_config",
    "sync_ssh_config",
]
