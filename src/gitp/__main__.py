"""CLI entry point for gitp."""

from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path

import click

from gitp import __version__
from gitp.activation import activate_profile
from gitp.config import ConfigError, Settings, configure_logging, load_settings
from gitp.credentials import Keychain, move_token_to_keychain, retire_credential
from gitp.exceptions import GitError, GitpError, ProfileExistsError
from gitp.git import GitConfigScope, get_git_config
from gitp.profiles.edits import build_profile, merge_profile_edits
from gitp.profiles.models import KeychainReference, Profile
from gitp.profiles.store import (
    ProfileStore,
    load_store,
    parse_profile_toml,
    render_profile_toml,
    save_store,
)
from gitp.profiles.validation import validate_profile

# Entered at an interactive prompt to clear an optional field.
_CLEAR = "-"


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def _keychain(ctx: click.Context) -> Keychain:
    return ctx.obj["keychain"]


def _load(ctx: click.Context) -> ProfileStore:
    return load_store(_settings(ctx).store_path)


def _save(ctx: click.Context, store: ProfileStore) -> None:
    save_store(_settings(ctx).store_path, store)


def _fail(prefix: str, error: Exception) -> None:
    click.echo(f"{prefix}: {error}", err=True)
    sys.exit(1)


def _echo_profile(profile: Profile, *, active: bool) -> None:
    marker = click.style("●", fg="green" if active else None, bold=active)
    suffix = " (current)" if active else ""
    click.echo(f"{marker} {click.style(profile.name, bold=True)}{suffix}")
    click.echo(f"  Name: {profile.identity.user_name}")
    click.echo(f"  Email: {profile.identity.user_email}")
    if profile.identity.signing_key:
        click.echo(f"  Signing Key: {profile.identity.signing_key}")
    if profile.ssh_key_path is not None:
        click.echo(f"  SSH Key: {profile.ssh_key_path}")
    if profile.ssh_key_host:
        click.echo(f"  SSH Host: {profile.ssh_key_host}")
    if profile.gpg_key_id:
        click.echo(f"  GPG Key: {profile.gpg_key_id}")
    credential = profile.https_credential
    if credential is not None:
        storage = (
            "keychain" if isinstance(credential.secret, KeychainReference) else "token (masked)"
        )
        click.echo(f"  HTTPS: {credential.username}@{credential.host} [{storage}]")
    if profile.custom_config:
        click.echo("  Custom Config:")
        for key in sorted(profile.custom_config):
            click.echo(f"    {key} = {profile.custom_config[key]}")


def _prompt_optional(label: str, current: str | None = None) -> str:
    """Prompt for an optional value; returns '' to clear, current to keep."""
    hint = f" ('{_CLEAR}' to clear)" if current else " (Enter to skip)"
    answer = click.prompt(
        f"{label}{hint}",
        default=current or "",
        show_default=bool(current),
    )
    return "" if answer.strip() == _CLEAR else answer


def _prompt_https(
    current: Profile | None,
) -> tuple[str | None, str | None, str | None, bool]:
    """Interactively collect ``(host, username, token, store_in_keychain)``."""
    credential = current.https_credential if current else None
    if not click.confirm(
        "Configure HTTPS credentials?", default=credential is not None
    ):
        return None, None, None, False

    host = _prompt_optional("HTTPS host", credential.host if credential else None)
    if not host.strip():
        return "", None, None, False
    same_host = credential is not None and credential.host == host.strip()
    username = click.prompt(
        "HTTPS username",
        default=credential.username if same_host and credential else None,
    )
    keep_hint = (
        " (Enter to keep current)"
        if same_host and credential and credential.username == username.strip()
        else ""
    )
    token = click.prompt(
        f"HTTPS token{keep_hint}",
        default="",
        show_default=False,
        hide_input=True,
    )
    store_in_keychain = False
    if token.strip():
        store_in_keychain = click.confirm("Store token in the system keychain?", default=True)
    return host, username, token, store_in_keychain


def _commit_profile(
    ctx: click.Context,
    store: ProfileStore,
    profile: Profile,
    *,
    previous: Profile | None,
    store_in_keychain: bool,
) -> Profile:
    """Validate, secure the token, persist, then retire any superseded secret."""
    validate_profile(profile)
    keychain = _keychain(ctx)
    if store_in_keychain:
        profile = move_token_to_keychain(profile, keychain=keychain)
    if previous is None:
        store.add(profile)
    else:
        store.update(profile)
    _save(ctx, store)
    if previous is not None and not retire_credential(
        previous.https_credential, profile.https_credential, keychain
    ):
        click.echo("Warning: the previous keychain token could not be deleted.", err=True)
    return profile


@click.group()
@click.version_option(version=__version__, prog_name="gitp")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the profile store (defaults to the per-user gitp config).",
)
@click.option(
    "--ssh-config",
    "ssh_config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the SSH client config to manage (defaults to ~/.ssh/config).",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    ssh_config_path: Path | None,
    verbose: bool,
) -> None:
    """gitp: switch between git identity profiles.

    A profile bundles git user name/email with optional signing key,
    SSH key, GPG key and HTTPS credentials.
    """
    ctx.ensure_object(dict)
    try:
        settings = load_settings().with_overrides(
            store_path=config_path,
            ssh_config_path=ssh_config_path,
            verbose=verbose,
        )
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    configure_logging(settings)
    ctx.obj["settings"] = settings
    ctx.obj.setdefault("keychain", Keychain())


@cli.command()
@click.argument("name")
@click.option("--user-name", default=None, help="Git user.name.")
@click.option("--user-email", default=None, help="Git user.email.")
@click.option("--signing-key", default=None, help="Git user.signingkey.")
@click.option("--ssh-key-path", default=None, help="Path to the SSH private key.")
@click.option("--ssh-key-host", default=None, help="Host the SSH key is used for.")
@click.option("--gpg-key-id", default=None, help="GPG key id (8, 16, or 40 hex chars).")
@click.option("--https-host", default=None, help="Host for HTTPS credentials.")
@click.option("--https-username", default=None, help="Username for HTTPS credentials.")
@click.option("--https-token", default=None, help="Personal access token for HTTPS.")
@click.option(
    "--https-store-in-keychain",
    is_flag=True,
    default=False,
    help="Keep the HTTPS token in the system keychain instead of the profile file.",
)
@click.pass_context
def new(
    ctx: click.Context,
    name: str,
    user_name: str | None,
    user_email: str | None,
    signing_key: str | None,
    ssh_key_path: str | None,
    ssh_key_host: str | None,
    gpg_key_id: str | None,
    https_host: str | None,
    https_username: str | None,
    https_token: str | None,
    https_store_in_keychain: bool,
) -> None:
    """Create a new profile."""
    interactive = not ((user_name or "").strip() and (user_email or "").strip())
    try:
        store = _load(ctx)
        if name in store.profiles:
            raise ProfileExistsError(name)
        if interactive:
            user_name = click.prompt("Git user name")
            user_email = click.prompt("Git user email")
            signing_key = _prompt_optional("Git signing key")
            ssh_key_path = _prompt_optional("SSH key path")
            if ssh_key_path.strip():
                ssh_key_host = click.prompt("SSH key host (e.g. github.com)")
            gpg_key_id = _prompt_optional("GPG key id")
            https_host, https_username, https_token, https_store_in_keychain = (
                _prompt_https(None)
            )
        profile = build_profile(
            name,
            user_name=user_name or "",
            user_email=user_email or "",
            signing_key=signing_key,
            ssh_key_path=ssh_key_path,
            ssh_key_host=ssh_key_host,
            gpg_key_id=gpg_key_id,
            https_host=https_host,
            https_username=https_username,
            https_token=https_token,
        )
        profile = _commit_profile(
            ctx,
            store,
            profile,
            previous=None,
            store_in_keychain=https_store_in_keychain,
        )
    except GitpError as e:
        _fail("Create failed", e)

    click.echo(f"Profile '{profile.name}' created.")
    if interactive and click.confirm(f"Activate profile '{profile.name}' now?", default=True):
        ctx.invoke(use, name=profile.name, local=False)


@cli.command(name="list")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Show profile details.")
@click.pass_context
def list_profiles(ctx: click.Context, verbose: bool) -> None:
    """List all profiles."""
    try:
        store = _load(ctx)
    except GitpError as e:
        _fail("List failed", e)

    if not store.profiles:
        click.echo("No profiles found. Create one with 'gitp new <name>'.")
        return

    if verbose:
        for name in sorted(store.profiles):
            _echo_profile(store.profiles[name], active=name == store.active_profile_name)
            click.echo()
        return

    click.echo("Available profiles:")
    for name in sorted(store.profiles):
        if name == store.active_profile_name:
            click.echo(f"  * {click.style(name, fg='green', bold=True)}")
        else:
            click.echo(f"    {name}")
    click.echo()
    click.echo("* = current profile")


@cli.command()
@click.argument("name")
@click.pass_context
def show(ctx: click.Context, name: str) -> None:
    """Show profile details."""
    try:
        store = _load(ctx)
        profile = store.get(name)
    except GitpError as e:
        _fail("Show failed", e)
    _echo_profile(profile, active=name == store.active_profile_name)


@cli.command()
@click.argument("name")
@click.option(
    "--local/--global",
    "local",
    default=False,
    help="Apply to the current repository only, or globally (default).",
)
@click.pass_context
def use(ctx: click.Context, name: str, local: bool) -> None:
    """Switch to a profile."""
    scope = GitConfigScope.LOCAL if local else GitConfigScope.GLOBAL
    try:
        store = _load(ctx)
        result = activate_profile(
            store,
            name,
            scope=scope,
            ssh_config_path=_settings(ctx).ssh_config_path,
        )
        _save(ctx, store)
    except GitpError as e:
        _fail("Switch failed", e)

    click.echo(f"Switched to profile '{name}' ({scope.value}).")
    if result.changed:
        click.echo(f"SSH config updated at {result.path}")
        if result.backup_path is not None:
            click.echo(f"  backup: {result.backup_path}")


@cli.command()
def current() -> None:
    """Show the git identity currently in effect."""
    click.echo("Current git configuration:")
    try:
        for label, key in (
            ("User Name", "user.name"),
            ("User Email", "user.email"),
            ("Signing Key", "user.signingkey"),
        ):
            try:
                local_value = get_git_config(key, GitConfigScope.LOCAL)
            except GitError:
                # Not inside a repository.
                local_value = None
            global_value = get_git_config(key, GitConfigScope.GLOBAL)
            if local_value is not None:
                click.echo(f"  {label}: {local_value} (local)")
            elif global_value is not None:
                click.echo(f"  {label}: {global_value} (global)")
            else:
                click.echo(f"  {label}: Not set")
    except GitpError as e:
        _fail("Current failed", e)


@cli.command()
@click.argument("name")
@click.option("--user-name", default=None, help="New git user.name.")
@click.option("--user-email", default=None, help="New git user.email.")
@click.option("--signing-key", default=None, help="New signing key ('' removes).")
@click.option("--ssh-key-path", default=None, help="New SSH key path ('' removes key and host).")
@click.option("--ssh-key-host", default=None, help="New SSH key host.")
@click.option("--gpg-key-id", default=None, help="New GPG key id ('' removes).")
@click.option("--https-host", default=None, help="New HTTPS host ('' removes HTTPS credentials).")
@click.option("--https-username", default=None, help="New HTTPS username.")
@click.option("--https-token", default=None, help="New HTTPS token.")
@click.option(
    "--https-store-in-keychain",
    is_flag=True,
    default=False,
    help="Keep the new HTTPS token in the system keychain.",
)
@click.pass_context
def edit(
    ctx: click.Context,
    name: str,
    user_name: str | None,
    user_email: str | None,
    signing_key: str | None,
    ssh_key_path: str | None,
    ssh_key_host: str | None,
    gpg_key_id: str | None,
    https_host: str | None,
    https_username: str | None,
    https_token: str | None,
    https_store_in_keychain: bool,
) -> None:
    """Edit an existing profile."""
    flags = (
        user_name,
        user_email,
        signing_key,
        ssh_key_path,
        ssh_key_host,
        gpg_key_id,
        https_host,
        https_username,
        https_token,
    )
    interactive = all(value is None for value in flags) and not https_store_in_keychain
    if https_store_in_keychain and not (https_token or "").strip():
        click.echo("--https-store-in-keychain requires --https-token.", err=True)
        sys.exit(1)

    try:
        store = _load(ctx)
        previous = store.get(name)
        if interactive:
            click.echo(f"Editing profile '{name}' (Enter keeps the current value).")
            user_name = click.prompt("User name", default=previous.identity.user_name)
            user_email = click.prompt("User email", default=previous.identity.user_email)
            signing_key = _prompt_optional("Git signing key", previous.identity.signing_key)
            ssh_key_path = _prompt_optional(
                "SSH key path",
                str(previous.ssh_key_path) if previous.ssh_key_path else None,
            )
            ssh_key_host = None
            if ssh_key_path.strip():
                ssh_key_host = click.prompt(
                    "SSH key host", default=previous.ssh_key_host or None
                )
            gpg_key_id = _prompt_optional("GPG key id", previous.gpg_key_id)
            https_host, https_username, https_token, https_store_in_keychain = (
                _prompt_https(previous)
            )
        updated = merge_profile_edits(
            previous,
            user_name=user_name,
            user_email=user_email,
            signing_key=signing_key,
            ssh_key_path=ssh_key_path,
            ssh_key_host=ssh_key_host,
            gpg_key_id=gpg_key_id,
            https_host=https_host,
            https_username=https_username,
            https_token=https_token,
        )
        _commit_profile(
            ctx,
            store,
            updated,
            previous=previous,
            store_in_keychain=https_store_in_keychain,
        )
    except GitpError as e:
        _fail("Edit failed", e)

    click.echo(f"Profile '{name}' updated.")


@cli.command()
@click.argument("name")
@click.option("--force", "-f", is_flag=True, default=False, help="Skip confirmation prompt.")
@click.pass_context
def remove(ctx: click.Context, name: str, force: bool) -> None:
    """Remove a profile."""
    try:
        store = _load(ctx)
        store.get(name)
        if not force and not click.confirm(
            f"Are you sure you want to remove profile '{name}'?", default=False
        ):
            click.echo(f"Removal of profile '{name}' cancelled.")
            return
        was_active = store.active_profile_name == name
        removed = store.remove(name)
        _save(ctx, store)
    except GitpError as e:
        _fail("Remove failed", e)

    if was_active:
        click.echo(f"Profile '{name}' was the current profile and has been unset.")
    if not retire_credential(removed.https_credential, None, _keychain(ctx)):
        click.echo("Warning: the profile's keychain token could not be deleted.", err=True)
    click.echo(f"Profile '{name}' removed.")


@cli.command()
@click.argument("old_name")
@click.argument("new_name")
@click.pass_context
def rename(ctx: click.Context, old_name: str, new_name: str) -> None:
    """Rename a profile."""
    try:
        store = _load(ctx)
        if old_name == new_name.strip():
            store.get(old_name)
            click.echo("The new name is the same as the old name. No changes made.")
            return
        renamed = store.rename(old_name, new_name)
        _save(ctx, store)
    except GitpError as e:
        _fail("Rename failed", e)
    click.echo(f"Profile '{old_name}' renamed to '{renamed.name}'.")


@cli.group(name="ssh-key")
def ssh_key() -> None:
    """Manage the SSH key associated with a profile."""


@ssh_key.command(name="set")
@click.argument("profile_name")
@click.argument("key_path")
@click.option("--host", default=None, help="Host the key is used for (e.g. github.com).")
@click.pass_context
def ssh_key_set(ctx: click.Context, profile_name: str, key_path: str, host: str | None) -> None:
    """Set or update the SSH key for a profile."""
    try:
        store = _load(ctx)
        previous = store.get(profile_name)
        updated = merge_profile_edits(previous, ssh_key_path=key_path, ssh_key_host=host)
        _commit_profile(ctx, store, updated, previous=previous, store_in_keychain=False)
    except GitpError as e:
        _fail("SSH key update failed", e)
    click.echo(
        f"SSH key for profile '{profile_name}' set to '{updated.ssh_key_path}' "
        f"(host {updated.ssh_key_host})."
    )


@ssh_key.command(name="remove")
@click.argument("profile_name")
@click.pass_context
def ssh_key_remove(ctx: click.Context, profile_name: str) -> None:
    """Remove the SSH key from a profile."""
    try:
        store = _load(ctx)
        previous = store.get(profile_name)
        if previous.ssh_key_path is None and previous.ssh_key_host is None:
            click.echo(f"Profile '{profile_name}' does not have an SSH key associated.")
            return
        updated = merge_profile_edits(previous, ssh_key_path="")
        _commit_profile(ctx, store, updated, previous=previous, store_in_keychain=False)
    except GitpError as e:
        _fail("SSH key removal failed", e)
    click.echo(f"SSH key association removed from profile '{profile_name}'.")


@ssh_key.command(name="show")
@click.argument("profile_name")
@click.pass_context
def ssh_key_show(ctx: click.Context, profile_name: str) -> None:
    """Show the SSH key of a profile."""
    try:
        profile = _load(ctx).get(profile_name)
    except GitpError as e:
        _fail("SSH key lookup failed", e)
    if profile.ssh_key_path is None:
        click.echo(f"Profile '{profile_name}' does not have an SSH key associated.")
        return
    click.echo(f"SSH key for profile '{profile_name}': {profile.ssh_key_path}")
    if profile.ssh_key_host:
        click.echo(f"  host: {profile.ssh_key_host}")


@cli.command()
@click.argument("name")
@click.option(
    "--output-path",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write to this file instead of stdout.",
)
@click.pass_context
def export(ctx: click.Context, name: str, output_path: Path | None) -> None:
    """Export a profile as TOML."""
    try:
        profile = _load(ctx).get(name)
        text = render_profile_toml(profile)
        if output_path is not None:
            try:
                output_path.write_text(text, encoding="utf-8")
            except OSError as e:
                raise GitpError(f"Cannot write {output_path}: {e}") from e
    except GitpError as e:
        _fail("Export failed", e)

    if output_path is None:
        click.echo(text, nl=False)
    else:
        click.echo(f"Profile '{name}' exported to {output_path}.", err=True)


@cli.command(name="import")
@click.argument("input_path", default="-")
@click.option("--profile-name", "-p", default=None, help="Save under this name instead.")
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing profile.")
@click.pass_context
def import_profile(
    ctx: click.Context,
    input_path: str,
    profile_name: str | None,
    force: bool,
) -> None:
    """Import a profile from a TOML file or stdin ('-')."""
    try:
        with click.open_file(input_path, "r", encoding="utf-8") as f:
            text = f.read()
    except UnicodeDecodeError as e:
        _fail("Import failed", GitpError(f"{input_path} is not valid UTF-8: {e}"))
    except OSError as e:
        _fail("Import failed", e)

    source = "stdin" if input_path == "-" else input_path
    try:
        profile = parse_profile_toml(text, source=source)
        if profile_name is not None:
            if not profile_name.strip():
                raise GitpError("Profile name override cannot be empty.")
            profile = replace(profile, name=profile_name.strip())
        store = _load(ctx)
        existing = store.profiles.get(profile.name)
        if existing is not None and not force:
            raise GitpError(
                f"A profile named '{profile.name}' already exists. Use --force to overwrite."
            )
        _commit_profile(ctx, store, profile, previous=existing, store_in_keychain=False)
    except GitpError as e:
        _fail("Import failed", e)
    click.echo(f"Profile '{profile.name}' imported.", err=True)


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
