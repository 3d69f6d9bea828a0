"""Command line interface for ``gh_app_auth.GitHubAppAuth`` operations."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Awaitable, Dict, Optional, Tuple, TypeVar

from .auth import GitHubAppAuth
from .errors import GitHubAppAuthError, InvalidArgumentError, MissingTargetError
from .utils import DEFAULT_API_BASE_URL, decode_private_key_base64, read_private_key

try:  # Optional dependency group.
    import click
except ImportError:  # pragma: no cover - exercised only without the CLI extra.
    click = None  # type: ignore[assignment]

T = TypeVar("T")


def _require_cli_dependencies() -> None:
    if click is None:
        message = (
            "gh-app-auth CLI dependencies are not installed. "
            "Install them with 'pip install gh-app-auth[cli]'."
        )
        print(message, file=sys.stderr)
        raise SystemExit(1)


if click is not None:
    _CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

    def _app_options(func):
        options = [
            click.option(
                "--jwt-expires-in",
                type=int,
                envvar="GITHUB_APP_JWT_EXPIRES_IN",
                help="JWT lifetime in seconds (at most 600). Defaults to 540.",
            ),
            click.option(
                "--api-url",
                default=DEFAULT_API_BASE_URL,
                show_default=True,
                envvar="GITHUB_API_URL",
                help="GitHub REST API base URL, e.g. https://ghe.example.com/api/v3.",
            ),
            click.option("--repo", envvar="GITHUB_REPO", help="Default repository name."),
            click.option("--owner", envvar="GITHUB_OWNER", help="Default repository owner."),
            click.option(
                "--installation-id",
                envvar="GITHUB_INSTALLATION_ID",
                help="Installation identifier. Looked up from --owner/--repo when omitted.",
            ),
            click.option(
                "--base64-key",
                envvar="GITHUB_APP_KEY_B64",
                help="Base64 encoded representation of the private key.",
            ),
            click.option(
                "--key-path",
                type=click.Path(
                    exists=True,
                    file_okay=True,
                    dir_okay=False,
                    readable=True,
                    path_type=Path,
                ),
                envvar="GITHUB_APP_KEY_PATH",
                help="Path to the PEM encoded GitHub App private key.",
            ),
            click.option(
                "--private-key",
                envvar="GITHUB_APP_PRIVATE_KEY",
                help="PEM encoded private key; escaped newlines are accepted.",
            ),
            click.option(
                "--app-id",
                envvar="GITHUB_APP_ID",
                required=True,
                help="GitHub App identifier.",
            ),
        ]
        for option in reversed(options):
            func = option(func)
        return func

    def _load_private_key(
        private_key: Optional[str],
        key_path: Optional[Path],
        base64_key: Optional[str],
    ) -> str:
        sources = [source for source in (private_key, key_path, base64_key) if source]
        if len(sources) != 1:
            raise click.UsageError("Provide exactly one of --private-key, --key-path or --base64-key.")

        try:
            if key_path:
                return read_private_key(key_path)
            if base64_key:
                return decode_private_key_base64(base64_key)
        except InvalidArgumentError as exc:
            raise click.UsageError(str(exc)) from exc
        assert private_key is not None  # For type-checkers.
        return private_key

    def _create_auth(
        app_id: str,
        private_key: Optional[str],
        key_path: Optional[Path],
        base64_key: Optional[str],
        installation_id: Optional[str],
        owner: Optional[str],
        repo: Optional[str],
        api_url: str,
        jwt_expires_in: Optional[int],
    ) -> GitHubAppAuth:
        key = _load_private_key(private_key, key_path, base64_key)
        try:
            return GitHubAppAuth(
                app_id=app_id,
                private_key=key,
                owner=owner,
                repo=repo,
                installation_id=installation_id,
                jwt_expires_in_seconds=jwt_expires_in,
                api_base_url=api_url,
            )
        except InvalidArgumentError as exc:
            raise click.UsageError(str(exc)) from exc

    def _run(operation: Awaitable[T]) -> T:
        try:
            return asyncio.run(operation)
        except (InvalidArgumentError, MissingTargetError) as exc:
            raise click.UsageError(str(exc)) from exc
        except GitHubAppAuthError as exc:
            raise click.ClickException(str(exc)) from exc

    def _parse_permissions(values: Tuple[str, ...]) -> Optional[Dict[str, str]]:
        if not values:
            return None

        permissions: Dict[str, str] = {}
        for value in values:
            name, sep, level = value.partition("=")
            if not sep or not name.strip() or not level.strip():
                raise click.BadParameter(
                    f"'{value}' is not in NAME=LEVEL form.", param_hint="--permission"
                )
            permissions[name.strip()] = level.strip()
        return permissions

    @click.group(context_settings=_CONTEXT_SETTINGS)
    @click.option("--verbose", "-v", is_flag=True, help="Log HTTP requests to stderr.")
    def _cli(verbose: bool) -> None:
        """Create GitHub App JWTs and installation access tokens."""

        if verbose:
            logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    @_cli.command(context_settings=_CONTEXT_SETTINGS)
    @_app_options
    def jwt(  # type: ignore[misc]
        app_id: str,
        private_key: Optional[str],
        key_path: Optional[Path],
        base64_key: Optional[str],
        installation_id: Optional[str],
        owner: Optional[str],
        repo: Optional[str],
        api_url: str,
        jwt_expires_in: Optional[int],
    ) -> None:
        """Print a freshly signed GitHub App JWT."""

        auth = _create_auth(
            app_id, private_key, key_path, base64_key, installation_id, owner, repo, api_url, jwt_expires_in
        )
        try:
            click.echo(auth.create_jwt())
        except GitHubAppAuthError as exc:
            raise click.ClickException(str(exc)) from exc

    @_cli.command("installation-id", context_settings=_CONTEXT_SETTINGS)
    @_app_options
    def installation_id_command(  # type: ignore[misc]
        app_id: str,
        private_key: Optional[str],
        key_path: Optional[Path],
        base64_key: Optional[str],
        installation_id: Optional[str],
        owner: Optional[str],
        repo: Optional[str],
        api_url: str,
        jwt_expires_in: Optional[int],
    ) -> None:
        """Print the installation id of the App on --owner/--repo."""

        auth = _create_auth(
            app_id, private_key, key_path, base64_key, installation_id, owner, repo, api_url, jwt_expires_in
        )
        click.echo(_run(auth.resolve_installation_id()))

    @_cli.command(context_settings=_CONTEXT_SETTINGS)
    @_app_options
    @click.option(
        "--permission",
        "permissions",
        multiple=True,
        metavar="NAME=LEVEL",
        help="Restrict the token to a permission, e.g. contents=read. Repeatable.",
    )
    @click.option(
        "--repository",
        "repositories",
        multiple=True,
        help="Restrict the token to a repository name. Repeatable.",
    )
    @click.option(
        "--repository-id",
        "repository_ids",
        type=int,
        multiple=True,
        help="Restrict the token to a repository id. Repeatable.",
    )
    def token(  # type: ignore[misc]
        permissions: Tuple[str, ...],
        repositories: Tuple[str, ...],
        repository_ids: Tuple[int, ...],
        app_id: str,
        private_key: Optional[str],
        key_path: Optional[Path],
        base64_key: Optional[str],
        installation_id: Optional[str],
        owner: Optional[str],
        repo: Optional[str],
        api_url: str,
        jwt_expires_in: Optional[int],
    ) -> None:
        """Print an installation access token."""

        scope = _parse_permissions(permissions)
        auth = _create_auth(
            app_id, private_key, key_path, base64_key, installation_id, owner, repo, api_url, jwt_expires_in
        )
        click.echo(
            _run(
                auth.create_access_token(
                    permissions=scope,
                    repositories=list(repositories) or None,
                    repository_ids=list(repository_ids) or None,
                )
            )
        )
else:
    _cli = None


def main() -> None:
    """Entry-point used by console_scripts."""

    _require_cli_dependencies()
    assert _cli is not None  # For type-checkers.
    _cli()


__all__ = ["main"]
