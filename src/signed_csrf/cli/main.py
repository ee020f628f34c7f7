# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""signed-csrf CLI — master secret generation and session secret inspection."""

from __future__ import annotations

import secrets
import sys

import click

from signed_csrf.config.properties import TokenProperties
from signed_csrf.kernel.exceptions import ConfigurationException
from signed_csrf.security.token import SignedTokenCodec


def _codec(secret: str, digest: str, common_len: int, token_len: int) -> SignedTokenCodec:
    try:
        return SignedTokenCodec(secret, TokenProperties(digest, common_len, token_len))
    except ConfigurationException as exc:
        raise click.BadParameter(str(exc)) from exc


def _token_options(func):
    func = click.option("--token-len", default=48, show_default=True, help="Total token length.")(func)
    func = click.option("--common-len", default=24, show_default=True, help="Nonce length.")(func)
    func = click.option("--digest", default="sha256", show_default=True, help="HMAC digest.")(func)
    return click.option(
        "--secret",
        envvar="CSRF_SECRET",
        required=True,
        help="Master secret (defaults to $CSRF_SECRET).",
    )(func)


@click.group()
@click.version_option(package_name="signed-csrf")
def cli() -> None:
    """signed-csrf — signed-token CSRF protection tools."""


@cli.command("secret")
@click.option("--length", default=32, show_default=True, help="Random bytes of entropy.")
def secret_command(length: int) -> None:
    """Print a new random master secret."""
    if length < 16:
        raise click.BadParameter("use at least 16 bytes", param_hint="--length")
    click.echo(secrets.token_urlsafe(length))


@cli.command("sign")
@_token_options
def sign_command(secret: str, digest: str, common_len: int, token_len: int) -> None:
    """Print a session secret signed with the master secret."""
    click.echo(_codec(secret, digest, common_len, token_len).sign())


@cli.command("verify")
@_token_options
@click.argument("value")
def verify_command(secret: str, digest: str, common_len: int, token_len: int, value: str) -> None:
    """Check that VALUE is a session secret signed with the master secret.

    Put ``--`` before VALUE when it starts with a dash.
    """
    from signed_csrf.cli.console import console, err_console

    if _codec(secret, digest, common_len, token_len).verify(value):
        console.print("[success]valid[/success]")
        return
    err_console.print("[error]invalid[/error]")
    sys.exit(1)
