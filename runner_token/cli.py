"""Command line tool that prints a GitHub Actions runner token for an organization."""
from __future__ import annotations

import logging
import sys

import click
from aws_lambda_powertools import Logger

from .config import load_settings
from .errors import RunnerTokenError
from .models import OutputMethod, SecretStoreAuth, SecretStoreKind, TokenType
from .services.token_service import TokenService

# stdout carries only the token
logger = Logger(
    service="github-runner-token",
    level="WARNING",
    logger_handler=logging.StreamHandler(sys.stderr),
)


def _choice(enum_cls) -> click.Choice:
    return click.Choice(enum_cls.choices(), case_sensitive=False)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--debug", is_flag=True, help="Enables debug logging on stderr.")
@click.option("--token-type", type=_choice(TokenType), help="Token type to get from GitHub. [default: REGISTER]")
@click.option("--output", type=_choice(OutputMethod), help="How the token is printed. [default: TOKEN]")
@click.option("--organization", help="Name of the GitHub organization.")
@click.option("--app-id", type=int, help="Application ID of the GitHub App.")
@click.option("--installation-id", type=int, help="Installation ID of the GitHub App.")
@click.option("--private-key-path", type=click.Path(dir_okay=False), help="The private key (PEM format) of the GitHub App.")
@click.option("--private-key", help="The private key (PEM format) as a string.")
@click.option("--use-secret-store", is_flag=True, help="Read the App credentials from the secret store.")
@click.option("--secret-store", type=_choice(SecretStoreKind), help="Where the secrets live. [default: SSM]")
@click.option("--secret-store-auth", type=_choice(SecretStoreAuth), help="ENV for the default AWS credential chain, CLI for an AWS CLI profile. [default: ENV]")
@click.option("--aws-profile", help="AWS CLI profile used with --secret-store-auth CLI.")
@click.option("--aws-region", help="AWS region of the secret store.")
@click.option("--organization-secret", help="Secret holding the organization name.")
@click.option("--app-id-secret", help="Secret holding the App ID.")
@click.option("--installation-id-secret", help="Secret holding the Installation ID.")
@click.option("--private-key-secret", help="Secret holding the GitHub App private key.")
@click.option("--github-api-url", help="GitHub REST API base URL. [default: https://api.github.com]")
@click.option("--timeout", type=float, help="HTTP timeout in seconds. [default: 30]")
@click.version_option(package_name="github-runner-token")
def cli(debug, use_secret_store, **options):
    """Print a GitHub Actions self-hosted runner registration or removal token.

    Every option can also be set through a GITHUB_RUNNER_<NAME> environment
    variable, e.g. GITHUB_RUNNER_APP_ID.
    """
    try:
        settings = load_settings(
            debug=debug or None,
            use_secret_store=use_secret_store or None,
            **options,
        )
        logger.setLevel("DEBUG" if settings.debug else "WARNING")
        service = TokenService(settings, logger)
        output = service.render(service.get_runner_token())
    except RunnerTokenError as exc:
        raise click.ClickException(str(exc))
    click.echo(output)


def main() -> None:
    cli(prog_name="github-runner-token")


if __name__ == "__main__":
    main()
