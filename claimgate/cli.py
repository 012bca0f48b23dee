"""
Command line tools for staff.

Usage:
    claimgate accept-friends                 # Accept pending requests once
    claimgate accept-friends --interval 300  # Keep accepting every 5 minutes
"""

import time

import click
import httpx

from claimgate.adapters.roblox.friends import RobloxFriendRequests
from claimgate.api.main import configure_logging
from claimgate.config.settings import Settings, get_settings
from claimgate.domain.exceptions import FriendRequestError
from claimgate.domain.friends import AcceptReport, FriendRequestAcceptor


def make_http_client(settings: Settings) -> httpx.Client:
    return httpx.Client(timeout=settings.http_timeout_seconds)


@click.group()
def cli() -> None:
    """claimgate staff utilities."""
    pass


@cli.command("accept-friends")
@click.option(
    "--interval",
    "-i",
    type=click.FloatRange(min=0),
    default=0,
    show_default=True,
    help="Seconds between passes; 0 runs a single pass",
)
def accept_friends(interval: float) -> None:
    """Accept every pending friend request of the delivery agent account."""
    settings = get_settings()
    configure_logging(settings)

    cookie = settings.roblox_cookie.get_secret_value()
    if not cookie:
        raise click.ClickException("ROBLOX_COOKIE is not set")

    with make_http_client(settings) as client:
        acceptor = FriendRequestAcceptor(
            RobloxFriendRequests(client, cookie=cookie, friends_url=settings.roblox_friends_url)
        )
        if not interval:
            if not _run_pass(acceptor):
                raise SystemExit(1)
            return

        try:
            while True:
                _run_pass(acceptor)
                time.sleep(interval)
        except KeyboardInterrupt:
            click.echo("Stopped.")


def _run_pass(acceptor: FriendRequestAcceptor) -> bool:
    """One acceptance pass; False if anything failed."""
    try:
        report = acceptor.accept_all()
    except FriendRequestError as e:
        click.echo(f"Failed to list friend requests: {e}", err=True)
        return False

    _echo_report(report)
    return not report.failed


def _echo_report(report: AcceptReport) -> None:
    for user in report.accepted:
        click.echo(f"Accepted request from: {user.name}")
    for user in report.failed:
        click.echo(f"Could not accept request from: {user.name}", err=True)
    if not report.accepted and not report.failed:
        click.echo("No pending friend requests.")


if __name__ == "__main__":
    cli()
