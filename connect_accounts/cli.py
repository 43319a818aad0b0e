"""
Administrative commands for the account store.

.. code-block:: bash

   $ CONNECT_STORE_URI=sqlite:///connect.db connect-accounts create-db
   $ connect-accounts create-user --email admin@example.com --trust 2
   Password:
   Repeat for confirmation:

"""

import click

from . import app_logging
from .exceptions import NoSuchAccount
from .manager import AccountManager
from .trust import TrustLevel


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Log at debug level.')
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Manage user accounts."""
    if ctx.obj is None:
        app_logging.setup_logger(10 if verbose else None)
        ctx.obj = AccountManager.from_config()


@cli.command('create-db')
@click.pass_obj
def create_db(accounts: AccountManager) -> None:
    """Create all tables in the store."""
    accounts.store.graph.create_all()
    click.echo('Created tables')


@cli.command('create-user')
@click.option('--email', prompt='Email address')
@click.option('--password', prompt=True, hide_input=True,
              confirmation_prompt=True)
@click.option('--trust', 'trust_level', default=int(TrustLevel.UNVERIFIED),
              type=click.IntRange(0, int(TrustLevel.ADMIN)),
              help='0 unverified, 1 verified, 2 admin.')
@click.pass_obj
def create_user(accounts: AccountManager, email: str, password: str,
                trust_level: int) -> None:
    """Register a new account."""
    if accounts.register(email, password, trust_level) is None:
        raise click.ClickException(f'{email} is already registered')
    click.echo(f'Registered {email}')


@cli.command('set-trust')
@click.argument('email')
@click.argument('trust_level', type=click.IntRange(0, int(TrustLevel.ADMIN)))
@click.pass_obj
def set_trust(accounts: AccountManager, email: str, trust_level: int) -> None:
    """Set the trust level of an account."""
    try:
        accounts.change_trust(email, trust_level)
    except NoSuchAccount as e:
        raise click.ClickException(f'No account for {email}') from e
    click.echo(f'{email} now has trust {TrustLevel(trust_level).name}')


@cli.command('delete-user')
@click.argument('email')
@click.confirmation_option(prompt='Delete this account and its tokens?')
@click.pass_obj
def delete_user(accounts: AccountManager, email: str) -> None:
    """Delete an account and everything attached to it."""
    accounts.delete_account(email)
    click.echo(f'Deleted {email}')


@cli.command('reset-password')
@click.argument('email')
@click.pass_obj
def reset_password(accounts: AccountManager, email: str) -> None:
    """Give an account a new random password and print it once."""
    try:
        token = accounts.request_password_reset(email)
    except NoSuchAccount as e:
        raise click.ClickException(f'No account for {email}') from e
    reset = accounts.consume_password_reset(token)
    if reset is None:
        raise click.ClickException('Reset token could not be used')
    click.echo(reset.password)


@cli.command('verify-email')
@click.argument('token')
@click.pass_obj
def verify_email(accounts: AccountManager, token: str) -> None:
    """Use an email verification token."""
    email = accounts.consume_email_verification(token)
    if email is None:
        raise click.ClickException('Unknown or expired token')
    click.echo(f'Verified {email}')


if __name__ == '__main__':
    cli()
