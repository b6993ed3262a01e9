"""
Command Line Interface

Thin click wrapper around LedgerEngine. All human-readable output lives here;
the engine itself only returns values or raises LedgerError.
"""

import sys

import click

from .account_numbers import AccountNumberGenerator
from .config import get_config
from .errors import LedgerError
from .ledger import LedgerEngine
from .logging_config import setup_logging
from .storage import create_store


def _engine(ctx: click.Context) -> LedgerEngine:
    return ctx.obj["engine"]


@click.group()
@click.option("--db", "database_path", type=click.Path(dir_okay=False),
              help="SQLite database file (defaults to LEDGER_DATABASE_PATH).")
@click.option("--log-level", default=None, help="Log level (defaults to LEDGER_LOG_LEVEL, else WARNING).")
@click.pass_context
def cli(ctx: click.Context, database_path, log_level):
    """Personal ledger: accounts, deposits, withdrawals and transfers."""
    settings = get_config()
    setup_logging(log_level or settings.log_level, settings.log_format, settings.log_file)

    store = create_store(settings.storage_backend, database_path or settings.database_path)
    ctx.call_on_close(store.close)
    generator = AccountNumberGenerator(length=settings.account_number_length)
    ctx.obj = {
        "engine": LedgerEngine(
            store,
            generator,
            max_generation_attempts=settings.max_generation_attempts,
            pin_length=settings.pin_length
        )
    }


def _run(operation, *args):
    """Call an engine operation, turning ledger errors into exit status 1"""
    try:
        return operation(*args)
    except LedgerError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def create(ctx):
    """Create a new account and print its number and PIN."""
    account = _run(_engine(ctx).create_account)
    click.echo(f"Created account `{account.account_number}` (id {account.id}).")
    click.echo(f"Your pin is `{account.pin}`. Keep it safe, it will not be shown again.")


@cli.command()
@click.argument("account_number")
@click.argument("amount")
@click.option("--pin", required=True, help="Account PIN.")
@click.pass_context
def deposit(ctx, account_number, amount, pin):
    """Deposit AMOUNT into ACCOUNT_NUMBER."""
    balance = _run(_engine(ctx).deposit, account_number, amount, pin)
    click.echo(f"The account number `{account_number}` now has a balance of `{balance}`.")


@cli.command()
@click.argument("account_number")
@click.argument("amount")
@click.option("--pin", required=True, help="Account PIN.")
@click.pass_context
def withdraw(ctx, account_number, amount, pin):
    """Withdraw AMOUNT from ACCOUNT_NUMBER."""
    balance = _run(_engine(ctx).withdraw, account_number, amount, pin)
    click.echo(f"The account number `{account_number}` now has a balance of `{balance}`.")


@cli.command()
@click.argument("origin")
@click.argument("target")
@click.argument("amount")
@click.option("--pin", required=True, help="PIN of the origin account.")
@click.pass_context
def transfer(ctx, origin, target, amount, pin):
    """Transfer AMOUNT from ORIGIN to TARGET."""
    origin_account, target_account = _run(_engine(ctx).transfer, origin, target, amount, pin)
    click.echo(f"The account number `{origin_account.account_number}` now has a balance of "
               f"`{origin_account.balance}`.")
    click.echo(f"The account number `{target_account.account_number}` now has a balance of "
               f"`{target_account.balance}`.")


@cli.command()
@click.argument("account_number")
@click.option("--pin", required=True, help="Account PIN.")
@click.pass_context
def delete(ctx, account_number, pin):
    """Delete ACCOUNT_NUMBER permanently."""
    _run(_engine(ctx).delete_account, account_number, pin)
    click.echo(f"DELETED ACCOUNT: {account_number}")


@cli.command()
@click.argument("account_number")
@click.pass_context
def balance(ctx, account_number):
    """Show the balance of ACCOUNT_NUMBER."""
    amount = _run(_engine(ctx).balance_of, account_number)
    click.echo(f"The account number `{account_number}` has a balance of `{amount}`.")


@cli.command(name="list")
@click.pass_context
def list_accounts(ctx):
    """List all accounts with their balances."""
    accounts = _engine(ctx).store.load_all()
    if not accounts:
        click.echo("No accounts.")
        return
    for account in accounts:
        click.echo(f"{account.id:>6}  {account.account_number}  {account.balance}")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
