"""
bitcoind-rpc CLI

Command-line interface over the typed Bitcoin Core client.

Commands:
  balance          - Show wallet balance
  newaddress       - Generate a new receiving address
  validateaddress  - Show information about an address
  peers            - List connected peers
  walletinfo       - Show wallet state
  send             - Send coins to an address
  dumpprivkey      - Reveal the private key of an address
  importprivkey    - Import a private key into a wallet
  createwallet     - Create a wallet
  loadwallet       - Load a wallet
  encryptwallet    - Encrypt a wallet with a passphrase
  listdescriptors  - Check that a wallet can list its descriptors
  call             - Call any RPC method with JSON params
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NoReturn, Optional

import click

from .client import Bitcoind
from .config import load_config
from .rpc import BitcoindError, RPCError


# ============ Constants ============

VERSION = "0.1.0"


@dataclass
class CliContext:
    node: Bitcoind
    wallet: str


def _fail(exc: Exception) -> NoReturn:
    if isinstance(exc, RPCError):
        click.secho(f"ERROR: node rejected the call ({exc.code}): {exc.message}", fg="red")
    else:
        click.secho(f"ERROR: {exc}", fg="red")
    sys.exit(1)


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, sort_keys=True))


def _wallet(obj: CliContext) -> str:
    if not obj.wallet:
        click.secho("ERROR: --wallet (or BITCOIND_WALLET) is required.", fg="red")
        sys.exit(1)
    return obj.wallet


# ============ Main CLI Group ============


@click.group()
@click.version_option(version=VERSION, prog_name="bitcoind-rpc")
@click.option("--addr", envvar="BITCOIND_ADDR", default=None, help="Node host:port or URL")
@click.option("--user", envvar="BITCOIND_USER", default=None, help="RPC username")
@click.option("--password", envvar="BITCOIND_PASSWORD", default=None, help="RPC password")
@click.option(
    "--cookie-file",
    envvar="BITCOIND_COOKIE_FILE",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Read credentials from bitcoind's .cookie file",
)
@click.option(
    "--timeout",
    envvar="BITCOIND_TIMEOUT",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds",
)
@click.option("--wallet", "-w", envvar="BITCOIND_WALLET", default=None, help="Wallet name")
@click.option("--verbose", "-v", is_flag=True, help="Log RPC traffic")
@click.pass_context
def cli(
    ctx: click.Context,
    addr: Optional[str],
    user: Optional[str],
    password: Optional[str],
    cookie_file: Optional[Path],
    timeout: Optional[float],
    wallet: Optional[str],
    verbose: bool,
) -> None:
    """Talk to a Bitcoin Core node over JSON-RPC."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    try:
        config = load_config(
            addr=addr,
            user=user,
            password=password,
            cookie_file=cookie_file,
            timeout=timeout,
            wallet=wallet,
        )
    except ValueError as exc:
        _fail(exc)

    node = Bitcoind.from_config(config)
    ctx.call_on_close(node.close)
    ctx.obj = CliContext(node=node, wallet=config.wallet)


# ============ Balances and addresses ============


@cli.command()
@click.option("--minconf", default=1, type=int, show_default=True, help="Minimum confirmations")
@click.pass_obj
def balance(obj: CliContext, minconf: int) -> None:
    """Show wallet balance."""
    try:
        amount = obj.node.get_balance(_wallet(obj), minconf)
    except BitcoindError as exc:
        _fail(exc)
    click.echo(f"{amount:.8f}")


@cli.command()
@click.pass_obj
def newaddress(obj: CliContext) -> None:
    """Generate a new receiving address."""
    try:
        address = obj.node.get_new_address(_wallet(obj))
    except BitcoindError as exc:
        _fail(exc)
    click.echo(address)


@cli.command()
@click.argument("address")
@click.pass_obj
def validateaddress(obj: CliContext, address: str) -> None:
    """Show information about ADDRESS."""
    try:
        info = obj.node.validate_address(address)
    except BitcoindError as exc:
        _fail(exc)
    _echo_json(info.to_dict())


# ============ Node and wallet state ============


@cli.command()
@click.pass_obj
def peers(obj: CliContext) -> None:
    """List connected peers."""
    try:
        peer_list = obj.node.get_peer_info()
    except BitcoindError as exc:
        _fail(exc)

    if not peer_list:
        click.echo("No peers connected.")
        return
    for peer in peer_list:
        direction = "in " if peer.inbound else "out"
        click.echo(f"  {peer.id:>4}  {direction}  {peer.addr:<28} {peer.subver}")


@cli.command()
@click.pass_obj
def walletinfo(obj: CliContext) -> None:
    """Show wallet state."""
    try:
        info = obj.node.get_wallet_info(_wallet(obj))
    except BitcoindError as exc:
        _fail(exc)
    _echo_json(info.to_dict())


@cli.command()
@click.argument("name")
@click.pass_obj
def createwallet(obj: CliContext, name: str) -> None:
    """Create wallet NAME."""
    try:
        obj.node.create_wallet(name)
    except BitcoindError as exc:
        _fail(exc)
    click.secho(f"Created wallet {name}", fg="green")


@cli.command()
@click.argument("name")
@click.pass_obj
def loadwallet(obj: CliContext, name: str) -> None:
    """Load wallet NAME."""
    try:
        obj.node.load_wallet(name)
    except BitcoindError as exc:
        _fail(exc)
    click.secho(f"Loaded wallet {name}", fg="green")


@cli.command()
@click.option("--passphrase", prompt=True, hide_input=True, confirmation_prompt=True)
@click.pass_obj
def encryptwallet(obj: CliContext, passphrase: str) -> None:
    """Encrypt the wallet with a passphrase."""
    try:
        obj.node.encrypt_wallet(_wallet(obj), passphrase)
    except BitcoindError as exc:
        _fail(exc)
    click.secho("Wallet encrypted.", fg="green")


@cli.command()
@click.option("--private", is_flag=True, help="Request private descriptors")
@click.pass_obj
def listdescriptors(obj: CliContext, private: bool) -> None:
    """Check that the wallet can list its descriptors."""
    try:
        obj.node.list_descriptors(_wallet(obj), private)
    except BitcoindError as exc:
        _fail(exc)
    click.echo("OK")


# ============ Keys ============


@cli.command()
@click.argument("address")
@click.pass_obj
def dumpprivkey(obj: CliContext, address: str) -> None:
    """Reveal the private key that controls ADDRESS."""
    try:
        key = obj.node.dump_priv_key(_wallet(obj), address)
    except BitcoindError as exc:
        _fail(exc)
    click.echo(key)


@cli.command()
@click.argument("privkey")
@click.option("--rescan/--no-rescan", default=True, show_default=True)
@click.pass_obj
def importprivkey(obj: CliContext, privkey: str, rescan: bool) -> None:
    """Import PRIVKEY into the wallet."""
    wallet = _wallet(obj)
    try:
        obj.node.import_priv_key(privkey, wallet, rescan)
    except BitcoindError as exc:
        _fail(exc)
    click.secho(f"Imported key into {wallet}", fg="green")


# ============ Transactions ============


@cli.command()
@click.argument("address")
@click.argument("amount", type=float)
@click.option("--comment", default="", help="Note stored in the wallet")
@click.option("--comment-to", default="", help="Name of the recipient")
@click.option("--subtract-fee", is_flag=True, help="Deduct the fee from AMOUNT")
@click.pass_obj
def send(
    obj: CliContext,
    address: str,
    amount: float,
    comment: str,
    comment_to: str,
    subtract_fee: bool,
) -> None:
    """Send AMOUNT to ADDRESS."""
    try:
        txid = obj.node.send_to_address(
            _wallet(obj), address, amount, comment, comment_to, subtract_fee
        )
    except BitcoindError as exc:
        _fail(exc)
    click.secho("SUCCESS: Transaction sent!", fg="green")
    click.echo(f"  TX: {txid}")


# ============ Raw ============


@cli.command()
@click.argument("method")
@click.argument("params_json", default="")
@click.pass_obj
def call(obj: CliContext, method: str, params_json: str) -> None:
    """Call METHOD with PARAMS_JSON (a JSON array) and print the result."""
    params = None
    if params_json:
        try:
            params = json.loads(params_json)
            if not isinstance(params, list):
                raise ValueError("Params must be a JSON array")
        except (json.JSONDecodeError, ValueError) as exc:
            click.secho(f"ERROR: Invalid params: {exc}", fg="red")
            sys.exit(1)

    try:
        result = obj.node.call(method, params, account=obj.wallet or "")
    except BitcoindError as exc:
        _fail(exc)
    _echo_json(result)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
