#!/usr/bin/env python3
"""
Bridgegate Validator CLI

Off-ledger half of the signing protocol: rebuild the canonical message a bridge
operation expects, sign it with a validator key, and check signatures.

Usage:
    bridgegate-validator categories
    bridgegate-validator message <category> -p name=value ... --nonce N
    bridgegate-validator sign <category> -p name=value ... --nonce N [--key-file FILE]
    bridgegate-validator recover <digest> <signature>
    bridgegate-validator keygen
"""

import inspect
import os
from typing import Dict, Optional, Tuple

import click

from ..bridge.messages import MESSAGE_BUILDERS
from ..crypto import PrivateKey, recover_message_signer, sign_message
from ..exceptions import InvalidKeyError, InvalidSignatureError

INT_PARAMS = {"vote_type", "value", "amount", "source_chain", "destination_chain", "max_amount"}
BOOL_PARAMS = {"active", "lock", "mintable"}


def parse_nonce(raw: str):
    """
    Decimal text is an integer nonce, 0x-prefixed hex is raw bytes, anything
    else is text packed into a bytes32 word.
    """
    if raw.isdigit():
        return int(raw)
    if raw.lower().startswith("0x"):
        try:
            return bytes.fromhex(raw[2:])
        except ValueError:
            raise click.BadParameter(f"Invalid hex nonce: {raw}", param_hint="--nonce")
    return raw


def parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in ("1", "true", "yes"):
        return True
    if value in ("0", "false", "no"):
        return False
    raise click.BadParameter(f"Expected a boolean, got {raw!r}", param_hint="--param")


def build_params(category: str, pairs: Tuple[str, ...]) -> Dict[str, object]:
    """Convert name=value pairs into keyword arguments for the category's builder."""
    builder = MESSAGE_BUILDERS[category]
    expected = [name for name in inspect.signature(builder).parameters if name != "nonce"]

    params: Dict[str, object] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"Expected name=value, got {pair!r}", param_hint="--param")
        name, raw = pair.split("=", 1)
        name = name.strip().replace("-", "_")
        if name not in expected:
            raise click.BadParameter(
                f"{category} takes {', '.join(expected) or 'no parameters'}, not {name!r}",
                param_hint="--param",
            )
        if name in INT_PARAMS:
            try:
                params[name] = int(raw, 0)
            except ValueError:
                raise click.BadParameter(f"{name} must be an integer", param_hint="--param")
        elif name in BOOL_PARAMS:
            params[name] = parse_bool(raw)
        else:
            params[name] = raw.strip()

    missing = [name for name in expected if name not in params]
    if missing:
        raise click.BadParameter(f"Missing parameters: {', '.join(missing)}", param_hint="--param")
    return params


def compute_message(category: str, pairs: Tuple[str, ...], nonce: str) -> bytes:
    params = build_params(category, pairs)
    try:
        return MESSAGE_BUILDERS[category](nonce=parse_nonce(nonce), **params)
    except (TypeError, ValueError) as e:
        raise click.ClickException(f"Cannot build {category} message: {e}")


def load_key(key_file: Optional[str], key_hex: Optional[str]) -> PrivateKey:
    if not key_file and not key_hex:
        raise click.ClickException("No validator key: pass --key-file or set BRIDGEGATE_VALIDATOR_KEY")
    try:
        if key_file:
            return PrivateKey.from_file(key_file)
        return PrivateKey.from_hex(key_hex)
    except InvalidKeyError as e:
        raise click.ClickException(f"Invalid validator key: {e}")


category_argument = click.argument("category", type=click.Choice(sorted(MESSAGE_BUILDERS)))
param_option = click.option("--param", "-p", "pairs", multiple=True, help="Message parameter as name=value")
nonce_option = click.option("--nonce", "-n", required=True, help="Nonce (decimal, 0x-hex or text)")


@click.group()
@click.version_option(version="1.0.0", prog_name="bridgegate-validator")
def cli():
    """Bridgegate validator tooling: canonical messages and signatures."""


@cli.command("categories")
def categories_cmd():
    """List message categories and their parameters."""
    for category in sorted(MESSAGE_BUILDERS):
        params = [name for name in inspect.signature(MESSAGE_BUILDERS[category]).parameters if name != "nonce"]
        click.echo(f"{category}: {', '.join(params) if params else '-'}")


@cli.command("message")
@category_argument
@param_option
@nonce_option
def message_cmd(category: str, pairs: Tuple[str, ...], nonce: str):
    """Print the canonical message digest.

    Example:

        bridgegate-validator message vote-validator -p vote_type=1 -p validator=0xAb... -n 1
    """
    click.echo("0x" + compute_message(category, pairs, nonce).hex())


@cli.command("sign")
@category_argument
@param_option
@nonce_option
@click.option("--key-file", "-k", type=click.Path(exists=True, dir_okay=False), help="File holding the hex private key")
def sign_cmd(category: str, pairs: Tuple[str, ...], nonce: str, key_file: Optional[str]):
    """Sign the canonical message with a validator key and print the signature."""
    key = load_key(key_file, os.environ.get("BRIDGEGATE_VALIDATOR_KEY"))
    message = compute_message(category, pairs, nonce)
    click.echo(sign_message(key, message).to_hex())


@cli.command("recover")
@click.argument("digest")
@click.argument("signature")
def recover_cmd(digest: str, signature: str):
    """Print the address that signed DIGEST."""
    try:
        message = bytes.fromhex(digest[2:] if digest.lower().startswith("0x") else digest)
    except ValueError:
        raise click.BadParameter("Digest must be hex", param_hint="DIGEST")
    try:
        click.echo(recover_message_signer(message, signature))
    except InvalidSignatureError as e:
        raise click.ClickException(f"Invalid signature: {e}")


@cli.command("keygen")
def keygen_cmd():
    """Generate a validator key."""
    key = PrivateKey.generate()
    click.echo(f"Address:     {key.address}")
    click.echo(f"Private key: {key.to_hex()}")
    click.echo(click.style("Store the private key offline; it signs bridge actions.", fg="yellow"))


def main():
    cli()


if __name__ == "__main__":
    main()
