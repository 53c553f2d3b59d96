#!/usr/bin/env python3
"""
Seigniorage Simulation CLI

Deploys a protocol on an in-process ledger and drives it along a price path,
one Treasury epoch at a time.

Usage:
    seigniorage-sim run [--epochs N] [--prices 0.9,0.94,1.1] [--config FILE] [--json]
    seigniorage-sim config [--config FILE]
"""

import json
import math
from typing import Any, Dict, List, Optional

import click
from rich import box
from rich.console import Console
from rich.table import Table

from ..config import ProtocolConfig, load_config
from ..constants import SWAP_FEE_DENOMINATOR, SWAP_FEE_NUMERATOR, UNIT
from ..exceptions import ConfigurationError, ProtocolError
from ..logger import LogManager
from ..protocol import Protocol, deploy_protocol
from ..safemath import from_wei, to_wei

KEEPER = "0x" + "ee" * 20
TRADER = "0x" + "7a" * 20
STAKER = "0x" + "5e" * 20

TRADER_FUNDS = 300_000 * UNIT
STAKER_SHARES = 10_000 * UNIT
BOND_ORDER = 1_000 * UNIT


def parse_prices(raw: str) -> List[int]:
    """'0.9, 1.1' -> UNIT-scaled target prices."""
    prices = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            price = to_wei(part)
        except (ArithmeticError, ValueError, ProtocolError):
            raise click.BadParameter(f"not a price: {part!r}", param_hint="--prices")
        if price <= 0:
            raise click.BadParameter(f"price must be positive: {part!r}", param_hint="--prices")
        prices.append(price)
    if not prices:
        raise click.BadParameter("at least one price is required", param_hint="--prices")
    return prices


def move_price(protocol: Protocol, trader: str, target: int) -> int:
    """
    Swap on the pair until the spot price of cash is close to `target`.

    Keeps k constant: the cash reserve moves to sqrt(k / p) and the DAI
    reserve to sqrt(k * p), grossed up for the swap fee.

    Returns:
        Amount swapped in (0 when already at target)
    """
    pair = protocol.pair
    reserve_cash, reserve_dai = pair.reserve0, pair.reserve1
    k = reserve_cash * reserve_dai
    spot = reserve_dai * UNIT // reserve_cash

    if target > spot:
        token_in, reserve_in = protocol.dai, reserve_dai
        target_reserve = math.isqrt(k * target // UNIT)
    else:
        token_in, reserve_in = protocol.cash, reserve_cash
        target_reserve = math.isqrt(k * UNIT // target)

    amount_in = (target_reserve - reserve_in) * SWAP_FEE_DENOMINATOR // SWAP_FEE_NUMERATOR
    if amount_in <= 0:
        return 0
    amount_in = min(amount_in, token_in.balance_of(trader))
    token_in.approve(trader, pair.address, amount_in)
    pair.swap(trader, token_in, amount_in)
    return amount_in


def seed_participants(protocol: Protocol) -> None:
    """Fund the trader and put stake in both boardrooms."""
    deployer = protocol.deployer
    protocol.cash.transfer(deployer, TRADER, TRADER_FUNDS)
    protocol.dai.transfer(deployer, TRADER, TRADER_FUNDS)

    protocol.share.transfer(deployer, STAKER, STAKER_SHARES)
    protocol.share.approve(STAKER, protocol.boardroom.address, STAKER_SHARES)
    protocol.boardroom.stake(STAKER, STAKER_SHARES)

    lp = protocol.pair.balance_of(deployer) // 2
    protocol.pair.approve(deployer, protocol.lp_boardroom.address, lp)
    protocol.lp_boardroom.stake(deployer, lp)


def trade_bonds(protocol: Protocol, trader: str) -> Dict[str, int]:
    """Buy bonds below peg, redeem them above the ceiling, when the treasury allows."""
    treasury = protocol.treasury
    price = treasury.get_cash_price()
    result = {"bought": 0, "redeemed": 0}

    if price < treasury.cash_price_one and treasury.max_bond_purchase() > 0:
        amount = min(BOND_ORDER, protocol.cash.balance_of(trader))
        if amount > 0:
            protocol.cash.approve(trader, treasury.address, amount)
            result["bought"] = treasury.buy_bonds(trader, amount)
    elif price > treasury.cash_price_ceiling:
        held = protocol.bond.balance_of(trader)
        budget = min(treasury.accumulated_seigniorage, protocol.cash.balance_of(treasury.address))
        amount = min(held, budget)
        if amount > 0:
            protocol.bond.approve(trader, treasury.address, amount)
            result["redeemed"] = treasury.redeem_bonds(trader, amount)
    return result


def phase_of(protocol: Protocol, price: int) -> str:
    treasury = protocol.treasury
    if price > treasury.cash_price_ceiling:
        return "expansion"
    if price <= treasury.cash_price_floor:
        return "contraction"
    return "in band"


def simulate(protocol: Protocol, targets: List[int], epochs: int, bonds: bool = True) -> List[Dict[str, Any]]:
    """Run `epochs` policy epochs; the last target price repeats."""
    seed_participants(protocol)
    treasury = protocol.treasury
    rows = []
    for i in range(epochs):
        target = targets[min(i, len(targets) - 1)]
        move_price(protocol, TRADER, target)
        protocol.advance_epoch()

        minted = treasury.allocate_seigniorage(KEEPER)
        price = protocol.cash_price()
        trades = trade_bonds(protocol, TRADER) if bonds else {"bought": 0, "redeemed": 0}

        rows.append({
            "epoch": treasury.get_last_epoch(),
            "target": str(from_wei(target, 4)),
            "twap": str(from_wei(price, 4)),
            "phase": phase_of(protocol, price),
            "circulating": str(from_wei(treasury.circulating_supply(), 2)),
            "debt": str(from_wei(treasury.accumulated_debt, 2)),
            "bondPrice": str(from_wei(treasury.bond_price, 4)),
            "reserve": str(from_wei(treasury.accumulated_seigniorage, 2)),
            "minted": str(from_wei(minted, 2)),
            "bondsBought": str(from_wei(trades["bought"], 2)),
            "bondsRedeemed": str(from_wei(trades["redeemed"], 2)),
        })
    return rows


def render_table(rows: List[Dict[str, Any]]) -> Table:
    table = Table(title="Seigniorage simulation", box=box.SIMPLE)
    columns = [
        ("Epoch", "epoch"), ("Target", "target"), ("TWAP", "twap"), ("Phase", "phase"),
        ("Circulating", "circulating"), ("Debt", "debt"), ("Bond price", "bondPrice"),
        ("Reserve", "reserve"), ("Minted", "minted"),
        ("Bonds bought", "bondsBought"), ("Redeemed", "bondsRedeemed"),
    ]
    for title, _ in columns:
        table.add_column(title, justify="right" if title != "Phase" else "left")
    for row in rows:
        table.add_row(*(str(row[key]) for _, key in columns))
    return table


def resolve_config(config_path: Optional[str]) -> ProtocolConfig:
    try:
        cfg = load_config(config_path)
        cfg.validate()
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    if cfg.logging.level is not None or cfg.logging.file_output is not None:
        LogManager().reconfigure(log_level=cfg.logging.level, file_output=cfg.logging.file_output)
    return cfg


@click.group()
@click.version_option(version="0.1.0", prog_name="seigniorage-sim")
def cli():
    """Seigniorage protocol simulator.

    Runs the treasury, oracle and distributors on an in-process ledger.
    """
    pass


@cli.command("run")
@click.option("--epochs", "-e", type=click.IntRange(min=1), default=None,
              help="Number of epochs to run (default: one per price)")
@click.option("--prices", "-p", default="1.0",
              help="Comma separated target cash prices, one per epoch; the last repeats")
@click.option("--config", "-c", "config_path", type=click.Path(), default=None,
              help="Path to config.toml")
@click.option("--no-bonds", is_flag=True, help="Do not trade bonds during the run")
@click.option("--json", "as_json", is_flag=True, help="Print rows as JSON instead of a table")
def run_cmd(epochs: Optional[int], prices: str, config_path: Optional[str], no_bonds: bool, as_json: bool):
    """Drive the protocol along a price path.

    Examples:

        seigniorage-sim run --prices 0.9,0.94,1.1

        seigniorage-sim run --epochs 10 --prices 1.2 --json
    """
    targets = parse_prices(prices)
    cfg = resolve_config(config_path)
    try:
        protocol = deploy_protocol(cfg)
        rows = simulate(protocol, targets, epochs or len(targets), bonds=not no_bonds)
    except ProtocolError as e:
        raise click.ClickException(f"Simulation failed: {e}")

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return
    Console(width=160).print(render_table(rows))


@cli.command("config")
@click.option("--config", "-c", "config_path", type=click.Path(), default=None,
              help="Path to config.toml")
def config_cmd(config_path: Optional[str]):
    """Print the resolved configuration as JSON."""
    cfg = resolve_config(config_path)
    click.echo(json.dumps(cfg.to_dict(), indent=2))


if __name__ == "__main__":
    cli()
