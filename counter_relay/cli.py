"""
Admin CLI for the Sui Counter Relay.

Utilities:
  - whoami    : print the signer address derived from SUI_MNEMONIC / SUI_PRIVATE_KEY
  - module    : print the counter module's structs and functions
  - tx        : inspect a transaction by digest (effects, events, TxStatus)
  - value     : read a counter value

All commands read the same environment as the server.

Usage:
  counter-relay-admin <command> [options]
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable, Optional

import typer

from .adapters.sui_rpc import SuiRpcError
from .config import load_config
from .context import RelayContext, build_context
from .errors import ApiError, StartupError
from .services import counter, diagnostics

app = typer.Typer(add_completion=False, help="Sui Counter Relay - Admin CLI")


def _context() -> RelayContext:
    try:
        return build_context(load_config())
    except StartupError as e:
        typer.echo(f"startup failed: {e}", err=True)
        raise typer.Exit(code=1)


def _run(fn: Callable[[RelayContext], Awaitable[Any]]) -> None:
    ctx = _context()

    async def _go() -> Any:
        try:
            return await fn(ctx)
        finally:
            close = getattr(ctx.sui, "close", None)
            if close is not None:
                await close()

    try:
        result = asyncio.run(_go())
    except (ApiError, SuiRpcError) as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(result, indent=2, sort_keys=True))


@app.command("whoami")
def whoami():
    """
    Print the signer address and the network it talks to.
    """
    ctx = _context()
    typer.echo(json.dumps({"address": ctx.identity.address, "network": ctx.settings.sui_network, "rpcUrl": ctx.settings.rpc_url}))


@app.command("module")
def module():
    """
    Print struct and function names of the deployed counter module.
    """
    _run(diagnostics.describe_module)


@app.command("tx")
def tx(digest: str = typer.Argument(..., help="Transaction digest")):
    """
    Inspect a transaction: effects status, event types and TxStatus events.
    """
    _run(lambda ctx: diagnostics.lookup_transaction(ctx, digest))


@app.command("value")
def value(counter_id: Optional[str] = typer.Option(None, "--counter-id", help="Counter object id (default: COUNTER_ID)")):
    """
    Read the current value of a counter.
    """
    query = {"counterId": counter_id} if counter_id else None
    _run(lambda ctx: counter.read_value(ctx, query))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
