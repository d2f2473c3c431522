#!/usr/bin/env python3

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.core.errors import AmmError
from src.core.oracle import current_cumulative_prices
from src.integration import deploy, load_config, snapshot_registry


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Offline pool lifecycle demo: deposit, swap, redeem.")
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    parser.add_argument("--amount-in", type=int, default=1_000_000)
    args = parser.parse_args(argv)

    cfg = load_config(args.config)
    logging.basicConfig(level=cfg.logging_level, format="%(levelname)s %(name)s: %(message)s")

    user = "0x" + "aa" * 20
    usd = "0x" + "11" * 20
    eth = "0x" + "22" * 20
    btc = "0x" + "33" * 20

    dep = deploy(cfg)
    router = dep.router
    for asset, symbol in ((usd, "USD"), (eth, "ETH"), (btc, "BTC")):
        token = dep.add_asset(asset, symbol=symbol)
        token.mint(user, 10**30)
        token.approve(user, router.address, 2**256 - 1)
    deadline = cfg.genesis_timestamp + 3600

    try:
        _, _, shares = router.add_liquidity(usd, eth, 2_000 * 10**18, 10**18, 0, 0, sender=user, to=user, deadline=deadline)
        router.add_liquidity(eth, btc, 20 * 10**18, 10**18, 0, 0, sender=user, to=user, deadline=deadline)
        print(f"[offline-demo] pools={dep.registry.pool_count} usd/eth shares={shares}")

        dep.ctx.advance(12)
        path = [usd, eth, btc]
        print(f"[offline-demo] quote {args.amount_in} USD -> BTC: {router.get_amounts_out(args.amount_in, path)}")
        amounts = router.swap_exact_tokens_for_tokens(args.amount_in, 1, path, sender=user, to=user, deadline=deadline)
        print(f"[offline-demo] swapped amounts={amounts}")

        dep.ctx.advance(12)
        pool = dep.registry.get_pool(usd, eth)
        assert pool is not None
        pool.shares.approve(user, router.address, shares)
        out = router.remove_liquidity(usd, eth, shares, 0, 0, sender=user, to=user, deadline=deadline)
        print(f"[offline-demo] redeemed {shares} shares -> {out}")
        print(f"[offline-demo] usd/eth cumulative prices: {current_cumulative_prices(pool)}")
    except AmmError as exc:
        print(f"[offline-demo] FAIL ({exc.code}): {exc.message}")
        return 1

    print(f"[offline-demo] snapshot commitment={snapshot_registry(dep.registry).commitment_hex()}")
    print("[offline-demo] OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
