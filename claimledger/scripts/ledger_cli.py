"""
Command-line adapter for the claim ledger.

    claimledger status
    claimledger claim [--today 2026-10-19]
    claimledger share
    claimledger wallet 0x...
    claimledger week
    claimledger countdown [--once]
    claimledger serve

Exit code 1 means the ledger rejected the request (already claimed,
invalid address); the message is printed to stderr.
"""
from __future__ import annotations

import argparse
import sys
import time
from datetime import date
from typing import Callable, Optional, Sequence

from claimledger.core.config import Settings, settings, validate_config
from claimledger.core.errors import AlreadyClaimedTodayError, ValidationFailedError
from claimledger.core.logging import configure_logging
from claimledger.features.ledger.service import ClaimLedger
from claimledger.features.ledger.store import build_store

POLL_INTERVAL_SECONDS = 1.0


def _build_settings(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.data_dir:
        overrides["LEDGER_DATA_DIR"] = args.data_dir
    if args.store:
        overrides["LEDGER_STORE"] = args.store
    return settings.model_copy(update=overrides) if overrides else settings


def _print_status(ledger: ClaimLedger, today: Optional[date]) -> None:
    summary = ledger.summary(today)
    print(f"Balance:        {summary.balance:.2f} SSC")
    print(f"Current streak: {summary.current_streak} day(s) ({summary.multiplier}x)")
    print(f"Best streak:    {summary.best_streak} day(s)")
    print(f"Total claimed:  {summary.total_claimed}")
    print(f"Share bonuses:  {summary.total_bonus}")
    if summary.wallet_address:
        print(f"Wallet:         {summary.wallet_address}")
    preview = summary.next_reward
    print(f"Next reward:    {preview.base_reward} x{preview.multiplier} = {preview.total} (streak {preview.streak})")
    if summary.next_milestone is not None:
        print(f"Next milestone: {summary.next_milestone} days ({summary.days_to_next_milestone} to go)")
    print("Claim:          " + ("available" if summary.can_claim_today else "already claimed today"))
    if not summary.persisted:
        print("Warning: storage unavailable, changes are kept in memory only", file=sys.stderr)


def _print_week(ledger: ClaimLedger, today: Optional[date]) -> None:
    for day in ledger.week_view(today):
        mark = "x" if day.claimed else ("." if not day.is_future else " ")
        suffix = "  <- today" if day.is_today else ""
        print(f"{day.name} {day.day.isoformat()} [{mark}]{suffix}")


def _countdown(ledger: ClaimLedger, once: bool, sleep: Callable[[float], None] = time.sleep) -> None:
    # Read-only poll: never mutates the ledger.
    while True:
        cooldown = ledger.cooldown_remaining()
        if cooldown.ready:
            print("Claim available now")
            return
        print(f"Next claim in {cooldown.label}", flush=True)
        if once:
            return
        sleep(POLL_INTERVAL_SECONDS)


def _serve(cfg: Settings) -> None:
    import uvicorn

    from claimledger.main import create_app

    uvicorn.run(create_app(settings_obj=cfg), host=cfg.HOST, port=cfg.PORT)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="claimledger", description="Daily claim streak ledger.")
    parser.add_argument("--data-dir", default=None, help="Directory for the snapshot file (LEDGER_DATA_DIR).")
    parser.add_argument("--store", choices=["file", "sql", "memory"], default=None, help="Snapshot store (LEDGER_STORE).")
    parser.add_argument("--today", type=date.fromisoformat, default=None, help="Override the local calendar day (YYYY-MM-DD).")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("status", help="Show balance, streaks and the next reward.")
    sub.add_parser("claim", help="Claim today's reward.")
    sub.add_parser("share", help="Record a share and credit the sharing bonus.")
    wallet = sub.add_parser("wallet", help="Save a wallet address.")
    wallet.add_argument("address")
    sub.add_parser("week", help="Show claims for the current week.")
    countdown = sub.add_parser("countdown", help="Show time until the next claim opens.")
    countdown.add_argument("--once", action="store_true", help="Print a single reading and exit.")
    sub.add_parser("serve", help="Run the local HTTP API.")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = _build_settings(args)
    configure_logging(cfg.ENV, cfg.LOG_LEVEL)
    validate_config(settings_obj=cfg)

    if args.command == "serve":
        _serve(cfg)
        return 0

    ledger = ClaimLedger.load(build_store(cfg), tz=cfg.timezone, today=args.today)

    try:
        if args.command == "status":
            _print_status(ledger, args.today)
        elif args.command == "claim":
            receipt = ledger.claim(args.today)
            print(f"+{receipt.reward} SSC claimed! Streak: {receipt.streak} day(s), balance {receipt.balance:.2f}")
        elif args.command == "share":
            receipt = ledger.award_share_bonus()
            print(f"+{receipt.bonus} SSC sharing bonus! Balance {receipt.balance:.2f}")
        elif args.command == "wallet":
            receipt = ledger.set_wallet_address(args.address)
            print(f"Address saved: {receipt.address}")
        elif args.command == "week":
            _print_week(ledger, args.today)
        elif args.command == "countdown":
            _countdown(ledger, once=args.once)
    except (AlreadyClaimedTodayError, ValidationFailedError) as e:
        print(e.message, file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
