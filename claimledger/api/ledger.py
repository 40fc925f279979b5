"""Local HTTP adapter for the claim ledger.

Thin layer: every rule lives in ClaimLedger; routes only translate.
"""
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field

from claimledger.features.ledger.service import ClaimLedger
from claimledger.models.ledger import BonusReceipt, ClaimReceipt, LedgerSummary, WalletReceipt, WeekDay

router = APIRouter(prefix="/v1/ledger", tags=["ledger"])


class WalletIn(BaseModel):
    address: str = Field(default="")


class CooldownOut(BaseModel):
    hours: int
    minutes: int
    seconds: int
    total_seconds: int
    label: str
    ready: bool


def get_ledger(request: Request) -> ClaimLedger:
    return request.app.state.ledger


@router.get("", response_model=LedgerSummary)
def get_summary(today: Optional[date] = Query(None), ledger: ClaimLedger = Depends(get_ledger)):
    """Return balances, streaks and the next reward preview."""
    return ledger.summary(today)


@router.post("/claim", response_model=ClaimReceipt)
def post_claim(today: Optional[date] = Query(None), ledger: ClaimLedger = Depends(get_ledger)):
    return ledger.claim(today)


@router.post("/share-bonus", response_model=BonusReceipt)
def post_share_bonus(ledger: ClaimLedger = Depends(get_ledger)):
    return ledger.award_share_bonus()


@router.put("/wallet", response_model=WalletReceipt)
def put_wallet(body: WalletIn, ledger: ClaimLedger = Depends(get_ledger)):
    return ledger.set_wallet_address(body.address)


@router.get("/cooldown", response_model=CooldownOut)
def get_cooldown(now: Optional[datetime] = Query(None), ledger: ClaimLedger = Depends(get_ledger)):
    """Time until the next claim opens (zero when a claim is available)."""
    cooldown = ledger.cooldown_remaining(now)
    return CooldownOut(
        hours=cooldown.hours,
        minutes=cooldown.minutes,
        seconds=cooldown.seconds,
        total_seconds=cooldown.total_seconds,
        label=cooldown.label,
        ready=cooldown.ready,
    )


@router.get("/week", response_model=List[WeekDay])
def get_week(today: Optional[date] = Query(None), ledger: ClaimLedger = Depends(get_ledger)):
    return ledger.week_view(today)
