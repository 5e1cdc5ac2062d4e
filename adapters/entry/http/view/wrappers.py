# adapters/entry/http/view/wrappers.py
from typing import Optional

from fastapi import APIRouter, Depends, Query

from adapters.entry.http.dtos.tx_dtos import TxResponse
from adapters.entry.http.dtos.wrapper_dtos import (
    AmountRequest,
    DepositQuoteOut,
    DepositWithPermitRequest,
    TransferRequest,
)
from adapters.entry.http.view.errors import to_http_exception
from core.use_cases.wrapper_usecase import WrapperUseCase

router = APIRouter(
    prefix="/wrappers",
    tags=["wrapped-tokens"],
)


def get_use_case() -> WrapperUseCase:
    return WrapperUseCase.from_settings()


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


@router.get("/{wrapper}", summary="Wrapped token metadata, underlying asset and custody totals")
async def get_wrapper(wrapper: str, use_case: WrapperUseCase = Depends(get_use_case)):
    try:
        return use_case.get_wrapper_info(wrapper)
    except Exception as exc:
        raise to_http_exception(exc, "read wrapper") from exc


@router.get("/{wrapper}/balances/{account}", summary="Wrapped and underlying balances of an account")
async def get_balances(wrapper: str, account: str, use_case: WrapperUseCase = Depends(get_use_case)):
    try:
        return use_case.get_balances(wrapper, account)
    except Exception as exc:
        raise to_http_exception(exc, "read balances") from exc


@router.get("/{wrapper}/quote", response_model=DepositQuoteOut, summary="Fee split of a deposit at the current rate")
async def quote_deposit(
    wrapper: str,
    amount: int = Query(..., ge=0),
    use_case: WrapperUseCase = Depends(get_use_case),
):
    try:
        return DepositQuoteOut(**use_case.quote_deposit(wrapper, amount))
    except Exception as exc:
        raise to_http_exception(exc, "quote deposit") from exc


@router.get("/{wrapper}/events", summary="Event history of a wrapped token, newest first")
async def get_events(
    wrapper: str,
    event: Optional[str] = Query(default=None, description="Deposit | Withdrawal | Transfer | ..."),
    limit: int = Query(default=200, ge=1, le=2000),
    use_case: WrapperUseCase = Depends(get_use_case),
):
    try:
        return {"wrapper": wrapper, "events": use_case.get_events(wrapper, event=event, limit=limit)}
    except Exception as exc:
        raise to_http_exception(exc, "read wrapper events") from exc


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


@router.post("/{wrapper}/approve", response_model=TxResponse, summary="Approve the wrapper to pull the underlying")
async def approve_underlying(wrapper: str, body: AmountRequest, use_case: WrapperUseCase = Depends(get_use_case)):
    try:
        return use_case.approve_underlying(
            wrapper, sender=body.sender, amount=body.amount, gas_strategy=body.gas_strategy
        )
    except Exception as exc:
        raise to_http_exception(exc, "approve underlying") from exc


@router.post("/{wrapper}/deposit", response_model=TxResponse, summary="deposit(amount)")
async def deposit(wrapper: str, body: AmountRequest, use_case: WrapperUseCase = Depends(get_use_case)):
    try:
        return use_case.deposit(wrapper, sender=body.sender, amount=body.amount, gas_strategy=body.gas_strategy)
    except Exception as exc:
        raise to_http_exception(exc, "deposit") from exc


@router.post("/{wrapper}/deposit-with-permit", response_model=TxResponse, summary="depositWithPermit(...)")
async def deposit_with_permit(
    wrapper: str,
    body: DepositWithPermitRequest,
    use_case: WrapperUseCase = Depends(get_use_case),
):
    try:
        return use_case.deposit_with_permit(
            wrapper,
            sender=body.sender,
            owner=body.owner,
            beneficiary=body.beneficiary,
            amount=body.amount,
            deadline=body.deadline,
            v=body.v,
            r=body.r,
            s=body.s,
            gas_strategy=body.gas_strategy,
        )
    except Exception as exc:
        raise to_http_exception(exc, "deposit with permit") from exc


@router.post("/{wrapper}/withdraw", response_model=TxResponse, summary="withdraw(amount)")
async def withdraw(wrapper: str, body: AmountRequest, use_case: WrapperUseCase = Depends(get_use_case)):
    try:
        return use_case.withdraw(wrapper, sender=body.sender, amount=body.amount, gas_strategy=body.gas_strategy)
    except Exception as exc:
        raise to_http_exception(exc, "withdraw") from exc


@router.post("/{wrapper}/transfer", response_model=TxResponse, summary="Transfer wrapped tokens")
async def transfer(wrapper: str, body: TransferRequest, use_case: WrapperUseCase = Depends(get_use_case)):
    try:
        return use_case.transfer(
            wrapper, sender=body.sender, to=body.to, amount=body.amount, gas_strategy=body.gas_strategy
        )
    except Exception as exc:
        raise to_http_exception(exc, "transfer wrapped tokens") from exc
