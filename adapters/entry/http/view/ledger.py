# adapters/entry/http/view/ledger.py
from fastapi import APIRouter, Depends, HTTPException

from adapters.entry.http.dtos.ledger_dtos import (
    AdvanceTimeRequest,
    DeployTokenRequest,
    RestoreSnapshotRequest,
    SaveSnapshotRequest,
    TokenApproveRequest,
    TokenTransferRequest,
)
from adapters.entry.http.dtos.tx_dtos import TxResponse
from adapters.entry.http.view.errors import to_http_exception
from core.contracts.base import get_contract_class
from core.use_cases.ledger_admin_usecase import LedgerAdminUseCase

router = APIRouter(
    prefix="/ledger",
    tags=["ledger"],
)


def get_use_case() -> LedgerAdminUseCase:
    return LedgerAdminUseCase.from_settings()


@router.get("/status", summary="Block height, time and deployed contracts")
async def get_status(use_case: LedgerAdminUseCase = Depends(get_use_case)):
    return use_case.status()


@router.get("/receipts/{tx_hash}", summary="Receipt of a committed or reverted transaction")
async def get_receipt(tx_hash: str, use_case: LedgerAdminUseCase = Depends(get_use_case)):
    rcpt = use_case.get_receipt(tx_hash)
    if rcpt is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return rcpt


@router.get("/contracts/{name}/abi", summary="ABI of a built-in contract")
async def get_contract_abi(name: str):
    try:
        return {"contract": name, "abi": get_contract_class(name).abi()}
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("/time/advance", summary="Move the clock forward (affects the next block timestamp)")
async def advance_time(body: AdvanceTimeRequest, use_case: LedgerAdminUseCase = Depends(get_use_case)):
    try:
        return use_case.advance_time(body.seconds)
    except Exception as exc:
        raise to_http_exception(exc, "advance time") from exc


# ---------------------------------------------------------------------------
# Underlying test tokens
# ---------------------------------------------------------------------------


@router.post("/tokens", response_model=TxResponse, summary="Deploy a BaseToken (whole supply minted to sender)")
async def deploy_token(body: DeployTokenRequest, use_case: LedgerAdminUseCase = Depends(get_use_case)):
    try:
        return use_case.deploy_token(
            sender=body.sender, name=body.name, symbol=body.symbol, gas_strategy=body.gas_strategy
        )
    except Exception as exc:
        raise to_http_exception(exc, "deploy token") from exc


@router.post("/tokens/{token}/transfer", response_model=TxResponse, summary="ERC-20 transfer")
async def transfer_token(token: str, body: TokenTransferRequest, use_case: LedgerAdminUseCase = Depends(get_use_case)):
    try:
        return use_case.transfer_token(
            token, sender=body.sender, to=body.to, amount=body.amount, gas_strategy=body.gas_strategy
        )
    except Exception as exc:
        raise to_http_exception(exc, "transfer token") from exc


@router.post("/tokens/{token}/approve", response_model=TxResponse, summary="ERC-20 approve")
async def approve_token(token: str, body: TokenApproveRequest, use_case: LedgerAdminUseCase = Depends(get_use_case)):
    try:
        return use_case.approve_token(
            token, sender=body.sender, spender=body.spender, amount=body.amount, gas_strategy=body.gas_strategy
        )
    except Exception as exc:
        raise to_http_exception(exc, "approve token") from exc


@router.get("/tokens/{token}/balances/{account}", summary="ERC-20 balance")
async def token_balance(token: str, account: str, use_case: LedgerAdminUseCase = Depends(get_use_case)):
    try:
        return use_case.token_balance(token, account)
    except Exception as exc:
        raise to_http_exception(exc, "read token balance") from exc


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


@router.get("/snapshots", summary="Recent snapshots of this chain")
async def list_snapshots(limit: int = 20, use_case: LedgerAdminUseCase = Depends(get_use_case)):
    try:
        return {"snapshots": use_case.list_snapshots(limit=limit)}
    except Exception as exc:
        raise to_http_exception(exc, "list snapshots") from exc


@router.post("/snapshots", summary="Persist the full ledger state")
async def save_snapshot(body: SaveSnapshotRequest, use_case: LedgerAdminUseCase = Depends(get_use_case)):
    try:
        return use_case.save_snapshot(label=body.label)
    except Exception as exc:
        raise to_http_exception(exc, "save snapshot") from exc


@router.post("/snapshots/restore", summary="Replace the running ledger with a stored snapshot")
async def restore_snapshot(body: RestoreSnapshotRequest, use_case: LedgerAdminUseCase = Depends(get_use_case)):
    try:
        return use_case.restore_snapshot(snapshot_id=body.snapshot_id)
    except Exception as exc:
        raise to_http_exception(exc, "restore snapshot") from exc
