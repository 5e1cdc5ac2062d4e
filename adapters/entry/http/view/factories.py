# adapters/entry/http/view/factories.py
from fastapi import APIRouter, Depends

from adapters.entry.http.dtos.tx_dtos import TxResponse
from adapters.entry.http.dtos.wrapper_factory_dtos import (
    DeployWrappedTokenRequest,
    FactoryConfigOut,
    RenounceRoleRequest,
    RoleRequest,
    SetDepositFeeRequest,
    SetFeeReceiverRequest,
    SetImplementationRequest,
    UpgradeWrappedTokenRequest,
)
from adapters.entry.http.view.errors import to_http_exception
from core.use_cases.wrapper_factory_usecase import WrapperFactoryUseCase

router = APIRouter(
    prefix="/factories",
    tags=["wrapper-factory"],
)


def get_use_case() -> WrapperFactoryUseCase:
    return WrapperFactoryUseCase.from_settings()


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


@router.get(
    "/{factory}/config",
    response_model=FactoryConfigOut,
    summary="Current fee policy, wrapper implementation and wrapped tokens of a WrapperFactory",
)
async def get_factory_config(factory: str, use_case: WrapperFactoryUseCase = Depends(get_use_case)):
    try:
        return FactoryConfigOut(**use_case.get_factory_config(factory))
    except Exception as exc:
        raise to_http_exception(exc, "read factory config") from exc


@router.get("/{factory}/roles", summary="Role ids and their admin roles")
async def get_roles(factory: str, use_case: WrapperFactoryUseCase = Depends(get_use_case)):
    try:
        return use_case.get_roles(factory)
    except Exception as exc:
        raise to_http_exception(exc, "read roles") from exc


@router.get("/{factory}/roles/{role}/{account}", summary="Whether an account holds a role")
async def has_role(factory: str, role: str, account: str, use_case: WrapperFactoryUseCase = Depends(get_use_case)):
    try:
        return {"role": role, "account": account, "has_role": use_case.has_role(factory, role=role, account=account)}
    except Exception as exc:
        raise to_http_exception(exc, "read role membership") from exc


@router.get("/{factory}/wrapped-tokens", summary="Every wrapper deployed by the factory, in creation order")
async def get_wrapped_tokens(
    factory: str,
    with_underlying: bool = False,
    use_case: WrapperFactoryUseCase = Depends(get_use_case),
):
    try:
        return use_case.get_wrapped_tokens(factory, with_underlying=with_underlying)
    except Exception as exc:
        raise to_http_exception(exc, "list wrapped tokens") from exc


@router.get("/{factory}/is-wrapped/{underlying}", summary="Whether an underlying token already has a wrapper")
async def is_wrapped(factory: str, underlying: str, use_case: WrapperFactoryUseCase = Depends(get_use_case)):
    try:
        return {"underlying": underlying, "is_wrapped": use_case.is_wrapped(factory, underlying)}
    except Exception as exc:
        raise to_http_exception(exc, "read wrapped status") from exc


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


@router.post("/{factory}/wrapped-tokens", response_model=TxResponse, summary="deployWrappedToken (any caller)")
async def deploy_wrapped_token(
    factory: str,
    body: DeployWrappedTokenRequest,
    use_case: WrapperFactoryUseCase = Depends(get_use_case),
):
    try:
        return use_case.deploy_wrapped_token(
            factory, sender=body.sender, underlying=body.underlying, gas_strategy=body.gas_strategy
        )
    except Exception as exc:
        raise to_http_exception(exc, "deploy wrapped token") from exc


@router.post("/{factory}/wrapped-tokens/upgrade", response_model=TxResponse, summary="upgradeWrappedToken (administrator)")
async def upgrade_wrapped_token(
    factory: str,
    body: UpgradeWrappedTokenRequest,
    use_case: WrapperFactoryUseCase = Depends(get_use_case),
):
    try:
        return use_case.upgrade_wrapped_token(
            factory,
            sender=body.sender,
            wrapper=body.wrapper,
            new_implementation=body.new_implementation,
            gas_strategy=body.gas_strategy,
        )
    except Exception as exc:
        raise to_http_exception(exc, "upgrade wrapped token") from exc


@router.post("/{factory}/implementation", response_model=TxResponse, summary="setImplementation (administrator)")
async def set_implementation(
    factory: str,
    body: SetImplementationRequest,
    use_case: WrapperFactoryUseCase = Depends(get_use_case),
):
    try:
        return use_case.set_implementation(
            factory, sender=body.sender, implementation=body.implementation, gas_strategy=body.gas_strategy
        )
    except Exception as exc:
        raise to_http_exception(exc, "set implementation") from exc


@router.post("/{factory}/fee-receiver", response_model=TxResponse, summary="setFeeReceiver (treasurer)")
async def set_fee_receiver(
    factory: str,
    body: SetFeeReceiverRequest,
    use_case: WrapperFactoryUseCase = Depends(get_use_case),
):
    try:
        return use_case.set_fee_receiver(
            factory, sender=body.sender, fee_receiver=body.fee_receiver, gas_strategy=body.gas_strategy
        )
    except Exception as exc:
        raise to_http_exception(exc, "set fee receiver") from exc


@router.post("/{factory}/deposit-fee", response_model=TxResponse, summary="setDepositFee (operator)")
async def set_deposit_fee(
    factory: str,
    body: SetDepositFeeRequest,
    use_case: WrapperFactoryUseCase = Depends(get_use_case),
):
    try:
        return use_case.set_deposit_fee(factory, sender=body.sender, fee=body.fee, gas_strategy=body.gas_strategy)
    except Exception as exc:
        raise to_http_exception(exc, "set deposit fee") from exc


@router.post("/{factory}/roles/grant", response_model=TxResponse, summary="grantRole (role admin)")
async def grant_role(factory: str, body: RoleRequest, use_case: WrapperFactoryUseCase = Depends(get_use_case)):
    try:
        return use_case.grant_role(
            factory, sender=body.sender, role=body.role, account=body.account, gas_strategy=body.gas_strategy
        )
    except Exception as exc:
        raise to_http_exception(exc, "grant role") from exc


@router.post("/{factory}/roles/revoke", response_model=TxResponse, summary="revokeRole (role admin)")
async def revoke_role(factory: str, body: RoleRequest, use_case: WrapperFactoryUseCase = Depends(get_use_case)):
    try:
        return use_case.revoke_role(
            factory, sender=body.sender, role=body.role, account=body.account, gas_strategy=body.gas_strategy
        )
    except Exception as exc:
        raise to_http_exception(exc, "revoke role") from exc


@router.post("/{factory}/roles/renounce", response_model=TxResponse, summary="renounceRole (role holder)")
async def renounce_role(
    factory: str,
    body: RenounceRoleRequest,
    use_case: WrapperFactoryUseCase = Depends(get_use_case),
):
    try:
        return use_case.renounce_role(factory, sender=body.sender, role=body.role, gas_strategy=body.gas_strategy)
    except Exception as exc:
        raise to_http_exception(exc, "renounce role") from exc
