from fastapi import APIRouter, Depends

from adapters.entry.http.dtos.admin_factory_dtos import (
    CreateWrapperFactoryRequest,
    DeployImplementationRequest,
    UpgradeFactoryRequest,
)
from adapters.entry.http.dtos.tx_dtos import TxResponse
from adapters.entry.http.view.errors import to_http_exception
from core.use_cases.admin_wrapper_factory_usecase import AdminWrapperFactoryUseCase

router = APIRouter(prefix="/admin", tags=["admin"])


def get_use_case() -> AdminWrapperFactoryUseCase:
    return AdminWrapperFactoryUseCase.from_settings()


@router.post("/wrapper-factory/create", response_model=TxResponse)
async def create_wrapper_factory(
    body: CreateWrapperFactoryRequest,
    use_case: AdminWrapperFactoryUseCase = Depends(get_use_case),
):
    try:
        return use_case.create_wrapper_factory(
            deployer=body.sender,
            administrator=body.administrator,
            operator=body.operator,
            treasurer=body.treasurer,
            fee_receiver=body.fee_receiver,
            initial_fee=body.initial_fee,
            gas_strategy=body.gas_strategy,
        )
    except Exception as exc:
        raise to_http_exception(exc, "create wrapper factory") from exc


@router.post("/implementations", response_model=TxResponse)
async def deploy_implementation(
    body: DeployImplementationRequest,
    use_case: AdminWrapperFactoryUseCase = Depends(get_use_case),
):
    try:
        return use_case.deploy_implementation(
            deployer=body.sender, contract=body.contract, gas_strategy=body.gas_strategy
        )
    except Exception as exc:
        raise to_http_exception(exc, "deploy implementation") from exc


@router.post("/wrapper-factory/{factory}/upgrade", response_model=TxResponse)
async def upgrade_factory(
    factory: str,
    body: UpgradeFactoryRequest,
    use_case: AdminWrapperFactoryUseCase = Depends(get_use_case),
):
    try:
        return use_case.upgrade_factory(
            sender=body.sender,
            factory=factory,
            new_implementation=body.new_implementation,
            call=body.call.as_call() if body.call else None,
            gas_strategy=body.gas_strategy,
        )
    except Exception as exc:
        raise to_http_exception(exc, "upgrade factory") from exc


@router.get("/wrapper-factory/active")
async def get_active_factory(use_case: AdminWrapperFactoryUseCase = Depends(get_use_case)):
    try:
        return {"factory": use_case.get_active()}
    except Exception as exc:
        raise to_http_exception(exc, "read active factory") from exc


@router.get("/wrapper-factory")
async def list_factories(limit: int = 50, use_case: AdminWrapperFactoryUseCase = Depends(get_use_case)):
    try:
        return {"factories": use_case.list_factories(limit=limit)}
    except Exception as exc:
        raise to_http_exception(exc, "list factories") from exc
