from __future__ import annotations

from core.contracts.base import register_contract, external, view
from core.contracts.erc20 import ERC20
from core.services.exceptions import ERC2612ExpiredSignature, ERC2612InvalidSigner
from core.services.permit import domain_separator, permit_typed_data, recover_permit_signer
from core.services.storage import StorageSlot

INITIAL_SUPPLY = 1_000_000 * 10**18


@register_contract
class BaseToken(ERC20):
    """
    Plain ERC-20 with EIP-2612 permit, used as the underlying asset.

    The whole initial supply is minted to the deployer.
    """

    CONTRACT_NAME = "BaseToken"
    CONSTRUCTOR_INPUTS = ("string", "string")

    STORAGE_LAYOUT = (StorageSlot("_nonces", {}),)

    def constructor(self, name: str, symbol: str) -> None:
        self._erc20_init(name, symbol)
        self._mint(self.msg_sender, INITIAL_SUPPLY)

    @view("nonces", "address")
    def nonces(self, owner: str) -> int:
        return self.mload("_nonces", owner)

    @view("DOMAIN_SEPARATOR")
    def domain_separator(self) -> str:
        return domain_separator(token_name=self.name(), chain_id=self.chain_id, token=self.address)

    @external("permit", "address", "address", "uint256", "uint256", "uint8", "bytes32", "bytes32")
    def permit(self, owner: str, spender: str, value: int, deadline: int, v: int, r: str, s: str) -> None:
        if self.block_timestamp > deadline:
            raise ERC2612ExpiredSignature(deadline)

        nonce = self._use_nonce(owner)
        typed_data = permit_typed_data(
            token_name=self.name(),
            chain_id=self.chain_id,
            token=self.address,
            owner=owner,
            spender=spender,
            value=value,
            nonce=nonce,
            deadline=deadline,
        )
        signer = recover_permit_signer(typed_data, v, r, s)
        if signer != owner:
            raise ERC2612InvalidSigner(signer, owner)

        self._approve(owner, spender, value)

    def _use_nonce(self, owner: str) -> int:
        current = self.nonces(owner)
        self.mstore("_nonces", owner, current + 1)
        return current
