"""
EIP-2612 permit helpers (EIP-712 typed data over eth_account).

Used by BaseToken to verify signatures, and by clients/tests to produce them.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_keys.exceptions import BadSignature
from web3 import Web3

from core.services.exceptions import ECDSAInvalidSignature
from core.services.normalize import to_address, to_bytes32

PERMIT_VERSION = "1"

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

PERMIT_TYPE = [
    {"name": "owner", "type": "address"},
    {"name": "spender", "type": "address"},
    {"name": "value", "type": "uint256"},
    {"name": "nonce", "type": "uint256"},
    {"name": "deadline", "type": "uint256"},
]

# secp256k1n / 2; larger `s` values are malleable and rejected
_HALF_CURVE_ORDER = 0x7FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF5D576E7357A4501DDFE92F46681B20A0


def permit_domain(*, token_name: str, chain_id: int, token: str) -> Dict[str, Any]:
    return {
        "name": token_name,
        "version": PERMIT_VERSION,
        "chainId": int(chain_id),
        "verifyingContract": to_address(token),
    }


def permit_typed_data(
    *,
    token_name: str,
    chain_id: int,
    token: str,
    owner: str,
    spender: str,
    value: int,
    nonce: int,
    deadline: int,
) -> Dict[str, Any]:
    return {
        "types": {"EIP712Domain": EIP712_DOMAIN_TYPE, "Permit": PERMIT_TYPE},
        "primaryType": "Permit",
        "domain": permit_domain(token_name=token_name, chain_id=chain_id, token=token),
        "message": {
            "owner": to_address(owner),
            "spender": to_address(spender),
            "value": int(value),
            "nonce": int(nonce),
            "deadline": int(deadline),
        },
    }


def domain_separator(*, token_name: str, chain_id: int, token: str) -> str:
    # the header of an EIP-712 message is the domain hash, whatever the message
    data = permit_typed_data(
        token_name=token_name,
        chain_id=chain_id,
        token=token,
        owner=token,
        spender=token,
        value=0,
        nonce=0,
        deadline=0,
    )
    return Web3.to_hex(encode_typed_data(full_message=data).header)


def sign_permit(private_key: str, **typed_fields: Any) -> Tuple[int, str, str]:
    """
    Sign a permit and return (v, r, s) ready to pass to `permit` /
    `depositWithPermit`.
    """
    signed = Account.sign_message(encode_typed_data(full_message=permit_typed_data(**typed_fields)), private_key)
    return signed.v, to_bytes32(signed.r), to_bytes32(signed.s)


def recover_permit_signer(typed_data: Dict[str, Any], v: int, r: str, s: str) -> str:
    """
    Recover the address that signed `typed_data`.

    Raises ECDSAInvalidSignature for malformed or malleable signatures.
    """
    r_int = int(r, 16)
    s_int = int(s, 16)
    if v not in (27, 28) or r_int == 0 or s_int == 0 or s_int > _HALF_CURVE_ORDER:
        raise ECDSAInvalidSignature()
    try:
        signer = Account.recover_message(encode_typed_data(full_message=typed_data), vrs=(v, r_int, s_int))
    except (BadSignature, ValueError) as exc:
        raise ECDSAInvalidSignature() from exc
    return to_address(signer)
