from __future__ import annotations

from core.contracts.base import Event

# keccak256("eip1967.proxy.implementation") - 1
IMPLEMENTATION_SLOT = "0x360894a13ba1a3210667c828492db98dca3e2076cc3735a920a3ca505d382bbc"

PROXY_CODE = "ERC1967Proxy"

UPGRADED = Event.parse("Upgraded(address indexed implementation)")
