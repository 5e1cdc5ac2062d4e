"""
Built-in contract code. Importing this module registers every class below,
which a ledger needs before it can run or restore them by name.
"""

from core.contracts.base_token import BaseToken
from core.contracts.wrapper_erc20 import WrapperERC20
from core.contracts.wrapper_factory import WrapperFactory

BUILTIN_CONTRACTS = (BaseToken, WrapperERC20, WrapperFactory)
