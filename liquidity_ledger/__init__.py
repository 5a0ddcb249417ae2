"""
Liquidity pool ledger: fixed-layout pool/balance records, their binary codec,
and the Deposit / Withdraw / ChangeOwner instruction dispatcher.
"""

from .config import ProcessorConfig
from .errors import ErrorKind, LedgerError

__version__ = "0.1.0"

__all__ = [
    "ProcessorConfig",
    "ErrorKind",
    "LedgerError",
    "__version__",
]
