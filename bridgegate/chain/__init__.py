"""
Execution-ledger collaborators: native value accounts and token contracts.
"""

from .ledger import NativeLedger, ReceiveHook
from .token import Token, TokenRegistry, TokenTransferEvent, TokenApprovalEvent

__all__ = [
    "NativeLedger",
    "ReceiveHook",
    "Token",
    "TokenRegistry",
    "TokenTransferEvent",
    "TokenApprovalEvent",
]
