"""
Bridgegate Exceptions

Error taxonomy for the bridge. Every bridge error carries the reason string a
caller sees, grouped by family: authorization, replay, validation, funds and
governance. Collaborator errors (native ledger, tokens, crypto) sit beside them.
"""


class BridgeError(Exception):
    """Base exception for bridge operations."""

    reason = "Bridge operation failed"

    def __init__(self, reason: str = None):
        self.reason = reason or self.reason
        super().__init__(self.reason)


# ── Authorization ────────────────────────────────────────────────────

class AuthorizationError(BridgeError):
    """Caller or signature set is not allowed to perform the operation."""


class NotAValidator(AuthorizationError):
    reason = "Not a validator"


class InvalidSignatures(AuthorizationError):
    """Quorum not met, or a signature could not be decoded."""
    reason = "Invalid signatures"


# ── Replay ───────────────────────────────────────────────────────────

class ReplayError(BridgeError):
    """The (category, scope, nonce) tuple was already consumed."""


class AlreadyVoted(ReplayError):
    reason = "Already voted"


class VoteAlreadyCast(ReplayError):
    reason = "Vote already cast"


class TransferVoteAlreadyCast(VoteAlreadyCast):
    reason = "Transfer vote already cast"


class TransferAlreadyCompleted(ReplayError):
    reason = "Transfer already completed"


class TransferAlreadyBlocked(ReplayError):
    reason = "Transfer already blocked"


# ── Validation ───────────────────────────────────────────────────────

class ValidationError(BridgeError):
    """Parameters of the call are invalid."""


class RecipientCannotBeZero(ValidationError):
    reason = "Recipient cannot be zero address"


class AmountCannotBeZero(ValidationError):
    reason = "Amount cannot be zero"


class InvalidSourceChain(ValidationError):
    reason = "Invalid source chain"


class InvalidDestinationChain(ValidationError):
    reason = "Invalid destination chain"


class InvalidVote(ValidationError):
    reason = "Invalid vote"


class ValidatorAlreadyExists(ValidationError):
    reason = "Validator already exists"


class ValidatorNotFound(ValidationError):
    reason = "Validator does not exist"


class LastValidator(ValidationError):
    reason = "Cannot remove the last validator"


# ── Funds ────────────────────────────────────────────────────────────

class FundsError(BridgeError):
    """Value or route constraints of a transfer were not satisfied."""


class InsufficientFundsOrAllowance(FundsError):
    reason = "Insufficient funds or allowance provided"


class TransferNotAllowedOrExceedsMaximum(FundsError):
    reason = "Transfer not allowed or amount exceeds maximum allowed"


# ── Governance ───────────────────────────────────────────────────────

class GovernanceError(BridgeError):
    """Operation conflicts with the bridge's governance state."""


class BridgeIsLocked(GovernanceError):
    reason = "Bridge is locked"


class RecipientIsNotAValidator(GovernanceError):
    reason = "Recipient is not a validator"


class UpgradeNotAuthorized(GovernanceError):
    reason = "Upgrade not authorized"


class AlreadyInitialized(GovernanceError):
    reason = "Already initialized"


# ── Collaborators ────────────────────────────────────────────────────

class LedgerError(Exception):
    """Native value ledger error."""


class InsufficientBalance(LedgerError):
    """Account balance does not cover the transfer."""


class TokenError(Exception):
    """Token contract error."""


class InsufficientTokenBalance(TokenError):
    """Token balance does not cover the transfer."""


class InsufficientAllowance(TokenError):
    """Spender allowance does not cover the transfer."""


class UnauthorizedMinter(TokenError):
    """Caller may not mint or burn this token."""


class UnknownToken(TokenError):
    """No token is registered at the address."""


class InvalidKeyError(Exception):
    """Invalid cryptographic key."""


class InvalidAddressError(ValueError):
    """Invalid address format."""


class InvalidSignatureError(Exception):
    """Signature bytes could not be decoded or recovered."""
