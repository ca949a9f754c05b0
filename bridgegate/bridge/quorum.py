"""
Quorum verification.

A canonical message is approved when strictly more than half of the current
validator set signed it. Signers are recovered from personal_sign signatures,
unregistered signers are ignored and a validator who signs twice counts once.
The quorum is measured against the set as it is at verification time.
"""

from typing import Callable, Collection, Iterable, List, Sequence, Set

from ..crypto.keys import SignatureLike
from ..crypto.signing import recover_message_signer
from ..exceptions import InvalidSignatureError, InvalidSignatures, NotAValidator
from ..logger import get_logger

logger = get_logger(__name__)

RecoverFn = Callable[[bytes, SignatureLike], str]


def quorum_size(validator_count: int) -> int:
    """Strict majority of `validator_count`."""
    return validator_count // 2 + 1


class QuorumVerifier:
    """
    Checks caller membership and signature quorums.

    Args:
        recover_fn: (message, signature) -> signer address. Defaults to
            personal_sign recovery; injectable for alternative signing schemes.
    """

    def __init__(self, recover_fn: RecoverFn = recover_message_signer):
        self._recover = recover_fn

    @staticmethod
    def require_validator(sender: str, validators: Collection[str]) -> None:
        """
        Raises:
            NotAValidator: If sender is not a current validator
        """
        if sender not in validators:
            logger.warning(f"Rejected: {sender} is not a validator")
            raise NotAValidator()

    def recover_signers(self, message: bytes, signatures: Iterable[SignatureLike]) -> List[str]:
        """
        Recover the signer of every signature, in order.

        Raises:
            InvalidSignatures: If any signature is malformed
        """
        signers = []
        for signature in signatures:
            try:
                signers.append(self._recover(message, signature))
            except InvalidSignatureError as e:
                logger.debug(f"Signature recovery failed: {e}")
                raise InvalidSignatures() from e
        return signers

    def approvals(self, message: bytes, signatures: Sequence[SignatureLike], validators: Collection[str]) -> Set[str]:
        """Distinct registered validators who signed `message`."""
        return {signer for signer in self.recover_signers(message, signatures) if signer in validators}

    def has_quorum(self, message: bytes, signatures: Sequence[SignatureLike], validators: Collection[str]) -> bool:
        return len(self.approvals(message, signatures, validators)) >= quorum_size(len(validators))

    def verify(self, message: bytes, signatures: Sequence[SignatureLike], validators: Collection[str]) -> None:
        """
        Require a quorum of distinct registered signers over `message`.

        Raises:
            InvalidSignatures: If the quorum is not met or a signature is malformed
        """
        approved = self.approvals(message, signatures, validators)
        required = quorum_size(len(validators))
        if len(approved) < required:
            logger.warning(
                f"Rejected: {len(approved)} of {required} required signatures "
                f"for message 0x{message.hex()}"
            )
            raise InvalidSignatures()
        logger.debug(f"Quorum met: {len(approved)}/{len(validators)} validators signed 0x{message.hex()}")
