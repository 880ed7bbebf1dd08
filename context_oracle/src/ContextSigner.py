"""ContextSigner: EIP-191 signing of Rain signed context.

The orderbook contract checks a signed context with
``SignatureChecker.isValidSignatureNow(signer, toEthSignedMessageHash(
keccak256(abi.encodePacked(context))), signature)``. This module mirrors both
halves:

    1. digest = keccak256(word_0 || word_1 || ...)
    2. signature = ecdsa_sign(keccak256("\\x19Ethereum Signed Message:\\n32" || digest))
"""

from __future__ import annotations

import logging
from typing import Sequence

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from eth_keys.exceptions import BadSignature, ValidationError
from web3 import Web3

from .DecimalFloat import DecimalFloat
from .errors import InvalidInputError, KeyUnavailableError

logger = logging.getLogger(__name__)

DIGEST_SIZE = 32
SIGNATURE_SIZE = 65
RECOVERY_IDS = (27, 28)


def pack_context(context: Sequence[DecimalFloat]) -> bytes:
    """Tightly pack the context words (``abi.encodePacked(bytes32[])``)."""
    return b"".join(value.to_bytes() for value in context)


def context_digest(context: Sequence[DecimalFloat]) -> bytes:
    """Compute ``keccak256(abi.encodePacked(context))``.

    :param context: Ordered context values.
    :returns: 32-byte digest.
    """
    return bytes(Web3.keccak(pack_context(context)))


class ContextSigner:
    """Signs context digests with a secp256k1 private key.

    The key is held by the account object only; it is never logged or
    included in ``repr``.
    """

    def __init__(self, private_key: str | None) -> None:
        """Load the signing key.

        :param private_key: Hex private key, with or without 0x prefix.
        :raises KeyUnavailableError: If the key is missing or invalid.
        """
        if not private_key or not private_key.strip():
            raise KeyUnavailableError("Signer private key is not configured")

        key = private_key.strip()
        if not key.startswith("0x"):
            key = "0x" + key
        try:
            self._account: LocalAccount = Account.from_key(key)
        except Exception:
            # Cause suppressed, it may echo the key.
            raise KeyUnavailableError("Signer private key is invalid") from None

        self._address = self._account.address
        logger.debug(f"Loaded signer {self._address}")

    def __repr__(self) -> str:
        """Return a representation without key material."""
        return f"ContextSigner(address={self._address})"

    def signer_address(self) -> str:
        """Return the checksum address of the signing key."""
        return self._address

    def sign(self, digest: bytes) -> bytes:
        """Sign a 32-byte digest with the EIP-191 personal message prefix.

        :param digest: Context digest.
        :returns: 65-byte signature (r || s || v, v in {27, 28}).
        :raises InvalidInputError: If digest is not 32 bytes.
        """
        if len(digest) != DIGEST_SIZE:
            raise InvalidInputError(
                f"Digest must be {DIGEST_SIZE} bytes, got {len(digest)}"
            )
        message = encode_defunct(primitive=bytes(digest))
        signed = self._account.sign_message(message)
        return bytes(signed.signature)

    def sign_context(self, context: Sequence[DecimalFloat]) -> tuple[bytes, str]:
        """Digest and sign a context array.

        :param context: Ordered context values.
        :returns: Tuple of (signature, signer address).
        """
        return self.sign(context_digest(context)), self._address

    @staticmethod
    def recover_signer(context: Sequence[DecimalFloat], signature: bytes) -> str:
        """Recover the address that signed a context.

        :param context: Ordered context values.
        :param signature: 65-byte signature.
        :returns: Checksum address of the signer.
        """
        message = encode_defunct(primitive=context_digest(context))
        return Account.recover_message(message, signature=signature)

    def verify(self, context: Sequence[DecimalFloat], signature: bytes) -> bool:
        """Check that a signature over a context was made by this signer.

        :param context: Ordered context values.
        :param signature: 65-byte signature.
        :returns: True if the recovered signer matches.
        """
        if len(signature) != SIGNATURE_SIZE or signature[-1] not in RECOVERY_IDS:
            return False
        try:
            recovered = self.recover_signer(context, signature)
        except (ValueError, BadSignature, ValidationError) as e:
            logger.debug(f"Signature recovery failed: {e}")
            return False
        return recovered == self._address
