"""
Signed Context Oracle - Rain DecimalFloat Signing Module

This module turns a price feed quote into EIP-191 signed context:
- DecimalFloat: Canonical packed decimal floats (bytes32)
- ContextBuilder: [price, expiry] context assembly
- ContextSigner: Context digest and EIP-191 signing
- OracleService: Per-request orchestration
- TokenPair: Order token routing and request decoding
- fetchers: Price feed collaborators
"""

from .ContextBuilder import build_context, invert_price
from .ContextSigner import ContextSigner, context_digest, pack_context
from .DecimalFloat import DecimalFloat
from .OracleService import OracleService, SignedContext
from .Quote import Quote
from .TokenPair import PriceDirection, TokenPairConfig, decode_oracle_request

__all__ = [
    "ContextSigner",
    "DecimalFloat",
    "OracleService",
    "PriceDirection",
    "Quote",
    "SignedContext",
    "TokenPairConfig",
    "build_context",
    "context_digest",
    "decode_oracle_request",
    "invert_price",
    "pack_context",
]
