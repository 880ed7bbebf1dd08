"""Error taxonomy for the signed context oracle.

Every failure of the signing pipeline is raised as an ``OracleError``
subclass. The HTTP layer maps these to status codes via ``code``.
"""


class OracleError(Exception):
    """Base exception for oracle errors.

    :cvar code: Machine-readable error identifier for API responses.
    """

    code = "internal_error"


class InvalidInputError(OracleError):
    """Raised when a numeric value or request is malformed."""

    code = "invalid_input"


class OutOfRangeError(InvalidInputError):
    """Raised when a coefficient or exponent does not fit the packed width."""

    code = "out_of_range"


class InvalidExponentError(InvalidInputError):
    """Raised when an exponent is not an integer."""

    code = "invalid_exponent"


class InvalidRequestError(InvalidInputError):
    """Raised when an oracle request body cannot be decoded.

    :ivar code: ``invalid_body`` or ``invalid_index``.
    """

    def __init__(self, message: str, code: str = "invalid_body"):
        """Initialize the request error.

        :param message: Error message.
        :param code: Error identifier returned to the client.
        """
        self.code = code
        super().__init__(message)


class UnsupportedTokenPairError(InvalidInputError):
    """Raised when an order's tokens do not match the configured pair."""

    code = "unsupported_token_pair"


class UpstreamUnavailableError(OracleError):
    """Raised when the price feed could not deliver a usable quote."""

    code = "upstream_unavailable"


class KeyUnavailableError(OracleError):
    """Raised when the signing key is missing or cannot be loaded."""

    code = "key_unavailable"


class EncodingInvariantViolation(OracleError):
    """Raised when a packed value is not in canonical form."""

    code = "encoding_invariant_violation"
