"""
Domain exceptions - единая таксономия ошибок для всех сервисов.

Every error carries a stable ``kind`` (the taxonomy bucket) so the API layer
can map it to a status code without services knowing about HTTP.

Kinds:
- validation: malformed or missing input
- not_found: entity absent
- conflict: duplicate check-in, used code, taken email, conflicting link
- expired: migration code past its TTL
- capacity_exhausted: code generation retries exhausted
- external_verification: proof verifier rejected or errored
- authentication: bad credentials or token
- forbidden: authenticated, but not allowed to touch this user's data
"""

from typing import Any, Dict, Optional


class AstraError(Exception):
    """Base class for expected, caller-recoverable errors"""

    kind: str = "internal"
    default_message: str = "Unexpected error"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.default_message
        self.details: Dict[str, Any] = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message, "kind": self.kind}
        if self.details:
            payload["details"] = self.details
        return payload


# ===========================
# TAXONOMY
# ===========================


class ValidationError(AstraError):
    kind = "validation"
    default_message = "Invalid input"


class NotFoundError(AstraError):
    kind = "not_found"
    default_message = "Not found"


class ConflictError(AstraError):
    kind = "conflict"
    default_message = "Conflict"


class ExpiredError(AstraError):
    kind = "expired"
    default_message = "Expired"


class CapacityExhaustedError(AstraError):
    kind = "capacity_exhausted"
    default_message = "Capacity exhausted, please try again"


class ExternalVerificationError(AstraError):
    kind = "external_verification"
    default_message = "External verification failed"


class AuthenticationError(AstraError):
    kind = "authentication"
    default_message = "Authentication failed"


class AuthorizationError(AstraError):
    kind = "forbidden"
    default_message = "Not allowed"


# ===========================
# VALIDATION
# ===========================


class InvalidResponseError(ValidationError):
    default_message = 'Response must be "yes" or "no"'


class InvalidDataTypeError(ValidationError):
    default_message = "Unknown data type"


class UnknownPartnerError(ValidationError):
    default_message = "Unknown data union partner"


class PasswordTooLongError(ValidationError):
    default_message = "Password must be at most 72 bytes"


# ===========================
# NOT FOUND
# ===========================


class UserNotFoundError(NotFoundError):
    default_message = "User not found"


class CodeNotFoundError(NotFoundError):
    default_message = "Invalid code"


class InviteNotFoundError(NotFoundError):
    default_message = "Research invite not found"


class DocNotFoundError(NotFoundError):
    default_message = "Doc not found"


class FeedbackNotFoundError(NotFoundError):
    default_message = "Feedback not found"


# ===========================
# CONFLICT
# ===========================


class DuplicateCheckInError(ConflictError):
    default_message = "Already checked in today"


class CodeAlreadyUsedError(ConflictError):
    default_message = "Code has already been used"


class ConflictingLinkError(ConflictError):
    default_message = "Telegram account link conflict"


class EmailTakenError(ConflictError):
    default_message = "Email already registered"


class AlreadyRegisteredError(ConflictError):
    default_message = "User already has email/password set"


class NotInvitedError(ConflictError):
    default_message = "User was not invited to this private research invite"


# ===========================
# EXPIRED / CAPACITY
# ===========================


class CodeExpiredError(ExpiredError):
    default_message = "Code has expired"


class CodeGenerationExhaustedError(CapacityExhaustedError):
    default_message = "Failed to generate code, please try again"


# ===========================
# EXTERNAL VERIFICATION
# ===========================


class ProofRejectedError(ExternalVerificationError):
    default_message = "Proof verification failed"


class GenderNotEligibleError(ExternalVerificationError):
    default_message = "Verification completed, but gender must be female"


class VerifierUnavailableError(ExternalVerificationError):
    default_message = "Proof verifier is unavailable"


# ===========================
# AUTHENTICATION
# ===========================


class InvalidCredentialsError(AuthenticationError):
    default_message = "Invalid credentials"


class InvalidTokenError(AuthenticationError):
    default_message = "Invalid or expired token"


class NotOwnerError(AuthorizationError):
    default_message = "Token does not belong to this user"
