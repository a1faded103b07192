# member_wallet/wallet_pass/errors.py

"""
Wallet Pass Errors and Results

Typed errors raised (or returned) by the wallet pass components, and the
generic ServiceResult wrapper used to hand them back up to the issuance
service without throwing across component boundaries.
"""

from dataclasses import dataclass
from typing import Optional, TypeVar, Generic

T = TypeVar('T')


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class WalletPassError(ServiceError):
    """Base class for every wallet pass failure."""

    default_code = 'WALLET_PASS_ERROR'

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message, error_code or self.default_code)


class ConfigurationIncomplete(WalletPassError):
    """A required configuration field is empty."""

    default_code = 'CONFIGURATION_INCOMPLETE'

    def __init__(self, field_name: str, platform: str = None):
        self.field_name = field_name
        self.platform = platform
        prefix = f"{platform.capitalize()} settings" if platform else "Settings"
        super().__init__(f"{prefix} incomplete: {field_name}")


class CredentialMissing(WalletPassError):
    """A credential reference could not be resolved to an existing file."""

    default_code = 'CREDENTIAL_MISSING'

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Credential file not found for {field_name}")


class ServiceAccountInvalid(WalletPassError):
    default_code = 'SERVICE_ACCOUNT_INVALID'

    def __init__(self, reason: str = 'Invalid service account JSON'):
        super().__init__(reason)


class SigningFailed(WalletPassError):
    default_code = 'SIGNING_FAILED'

    def __init__(self, cause):
        self.cause = cause
        super().__init__(f"Signing failed: {cause}")


class ConversionFailed(WalletPassError):
    default_code = 'CONVERSION_FAILED'

    def __init__(self, cause):
        self.cause = cause
        super().__init__(f"Image conversion failed: {cause}")


class TokenInvalid(WalletPassError):
    default_code = 'TOKEN_INVALID'

    def __init__(self, reason: str = 'Verification token is invalid'):
        super().__init__(reason)


class TokenMalformed(TokenInvalid):
    """The token is missing or is not a structurally valid token."""

    default_code = 'TOKEN_MALFORMED'

    def __init__(self, reason: str = 'Verification token is malformed'):
        super().__init__(reason)


class TokenExpired(WalletPassError):
    default_code = 'TOKEN_EXPIRED'

    def __init__(self, reason: str = 'Verification token has expired'):
        super().__init__(reason)


class IdentityNotFound(WalletPassError):
    default_code = 'IDENTITY_NOT_FOUND'

    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__('User not found')


class NonceInvalid(WalletPassError):
    default_code = 'NONCE_INVALID'

    def __init__(self):
        super().__init__('Invalid nonce')


class UnsupportedPlatform(WalletPassError):
    default_code = 'UNSUPPORTED_PLATFORM'

    def __init__(self, platform):
        self.platform = platform
        super().__init__(f"Unsupported wallet platform: {platform!r}")


class InvalidRequest(WalletPassError):
    """A required request parameter is missing or not usable."""

    default_code = 'INVALID_REQUEST'

    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(f"Missing or invalid {parameter}")


@dataclass
class ServiceResult(Generic[T]):
    """
    Generic result wrapper for service operations.

    Provides a consistent way to return operation results with
    success/failure status, optional data, and the typed error on failure.
    """
    success: bool
    message: str
    data: Optional[T] = None
    error_code: Optional[str] = None
    error: Optional[WalletPassError] = None

    @classmethod
    def ok(cls, data: T = None, message: str = "Success") -> 'ServiceResult[T]':
        """Create a successful result."""
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, error_code: str = None) -> 'ServiceResult[T]':
        """Create a failure result."""
        return cls(success=False, message=message, error_code=error_code)

    @classmethod
    def fail_with(cls, error: WalletPassError) -> 'ServiceResult[T]':
        """Create a failure result carrying a typed error."""
        return cls(
            success=False,
            message=error.message,
            error_code=error.error_code,
            error=error
        )

    def unwrap(self) -> T:
        """Return the data or raise the carried error."""
        if not self.success:
            raise self.error or WalletPassError(self.message, self.error_code)
        return self.data
