# member_wallet/wallet_pass/tokens.py

"""
Verification Tokens

Compact HS256 JWTs that carry the member identity in the pass QR code.
A scanned token is valid while its signature checks out and it has not
expired; there is no server-side record of issued tokens.
"""

import hashlib
import hmac
import logging
import time
from typing import Optional, Union

import jwt

from .errors import ServiceResult, TokenInvalid, TokenMalformed, TokenExpired
from .models import VerificationClaims

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = 'HS256'
TOKEN_LIFETIME_SECONDS = 31536000  # one year

_SECRET_CONTEXT = b'member-wallet-verification-token'


def derive_token_secret(secret_key: Union[str, bytes]) -> bytes:
    """Derive the token signing key from the application SECRET_KEY."""
    if not secret_key:
        raise ValueError("SECRET_KEY is required to sign verification tokens")
    if isinstance(secret_key, str):
        secret_key = secret_key.encode('utf-8')
    return hmac.new(secret_key, _SECRET_CONTEXT, hashlib.sha256).digest()


def mint(member_id: int, member_id_string: str, secret_key: bytes,
         now: Optional[float] = None) -> str:
    """
    Sign a verification token for a member.

    Args:
        member_id: Internal user id
        member_id_string: Member id as shown on the pass
        secret_key: Token signing key (see derive_token_secret)
        now: Issue time as epoch seconds, defaults to the current time

    Returns:
        Compact serialized token
    """
    issued_at = int(now if now is not None else time.time())
    claims = {
        'uid': int(member_id),
        'mid': str(member_id_string),
        'iat': issued_at,
        'exp': issued_at + TOKEN_LIFETIME_SECONDS,
    }
    return jwt.encode(claims, secret_key, algorithm=TOKEN_ALGORITHM)


def verify(token: str, secret_key: bytes) -> ServiceResult[VerificationClaims]:
    """
    Check a verification token and return its claims.

    Returns:
        ServiceResult with VerificationClaims, or TokenMalformed, TokenInvalid
        or TokenExpired
    """
    if not token or not isinstance(token, str):
        return ServiceResult.fail_with(TokenMalformed('Missing verification token'))

    try:
        claims = jwt.decode(
            token,
            secret_key,
            algorithms=[TOKEN_ALGORITHM],
            options={'require': ['uid', 'mid', 'iat', 'exp']}
        )
    except jwt.ExpiredSignatureError:
        return ServiceResult.fail_with(TokenExpired())
    except jwt.DecodeError as e:
        # Raised both for structural problems and bad signatures
        if isinstance(e, jwt.InvalidSignatureError):
            logger.warning("Verification token signature mismatch")
            return ServiceResult.fail_with(TokenInvalid())
        return ServiceResult.fail_with(TokenMalformed())
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected verification token: {e}")
        return ServiceResult.fail_with(TokenInvalid())

    uid = claims['uid']
    mid = claims['mid']
    if isinstance(uid, bool) or not isinstance(uid, int) or not isinstance(mid, str):
        return ServiceResult.fail_with(TokenInvalid('Verification token claims are invalid'))

    return ServiceResult.ok(VerificationClaims(
        uid=uid,
        mid=mid,
        issued_at=int(claims['iat']),
        expires_at=int(claims['exp'])
    ))
