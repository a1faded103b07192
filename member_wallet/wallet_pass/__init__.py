"""
Wallet Pass Module

Member pass issuance for Apple Wallet (.pkpass archives) and Google Wallet
(save-to-wallet JWTs), plus verification of the QR code printed on both.
"""

from .errors import ServiceResult, WalletPassError
from .hooks import IssuanceHooks
from .models import MemberIdentity, IssuerConfiguration, IssuedPass, MemberVerificationView
from .services import PassService

__all__ = [
    'ServiceResult',
    'WalletPassError',
    'IssuanceHooks',
    'MemberIdentity',
    'IssuerConfiguration',
    'IssuedPass',
    'MemberVerificationView',
    'PassService',
]
