# member_wallet/wallet_pass/services/__init__.py

"""
Wallet Pass Services

This package contains service classes for wallet pass operations:
- PassService: Unified pass issuance and verification service
"""

from .pass_service import PassService, status_for, ERROR_STATUS

__all__ = ['PassService', 'status_for', 'ERROR_STATUS']
