# member_wallet/wallet_pass/routes/__init__.py

"""
Wallet Pass Routes

This package contains route handlers for:
- Public download and verification endpoints
- Validation API (QR scanning)
"""

from .public import public_wallet_bp
from .validation import validation_bp

__all__ = ['public_wallet_bp', 'validation_bp']
