# member_wallet/wallet_pass/generators/__init__.py

"""
Wallet Pass Generators

This package contains generators for the two wallet platforms:
- Apple Wallet (.pkpass archive with detached PKCS#7 signature)
- Google Wallet (save-to-wallet JWT signed with a service account)

Both generators lay out the same member fields (BasePassGenerator), so the
two passes show the same content.
"""

from .base import BasePassGenerator, PassField, VERIFY_PATH
from .apple import ApplePassGenerator, validate_apple_config
from .google import GooglePassGenerator, validate_google_config

GENERATORS = {
    'apple': ApplePassGenerator,
    'google': GooglePassGenerator,
}

__all__ = [
    'BasePassGenerator',
    'PassField',
    'VERIFY_PATH',
    'ApplePassGenerator',
    'GooglePassGenerator',
    'GENERATORS',
    'validate_apple_config',
    'validate_google_config',
]
