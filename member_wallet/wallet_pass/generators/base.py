# member_wallet/wallet_pass/generators/base.py

"""
Base Pass Generator

Abstract base class for wallet pass generators. Provides the pieces both
platforms share (field layout, verification URL, bundled assets, required
settings checks) so Apple and Google passes show the same content.
"""

import os
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlencode

from ..credentials import CredentialResolver
from ..errors import ServiceResult, ConfigurationIncomplete
from ..hooks import IssuanceHooks
from ..models import (
    IssuerConfiguration, MemberIdentity,
    ATTR_FIRST_NAME, ATTR_LAST_NAME, ATTR_MEMBER_NUMBER, ATTR_EXPIRY_DATE,
)
from .. import tokens

logger = logging.getLogger(__name__)

VERIFY_PATH = '/wallet/verify'


@dataclass(frozen=True)
class PassField:
    key: str
    label: str
    value: str


class BasePassGenerator(ABC):
    """
    Abstract base class for wallet pass generation.

    Subclasses implement generate() for their platform and return a
    ServiceResult instead of raising.
    """

    def __init__(
        self,
        config: IssuerConfiguration,
        resolver: CredentialResolver,
        token_secret: bytes,
        hooks: Optional[IssuanceHooks] = None,
        verify_url_base: Optional[str] = None,
    ):
        """
        Initialize the generator.

        Args:
            config: Issuer configuration for this request
            resolver: Credential resolver for certificates and artwork
            token_secret: Key for signing verification tokens
            hooks: Issuance hooks (defaults pass values through)
            verify_url_base: Absolute verification page URL; built from the
                configured site URL when omitted
        """
        self.config = config
        self.resolver = resolver
        self.token_secret = token_secret
        self.hooks = hooks or IssuanceHooks()
        self.verify_url_base = verify_url_base or f"{config.site_origin}{VERIFY_PATH}"
        self.base_path = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    @abstractmethod
    def generate(self, identity: MemberIdentity, member_name: str, member_id: str,
                 now: Optional[float] = None) -> ServiceResult:
        """
        Generate the pass file/URL.

        Args:
            identity: Member snapshot
            member_name: Display name after hooks
            member_id: Member id after hooks
            now: Issue time as epoch seconds (defaults to current time)

        Returns:
            ServiceResult with platform-specific output (bytes for Apple,
            URL for Google)
        """

    @abstractmethod
    def get_platform_name(self) -> str:
        """Return the platform name (e.g., 'apple', 'google')"""

    @property
    def placeholder(self) -> str:
        return self.hooks.placeholder_text(self.config.placeholder_text)

    def require_settings(self, fields: Sequence[Tuple[str, Any]]) -> Optional[ConfigurationIncomplete]:
        """Return ConfigurationIncomplete for the first empty (name, value) pair."""
        for name, value in fields:
            if not value:
                logger.error(f"{self.get_platform_name().capitalize()} settings incomplete: {name}")
                return ConfigurationIncomplete(name, self.get_platform_name())
        return None

    def verification_url(self, user_id: int, member_id: str, now: Optional[float] = None) -> str:
        """Mint a verification token and return the verification page URL for it."""
        token = tokens.mint(user_id, member_id, self.token_secret, now=now)
        return f"{self.verify_url_base}?{urlencode({'token': token})}"

    def barcode_message(self, user_id: int, member_id: str, now: Optional[float] = None) -> str:
        default_url = self.verification_url(user_id, member_id, now=now)
        return self.hooks.barcode_message(default_url, user_id, member_id)

    def get_member_fields(self, identity: MemberIdentity, member_name: str,
                          member_id: str) -> Dict[str, List[PassField]]:
        """
        Lay out the pass fields for a member.

        Empty values are replaced with the placeholder text.
        """
        placeholder = self.placeholder

        def text(value):
            value = '' if value is None else str(value).strip()
            return value or placeholder

        return {
            'primary': [
                PassField('name', 'Name', text(member_name)),
            ],
            'secondary': [
                PassField('firstName', 'First Name', identity.attribute(ATTR_FIRST_NAME, placeholder)),
                PassField('lastName', 'Last Name', identity.attribute(ATTR_LAST_NAME, placeholder)),
            ],
            'auxiliary': [
                PassField('memberId', 'Member ID', text(member_id)),
                PassField('memberNumber', 'Member No.', identity.attribute(ATTR_MEMBER_NUMBER, placeholder)),
                PassField('expires', 'Valid Until', identity.attribute(ATTR_EXPIRY_DATE, placeholder)),
            ],
        }

    def get_asset_path(self, asset_name: str) -> Optional[str]:
        """
        Get the path to a bundled asset file.

        Args:
            asset_name: Name of the asset file

        Returns:
            Path to asset file or None if not found
        """
        path = os.path.join(self.base_path, 'assets', asset_name)
        if os.path.exists(path):
            return path
        return None

    @staticmethod
    def issue_time(now: Optional[float] = None) -> int:
        return int(now if now is not None else time.time())
