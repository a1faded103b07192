# member_wallet/wallet_pass/services/pass_service.py

"""
Unified Wallet Pass Service

Provides a high-level interface for issuing wallet passes across the
Apple and Google platforms and for checking scanned verification tokens.

All collaborators (settings store, file store, user directory, nonce
service, hooks) are injected so hosts can plug in their own.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from ..collaborators import FileStore, NonceService, UserDirectory
from ..credentials import CredentialResolver
from ..errors import (
    ServiceResult, WalletPassError,
    ConfigurationIncomplete, CredentialMissing, ServiceAccountInvalid,
    SigningFailed, ConversionFailed, TokenInvalid, TokenMalformed, TokenExpired,
    IdentityNotFound, NonceInvalid, UnsupportedPlatform, InvalidRequest,
)
from ..generators import GENERATORS, VERIFY_PATH, validate_apple_config, validate_google_config
from ..hooks import IssuanceHooks
from ..models import IssuedPass, IssuerConfiguration, MemberVerificationView
from ..settings import SettingsStore
from .. import tokens

logger = logging.getLogger(__name__)

STATUS_VALID = 'Valid'

# Checked along the error's MRO, so subclasses map before their parents
ERROR_STATUS = {
    ConfigurationIncomplete: 500,
    CredentialMissing: 500,
    ServiceAccountInvalid: 500,
    SigningFailed: 500,
    ConversionFailed: 500,
    IdentityNotFound: 404,
    NonceInvalid: 403,
    TokenMalformed: 400,
    UnsupportedPlatform: 400,
    InvalidRequest: 400,
    TokenInvalid: 403,
    TokenExpired: 403,
}


def status_for(error: Optional[WalletPassError]) -> int:
    """Map a wallet pass error to its HTTP status code."""
    if error is None:
        return 500
    for klass in type(error).__mro__:
        if klass in ERROR_STATUS:
            return ERROR_STATUS[klass]
    return 500


class PassService:
    """
    Unified service for wallet pass operations.

    Handles pass issuance for both platforms, verification of scanned
    tokens, wallet links for members and configuration checks.
    """

    def __init__(
        self,
        settings_store: SettingsStore,
        user_directory: UserDirectory,
        nonce_service: NonceService,
        token_secret: bytes,
        file_store: Optional[FileStore] = None,
        hooks: Optional[IssuanceHooks] = None,
    ):
        self.settings_store = settings_store
        self.user_directory = user_directory
        self.nonce_service = nonce_service
        self.token_secret = token_secret
        self.resolver = CredentialResolver(file_store)
        self.hooks = hooks or IssuanceHooks()

    status_for = staticmethod(status_for)

    # =========================================================================
    # Pass Issuance
    # =========================================================================

    def load_configuration(self) -> IssuerConfiguration:
        return self.settings_store.load_issuer_configuration()

    @staticmethod
    def _site_base(config: IssuerConfiguration, base_url: Optional[str]) -> str:
        if config.site_origin:
            return config.site_origin
        return (base_url or '').rstrip('/')

    def get_generator(self, platform: str, config: IssuerConfiguration,
                      base_url: Optional[str] = None):
        """
        Build the generator for a platform.

        Args:
            platform: 'apple' or 'google'
            config: Issuer configuration for this request
            base_url: Request root URL, used when no site URL is configured

        Returns:
            Generator instance, or None for an unknown platform
        """
        generator_class = GENERATORS.get(platform)
        if generator_class is None:
            return None
        return generator_class(
            config,
            self.resolver,
            self.token_secret,
            hooks=self.hooks,
            verify_url_base=f"{self._site_base(config, base_url)}{VERIFY_PATH}"
        )

    def issue(self, platform: str, user_id: int, nonce: Optional[str],
              base_url: Optional[str] = None, now: Optional[float] = None) -> ServiceResult[IssuedPass]:
        """
        Issue a wallet pass for a member.

        Args:
            platform: 'apple' or 'google'
            user_id: Internal user id of the member
            nonce: Member-scoped nonce from the wallet link
            base_url: Request root URL, used when no site URL is configured
            now: Issue time as epoch seconds (defaults to current time)

        Returns:
            ServiceResult with an IssuedPass (archive bytes or redirect URL)
        """
        platform = (platform or '').strip().lower()
        if platform not in GENERATORS:
            return ServiceResult.fail_with(UnsupportedPlatform(platform))

        if not self.nonce_service.verify(nonce, user_id):
            logger.warning(f"Rejected {platform} pass request for user {user_id}: invalid nonce")
            return ServiceResult.fail_with(NonceInvalid())

        config = self.load_configuration()

        identity = self.user_directory.get_user(user_id)
        if identity is None:
            return ServiceResult.fail_with(IdentityNotFound(user_id))

        member_name = self.hooks.member_name(identity.display_name, identity)
        member_id = self.hooks.member_id(identity.login_handle, identity)

        generator = self.get_generator(platform, config, base_url)
        result = generator.generate(identity, member_name, member_id, now=now)

        if result.success:
            logger.info(f"Issued {platform} pass for user {user_id}")
        else:
            logger.error(f"Failed to issue {platform} pass for user {user_id}: {result.message}")
        return result

    # =========================================================================
    # Verification
    # =========================================================================

    def verify(self, token: Optional[str]) -> ServiceResult[MemberVerificationView]:
        """
        Validate a scanned verification token.

        Returns:
            ServiceResult with the MemberVerificationView to display
        """
        decoded = tokens.verify(token, self.token_secret)
        if not decoded.success:
            logger.info(f"Verification rejected: {decoded.error_code}")
            return ServiceResult.fail_with(decoded.error)

        claims = decoded.data
        identity = self.user_directory.get_user(claims.uid)
        if identity is None:
            return ServiceResult.fail_with(IdentityNotFound(claims.uid))

        return ServiceResult.ok(MemberVerificationView(
            user_id=claims.uid,
            member_name=self.hooks.member_name(identity.display_name, identity),
            member_id=claims.mid,
            status=STATUS_VALID,
            valid_until=claims.expires
        ))

    # =========================================================================
    # Wallet Links
    # =========================================================================

    def wallet_links(self, user_id: int, base_url: Optional[str] = None) -> Dict[str, str]:
        """
        Build the add-to-wallet links for a member, with a fresh nonce.

        Returns:
            Dict of platform name -> download URL
        """
        site = self._site_base(self.load_configuration(), base_url)
        query = urlencode({'mwp_nonce': self.nonce_service.create(user_id)})
        return {
            platform: f"{site}/wallet/{platform}/{user_id}?{query}"
            for platform in GENERATORS
        }

    # =========================================================================
    # Configuration Status
    # =========================================================================

    def get_apple_config_status(self, config: Optional[IssuerConfiguration] = None) -> Dict[str, Any]:
        return validate_apple_config(config or self.load_configuration(), self.resolver)

    def get_google_config_status(self, config: Optional[IssuerConfiguration] = None) -> Dict[str, Any]:
        return validate_google_config(config or self.load_configuration(), self.resolver)

    def config_status(self) -> Dict[str, Any]:
        """Get overall wallet configuration status"""
        config = self.load_configuration()
        apple = self.get_apple_config_status(config)
        google = self.get_google_config_status(config)

        return {
            'apple': apple,
            'google': google,
            'any_configured': apple['configured'] or google['configured']
        }
