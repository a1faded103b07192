# member_wallet/wallet_pass/generators/google.py

"""
Google Wallet Pass Generator

Builds a signed "save to wallet" JWT carrying the generic class and object
definitions, so no call to the Wallet REST API is needed at issuance time.
The member follows the returned URL and Google stores the pass.
"""

import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import jwt

from .base import BasePassGenerator
from ..errors import ServiceResult, ServiceAccountInvalid, SigningFailed
from ..models import IssuedPass, MemberIdentity

logger = logging.getLogger(__name__)

SAVE_URL_BASE = 'https://pay.google.com/gp/v/save/'
JWT_AUDIENCE = 'google'
JWT_TYPE = 'savetowallet'
DEFAULT_LANGUAGE = 'en-US'


def _localized(value: str) -> Dict[str, Any]:
    return {'defaultValue': {'language': DEFAULT_LANGUAGE, 'value': value}}


def parse_service_account(data: bytes) -> ServiceResult[Dict[str, str]]:
    """
    Parse service-account JSON and check the fields needed for signing.

    Returns:
        ServiceResult with the parsed account, or ServiceAccountInvalid
    """
    try:
        account = json.loads(data.decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as e:
        logger.error(f"Service account JSON could not be parsed: {e}")
        return ServiceResult.fail_with(ServiceAccountInvalid())

    if not isinstance(account, dict):
        return ServiceResult.fail_with(ServiceAccountInvalid())

    for key in ('client_email', 'private_key'):
        if not account.get(key):
            logger.error(f"Service account JSON has no {key}")
            return ServiceResult.fail_with(ServiceAccountInvalid())

    return ServiceResult.ok(account)


class GooglePassGenerator(BasePassGenerator):
    """
    Generates Google Wallet save links.

    Shows the same member fields as the Apple pass, as text modules on a
    generic pass object.
    """

    def get_platform_name(self) -> str:
        return 'google'

    def _get_class_id(self) -> str:
        return self.config.class_id or f"{self.config.issuer_id}.member_class"

    def _get_object_id(self, user_id: int) -> str:
        return f"{self.config.issuer_id}.user_{user_id}"

    def _origin(self) -> str:
        if self.config.site_origin:
            return self.config.site_origin
        parts = urlsplit(self.verify_url_base)
        return f"{parts.scheme}://{parts.netloc}"

    def generate(self, identity: MemberIdentity, member_name: str, member_id: str,
                 now: Optional[float] = None) -> ServiceResult[IssuedPass]:
        """
        Generate a Google Wallet save URL.

        Returns:
            ServiceResult with an IssuedPass holding the redirect URL
        """
        credentials = self.config.credentials
        missing = self.require_settings([
            ('issuer_id', self.config.issuer_id),
            ('sa_json_path', credentials.service_account_json.is_set),
        ])
        if missing:
            return ServiceResult.fail_with(missing)

        raw = self.resolver.resolve(credentials.service_account_json, 'sa_json_path')
        if not raw.success:
            return ServiceResult.fail_with(raw.error)

        account = parse_service_account(raw.data)
        if not account.success:
            return ServiceResult.fail_with(account.error)

        issued_at = self.issue_time(now)
        claims = self.build_claims(identity, member_name, member_id,
                                   account.data['client_email'], issued_at)

        try:
            token = jwt.encode(claims, account.data['private_key'], algorithm='RS256')
        except (ValueError, TypeError, jwt.PyJWTError) as e:
            logger.error(f"Google Wallet JWT signing failed: {e}")
            return ServiceResult.fail_with(SigningFailed(e))

        object_id = self._get_object_id(identity.internal_id)
        logger.info(f"Generated Google Wallet save link for user {identity.internal_id} ({object_id})")

        return ServiceResult.ok(IssuedPass(
            platform='google',
            user_id=identity.internal_id,
            redirect_url=f"{SAVE_URL_BASE}{token}",
            serial_number=object_id
        ))

    def build_claims(self, identity: MemberIdentity, member_name: str, member_id: str,
                     client_email: str, issued_at: int) -> Dict[str, Any]:
        """
        Build the save-to-wallet claims.

        Args:
            identity: Member snapshot
            member_name: Display name after hooks
            member_id: Member id after hooks
            client_email: Service-account email, used as issuer
            issued_at: Issue time as epoch seconds

        Returns:
            JWT claims dict
        """
        class_id = self._get_class_id()
        fields = self.get_member_fields(identity, member_name, member_id)

        generic_class = {
            'id': class_id,
            'issuerName': self.config.site_name or self.config.organization_name,
            'hexBackgroundColor': self.config.background_color,
            'cardTitle': _localized(self.config.description),
        }
        if self.config.site_icon_url:
            generic_class['logo'] = {'sourceUri': {'uri': self.config.site_icon_url}}

        text_modules = [
            {'id': f.key, 'header': f.label, 'body': f.value}
            for f in fields['secondary'] + fields['auxiliary']
        ]

        generic_object = {
            'id': self._get_object_id(identity.internal_id),
            'classId': class_id,
            'state': 'ACTIVE',
            'hexBackgroundColor': self.config.background_color,
            'header': _localized(self.config.description),
            'subheader': _localized(fields['primary'][0].value),
            'textModulesData': text_modules,
            'barcode': {
                'type': 'QR_CODE',
                'value': self.barcode_message(identity.internal_id, member_id, now=issued_at),
                'alternateText': member_id,
            },
        }

        return {
            'iss': client_email,
            'aud': JWT_AUDIENCE,
            'typ': JWT_TYPE,
            'iat': issued_at,
            'origins': [self._origin()],
            'payload': {
                'genericClasses': [generic_class],
                'genericObjects': [generic_object],
            },
        }


def validate_google_config(config, resolver) -> dict:
    """
    Validate Google Wallet configuration.

    Returns:
        dict with 'configured' boolean and 'issues' list
    """
    issues = []

    if not config.issuer_id:
        issues.append("Google settings incomplete: issuer_id")

    raw = resolver.resolve(config.credentials.service_account_json, 'sa_json_path')
    if not raw.success:
        issues.append(raw.message)
    else:
        account = parse_service_account(raw.data)
        if not account.success:
            issues.append(account.message)

    return {
        'configured': len(issues) == 0,
        'issues': issues
    }
