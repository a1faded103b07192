# member_wallet/wallet_pass/models.py

"""
Wallet Pass Data Models

Plain value objects shared by the generators and the pass service. None of
these are persisted; they are snapshots taken for a single request.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional, Dict, Any

# Profile attribute keys rendered on the pass. Anything else in
# MemberIdentity.attributes is carried along but not displayed.
ATTR_FIRST_NAME = 'first_name'
ATTR_LAST_NAME = 'last_name'
ATTR_MEMBER_NUMBER = 'member_number'
ATTR_EXPIRY_DATE = 'expiry_date'

KNOWN_ATTRIBUTES = (ATTR_FIRST_NAME, ATTR_LAST_NAME, ATTR_MEMBER_NUMBER, ATTR_EXPIRY_DATE)

DEFAULT_PLACEHOLDER = 'N/A'


@dataclass(frozen=True)
class MemberIdentity:
    """Snapshot of a member profile as returned by the user directory."""

    internal_id: int
    display_name: str
    login_handle: str
    attributes: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(
            self, 'attributes', MappingProxyType(dict(self.attributes or {}))
        )

    def attribute(self, key: str, placeholder: str) -> str:
        """Return a profile attribute, or the placeholder when it is empty."""
        value = self.attributes.get(key)
        if value is None or not str(value).strip():
            return placeholder
        return str(value).strip()


@dataclass(frozen=True)
class CredentialRef:
    """
    Reference to a credential or image file.

    Either an uploaded-file identifier (resolved through the file store)
    or a direct filesystem path. The identifier is tried first.
    """

    attachment_id: Optional[int] = None
    path: Optional[str] = None

    @property
    def is_set(self) -> bool:
        return bool(self.attachment_id) or bool(self.path)


@dataclass(frozen=True)
class CredentialReferences:
    signing_cert: CredentialRef = CredentialRef()
    signing_cert_password: str = ''
    intermediate_cert: CredentialRef = CredentialRef()
    service_account_json: CredentialRef = CredentialRef()
    logo_image: CredentialRef = CredentialRef()
    background_image: CredentialRef = CredentialRef()


@dataclass(frozen=True)
class IssuerConfiguration:
    """Issuer settings, loaded once per request from the settings store."""

    organization_name: str = ''
    team_identifier: str = ''
    pass_type_identifier: str = ''
    issuer_id: str = ''
    class_id: str = ''
    placeholder_text: str = DEFAULT_PLACEHOLDER
    description: str = 'Member Card'
    background_color: str = '#000000'
    foreground_color: str = '#FFFFFF'
    label_color: str = '#FFFFFF'
    accent_color: str = '#0D9DDB'
    site_url: str = ''
    site_name: str = ''
    site_icon_url: str = ''
    credentials: CredentialReferences = CredentialReferences()

    @property
    def site_origin(self) -> str:
        return self.site_url.rstrip('/')


@dataclass(frozen=True)
class VerificationClaims:
    uid: int
    mid: str
    issued_at: int
    expires_at: int

    @property
    def expires(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)


@dataclass(frozen=True)
class IssuedPass:
    """Output of a successful issuance, ready for the HTTP layer."""

    platform: str
    user_id: int
    content: Optional[bytes] = None
    redirect_url: Optional[str] = None
    serial_number: Optional[str] = None

    @property
    def filename(self) -> str:
        return f"member-{self.user_id}.pkpass"

    @property
    def mimetype(self) -> str:
        return 'application/vnd.apple.pkpass'


@dataclass(frozen=True)
class MemberVerificationView:
    """What the verification page shows after a successful scan."""

    user_id: int
    member_name: str
    member_id: str
    status: str
    valid_until: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'valid': True,
            'user_id': self.user_id,
            'member_name': self.member_name,
            'member_id': self.member_id,
            'status': self.status,
            'valid_until': self.valid_until.isoformat(),
        }
