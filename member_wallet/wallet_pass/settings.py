# member_wallet/wallet_pass/settings.py

"""
Wallet Settings

The issuer settings are kept by the host as a flat key-value record. This
module defines the known keys, sanitizes incoming records, and turns a
record into an immutable IssuerConfiguration for one request.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

from PIL import ImageColor

from .models import (
    CredentialRef, CredentialReferences, IssuerConfiguration, DEFAULT_PLACEHOLDER
)

logger = logging.getLogger(__name__)

SETTING_KEYS = (
    # Apple Wallet
    'team_id',
    'pass_type_id',
    'org_name',
    'description',
    'p12_attachment_id',
    'p12_path',
    'p12_password',
    'wwdr_attachment_id',
    'wwdr_pem',
    # Google Wallet
    'issuer_id',
    'class_id',
    'sa_json_attachment_id',
    'sa_json_path',
    # Artwork
    'logo_attachment_id',
    'logo_path',
    'background_attachment_id',
    'background_path',
    'background_color',
    'foreground_color',
    'label_color',
    'accent_color',
    # Site
    'placeholder_text',
    'site_url',
    'site_name',
    'site_icon_url',
)


def sanitize_options(opts: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """
    Normalize a settings record.

    Unknown keys are dropped, missing keys become empty strings and every
    value is stripped of surrounding whitespace.
    """
    opts = opts or {}
    safe = {}
    for key in SETTING_KEYS:
        value = opts.get(key)
        safe[key] = '' if value is None else str(value).strip()
    return safe


def _attachment_id(value: str) -> Optional[int]:
    try:
        attachment_id = int(value)
    except (TypeError, ValueError):
        return None
    return attachment_id if attachment_id > 0 else None


def _color(opts: Mapping[str, str], key: str, default: str) -> str:
    """Normalize a colour setting to #RRGGBB, falling back to the default."""
    value = opts.get(key)
    if not value:
        return default
    try:
        r, g, b = ImageColor.getrgb(value)[:3]
        if not all(0 <= c <= 255 for c in (r, g, b)):
            raise ValueError(f"colour out of range: {value!r}")
    except ValueError:
        logger.warning(f"Ignoring invalid {key} setting {value!r}, using {default}")
        return default
    return f"#{r:02X}{g:02X}{b:02X}"


def _ref(opts: Mapping[str, str], id_key: str, path_key: str) -> CredentialRef:
    return CredentialRef(
        attachment_id=_attachment_id(opts.get(id_key)),
        path=opts.get(path_key) or None
    )


def build_issuer_configuration(record: Optional[Mapping[str, Any]]) -> IssuerConfiguration:
    """Build the per-request IssuerConfiguration from a settings record."""
    opts = sanitize_options(record)

    credentials = CredentialReferences(
        signing_cert=_ref(opts, 'p12_attachment_id', 'p12_path'),
        signing_cert_password=opts['p12_password'],
        intermediate_cert=_ref(opts, 'wwdr_attachment_id', 'wwdr_pem'),
        service_account_json=_ref(opts, 'sa_json_attachment_id', 'sa_json_path'),
        logo_image=_ref(opts, 'logo_attachment_id', 'logo_path'),
        background_image=_ref(opts, 'background_attachment_id', 'background_path'),
    )

    defaults = IssuerConfiguration()
    return IssuerConfiguration(
        organization_name=opts['org_name'],
        team_identifier=opts['team_id'],
        pass_type_identifier=opts['pass_type_id'],
        issuer_id=opts['issuer_id'],
        class_id=opts['class_id'],
        placeholder_text=opts['placeholder_text'] or DEFAULT_PLACEHOLDER,
        description=opts['description'] or defaults.description,
        background_color=_color(opts, 'background_color', defaults.background_color),
        foreground_color=_color(opts, 'foreground_color', defaults.foreground_color),
        label_color=_color(opts, 'label_color', defaults.label_color),
        accent_color=_color(opts, 'accent_color', defaults.accent_color),
        site_url=opts['site_url'],
        site_name=opts['site_name'] or opts['org_name'],
        site_icon_url=opts['site_icon_url'],
        credentials=credentials,
    )


class SettingsStore(ABC):
    """Key-value settings provider supplied by the host."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return a single setting value."""

    def snapshot(self) -> Dict[str, str]:
        """Return every known wallet setting as a sanitized record."""
        return sanitize_options({key: self.get(key) for key in SETTING_KEYS})

    def load_issuer_configuration(self) -> IssuerConfiguration:
        return build_issuer_configuration(self.snapshot())


class DictSettingsStore(SettingsStore):
    """Settings held in a plain mapping (tests, scripts, small deployments)."""

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values = dict(values or {})

    def get(self, key, default=None):
        return self._values.get(key, default)


class AppConfigSettingsStore(SettingsStore):
    """
    Settings read from the Flask config, e.g. ``MWP_TEAM_ID`` for ``team_id``.

    The config mapping is read on every call so a reloaded config is picked
    up by the next request.
    """

    def __init__(self, config: Mapping[str, Any], prefix: str = 'MWP_'):
        self.config = config
        self.prefix = prefix

    def get(self, key, default=None):
        value = self.config.get(f"{self.prefix}{key.upper()}")
        return default if value is None else value
