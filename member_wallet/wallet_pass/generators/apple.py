# member_wallet/wallet_pass/generators/apple.py

"""
Apple Wallet Pass Generator

Generates .pkpass archives for Apple Wallet. The pass itself is composed
with the wallet library; hashing, signing and packing are done here so the
manifest and signature always match the exact bytes placed in the archive.

Signing uses a password-protected PKCS#12 bundle (certificate + key) and an
optional Apple WWDR intermediate certificate.
"""

import base64
import hashlib
import json
import logging
import uuid
import zipfile
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from io import BytesIO
from typing import Dict, List, Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.serialization import pkcs7, pkcs12
from PIL import ImageColor
from wallet.models import Pass, Barcode, Generic, Field

from .base import BasePassGenerator
from .. import images
from ..errors import ServiceResult, SigningFailed
from ..models import CredentialRef, IssuedPass, MemberIdentity

logger = logging.getLogger(__name__)

BARCODE_FORMAT_QR = 'PKBarcodeFormatQR'
BARCODE_ENCODING = 'iso-8859-1'

# 1x1 transparent PNG, used when no icon asset is bundled
PLACEHOLDER_ICON_B64 = (
    'iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mP8/x8AAusB9Yh9W5YAAAAASUVORK5CYII='
)


@dataclass
class SigningMaterial:
    private_key: object
    certificate: x509.Certificate
    chain: List[x509.Certificate] = field(default_factory=list)


def _load_certificate(data: bytes) -> x509.Certificate:
    if b'-----BEGIN' in data:
        return x509.load_pem_x509_certificate(data)
    return x509.load_der_x509_certificate(data)


def load_signing_material(p12_data: bytes, password: str,
                          intermediate_data: Optional[bytes] = None) -> ServiceResult[SigningMaterial]:
    """
    Load the signer key and certificate from a PKCS#12 bundle.

    Args:
        p12_data: Raw .p12 bytes
        password: Bundle password
        intermediate_data: Optional WWDR certificate, PEM or DER

    Returns:
        ServiceResult with SigningMaterial, or SigningFailed
    """
    try:
        private_key, certificate, additional = pkcs12.load_key_and_certificates(
            p12_data, password.encode('utf-8') if password else None
        )
    except (ValueError, TypeError) as e:
        logger.error(f"Could not open PKCS#12 certificate: {e}")
        return ServiceResult.fail_with(SigningFailed(f"could not open certificate ({e})"))

    if private_key is None or certificate is None:
        return ServiceResult.fail_with(
            SigningFailed('certificate bundle has no private key or certificate')
        )

    chain = list(additional or [])
    if intermediate_data:
        try:
            intermediate = _load_certificate(intermediate_data)
        except ValueError as e:
            logger.error(f"Could not load intermediate certificate: {e}")
            return ServiceResult.fail_with(SigningFailed(f"malformed intermediate certificate ({e})"))
        if intermediate not in chain:
            chain.append(intermediate)

    return ServiceResult.ok(SigningMaterial(private_key, certificate, chain))


def sign_manifest(manifest: bytes, material: SigningMaterial,
                  signed_attributes: bool = True) -> ServiceResult[bytes]:
    """
    Create a detached DER PKCS#7 signature over the manifest bytes.

    Args:
        manifest: Exact bytes of manifest.json
        material: Signer key, certificate and chain
        signed_attributes: Include signing time and message digest
            attributes (required by Wallet; disabled only for inspection)

    Returns:
        ServiceResult with the DER signature, or SigningFailed
    """
    options = [pkcs7.PKCS7Options.DetachedSignature, pkcs7.PKCS7Options.Binary]
    if not signed_attributes:
        options.append(pkcs7.PKCS7Options.NoAttributes)

    try:
        builder = (
            pkcs7.PKCS7SignatureBuilder()
            .set_data(manifest)
            .add_signer(material.certificate, material.private_key, hashes.SHA256())
        )
        for cert in material.chain:
            builder = builder.add_certificate(cert)
        signature = builder.sign(serialization.Encoding.DER, options)
    except (ValueError, TypeError) as e:
        logger.error(f"PKCS#7 signing failed: {e}")
        return ServiceResult.fail_with(SigningFailed(e))

    return ServiceResult.ok(signature)


def build_manifest(files: Dict[str, bytes]) -> Dict[str, str]:
    """SHA-1 hex digest of every bundled file, keyed by file name."""
    return {name: hashlib.sha1(data).hexdigest() for name, data in files.items()}


def pack_archive(files: Dict[str, bytes]) -> bytes:
    """Zip the files flat at the archive root."""
    buffer = BytesIO()
    with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buffer.getvalue()


def _json_default(obj):
    if hasattr(obj, 'json_dict'):
        return obj.json_dict()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _rgb(hex_color: str) -> str:
    r, g, b = ImageColor.getrgb(hex_color)[:3]
    return f"rgb({r},{g},{b})"


class ApplePassGenerator(BasePassGenerator):
    """
    Generates Apple Wallet .pkpass files.

    Build order is fixed: compose, serialize, collect assets, hash, sign,
    pack. Any failure returns a failed ServiceResult and no archive.
    """

    def get_platform_name(self) -> str:
        return 'apple'

    def generate(self, identity: MemberIdentity, member_name: str, member_id: str,
                 now: Optional[float] = None) -> ServiceResult[IssuedPass]:
        """
        Generate an Apple Wallet .pkpass file.

        Returns:
            ServiceResult with an IssuedPass holding the archive bytes
        """
        credentials = self.config.credentials
        missing = self.require_settings([
            ('team_id', self.config.team_identifier),
            ('pass_type_id', self.config.pass_type_identifier),
            ('org_name', self.config.organization_name),
            ('p12_path', credentials.signing_cert.is_set),
            ('p12_password', credentials.signing_cert_password),
        ])
        if missing:
            return ServiceResult.fail_with(missing)

        issued_at = self.issue_time(now)
        serial = self.make_serial(identity.internal_id, issued_at)

        # Compose + serialize
        pass_obj = self._create_pass_object(identity, member_name, member_id, serial, issued_at)
        pass_json = self.serialize_pass(pass_obj, member_id)

        # Collect assets
        files = OrderedDict()
        files['pass.json'] = pass_json
        files['icon.png'] = self._icon_bytes()
        logo = self._optional_image(credentials.logo_image, 'logo_path')
        if logo is None:
            logo = self._bundled_asset('logo.png')
        if logo is not None:
            files['logo.png'] = logo
        files['background.png'] = self._background_bytes()

        # Hash
        manifest = build_manifest(files)
        manifest_json = json.dumps(manifest, sort_keys=True).encode('utf-8')

        # Sign
        material = self._load_signing_material()
        if not material.success:
            return ServiceResult.fail_with(material.error)
        signature = sign_manifest(manifest_json, material.data)
        if not signature.success:
            return ServiceResult.fail_with(signature.error)

        # Pack
        files['manifest.json'] = manifest_json
        files['signature'] = signature.data
        archive = pack_archive(files)

        logger.info(
            f"Generated Apple Wallet pass for user {identity.internal_id} "
            f"(serial: {serial}, files: {len(files)})"
        )
        return ServiceResult.ok(IssuedPass(
            platform='apple',
            user_id=identity.internal_id,
            content=archive,
            serial_number=serial
        ))

    @staticmethod
    def make_serial(user_id: int, issued_at: int) -> str:
        """Serial number unique to this member and issuance."""
        return f"user-{user_id}-{issued_at}-{uuid.uuid4().hex[:8]}"

    def _create_pass_object(self, identity: MemberIdentity, member_name: str,
                            member_id: str, serial: str, issued_at: int) -> Pass:
        """
        Create the Apple Wallet Pass object.

        Args:
            identity: Member snapshot
            member_name: Display name after hooks
            member_id: Member id after hooks
            serial: Serial number for this issuance
            issued_at: Issue time as epoch seconds

        Returns:
            wallet.models.Pass object
        """
        card_info = Generic()
        fields = self.get_member_fields(identity, member_name, member_id)

        for pass_field in fields['primary']:
            card_info.primaryFields.append(Field(pass_field.key, pass_field.value, pass_field.label))
        for pass_field in fields['secondary']:
            card_info.secondaryFields.append(Field(pass_field.key, pass_field.value, pass_field.label))
        for pass_field in fields['auxiliary']:
            card_info.auxiliaryFields.append(Field(pass_field.key, pass_field.value, pass_field.label))

        issue_date = datetime.fromtimestamp(issued_at, tz=timezone.utc).strftime('%Y-%m-%d')
        card_info.addBackField('organization', self.config.organization_name, 'Organization')
        card_info.addBackField('issued', issue_date, 'Issued')

        pass_obj = Pass(
            card_info,
            passTypeIdentifier=self.config.pass_type_identifier,
            organizationName=self.config.organization_name,
            teamIdentifier=self.config.team_identifier
        )
        pass_obj.serialNumber = serial
        pass_obj.description = self.config.description

        pass_obj.barcode = Barcode(
            message=self.barcode_message(identity.internal_id, member_id, now=issued_at),
            format=BARCODE_FORMAT_QR
        )

        pass_obj.backgroundColor = _rgb(self.config.background_color)
        pass_obj.foregroundColor = _rgb(self.config.foreground_color)
        pass_obj.labelColor = _rgb(self.config.label_color)
        pass_obj.logoText = self.config.organization_name

        return pass_obj

    @staticmethod
    def serialize_pass(pass_obj: Pass, member_id: str) -> bytes:
        """Encode the pass as canonical pass.json bytes."""
        document = json.loads(json.dumps(pass_obj, default=_json_default))
        document['formatVersion'] = 1

        barcode = document.get('barcode')
        if barcode:
            barcode['messageEncoding'] = BARCODE_ENCODING
            barcode['altText'] = member_id
            document['barcodes'] = [barcode]

        return json.dumps(
            document, sort_keys=True, ensure_ascii=False, separators=(',', ':')
        ).encode('utf-8')

    def _bundled_asset(self, name: str) -> Optional[bytes]:
        path = self.get_asset_path(name)
        if not path:
            return None
        with open(path, 'rb') as f:
            return f.read()

    def _icon_bytes(self) -> bytes:
        icon = self._bundled_asset('icon.png')
        if icon is None:
            logger.warning("No icon.png asset bundled, using placeholder icon")
            icon = base64.b64decode(PLACEHOLDER_ICON_B64)
        return icon

    def _optional_image(self, ref: CredentialRef, field_name: str) -> Optional[bytes]:
        """Resolve and convert a configured image; None when unavailable."""
        if not ref.is_set:
            return None

        resolved = self.resolver.resolve(ref, field_name)
        if not resolved.success:
            logger.warning(f"Configured {field_name} image not found, using fallback")
            return None

        converted = images.to_png(resolved.data)
        if not converted.success:
            logger.warning(f"Configured {field_name} image could not be converted: {converted.message}")
            return None
        return converted.data

    def _background_bytes(self) -> bytes:
        background = self._optional_image(self.config.credentials.background_image, 'background_path')
        if background is None:
            background = images.synthesize_background(accent_hex=self.config.accent_color)
        return background

    def _load_signing_material(self) -> ServiceResult[SigningMaterial]:
        credentials = self.config.credentials

        p12 = self.resolver.resolve(credentials.signing_cert, 'p12_path')
        if not p12.success:
            return ServiceResult.fail_with(p12.error)

        intermediate = None
        if credentials.intermediate_cert.is_set:
            resolved = self.resolver.resolve(credentials.intermediate_cert, 'wwdr_pem')
            if not resolved.success:
                return ServiceResult.fail_with(resolved.error)
            intermediate = resolved.data

        return load_signing_material(p12.data, credentials.signing_cert_password, intermediate)


def validate_apple_config(config, resolver) -> dict:
    """
    Validate Apple Wallet configuration.

    Returns:
        dict with 'configured' boolean and 'issues' list
    """
    issues = []
    credentials = config.credentials

    for name, value in [
        ('team_id', config.team_identifier),
        ('pass_type_id', config.pass_type_identifier),
        ('org_name', config.organization_name),
        ('p12_password', credentials.signing_cert_password),
    ]:
        if not value:
            issues.append(f"Apple settings incomplete: {name}")

    if config.team_identifier and len(config.team_identifier) != 10:
        issues.append(
            f"Team identifier must be 10 characters, got {len(config.team_identifier)}"
        )

    p12 = resolver.resolve(credentials.signing_cert, 'p12_path')
    if not p12.success:
        issues.append(p12.message)

    intermediate = None
    if credentials.intermediate_cert.is_set:
        resolved = resolver.resolve(credentials.intermediate_cert, 'wwdr_pem')
        if resolved.success:
            intermediate = resolved.data
        else:
            issues.append(resolved.message)

    if p12.success and credentials.signing_cert_password:
        material = load_signing_material(p12.data, credentials.signing_cert_password, intermediate)
        if not material.success:
            issues.append(material.message)

    return {
        'configured': len(issues) == 0,
        'issues': issues
    }
