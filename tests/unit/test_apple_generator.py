"""
Apple Wallet generator unit tests.

These tests verify the .pkpass archive builder:
- Archive layout and manifest hashes
- Detached PKCS#7 signature over the manifest
- pass.json content (identifiers, serial, fields, barcode)
- Artwork fallbacks and configured images
- Failures for missing settings, missing files and bad passwords
"""
import hashlib
import json
import zipfile
from io import BytesIO
from urllib.parse import parse_qs, urlsplit

import pytest
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.serialization import pkcs7
from PIL import Image

from member_wallet.wallet_pass import images, tokens
from member_wallet.wallet_pass.errors import ConfigurationIncomplete, CredentialMissing, SigningFailed
from member_wallet.wallet_pass.generators.apple import (
    ApplePassGenerator, build_manifest, load_signing_material, sign_manifest, validate_apple_config,
)
from member_wallet.wallet_pass.hooks import IssuanceHooks
from member_wallet.wallet_pass.settings import build_issuer_configuration

BUNDLE_FILES = {'pass.json', 'icon.png', 'background.png'}

# id-messageDigest, 1.2.840.113549.1.9.4
MESSAGE_DIGEST_OID = bytes.fromhex('2a864886f70d010904')


def _generator(values, resolver, token_secret, hooks=None):
    return ApplePassGenerator(build_issuer_configuration(values), resolver, token_secret, hooks=hooks)


def _unpack(content):
    with zipfile.ZipFile(BytesIO(content)) as zf:
        return {name: zf.read(name) for name in zf.namelist()}


def _der_elements(data, start=0, end=None):
    """Yield (tag, header_start, value_start, value_end) for each DER element in data[start:end]."""
    end = len(data) if end is None else end
    pos = start
    while pos < end:
        tag, length = data[pos], data[pos + 1]
        value_start = pos + 2
        if length & 0x80:
            size = length & 0x7F
            length = int.from_bytes(data[value_start:value_start + size], 'big')
            value_start += size
        yield tag, pos, value_start, value_start + length
        pos = value_start + length


def _children(data, element):
    return list(_der_elements(data, element[2], element[3]))


def _first_signer(signature):
    """
    Pull the first SignerInfo out of a DER PKCS#7 SignedData.

    Returns:
        (signed attributes re-encoded as a SET, messageDigest value, RSA signature)
    """
    content_info = next(_der_elements(signature))
    explicit = next(e for e in _children(signature, content_info) if e[0] == 0xA0)
    signed_data = _children(signature, explicit)[0]
    signer_infos = _children(signature, signed_data)[-1]
    signer_info = _children(signature, signer_infos)[0]

    fields = _children(signature, signer_info)
    attrs = next(e for e in fields if e[0] == 0xA0)
    rsa_signature = next(e for e in fields if e[0] == 0x04)

    message_digest = None
    for attribute in _children(signature, attrs):
        oid, values = _children(signature, attribute)
        if signature[oid[2]:oid[3]] == MESSAGE_DIGEST_OID:
            value = _children(signature, values)[0]
            message_digest = signature[value[2]:value[3]]

    # Signed attributes are signed as a SET, not with their [0] IMPLICIT tag
    signed_attrs = b'\x31' + signature[attrs[1] + 1:attrs[3]]
    return signed_attrs, message_digest, signature[rsa_signature[2]:rsa_signature[3]]


@pytest.fixture
def generator(settings_values, resolver, token_secret):
    return _generator(settings_values, resolver, token_secret)


@pytest.fixture
def archive(generator, jane):
    result = generator.generate(jane, 'Jane Doe', 'jdoe')
    assert result.success, result.message
    return _unpack(result.data.content)


@pytest.mark.unit
class TestArchiveLayout:
    """Test the files inside the .pkpass and their manifest."""

    def test_archive_holds_bundle_manifest_and_signature(self, archive):
        """No logo is configured or bundled, so only the required files are present."""
        assert set(archive) == BUNDLE_FILES | {'manifest.json', 'signature'}

    def test_manifest_hashes_every_bundled_file(self, archive):
        manifest = json.loads(archive['manifest.json'])

        assert set(manifest) == BUNDLE_FILES
        for name, digest in manifest.items():
            assert digest == hashlib.sha1(archive[name]).hexdigest()

    def test_images_are_png(self, archive):
        assert images.is_png(archive['icon.png'])
        assert images.is_png(archive['background.png'])

    def test_background_falls_back_to_synthesized(self, archive):
        assert archive['background.png'] == images.synthesize_background(accent_hex='#0D9DDB')


@pytest.mark.unit
class TestSignature:
    """Test the detached signature over manifest.json."""

    def test_signature_carries_signer_and_intermediate(self, archive, signing_cert, intermediate_cert):
        certs = pkcs7.load_der_pkcs7_certificates(archive['signature'])

        assert signing_cert in certs
        assert intermediate_cert in certs

    def test_archive_signature_verifies_against_signing_cert(self, archive, signing_cert):
        """The emitted signature covers manifest.json and checks out with the signer's key."""
        signed_attrs, message_digest, rsa_signature = _first_signer(archive['signature'])

        assert message_digest == hashlib.sha256(archive['manifest.json']).digest()
        signing_cert.public_key().verify(rsa_signature, signed_attrs, padding.PKCS1v15(), hashes.SHA256())

    def test_archive_signature_rejects_altered_manifest(self, archive, signing_cert):
        signed_attrs, message_digest, rsa_signature = _first_signer(archive['signature'])
        altered = archive['manifest.json'].replace(b'pass.json', b'pass.jsom')

        assert message_digest != hashlib.sha256(altered).digest()
        with pytest.raises(InvalidSignature):
            signing_cert.public_key().verify(
                rsa_signature, signed_attrs + b'\x00', padding.PKCS1v15(), hashes.SHA256()
            )

    def test_raw_signature_validates_against_signing_cert(self, credentials_dir, signing_key, signing_cert):
        """Without signed attributes the signature is plain RSA over the manifest."""
        material = load_signing_material(
            (credentials_dir / 'signer.p12').read_bytes(), 'secret'
        ).data
        manifest = json.dumps({'pass.json': 'abc'}, sort_keys=True).encode()

        signature = sign_manifest(manifest, material, signed_attributes=False).data
        expected = signing_key.sign(manifest, padding.PKCS1v15(), hashes.SHA256())

        assert expected in signature
        signing_cert.public_key().verify(expected, manifest, padding.PKCS1v15(), hashes.SHA256())

    def test_der_intermediate_is_accepted(self, credentials_dir, intermediate_cert):
        der = intermediate_cert.public_bytes(serialization.Encoding.DER)

        result = load_signing_material((credentials_dir / 'signer.p12').read_bytes(), 'secret', der)

        assert result.success
        assert intermediate_cert in result.data.chain

    def test_malformed_intermediate_fails_signing(self, credentials_dir):
        result = load_signing_material((credentials_dir / 'signer.p12').read_bytes(), 'secret', b'junk')

        assert isinstance(result.error, SigningFailed)

    def test_manifest_helper(self):
        assert build_manifest({'a': b'x'}) == {'a': hashlib.sha1(b'x').hexdigest()}


@pytest.mark.unit
class TestPassContent:
    """Test what ends up in pass.json."""

    def test_identifiers_and_serial(self, archive):
        doc = json.loads(archive['pass.json'])

        assert doc['formatVersion'] == 1
        assert doc['teamIdentifier'] == 'T1'
        assert doc['passTypeIdentifier'] == 'pass.acme'
        assert doc['organizationName'] == 'Acme'
        assert doc['serialNumber'].startswith('user-42-')
        assert doc['backgroundColor'] == 'rgb(0,0,0)'

    def test_fields(self, archive):
        card = json.loads(archive['pass.json'])['generic']

        assert card['primaryFields'][0]['value'] == 'Jane Doe'
        secondary = {f['key']: f['value'] for f in card['secondaryFields']}
        assert secondary == {'firstName': 'Jane', 'lastName': 'Doe'}
        auxiliary = {f['key']: f['value'] for f in card['auxiliaryFields']}
        assert auxiliary == {'memberId': 'jdoe', 'memberNumber': 'N/A', 'expires': 'N/A'}

    def test_barcode_is_verification_url(self, archive, token_secret):
        doc = json.loads(archive['pass.json'])
        barcode = doc['barcode']

        assert barcode['format'] == 'PKBarcodeFormatQR'
        assert barcode['messageEncoding'] == 'iso-8859-1'
        assert barcode['altText'] == 'jdoe'
        assert doc['barcodes'] == [barcode]

        url = urlsplit(barcode['message'])
        assert f"{url.scheme}://{url.netloc}{url.path}" == 'https://members.example.org/wallet/verify'
        claims = tokens.verify(parse_qs(url.query)['token'][0], token_secret).data
        assert (claims.uid, claims.mid) == (42, 'jdoe')

    def test_pass_json_is_canonical(self, archive):
        raw = archive['pass.json']
        canonical = json.dumps(
            json.loads(raw), sort_keys=True, ensure_ascii=False, separators=(',', ':')
        ).encode('utf-8')

        assert raw == canonical

    def test_serials_never_repeat(self, generator, jane):
        """Two issuances in the same second still get distinct serials."""
        first = generator.generate(jane, 'Jane Doe', 'jdoe', now=1700000000).data
        second = generator.generate(jane, 'Jane Doe', 'jdoe', now=1700000000).data

        assert first.serial_number != second.serial_number
        assert first.serial_number.startswith('user-42-1700000000-')

    def test_barcode_hook_rewrites_message(self, settings_values, resolver, token_secret, jane):
        hooks = IssuanceHooks(barcode_message=lambda url, user_id, member_id: f"MEMBER:{member_id}")
        generator = _generator(settings_values, resolver, token_secret, hooks=hooks)

        archive = _unpack(generator.generate(jane, 'Jane Doe', 'jdoe').data.content)

        assert json.loads(archive['pass.json'])['barcode']['message'] == 'MEMBER:jdoe'

    def test_placeholder_hook(self, settings_values, resolver, token_secret, jane):
        hooks = IssuanceHooks(placeholder_text=lambda default: '-')
        generator = _generator(settings_values, resolver, token_secret, hooks=hooks)

        archive = _unpack(generator.generate(jane, 'Jane Doe', 'jdoe').data.content)

        card = json.loads(archive['pass.json'])['generic']
        assert {f['key']: f['value'] for f in card['auxiliaryFields']}['expires'] == '-'


@pytest.mark.unit
class TestArtwork:
    """Test configured logo and background images."""

    def test_configured_logo_is_converted_and_bundled(self, settings_values, resolver, token_secret,
                                                     jane, tmp_path):
        logo = tmp_path / 'logo.jpg'
        Image.new('RGB', (20, 10), (10, 20, 30)).save(logo, format='JPEG')
        values = dict(settings_values, logo_path=str(logo))

        archive = _unpack(_generator(values, resolver, token_secret).generate(jane, 'Jane Doe', 'jdoe').data.content)

        assert images.is_png(archive['logo.png'])
        assert 'logo.png' in json.loads(archive['manifest.json'])

    def test_unreadable_logo_is_skipped(self, settings_values, resolver, token_secret, jane, tmp_path):
        logo = tmp_path / 'logo.png.txt'
        logo.write_bytes(b'not an image')
        values = dict(settings_values, logo_path=str(logo))

        result = _generator(values, resolver, token_secret).generate(jane, 'Jane Doe', 'jdoe')

        assert result.success
        assert 'logo.png' not in _unpack(result.data.content)

    def test_configured_png_background_is_used_verbatim(self, settings_values, resolver, token_secret,
                                                       jane, tmp_path):
        background = tmp_path / 'bg.png'
        Image.new('RGB', (30, 30), (1, 2, 3)).save(background, format='PNG')
        values = dict(settings_values, background_path=str(background))

        archive = _unpack(_generator(values, resolver, token_secret).generate(jane, 'Jane Doe', 'jdoe').data.content)

        assert archive['background.png'] == background.read_bytes()


@pytest.mark.unit
class TestFailures:
    """Test that a broken setup never produces an archive."""

    @pytest.mark.parametrize('field_name', ['team_id', 'pass_type_id', 'org_name', 'p12_path', 'p12_password'])
    def test_missing_setting(self, settings_values, resolver, token_secret, jane, field_name):
        values = dict(settings_values, **{field_name: ''})

        result = _generator(values, resolver, token_secret).generate(jane, 'Jane Doe', 'jdoe')

        assert not result.success
        assert result.data is None
        assert isinstance(result.error, ConfigurationIncomplete)
        assert result.error.field_name == field_name
        assert result.message == f"Apple settings incomplete: {field_name}"

    def test_missing_certificate_file(self, settings_values, resolver, token_secret, jane, tmp_path):
        values = dict(settings_values, p12_path=str(tmp_path / 'missing.p12'))

        result = _generator(values, resolver, token_secret).generate(jane, 'Jane Doe', 'jdoe')

        assert isinstance(result.error, CredentialMissing)
        assert result.data is None

    def test_missing_intermediate_file(self, settings_values, resolver, token_secret, jane, tmp_path):
        values = dict(settings_values, wwdr_pem=str(tmp_path / 'missing.pem'))

        result = _generator(values, resolver, token_secret).generate(jane, 'Jane Doe', 'jdoe')

        assert isinstance(result.error, CredentialMissing)
        assert result.error.field_name == 'wwdr_pem'

    def test_wrong_certificate_password(self, settings_values, resolver, token_secret, jane):
        values = dict(settings_values, p12_password='wrong')

        result = _generator(values, resolver, token_secret).generate(jane, 'Jane Doe', 'jdoe')

        assert isinstance(result.error, SigningFailed)
        assert result.data is None

    def test_malformed_colors_fall_back_to_defaults(self, settings_values, resolver, token_secret, jane):
        """A typo in a colour setting still issues a pass in the default colours."""
        values = dict(settings_values, accent_color='teal-ish', background_color='#00000',
                      label_color='nope')

        result = _generator(values, resolver, token_secret).generate(jane, 'Jane Doe', 'jdoe')

        assert result.success, result.message
        archive = _unpack(result.data.content)
        doc = json.loads(archive['pass.json'])
        assert doc['backgroundColor'] == 'rgb(0,0,0)'
        assert doc['labelColor'] == 'rgb(255,255,255)'
        assert archive['background.png'] == images.synthesize_background(accent_hex='#0D9DDB')


@pytest.mark.unit
class TestValidateAppleConfig:

    def test_complete_configuration(self, settings_values, resolver):
        config = build_issuer_configuration(dict(settings_values, team_id='ABCDE12345'))

        status = validate_apple_config(config, resolver)

        assert status == {'configured': True, 'issues': []}

    def test_reports_every_issue(self, resolver):
        status = validate_apple_config(build_issuer_configuration({'team_id': 'T1'}), resolver)

        assert not status['configured']
        assert 'Apple settings incomplete: pass_type_id' in status['issues']
        assert any('10 characters' in issue for issue in status['issues'])
        assert any('p12_path' in issue for issue in status['issues'])
