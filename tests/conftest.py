"""
Pytest configuration and shared fixtures for all tests.
"""
import json
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from member_wallet import create_app
from member_wallet.wallet_pass.collaborators import (
    InMemoryUserDirectory, MappingFileStore, SignedNonceService
)
from member_wallet.wallet_pass.credentials import CredentialResolver
from member_wallet.wallet_pass.hooks import IssuanceHooks
from member_wallet.wallet_pass.models import MemberIdentity
from member_wallet.wallet_pass.settings import DictSettingsStore
from member_wallet.wallet_pass.tokens import derive_token_secret

TEST_SECRET_KEY = 'test-secret-key'
P12_PASSWORD = 'secret'


def _self_signed_cert(key, common_name, ca=False):
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=365))
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )


# =============================================================================
# KEYS AND CERTIFICATES
# =============================================================================

@pytest.fixture(scope='session')
def signing_key():
    """RSA key of the pass signing certificate."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope='session')
def signing_cert(signing_key):
    """Self-signed stand-in for the Pass Type ID certificate."""
    return _self_signed_cert(signing_key, 'Pass Type ID: pass.acme')


@pytest.fixture(scope='session')
def intermediate_cert():
    """Self-signed stand-in for the Apple WWDR certificate."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return _self_signed_cert(key, 'Test WWDR', ca=True)


@pytest.fixture(scope='session')
def service_account_key():
    """RSA key of the Google service account."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def credentials_dir(tmp_path, signing_key, signing_cert, intermediate_cert, service_account_key):
    """Directory holding signer.p12, wwdr.pem and service-account.json."""
    p12 = pkcs12.serialize_key_and_certificates(
        b'signer',
        signing_key,
        signing_cert,
        None,
        serialization.BestAvailableEncryption(P12_PASSWORD.encode())
    )
    (tmp_path / 'signer.p12').write_bytes(p12)
    (tmp_path / 'wwdr.pem').write_bytes(intermediate_cert.public_bytes(serialization.Encoding.PEM))

    private_pem = service_account_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption()
    ).decode()
    (tmp_path / 'service-account.json').write_text(json.dumps({
        'type': 'service_account',
        'client_email': 'wallet@acme-project.iam.gserviceaccount.com',
        'private_key': private_pem,
    }))
    return tmp_path


# =============================================================================
# SETTINGS AND COLLABORATORS
# =============================================================================

@pytest.fixture
def settings_values(credentials_dir):
    """Complete issuer settings for both platforms."""
    return {
        'team_id': 'T1',
        'pass_type_id': 'pass.acme',
        'org_name': 'Acme',
        'p12_path': str(credentials_dir / 'signer.p12'),
        'p12_password': P12_PASSWORD,
        'wwdr_pem': str(credentials_dir / 'wwdr.pem'),
        'issuer_id': '3388000000012345',
        'sa_json_path': str(credentials_dir / 'service-account.json'),
        'site_url': 'https://members.example.org/',
        'site_name': 'Acme Members',
    }


@pytest.fixture
def settings_store(settings_values):
    return DictSettingsStore(settings_values)


@pytest.fixture
def issuer_config(settings_store):
    return settings_store.load_issuer_configuration()


@pytest.fixture
def jane():
    return MemberIdentity(
        internal_id=42,
        display_name='Jane Doe',
        login_handle='jdoe',
        attributes={'first_name': 'Jane', 'last_name': 'Doe'}
    )


@pytest.fixture
def sam():
    return MemberIdentity(
        internal_id=7,
        display_name='Sam Seven',
        login_handle='sam7',
        attributes={'first_name': 'Sam', 'member_number': 'M-7', 'expiry_date': '2026-12-31'}
    )


@pytest.fixture
def user_directory(jane, sam):
    return InMemoryUserDirectory([jane, sam])


@pytest.fixture
def hooks():
    """Hooks that show the membership number as member id, like a typical host."""
    return IssuanceHooks(
        member_name=lambda default, identity: default.upper() if identity.internal_id == 7 else default,
        member_id=lambda default, identity: identity.attributes.get('member_number') or default,
    )


@pytest.fixture
def nonce_service():
    return SignedNonceService(TEST_SECRET_KEY)


@pytest.fixture
def token_secret():
    return derive_token_secret(TEST_SECRET_KEY)


@pytest.fixture
def resolver():
    return CredentialResolver(MappingFileStore())


# =============================================================================
# APPLICATION
# =============================================================================

@pytest.fixture
def app(settings_store, user_directory, nonce_service, hooks):
    """Create application for testing."""
    app = create_app(
        'member_wallet.web_config.TestingConfig',
        settings_store=settings_store,
        user_directory=user_directory,
        nonce_service=nonce_service,
        hooks=hooks,
    )

    ctx = app.app_context()
    ctx.push()

    yield app

    ctx.pop()


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create Flask CLI runner."""
    return app.test_cli_runner()


@pytest.fixture
def pass_service(app):
    return app.extensions['member_wallet']['pass_service']
