# member_wallet/init/extensions.py

"""
Wallet Extension Initialization

Build the host collaborators (settings, files, users, nonces, hooks) and
the PassService, and keep them in app.extensions['member_wallet'].
"""

import logging

from member_wallet.wallet_pass.collaborators import (
    InMemoryUserDirectory, MappingFileStore, SignedNonceService
)
from member_wallet.wallet_pass.hooks import IssuanceHooks
from member_wallet.wallet_pass.services import PassService
from member_wallet.wallet_pass.settings import AppConfigSettingsStore
from member_wallet.wallet_pass.tokens import derive_token_secret

logger = logging.getLogger(__name__)


def init_extensions(app, settings_store=None, file_store=None, user_directory=None,
                    nonce_service=None, hooks=None):
    """
    Initialize the wallet pass engine for the application.

    Any collaborator left as None gets the standalone implementation
    configured from app.config.

    Args:
        app: The Flask application instance.

    Returns:
        PassService: The service registered on the app.
    """
    secret_key = app.config['SECRET_KEY']

    if settings_store is None:
        settings_store = AppConfigSettingsStore(app.config)
    if file_store is None:
        file_store = MappingFileStore(
            app.config.get('MWP_ATTACHMENTS'),
            base_dir=app.config.get('MWP_ATTACHMENTS_DIR')
        )
    if user_directory is None:
        user_directory = InMemoryUserDirectory.from_config(app.config.get('MWP_USERS'))
    if nonce_service is None:
        nonce_service = SignedNonceService(
            secret_key, max_age=app.config.get('MWP_NONCE_MAX_AGE', 86400)
        )
    hooks = hooks or IssuanceHooks()

    pass_service = PassService(
        settings_store=settings_store,
        user_directory=user_directory,
        nonce_service=nonce_service,
        token_secret=derive_token_secret(secret_key),
        file_store=file_store,
        hooks=hooks,
    )

    app.extensions['member_wallet'] = {
        'settings_store': settings_store,
        'file_store': file_store,
        'user_directory': user_directory,
        'nonce_service': nonce_service,
        'hooks': hooks,
        'pass_service': pass_service,
    }

    logger.debug(f"Wallet pass engine initialized ({type(user_directory).__name__})")
    return pass_service
