# member_wallet/__init__.py

"""
Member Wallet

Flask application that issues Apple Wallet and Google Wallet member
passes and verifies the QR codes printed on them.
"""

import logging

from flask import Flask

logger = logging.getLogger(__name__)


def create_app(config_object='member_wallet.web_config.Config', settings_store=None,
               file_store=None, user_directory=None, nonce_service=None, hooks=None):
    """
    Application factory function for creating a Flask app instance.

    Loads configuration from the specified config object, sets up logging,
    builds the wallet pass engine from the given collaborators (or the
    standalone ones configured from app.config), and registers blueprints,
    CLI commands, context processors and error handlers.

    Args:
        config_object: The configuration object to load (default is
            'member_wallet.web_config.Config').
        settings_store: Issuer settings provider (SettingsStore).
        file_store: Uploaded-file lookup (FileStore).
        user_directory: Member profile lookup (UserDirectory).
        nonce_service: Member-scoped nonces (NonceService).
        hooks: Issuance hooks (IssuanceHooks).

    Returns:
        A configured Flask application instance.
    """
    app = Flask(__name__)
    app.config.from_object(config_object)

    # SECRET_KEY is mandatory
    if not app.config.get('SECRET_KEY'):
        raise RuntimeError('SECRET_KEY must be set')

    from member_wallet.init import (
        init_logging,
        init_extensions,
        init_cli_commands,
        init_blueprints,
        init_context_processors,
        install_error_handlers,
    )

    # Phase 1: Core setup
    init_logging(app)

    # Phase 2: Wallet pass engine
    init_extensions(
        app,
        settings_store=settings_store,
        file_store=file_store,
        user_directory=user_directory,
        nonce_service=nonce_service,
        hooks=hooks,
    )

    # Phase 3: Blueprints, commands and templates
    init_blueprints(app)
    init_cli_commands(app)
    init_context_processors(app)

    # Phase 4: Error handling
    install_error_handlers(app)

    logger.info("Member wallet application created")
    return app
