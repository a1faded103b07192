# member_wallet/init/blueprints.py

"""
Blueprint Registration

Register the wallet blueprints.
"""

import logging

logger = logging.getLogger(__name__)


def init_blueprints(app):
    """
    Register blueprints with the Flask application.

    Args:
        app: The Flask application instance.
    """
    _register_wallet_blueprints(app)


def _register_wallet_blueprints(app):
    """Register wallet pass blueprints."""
    from member_wallet.wallet_pass.routes import public_wallet_bp, validation_bp

    app.register_blueprint(public_wallet_bp)
    app.register_blueprint(validation_bp)
    logger.debug("Wallet blueprints registered")
