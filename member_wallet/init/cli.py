# member_wallet/init/cli.py

"""
CLI Commands Registration

Register CLI commands for Flask application management.
"""

import logging

logger = logging.getLogger(__name__)


def init_cli_commands(app):
    """
    Register CLI commands with the Flask application.

    Args:
        app: The Flask application instance.
    """
    # Register wallet CLI commands
    from member_wallet.wallet_pass.cli import wallet as wallet_cli
    app.cli.add_command(wallet_cli)
