# member_wallet/init/context_processors.py

"""
Context Processors

Template helpers for host pages, such as the member profile page that
shows the add-to-wallet buttons.
"""

import logging

from flask import current_app, has_request_context, render_template, request
from markupsafe import Markup

logger = logging.getLogger(__name__)


def wallet_buttons(user_id):
    """
    Render the "Add to Apple Wallet" / "Add to Google Wallet" buttons.

    Each call mints a fresh nonce for the member.
    """
    if not user_id:
        return Markup('')

    base_url = request.url_root if has_request_context() else None
    links = current_app.extensions['member_wallet']['pass_service'].wallet_links(
        int(user_id), base_url=base_url
    )
    return Markup(render_template('wallet/buttons.html', links=links))


def init_context_processors(app):
    """
    Register context processors with the Flask application.

    Args:
        app: The Flask application instance.
    """
    _register_wallet_processor(app)


def _register_wallet_processor(app):
    """Register the wallet buttons helper."""

    @app.context_processor
    def wallet_processor():
        return {'wallet_buttons': wallet_buttons}
