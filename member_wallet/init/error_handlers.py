# member_wallet/init/error_handlers.py

"""
Error Handlers

HTTP error handlers and exception handling.
Provides secure error responses that don't leak sensitive information.
"""

import logging

from flask import request, render_template, jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)

# Safe error messages for production (don't leak internal details)
SAFE_ERROR_MESSAGES = {
    400: 'Bad Request',
    403: 'Forbidden',
    404: 'Not Found',
    405: 'Method Not Allowed',
    429: 'Too Many Requests',
    500: 'Internal Server Error',
    503: 'Service Unavailable',
}


def _is_api_request():
    """Check if the current request expects a JSON response."""
    return (
        request.path.startswith('/api/') or
        request.headers.get('Accept', '').startswith('application/json')
    )


def _get_safe_error_message(status_code, default='An error occurred'):
    """Get a safe error message that doesn't expose internal details."""
    return SAFE_ERROR_MESSAGES.get(status_code, default)


def _error_response(status_code, message=None):
    if _is_api_request():
        return jsonify({
            'success': False,
            'error': _get_safe_error_message(status_code),
            'status_code': status_code
        }), status_code

    return render_template(
        'wallet/download_error.html',
        error=_get_safe_error_message(status_code),
        message=message
    ), status_code


def install_error_handlers(app):
    """
    Install custom error handlers with the Flask application.

    Args:
        app: The Flask application instance.
    """

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 not found errors."""
        logger.warning(f"404 error: {request.path}")
        return _error_response(404, 'The page you requested does not exist.')

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        """Handle unexpected exceptions with secure error messages."""
        if isinstance(error, HTTPException):
            return _error_response(error.code)

        # Log the full error internally (not exposed to user)
        app.logger.error(f"Unhandled Exception: {error}", exc_info=True)
        return _error_response(500, 'Something went wrong. Please try again later.')
