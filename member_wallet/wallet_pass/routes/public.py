# member_wallet/wallet_pass/routes/public.py

"""
Public Wallet Pass Routes

Endpoints members hit from their wallet buttons, and the page a scanned
pass QR code opens. No login required: downloads are protected by the
member-scoped nonce, the verification page by the signed token.
"""

import logging
from io import BytesIO

from flask import Blueprint, request, render_template, redirect, make_response, send_file, current_app

from ..errors import InvalidRequest, UnsupportedPlatform
from ..services.pass_service import status_for

logger = logging.getLogger(__name__)

public_wallet_bp = Blueprint('public_wallet', __name__, url_prefix='/wallet')

ERROR_TITLES = {
    400: 'Bad request',
    403: 'Access denied',
    404: 'Not found',
    500: 'Pass unavailable',
}


def _pass_service():
    return current_app.extensions['member_wallet']['pass_service']


def _user_id(value) -> int:
    try:
        return abs(int(value))
    except (TypeError, ValueError):
        return 0


def _error_page(error):
    status = status_for(error)
    return render_template(
        'wallet/download_error.html',
        error=ERROR_TITLES.get(status, 'Error'),
        message=error.message if error else 'Unexpected error'
    ), status


def _issue(platform: str, user_id: int, nonce):
    if not user_id:
        return _error_page(InvalidRequest('mwp_user'))

    try:
        result = _pass_service().issue(platform, user_id, nonce, base_url=request.url_root)
    except Exception as e:
        logger.exception(f"Unexpected error issuing {platform} pass for user {user_id}: {e}")
        return render_template(
            'wallet/download_error.html',
            error='Generation failed',
            message='Unable to generate your wallet pass. Please try again later.'
        ), 500

    if not result.success:
        return _error_page(result.error)

    issued = result.data
    if issued.platform == 'google':
        return redirect(issued.redirect_url, code=302)

    response = make_response(send_file(
        BytesIO(issued.content),
        mimetype=issued.mimetype,
        as_attachment=True,
        download_name=issued.filename
    ))

    # Wallet on iOS is picky about these
    response.headers['Content-Type'] = issued.mimetype
    response.headers['Content-Disposition'] = f'attachment; filename="{issued.filename}"'
    response.headers['Cache-Control'] = 'no-store, no-cache, must-revalidate, max-age=0'
    response.headers['Pragma'] = 'no-cache'
    response.headers['Expires'] = '0'
    return response


def _verify(token):
    result = _pass_service().verify(token)
    if not result.success:
        return _error_page(result.error)
    return render_template('wallet/verify.html', member=result.data)


@public_wallet_bp.route('/')
def dispatch():
    """
    Single entry point, selected by the mwp_action parameter.

    URL: /wallet/?mwp_action=apple&mwp_user=42&mwp_nonce=...
         /wallet/?mwp_action=verify&token=...
    """
    action = request.args.get('mwp_action', '').strip().lower()

    if action == 'verify':
        return _verify(request.args.get('token'))

    if action in ('apple', 'google'):
        return _issue(action, _user_id(request.args.get('mwp_user')), request.args.get('mwp_nonce'))

    return _error_page(UnsupportedPlatform(action))


@public_wallet_bp.route('/apple/<int:user_id>')
def apple_pass(user_id: int):
    """Download the Apple Wallet pass: /wallet/apple/42?mwp_nonce=..."""
    return _issue('apple', user_id, request.args.get('mwp_nonce'))


@public_wallet_bp.route('/google/<int:user_id>')
def google_pass(user_id: int):
    """Redirect to Google Wallet: /wallet/google/42?mwp_nonce=..."""
    return _issue('google', user_id, request.args.get('mwp_nonce'))


@public_wallet_bp.route('/verify')
def verify():
    """Verification page opened by a scanned pass QR code."""
    return _verify(request.args.get('token'))
