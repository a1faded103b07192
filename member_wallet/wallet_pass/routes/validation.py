# member_wallet/wallet_pass/routes/validation.py

"""
Wallet Pass Validation API

JSON endpoint for scanner apps that read the pass QR code and only need
a yes/no answer plus the member details.
"""

import logging
from flask import Blueprint, jsonify, current_app

from ..services.pass_service import status_for

logger = logging.getLogger(__name__)

validation_bp = Blueprint('wallet_validation', __name__, url_prefix='/api/v1/wallet')


@validation_bp.route('/validate/<token>', methods=['GET'])
def quick_validate(token: str):
    """
    Quick validation endpoint for scanned verification tokens.

    GET /api/v1/wallet/validate/eyJhbGciOi...

    Returns basic validity info. Nothing is recorded.
    """
    result = current_app.extensions['member_wallet']['pass_service'].verify(token)

    if not result.success:
        return jsonify({
            'valid': False,
            'error': result.message,
            'error_code': result.error_code
        }), status_for(result.error)

    return jsonify(result.data.to_dict())
