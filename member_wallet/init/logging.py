# member_wallet/init/logging.py

"""
Logging Configuration

Rotating wallet and error logs under LOG_DIR in production; console only
while testing so test runs never touch the filesystem.
"""

import logging
import logging.config
import os

from member_wallet.log_config.logging_config import build_logging_config

# Libraries that log every request or decoded image at INFO
NOISY_LOGGERS = ('werkzeug', 'PIL', 'urllib3')


def _init_test_logging(app):
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(asctime)s [%(levelname)s] %(name)s - %(message)s'))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(logging.WARNING)
    app.logger.handlers = [handler]


def init_logging(app):
    """
    Initialize logging for the Flask application.

    Args:
        app: The Flask application instance.
    """
    if app.config.get('TESTING'):
        _init_test_logging(app)
        return

    log_dir = app.config.get('LOG_DIR') or 'logs'
    os.makedirs(log_dir, exist_ok=True)
    logging.config.dictConfig(build_logging_config(log_dir))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if app.debug:
        logging.getLogger('member_wallet.wallet_pass').setLevel(logging.DEBUG)
    app.logger.info(f"Logging to {os.path.abspath(log_dir)}")
