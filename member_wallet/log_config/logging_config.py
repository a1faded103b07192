# member_wallet/log_config/logging_config.py

"""
Logging configuration for the application.

This configuration is used to initialize Python's logging module with a
dictionary-based setup. Wallet issuance gets its own rotating log so
signing and configuration failures are easy to find.

Uses RotatingFileHandler to automatically manage log file sizes and prevent
unlimited growth.
"""

import copy
import os

LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,

    # Formatters define the layout of the log messages.
    'formatters': {
        'detailed': {
            'format': '%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s'
        },
        'simple': {
            'format': '%(asctime)s [%(levelname)s] %(message)s'
        }
    },

    # Handlers specify where log messages are sent (e.g., console, files).
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
            'level': 'INFO',
        },
        'wallet_file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': 'wallet.log',
            'formatter': 'detailed',
            'level': 'INFO',
            'maxBytes': 10485760,   # 10MB
            'backupCount': 3,
            'encoding': 'utf-8'
        },
        'errors_file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': 'errors.log',
            'formatter': 'detailed',
            'level': 'WARNING',
            'maxBytes': 26214400,   # 25MB
            'backupCount': 3,
            'encoding': 'utf-8'
        }
    },

    # Loggers define logging behavior for specific modules or components.
    'loggers': {
        'member_wallet.wallet_pass': {
            'handlers': ['console', 'wallet_file', 'errors_file'],
            'level': 'INFO',
            'propagate': False
        },
        'werkzeug': {
            'handlers': ['console'],
            'level': 'WARNING',
            'propagate': False
        },
        'PIL': {
            'handlers': ['console'],
            'level': 'WARNING',
            'propagate': False
        }
    },

    'root': {
        'handlers': ['console', 'errors_file'],
        'level': 'INFO'
    }
}


def build_logging_config(log_dir: str = 'logs') -> dict:
    """Return LOGGING_CONFIG with every file handler placed under ``log_dir``."""
    config = copy.deepcopy(LOGGING_CONFIG)
    for handler in config['handlers'].values():
        if 'filename' in handler:
            handler['filename'] = os.path.join(log_dir, handler['filename'])
    return config
