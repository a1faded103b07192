# member_wallet/init/__init__.py

"""
Application Initialization Package

This package contains modular initialization functions for the Flask application.
Each module handles a specific aspect of application setup.
"""

from member_wallet.init.logging import init_logging
from member_wallet.init.extensions import init_extensions
from member_wallet.init.cli import init_cli_commands
from member_wallet.init.blueprints import init_blueprints
from member_wallet.init.context_processors import init_context_processors
from member_wallet.init.error_handlers import install_error_handlers

__all__ = [
    'init_logging',
    'init_extensions',
    'init_cli_commands',
    'init_blueprints',
    'init_context_processors',
    'install_error_handlers',
]
