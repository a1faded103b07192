"""
Web Configuration Module

This module defines the configuration settings for the Flask application,
including the wallet issuer settings and the credential file locations.
Values are loaded primarily from environment variables (and a .env file
when one is present).
"""

import json
import os

from dotenv import load_dotenv

load_dotenv(override=False)


def _load_json_file(path, default):
    """Load an optional JSON file named by an environment variable."""
    if not path:
        return default
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


class Config:
    """Application configuration settings."""
    # Basic Flask/App Configuration
    SECRET_KEY = os.getenv('SECRET_KEY')
    PREFERRED_URL_SCHEME = 'https'
    LOG_DIR = os.getenv('MWP_LOG_DIR', 'logs')

    # Wallet nonces (links from the member profile page)
    MWP_NONCE_MAX_AGE = int(os.getenv('MWP_NONCE_MAX_AGE', 86400))

    # Apple Wallet
    MWP_TEAM_ID = os.getenv('MWP_TEAM_ID', '')
    MWP_PASS_TYPE_ID = os.getenv('MWP_PASS_TYPE_ID', '')
    MWP_ORG_NAME = os.getenv('MWP_ORG_NAME', '')
    MWP_DESCRIPTION = os.getenv('MWP_DESCRIPTION', 'Member Card')
    MWP_P12_ATTACHMENT_ID = os.getenv('MWP_P12_ATTACHMENT_ID', '')
    MWP_P12_PATH = os.getenv('MWP_P12_PATH', '')
    MWP_P12_PASSWORD = os.getenv('MWP_P12_PASSWORD', '')
    MWP_WWDR_ATTACHMENT_ID = os.getenv('MWP_WWDR_ATTACHMENT_ID', '')
    MWP_WWDR_PEM = os.getenv('MWP_WWDR_PEM', '')

    # Google Wallet
    MWP_ISSUER_ID = os.getenv('MWP_ISSUER_ID', '')
    MWP_CLASS_ID = os.getenv('MWP_CLASS_ID', '')
    MWP_SA_JSON_ATTACHMENT_ID = os.getenv('MWP_SA_JSON_ATTACHMENT_ID', '')
    MWP_SA_JSON_PATH = os.getenv('MWP_SA_JSON_PATH', '')

    # Artwork and colors
    MWP_LOGO_ATTACHMENT_ID = os.getenv('MWP_LOGO_ATTACHMENT_ID', '')
    MWP_LOGO_PATH = os.getenv('MWP_LOGO_PATH', '')
    MWP_BACKGROUND_ATTACHMENT_ID = os.getenv('MWP_BACKGROUND_ATTACHMENT_ID', '')
    MWP_BACKGROUND_PATH = os.getenv('MWP_BACKGROUND_PATH', '')
    MWP_BACKGROUND_COLOR = os.getenv('MWP_BACKGROUND_COLOR', '#000000')
    MWP_FOREGROUND_COLOR = os.getenv('MWP_FOREGROUND_COLOR', '#FFFFFF')
    MWP_LABEL_COLOR = os.getenv('MWP_LABEL_COLOR', '#FFFFFF')
    MWP_ACCENT_COLOR = os.getenv('MWP_ACCENT_COLOR', '#0D9DDB')
    MWP_PLACEHOLDER_TEXT = os.getenv('MWP_PLACEHOLDER_TEXT', 'N/A')

    # Site
    MWP_SITE_URL = os.getenv('MWP_SITE_URL', '')
    MWP_SITE_NAME = os.getenv('MWP_SITE_NAME', '')
    MWP_SITE_ICON_URL = os.getenv('MWP_SITE_ICON_URL', '')

    # Standalone collaborators: members and uploaded files as JSON files
    MWP_USERS = _load_json_file(os.getenv('MWP_USERS_FILE'), [])
    MWP_ATTACHMENTS = _load_json_file(os.getenv('MWP_ATTACHMENTS_FILE'), {})
    MWP_ATTACHMENTS_DIR = os.getenv('MWP_ATTACHMENTS_DIR')


class TestingConfig(Config):
    """Testing configuration settings."""
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    PREFERRED_URL_SCHEME = 'http'

    MWP_SITE_URL = 'https://members.example.org'
    MWP_SITE_NAME = 'Example Members'
    MWP_USERS = []
    MWP_ATTACHMENTS = {}
