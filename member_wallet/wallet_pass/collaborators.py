# member_wallet/wallet_pass/collaborators.py

"""
Host Collaborators

Interfaces for the things the wallet pass engine needs from its host:
uploaded-file lookup, user profile lookup, and member-scoped nonces.
Each comes with a small in-process implementation so the application
runs standalone.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Mapping, Optional

from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from .models import MemberIdentity

logger = logging.getLogger(__name__)

# WordPress-style nonce lifetime: one day
DEFAULT_NONCE_MAX_AGE = 24 * 60 * 60


class FileStore(ABC):
    """Maps an uploaded-file identifier to a path on disk."""

    @abstractmethod
    def get_attached_file(self, attachment_id: int) -> Optional[str]:
        """Return the file path for an attachment, or None if unknown."""


class MappingFileStore(FileStore):
    """
    File store backed by a mapping of attachment id to path.

    Relative paths are resolved against ``base_dir`` when one is given.
    """

    def __init__(self, files: Optional[Mapping] = None, base_dir: Optional[str] = None):
        self.base_dir = base_dir
        self._files = {}
        for key, path in (files or {}).items():
            try:
                self._files[int(key)] = path
            except (TypeError, ValueError):
                logger.warning(f"Ignoring attachment with non-numeric id: {key!r}")

    def get_attached_file(self, attachment_id):
        path = self._files.get(attachment_id)
        if not path:
            return None
        if self.base_dir and not os.path.isabs(path):
            path = os.path.join(self.base_dir, path)
        return path


class UserDirectory(ABC):
    """User profile lookup supplied by the host."""

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[MemberIdentity]:
        """Return the member identity for a user id, or None."""


class InMemoryUserDirectory(UserDirectory):
    def __init__(self, members: Optional[Iterable[MemberIdentity]] = None):
        self._members: Dict[int, MemberIdentity] = {}
        for member in members or ():
            self.add(member)

    def add(self, member: MemberIdentity) -> None:
        self._members[member.internal_id] = member

    def get_user(self, user_id):
        return self._members.get(user_id)

    @classmethod
    def from_config(cls, records: Optional[Iterable[Mapping]]) -> 'InMemoryUserDirectory':
        """
        Build a directory from plain dict records, e.g. the MWP_USERS config.

        Each record needs ``id``, ``display_name`` and ``login``; an optional
        ``attributes`` mapping holds the profile fields.
        """
        directory = cls()
        for record in records or ():
            directory.add(MemberIdentity(
                internal_id=int(record['id']),
                display_name=record.get('display_name', ''),
                login_handle=record.get('login', ''),
                attributes=record.get('attributes') or {}
            ))
        return directory


class NonceService(ABC):
    """Issues and checks nonces that tie a wallet link to one member."""

    @abstractmethod
    def create(self, user_id: int) -> str:
        """Return a fresh nonce for the given member."""

    @abstractmethod
    def verify(self, nonce: str, user_id: int) -> bool:
        """True if the nonce was issued for this member and is still fresh."""


class SignedNonceService(NonceService):
    """
    Nonces as timestamped signatures over the action ``mwp_{user_id}``.

    Nothing is stored; a nonce stays valid for ``max_age`` seconds.
    """

    salt = 'member-wallet-nonce'

    def __init__(self, secret_key: str, max_age: int = DEFAULT_NONCE_MAX_AGE):
        if not secret_key:
            raise ValueError("A secret key is required to sign nonces")
        self.max_age = max_age
        self._serializer = URLSafeTimedSerializer(secret_key, salt=self.salt)

    @staticmethod
    def _action(user_id: int) -> str:
        return f"mwp_{user_id}"

    def create(self, user_id):
        return self._serializer.dumps(self._action(user_id))

    def verify(self, nonce, user_id):
        if not nonce:
            return False
        try:
            action = self._serializer.loads(nonce, max_age=self.max_age)
        except SignatureExpired:
            logger.info(f"Expired wallet nonce for user {user_id}")
            return False
        except BadSignature:
            logger.warning(f"Bad wallet nonce for user {user_id}")
            return False
        return action == self._action(user_id)
