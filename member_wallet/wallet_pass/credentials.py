# member_wallet/wallet_pass/credentials.py

"""
Credential Resolver

Turns a CredentialRef from the settings into file bytes. The uploaded-file
id is tried first, then the direct path. Nothing is cached: certificates
and keys are re-read for every issuance so rotated files are picked up.
"""

import logging
import os
from typing import Optional

from .collaborators import FileStore
from .errors import ServiceResult, CredentialMissing
from .models import CredentialRef

logger = logging.getLogger(__name__)


class CredentialResolver:
    """Resolves credential and image references through the host file store."""

    def __init__(self, file_store: Optional[FileStore] = None):
        self.file_store = file_store

    def _path_from_attachment(self, attachment_id) -> Optional[str]:
        if not attachment_id or self.file_store is None:
            return None
        try:
            path = self.file_store.get_attached_file(attachment_id)
        except Exception as e:
            logger.warning(f"File store lookup failed for attachment {attachment_id}: {e}")
            return None
        if path and os.path.isfile(path):
            return path
        logger.debug(f"Attachment {attachment_id} has no file on disk ({path})")
        return None

    def resolve_path(self, ref: CredentialRef, field_name: str) -> ServiceResult[str]:
        """Return the first existing path for the reference."""
        path = self._path_from_attachment(ref.attachment_id)
        if path:
            return ServiceResult.ok(path)

        if ref.path and os.path.isfile(ref.path):
            return ServiceResult.ok(ref.path)

        if ref.is_set:
            logger.warning(f"Configured {field_name} could not be found")
        return ServiceResult.fail_with(CredentialMissing(field_name))

    def resolve(self, ref: CredentialRef, field_name: str) -> ServiceResult[bytes]:
        """Return the bytes of the first existing file for the reference."""
        result = self.resolve_path(ref, field_name)
        if not result.success:
            return ServiceResult.fail_with(result.error)

        try:
            with open(result.data, 'rb') as f:
                return ServiceResult.ok(f.read())
        except OSError as e:
            logger.error(f"Could not read {field_name} from {result.data}: {e}")
            return ServiceResult.fail_with(CredentialMissing(field_name))
