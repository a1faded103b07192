# member_wallet/wallet_pass/hooks.py

"""
Issuance Hooks

Extension points a host can override to change what ends up on a pass.
Subclass IssuanceHooks (or pass callables to it) and hand the instance to
create_app(); every method receives the default value and returns the one
to use.

Example:
    class MembershipNumberHooks(IssuanceHooks):
        def member_id(self, default, identity):
            return identity.attributes.get('member_number') or str(identity.internal_id)
"""

from typing import Callable, Optional

from .models import MemberIdentity


class IssuanceHooks:
    """Default hooks: every value passes through unchanged."""

    def __init__(
        self,
        member_name: Optional[Callable[[str, MemberIdentity], str]] = None,
        member_id: Optional[Callable[[str, MemberIdentity], str]] = None,
        barcode_message: Optional[Callable[[str, int, str], str]] = None,
        placeholder_text: Optional[Callable[[str], str]] = None,
    ):
        self._member_name = member_name
        self._member_id = member_id
        self._barcode_message = barcode_message
        self._placeholder_text = placeholder_text

    def member_name(self, default: str, identity: MemberIdentity) -> str:
        """Display name shown on the pass. Defaults to the profile display name."""
        if self._member_name:
            return str(self._member_name(default, identity))
        return default

    def member_id(self, default: str, identity: MemberIdentity) -> str:
        """Member id shown on the pass and signed into the token. Defaults to the login."""
        if self._member_id:
            return str(self._member_id(default, identity))
        return default

    def barcode_message(self, default_url: str, user_id: int, member_id: str) -> str:
        """Payload encoded in the QR code. Defaults to the verification URL."""
        if self._barcode_message:
            return str(self._barcode_message(default_url, user_id, member_id))
        return default_url

    def placeholder_text(self, default: str) -> str:
        """Text shown in place of an empty profile attribute."""
        if self._placeholder_text:
            return str(self._placeholder_text(default))
        return default
