"""Access control: whitelist of sender usernames"""
import logging
from typing import Iterable, Optional

from core.errors import Unauthorized

logger = logging.getLogger(__name__)


class AccessManager:
    """Authorizes senders against an immutable whitelist.

    An empty whitelist authorizes everyone. Otherwise only exact username
    matches pass.
    """

    def __init__(self, whitelist: Iterable[str] = ()):
        self._whitelist = frozenset(whitelist)

    @property
    def is_open(self) -> bool:
        return not self._whitelist

    def is_authorized(self, username: Optional[str]) -> bool:
        if self.is_open:
            return True
        return bool(username) and username in self._whitelist

    def ensure_authorized(self, username: Optional[str]) -> None:
        """Raises Unauthorized for senders outside the whitelist"""
        if not self.is_authorized(username):
            logger.warning(f"Unauthorized access attempt by @{username or '<no username>'}")
            raise Unauthorized(f"user {username!r} is not whitelisted")
