"""Identity resolver - handle -> (numeric id, avatar) in two sequential lookups."""

import logging
from dataclasses import dataclass

from .exceptions import IdentityLookupError
from .models import Identity, ResolveStatus
from .ports import IdentityDirectory

logger = logging.getLogger(__name__)


@dataclass
class IdentityResolver:
    """
    Resolves a public handle to an Identity.

    NOT_FOUND means the account does not exist; LOOKUP_FAILED means the
    directory could not answer and the user should simply try again.
    Nothing is cached - the handle may be corrected between attempts.
    """

    directory: IdentityDirectory

    def resolve(self, handle: str) -> Identity | ResolveStatus:
        try:
            user = self.directory.find_user(handle)
        except IdentityLookupError as e:
            logger.warning("User lookup failed for handle %r: %s", handle, e)
            return ResolveStatus.LOOKUP_FAILED

        if user is None:
            return ResolveStatus.NOT_FOUND

        try:
            avatar_url = self.directory.find_avatar_url(user.numeric_id)
        except IdentityLookupError as e:
            logger.warning("Avatar lookup failed for user %s: %s", user.numeric_id, e)
            return ResolveStatus.LOOKUP_FAILED

        if not avatar_url:
            # Thumbnail not rendered yet; a later attempt usually succeeds
            logger.info("No avatar available yet for user %s", user.numeric_id)
            return ResolveStatus.LOOKUP_FAILED

        return Identity(
            numeric_id=user.numeric_id,
            avatar_ref=avatar_url,
            display_name=user.display_name,
        )
