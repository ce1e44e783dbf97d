"""Own-registration pointer kept per browser.

The pointer is only a hint: the registration collection stays the source
of truth. A stale or cleared pointer just makes the browser look like a
new registrant again.
"""
import logging
from typing import Iterable, MutableMapping, Optional

from src.models.registration import Registration

logger = logging.getLogger(__name__)

STATE_KEY = "own_registration_id"
QUERY_PARAM = "rid"


class IdentityCache:
    """
    Remembers which registration this browser owns.

    Args:
        state: Per-browser session mapping (st.session_state in the app)
        query_params: Optional URL query mapping (st.query_params) mirroring
                      the pointer so a bookmarked link restores it
    """

    def __init__(
        self,
        state: MutableMapping,
        query_params: Optional[MutableMapping] = None,
    ):
        self.state = state
        self.query_params = query_params

    def get(self) -> Optional[str]:
        registration_id = self.state.get(STATE_KEY)
        if not registration_id and self.query_params is not None:
            registration_id = self.query_params.get(QUERY_PARAM)
            if registration_id:
                self.state[STATE_KEY] = registration_id
        return registration_id or None

    def remember(self, registration_id: str) -> None:
        self.state[STATE_KEY] = registration_id
        if self.query_params is not None:
            self.query_params[QUERY_PARAM] = registration_id

    def forget(self) -> None:
        self.state.pop(STATE_KEY, None)
        if self.query_params is not None and QUERY_PARAM in self.query_params:
            del self.query_params[QUERY_PARAM]

    def resolve(self, registrations: Iterable[Registration]) -> Optional[Registration]:
        """
        Look up the owned registration by id in a freshly fetched collection.

        Returns:
            The matching Registration, or None. A pointer to an id that no
            longer exists is forgotten.
        """
        registration_id = self.get()
        if not registration_id:
            return None

        for registration in registrations:
            if registration.id == registration_id:
                return registration

        logger.info("Own-registration pointer %s no longer exists, forgetting it", registration_id)
        self.forget()
        return None
