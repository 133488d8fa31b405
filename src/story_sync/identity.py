"""Identity provider: who is acting, for ownership and author-name snapshots."""

from typing import NamedTuple, Protocol

from .utils import ANONYMOUS_AUTHOR, ANONYMOUS_USER_ID


class Identity(NamedTuple):
    user_id: str
    display_name: str


ANONYMOUS = Identity(ANONYMOUS_USER_ID, ANONYMOUS_AUTHOR)


class IdentityProvider(Protocol):
    def current_user(self) -> Identity:
        ...


class StaticIdentity:
    """Identity fixed at construction (CLI sessions, tests)."""

    def __init__(self, user_id: str = ANONYMOUS_USER_ID, display_name: str = ANONYMOUS_AUTHOR):
        self.identity = Identity(user_id or ANONYMOUS_USER_ID, display_name or ANONYMOUS_AUTHOR)

    def current_user(self) -> Identity:
        return self.identity

    def switch(self, user_id: str, display_name: str) -> None:
        self.identity = Identity(user_id, display_name)
