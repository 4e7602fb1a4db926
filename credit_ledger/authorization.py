"""
authorization.py - Writer allow-list for the score accumulator

The AuthorizationPolicy is a capability object: it is created once, handed
to the ScoreAccumulator at construction, and consulted before every mutating
call. There is no module-level authorization state.
"""

from __future__ import annotations
from typing import FrozenSet, Iterable

from .errors import InvalidAddress, Unauthorized


class AuthorizationPolicy:
    """
    Admin-managed allow-list of identities permitted to write credit history.

    Example:
        policy = AuthorizationPolicy(admin="governance", allowed={"lending_pool"})
        policy.require("lending_pool", "record payments")   # ok
        policy.require("mallory", "record payments")        # raises Unauthorized
    """

    def __init__(self, admin: str, allowed: Iterable[str] = ()):
        if not admin or not admin.strip():
            raise InvalidAddress("admin")
        self._admin = admin
        self._allowed = set(allowed)

    @property
    def admin(self) -> str:
        return self._admin

    @property
    def allowed(self) -> FrozenSet[str]:
        return frozenset(self._allowed)

    def is_allowed(self, identity: str) -> bool:
        return identity in self._allowed

    def require(self, identity: str, action: str = "update credit history") -> None:
        """Raise Unauthorized unless identity is on the allow-list."""
        if identity not in self._allowed:
            raise Unauthorized(identity, action)

    def require_admin(self, caller: str, action: str) -> None:
        if caller != self._admin:
            raise Unauthorized(caller, action)

    def grant(self, caller: str, identity: str) -> None:
        """Add identity to the allow-list (admin only)."""
        self.require_admin(caller, "grant writer access")
        if not identity or not identity.strip():
            raise InvalidAddress("identity")
        self._allowed.add(identity)

    def revoke(self, caller: str, identity: str) -> None:
        """Remove identity from the allow-list (admin only). Unknown identities are ignored."""
        self.require_admin(caller, "revoke writer access")
        self._allowed.discard(identity)

    def transfer_admin(self, caller: str, new_admin: str) -> None:
        self.require_admin(caller, "transfer admin role")
        if not new_admin or not new_admin.strip():
            raise InvalidAddress("new_admin")
        self._admin = new_admin

    def __repr__(self):
        return f"AuthorizationPolicy(admin={self._admin!r}, allowed={sorted(self._allowed)})"
