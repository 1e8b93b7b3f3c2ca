"""Role based gate for the form data exports.

Only callers holding one of the export roles may see the landing page or
download files. The gate is a pure check over the caller's role set; turning
a refusal into an HTTP 403 is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Mapping, Optional

EXPORT_ROLES: FrozenSet[str] = frozenset({"administrator", "gestor"})


@dataclass(frozen=True)
class Principal:
    """The caller of an export operation."""

    user_id: Optional[str] = None
    roles: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None


ANONYMOUS = Principal()


def is_export_allowed(roles: Iterable[str], allowed_roles: Iterable[str] = EXPORT_ROLES) -> bool:
    """Return True when ``roles`` contains at least one of ``allowed_roles``."""
    if not roles:
        return False
    return not frozenset(allowed_roles).isdisjoint(roles)


def principal_from_claims(claims: Optional[Mapping[str, Any]]) -> Principal:
    """Build a principal from decoded JWT claims.

    Accepts either a ``roles`` list claim or the single ``role`` claim issued
    by the auth service. Missing claims yield the anonymous principal.
    """
    if not claims:
        return ANONYMOUS

    roles = set()
    raw_roles = claims.get("roles")
    if isinstance(raw_roles, str):
        roles.add(raw_roles)
    elif isinstance(raw_roles, (list, tuple, set, frozenset)):
        roles.update(str(role) for role in raw_roles if role)
    single_role = claims.get("role")
    if isinstance(single_role, str) and single_role:
        roles.add(single_role)

    subject = claims.get("sub")
    return Principal(
        user_id=str(subject) if subject is not None else None,
        roles=frozenset(roles),
    )

