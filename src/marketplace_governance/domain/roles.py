"""Role resolution — normalizes loosely-typed role payloads into an Actor.

Role data reaches the core in whatever shape the identity provider or the
session cache produced: a list, a JSON-ish string ("['ROLE_ADMIN']"), a
comma list ("ROLE_USER, ROLE_ADMIN"), a bare scalar, or nothing at all.
`resolve_roles` turns every variant into a frozenset of uppercase tokens.

Malformed input never raises; it degrades to the best-effort parse.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from marketplace_governance.domain.enums import RoleToken
from marketplace_governance.domain.exceptions import UnauthorizedError

_BRACKET_QUOTE_CHARS = "[]\"' "
_TRAILING_COMMA = re.compile(r",\s*]")


def resolve_roles(raw_roles: object) -> frozenset[str]:
    """Normalize a raw role payload into a set of canonical tokens.

    Examples:
        >>> sorted(resolve_roles(["role_user", " ROLE_ADMIN "]))
        ['ROLE_ADMIN', 'ROLE_USER']
        >>> sorted(resolve_roles("['ROLE_ADMIN' , 'ROLE_USER',]"))
        ['ROLE_ADMIN', 'ROLE_USER']
        >>> resolve_roles(None)
        frozenset()
    """
    match raw_roles:
        case None:
            values: Iterable[object] = ()
        case str() as text:
            values = _parse_role_string(text)
        case list() | tuple() | set() | frozenset() as sequence:
            values = sequence
        case _:
            values = (raw_roles,)
    return frozenset(_canonical(v) for v in values) - {""}


def _canonical(value: object) -> str:
    return str(value).strip().upper()


def _parse_role_string(text: str) -> list[str]:
    stripped = text.strip()
    if stripped.startswith("[") and stripped.endswith("]"):
        parsed = _lenient_json_list(stripped)
        if parsed is not None:
            return [str(v) for v in parsed]
    return [part.strip(_BRACKET_QUOTE_CHARS) for part in stripped.split(",")]


def _lenient_json_list(text: str) -> list | None:
    """Parse a bracketed list, repairing single quotes and trailing commas."""
    candidates = (text, _TRAILING_COMMA.sub("]", text.replace("'", '"')))
    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, list):
            return parsed
    return None


@dataclass(frozen=True)
class Actor:
    """The authenticated party invoking an operation.

    Immutable for the duration of a request.
    """

    id: str
    roles: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_raw(cls, actor_id: object, raw_roles: object) -> Actor:
        return cls(id=str(actor_id), roles=resolve_roles(raw_roles))

    @property
    def is_admin(self) -> bool:
        return RoleToken.ADMIN.value in self.roles

    @property
    def is_user(self) -> bool:
        return RoleToken.USER.value in self.roles

    def has_role(self, role: RoleToken) -> bool:
        return role.value in self.roles


def require_member(actor: Actor, action: str) -> None:
    """Raise UnauthorizedError unless the actor is an authenticated user or admin."""
    if not (actor.is_user or actor.is_admin):
        raise UnauthorizedError(actor.id, action, RoleToken.USER.value)
