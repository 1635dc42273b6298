# Overview: Acting-user context and the two aggregation scopes derived from a role.

"""
Role scoping for stock reads and writes.

Two scopes exist and nothing else:
- RestrictedScope(user_id): only ledger rows owned by that user count.
- GlobalScope: every user's ledger rows count.

Role strings are resolved to a scope exactly once, here, and the scope value
is passed explicitly to the aggregator and the ledger queries.

ROLE RESOLUTION:
- "Field Assistant"        -> RestrictedScope(actor.user_id)
- "Assistant Area Manager" -> GlobalScope
- anything else            -> GlobalScope (default-permit for reads; the HTTP
  layer rejects unknown roles before they reach the services)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..models.auth import ROLE_FIELD_ASSISTANT


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing an operation."""
    user_id: int
    role: str

    @property
    def is_restricted(self) -> bool:
        return self.role == ROLE_FIELD_ASSISTANT

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(user_id=user.id, role=user.role)


@dataclass(frozen=True)
class RestrictedScope:
    user_id: int


@dataclass(frozen=True)
class GlobalScope:
    pass


Scope = Union[RestrictedScope, GlobalScope]

GLOBAL = GlobalScope()


def scope_for(actor: Actor, target_user_id: int | None = None) -> Scope:
    """
    Resolve the aggregation scope for an actor.

    target_user_id is the user whose ledger a movement is attributed to. For the
    restricted role it must already have been checked to equal actor.user_id.
    """
    if actor.is_restricted:
        return RestrictedScope(user_id=target_user_id if target_user_id is not None else actor.user_id)
    return GLOBAL


def apply_scope(query, model, scope: Scope):
    """Add the user filter for a restricted scope; the global scope adds nothing."""
    if isinstance(scope, RestrictedScope):
        return query.filter(model.user_id == scope.user_id)
    return query
