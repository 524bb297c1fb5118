"""
Access scope resolution.

Turns a caller into the set of sessions (and paying clients) it may see.
Admins see everything; trainers see the sessions they own, either directly or
through their legacy instructor record. A trainer that owns nothing gets an
empty scope, which yields no data rather than all data.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from database import RecordStore

from .errors import AccessDeniedError, NotAuthenticatedError
from .logger import setup_logger

logger = setup_logger(__name__)

ADMIN_ROLE = "admin"
TRAINER_ROLE = "trainer"


@dataclass(frozen=True)
class Caller:
    """Identity supplied by the authentication layer."""
    user_id: Optional[str]
    role: Optional[str] = None


@dataclass(frozen=True)
class Scope:
    """Either unrestricted, or restricted to concrete session/client ids."""
    unrestricted: bool
    session_ids: FrozenSet[str] = field(default_factory=frozenset)
    client_ids: FrozenSet[str] = field(default_factory=frozenset)
    trainer_id: Optional[str] = None
    owner_ref: Optional[str] = None

    @classmethod
    def everything(cls) -> "Scope":
        return cls(unrestricted=True)

    @classmethod
    def restricted_to(cls, session_ids, client_ids=(), trainer_id: Optional[str] = None, owner_ref: Optional[str] = None) -> "Scope":
        return cls(
            unrestricted=False,
            session_ids=frozenset(session_ids),
            client_ids=frozenset(client_ids),
            trainer_id=trainer_id,
            owner_ref=owner_ref,
        )

    @property
    def is_empty(self) -> bool:
        return not self.unrestricted and not self.session_ids

    @property
    def session_filter(self) -> Optional[FrozenSet[str]]:
        """Store filter for session-keyed collections (None = all)."""
        return None if self.unrestricted else self.session_ids

    @property
    def client_filter(self) -> Optional[FrozenSet[str]]:
        """Store filter for client-keyed collections (None = all)."""
        return None if self.unrestricted else self.client_ids


def resolve_role(store: RecordStore, caller: Caller) -> str:
    """Role supplied with the caller, else the one recorded in the store."""
    if not caller.user_id:
        raise NotAuthenticatedError("Not authenticated")
    role = caller.role or store.fetch_role(caller.user_id)
    if not role:
        raise AccessDeniedError("User role not found")
    return role


def resolve_scope(store: RecordStore, caller: Caller) -> Scope:
    """
    Resolve what a caller may see.

    Raises:
        NotAuthenticatedError: no caller identity
        AccessDeniedError: role is neither admin nor trainer, or the trainer
            has no trainer profile
    """
    role = resolve_role(store, caller)

    if role == ADMIN_ROLE:
        return Scope.everything()

    if role != TRAINER_ROLE:
        logger.warning(f"Insights access denied for user {caller.user_id} with role {role!r}")
        raise AccessDeniedError("Access denied. Admin or trainer role required.")

    trainers = store.fetch_trainers(owner_refs=[caller.user_id])
    if not trainers:
        raise AccessDeniedError("Trainer profile not found")
    trainer = trainers[0]

    session_ids = set(store.fetch_session_ids(trainer_ref=trainer.id))

    # Classes created before the trainers table point at an instructor record
    legacy = store.fetch_legacy_instructors(owner_refs=[caller.user_id])
    if legacy:
        session_ids.update(store.fetch_session_ids(legacy_instructor_ref=legacy[0].id))

    if not session_ids:
        logger.info(f"Trainer {trainer.id} owns no classes; scope is empty")
        return Scope.restricted_to((), trainer_id=trainer.id, owner_ref=caller.user_id)

    client_ids = store.fetch_client_ids(session_ids)
    logger.debug(f"Trainer {trainer.id} scope: {len(session_ids)} classes, {len(client_ids)} clients")
    return Scope.restricted_to(session_ids, client_ids, trainer_id=trainer.id, owner_ref=caller.user_id)
