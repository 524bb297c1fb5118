"""
Trainer directory.

Resolves the display name for every trainer id that sessions are attributed
to. Sessions carry either a trainer id or a legacy instructor id; instructor
ids are mapped to the trainer with the same owner when one exists, otherwise
to the instructor's own name.
"""

from typing import Dict, Iterable, List, Optional

from database import RecordStore, Session, TrainerIdentity, attributed_trainer_id

from .logger import setup_logger
from .scope import Scope

logger = setup_logger(__name__)

UNKNOWN_TRAINER = "Unknown"


class TrainerDirectory:
    """Trainer id (or legacy instructor id) → identity."""

    def __init__(self, identities: Optional[Dict[str, TrainerIdentity]] = None):
        self._identities: Dict[str, TrainerIdentity] = dict(identities or {})

    def __contains__(self, trainer_id: str) -> bool:
        return trainer_id in self._identities

    def __len__(self) -> int:
        return len(self._identities)

    def identity(self, trainer_id: str) -> Optional[TrainerIdentity]:
        return self._identities.get(trainer_id)

    def display_name(self, trainer_id: str) -> str:
        """Full name for an attributed id, or "Unknown"."""
        identity = self._identities.get(trainer_id)
        name = identity.display_name if identity else None
        return name or UNKNOWN_TRAINER

    def names(self, trainer_ids: Iterable[str]) -> Dict[str, str]:
        """Resolve a batch of ids, logging every id that stays unknown."""
        resolved = {}
        for trainer_id in trainer_ids:
            name = self.display_name(trainer_id)
            if name == UNKNOWN_TRAINER:
                logger.warning(f"Could not determine name for trainer ID: {trainer_id}")
            resolved[trainer_id] = name
        return resolved

    @classmethod
    def from_records(
        cls,
        trainers: Iterable[TrainerIdentity],
        legacy_instructors: Iterable[TrainerIdentity] = (),
    ) -> "TrainerDirectory":
        """Build the map from trainer records plus legacy instructor aliases."""
        identities = {t.id: t for t in trainers}
        by_owner = {t.owner_ref: t for t in identities.values() if t.owner_ref}

        for instructor in legacy_instructors:
            if instructor.id in identities:
                continue
            owner_trainer = by_owner.get(instructor.owner_ref) if instructor.owner_ref else None
            # Prefer the owning trainer's record, else the instructor's own names
            identities[instructor.id] = owner_trainer or instructor

        return cls(identities)


def _attributed_ids(sessions: Iterable[Session]) -> List[str]:
    seen = {}
    for session in sessions:
        trainer_id = attributed_trainer_id(session)
        if trainer_id:
            seen.setdefault(trainer_id, None)
    return list(seen)


def build_trainer_directory(store: RecordStore, sessions: List[Session], scope: Scope) -> TrainerDirectory:
    """
    Load every identity needed to name the trainers of the given sessions.

    Lookup failures are logged and leave the affected names as "Unknown".
    """
    try:
        if scope.unrestricted:
            trainers = store.fetch_trainers()
        else:
            trainers = store.fetch_trainers(owner_refs=[scope.owner_ref] if scope.owner_ref else [])
    except Exception as e:
        logger.error(f"Error fetching trainers: {type(e).__name__}: {e}")
        trainers = []

    known = {t.id for t in trainers}
    missing = [tid for tid in _attributed_ids(sessions) if tid not in known]
    if not missing:
        return TrainerDirectory.from_records(trainers)

    extra_trainers: List[TrainerIdentity] = []
    instructors: List[TrainerIdentity] = []
    try:
        extra_trainers = store.fetch_trainers(ids=missing)
        still_missing = [tid for tid in missing if tid not in {t.id for t in extra_trainers}]
        if still_missing:
            instructors = store.fetch_legacy_instructors(ids=still_missing)
            owners = [i.owner_ref for i in instructors if i.owner_ref]
            known_owners = {t.owner_ref for t in trainers} | {t.owner_ref for t in extra_trainers}
            unseen_owners = [o for o in owners if o not in known_owners]
            if unseen_owners:
                extra_trainers.extend(store.fetch_trainers(owner_refs=unseen_owners))
    except Exception as e:
        logger.error(f"Error resolving trainer identities: {type(e).__name__}: {e}")

    directory = TrainerDirectory.from_records(list(trainers) + extra_trainers, instructors)
    logger.debug(f"Trainer directory resolved {len(directory)} identities ({len(missing)} looked up)")
    return directory
