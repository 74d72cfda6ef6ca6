"""Ban record lifecycle: create, lift and expire bans.

Ban rows are the source of truth. Each target also carries a cached
``is_banned`` flag, and every write made here keeps that flag equal to
"at least one ban row for the target ends in the future". The flag is only
written while its row is locked. Nothing outside this module should write it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy.orm.attributes import set_committed_value

from muzilla.core.exceptions import InvalidBanRequest
from muzilla.core.interfaces import StorageGateway
from muzilla.core.moderation import policy
from muzilla.core.moderation.types import (
    OK,
    BanSummary,
    Decision,
    Rejected,
    RejectionReason,
    SweepReport,
)
from muzilla.models import REASON_MAX_LENGTH, Ban, BanKind, Collection, Song, User, utcnow

logger = structlog.get_logger()

Target = User | Song | Collection

DEFAULT_LATEST_LIMIT = 20


@dataclass(frozen=True)
class _TargetRules:
    """How one ban kind maps onto models, columns and policy checks."""

    model: type[Target]
    ban_field: str
    missing: RejectionReason
    can_ban: Callable[[User | None, Any], Decision]
    can_unban: Callable[[User | None, Any], Decision]

    @property
    def ban_column(self) -> Any:
        return getattr(Ban, self.ban_field)


_RULES: dict[BanKind, _TargetRules] = {
    BanKind.USER: _TargetRules(
        model=User,
        ban_field="banned_user_id",
        missing=RejectionReason.USER_IS_NULL,
        can_ban=policy.can_ban_user,
        can_unban=policy.can_unban_user,
    ),
    BanKind.SONG: _TargetRules(
        model=Song,
        ban_field="banned_song_id",
        missing=RejectionReason.SONG_IS_NULL,
        can_ban=policy.can_ban_song,
        can_unban=policy.can_unban_song,
    ),
    BanKind.COLLECTION: _TargetRules(
        model=Collection,
        ban_field="banned_collection_id",
        missing=RejectionReason.COLLECTION_IS_NULL,
        can_ban=policy.can_ban_collection,
        can_unban=policy.can_unban_collection,
    ),
}


class BanService:
    """Bans and unbans users, songs and collections.

    One instance works inside one storage unit of work. Every public
    operation either commits all of its writes with a single ``save()`` or
    writes nothing.
    """

    def __init__(
        self,
        store: StorageGateway,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the ban service.

        Args:
            store: Storage unit of work to read and write through.
            clock: Source of the current UTC instant.
        """
        self.store = store
        self.clock = clock

    # User bans
    async def ban_user(
        self, target_id: int, actor_id: int, reason: str, ban_until_utc: datetime
    ) -> Decision:
        """Ban a user until ``ban_until_utc``."""
        if target_id == actor_id:
            self._log_rejection("ban", BanKind.USER, target_id, actor_id, RejectionReason.USERS_ARE_SAME)
            return Rejected(RejectionReason.USERS_ARE_SAME)
        return await self._ban(BanKind.USER, target_id, actor_id, reason, ban_until_utc)

    async def unban_user(self, target_id: int, actor_id: int) -> Decision:
        """Lift every live ban on a user."""
        return await self._unban(BanKind.USER, target_id, actor_id)

    # Song bans
    async def ban_song(
        self, song_id: int, actor_id: int, reason: str, ban_until_utc: datetime
    ) -> Decision:
        """Ban a song until ``ban_until_utc``."""
        return await self._ban(BanKind.SONG, song_id, actor_id, reason, ban_until_utc)

    async def unban_song(self, song_id: int, actor_id: int) -> Decision:
        """Lift every live ban on a song."""
        return await self._unban(BanKind.SONG, song_id, actor_id)

    # Collection bans
    async def ban_collection(
        self, collection_id: int, actor_id: int, reason: str, ban_until_utc: datetime
    ) -> Decision:
        """Ban a collection until ``ban_until_utc``."""
        return await self._ban(BanKind.COLLECTION, collection_id, actor_id, reason, ban_until_utc)

    async def unban_collection(self, collection_id: int, actor_id: int) -> Decision:
        """Lift every live ban on a collection."""
        return await self._unban(BanKind.COLLECTION, collection_id, actor_id)

    # Queries
    async def is_banned(self, kind: BanKind, target_id: int) -> bool:
        """Check whether a live ban row exists for the target.

        Answers from the ban rows rather than the cached flag, so an expired
        ban reads as lifted even before the sweeper has run.
        """
        return await self._has_live_ban(kind, target_id, self.clock())

    async def latest_bans(self, limit: int = DEFAULT_LATEST_LIMIT) -> list[BanSummary]:
        """List the most recently created bans, newest first.

        Args:
            limit: Maximum number of bans to return.

        Raises:
            ValueError: If limit is not positive.
        """
        if limit < 1:
            raise ValueError(f"limit must be positive, got {limit}")

        bans = await self.store.query(
            Ban,
            order_by=(Ban.banned_at_utc.desc(), Ban.id.desc()),
            limit=limit,
        )
        return [
            BanSummary(
                id=ban.id,
                actor_id=ban.banned_by_user_id,
                kind=ban.kind,
                target_id=ban.target_id,
                reason=ban.reason,
                ban_until_utc=ban.ban_until_utc,
                banned_at_utc=ban.banned_at_utc,
            )
            for ban in bans
        ]

    async def find_flag_drift(self) -> list[tuple[BanKind, int]]:
        """Find targets whose cached flag disagrees with their ban rows.

        Returns:
            Sorted (kind, target id) pairs that are flagged without a live
            ban, or have a live ban without the flag.
        """
        now = self.clock()
        drift: list[tuple[BanKind, int]] = []
        for kind, rules in _RULES.items():
            flagged = await self.store.query(rules.model, rules.model.is_banned.is_(True))
            live = await self.store.query(Ban, Ban.ban_kind == int(kind), Ban.ban_until_utc > now)
            flagged_ids = {target.id for target in flagged}
            live_ids = {ban.target_id for ban in live}
            drift.extend((kind, target_id) for target_id in flagged_ids ^ live_ids)
        return sorted(drift)

    # Expiry
    async def cleanup_expired(self) -> SweepReport:
        """Delete expired ban rows and clear flags no other ban supports.

        Each target's flag is recomputed from the remaining live rows, so a
        target protected by a later ban stays banned. Safe to repeat, and
        safe to run beside another pass: rows the other pass removed first
        are skipped. A pass with nothing expired writes nothing.
        """
        now = self.clock()
        expired = await self.store.query(Ban, Ban.ban_until_utc <= now, order_by=Ban.id)
        if not expired:
            return SweepReport()

        removed = 0
        cleared: list[tuple[BanKind, int]] = []
        for ban in expired:
            kind = ban.kind
            rules = _RULES[kind]
            target_id = ban.target_id
            # Target lock first, matching the order ban and unban use
            target = await self.store.get_by_id(rules.model, target_id, for_update=True)
            if not await self.store.exists(Ban, Ban.id == ban.id):
                logger.debug("expired_ban_already_removed", ban_id=ban.id)
                continue
            if target is not None:
                still_banned = await self.store.exists(
                    Ban,
                    rules.ban_column == target_id,
                    Ban.id != ban.id,
                    Ban.ban_until_utc > now,
                )
                if target.is_banned != still_banned:
                    target.is_banned = still_banned
                    if not still_banned:
                        cleared.append((kind, target_id))
            await self.store.remove(ban)
            removed += 1

        await self.store.save()
        return SweepReport(expired=removed, cleared=tuple(cleared))

    async def _ban(
        self,
        kind: BanKind,
        target_id: int,
        actor_id: int,
        reason: str,
        ban_until_utc: datetime,
    ) -> Decision:
        now = self.clock()
        reason, ban_until_utc = _validate_ban_request(reason, ban_until_utc, now)
        rules = _RULES[kind]

        actor = await self.store.get_by_id(User, actor_id)
        target = await self.store.get_by_id(rules.model, target_id, for_update=True)
        if target is None:
            return await self._reject("ban", kind, target_id, actor_id, rules.missing)

        await self._load_standing(actor, now)
        await self._sync_flag(target, kind, now)

        decision = rules.can_ban(actor, target)
        if isinstance(decision, Rejected):
            return await self._reject("ban", kind, target_id, actor_id, decision.reason)

        ban = Ban(
            banned_by_user_id=actor_id,
            ban_kind=int(kind),
            reason=reason,
            ban_until_utc=ban_until_utc,
            banned_at_utc=now,
        )
        setattr(ban, rules.ban_field, target_id)
        await self.store.add(ban)
        target.is_banned = True
        await self.store.save()

        logger.info(
            "ban_created",
            ban_id=ban.id,
            kind=kind.name.lower(),
            target_id=target_id,
            actor_id=actor_id,
            ban_until_utc=ban_until_utc.isoformat(),
        )
        return OK

    async def _unban(self, kind: BanKind, target_id: int, actor_id: int) -> Decision:
        now = self.clock()
        rules = _RULES[kind]

        actor = await self.store.get_by_id(User, actor_id)
        target = await self.store.get_by_id(rules.model, target_id, for_update=True)
        if target is None:
            return await self._reject("unban", kind, target_id, actor_id, rules.missing)

        await self._load_standing(actor, now)
        await self._sync_flag(target, kind, now)

        decision = rules.can_unban(actor, target)
        if isinstance(decision, Rejected):
            return await self._reject("unban", kind, target_id, actor_id, decision.reason)

        live_bans = await self.store.query(
            Ban, rules.ban_column == target_id, Ban.ban_until_utc > now
        )
        if not live_bans:
            return await self._reject(
                "unban", kind, target_id, actor_id, RejectionReason.IT_NOT_BANNED
            )

        await self.store.remove_many(live_bans)
        target.is_banned = False
        await self.store.save()

        logger.info(
            "bans_removed",
            kind=kind.name.lower(),
            target_id=target_id,
            actor_id=actor_id,
            count=len(live_bans),
        )
        return OK

    async def _has_live_ban(self, kind: BanKind, target_id: int, now: datetime) -> bool:
        rules = _RULES[kind]
        return await self.store.exists(Ban, rules.ban_column == target_id, Ban.ban_until_utc > now)

    async def _sync_flag(self, entity: Target | None, kind: BanKind, now: datetime) -> None:
        """Align a locked target's flag with its live ban rows.

        The correction is staged in the unit of work: it is committed along
        with an applied decision and discarded with a rejected one.
        """
        if entity is None:
            return
        live = await self._has_live_ban(kind, entity.id, now)
        if entity.is_banned != live:
            self._log_drift(kind, entity, live)
            entity.is_banned = live

    async def _load_standing(self, actor: User | None, now: datetime) -> None:
        """Read the actor's banned state from its live ban rows.

        The actor row is not locked, so the answer is set as the loaded value
        without staging a write. Its stored flag belongs to whichever unit of
        work bans or unbans the actor as a target.
        """
        if actor is None:
            return
        live = await self._has_live_ban(BanKind.USER, actor.id, now)
        if actor.is_banned != live:
            self._log_drift(BanKind.USER, actor, live)
            set_committed_value(actor, "is_banned", live)

    @staticmethod
    def _log_drift(kind: BanKind, entity: Target, live: bool) -> None:
        logger.warning(
            "ban_flag_drift",
            kind=kind.name.lower(),
            target_id=entity.id,
            flagged=entity.is_banned,
            live=live,
        )

    async def _reject(
        self,
        action: str,
        kind: BanKind,
        target_id: int,
        actor_id: int,
        reason: RejectionReason,
    ) -> Rejected:
        await self.store.rollback()
        self._log_rejection(action, kind, target_id, actor_id, reason)
        return Rejected(reason)

    @staticmethod
    def _log_rejection(
        action: str, kind: BanKind, target_id: int, actor_id: int, reason: RejectionReason
    ) -> None:
        logger.info(
            f"{action}_rejected",
            kind=kind.name.lower(),
            target_id=target_id,
            actor_id=actor_id,
            outcome=reason.value,
        )


def _validate_ban_request(
    reason: str, ban_until_utc: datetime, now: datetime
) -> tuple[str, datetime]:
    """Normalise ban input, raising InvalidBanRequest if it is unusable."""
    reason = reason.strip()
    if not reason:
        raise InvalidBanRequest("Ban reason must not be empty")
    if len(reason) > REASON_MAX_LENGTH:
        raise InvalidBanRequest(f"Ban reason must be at most {REASON_MAX_LENGTH} characters")

    if ban_until_utc.tzinfo is None:
        ban_until_utc = ban_until_utc.replace(tzinfo=UTC)
    ban_until_utc = ban_until_utc.astimezone(UTC)
    if ban_until_utc <= now:
        raise InvalidBanRequest("Ban must end in the future")
    return reason, ban_until_utc
