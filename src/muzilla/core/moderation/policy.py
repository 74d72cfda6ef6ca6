"""Moderation policy: who may ban, unban and manage what.

Every check is a pure function of already-loaded entities. Checks never raise
for expected conditions and never touch storage; they return ``OK`` or a
``Rejected`` value naming the first rule that failed.

Higher-level checks call ``can_act`` first and short-circuit on rejection, so
the definition of an actor in good standing lives in one place.
"""

from __future__ import annotations

from collections.abc import Callable

from muzilla.core.moderation.types import OK, Decision, Rejected, RejectionReason
from muzilla.models import Collection, Song, User


def can_act(actor: User | None) -> Decision:
    """Baseline gate every moderation action passes through.

    Args:
        actor: The user attempting the action, if found.

    Returns:
        OK if the actor exists, has an access level and is not banned.
    """
    if actor is None:
        return Rejected(RejectionReason.USER_IS_NULL)
    if actor.access_level is None:
        return Rejected(RejectionReason.ACCESS_LEVEL_IS_NULL)
    if actor.is_banned:
        return Rejected(RejectionReason.IT_BANNED)
    return OK


def can_ban_user(actor: User | None, target: User | None) -> Decision:
    """Check whether ``actor`` may ban ``target``.

    Self-bans are refused before anything else. The target must itself be
    in good standing (not already banned), and users holding user-ban
    authority cannot be banned through this path.
    """
    if actor is not None and target is not None and actor.id == target.id:
        return Rejected(RejectionReason.USERS_ARE_SAME)

    decision = can_act(actor)
    if not decision.ok:
        return decision
    assert actor is not None and actor.access_level is not None

    if target is None:
        return Rejected(RejectionReason.USER_IS_NULL)
    decision = can_act(target)
    if not decision.ok:
        return decision
    assert target.access_level is not None

    if not actor.access_level.can_ban_user:
        return Rejected(RejectionReason.CANNOT_BAN_USERS)
    if target.access_level.can_ban_user:
        return Rejected(RejectionReason.CANNOT_BAN_ADMINS)
    return OK


def can_unban_user(actor: User | None, target: User | None) -> Decision:
    """Check whether ``actor`` may lift the bans on ``target``."""
    decision = can_act(actor)
    if not decision.ok:
        return decision
    assert actor is not None and actor.access_level is not None

    if target is None:
        return Rejected(RejectionReason.USER_IS_NULL)
    if not actor.access_level.can_ban_user:
        return Rejected(RejectionReason.CANNOT_BAN_USERS)
    if not target.is_banned:
        return Rejected(RejectionReason.IT_NOT_BANNED)
    return OK


def can_ban_song(actor: User | None, song: Song | None) -> Decision:
    """Check whether ``actor`` may ban ``song``."""
    return _check_content_transition(
        actor,
        song,
        missing=RejectionReason.SONG_IS_NULL,
        capable=_holds_song_ban,
        incapable=RejectionReason.CANNOT_BAN_SONGS,
        banning=True,
    )


def can_unban_song(actor: User | None, song: Song | None) -> Decision:
    """Check whether ``actor`` may lift the bans on ``song``."""
    return _check_content_transition(
        actor,
        song,
        missing=RejectionReason.SONG_IS_NULL,
        capable=_holds_song_ban,
        incapable=RejectionReason.CANNOT_BAN_SONGS,
        banning=False,
    )


def can_ban_collection(actor: User | None, collection: Collection | None) -> Decision:
    """Check whether ``actor`` may ban ``collection``."""
    return _check_content_transition(
        actor,
        collection,
        missing=RejectionReason.COLLECTION_IS_NULL,
        capable=_holds_collection_ban,
        incapable=RejectionReason.CANNOT_BAN_COLLECTIONS,
        banning=True,
    )


def can_unban_collection(actor: User | None, collection: Collection | None) -> Decision:
    """Check whether ``actor`` may lift the bans on ``collection``."""
    return _check_content_transition(
        actor,
        collection,
        missing=RejectionReason.COLLECTION_IS_NULL,
        capable=_holds_collection_ban,
        incapable=RejectionReason.CANNOT_BAN_COLLECTIONS,
        banning=False,
    )


def can_manage_reports(actor: User | None) -> Decision:
    """Check whether ``actor`` may review user reports."""
    decision = can_act(actor)
    if not decision.ok:
        return decision
    assert actor is not None and actor.access_level is not None
    if not actor.access_level.can_manage_reports:
        # No dedicated outcome exists for reports; support staff covers both
        return Rejected(RejectionReason.CANNOT_MANAGE_SUPPORTS)
    return OK


def can_manage_supports(actor: User | None) -> Decision:
    """Check whether ``actor`` may answer support requests."""
    decision = can_act(actor)
    if not decision.ok:
        return decision
    assert actor is not None and actor.access_level is not None
    if not actor.access_level.can_manage_supports:
        return Rejected(RejectionReason.CANNOT_MANAGE_SUPPORTS)
    return OK


def can_download(actor: User | None) -> Decision:
    """Check whether ``actor`` may download songs."""
    decision = can_act(actor)
    if not decision.ok:
        return decision
    assert actor is not None and actor.access_level is not None
    if not actor.access_level.can_download:
        return Rejected(RejectionReason.CANNOT_DOWNLOAD_SONGS)
    return OK


def _check_content_transition(
    actor: User | None,
    target: Song | Collection | None,
    *,
    missing: RejectionReason,
    capable: Callable[[User], bool],
    incapable: RejectionReason,
    banning: bool,
) -> Decision:
    """Shared rule for banning or unbanning a song or collection.

    The target's current state must be the opposite of the requested
    transition: an already-banned target cannot be banned again and an
    unbanned one cannot be unbanned.
    """
    if target is None:
        return Rejected(missing)

    decision = can_act(actor)
    if not decision.ok:
        return decision
    assert actor is not None
    if not capable(actor):
        return Rejected(incapable)

    if banning and target.is_banned:
        return Rejected(RejectionReason.IT_BANNED)
    if not banning and not target.is_banned:
        return Rejected(RejectionReason.IT_NOT_BANNED)
    return OK


def _holds_song_ban(actor: User) -> bool:
    return actor.access_level is not None and actor.access_level.can_ban_song


def _holds_collection_ban(actor: User) -> bool:
    return actor.access_level is not None and actor.access_level.can_ban_collection
