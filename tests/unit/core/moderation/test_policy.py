"""Tests for moderation policy checks."""

from __future__ import annotations

import pytest

from muzilla.core.moderation import OK, Rejected, RejectionReason, policy
from muzilla.models import AccessLevel, Collection, Song, User

_FLAGS = (
    "can_ban_user",
    "can_ban_song",
    "can_ban_collection",
    "can_download",
    "can_upload",
    "can_report",
    "can_manage_reports",
    "can_manage_supports",
    "can_manage_access_levels",
)


def make_user(
    user_id: int = 1,
    *,
    is_banned: bool = False,
    with_access_level: bool = True,
    **flags: bool,
) -> User:
    """Build a detached user with the given capability flags."""
    access_level = None
    if with_access_level:
        access_level = AccessLevel(**{name: flags.get(name, False) for name in _FLAGS})
    return User(id=user_id, username=f"user{user_id}", is_banned=is_banned, access_level=access_level)


def make_song(*, is_banned: bool = False) -> Song:
    return Song(id=10, title="Track", is_banned=is_banned)


def make_collection(*, is_banned: bool = False) -> Collection:
    return Collection(id=20, title="Mix", is_banned=is_banned)


class TestCanAct:
    """Tests for the baseline gate."""

    def test_missing_actor(self) -> None:
        """Missing actor is rejected as null."""
        assert policy.can_act(None) == Rejected(RejectionReason.USER_IS_NULL)

    def test_missing_access_level(self) -> None:
        """Actor without an access level is rejected."""
        actor = make_user(with_access_level=False)

        assert policy.can_act(actor) == Rejected(RejectionReason.ACCESS_LEVEL_IS_NULL)

    def test_banned_actor(self) -> None:
        """Banned actors cannot act."""
        actor = make_user(is_banned=True, can_ban_user=True)

        assert policy.can_act(actor) == Rejected(RejectionReason.IT_BANNED)

    def test_actor_in_good_standing(self) -> None:
        """An unbanned actor with an access level passes."""
        assert policy.can_act(make_user()) is OK


class TestCanBanUser:
    """Tests for can_ban_user."""

    def test_allows_moderator_to_ban_regular_user(self) -> None:
        """Moderator bans a regular user."""
        actor = make_user(1, can_ban_user=True)
        target = make_user(2)

        decision = policy.can_ban_user(actor, target)

        assert decision.ok is True
        assert decision.outcome == "Success"

    @pytest.mark.parametrize("can_ban_user", [True, False])
    def test_self_ban_is_rejected_regardless_of_flags(self, can_ban_user: bool) -> None:
        """Actor and target being the same user is always rejected."""
        actor = make_user(1, can_ban_user=can_ban_user)

        assert policy.can_ban_user(actor, actor) == Rejected(RejectionReason.USERS_ARE_SAME)

    def test_self_ban_rejected_before_baseline(self) -> None:
        """Self-ban wins over the actor's own banned state."""
        actor = make_user(1, is_banned=True)

        assert policy.can_ban_user(actor, actor) == Rejected(RejectionReason.USERS_ARE_SAME)

    def test_admins_cannot_be_banned(self) -> None:
        """Targets holding user-ban authority are immune."""
        actor = make_user(1, can_ban_user=True)
        target = make_user(2, can_ban_user=True)

        assert policy.can_ban_user(actor, target) == Rejected(RejectionReason.CANNOT_BAN_ADMINS)

    def test_actor_without_capability(self) -> None:
        """Actor lacking can_ban_user is rejected."""
        actor = make_user(1)
        target = make_user(2)

        assert policy.can_ban_user(actor, target) == Rejected(RejectionReason.CANNOT_BAN_USERS)

    def test_missing_capability_reported_before_admin_immunity(self) -> None:
        """An incapable actor hears about its own missing flag first."""
        actor = make_user(1)
        target = make_user(2, can_ban_user=True)

        assert policy.can_ban_user(actor, target) == Rejected(RejectionReason.CANNOT_BAN_USERS)

    def test_already_banned_target(self) -> None:
        """A banned target cannot be banned again."""
        actor = make_user(1, can_ban_user=True)
        target = make_user(2, is_banned=True)

        assert policy.can_ban_user(actor, target) == Rejected(RejectionReason.IT_BANNED)

    def test_target_without_access_level(self) -> None:
        """Target must have an access level."""
        actor = make_user(1, can_ban_user=True)
        target = make_user(2, with_access_level=False)

        assert policy.can_ban_user(actor, target) == Rejected(
            RejectionReason.ACCESS_LEVEL_IS_NULL
        )

    def test_missing_target(self) -> None:
        """Missing target is rejected as null."""
        actor = make_user(1, can_ban_user=True)

        assert policy.can_ban_user(actor, None) == Rejected(RejectionReason.USER_IS_NULL)

    def test_banned_actor(self) -> None:
        """A banned moderator cannot ban."""
        actor = make_user(1, is_banned=True, can_ban_user=True)

        assert policy.can_ban_user(actor, make_user(2)) == Rejected(RejectionReason.IT_BANNED)


class TestCanUnbanUser:
    """Tests for can_unban_user."""

    def test_allows_unbanning_banned_user(self) -> None:
        """Moderator lifts a ban."""
        actor = make_user(1, can_ban_user=True)
        target = make_user(2, is_banned=True)

        assert policy.can_unban_user(actor, target) is OK

    def test_target_not_banned(self) -> None:
        """Unbanning a user in good standing is rejected."""
        actor = make_user(1, can_ban_user=True)

        assert policy.can_unban_user(actor, make_user(2)) == Rejected(
            RejectionReason.IT_NOT_BANNED
        )

    def test_actor_without_capability(self) -> None:
        """Capability is checked before target state."""
        actor = make_user(1)
        target = make_user(2, is_banned=True)

        assert policy.can_unban_user(actor, target) == Rejected(RejectionReason.CANNOT_BAN_USERS)

    def test_missing_target(self) -> None:
        """Missing target is rejected as null."""
        actor = make_user(1, can_ban_user=True)

        assert policy.can_unban_user(actor, None) == Rejected(RejectionReason.USER_IS_NULL)


class TestSongChecks:
    """Tests for song ban and unban checks."""

    def test_ban_allowed(self) -> None:
        """Song moderator bans a song."""
        actor = make_user(can_ban_song=True)

        assert policy.can_ban_song(actor, make_song()) is OK

    def test_ban_already_banned(self) -> None:
        """Already-banned songs are rejected."""
        actor = make_user(can_ban_song=True)

        assert policy.can_ban_song(actor, make_song(is_banned=True)) == Rejected(
            RejectionReason.IT_BANNED
        )

    def test_ban_without_capability(self) -> None:
        """Actor lacking can_ban_song is rejected before state is checked."""
        actor = make_user(can_ban_user=True)

        assert policy.can_ban_song(actor, make_song(is_banned=True)) == Rejected(
            RejectionReason.CANNOT_BAN_SONGS
        )

    def test_missing_song(self) -> None:
        """Missing song is rejected as null even for a missing actor."""
        assert policy.can_ban_song(None, None) == Rejected(RejectionReason.SONG_IS_NULL)

    def test_unban_allowed(self) -> None:
        """Banned song can be unbanned."""
        actor = make_user(can_ban_song=True)

        assert policy.can_unban_song(actor, make_song(is_banned=True)) is OK

    def test_unban_not_banned(self) -> None:
        """Unbanning a song that is not banned is rejected."""
        actor = make_user(can_ban_song=True)

        assert policy.can_unban_song(actor, make_song()) == Rejected(
            RejectionReason.IT_NOT_BANNED
        )


class TestCollectionChecks:
    """Tests for collection ban and unban checks."""

    def test_ban_uses_dedicated_flag(self) -> None:
        """The song flag alone does not grant collection bans."""
        actor = make_user(can_ban_song=True)

        assert policy.can_ban_collection(actor, make_collection()) == Rejected(
            RejectionReason.CANNOT_BAN_COLLECTIONS
        )

    def test_ban_allowed(self) -> None:
        """Collection moderator bans a collection."""
        actor = make_user(can_ban_collection=True)

        assert policy.can_ban_collection(actor, make_collection()) is OK

    def test_ban_already_banned(self) -> None:
        """Already-banned collections are rejected."""
        actor = make_user(can_ban_collection=True)

        assert policy.can_ban_collection(actor, make_collection(is_banned=True)) == Rejected(
            RejectionReason.IT_BANNED
        )

    def test_unban_allowed(self) -> None:
        """Banned collection can be unbanned."""
        actor = make_user(can_ban_collection=True)

        assert policy.can_unban_collection(actor, make_collection(is_banned=True)) is OK

    def test_unban_not_banned(self) -> None:
        """Unbanning a collection that is not banned is rejected."""
        actor = make_user(can_ban_collection=True)

        assert policy.can_unban_collection(actor, make_collection()) == Rejected(
            RejectionReason.IT_NOT_BANNED
        )

    def test_missing_collection(self) -> None:
        """Missing collection is rejected as null."""
        actor = make_user(can_ban_collection=True)

        assert policy.can_unban_collection(actor, None) == Rejected(
            RejectionReason.COLLECTION_IS_NULL
        )


class TestStaffChecks:
    """Tests for report, support and download checks."""

    def test_manage_reports(self) -> None:
        """Report managers pass; others get the support rejection."""
        assert policy.can_manage_reports(make_user(can_manage_reports=True)) is OK
        assert policy.can_manage_reports(make_user()) == Rejected(
            RejectionReason.CANNOT_MANAGE_SUPPORTS
        )

    def test_manage_supports(self) -> None:
        """Support managers pass; others are rejected."""
        assert policy.can_manage_supports(make_user(can_manage_supports=True)) is OK
        assert policy.can_manage_supports(make_user()) == Rejected(
            RejectionReason.CANNOT_MANAGE_SUPPORTS
        )

    def test_download(self) -> None:
        """Downloaders pass; others are rejected."""
        assert policy.can_download(make_user(can_download=True)) is OK
        assert policy.can_download(make_user()) == Rejected(RejectionReason.CANNOT_DOWNLOAD_SONGS)

    def test_banned_actor_fails_every_staff_check(self) -> None:
        """The baseline gate applies to every staff check."""
        actor = make_user(
            is_banned=True,
            can_manage_reports=True,
            can_manage_supports=True,
            can_download=True,
        )

        for check in (policy.can_manage_reports, policy.can_manage_supports, policy.can_download):
            assert check(actor) == Rejected(RejectionReason.IT_BANNED)
