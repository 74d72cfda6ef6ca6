"""Tests for ban, unban and sweep passes running at the same time."""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from datetime import timedelta

import pytest

from muzilla.core.interfaces import StoreFactory
from muzilla.core.moderation import (
    OK,
    BanService,
    BanSweeper,
    Decision,
    Rejected,
    RejectionReason,
    SweepReport,
)
from muzilla.models import Ban, BanKind
from tests.fixtures.moderation import NOW, FakeClock, PausingStore, Seeder

UNTIL = NOW + timedelta(days=1)

_KIND_NAMES = {BanKind.USER: "user", BanKind.SONG: "song", BanKind.COLLECTION: "collection"}


async def live_bans(
    store_factory: StoreFactory, kind: BanKind, target_id: int, clock: FakeClock
) -> int:
    column = getattr(Ban, f"banned_{_KIND_NAMES[kind]}_id")
    async with store_factory() as store:
        rows = await store.query(Ban, column == target_id, Ban.ban_until_utc > clock())
    return len(rows)


async def flag_drift(store_factory: StoreFactory, clock: FakeClock) -> list[tuple[BanKind, int]]:
    async with store_factory() as store:
        return await BanService(store, clock=clock).find_flag_drift()


class TestInterleavedUnitsOfWork:
    """One operation held mid-way while another runs to completion."""

    async def test_actor_banned_while_acting_keeps_ban_flag(
        self, store_factory: StoreFactory, seed: Seeder, clock: FakeClock
    ) -> None:
        """A ban on the actor committed mid-operation is not overwritten."""
        admin = await seed.admin()
        moderator = await seed.user("mod", can_ban_song=True)
        song = await seed.song()
        # Ended but not yet swept, so the stored flag is still set
        await seed.ban(BanKind.USER, moderator, until=-timedelta(minutes=1), actor_id=admin)

        async with store_factory() as store:
            halted = PausingStore(store, "exists", call=2)
            acting = asyncio.create_task(
                BanService(halted, clock=clock).ban_song(song, moderator, "copyright", UNTIL)
            )
            await halted.wait_paused()

            async with store_factory() as other:
                banning = BanService(other, clock=clock)
                assert await banning.ban_user(moderator, admin, "abuse", UNTIL) is OK

            halted.resume.set()
            assert await acting is OK

        assert await seed.is_flagged(BanKind.USER, moderator) is True
        assert await live_bans(store_factory, BanKind.USER, moderator, clock) == 1
        assert await flag_drift(store_factory, clock) == []

    async def test_sweep_skips_rows_removed_by_another_sweep(
        self, store_factory: StoreFactory, seed: Seeder, clock: FakeClock
    ) -> None:
        """Two passes over the same expired rows both succeed."""
        admin = await seed.admin()
        song = await seed.song()
        await seed.ban(BanKind.SONG, song, until=timedelta(minutes=1), actor_id=admin)
        clock.advance(timedelta(minutes=2))

        async with store_factory() as store:
            halted = PausingStore(store, "get_by_id")
            first = asyncio.create_task(BanService(halted, clock=clock).cleanup_expired())
            await halted.wait_paused()

            second = await BanSweeper(store_factory, clock=clock).run_once()

            halted.resume.set()
            assert await first == SweepReport()

        assert second == SweepReport(expired=1, cleared=((BanKind.SONG, song),))
        assert await seed.all_bans() == []
        assert await seed.is_flagged(BanKind.SONG, song) is False


class TestConcurrentOperations:
    """Operations on one target started together through separate stores."""

    @pytest.mark.parametrize("kind", [BanKind.USER, BanKind.SONG, BanKind.COLLECTION])
    @pytest.mark.parametrize("rng_seed", [3, 11, 97])
    async def test_ban_unban_and_sweep_on_one_target(
        self,
        serial_store_factory: StoreFactory,
        serial_seed: Seeder,
        clock: FakeClock,
        kind: BanKind,
        rng_seed: int,
    ) -> None:
        """Flags match live rows and no target holds two live bans."""
        rng = random.Random(rng_seed)
        admin = await serial_seed.admin()
        other_admin = await serial_seed.admin("other")
        target = {
            BanKind.USER: serial_seed.user,
            BanKind.SONG: serial_seed.song,
            BanKind.COLLECTION: serial_seed.collection,
        }[kind]
        target_id = await target()
        name = _KIND_NAMES[kind]
        sweeper = BanSweeper(serial_store_factory, clock=clock)

        def in_own_store(
            operation: Callable[[BanService], Awaitable[Decision]],
        ) -> Callable[[], Awaitable[Decision]]:
            async def run() -> Decision:
                async with serial_store_factory() as store:
                    return await operation(BanService(store, clock=clock))

            return run

        for _ in range(8):
            minutes = rng.randint(1, 20)
            operations: list[Callable[[], Awaitable[object]]] = [
                in_own_store(
                    lambda service, minutes=minutes: getattr(service, f"ban_{name}")(
                        target_id, admin, "abuse", clock() + timedelta(minutes=minutes)
                    )
                ),
                in_own_store(
                    lambda service: getattr(service, f"ban_{name}")(
                        target_id, other_admin, "abuse", clock() + timedelta(minutes=5)
                    )
                ),
                in_own_store(lambda service: getattr(service, f"unban_{name}")(target_id, admin)),
                sweeper.run_once,
            ]
            rng.shuffle(operations)

            await asyncio.gather(*(operation() for operation in operations))

            assert await flag_drift(serial_store_factory, clock) == []
            assert await live_bans(serial_store_factory, kind, target_id, clock) <= 1
            clock.advance(timedelta(minutes=rng.randint(0, 15)))

    async def test_simultaneous_bans_apply_once(
        self, serial_store_factory: StoreFactory, serial_seed: Seeder, clock: FakeClock
    ) -> None:
        """Of two bans racing on one song, exactly one is applied."""
        admin = await serial_seed.admin()
        other_admin = await serial_seed.admin("other")
        song = await serial_seed.song()

        async def ban_as(actor_id: int) -> Decision:
            async with serial_store_factory() as store:
                service = BanService(store, clock=clock)
                return await service.ban_song(song, actor_id, "copyright", UNTIL)

        decisions = await asyncio.gather(ban_as(admin), ban_as(other_admin))

        assert sorted(decision.outcome for decision in decisions) == ["ItBanned", "Success"]
        assert Rejected(RejectionReason.IT_BANNED) in decisions
        assert await live_bans(serial_store_factory, BanKind.SONG, song, clock) == 1
        assert await serial_seed.is_flagged(BanKind.SONG, song) is True
