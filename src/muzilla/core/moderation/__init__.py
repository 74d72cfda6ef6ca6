"""Moderation core domain: ban policy, ban records and expiry."""

from muzilla.core.moderation import policy
from muzilla.core.moderation.ban_service import DEFAULT_LATEST_LIMIT, BanService
from muzilla.core.moderation.sweeper import DEFAULT_SWEEP_INTERVAL, BanSweeper
from muzilla.core.moderation.types import (
    OK,
    BanSummary,
    Decision,
    Ok,
    Rejected,
    RejectionReason,
    SweepReport,
)

__all__ = [
    "DEFAULT_LATEST_LIMIT",
    "DEFAULT_SWEEP_INTERVAL",
    "OK",
    "BanService",
    "BanSummary",
    "BanSweeper",
    "Decision",
    "Ok",
    "Rejected",
    "RejectionReason",
    "SweepReport",
    "policy",
]
