"""Tests for the expired-dismissal sweep script."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from scripts import prune_dismissed_notifications as prune_script
from services.notifications import dismiss_notification_for_user, load_dismissal_records

NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


def test_parse_positive_int_rejects_zero() -> None:
    with pytest.raises(ValueError):
        prune_script._parse_positive_int(
            "0",
            default=123,
            label="DISMISSED_MAX_ROWS_PER_RUN",
        )


def test_load_config_uses_defaults_for_missing_values() -> None:
    config = prune_script.load_config({})

    assert config.prune_batch_size == prune_script.EXPIRED_SWEEP_BATCH_SIZE
    assert config.max_rows_per_run == prune_script.DEFAULT_MAX_ROWS_PER_RUN
    assert config.max_elapsed_seconds == prune_script.DEFAULT_MAX_ELAPSED_SECONDS


def test_load_config_reads_overrides() -> None:
    config = prune_script.load_config(
        {
            "DISMISSED_PRUNE_BATCH_SIZE": "10",
            "DISMISSED_MAX_ROWS_PER_RUN": "25",
            "DISMISSED_MAX_ELAPSED_SECONDS": " ",
        }
    )

    assert config.prune_batch_size == 10
    assert config.max_rows_per_run == 25
    assert config.max_elapsed_seconds == prune_script.DEFAULT_MAX_ELAPSED_SECONDS


def test_load_config_rejects_non_integer_values() -> None:
    with pytest.raises(ValueError, match="DISMISSED_PRUNE_BATCH_SIZE must be an integer"):
        prune_script.load_config({"DISMISSED_PRUNE_BATCH_SIZE": "many"})


async def _seed(db_session: AsyncSession, *, expired: int, active: int, permanent: int) -> None:
    dismissed_at = NOW - timedelta(hours=2)
    for index in range(expired):
        await dismiss_notification_for_user(
            db_session,
            "user-1",
            notification_id=f"expired-{index}",
            expires_in_seconds=60,
            now=dismissed_at,
        )
    for index in range(active):
        await dismiss_notification_for_user(
            db_session,
            "user-1",
            notification_id=f"active-{index}",
            expires_in_seconds=86_400,
            now=dismissed_at,
        )
    for index in range(permanent):
        await dismiss_notification_for_user(
            db_session,
            "user-2",
            notification_id=f"permanent-{index}",
            now=dismissed_at,
        )


@pytest.mark.asyncio
async def test_run_deletes_only_expired_dismissals(
    db_session: AsyncSession,
    session_maker,
) -> None:
    await _seed(db_session, expired=5, active=2, permanent=3)

    summary = await prune_script.run(
        prune_script.PruneConfig(
            prune_batch_size=2,
            max_rows_per_run=100,
            max_elapsed_seconds=30,
        ),
        session_maker=session_maker,
        clock=lambda: NOW,
    )

    assert summary.rows_deleted == 5
    assert summary.batches == 3
    assert summary.stop_reason == "completed"

    user_1 = await load_dismissal_records(db_session, "user-1")
    user_2 = await load_dismissal_records(db_session, "user-2")
    assert set(user_1) == {"active-0", "active-1"}
    assert set(user_2) == {"permanent-0", "permanent-1", "permanent-2"}


@pytest.mark.asyncio
async def test_run_stops_at_row_budget(
    db_session: AsyncSession,
    session_maker,
) -> None:
    await _seed(db_session, expired=5, active=0, permanent=1)

    summary = await prune_script.run(
        prune_script.PruneConfig(
            prune_batch_size=2,
            max_rows_per_run=3,
            max_elapsed_seconds=30,
        ),
        session_maker=session_maker,
        clock=lambda: NOW,
    )

    assert summary.rows_deleted == 3
    assert summary.stop_reason == "max_rows"

    remaining = await load_dismissal_records(db_session, "user-1")
    assert len(remaining) == 2
    assert set(await load_dismissal_records(db_session, "user-2")) == {"permanent-0"}
