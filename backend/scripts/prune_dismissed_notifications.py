"""Maintenance script that sweeps expired dismissals from the ledger.

Only records whose ``expires_at`` has passed are deleted; permanent
dismissals are never touched.

Usage:
    uv run python scripts/prune_dismissed_notifications.py

Environment overrides:
    DISMISSED_PRUNE_BATCH_SIZE=100
    DISMISSED_MAX_ROWS_PER_RUN=5000
    DISMISSED_MAX_ELAPSED_SECONDS=30
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from time import perf_counter

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from db.session import AsyncSessionMaker  # noqa: E402
from services.notifications.common import utcnow  # noqa: E402
from services.notifications.dismissals import (  # noqa: E402
    EXPIRED_SWEEP_BATCH_SIZE,
    delete_expired_dismissed_notifications,
)

PRUNE_BATCH_SIZE_ENV = "DISMISSED_PRUNE_BATCH_SIZE"
MAX_ROWS_PER_RUN_ENV = "DISMISSED_MAX_ROWS_PER_RUN"
MAX_ELAPSED_SECONDS_ENV = "DISMISSED_MAX_ELAPSED_SECONDS"
DEFAULT_MAX_ROWS_PER_RUN = 5000
DEFAULT_MAX_ELAPSED_SECONDS = 30
logger = logging.getLogger("prune_dismissed_notifications")


@dataclass(frozen=True)
class PruneConfig:
    prune_batch_size: int
    max_rows_per_run: int
    max_elapsed_seconds: int


@dataclass(frozen=True)
class PruneSummary:
    rows_deleted: int
    batches: int
    stop_reason: str


def _parse_positive_int(raw_value: str | None, *, default: int, label: str) -> int:
    if raw_value is None or raw_value.strip() == "":
        return default
    try:
        parsed = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{label} must be an integer") from exc
    if parsed <= 0:
        raise ValueError(f"{label} must be positive")
    return parsed


def load_config(environ: dict[str, str] | None = None) -> PruneConfig:
    env = os.environ if environ is None else environ
    return PruneConfig(
        prune_batch_size=_parse_positive_int(
            env.get(PRUNE_BATCH_SIZE_ENV),
            default=EXPIRED_SWEEP_BATCH_SIZE,
            label=PRUNE_BATCH_SIZE_ENV,
        ),
        max_rows_per_run=_parse_positive_int(
            env.get(MAX_ROWS_PER_RUN_ENV),
            default=DEFAULT_MAX_ROWS_PER_RUN,
            label=MAX_ROWS_PER_RUN_ENV,
        ),
        max_elapsed_seconds=_parse_positive_int(
            env.get(MAX_ELAPSED_SECONDS_ENV),
            default=DEFAULT_MAX_ELAPSED_SECONDS,
            label=MAX_ELAPSED_SECONDS_ENV,
        ),
    )


async def run(
    config: PruneConfig | None = None,
    *,
    session_maker: async_sessionmaker[AsyncSession] = AsyncSessionMaker,
    clock: Callable[[], datetime] = utcnow,
) -> PruneSummary:
    config = config or load_config()
    now = clock()

    started_at = perf_counter()
    rows_deleted = 0
    batches = 0
    stop_reason = "completed"

    async with session_maker() as session:
        while True:
            remaining_row_budget = config.max_rows_per_run - rows_deleted
            if remaining_row_budget <= 0:
                stop_reason = "max_rows"
                break
            elapsed_seconds = perf_counter() - started_at
            if elapsed_seconds >= config.max_elapsed_seconds:
                stop_reason = "max_elapsed_seconds"
                break

            deleted_rows = await delete_expired_dismissed_notifications(
                session,
                now=now,
                batch_size=min(config.prune_batch_size, remaining_row_budget),
            )
            if deleted_rows <= 0:
                break
            batches += 1
            rows_deleted += deleted_rows

    elapsed_ms = int((perf_counter() - started_at) * 1000)
    logger.info(
        "Expired dismissal sweep complete: rows_deleted=%d, batches=%d, "
        "elapsed_ms=%d, stop_reason=%s",
        rows_deleted,
        batches,
        elapsed_ms,
        stop_reason,
    )
    return PruneSummary(
        rows_deleted=rows_deleted,
        batches=batches,
        stop_reason=stop_reason,
    )


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    asyncio.run(run())


if __name__ == "__main__":
    main()
