"""arq worker: auspicious-date scans executed outside the HTTP request cycle."""
from __future__ import annotations

import asyncio
from datetime import date
import json
import logging
import threading
from typing import Any

from arq.connections import RedisSettings

from .config import settings
from .numerology_engine import compute_auspicious_dates

logger = logging.getLogger("numero.worker")

SCAN_FAILURE_MESSAGE = "Auspicious date scan failed"


async def _store_task_result(redis, job_id: str, payload: dict[str, Any]) -> None:
    task_key = f"arq_task:{job_id}"
    await redis.setex(task_key, settings.task_result_ttl_seconds, json.dumps(payload, ensure_ascii=False))


async def task_auspicious_dates(
    ctx: dict[str, Any],
    *,
    birth_date_1: str,
    birth_date_2: str,
    year: int,
    min_score: int,
    limit: int,
) -> dict[str, Any]:
    job_id: str = ctx["job_id"]
    redis = ctx["redis"]

    logger.info("Worker: task_auspicious_dates start | year=%s | job_id=%s", year, job_id)

    # The scan runs in a thread so job_timeout can interrupt it; the event stops it at the next day.
    cancel_event = threading.Event()
    try:
        dates = await asyncio.to_thread(
            compute_auspicious_dates,
            date.fromisoformat(birth_date_1),
            date.fromisoformat(birth_date_2),
            year,
            min_score=min_score,
            limit=limit,
            should_cancel=cancel_event.is_set,
        )
    except asyncio.CancelledError:
        cancel_event.set()
        logger.warning("Worker: task_auspicious_dates cancelled | job_id=%s", job_id)
        await _store_task_result(redis, job_id, {"status": "failed", "error": "Scan cancelled"})
        raise
    except Exception as exc:
        logger.error("Worker: task_auspicious_dates exception | job_id=%s | err=%s", job_id, exc)
        await _store_task_result(redis, job_id, {"status": "failed", "error": SCAN_FAILURE_MESSAGE})
        raise

    result = {
        "type": "auspicious_dates",
        "year": year,
        "dates": [item.to_dict() for item in dates],
    }
    await _store_task_result(redis, job_id, {"status": "done", "result": result})

    logger.info("Worker: task_auspicious_dates done | year=%s | kept=%s | job_id=%s", year, len(dates), job_id)
    return result


async def on_worker_startup(ctx: dict[str, Any]) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    logger.info("arq worker started")


async def on_worker_shutdown(ctx: dict[str, Any]) -> None:
    logger.info("arq worker shutting down")


class WorkerSettings:
    functions = [task_auspicious_dates]
    redis_settings = RedisSettings.from_dsn(settings.redis_url)
    on_startup = on_worker_startup
    on_shutdown = on_worker_shutdown
    max_tries = 1
    job_timeout = 120
