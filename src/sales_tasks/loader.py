"""
Initial data load.

Fetches the tasks.json document over HTTP, normalizes it, and falls back to
generated tasks when the document holds nothing usable. Transport errors and
non-2xx responses are terminal for the session: no retry, no fallback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

import httpx

from .normalizer import normalize_tasks
from .schema import Task
from .seed import generate_sales_tasks

logger = logging.getLogger(__name__)

Generator = Callable[[int], List[Task]]


@dataclass
class LoadResult:
    tasks: List[Task] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def load_initial_tasks(
    url: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    fallback_count: int = 50,
    generator: Generator = generate_sales_tasks,
    now: Optional[datetime] = None,
) -> LoadResult:
    """
    Fetch and normalize the initial task collection.

    - 2xx + JSON body: normalized records; if that is empty, `generator`
      output is used instead.
    - non-2xx: error "Failed to load tasks.json (<status>)".
    - transport or JSON decode failure: error with the exception message.
    - normalization or generator failure: same, so the caller always gets
      a terminal result.
    """
    owns_client = client is None
    client = client or httpx.AsyncClient()
    try:
        response = await client.get(url)
        if not response.is_success:
            return LoadResult(error=f"Failed to load tasks.json ({response.status_code})")
        data = response.json()
    except httpx.HTTPError as e:
        logger.error("Task document request failed url=%s: %s", url, e)
        return LoadResult(error=str(e) or "Failed to load tasks")
    except ValueError as e:
        logger.error("Task document is not valid JSON url=%s: %s", url, e)
        return LoadResult(error=str(e) or "Failed to load tasks")
    finally:
        if owns_client:
            await client.aclose()

    try:
        tasks = normalize_tasks(data, now=now)
        if not tasks:
            logger.info(
                "Task document had no usable records; generating %d sample tasks",
                fallback_count,
            )
            tasks = generator(fallback_count)
    except Exception as e:
        logger.exception("Building the initial task collection failed url=%s", url)
        return LoadResult(error=str(e) or "Failed to load tasks")
    return LoadResult(tasks=tasks)


class InitialLoader:
    """
    Runs the initial load once and feeds the result into a TaskStore.

    - run() fetches at most once per loader; later calls return the first
      result (or None while the first call is still in flight).
    - cancel() stops the result from being applied, for when the consumer
      goes away mid-flight.
    """

    def __init__(
        self,
        store,
        url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        fallback_count: int = 50,
        generator: Generator = generate_sales_tasks,
    ) -> None:
        self.store = store
        self.url = url
        self._client = client
        self._fallback_count = fallback_count
        self._generator = generator
        self._started = False
        self._cancelled = False
        self._result: Optional[LoadResult] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    async def run(self) -> Optional[LoadResult]:
        if self._started:
            logger.warning("Initial load already started; skipping duplicate run")
            return self._result
        self._started = True

        try:
            result = await load_initial_tasks(
                self.url,
                client=self._client,
                fallback_count=self._fallback_count,
                generator=self._generator,
            )
        except Exception as e:
            logger.exception("Initial load failed url=%s", self.url)
            result = LoadResult(error=str(e) or "Failed to load tasks")
        self._result = result

        if self._cancelled:
            logger.info("Initial load finished after cancel; result discarded")
            return result
        self.store.apply_load_result(result.tasks, result.error)
        return result
