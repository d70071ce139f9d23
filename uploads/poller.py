import json
import logging
import threading
import time
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Deque, List, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 5000
NO_QUEUED_JOBS = "No queued jobs"

OUTCOME_PROCESSED = "processed"
OUTCOME_IDLE = "idle"
OUTCOME_FAILED = "failed"


def parse_interval_ms(raw, default: int = DEFAULT_INTERVAL_MS) -> int:
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        value = 0
    if value <= 0:
        logger.warning("Invalid processor interval %r, using default %sms", raw, default)
        return default
    return value


@dataclass
class PollerStats:
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    calls: int = 0
    processed: int = 0
    idle: int = 0
    failed: int = 0
    consecutive_failures: int = 0
    max_consecutive_failures: int = 0
    last_call_at: Optional[datetime] = None
    call_times_ms: Deque[float] = field(default_factory=lambda: deque(maxlen=100))

    def record(self, outcome: str, elapsed_ms: float) -> None:
        self.calls += 1
        self.last_call_at = datetime.now(timezone.utc)
        self.call_times_ms.append(elapsed_ms)
        if outcome == OUTCOME_FAILED:
            self.failed += 1
            self.consecutive_failures += 1
            self.max_consecutive_failures = max(self.max_consecutive_failures, self.consecutive_failures)
            return
        self.consecutive_failures = 0
        if outcome == OUTCOME_PROCESSED:
            self.processed += 1
        else:
            self.idle += 1

    @property
    def average_call_ms(self) -> float:
        if not self.call_times_ms:
            return 0.0
        return sum(self.call_times_ms) / len(self.call_times_ms)


class UploadQueuePoller:
    """Calls the queue processor endpoint on a fixed interval until stopped.

    Each tick issues ``concurrency`` calls and waits for all of them. Failed
    calls are logged and counted; they never stop the loop.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        concurrency: int = 1,
        stats_interval_ms: int = 30000,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.api_key = api_key
        self.interval_ms = interval_ms
        self.concurrency = max(1, concurrency)
        self.stats_interval_ms = stats_interval_ms
        self.timeout = timeout
        self.session = session or requests.Session()
        self.stats = PollerStats()
        self.stop_event = threading.Event()
        self._stats_lock = threading.Lock()
        self._last_stats_log = time.monotonic()

    def stop(self, *args) -> None:
        if not self.stop_event.is_set():
            logger.info("Shutting down upload queue poller...")
        self.stop_event.set()

    def call_once(self) -> str:
        """POST to the processor endpoint once and classify the answer."""
        start = time.perf_counter()
        outcome = OUTCOME_FAILED
        try:
            response = self.session.post(
                self.url,
                headers={"x-api-key": self.api_key},
                timeout=self.timeout,
            )
            outcome = self._classify(response, (time.perf_counter() - start) * 1000)
        except requests.RequestException as exc:
            logger.error(
                "Network error calling %s (%.0fms): %s",
                self.url,
                (time.perf_counter() - start) * 1000,
                exc,
            )
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            with self._stats_lock:
                self.stats.record(outcome, elapsed_ms)
        return outcome

    def _classify(self, response: requests.Response, elapsed_ms: float) -> str:
        text = response.text or ""
        if not response.ok:
            logger.error(
                "Processor returned HTTP %s (%.0fms): %s",
                response.status_code,
                elapsed_ms,
                text[:500],
            )
            return OUTCOME_FAILED

        stripped = text.lstrip()
        if stripped.startswith("<!DOCTYPE html") or stripped.startswith("<html"):
            logger.error("Processor returned HTML instead of JSON (%.0fms): %s", elapsed_ms, stripped[:500])
            return OUTCOME_FAILED

        try:
            data = json.loads(text)
        except ValueError as exc:
            logger.error("Could not parse processor response (%.0fms): %s; body=%s", elapsed_ms, exc, text[:500])
            return OUTCOME_FAILED

        if isinstance(data, dict) and data.get("message") == NO_QUEUED_JOBS:
            logger.debug("No jobs available (%.0fms)", elapsed_ms)
            return OUTCOME_IDLE

        job = data.get("job", {}) if isinstance(data, dict) else {}
        logger.info(
            "Processed job %s status=%s webhook_status=%s (%.0fms)",
            job.get("id"),
            job.get("status"),
            data.get("webhook_status") if isinstance(data, dict) else None,
            elapsed_ms,
        )
        return OUTCOME_PROCESSED

    def tick(self) -> List[str]:
        if self.concurrency == 1:
            return [self.call_once()]
        with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            futures = [executor.submit(self.call_once) for _ in range(self.concurrency)]
            return [future.result() for future in futures]

    def log_stats(self) -> None:
        stats = self.stats
        uptime = int((datetime.now(timezone.utc) - stats.started_at).total_seconds())
        logger.info(
            "Poller stats: uptime=%sh%sm%ss calls=%s processed=%s idle=%s failed=%s "
            "consecutive_failures=%s max_consecutive_failures=%s avg_call=%.2fms interval=%sms "
            "concurrency=%s url=%s",
            uptime // 3600,
            (uptime % 3600) // 60,
            uptime % 60,
            stats.calls,
            stats.processed,
            stats.idle,
            stats.failed,
            stats.consecutive_failures,
            stats.max_consecutive_failures,
            stats.average_call_ms,
            self.interval_ms,
            self.concurrency,
            self.url,
        )

    def _maybe_log_stats(self) -> None:
        now = time.monotonic()
        if (now - self._last_stats_log) * 1000 >= self.stats_interval_ms:
            self.log_stats()
            self._last_stats_log = now

    def run(self, max_ticks: Optional[int] = None) -> PollerStats:
        logger.info(
            "Starting upload queue poller url=%s interval=%sms concurrency=%s",
            self.url,
            self.interval_ms,
            self.concurrency,
        )
        ticks = 0
        while not self.stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("Upload queue poller tick failed")
            ticks += 1
            self._maybe_log_stats()
            if max_ticks is not None and ticks >= max_ticks:
                break
            if self.stop_event.wait(self.interval_ms / 1000.0):
                break
        self.log_stats()
        return self.stats
