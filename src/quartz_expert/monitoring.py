"""Best-effort cognitive-load reporting to an external monitor."""

import logging
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass

import httpx

logger = logging.getLogger(__name__)

MAX_SAMPLES = 1000
MAX_PENDING_SENDS = 100
SUMMARY_WINDOW = 10
LATENCY_CEILING_MS = 3000.0

LOAD_WEIGHTS = {
    "context": 0.25,
    "latency": 0.25,
    "error": 0.30,
    "drift": 0.20,
}


@dataclass
class CognitiveMetrics:
    """One request's load sample."""

    agent_id: str
    timestamp: float
    processing_latency: float  # milliseconds
    context_window_usage: float
    error_rate: float
    semantic_consistency: float
    cognitive_load_index: float = 0.0


def cognitive_load(metric: CognitiveMetrics) -> float:
    """Weighted load index in [0, 1]."""
    latency_load = min(metric.processing_latency / LATENCY_CEILING_MS, 1.0)
    return (
        metric.context_window_usage * LOAD_WEIGHTS["context"]
        + latency_load * LOAD_WEIGHTS["latency"]
        + metric.error_rate * LOAD_WEIGHTS["error"]
        + (1 - metric.semantic_consistency) * LOAD_WEIGHTS["drift"]
    )


class MetricsMonitor:
    """Keeps recent samples locally and forwards them to the monitor service.

    Forwarding happens on a single background thread with a short timeout
    and a bounded backlog; failures are logged and never reach the caller.
    """

    def __init__(
        self,
        agent_id: str,
        url: str | None = None,
        timeout: float = 2.0,
        client: httpx.Client | None = None,
        max_pending: int = MAX_PENDING_SENDS,
    ):
        self.agent_id = agent_id
        self.url = url.rstrip("/") if url else None
        self._samples: deque[CognitiveMetrics] = deque(maxlen=MAX_SAMPLES)
        self._lock = threading.Lock()
        self._client = client or (httpx.Client(timeout=timeout) if self.url else None)
        self._executor = (
            ThreadPoolExecutor(max_workers=1, thread_name_prefix="metrics")
            if self._client
            else None
        )
        self._pending = threading.BoundedSemaphore(max_pending)

    def record(self, metric: CognitiveMetrics) -> CognitiveMetrics:
        """Store a sample, compute its load index and forward it.

        At most ``max_pending`` sends wait on the background thread; samples
        recorded beyond that are kept locally but not forwarded.
        """
        metric.cognitive_load_index = cognitive_load(metric)
        with self._lock:
            self._samples.append(metric)

        executor = self._executor
        if executor is None:
            return metric
        if not self._pending.acquire(blocking=False):
            logger.debug("Monitor backlog full, dropping metric for %s", self.agent_id)
            return metric
        try:
            executor.submit(self._send, metric)
        except RuntimeError:
            # closed concurrently
            self._pending.release()
        return metric

    def _send(self, metric: CognitiveMetrics) -> None:
        try:
            response = self._client.post(
                f"{self.url}/api/measure/{self.agent_id}",
                json={"metric": asdict(metric)},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug("Monitor service not available, keeping metric locally: %s", e)
        finally:
            self._pending.release()

    def summary(self) -> dict[str, float]:
        """Averages over the most recent samples."""
        with self._lock:
            recent = list(self._samples)[-SUMMARY_WINDOW:]

        if not recent:
            return {
                "cognitive_load_index": 0.0,
                "average_latency": 0.0,
                "semantic_consistency": 1.0,
                "error_rate": 0.0,
            }

        count = len(recent)
        return {
            "cognitive_load_index": sum(m.cognitive_load_index for m in recent) / count,
            "average_latency": sum(m.processing_latency for m in recent) / count,
            "semantic_consistency": sum(m.semantic_consistency for m in recent) / count,
            "error_rate": sum(m.error_rate for m in recent) / count,
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    def close(self) -> None:
        """Drop queued sends and wait only for the one in flight."""
        executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True, cancel_futures=True)
        if self._client is not None:
            self._client.close()
