"""Resilient client for the external analysis tool.

Every call goes through the same state machine:

    breaker open?      -> None, no attempt
    tool unavailable?  -> None, no attempt
    session cache hit? -> cached response, no attempt
    attempt, retry with exponential backoff on timeout / failure
        success   -> breaker reset, response cached
        not found -> client disabled for the run, single warning
        exhausted -> breaker failure recorded

All mutable state (breaker counter, cache, availability, statistics) lives on
the client instance and is lock-guarded, because ``ask_batch`` completes
calls on several worker threads at once.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from threading import Lock
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..exceptions import ExternalToolError, ExternalToolNotFoundError
from ..logging_config import get_logger
from .transport import SubprocessTransport, Transport

logger = get_logger(__name__)

CACHE_KEY_CHARS = 200
AVAILABILITY_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to retry and how long to wait between attempts."""

    max_retries: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if self.multiplier < 1:
            raise ValueError("multiplier must be at least 1")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay(self, retry: int) -> float:
        """Wait before the ``retry``-th retry (0-based): 1s, 2s, 4s, ..."""
        return self.base_delay * (self.multiplier**retry)


class CircuitBreaker:
    """Consecutive-failure counter that opens for good at ``threshold``.

    There is no half-open state: a run is a short-lived CLI invocation, so
    once the tool has failed ``threshold`` calls in a row it stays off.
    """

    def __init__(self, threshold: int = 3):
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        self.threshold = threshold
        self._failures = 0
        self._open = False
        self._lock = Lock()

    @property
    def is_open(self) -> bool:
        with self._lock:
            return self._open

    @property
    def consecutive_failures(self) -> int:
        with self._lock:
            return self._failures

    def record_success(self) -> None:
        with self._lock:
            self._failures = 0

    def record_failure(self) -> bool:
        """Count a failure. Returns True only on the call that opens the breaker."""
        with self._lock:
            self._failures += 1
            if not self._open and self._failures >= self.threshold:
                self._open = True
                return True
            return False

    def reset(self) -> None:
        with self._lock:
            self._failures = 0
            self._open = False


class SessionCache:
    """Run-scoped memo of responses keyed by the first 200 prompt characters."""

    def __init__(self, key_chars: int = CACHE_KEY_CHARS):
        self.key_chars = key_chars
        self._entries: Dict[str, str] = {}
        self._lock = Lock()

    def key(self, prompt: str) -> str:
        return prompt[: self.key_chars]

    def get(self, prompt: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(self.key(prompt))

    def put(self, prompt: str, response: str) -> None:
        with self._lock:
            self._entries[self.key(prompt)] = response

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@dataclass
class ClientStats:
    attempts: int = 0
    successes: int = 0
    failures: int = 0
    retries: int = 0
    cache_hits: int = 0
    skipped: int = 0


class ExternalAnalysisClient:
    """Retrying, caching, circuit-breaking wrapper around a transport.

    Args:
        transport: ``(prompt, timeout) -> str`` callable. Defaults to a
            ``SubprocessTransport`` for ``command``.
        command: External binary, used when no transport is given.
        timeout: Default per-attempt timeout in seconds.
        retry_policy: Retry count and backoff schedule.
        breaker_threshold: Consecutive exhausted calls before the breaker opens.
        concurrency: Maximum in-flight calls for ``ask_batch``.
        sleep: Backoff sleep function, replaceable in tests.
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        command: str = "copilot",
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        breaker_threshold: int = 3,
        concurrency: int = 3,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        self.command = command
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self.concurrency = concurrency
        self.breaker = CircuitBreaker(breaker_threshold)
        self.cache = SessionCache()

        self._transport: Transport = transport or SubprocessTransport(command)
        self._sleep = sleep
        self._lock = Lock()
        self._stats = ClientStats()
        self._available: Optional[bool] = None  # None = not yet known
        self._warned_missing = False
        self._warned_open = False

    @classmethod
    def from_config(cls, config: Any, transport: Optional[Transport] = None) -> ExternalAnalysisClient:
        """Build a client from a ``ReviewConfig``."""
        return cls(
            transport=transport,
            command=config.external_command,
            timeout=config.external_timeout_seconds,
            retry_policy=RetryPolicy(
                max_retries=config.retry_attempts,
                base_delay=config.retry_base_delay_seconds,
                multiplier=config.retry_multiplier,
            ),
            breaker_threshold=config.breaker_threshold,
            concurrency=config.batch_concurrency,
        )

    # ── State ──────────────────────────────────────────────────────

    @property
    def disabled(self) -> bool:
        """True once the tool was found missing or the breaker opened."""
        with self._lock:
            missing = self._available is False
        return missing or self.breaker.is_open

    def _bump(self, field_name: str, amount: int = 1) -> None:
        with self._lock:
            setattr(self._stats, field_name, getattr(self._stats, field_name) + amount)

    def _mark_missing(self, error: ExternalToolError) -> None:
        with self._lock:
            self._available = False
            first = not self._warned_missing
            self._warned_missing = True
        if first:
            logger.warning(
                "External analysis tool '%s' not found; continuing with local analysis only (%s)",
                self.command,
                error.reason,
            )

    def _record_exhausted(self, error: Optional[BaseException]) -> None:
        self._bump("failures")
        opened = self.breaker.record_failure()
        logger.debug("External call gave up: %s", error)
        if opened:
            with self._lock:
                first = not self._warned_open
                self._warned_open = True
            if first:
                logger.warning(
                    "External analysis disabled after %d consecutive failures",
                    self.breaker.threshold,
                )

    # ── Calls ──────────────────────────────────────────────────────

    def ask(
        self,
        prompt: str,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ) -> Optional[str]:
        """Send ``prompt`` to the tool. Returns the trimmed response or None.

        Never raises for tool failures: unavailability, timeouts, non-zero
        exits and an open breaker all come back as None.
        """
        if self.disabled:
            self._bump("skipped")
            return None

        cached = self.cache.get(prompt)
        if cached is not None:
            self._bump("cache_hits")
            return cached

        call_timeout = timeout if timeout is not None else self.timeout
        retries = self.retry_policy.max_retries if max_retries is None else max(0, max_retries)
        last_error: Optional[BaseException] = None

        for attempt in range(retries + 1):
            if attempt > 0:
                self._bump("retries")
                self._sleep(self.retry_policy.delay(attempt - 1))
                if self.disabled:
                    self._bump("skipped")
                    return None

            self._bump("attempts")
            try:
                raw = self._transport(prompt, call_timeout)
            except ExternalToolNotFoundError as e:
                self._mark_missing(e)
                return None
            except ExternalToolError as e:
                last_error = e
                logger.debug("External attempt %d/%d failed: %s", attempt + 1, retries + 1, e)
                continue
            except Exception as e:
                last_error = e
                logger.debug("External attempt %d/%d raised: %s", attempt + 1, retries + 1, e)
                continue

            response = (raw or "").strip()
            self.breaker.record_success()
            self.cache.put(prompt, response)
            with self._lock:
                self._available = True
                self._stats.successes += 1
            return response

        self._record_exhausted(last_error)
        return None

    def ask_batch(
        self,
        items: Sequence[Tuple[str, str]],
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ) -> Dict[str, Optional[str]]:
        """Run ``(key, prompt)`` pairs with at most ``concurrency`` in flight.

        Every key maps to a response or None; one failing prompt never fails
        the batch. The result preserves input key order.
        """
        if not items:
            return {}

        results: Dict[str, Optional[str]] = {key: None for key, _ in items}
        workers = min(self.concurrency, len(items))

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures: List[Tuple[str, Any]] = [
                (key, executor.submit(self.ask, prompt, timeout, max_retries))
                for key, prompt in items
            ]
            for key, future in futures:
                try:
                    results[key] = future.result()
                except Exception as e:
                    logger.warning("External batch item %s failed: %s", key, e)
                    results[key] = None

        return results

    def is_available(self) -> bool:
        """Ask the tool for ``--version`` once; the answer is remembered.

        The version check does not touch the breaker. Injected transports without a
        ``version`` method are assumed available until a call says otherwise.
        """
        with self._lock:
            known = self._available
        if known is not None:
            return known

        version = getattr(self._transport, "version", None)
        if version is None:
            return not self.disabled

        try:
            version(timeout=AVAILABILITY_TIMEOUT_SECONDS)
        except ExternalToolNotFoundError as e:
            self._mark_missing(e)
            return False
        except ExternalToolError as e:
            logger.debug("Version check failed: %s", e)
            return False

        with self._lock:
            self._available = True
        return True

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            data: Dict[str, Any] = asdict(self._stats)
            data["available"] = self._available
        data["breaker_open"] = self.breaker.is_open
        data["consecutive_failures"] = self.breaker.consecutive_failures
        data["cached"] = len(self.cache)
        return data

    def reset(self) -> None:
        """Forget cache, breaker, availability and statistics."""
        self.cache.clear()
        self.breaker.reset()
        with self._lock:
            self._stats = ClientStats()
            self._available = None
            self._warned_missing = False
            self._warned_open = False
