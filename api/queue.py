"""
Single-flight request queue.

Every outbound call becomes a QueuedJob. One dispatch loop per queue drains
the jobs strictly one at a time: wait for the rate limiter, send, then either
resolve the job, re-queue it at the head (429 or retryable failure), or
reject it. Re-queued jobs always run before jobs that arrived after them.

Job states::

    PENDING -> DISPATCHING -> SUCCEEDED
                           -> RETRY_SCHEDULED -> PENDING
                           -> FAILED
"""
import asyncio
import uuid
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Mapping, Optional

from api.cache import TTLCache
from api.clock import Clock
from api.endpoints import EndpointDescriptor, build_url
from api.rate_limiter import DEFAULT_RETRY_AFTER, RateLimiter, parse_retry_after
from api.retry import RetryPolicy
from api.transport import TransportResponse
from exceptions import APIException, ResponseParseException, TransportException
from utils.logging import get_contextual_logger

logger = get_contextual_logger(f'{__name__}.RequestQueue')

LOG_TRUNCATE = 1200


class JobState(Enum):
    PENDING = "pending"
    DISPATCHING = "dispatching"
    RETRY_SCHEDULED = "retry_scheduled"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(eq=False)
class QueuedJob:
    """One pending call: its request shape, retry count and result future."""

    endpoint: EndpointDescriptor
    future: asyncio.Future
    force: bool = False
    attempt_count: int = 0
    state: JobState = JobState.PENDING
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    @property
    def cache_key(self) -> str:
        return self.endpoint.cache_key

    @property
    def done(self) -> bool:
        return self.state in (JobState.SUCCEEDED, JobState.FAILED)

    def settle(self, result: Any = None, error: Optional[BaseException] = None) -> None:
        """Resolve or reject the caller. A future the caller already abandoned is left alone."""
        self.state = JobState.FAILED if error is not None else JobState.SUCCEEDED
        if self.future.done():
            return
        if error is not None:
            self.future.set_exception(error)
        else:
            self.future.set_result(result)


class RequestQueue:
    """
    FIFO of jobs with head re-insertion and exactly one job in flight.

    The dispatch loop runs as an asyncio task started by submit() whenever
    the queue is idle, and stops once the queue is empty.
    """

    def __init__(
        self,
        transport: Any,
        base_url: str,
        cache: TTLCache,
        rate_limiter: RateLimiter,
        retry_policy: RetryPolicy,
        clock: Clock,
        headers: Optional[Mapping[str, str]] = None,
        default_retry_after: float = DEFAULT_RETRY_AFTER
    ):
        """
        Initialize request queue.

        Args:
            transport: Object with async send(method, url, headers, body)
            base_url: API root that endpoint paths are joined to
            cache: Cache populated by successful jobs
            rate_limiter: Dispatch spacing and cool-down state
            retry_policy: Retry budget and backoff
            clock: Time source for all waits
            headers: Headers sent with every request
            default_retry_after: Cool-down used when a 429 omits Retry-After
        """
        self._transport = transport
        self._base_url = base_url
        self._cache = cache
        self._rate_limiter = rate_limiter
        self._retry_policy = retry_policy
        self._clock = clock
        self._headers = dict(headers or {})
        self._default_retry_after = default_retry_after

        self._pending: Deque[QueuedJob] = deque()
        self._task: Optional[asyncio.Task] = None
        self.processing = False

    def __len__(self) -> int:
        return len(self._pending)

    def submit(self, endpoint: EndpointDescriptor, force: bool = False) -> asyncio.Future:
        """
        Enqueue a request at the tail.

        Args:
            endpoint: Request shape
            force: Carried for logging; cache reads happen before submit()

        Returns:
            Future settled with the parsed JSON or the final error
        """
        loop = asyncio.get_running_loop()
        job = QueuedJob(endpoint=endpoint, force=force, future=loop.create_future())
        self._pending.append(job)
        logger.debug(f"Queued {endpoint}", job_id=job.job_id, queue_depth=len(self._pending))

        if not self.processing:
            self.processing = True
            self._task = loop.create_task(self._process())

        return job.future

    async def join(self) -> None:
        """Wait until the dispatch loop has drained the queue."""
        while self._task is not None and not self._task.done():
            await asyncio.shield(self._task)

    async def _process(self) -> None:
        try:
            while self._pending:
                await self._rate_limiter.wait(self._clock)
                job = self._pending.popleft()
                try:
                    await self._dispatch(job)
                except Exception as e:
                    logger.error(f"Dispatch of {job.endpoint} failed unexpectedly", error=e, job_id=job.job_id)
                    if not job.done:
                        job.settle(error=e)
        finally:
            self.processing = False

    def _requeue(self, job: QueuedJob) -> None:
        job.state = JobState.PENDING
        self._pending.appendleft(job)

    async def _dispatch(self, job: QueuedJob) -> None:
        job.state = JobState.DISPATCHING
        url = build_url(self._base_url, job.endpoint.path)
        headers = {**self._headers, **job.endpoint.header_dict}
        dispatched_at = self._clock.now()

        logger.debug(f"{job.endpoint.method}: {job.endpoint.path}", job_id=job.job_id, attempt=job.attempt_count)

        try:
            response = await self._transport.send(job.endpoint.method, url, headers, job.endpoint.body)
        except TransportException as e:
            await self._retry_or_fail(job, e)
            return
        except Exception as e:
            logger.error(f"Unexpected transport failure for {job.endpoint}", error=e, job_id=job.job_id)
            job.settle(error=e)
            return

        if response.status == 429:
            await self._throttle(job, response)
            return

        if not response.ok:
            error = APIException.from_response(response.status, response.text)
            await self._retry_or_fail(job, error)
            return

        try:
            data = response.json()
        except (ValueError, RecursionError) as e:
            logger.error(f"Malformed response body for {job.endpoint}", job_id=job.job_id, status=response.status)
            job.settle(error=ResponseParseException(
                f"Malformed JSON in response to {job.endpoint}: {e}",
                status=response.status,
                body=response.text
            ))
            return

        self._rate_limiter.record_dispatch(dispatched_at)
        if data is not None:
            self._cache.set(job.cache_key, data)

        # Truncate response for logging
        data_str = str(data)
        if len(data_str) > LOG_TRUNCATE:
            data_str = data_str[:LOG_TRUNCATE] + "..."
        logger.debug(f"Response: {data_str}", job_id=job.job_id, status=response.status)

        job.settle(result=data)

    async def _throttle(self, job: QueuedJob, response: TransportResponse) -> None:
        """HTTP 429: wait out the server cool-down, then retry at the head. No budget used."""
        retry_after = parse_retry_after(response.headers.get('Retry-After'), self._default_retry_after)
        self._rate_limiter.enter_cooldown(self._clock.now(), retry_after)
        job.state = JobState.RETRY_SCHEDULED

        logger.warning(
            f"Throttled on {job.endpoint}, retrying in {retry_after}s",
            job_id=job.job_id,
            delay=retry_after
        )
        await self._clock.sleep(retry_after)
        self._requeue(job)

    async def _retry_or_fail(self, job: QueuedJob, error: APIException) -> None:
        if not self._retry_policy.should_retry(job.attempt_count):
            logger.error(
                f"Giving up on {job.endpoint} after {job.attempt_count} retries: {error}",
                job_id=job.job_id,
                status=error.status
            )
            job.settle(error=error)
            return

        job.attempt_count += 1
        delay = self._retry_policy.delay_for(job.attempt_count)
        job.state = JobState.RETRY_SCHEDULED

        logger.warning(
            f"Request {job.endpoint} failed ({error}), retry {job.attempt_count}/"
            f"{self._retry_policy.max_retries} in {delay}s",
            job_id=job.job_id,
            attempt=job.attempt_count,
            delay=delay
        )
        await self._clock.sleep(delay)
        self._requeue(job)
