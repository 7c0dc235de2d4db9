"""
Queued execution of transformers.

A TransformationJob carries an explicit, versioned JobPayload instead of a
live transformer object, so that it can cross any transport that moves JSON.
"""

import logging
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Dict, Literal, Optional, Protocol, Union, runtime_checkable

from pydantic import BaseModel, Field

from transmute.config import Config
from transmute.core.events import (
    EventDispatcher,
    TransformationCompleted,
    TransformationEvent,
    TransformationFailed,
    TransformationStarted,
)
from transmute.core.media import Media, QueueableMedia
from transmute.core.results import TransformerResult
from transmute.core.transformers.base import BaseTransformer, TransformContent
from transmute.core.transformers.pipeline import TransformationPipeline
from transmute.core.transformers.registry import TransformerRegistry, registry

JOB_PAYLOAD_VERSION = 1


class TransformerReference(BaseModel):
    """Import path plus field values: enough to rebuild a transformer."""

    class_path: str
    config: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_transformer(cls, transformer: BaseTransformer) -> "TransformerReference":
        return cls(
            class_path=transformer.identity,
            config=transformer.model_dump(mode="json", exclude_unset=True),
        )

    def resolve(self, transformers: Optional[TransformerRegistry] = None) -> BaseTransformer:
        return (transformers or registry).create_transformer(self.class_path, self.config)


class JobPayload(BaseModel):
    version: Literal[1] = JOB_PAYLOAD_VERSION
    transformer: TransformerReference
    content: Union[QueueableMedia, str] = ""
    context: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def build(
        cls,
        transformer: BaseTransformer,
        content: Optional[TransformContent],
        context: Optional[Dict[str, Any]] = None,
    ) -> "JobPayload":
        if isinstance(content, Media):
            queued_content: Union[QueueableMedia, str] = QueueableMedia.from_media(content)
        else:
            queued_content = content or ""
        return cls(
            transformer=TransformerReference.from_transformer(transformer),
            content=queued_content,
            context=context or {},
        )

    def resolve_content(self) -> TransformContent:
        if isinstance(self.content, QueueableMedia):
            return self.content.to_media()
        return self.content

    def content_length(self) -> int:
        if isinstance(self.content, QueueableMedia):
            return len(self.content.base64)
        return len(self.content)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, raw: str) -> "JobPayload":
        return cls.model_validate_json(raw)


class AttemptEvents(EventDispatcher):
    """
    Event gate for a single queued attempt.

    Once the queue abandons the attempt, whatever the attempt still emits is
    dropped, so the job's own Failed event stays the last word on it.
    """

    def __init__(self, events: EventDispatcher):
        super().__init__()
        self.events = events
        self.abandoned = threading.Event()
        self.finished = False
        self._gate = threading.Lock()

    def dispatch(self, event: TransformationEvent) -> None:
        with self._gate:
            if self.abandoned.is_set():
                logging.debug(f"Dropping {type(event).__name__} from an abandoned attempt")
                return
            if isinstance(event, (TransformationCompleted, TransformationFailed)):
                self.finished = True
            self.events.dispatch(event)

    def abandon(self, event: TransformationEvent) -> bool:
        """Abandon the attempt and emit event; False if it already finished."""
        with self._gate:
            if self.finished:
                return False
            self.abandoned.set()
            self.events.dispatch(event)
            return True


class AttemptPipeline(TransformationPipeline):
    """Pipeline for one queued attempt that stops calling out once abandoned."""

    def __init__(self, pipeline: TransformationPipeline, abandoned: threading.Event):
        super().__init__(
            pipeline.config,
            cache=pipeline.cache,
            llm=pipeline.llm,
            schema_service=pipeline.schema_service,
            before_hooks=pipeline.before_hooks,
            after_hooks=pipeline.after_hooks,
        )
        self.abandoned = abandoned

    def perform_transformation(
        self,
        transformer: BaseTransformer,
        content: TransformContent,
        context: Optional[Dict[str, Any]] = None,
    ) -> TransformerResult:
        if self.abandoned.is_set():
            return TransformerResult.failed(
                ["Attempt abandoned before the provider was called"],
                self.build_metadata(transformer, context),
            )
        return super().perform_transformation(transformer, content, context)

    def put_cached(self, cache_key: str, result: TransformerResult) -> None:
        if self.abandoned.is_set():
            logging.debug(f"Not caching {cache_key} from an abandoned attempt")
            return
        super().put_cached(cache_key, result)


class TransformationJob:
    """One queued transformation with its retry policy."""

    def __init__(
        self,
        payload: JobPayload,
        tries: int = 3,
        timeout: int = 60,
        queue: Optional[str] = None,
        connection: Optional[str] = None,
    ):
        self.payload = payload
        self.tries = tries
        self.timeout = timeout
        self.queue = queue
        self.connection = connection
        self.job_id = uuid.uuid4().hex

    @classmethod
    def create(
        cls,
        transformer: BaseTransformer,
        content: Optional[TransformContent],
        context: Optional[Dict[str, Any]] = None,
        config: Optional[Config] = None,
    ) -> "TransformationJob":
        settings = (config or Config.load_from_env()).transformation
        return cls(
            JobPayload.build(transformer, content, context),
            tries=settings.tries,
            timeout=settings.timeout,
            queue=settings.async_queue,
            connection=settings.queue_connection,
        )

    @property
    def context(self) -> Dict[str, Any]:
        return self.payload.context

    def handle(
        self,
        pipeline: Optional[TransformationPipeline] = None,
        events: Optional[EventDispatcher] = None,
        transformers: Optional[TransformerRegistry] = None,
        abandoned: Optional[threading.Event] = None,
    ) -> TransformerResult:
        """
        Run one attempt: emits TransformationStarted, then TransformationCompleted
        with the result, or TransformationFailed before re-raising.

        Once abandoned is set the attempt neither calls the provider nor writes
        the cache.
        """
        events = events or EventDispatcher()
        content = self.payload.content

        events.dispatch(TransformationStarted(content=content, context=self.context))
        try:
            transformer = self.payload.transformer.resolve(transformers)
            if abandoned is not None:
                transformer.bind(AttemptPipeline(pipeline or transformer.pipeline, abandoned))
            elif pipeline is not None:
                transformer.bind(pipeline)

            result = transformer.execute(self.payload.resolve_content(), context=self.context)

            events.dispatch(TransformationCompleted(result=result, context=self.context))
            return result
        except Exception as exception:
            events.dispatch(
                TransformationFailed(exception=exception, content=content, context=self.context)
            )
            raise

    def failed(self, exception: BaseException, events: Optional[EventDispatcher] = None) -> None:
        """Called once every attempt has failed."""
        logging.error(
            f"TransformationJob {self.job_id} failed after {self.tries} attempts: {exception} "
            f"(transformer={self.payload.transformer.class_path}, "
            f"content_length={self.payload.content_length()}, context={self.context})"
        )
        (events or EventDispatcher()).dispatch(
            TransformationFailed(
                exception=exception, content=self.payload.content, context=self.context
            )
        )


class PendingDispatch:
    """Handle returned for queued work; the caller decides whether to wait."""

    def __init__(self, job: TransformationJob, future: Optional[Future] = None):
        self.job = job
        self.future = future

    @property
    def job_id(self) -> str:
        return self.job.job_id

    @property
    def queue(self) -> Optional[str]:
        return self.job.queue

    def done(self) -> bool:
        return self.future is not None and self.future.done()

    def result(self, timeout: Optional[float] = None) -> TransformerResult:
        """Block until the job finishes; raises the job's final error."""
        if self.future is None:
            raise RuntimeError(f"Job {self.job_id} was not dispatched to an in-process queue")
        return self.future.result(timeout=timeout)


@runtime_checkable
class QueueTransport(Protocol):
    def push(self, job: TransformationJob) -> PendingDispatch: ...


class ThreadPoolQueue:
    """
    In-process queue running jobs on worker threads.

    Each attempt may run for at most job.timeout seconds. A timed out attempt
    counts as a failed try: the queue emits its TransformationFailed and
    cancels it. An attempt that is already running finishes in the background
    but its later events and cache writes are dropped. After job.tries failed
    attempts job.failed() is called and the last error is re-raised through
    the PendingDispatch.
    """

    def __init__(
        self,
        pipeline: Optional[TransformationPipeline] = None,
        events: Optional[EventDispatcher] = None,
        transformers: Optional[TransformerRegistry] = None,
        max_workers: int = 4,
    ):
        self.pipeline = pipeline
        self.events = events or EventDispatcher()
        self.transformers = transformers
        self._workers = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="transmute-job"
        )
        self._attempts = ThreadPoolExecutor(
            max_workers=max_workers * 2, thread_name_prefix="transmute-attempt"
        )
        self._lock = threading.Lock()
        self._pending: Dict[str, PendingDispatch] = {}

    def push(self, job: TransformationJob) -> PendingDispatch:
        # what runs is what a real transport would deliver
        job.payload = JobPayload.from_json(job.payload.to_json())

        future = self._workers.submit(self._run, job)
        pending = PendingDispatch(job, future)
        with self._lock:
            self._pending[job.job_id] = pending
        future.add_done_callback(lambda _: self._forget(job.job_id))

        logging.debug(f"Queued job {job.job_id} on '{job.queue}'")
        return pending

    def _forget(self, job_id: str) -> None:
        with self._lock:
            self._pending.pop(job_id, None)

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def _run(self, job: TransformationJob) -> TransformerResult:
        attempt = 0
        while True:
            attempt += 1
            try:
                return self._attempt(job)
            except Exception as e:
                logging.warning(f"Job {job.job_id} attempt {attempt}/{job.tries} failed: {e}")
                if attempt >= job.tries:
                    job.failed(e, self.events)
                    raise

    def _attempt(self, job: TransformationJob) -> TransformerResult:
        events = AttemptEvents(self.events)
        future = self._attempts.submit(
            job.handle, self.pipeline, events, self.transformers, events.abandoned
        )
        try:
            return future.result(timeout=job.timeout)
        except FutureTimeoutError:
            error = TimeoutError(f"Job {job.job_id} exceeded its timeout of {job.timeout} seconds")
            timed_out = TransformationFailed(
                exception=error, content=job.payload.content, context=job.context
            )
            if not events.abandon(timed_out):
                # finished while the timeout was being handled
                return future.result()
            future.cancel()
            raise error from None

    def shutdown(self, wait: bool = True) -> None:
        self._workers.shutdown(wait=wait)
        self._attempts.shutdown(wait=wait)

    def __enter__(self) -> "ThreadPoolQueue":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
