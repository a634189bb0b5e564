import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Tuple, Union

from codestream.providers.base import GenerationRequest, ProviderClient, ProviderError
from codestream.services.extractor import StreamExtractor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    reasoning: str
    content: str
    reasoning_active: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"reasoning": self.reasoning, "content": self.content, "reasoningActive": self.reasoning_active}


Sink = Callable[[Snapshot], Union[None, Awaitable[None]]]

_END = object()


class GenerationSession:
    """
    One generation request: pulls chunks from a provider client, runs them
    through a fresh StreamExtractor and hands a Snapshot to the caller after
    every chunk, plus a final one with reasoning_active=False.

    cancel() is cooperative but interrupts every wait (initial response, next
    chunk, an async sink). After it nothing else is read or delivered and the
    upstream stream is closed. No retries; provider errors propagate as raised.
    """

    def __init__(self, client: ProviderClient, request: GenerationRequest) -> None:
        self.client = client
        self.request = request
        self.extractor = StreamExtractor()
        self._cancel = asyncio.Event()
        self._stream: Optional[Any] = None

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        if not self._cancel.is_set():
            logger.info("generation cancelled (model=%s)", self.request.model)
        self._cancel.set()

    async def _until_cancelled(self, aw: Awaitable[Any]) -> Tuple[bool, Any]:
        """Await `aw` unless cancel() fires first. Returns (completed, result)."""
        if self._cancel.is_set():
            if inspect.iscoroutine(aw):
                aw.close()
            return False, None
        task = asyncio.ensure_future(aw)
        waiter = asyncio.ensure_future(self._cancel.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except BaseException:
            task.cancel()
            waiter.cancel()
            raise
        if task in done:
            waiter.cancel()
            return True, task.result()
        task.cancel()
        # let the cancelled read unwind; whatever it raises no longer matters
        (leftover,) = await asyncio.gather(task, return_exceptions=True)
        # a stream that was opened just as we cancelled still has to be closed
        if not isinstance(leftover, BaseException) and hasattr(leftover, "aclose"):
            await leftover.aclose()
        return False, None

    @staticmethod
    async def _next_chunk(stream: AsyncIterator[str]) -> Any:
        try:
            return await stream.__anext__()
        except StopAsyncIteration:
            return _END

    async def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        aclose = getattr(stream, "aclose", None)
        if aclose is not None:
            await aclose()

    def _snapshot(self, reasoning_active: bool) -> Snapshot:
        extraction = self.extractor.last
        return Snapshot(
            reasoning=extraction.reasoning,
            content=extraction.content,
            reasoning_active=reasoning_active,
        )

    async def snapshots(self) -> AsyncIterator[Snapshot]:
        try:
            ok, stream = await self._until_cancelled(self.client.generate(self.request))
            if not ok:
                return
            self._stream = stream
            while True:
                ok, chunk = await self._until_cancelled(self._next_chunk(stream))
                if not ok:
                    return
                if chunk is _END:
                    break
                if not chunk:
                    continue
                self.extractor.append(chunk)
                yield self._snapshot(self.extractor.reasoning_active)
            # an unterminated reasoning block at end of stream counts as done thinking
            yield self._snapshot(False)
        except ProviderError as e:
            logger.warning("generation failed [%s] provider=%s: %s", type(e).__name__, e.provider, e)
            raise
        finally:
            await self._close_stream()

    async def run(self, sink: Optional[Sink] = None) -> Snapshot:
        """Drive the session to completion or cancellation; returns the last snapshot delivered."""
        snapshots = self.snapshots()
        delivered = Snapshot(reasoning="", content="", reasoning_active=False)
        try:
            async for snap in snapshots:
                if self._cancel.is_set():
                    break
                if sink is not None:
                    result = sink(snap)
                    if inspect.isawaitable(result):
                        ok, _ = await self._until_cancelled(result)
                        if not ok:
                            break
                delivered = snap
        finally:
            await snapshots.aclose()
        return delivered
