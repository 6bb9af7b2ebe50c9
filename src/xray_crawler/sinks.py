"""
Result sinks for xray_crawler.

A run reports zero or more intermediate pages followed by exactly one terminal
event. Stream writers turn those events into JSON text, and sinks deliver the
text to a consumer: an in-memory queue behind ``ResultStream`` or a file.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, TextIO, Union

from .utils import strip_missing

logger = logging.getLogger(__name__)


@dataclass
class SavedFileInfo:
    """Information about a file written by FileSink."""
    path: str
    size: int
    chunks: int


class ResultSink(ABC):
    """Abstract destination for streamed JSON text."""

    @abstractmethod
    async def write(self, chunk: str) -> None:
        """
        Deliver a chunk of text.

        Args:
            chunk: Text to deliver
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Signal that every chunk has been delivered."""
        pass

    @abstractmethod
    async def fail(self, error: BaseException) -> None:
        """
        Signal that the run failed; no terminal data follows.

        Args:
            error: Error that ended the run
        """
        pass


class _End:
    pass


class QueueSink(ResultSink):
    """Sink buffering chunks in an asyncio queue for a single reader."""

    def __init__(self):
        self._queue: "asyncio.Queue[Union[str, _End, BaseException]]" = asyncio.Queue()

    async def write(self, chunk: str) -> None:
        await self._queue.put(chunk)

    async def close(self) -> None:
        await self._queue.put(_End())

    async def fail(self, error: BaseException) -> None:
        await self._queue.put(error)

    async def get(self) -> str:
        """
        Wait for the next chunk.

        Returns:
            Next chunk of text

        Raises:
            StopAsyncIteration: When the run completed
            Exception: The error the run failed with
        """
        item = await self._queue.get()
        if isinstance(item, _End):
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item


class FileSink(ResultSink):
    """Sink writing chunks to a file as they arrive."""

    def __init__(self, path: Union[str, Path]):
        """
        Initialize FileSink.

        Args:
            path: File to write; parent directories are created
        """
        self.path = Path(path)
        self._file: Optional[TextIO] = None
        self._size = 0
        self._chunks = 0
        self.error: Optional[BaseException] = None

    def _open(self) -> TextIO:
        if self._file is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, 'w', encoding='utf-8')
        return self._file

    async def write(self, chunk: str) -> None:
        self._open().write(chunk)
        self._size += len(chunk)
        self._chunks += 1

    async def close(self) -> None:
        self._open().close()
        logger.info(f"Wrote {self._size} characters to {self.path}")

    async def fail(self, error: BaseException) -> None:
        self.error = error
        if self._file is not None:
            self._file.close()
        logger.error(f"Writing {self.path} failed: {error}")

    def get_saved_file(self) -> SavedFileInfo:
        """Get information about the written file."""
        return SavedFileInfo(path=str(self.path), size=self._size, chunks=self._chunks)


def _dumps(data: Any) -> str:
    return json.dumps(strip_missing(data), indent=2, ensure_ascii=False)


class PageWriter:
    """Receives page events from a run; the base class discards them."""

    async def page(self, data: Any) -> None:
        pass

    async def end(self, data: Any) -> None:
        pass

    async def fail(self, error: BaseException) -> None:
        pass


class ArrayStreamWriter(PageWriter):
    """
    Streams collection results as one JSON array.

    Each page contributes its items; the opening bracket, the comma
    separators and the closing bracket are written incrementally.
    """

    def __init__(self, sink: ResultSink):
        self.sink = sink
        self._first = True

    async def _emit(self, data: Any, end: bool) -> None:
        text = _dumps(data)
        fragment = text[1:-1] if isinstance(data, list) else text
        empty = fragment.strip() == ""

        if self._first and empty and not end:
            return
        if self._first:
            await self.sink.write("[\n")
        if not self._first and not empty:
            await self.sink.write(",")

        if end:
            await self.sink.write(fragment + "]")
            await self.sink.close()
        else:
            await self.sink.write(fragment)

        self._first = False

    async def page(self, data: Any) -> None:
        await self._emit(data, end=False)

    async def end(self, data: Any) -> None:
        await self._emit(data, end=True)

    async def fail(self, error: BaseException) -> None:
        await self.sink.fail(error)


class ObjectStreamWriter(PageWriter):
    """Streams a single JSON document at the terminal event."""

    def __init__(self, sink: ResultSink):
        self.sink = sink

    async def end(self, data: Any) -> None:
        await self.sink.write(_dumps(data))
        await self.sink.close()

    async def fail(self, error: BaseException) -> None:
        await self.sink.fail(error)


def create_writer(sink: Optional[ResultSink], collection: bool) -> PageWriter:
    """
    Pick the stream writer for a schema root.

    Args:
        sink: Destination, or None to discard stream output
        collection: Whether the schema root is a collection

    Returns:
        Configured writer
    """
    if sink is None:
        return PageWriter()
    if collection:
        return ArrayStreamWriter(sink)
    return ObjectStreamWriter(sink)


def create_sink(kind: str, **kwargs) -> ResultSink:
    """
    Factory function to create a result sink.

    Args:
        kind: Sink kind ("queue" or "file")
        **kwargs: Sink-specific parameters (``path`` for "file")

    Returns:
        Configured sink

    Raises:
        ValueError: If the kind is not supported
    """
    if kind == "queue":
        return QueueSink()
    elif kind == "file":
        return FileSink(kwargs["path"])
    else:
        raise ValueError(f"Unsupported sink: {kind}")


class ResultStream:
    """
    Async iterator over the JSON text of a run.

    The run starts on first iteration. Iteration raises the run's error
    instead of yielding a terminal chunk when the run fails.
    """

    def __init__(self, start: Callable[[ResultSink], Awaitable[Any]]):
        """
        Initialize ResultStream.

        Args:
            start: Coroutine function running the job against a sink
        """
        self._start = start
        self._sink = QueueSink()
        self._task: Optional[asyncio.Task] = None

    def __aiter__(self) -> "ResultStream":
        if self._task is None:
            self._task = asyncio.ensure_future(self._pump())
        return self

    async def __anext__(self) -> str:
        return await self._sink.get()

    async def _pump(self) -> None:
        try:
            await self._start(self._sink)
        except Exception as e:
            # already delivered to the reader through the sink
            logger.debug(f"Stream run ended with error: {e}")

    async def read(self) -> str:
        """Consume the whole stream and return its text."""
        chunks: List[str] = []
        async for chunk in self:
            chunks.append(chunk)
        return "".join(chunks)
