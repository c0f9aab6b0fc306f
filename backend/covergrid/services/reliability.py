"""
CoverGrid Reliability
Failure types for per-tile work and an all-settled join over many coroutines.
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, Iterable, List, Optional, TypeVar

T = TypeVar('T')


class DecodeFailure(Exception):
    """An image source could not be fetched or decoded."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to load image from {source!r}: {reason}")


class ExtractionFailure(Exception):
    """Dominant color extraction failed for a decoded image."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Color extraction failed for {source!r}: {reason}")


@dataclass(frozen=True)
class Settled(Generic[T]):
    """Outcome of one awaitable in a settled join: a value or the error it raised."""
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_settled(awaitables: Iterable[Awaitable[Any]]) -> List[Settled]:
    """
    Run awaitables concurrently and wait for every one of them to settle.

    One failing item never aborts the others; results keep input order.
    """
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    return [
        Settled(error=result) if isinstance(result, BaseException) else Settled(value=result)
        for result in results
    ]
