"""Settle-all helpers for concurrent tasks."""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of one awaited task: a value or the exception it raised."""

    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle_all(*aws: Awaitable[Any]) -> list[Result[Any]]:
    """
    Await every task and collect each outcome, in input order.

    A failing task never cancels its siblings. Cancelling the caller still
    cancels every task that has not finished.
    """
    outcomes = await asyncio.gather(*aws, return_exceptions=True)
    return [
        Result(error=outcome) if isinstance(outcome, BaseException) else Result(value=outcome)
        for outcome in outcomes
    ]
