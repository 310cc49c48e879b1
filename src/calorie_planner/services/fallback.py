"""Ordered fallback over provider candidates."""

from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from calorie_planner.domain.errors import GatewayError, UpstreamError

CandidateT = TypeVar("CandidateT")
ResultT = TypeVar("ResultT")


async def try_in_order(
    candidates: Sequence[CandidateT],
    attempt: Callable[[CandidateT], Awaitable[ResultT]],
    on_failure: Callable[[CandidateT, GatewayError], None] | None = None,
) -> ResultT:
    """Return the first successful attempt, re-raising the last error otherwise."""
    last_error: GatewayError | None = None
    for candidate in candidates:
        try:
            return await attempt(candidate)
        except GatewayError as exc:
            last_error = exc
            if on_failure is not None:
                on_failure(candidate, exc)
    if last_error is None:
        raise UpstreamError("No candidates to try")
    raise last_error
