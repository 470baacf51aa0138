"""
Webmock Stub Registry

Ordered, thread-safe collection of stubs. Registration order is matching
priority: the first stub a request satisfies wins.

The registry is copy-on-write. Writers build a new tuple under a lock and
swap the reference; readers resolve against whichever tuple they picked up,
so a resolution never sees a half-applied add, extend or clear.
"""

import logging
import threading
from typing import Iterable, Iterator, Optional, Tuple

from .errors import StubConfigurationError
from .matcher import IncomingRequest, MatchResult, explain_mismatch, matches
from .stub import Stub


logger = logging.getLogger("webmock.registry")


class StubRegistry:
    """
    Ordered stub registry shared by every request a server handles.

    Example:
        registry = StubRegistry()
        registry.add(Stub.create('GET', '/abc', 'ok'))

        stub = registry.resolve(IncomingRequest.from_url('GET', '/abc'))
        if stub:
            print(stub.response.body)
    """

    def __init__(self, stubs: Optional[Iterable[Stub]] = None):
        self._lock = threading.Lock()
        self._stubs: Tuple[Stub, ...] = ()
        if stubs:
            self.extend(stubs)

    @property
    def stubs(self) -> Tuple[Stub, ...]:
        """Snapshot of registered stubs in priority order."""
        return self._stubs

    def __len__(self) -> int:
        return len(self._stubs)

    def __iter__(self) -> Iterator[Stub]:
        return iter(self._stubs)

    def add(self, stub: Stub) -> Stub:
        """
        Append a stub at the lowest priority.

        Duplicate patterns are allowed; the earlier registration shadows
        the later one.

        Raises:
            StubConfigurationError: If stub is not a Stub
        """
        _check_stub(stub)
        with self._lock:
            self._stubs = self._stubs + (stub,)
        logger.debug(f"Registered stub: {stub.describe()}")
        return stub

    def extend(self, stubs: Iterable[Stub]) -> int:
        """
        Append a batch of stubs in one atomic step.

        Either every stub in the batch becomes visible at once, or (if any
        element is invalid) none of them do.

        Returns:
            Number of stubs added
        """
        batch = tuple(stubs)
        for stub in batch:
            _check_stub(stub)
        with self._lock:
            self._stubs = self._stubs + batch
        logger.debug(f"Registered {len(batch)} stubs")
        return len(batch)

    def clear(self) -> int:
        """
        Remove every stub.

        Returns:
            Number of stubs removed
        """
        with self._lock:
            removed = len(self._stubs)
            self._stubs = ()
        logger.debug(f"Cleared {removed} stubs")
        return removed

    def resolve(self, request: IncomingRequest) -> Optional[Stub]:
        """
        Find the first registered stub the request satisfies.

        Args:
            request: Normalized incoming request

        Returns:
            Matching Stub, or None if nothing matches
        """
        for stub in self._stubs:
            if matches(stub, request):
                return stub
        return None

    def explain(self, request: IncomingRequest) -> MatchResult:
        """
        Resolve a request and describe the outcome.

        On a miss, the reason names the closest candidate: the first stub
        with the same method and path, or the first stub at all.
        """
        snapshot = self._stubs
        for stub in snapshot:
            if matches(stub, request):
                return MatchResult(matched=True, stub=stub, reason="Matched")

        if not snapshot:
            return MatchResult(matched=False, reason="No stubs registered")

        candidate = next(
            (s for s in snapshot if s.method == request.method and s.path == request.path),
            snapshot[0]
        )
        reason = explain_mismatch(candidate, request)
        return MatchResult(
            matched=False,
            reason=f"Closest stub {candidate.describe()}: {reason}"
        )


def _check_stub(stub):
    if not isinstance(stub, Stub):
        raise StubConfigurationError(f"Expected a Stub, got {type(stub).__name__}")
