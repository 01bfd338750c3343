"""Request generations for discarding stale async results."""


class GenerationGate:
    """Monotonic request counter.

    Every async request takes a token with ``next()`` before awaiting; when
    the result arrives it is committed only if ``is_current(token)`` still
    holds. Starting any newer request, or calling ``invalidate()``,
    makes all older tokens stale.

    Example::

        token = gate.next()
        result = await slow_call()
        if gate.is_current(token):
            commit(result)
    """

    def __init__(self) -> None:
        self._generation = 0

    @property
    def current(self) -> int:
        return self._generation

    def next(self) -> int:
        self._generation += 1
        return self._generation

    def invalidate(self) -> None:
        self._generation += 1

    def is_current(self, token: int) -> bool:
        return token == self._generation
