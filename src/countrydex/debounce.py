import logging
from typing import Any, Callable, Optional

LOGGER = logging.getLogger(__name__)

SEARCH_DEBOUNCE_DELAY: float = 0.5


class Debouncer:
    """
    Trailing-edge debounce for search input.

    Each call to `schedule` stops the pending timer (if any) and arms a new
    one, so only the newest query is dispatched once input has been quiet
    for `delay` seconds. `set_timer` is any factory with the signature of
    Textual's `MessagePump.set_timer` returning an object with `stop()`.
    """

    def __init__(
        self,
        set_timer: Callable[..., Any],
        callback: Callable[[str], Any],
        delay: float = SEARCH_DEBOUNCE_DELAY,
    ) -> None:
        self._set_timer = set_timer
        self._callback = callback
        self.delay = delay
        self._timer: Optional[Any] = None
        self._pending_query: Optional[str] = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def schedule(self, query: str) -> None:
        self.cancel()
        self._pending_query = query
        self._timer = self._set_timer(self.delay, self._fire)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.stop()
        self._timer = None
        self._pending_query = None

    def _fire(self) -> None:
        query = self._pending_query
        self._timer = None
        self._pending_query = None
        if query is None:
            return
        LOGGER.debug(f"Debounce elapsed, dispatching '{query}'")
        self._callback(query)
