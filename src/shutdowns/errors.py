"""Error hierarchy for outage-schedule retrieval and delivery.

Transient failures (page did not load, Telegram API unreachable) are retried by
tenacity decorators; permanent failures are reported once and not retried.

Example usage with tenacity:
    @retry(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(2))
    async def load(self, base_url: str) -> None:
        ...
"""


class ShutdownsError(Exception):
    """Base exception for all monitor errors."""

    pass


class TransientError(ShutdownsError):
    """Temporary failure that may succeed on retry.

    Examples: network timeouts, 5xx responses, a page that is still booting.
    """

    pass


class NavigationError(TransientError):
    """The shutdowns page or its address form never loaded.

    This is the only failure the form controller lets escape; it aborts the
    current cycle.
    """

    pass


class PermanentError(ShutdownsError):
    """Failure that won't succeed on retry."""

    pass


class NotificationError(PermanentError):
    """The notification channel rejected the message (bad token, unknown chat)."""

    pass
