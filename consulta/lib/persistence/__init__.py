from __future__ import annotations

import abc
import asyncio as aio
import datetime
import typing as t

import pydantic as pyd
import tenacity

from consulta.exceptions import PersistenceError
from consulta.valueobj.session import SessionStatus

if t.TYPE_CHECKING:
    from consulta.config.core.recording import RetryConfig
    from consulta.lib.diagnostics import Diagnostics

R = t.TypeVar("R")


class SessionDraft(pyd.BaseModel):
    """Everything needed to create the remote record of a session.

    Attributes:
        key: Client-generated draft key. Creating twice with the same key
            returns the same record.
        patient_id: The patient being seen.
        title: Session title.
        started_at: When recording started.
        user_id: The operator running the consultation, if known.
        status: Initial status of the record.
    """

    model_config = pyd.ConfigDict(frozen=True)

    key: str = pyd.Field(min_length=1)
    patient_id: str = pyd.Field(min_length=1)
    title: str = pyd.Field(min_length=1)
    started_at: datetime.datetime
    user_id: str | None = None
    status: SessionStatus = SessionStatus.RECORDING


class SessionPatch(pyd.BaseModel):
    """Partial update of a session record. Only the set fields are
    written."""

    model_config = pyd.ConfigDict(frozen=True)

    status: SessionStatus | None = None
    transcript: str | None = None
    ended_at: datetime.datetime | None = None
    elapsed_seconds: float | None = pyd.Field(default=None, ge=0)
    duration: str | None = None

    def changes(self) -> dict[str, t.Any]:
        """The fields this patch sets, with enums as their values."""
        return self.model_dump(exclude_none=True, mode="python") | (
            {"status": self.status.value} if self.status is not None else {}
        )


class SessionGateway(abc.ABC):
    """Remote store of session records.

    Both operations must be safe to retry: `create_session` is keyed by the
    draft key and `update_session` writes absolute values.
    """

    @abc.abstractmethod
    async def create_session(self, draft: SessionDraft, /) -> str:
        """Create the session record, or return the existing one for the
        same draft key.

        Returns:
            The session id.

        Raises:
            PersistenceError: If the record could not be written.
        """

    @abc.abstractmethod
    async def update_session(self, session_id: str, patch: SessionPatch, /) -> bool:
        """Apply a partial update.

        Returns:
            False if no record exists for the id, True otherwise.

        Raises:
            PersistenceError: If the record could not be written.
        """

    def __repr__(self) -> str:
        return f"GATEWAY <{self.__class__.__name__}>"


RETRYABLE: tuple[type[BaseException], ...] = (PersistenceError, OSError, aio.TimeoutError)


async def call_with_retry(
    fn: t.Callable[..., t.Awaitable[R]],
    /,
    *args: t.Any,
    policy: RetryConfig,
    logger: Diagnostics | None = None,
) -> R:
    """Await `fn(*args)` with bounded attempts and exponential backoff.

    Attempts are sequential, so a single call is in flight at a time. The
    last error is re-raised once attempts are exhausted.

    Args:
        fn: The gateway coroutine function to call.
        *args: Positional arguments for `fn`.
        policy: Attempts and backoff to use.
        logger: Where to report failed attempts.

    Example:
        ```python
        session_id = await call_with_retry(
            gateway.create_session,
            draft,
            policy=config.core.recording.autosave_retry,
        )
        ```
    """

    def before_sleep(state: tenacity.RetryCallState) -> None:
        if logger is None or state.outcome is None:
            return
        logger.warning(
            f"Persistence call failed (attempt {state.attempt_number}/{policy.attempts}), retrying",
            call=getattr(fn, "__name__", repr(fn)),
            error=repr(state.outcome.exception()),
        )

    retry = tenacity.retry(
        stop=tenacity.stop_after_attempt(policy.attempts),
        wait=tenacity.wait_exponential(multiplier=policy.multiplier, max=policy.max_wait),
        retry=tenacity.retry_if_exception_type(RETRYABLE),
        before_sleep=before_sleep,
        reraise=True,
    )
    return await retry(fn)(*args)
