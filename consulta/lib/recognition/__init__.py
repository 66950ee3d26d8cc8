from __future__ import annotations

import abc
import typing as t

import pydantic as pyd

from consulta.exceptions import ConsultaError


class RecognitionError(ConsultaError):
    """Raised when the speech recognition engine cannot be driven."""

    __slots__ = ("error_code",)

    default_message = "Speech recognition error"
    code: t.ClassVar[int] = 0x40

    def __init__(self, message: str | None = None, *, error_code: str = "unknown") -> None:
        self.error_code = error_code
        super().__init__(message or f"{self.default_message}: {error_code}")


class EngineError(RecognitionError):
    """A non-transient error reported by the engine, such as
    `audio-capture`, `not-allowed` or `network`."""

    default_message = "Speech recognition engine error"
    code: t.ClassVar[int] = 0x41


class EngineTransientError(EngineError):
    """A benign interruption (`no-speech`, `aborted`) that is recovered by
    restarting the engine."""

    default_message = "Speech recognition interrupted"
    code: t.ClassVar[int] = 0x42


TRANSIENT_ERRORS: frozenset[str] = frozenset({"no-speech", "aborted"})


# Raw payloads emitted by engines


class ResultAlternative(pyd.BaseModel):
    model_config = pyd.ConfigDict(populate_by_name=True, extra="ignore")

    transcript: str
    is_final: bool = pyd.Field(default=False, alias="isFinal")


class ResultPayload(pyd.BaseModel):
    type: t.Literal["result"]
    results: list[ResultAlternative]
    index: int = pyd.Field(default=0, ge=0)


class ErrorPayload(pyd.BaseModel):
    type: t.Literal["error"]
    error: str
    message: str = ""


class EndPayload(pyd.BaseModel):
    type: t.Literal["end"]


Payload = t.Annotated[ResultPayload | ErrorPayload | EndPayload, pyd.Field(discriminator="type")]
payload_adapter: pyd.TypeAdapter[Payload] = pyd.TypeAdapter(Payload)


# Normalized events


class Interim(pyd.BaseModel):
    """Text still being recognized. Replaced by the next result."""

    model_config = pyd.ConfigDict(frozen=True)

    kind: t.Literal["interim"] = "interim"
    text: str


class Final(pyd.BaseModel):
    """A settled recognition result."""

    model_config = pyd.ConfigDict(frozen=True)

    kind: t.Literal["final"] = "final"
    text: str


class Fault(pyd.BaseModel):
    """An engine error worth telling the operator about."""

    model_config = pyd.ConfigDict(frozen=True)

    kind: t.Literal["fault"] = "fault"
    code: str
    message: str = ""


class Ended(pyd.BaseModel):
    """The engine stopped producing results."""

    model_config = pyd.ConfigDict(frozen=True)

    kind: t.Literal["ended"] = "ended"


Event = t.Annotated[Interim | Final | Fault | Ended, pyd.Field(discriminator="kind")]
event_adapter: pyd.TypeAdapter[Event] = pyd.TypeAdapter(Event)


def normalize(payload: t.Any) -> list[Interim | Final | Fault | Ended]:
    """Turn an untyped engine payload into events, in emission order.

    Results before the payload's `index` were delivered by an earlier
    payload and are skipped. Final results become one `Final` each; the
    remaining non-final results are joined into a single `Interim`.

    Raises:
        pydantic.ValidationError: If the payload is malformed.
    """
    message = payload_adapter.validate_python(payload)

    if isinstance(message, ErrorPayload):
        return [Fault(code=message.error, message=message.message)]
    if isinstance(message, EndPayload):
        return [Ended()]

    events: list[Interim | Final | Fault | Ended] = []
    interim: list[str] = []
    for result in message.results[message.index :]:
        if result.is_final:
            events.append(Final(text=result.transcript))
        else:
            interim.append(result.transcript)
    if interim:
        events.append(Interim(text="".join(interim)))
    return events


PayloadListener: t.TypeAlias = t.Callable[[t.Any], None]


class RecognitionEngine(abc.ABC):
    """A continuous speech recognition session bound to one device.

    Engines push untyped payloads to the attached listener from the event
    loop. Like browser speech engines, they emit `{"type": "end"}` both when
    stopped and when they give up on their own.
    """

    def __init__(self) -> None:
        self._listener: PayloadListener | None = None

    def attach(self, listener: PayloadListener | None) -> None:
        self._listener = listener

    def emit(self, payload: t.Any) -> None:
        if self._listener is not None:
            self._listener(payload)

    @abc.abstractmethod
    async def start(self) -> None:
        """Begin recognizing.

        Raises:
            RecognitionError: If the engine refuses to start.
        """

    @abc.abstractmethod
    async def stop(self) -> None: ...

    def __repr__(self) -> str:
        return f"ENGINE <{self.__class__.__name__}>"


class RecognitionProvider(abc.ABC):
    """Entry point to the external speech recognition capability."""

    @abc.abstractmethod
    async def available(self) -> bool: ...

    @abc.abstractmethod
    def create(self, device_id: str, language: str) -> RecognitionEngine: ...
