"""Contracts for the external pricing endpoint and the other run collaborators."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, Union

from ..models import DateCombination, SearchConfiguration

if TYPE_CHECKING:
    from ..services.price_search import (
        AggregateProgress,
        CombinationProgress,
        SearchRun,
    )

RequestBody = dict[str, Any]


@dataclass(frozen=True, slots=True)
class FetchOk:
    """2xx response with a decoded JSON body."""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None


@dataclass(frozen=True, slots=True)
class FetchHttpError:
    """Response outside the 2xx range."""

    status: int
    status_text: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class FetchTransportError:
    """No usable response: connection, DNS, timeout or undecodable body."""

    kind: str
    message: str


FetchOutcome = Union[FetchOk, FetchHttpError, FetchTransportError]


class PricingApiProtocol(Protocol):
    """Port describing interactions with the pricing endpoint."""

    async def post(self, endpoint: str, json_body: RequestBody) -> FetchOutcome:
        """Send one JSON request and report what came back."""


class RequestBuilderProtocol(Protocol):
    """Maps a configuration and a combination to the provider's request body."""

    def build(self, config: SearchConfiguration, combination: DateCombination) -> RequestBody:
        """Return the JSON body for one combination."""


class ProgressReporterProtocol(Protocol):
    """Receives progress observations from a running search."""

    def on_run_started(self, run: SearchRun) -> None: ...

    def on_combination(self, event: CombinationProgress) -> None: ...

    def on_summary(self, event: AggregateProgress) -> None: ...

    def on_run_finished(self, run: SearchRun) -> None: ...
