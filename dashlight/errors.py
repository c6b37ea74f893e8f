from __future__ import annotations

from typing import Literal


RemoteErrorKind = Literal["network", "auth", "parse"]


class DashlightError(RuntimeError):
    """Base class for all classification pipeline failures."""


class GeometryError(DashlightError):
    """
    Raised when a guide-box crop cannot be computed.

    Recovered by the caller: the full (upright) image is used instead.
    """


class InferenceError(DashlightError):
    """
    Raised when the local backend fails or returns malformed output.
    Terminal for the request: the pipeline answers with an empty outcome.
    """


class RemoteError(DashlightError):
    """
    Raised by a provider call.

    kind distinguishes the failure in logs and metrics:
    - network: no response (transport error, timeout)
    - auth: non-2xx status
    - parse: reply or embedded answer could not be read

    The orchestrator treats every kind the same way and falls back to the local outcome.
    """

    def __init__(self, kind: RemoteErrorKind, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code

    def __str__(self) -> str:
        base = super().__str__()
        return f"{self.kind}: {base}"
