"""Return types shared by every service call.

Services never raise for expected failures; they hand back a
:class:`ServiceResult` with ``ok=False`` and a :class:`ServiceError`. The
CLI only has to format the result and pick an exit code.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from ogfetch.errors import OgFetchError


class ServiceError(BaseModel):
    """Machine-readable code, human message and free-form detail."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: OgFetchError, **detail: Any) -> ServiceError:
        return cls(code=exc.code, message=exc.message, detail=detail)


class ServiceResult(BaseModel):
    """Outcome of one service operation.

    ``op`` names the operation (``"fetch"``, ``"batch"`` ...). ``data`` is
    op-specific; a failed fetch still reports its path and state trail
    there. ``warnings`` are non-fatal, ``error`` is set only when ``ok``
    is False, and ``meta`` carries the span tree on verbose runs.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None
