"""BaseService: foundation for all ogfetch services.

Every service receives a :class:`Workspace` at construction time. The
workspace provides settings, document I/O and the shared fetcher.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ogfetch.infrastructure.workspace import Workspace


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class FetchService(BaseService):
            def process_document(self, path: Path, ...) -> ServiceResult:
                text = self._workspace.read(path)
                ...
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace
