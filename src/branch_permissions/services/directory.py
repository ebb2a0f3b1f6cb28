from __future__ import annotations

from dataclasses import dataclass

from branch_permissions.api.client import ApiClientFactory
from branch_permissions.api.errors import ApiError, FetchError
from branch_permissions.api.requests import branch_directory_request
from branch_permissions.data import Branch, ResponseValidator
from branch_permissions.services.base import EventHook, ServiceErrorEvent
from branch_permissions.utils import get_logger


logger = get_logger(__name__)


@dataclass(slots=True)
class DirectoryLoadedEvent:
    branches: list[Branch]
    from_cache: bool


class BranchDirectoryService:
    """Load the selectable branch universe once and serve it from memory."""

    def __init__(self, client_factory: ApiClientFactory) -> None:
        self._client_factory = client_factory
        self._validator = ResponseValidator("branches")
        self._branches: list[Branch] | None = None
        self._by_id: dict[int, Branch] = {}

        self.loaded: EventHook[DirectoryLoadedEvent] = EventHook()
        self.errors: EventHook[ServiceErrorEvent] = EventHook()

    @property
    def is_loaded(self) -> bool:
        return self._branches is not None

    @property
    def branches(self) -> list[Branch]:
        return list(self._branches or [])

    def get(self, branch_id: int) -> Branch | None:
        return self._by_id.get(branch_id)

    def ids(self) -> set[int]:
        return set(self._by_id)

    async def load(self, *, force: bool = False) -> list[Branch]:
        """Return the directory, fetching it on first use (or when ``force`` is set).

        An empty directory is a valid result. Any transport or status failure
        raises ``FetchError`` and leaves a previously loaded directory intact.
        """

        if self._branches is not None and not force:
            self.loaded.emit(DirectoryLoadedEvent(self.branches, from_cache=True))
            return self.branches

        try:
            payload = await self._client_factory.send(branch_directory_request())
        except ApiError as exc:
            logger.error(
                "Branch directory fetch failed",
                status_code=exc.status_code,
                category=exc.category.value,
            )
            error = FetchError(f"Could not load branch directory: {exc}", cause=exc)
            self.errors.emit(ServiceErrorEvent(None, None, error))
            raise error from exc

        if payload is None:
            payload = []
        if not isinstance(payload, list):
            error = FetchError(
                f"Branch directory returned {type(payload).__name__}, expected a list"
            )
            self.errors.emit(ServiceErrorEvent(None, None, error))
            raise error

        self._validator.reset()
        branches = self._validator.parse_many(Branch, payload)
        self._replace(branches)
        logger.info(
            "Branch directory loaded",
            count=len(branches),
            skipped=len(self._validator.issues()),
        )
        self.loaded.emit(DirectoryLoadedEvent(self.branches, from_cache=False))
        return self.branches

    def _replace(self, branches: list[Branch]) -> None:
        by_id: dict[int, Branch] = {}
        unique: list[Branch] = []
        for branch in branches:
            if branch.id in by_id:
                logger.warning(
                    "Duplicate branch id in directory; keeping first entry",
                    branch_id=branch.id,
                    kept=by_id[branch.id].label,
                    dropped=branch.label,
                )
                continue
            by_id[branch.id] = branch
            unique.append(branch)
        self._branches = unique
        self._by_id = by_id


__all__ = ["BranchDirectoryService", "DirectoryLoadedEvent"]
