"""Common protocol for resource sources."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..resource import Resource


@runtime_checkable
class Source(Protocol):
    """Enumerates prunable resources from one backend and deletes them."""

    name: str

    def enumerate(self) -> list[Resource]:
        """Take a consistent snapshot of the backend's resources.

        Raises:
            SourceError: If the backend is unreachable or the listing changed
                while it was being taken.

        """
        ...

    def delete(self, resource: Resource) -> None:
        """Delete one resource.

        Raises:
            DeletionError: If the resource could not be removed.

        """
        ...
