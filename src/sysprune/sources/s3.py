"""Remote object store source backed by S3 (or an S3-compatible endpoint)."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import DeletionError, MissKind, SourceError, SourceErrorKind
from ..resource import Resource

logger = logging.getLogger(__name__)


def _page_contents(source: str, page: dict[str, Any]) -> list[dict[str, Any]]:
    """Extract object listings from a paginator page, validating key counts."""
    contents = page.get("Contents")
    key_count = page.get("KeyCount")
    if contents is None:
        if key_count not in (None, 0):
            raise SourceError(
                SourceErrorKind.INCONSISTENT,
                source,
                f"list_objects_v2 reported {key_count} keys without Contents",
            )
        return []
    return contents


class ObjectStoreSource:
    """Objects under a key prefix in one bucket."""

    def __init__(
        self,
        name: str,
        bucket: str,
        prefix: str = "",
        *,
        client: Any | None = None,
        region: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        self.name = name
        self.bucket = bucket
        self.prefix = prefix
        self._client = client
        self._region = region
        self._endpoint_url = endpoint_url

    def __repr__(self) -> str:
        return f"ObjectStoreSource({self.name!r}, {self.bucket!r}, {self.prefix!r})"

    @property
    def client(self) -> Any:
        """Lazily built S3 client; credentials come from the standard AWS chain."""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self._region,
                endpoint_url=self._endpoint_url,
            )
        return self._client

    def _list_objects(self) -> Iterable[dict[str, Any]]:
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=self.prefix):
            for obj in _page_contents(self.name, page):
                if obj["Key"].endswith("/"):
                    continue
                yield obj

    def enumerate(self) -> list[Resource]:
        """List every object under the prefix.

        The listing is only returned once every page has been read; a failure
        on any page discards the partial listing.
        """
        resources: list[Resource] = []
        seen: set[str] = set()
        try:
            for obj in self._list_objects():
                key = obj["Key"]
                if key in seen:
                    raise SourceError(
                        SourceErrorKind.INCONSISTENT,
                        self.name,
                        f"key listed twice while paginating: {key}",
                    )
                seen.add(key)
                resources.append(
                    Resource(
                        identifier=key,
                        modified_at=obj["LastModified"],
                        size_bytes=int(obj.get("Size", 0)),
                    )
                )
        except (ClientError, BotoCoreError) as exc:
            raise SourceError(SourceErrorKind.UNREACHABLE, self.name, str(exc)) from exc

        logger.debug("Enumerated %d objects from s3://%s/%s", len(resources), self.bucket, self.prefix)
        return resources

    def delete(self, resource: Resource) -> None:
        key = str(resource.identifier)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            kind = MissKind.PERMISSION if code in ("AccessDenied", "403") else MissKind.OTHER
            raise DeletionError(key, kind, str(exc), resource.size_bytes) from exc
        except BotoCoreError as exc:
            raise DeletionError(key, MissKind.OTHER, str(exc), resource.size_bytes) from exc
