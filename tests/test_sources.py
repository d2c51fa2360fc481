"""Tests for local, vault and object store sources."""

from __future__ import annotations

import errno
import os
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from sysprune.errors import ConfigurationError, DeletionError, MissKind, SourceError, SourceErrorKind
from sysprune.resource import Resource
from sysprune.sources import LocalGlobSource, ObjectStoreSource, Source, VaultExportSource, VaultProvider
from sysprune.sources.local import classify_os_error, remove_path


def _touch(path: Path, content: bytes = b"data", when: datetime | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    if when is not None:
        stamp = when.timestamp()
        os.utime(path, (stamp, stamp))
    return path


class TestClassifyOSError:
    """Tests for mapping OS errors to miss kinds."""

    @pytest.mark.parametrize(
        "exc,expected",
        [
            (FileNotFoundError(errno.ENOENT, "gone"), MissKind.VANISHED),
            (PermissionError(errno.EACCES, "denied"), MissKind.PERMISSION),
            (OSError(errno.EBUSY, "busy"), MissKind.IN_USE),
            (OSError(errno.ETXTBSY, "text busy"), MissKind.IN_USE),
            (OSError(errno.EIO, "io"), MissKind.OTHER),
        ],
    )
    def test_classification(self, exc: OSError, expected: MissKind) -> None:
        assert classify_os_error(exc) is expected


class TestRemovePath:
    """Tests for remove_path."""

    def test_removes_file(self, tmp_path: Path) -> None:
        path = _touch(tmp_path / "a.log")
        remove_path(path)
        assert not path.exists()

    def test_removes_directory_tree(self, tmp_path: Path) -> None:
        _touch(tmp_path / "tree" / "nested" / "a.log")
        remove_path(tmp_path / "tree")
        assert not (tmp_path / "tree").exists()

    def test_missing_file_is_vanished(self, tmp_path: Path) -> None:
        with pytest.raises(DeletionError) as exc_info:
            remove_path(tmp_path / "missing", size_bytes=7)
        assert exc_info.value.kind is MissKind.VANISHED
        assert exc_info.value.size_bytes == 7


class TestLocalGlobSource:
    """Tests for LocalGlobSource."""

    def test_satisfies_protocol(self, tmp_path: Path) -> None:
        assert isinstance(LocalGlobSource("local", tmp_path), Source)

    @pytest.mark.parametrize("pattern", ["", "/abs/*", "../*.tar", "dumps/../../*"])
    def test_unsafe_pattern_rejected(self, tmp_path: Path, pattern: str) -> None:
        with pytest.raises(ConfigurationError):
            LocalGlobSource("local", tmp_path, pattern)

    def test_vault_unit_cannot_escape_root(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            VaultExportSource("op", tmp_path, VaultProvider.ONEPASSWORD, "..")

    def test_enumerate_matches_pattern(self, tmp_path: Path) -> None:
        when = datetime(2024, 3, 1, tzinfo=UTC)
        _touch(tmp_path / "db-1.tar", b"12345", when)
        _touch(tmp_path / "db-2.tar")
        _touch(tmp_path / "notes.txt")

        resources = LocalGlobSource("db", tmp_path, "*.tar").enumerate()

        assert [r.name for r in resources] == ["db-1.tar", "db-2.tar"]
        assert resources[0].size_bytes == 5
        assert resources[0].modified_at == when

    def test_missing_root_is_unreachable(self, tmp_path: Path) -> None:
        source = LocalGlobSource("db", tmp_path / "missing")
        with pytest.raises(SourceError) as exc_info:
            source.enumerate()
        assert exc_info.value.kind is SourceErrorKind.UNREACHABLE
        assert exc_info.value.source == "db"

    def test_symlinks_are_skipped(self, tmp_path: Path) -> None:
        target = _touch(tmp_path / "real.tar")
        (tmp_path / "link.tar").symlink_to(target)

        resources = LocalGlobSource("db", tmp_path, "*.tar").enumerate()

        assert [r.name for r in resources] == ["real.tar"]

    def test_file_vanishing_mid_listing_is_inconsistent(self, tmp_path: Path) -> None:
        _touch(tmp_path / "a.tar")
        source = LocalGlobSource("db", tmp_path, "*.tar")

        with patch.object(Resource, "from_path", side_effect=FileNotFoundError("gone")):
            with pytest.raises(SourceError) as exc_info:
                source.enumerate()

        assert exc_info.value.kind is SourceErrorKind.INCONSISTENT

    def test_delete(self, tmp_path: Path) -> None:
        _touch(tmp_path / "a.tar")
        source = LocalGlobSource("db", tmp_path, "*.tar")
        [resource] = source.enumerate()

        source.delete(resource)

        assert source.enumerate() == []

    def test_matches(self, tmp_path: Path) -> None:
        source = LocalGlobSource("db", tmp_path, "*.tar")
        assert source.matches(tmp_path / "a.tar")
        assert not source.matches(tmp_path / "a.txt")
        assert not source.matches(Path("/elsewhere/a.tar"))


class TestVaultExportSource:
    """Tests for vault export layouts."""

    def test_layouts(self) -> None:
        assert VaultProvider.BITWARDEN.layout("acme") == "backup-acme/*.json"
        assert VaultProvider.ONEPASSWORD.layout("family") == "family/export_*.zip"

    def test_bitwarden_enumerates_only_its_org(self, tmp_path: Path) -> None:
        _touch(tmp_path / "backup-acme" / "2024-01-01.json")
        _touch(tmp_path / "backup-acme" / "2024-01-02.json")
        _touch(tmp_path / "backup-other" / "2024-01-01.json")
        _touch(tmp_path / "backup-acme" / "readme.txt")

        source = VaultExportSource("bw", tmp_path, VaultProvider.BITWARDEN, "acme")

        assert [r.name for r in source.enumerate()] == ["2024-01-01.json", "2024-01-02.json"]

    def test_onepassword_enumerates_exports(self, tmp_path: Path) -> None:
        _touch(tmp_path / "family" / "export_1.zip")
        _touch(tmp_path / "family" / "other.zip")

        source = VaultExportSource("op", tmp_path, VaultProvider.ONEPASSWORD, "family")

        assert [r.name for r in source.enumerate()] == ["export_1.zip"]


def _client_with_pages(*pages: dict) -> MagicMock:
    client = MagicMock()
    client.get_paginator.return_value.paginate.return_value = list(pages)
    return client


def _obj(key: str, size: int = 10) -> dict:
    return {"Key": key, "LastModified": datetime(2024, 1, 1, tzinfo=UTC), "Size": size}


class TestObjectStoreSource:
    """Tests for the S3-backed source."""

    def test_enumerate_across_pages(self) -> None:
        client = _client_with_pages(
            {"Contents": [_obj("db/a.tar"), _obj("db/")], "KeyCount": 2},
            {"Contents": [_obj("db/b.tar", 20)], "KeyCount": 1},
        )
        source = ObjectStoreSource("remote", "bucket", "db/", client=client)

        resources = source.enumerate()

        assert [r.identifier for r in resources] == ["db/a.tar", "db/b.tar"]
        assert resources[1].size_bytes == 20
        client.get_paginator.assert_called_once_with("list_objects_v2")
        client.get_paginator.return_value.paginate.assert_called_once_with(Bucket="bucket", Prefix="db/")

    def test_empty_bucket(self) -> None:
        client = _client_with_pages({"KeyCount": 0})
        assert ObjectStoreSource("remote", "bucket", client=client).enumerate() == []

    def test_key_count_without_contents_is_inconsistent(self) -> None:
        client = _client_with_pages({"KeyCount": 3})
        with pytest.raises(SourceError) as exc_info:
            ObjectStoreSource("remote", "bucket", client=client).enumerate()
        assert exc_info.value.kind is SourceErrorKind.INCONSISTENT

    def test_duplicate_key_is_inconsistent(self) -> None:
        client = _client_with_pages(
            {"Contents": [_obj("a")], "KeyCount": 1},
            {"Contents": [_obj("a")], "KeyCount": 1},
        )
        with pytest.raises(SourceError) as exc_info:
            ObjectStoreSource("remote", "bucket", client=client).enumerate()
        assert exc_info.value.kind is SourceErrorKind.INCONSISTENT

    def test_client_error_is_unreachable(self) -> None:
        client = MagicMock()
        client.get_paginator.return_value.paginate.side_effect = ClientError(
            {"Error": {"Code": "NoSuchBucket", "Message": "missing"}}, "ListObjectsV2"
        )
        with pytest.raises(SourceError) as exc_info:
            ObjectStoreSource("remote", "bucket", client=client).enumerate()
        assert exc_info.value.kind is SourceErrorKind.UNREACHABLE

    def test_connection_error_is_unreachable(self) -> None:
        client = MagicMock()
        client.get_paginator.return_value.paginate.side_effect = EndpointConnectionError(
            endpoint_url="https://s3.example"
        )
        with pytest.raises(SourceError) as exc_info:
            ObjectStoreSource("remote", "bucket", client=client).enumerate()
        assert exc_info.value.kind is SourceErrorKind.UNREACHABLE

    def test_delete(self) -> None:
        client = MagicMock()
        source = ObjectStoreSource("remote", "bucket", client=client)

        source.delete(Resource("db/a.tar", datetime(2024, 1, 1, tzinfo=UTC)))

        client.delete_object.assert_called_once_with(Bucket="bucket", Key="db/a.tar")

    @pytest.mark.parametrize(
        "code,expected",
        [("AccessDenied", MissKind.PERMISSION), ("InternalError", MissKind.OTHER)],
    )
    def test_delete_failure(self, code: str, expected: MissKind) -> None:
        client = MagicMock()
        client.delete_object.side_effect = ClientError({"Error": {"Code": code, "Message": "x"}}, "DeleteObject")
        source = ObjectStoreSource("remote", "bucket", client=client)

        with pytest.raises(DeletionError) as exc_info:
            source.delete(Resource("db/a.tar", datetime(2024, 1, 1, tzinfo=UTC), size_bytes=5))

        assert exc_info.value.kind is expected
        assert exc_info.value.size_bytes == 5

    def test_client_is_built_lazily(self) -> None:
        with patch("sysprune.sources.s3.boto3.client") as factory:
            source = ObjectStoreSource("remote", "bucket", region="eu-west-1", endpoint_url="http://minio:9000")
            factory.assert_not_called()

            assert source.client is factory.return_value
            assert source.client is factory.return_value

        factory.assert_called_once_with("s3", region_name="eu-west-1", endpoint_url="http://minio:9000")
