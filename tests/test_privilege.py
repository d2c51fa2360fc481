"""Tests for the elevation pre-flight check."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from sysprune import privilege
from sysprune.errors import ElevationError
from sysprune.locations import Platform


class TestIsElevated:
    """Tests for is_elevated."""

    def test_root_is_elevated(self) -> None:
        with patch("sysprune.privilege.os.geteuid", return_value=0, create=True):
            assert privilege.is_elevated(Platform.POSIX) is True

    def test_regular_user_is_not(self) -> None:
        with patch("sysprune.privilege.os.geteuid", return_value=1000, create=True):
            assert privilege.is_elevated(Platform.POSIX) is False

    def test_windows_administrator(self) -> None:
        windll = MagicMock()
        windll.shell32.IsUserAnAdmin.return_value = 1
        with patch("sysprune.privilege.ctypes.windll", windll, create=True):
            assert privilege.is_elevated(Platform.WINDOWS) is True

    def test_windows_query_failure_is_not_elevated(self) -> None:
        windll = MagicMock()
        windll.shell32.IsUserAnAdmin.side_effect = OSError("no shell32")
        with patch("sysprune.privilege.ctypes.windll", windll, create=True):
            assert privilege.is_elevated(Platform.WINDOWS) is False


class TestCheck:
    """Tests for check."""

    def test_elevated_returns_none(self) -> None:
        with patch("sysprune.privilege.is_elevated", return_value=True):
            assert privilege.check(Platform.POSIX) is None

    def test_posix_capability(self) -> None:
        with patch("sysprune.privilege.is_elevated", return_value=False):
            error = privilege.check(Platform.POSIX)
        assert isinstance(error, ElevationError)
        assert "root" in error.capability

    def test_windows_capability(self) -> None:
        with patch("sysprune.privilege.is_elevated", return_value=False):
            error = privilege.check(Platform.WINDOWS)
        assert isinstance(error, ElevationError)
        assert error.capability == "Administrator rights"
