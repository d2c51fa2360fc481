"""GPU shader caches, rebuilt on demand by the driver."""

from __future__ import annotations

from ...locations import PerUser, Platform
from ..base import Cleaner

CLEANER = Cleaner(
    name="shaders",
    description="GPU driver shader caches",
    locations=(
        PerUser("AppData/Local/NVIDIA/DXCache/*", platform=Platform.WINDOWS),
        PerUser("AppData/Local/D3DSCache/*", platform=Platform.WINDOWS),
        PerUser(".cache/mesa_shader_cache/*", platform=Platform.POSIX),
        PerUser(".cache/nvidia/GLCache/*", platform=Platform.POSIX),
    ),
)
