"""Target machine descriptions — address width, stack alignment, linkage."""

from __future__ import annotations

import logging
import platform
from enum import Enum

from . import constants

logger = logging.getLogger(__name__)


class Target(Enum):
    """Supported target architectures."""

    I386 = "i386"
    AMD64 = "amd64"
    ARM64 = "arm64"

    @classmethod
    def from_string(cls, name: str) -> Target:
        aliases = {
            "i386": cls.I386,
            "i686": cls.I386,
            "x86": cls.I386,
            "amd64": cls.AMD64,
            "x86_64": cls.AMD64,
            "x64": cls.AMD64,
            "arm64": cls.ARM64,
            "aarch64": cls.ARM64,
        }
        key = name.strip().lower()
        if key == "native":
            return cls.native()
        if key not in aliases:
            raise ValueError(
                f"Unsupported target '{name}'. Available: {sorted(aliases)} or 'native'"
            )
        return aliases[key]

    @classmethod
    def native(cls) -> Target:
        machine = platform.machine().lower()
        if machine in ("i386", "i686", "x86"):
            return cls.I386
        if machine in ("arm64", "aarch64"):
            return cls.ARM64
        if machine not in ("x86_64", "amd64"):
            logger.info("Unknown host machine %r, defaulting to amd64", machine)
        return cls.AMD64

    @property
    def pointer_size(self) -> int:
        return 4 if self is Target.I386 else 8

    @property
    def stack_alignment(self) -> int:
        return constants.STACK_ALIGNMENT

    @property
    def arg_slot_size(self) -> int:
        """Every outgoing argument occupies one address-width slot."""
        return self.pointer_size

    @property
    def linkage_size(self) -> int:
        """Saved frame pointer plus return address."""
        return 2 * self.pointer_size


def resolve_target(target: Target | str) -> Target:
    if isinstance(target, Target):
        return target
    return Target.from_string(target)
