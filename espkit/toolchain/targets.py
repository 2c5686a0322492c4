"""
Supported chips and build target parsing.

Target strings come from the user ('esp32,esp32c3', 'esp32 esp32s3', 'all')
and are mapped strictly: any unknown token rejects the whole string.
"""

import logging
import re
from enum import Enum
from typing import List

from espkit.core.exceptions import TargetParseError

logger = logging.getLogger(__name__)

ALL_TARGETS_TOKEN = "all"


class Chip(Enum):
    """Espressif chips espkit can install toolchains for."""

    ESP32 = "esp32"
    ESP32S2 = "esp32s2"
    ESP32S3 = "esp32s3"
    ESP32C3 = "esp32c3"

    @classmethod
    def from_str(cls, token: str) -> "Chip":
        """
        Look up a chip by its lower-case name.

        Raises:
            TargetParseError: If token names no supported chip
        """
        try:
            return cls(token)
        except ValueError:
            raise TargetParseError(token) from None

    @property
    def architecture(self) -> str:
        """CPU architecture of the chip ('xtensa' or 'riscv')."""
        return "riscv" if self is Chip.ESP32C3 else "xtensa"

    def __str__(self) -> str:
        return self.value


# Canonical order used for 'all'
ALL_CHIPS: List[Chip] = [Chip.ESP32, Chip.ESP32S2, Chip.ESP32S3, Chip.ESP32C3]


def parse_targets(build_target: str) -> List[Chip]:
    """
    Parse a build target string into an ordered, de-duplicated chip list.

    Tokens are separated by commas and/or whitespace and matched
    case-insensitively. If any token is 'all', every supported chip is
    returned in canonical order and the remaining tokens are ignored, even
    unknown ones.

    Args:
        build_target: Target string, e.g. 'esp32,esp32c3' or 'all'

    Returns:
        Chips in input order, without duplicates

    Raises:
        TargetParseError: On the first unknown token, or if no token is given

    Example:
        >>> parse_targets('esp32, esp32c3')
        [<Chip.ESP32: 'esp32'>, <Chip.ESP32C3: 'esp32c3'>]
    """
    logger.debug(f"Parsing targets: {build_target}")
    tokens = [t for t in re.split(r"[,\s]+", build_target.strip().lower()) if t]

    if ALL_TARGETS_TOKEN in tokens:
        return list(ALL_CHIPS)

    if not tokens:
        raise TargetParseError("")

    chips: List[Chip] = []
    for token in tokens:
        chip = Chip.from_str(token)
        if chip not in chips:
            chips.append(chip)

    return chips
