from dataclasses import dataclass
from typing import Sequence

from dorado16s.constants import BARCODE_SEQUENCES_FLAGS, REQUIRED_DEMUX_FLAGS
from dorado16s.exceptions import CompatibilityError
from dorado16s.logging_config import logger
from dorado16s.runner import CommandRunner


@dataclass(frozen=True)
class CapabilityProfile:
    barcode_sequences_flag: str


# Resolved once per process
_cached_profile: CapabilityProfile | None = None


def has_flag(help_text: str, flag: str) -> bool:
    return flag in help_text


def resolve_flag(help_text: str, candidates: Sequence[str]) -> str | None:
    return next((flag for flag in candidates if has_flag(help_text, flag)), None)


def resolve_capabilities(help_text: str) -> CapabilityProfile:
    """
    Resolve the dorado demux flags to use from its help text.

    Raises CompatibilityError if a required flag is missing, since proceeding
    would pass wrong arguments to dorado.
    """
    for flag in REQUIRED_DEMUX_FLAGS:
        if not has_flag(help_text, flag):
            raise CompatibilityError(
                f"dorado demux flag '{flag}' not found in --help output. Your dorado version may differ. Check: dorado demux --help"
            )

    barcode_sequences_flag = resolve_flag(help_text, BARCODE_SEQUENCES_FLAGS)
    if barcode_sequences_flag is None:
        raise CompatibilityError(
            f"Cannot find {' or '.join(BARCODE_SEQUENCES_FLAGS)} in dorado demux --help. Please inspect: dorado demux --help"
        )

    return CapabilityProfile(barcode_sequences_flag=barcode_sequences_flag)


def probe_capabilities(runner: CommandRunner, dorado_executable: str) -> CapabilityProfile:
    global _cached_profile

    if _cached_profile is not None:
        return _cached_profile

    logger.info("Verifying dorado demux flags...")
    help_text = runner.capture([dorado_executable, "demux", "--help"])

    _cached_profile = resolve_capabilities(help_text)
    logger.info("Using barcode sequences flag: %s", _cached_profile.barcode_sequences_flag)

    return _cached_profile


def clear_capability_cache() -> None:
    global _cached_profile
    _cached_profile = None
