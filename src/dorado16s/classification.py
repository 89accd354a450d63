from typing import List

from dorado16s.constants import UNCLASSIFIED
from dorado16s.demultiplexing import AlignmentUnit
from dorado16s.logging_config import logger


def is_unclassified(label: str) -> bool:
    return UNCLASSIFIED in label


def keep_unit(label: str, keep_unclassified: bool) -> bool:
    return keep_unclassified or not is_unclassified(label)


def filter_units(units: List[AlignmentUnit], keep_unclassified: bool) -> List[AlignmentUnit]:
    kept_units = []
    for unit in units:
        if not keep_unit(unit.label, keep_unclassified):
            logger.info("Skipping %s (keep_unclassified=false).", unit.label)
            continue
        kept_units.append(unit)
    return kept_units
