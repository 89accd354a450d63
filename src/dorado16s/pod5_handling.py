from dataclasses import dataclass
from pathlib import Path
from typing import List

import pod5

from dorado16s.logging_config import logger
from dorado16s.utils import is_complete_pod5_file


@dataclass
class RunMetadata:
    protocol_run_id: str
    sample_id: str
    sample_rate: int
    flow_cell_product_code: str
    sequencing_kit: str


def find_pod5_files(pod5_dir: Path, max_depth: int = 2) -> List[Path]:
    # Pod5 files in the directory itself and up to max_depth - 1 levels below it
    patterns = ["/".join(["*"] * depth + ["*.pod5"]) for depth in range(max_depth)]
    pod5_files = {pod5_file for pattern in patterns for pod5_file in pod5_dir.glob(pattern) if pod5_file.is_file()}
    return sorted(pod5_files)


def get_run_metadata(pod5_files: List[Path]) -> RunMetadata | None:
    # Get first complete pod5 file
    first_complete_pod5_file = next((pod5_file for pod5_file in pod5_files if is_complete_pod5_file(pod5_file)), None)
    if first_complete_pod5_file is None:
        logger.warning("No complete pod5 file found. Run metadata is not available.")
        return None

    # Get first read from file
    with pod5.Reader(first_complete_pod5_file) as reader:
        first_pod5_read = next(reader.reads(), None)
        if first_pod5_read is None:
            logger.warning("No reads found in %s. Run metadata is not available.", first_complete_pod5_file)
            return None

        # Unpack run info
        run_info = first_pod5_read.run_info

        return RunMetadata(
            protocol_run_id=run_info.protocol_run_id,
            sample_id=run_info.sample_id,
            sample_rate=run_info.sample_rate,
            flow_cell_product_code=run_info.flow_cell_product_code.upper(),
            sequencing_kit=run_info.sequencing_kit.upper(),
        )
