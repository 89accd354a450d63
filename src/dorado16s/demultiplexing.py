from dataclasses import dataclass
from pathlib import Path
from typing import List

from dorado16s.barcode_bundle import BarcodeBundle
from dorado16s.capabilities import CapabilityProfile
from dorado16s.logging_config import logger
from dorado16s.runner import CommandRunner


@dataclass(frozen=True)
class AlignmentUnit:
    label: str
    bam: Path


def barcode_args(bundle: BarcodeBundle, profile: CapabilityProfile) -> List[str]:
    return [
        "--barcode-arrangement",
        str(bundle.arrangement),
        profile.barcode_sequences_flag,
        str(bundle.sequences),
    ]


def demux_bam(
    runner: CommandRunner,
    dorado_executable: str,
    merged_bam: Path,
    bundle: BarcodeBundle,
    profile: CapabilityProfile,
    output_dir: Path,
) -> List[AlignmentUnit]:
    output_dir.mkdir(parents=True, exist_ok=True)

    runner.run(
        [
            dorado_executable,
            "demux",
            str(merged_bam),
            "--output-dir",
            str(output_dir),
            *barcode_args(bundle, profile),
            "--no-trim",
        ]
    )
    logger.info("Demux BAMs written to %s", output_dir)

    return find_alignment_units(output_dir)


def find_alignment_units(directory: Path) -> List[AlignmentUnit]:
    # One BAM per barcode. Label is the file name without extension
    bam_files = sorted(directory.glob("*.bam"))
    return [AlignmentUnit(label=bam.stem, bam=bam) for bam in bam_files]
