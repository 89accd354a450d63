import shutil
from pathlib import Path
from subprocess import CalledProcessError
from typing import List

from dorado16s.barcode_bundle import BarcodeBundle
from dorado16s.capabilities import CapabilityProfile
from dorado16s.configuration import RunConfig
from dorado16s.demultiplexing import AlignmentUnit, barcode_args, find_alignment_units
from dorado16s.filenames import MERGED_BAM
from dorado16s.logging_config import logger
from dorado16s.runner import CommandRunner


def basecaller_args(config: RunConfig) -> List[str]:
    return [
        config.dorado_executable,
        "basecaller",
        config.model,
        str(config.pod5_dir),
        "--device",
        config.device,
        "--no-trim",
    ]


def basecall_to_bam(runner: CommandRunner, config: RunConfig, scratch_dir: Path, merged_bam: Path) -> Path:
    # Write to scratch first, then copy to the output tree
    scratch_bam = scratch_dir / MERGED_BAM
    runner.run(basecaller_args(config), stdout=scratch_bam)

    logger.info("Copying basecalled BAM from scratch to %s ...", merged_bam)
    merged_bam.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(scratch_bam, merged_bam)
    logger.info("Basecalling complete. BAM: %s", merged_bam)

    return merged_bam


def write_sequencing_summary(runner: CommandRunner, dorado_executable: str, bam: Path, summary_file: Path) -> bool:
    """
    Write a dorado sequencing summary for a BAM file.

    Failing here does not stop the run. Returns True if the summary was written.
    """
    summary_file.parent.mkdir(parents=True, exist_ok=True)
    try:
        runner.run([dorado_executable, "summary", str(bam)], stdout=summary_file)
    except (CalledProcessError, OSError) as e:
        logger.warning("dorado summary failed (non-fatal): %s", e)
        return False

    return True


def basecall_with_demux(
    runner: CommandRunner,
    config: RunConfig,
    bundle: BarcodeBundle,
    profile: CapabilityProfile,
    output_dir: Path,
) -> List[AlignmentUnit]:
    output_dir.mkdir(parents=True, exist_ok=True)

    runner.run(
        [
            *basecaller_args(config),
            *barcode_args(bundle, profile),
            "--output-dir",
            str(output_dir),
        ]
    )
    logger.info("Basecall+demux complete. Output: %s", output_dir)

    return find_alignment_units(output_dir)
