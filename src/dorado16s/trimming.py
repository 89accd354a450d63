from dataclasses import dataclass
from pathlib import Path
from typing import List

from dorado16s.constants import FWD_PRIMER, MIN_TRIMMED_LENGTH, REV_PRIMER
from dorado16s.filenames import FASTQ_SUFFIX
from dorado16s.logging_config import logger
from dorado16s.runner import CommandRunner


@dataclass(frozen=True)
class PrimerSet:
    forward: str = FWD_PRIMER
    reverse: str = REV_PRIMER
    min_length: int = MIN_TRIMMED_LENGTH


def cutadapt_args(primers: PrimerSet, in_fq: Path, out_fq: Path, threads: int) -> List[str]:
    return [
        "cutadapt",
        "-g",
        primers.forward,
        "-a",
        primers.reverse,
        "--discard-untrimmed",
        "--minimum-length",
        str(primers.min_length),
        "-j",
        str(threads),
        "-o",
        str(out_fq),
        str(in_fq),
    ]


def trim_primers(
    runner: CommandRunner,
    demux_dir: Path,
    trimmed_dir: Path,
    logs_dir: Path,
    threads: int,
    primers: PrimerSet = PrimerSet(),
) -> List[Path]:
    if primers == PrimerSet():
        logger.warning("Using default 27F/1492R primer sequences. Verify these match your kit!")

    trimmed_files = []
    barcode_dirs = sorted(d for d in demux_dir.iterdir() if d.is_dir())
    for barcode_dir in barcode_dirs:
        # Same directory shape as the demux output
        trimmed_barcode_dir = trimmed_dir / barcode_dir.name
        trimmed_barcode_dir.mkdir(parents=True, exist_ok=True)

        log_file = logs_dir / f"cutadapt_{barcode_dir.name}.log"
        for in_fq in sorted(barcode_dir.rglob(f"*{FASTQ_SUFFIX}")):
            out_fq = trimmed_barcode_dir / in_fq.name
            runner.run(cutadapt_args(primers, in_fq, out_fq, threads), stdout=log_file, append=True)
            logger.info("Trimmed: %s -> %s", in_fq, out_fq)
            trimmed_files.append(out_fq)

    logger.info("Primer trimming complete. Trimmed reads in: %s", trimmed_dir)
    return trimmed_files
