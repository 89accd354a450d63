from dataclasses import dataclass
from pathlib import Path
from subprocess import CalledProcessError
from typing import Iterable, Iterator, List

from dorado16s.constants import SUMMARY_QUALITY_COLUMN, SUMMARY_READ_ID_COLUMN, SUMMARY_SEQUENCE_COLUMN
from dorado16s.demultiplexing import AlignmentUnit
from dorado16s.exceptions import DependencyError
from dorado16s.filenames import FASTQ_SUFFIX
from dorado16s.logging_config import logger
from dorado16s.runner import CommandRunner
from dorado16s.utils import is_available


@dataclass(frozen=True)
class Compressor:
    name: str
    args: List[str]


@dataclass(frozen=True)
class ConversionOptions:
    compressor: Compressor
    threads: int
    samtools_available: bool
    dorado_executable: str


def select_compressor(threads: int) -> Compressor:
    # Prefer pigz over gzip for compression speed
    if is_available("pigz"):
        logger.info("Using pigz for compression.")
        return Compressor(name="pigz", args=["pigz", "-p", str(threads), "-c"])

    logger.warning("pigz not found; falling back to gzip (slower).")
    return Compressor(name="gzip", args=["gzip", "-c"])


def summary_to_fastq_records(lines: Iterable[str]) -> Iterator[str]:
    """
    Build FASTQ records from `dorado summary` rows.

    Read id, sequence and quality are taken from fixed columns. The header row is skipped.
    """
    lines = iter(lines)
    next(lines, None)

    min_columns = max(SUMMARY_READ_ID_COLUMN, SUMMARY_SEQUENCE_COLUMN, SUMMARY_QUALITY_COLUMN)
    for line in lines:
        columns = line.split()
        if len(columns) < min_columns:
            continue

        read_id = columns[SUMMARY_READ_ID_COLUMN - 1]
        sequence = columns[SUMMARY_SEQUENCE_COLUMN - 1]
        quality = columns[SUMMARY_QUALITY_COLUMN - 1]
        yield f"@{read_id}\n{sequence}\n+\n{quality}\n"


def convert_with_samtools(runner: CommandRunner, bam: Path, out_fq: Path, options: ConversionOptions) -> None:
    runner.pipe(
        ["samtools", "fastq", "-@", str(options.threads), str(bam)],
        options.compressor.args,
        out_fq,
    )


def convert_with_summary(runner: CommandRunner, bam: Path, out_fq: Path, options: ConversionOptions) -> bool:
    """
    Best effort conversion using `dorado summary` when samtools is missing.

    Returns False (and logs a warning) instead of raising on failure.
    """
    summary_file = out_fq.with_name(out_fq.name + ".summary.tmp")
    fastq_file = out_fq.with_name(out_fq.name + ".fastq.tmp")
    try:
        runner.run([options.dorado_executable, "summary", str(bam)], stdout=summary_file)

        with open(summary_file, "r", encoding="utf-8") as f_in, open(fastq_file, "w", encoding="utf-8") as f_out:
            f_out.writelines(summary_to_fastq_records(f_in))

        runner.run(options.compressor.args, stdin=fastq_file, stdout=out_fq)
    except (CalledProcessError, OSError) as e:
        logger.warning("samtools not available and dorado summary fallback failed for %s: %s. Install samtools.", bam, e)
        out_fq.unlink(missing_ok=True)
        return False
    finally:
        summary_file.unlink(missing_ok=True)
        fastq_file.unlink(missing_ok=True)

    return True


def bam_to_fastq_gz(
    runner: CommandRunner,
    bam: Path,
    out_fq: Path,
    options: ConversionOptions,
    allow_fallback: bool,
) -> bool:
    if not options.samtools_available and not allow_fallback:
        raise DependencyError("samtools is required to convert demux BAMs to FASTQ. Please load samtools module.")

    out_fq.parent.mkdir(parents=True, exist_ok=True)
    if options.samtools_available:
        convert_with_samtools(runner, bam, out_fq, options)
    elif not convert_with_summary(runner, bam, out_fq, options):
        return False

    logger.info("Converted: %s -> %s", bam, out_fq)
    return True


def convert_units(runner: CommandRunner, units: List[AlignmentUnit], demux_dir: Path, options: ConversionOptions) -> List[Path]:
    """
    Convert per-barcode BAMs to demux/<barcode>/<barcode>.fastq.gz.

    The summary fallback is not used here: per-barcode output needs samtools.
    """
    fastq_files = []
    for unit in units:
        out_fq = demux_dir / unit.label / f"{unit.label}{FASTQ_SUFFIX}"
        bam_to_fastq_gz(runner, unit.bam, out_fq, options, allow_fallback=False)
        fastq_files.append(out_fq)
    return fastq_files


def convert_directory(runner: CommandRunner, bam_dir: Path, fq_dir: Path, options: ConversionOptions) -> List[Path]:
    # Whole-run conversion: the summary fallback is allowed and failures are not fatal
    fastq_files = []
    for bam in sorted(bam_dir.glob("*.bam")):
        out_fq = fq_dir / f"{bam.stem}{FASTQ_SUFFIX}"
        if bam_to_fastq_gz(runner, bam, out_fq, options, allow_fallback=True):
            fastq_files.append(out_fq)
    return fastq_files
