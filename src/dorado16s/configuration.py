import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import dorado16s.filenames as fn
from dorado16s.constants import DEFAULT_DORADO_EXECUTABLE, DEFAULT_GPUS, DEFAULT_THREADS
from dorado16s.exceptions import ConfigurationError, OutputCollisionError
from dorado16s.logging_config import logger
from dorado16s.pod5_handling import find_pod5_files


class DemuxMode(str, Enum):
    AFTER_BASECALL = "after_basecall"
    DURING_BASECALL = "during_basecall"


@dataclass(frozen=True)
class RunConfig:
    pod5_dir: Path
    output_dir: Path
    model: str
    threads: int = DEFAULT_THREADS
    gpus: int = DEFAULT_GPUS
    keep_unclassified: bool = True
    demux_mode: DemuxMode = DemuxMode.AFTER_BASECALL
    trim_primers: bool = False
    force: bool = False
    merged_fastq: bool = False
    dorado_executable: str = DEFAULT_DORADO_EXECUTABLE
    scratch_root: Path | None = None

    @property
    def device(self) -> str:
        return "cuda:all" if self.gpus > 0 else "cpu"


@dataclass
class OutputLayout:
    # Output root
    root: Path

    # Derived attributes
    # General
    logs_dir: Path = field(init=False)
    log_file: Path = field(init=False)
    reports_dir: Path = field(init=False)

    # Barcode bundle
    resources_dir: Path = field(init=False)
    bundle_zip: Path = field(init=False)
    bundle_dir: Path = field(init=False)

    # Basecalling
    basecalled_dir: Path = field(init=False)
    merged_bam: Path = field(init=False)
    summary_dir: Path = field(init=False)
    sequencing_summary: Path = field(init=False)

    # Demultiplexing
    demux_dir: Path = field(init=False)
    trimmed_dir: Path = field(init=False)

    # Reports
    versions_file: Path = field(init=False)
    read_counts_tsv: Path = field(init=False)

    def __post_init__(self):
        # General
        self.logs_dir = self.root / fn.LOGS_DIR
        self.log_file = self.logs_dir / fn.LOG_FILE
        self.reports_dir = self.root / fn.REPORTS_DIR

        # Barcode bundle
        self.resources_dir = self.root / fn.RESOURCES_DIR
        self.bundle_zip = self.resources_dir / fn.BUNDLE_ZIP
        self.bundle_dir = self.resources_dir / fn.BUNDLE_DIR

        # Basecalling
        self.basecalled_dir = self.root / fn.BC_DIR
        self.merged_bam = self.basecalled_dir / fn.MERGED_BAM
        self.summary_dir = self.reports_dir / fn.SUMMARY_DIR
        self.sequencing_summary = self.summary_dir / fn.SEQUENCING_SUMMARY

        # Demultiplexing
        self.demux_dir = self.root / fn.DEMUX_DIR
        self.trimmed_dir = self.root / fn.TRIMMED_DIR

        # Reports
        self.versions_file = self.reports_dir / fn.VERSIONS
        self.read_counts_tsv = self.reports_dir / fn.READ_COUNTS

    def create(self) -> None:
        for directory in [self.logs_dir, self.resources_dir, self.basecalled_dir, self.demux_dir, self.reports_dir, self.summary_dir]:
            directory.mkdir(parents=True, exist_ok=True)


def get_default_scratch_root() -> Path | None:
    tmpdir = os.environ.get("TMPDIR")
    if tmpdir and Path(tmpdir).is_dir():
        return Path(tmpdir)
    return None


def validate_run_config(config: RunConfig) -> int:
    """
    Check that the run can start.

    Returns:
        Number of pod5 files found in the input directory.
    """
    if not config.model:
        raise ConfigurationError("--model is required (e.g. dna_r10.4.1_e8.2_400bps_sup@v5.0.0 or full path).")

    if config.threads < 1:
        raise ConfigurationError(f"--threads must be at least 1. Got: {config.threads}")

    if config.gpus < 0:
        raise ConfigurationError(f"--gpus must not be negative. Got: {config.gpus}")

    if not config.pod5_dir.is_dir():
        raise ConfigurationError(f"POD5 directory not found: {config.pod5_dir}")

    pod5_count = len(find_pod5_files(config.pod5_dir))
    if pod5_count == 0:
        raise ConfigurationError(f"No .pod5 files found under {config.pod5_dir}")

    logger.info("Found %d POD5 file(s) in %s", pod5_count, config.pod5_dir)
    return pod5_count


def guard_output_dir(output_dir: Path, force: bool) -> None:
    # Protect existing results unless explicitly overridden
    if output_dir.exists() and not force:
        logger.warning("Output directory already exists: %s", output_dir)
        raise OutputCollisionError(f"Output directory already exists: {output_dir}. Pass --force to overwrite.")
