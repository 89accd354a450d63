import os
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, List

from rich.console import Console

from dorado16s.barcode_bundle import BarcodeBundle, download_barcode_bundle, extract_barcode_bundle, resolve_barcode_bundle
from dorado16s.basecalling import basecall_to_bam, basecall_with_demux, write_sequencing_summary
from dorado16s.capabilities import probe_capabilities
from dorado16s.classification import filter_units
from dorado16s.configuration import DemuxMode, OutputLayout, RunConfig, guard_output_dir, validate_run_config
from dorado16s.constants import BARCODE_ZIP_URL
from dorado16s.conversion import ConversionOptions, convert_directory, convert_units, select_compressor
from dorado16s.demultiplexing import AlignmentUnit, demux_bam
from dorado16s.exceptions import PipelineError
from dorado16s.filenames import DEMUX_DURING_SCRATCH_DIR, DEMUX_SCRATCH_DIR
from dorado16s.logging_config import logger, set_log_file_handler
from dorado16s.pod5_handling import find_pod5_files, get_run_metadata
from dorado16s.provenance import get_tool_versions, write_versions_file
from dorado16s.reporting import ReadCountRecord, ReportSummary, collect_read_counts, load_read_counts, print_summary, summarize, write_read_counts
from dorado16s.runner import CommandRunner, SubprocessRunner
from dorado16s.trimming import trim_primers
from dorado16s.utils import check_command, is_available


class PipelineStage(Enum):
    VALIDATED = "validated"
    BUNDLE_RESOLVED = "bundle_resolved"
    CAPABILITY_RESOLVED = "capability_resolved"
    BASECALL_DONE = "basecall_done"
    BASECALL_DEMUX_FUSED = "basecall_demux_fused"
    CONVERTED = "converted"
    TRIMMED = "trimmed"
    REPORTED = "reported"
    COMPLETE = "complete"


# Stages that must be the latest completed stage before entering a stage
ALLOWED_PREDECESSORS = {
    PipelineStage.VALIDATED: (None,),
    PipelineStage.BUNDLE_RESOLVED: (PipelineStage.VALIDATED,),
    PipelineStage.CAPABILITY_RESOLVED: (PipelineStage.BUNDLE_RESOLVED,),
    PipelineStage.BASECALL_DONE: (PipelineStage.CAPABILITY_RESOLVED,),
    PipelineStage.BASECALL_DEMUX_FUSED: (PipelineStage.CAPABILITY_RESOLVED,),
    PipelineStage.CONVERTED: (PipelineStage.BASECALL_DONE, PipelineStage.BASECALL_DEMUX_FUSED),
    PipelineStage.TRIMMED: (PipelineStage.CONVERTED,),
    PipelineStage.REPORTED: (PipelineStage.CONVERTED, PipelineStage.TRIMMED),
    PipelineStage.COMPLETE: (PipelineStage.REPORTED,),
}


@dataclass
class PipelineState:
    completed: List[PipelineStage] = field(default_factory=list)

    @property
    def current(self) -> PipelineStage | None:
        return self.completed[-1] if self.completed else None

    def advance(self, stage: PipelineStage) -> None:
        if self.current not in ALLOWED_PREDECESSORS[stage]:
            current = self.current.value if self.current is not None else "start"
            raise PipelineError(f"Cannot enter stage {stage.value} from {current}")
        self.completed.append(stage)
        logger.info("Stage complete: %s", stage.value)


@dataclass
class PipelineResult:
    layout: OutputLayout
    state: PipelineState
    records: List[ReadCountRecord]
    summary: ReportSummary


@contextmanager
def scratch_space(scratch_root: Path | None, output_dir: Path) -> Iterator[Path]:
    # Prefer fast local scratch; fall back to the output tree
    if scratch_root is not None and scratch_root.is_dir():
        parent, prefix = scratch_root, f"dorado_scratch_{os.getpid()}_"
        logger.info("Using local scratch under: %s", scratch_root)
    else:
        parent, prefix = output_dir, f".scratch_{os.getpid()}_"
        logger.warning("TMPDIR not set; using scratch under %s (may be slower on shared FS).", output_dir)

    parent.mkdir(parents=True, exist_ok=True)
    scratch_dir = Path(tempfile.mkdtemp(prefix=prefix, dir=parent))
    try:
        yield scratch_dir
    finally:
        shutil.rmtree(scratch_dir, ignore_errors=True)


def check_dependencies(config: RunConfig) -> bool:
    """
    Check required external tools.

    Returns:
        True if samtools is available.
    """
    check_command(config.dorado_executable)
    if config.trim_primers:
        check_command("cutadapt")

    samtools_available = is_available("samtools")
    if samtools_available:
        logger.info("samtools found.")
    return samtools_available


def prepare_barcode_bundle(layout: OutputLayout, url: str) -> BarcodeBundle:
    download_barcode_bundle(url, layout.bundle_zip)
    extract_barcode_bundle(layout.bundle_zip, layout.bundle_dir)
    return resolve_barcode_bundle(layout.bundle_dir)


def run_pipeline(
    config: RunConfig,
    runner: CommandRunner | None = None,
    console: Console | None = None,
    bundle_url: str = BARCODE_ZIP_URL,
) -> PipelineResult:
    runner = runner or SubprocessRunner()
    state = PipelineState()
    layout = OutputLayout(config.output_dir)

    # Nothing is written before these checks
    validate_run_config(config)
    guard_output_dir(config.output_dir, config.force)
    samtools_available = check_dependencies(config)
    compressor = select_compressor(config.threads)
    options = ConversionOptions(
        compressor=compressor,
        threads=config.threads,
        samtools_available=samtools_available,
        dorado_executable=config.dorado_executable,
    )

    if config.merged_fastq and config.demux_mode == DemuxMode.DURING_BASECALL:
        logger.warning("--merged-fastq has no effect in %s mode: no merged BAM is written.", config.demux_mode.value)

    layout.create()
    file_handler = set_log_file_handler(logger, layout.log_file)
    try:
        state.advance(PipelineStage.VALIDATED)

        bundle = prepare_barcode_bundle(layout, bundle_url)
        state.advance(PipelineStage.BUNDLE_RESOLVED)

        profile = probe_capabilities(runner, config.dorado_executable)
        state.advance(PipelineStage.CAPABILITY_RESOLVED)

        # Provenance
        metadata = get_run_metadata(find_pod5_files(config.pod5_dir))
        tool_versions = get_tool_versions(runner, config, compressor, samtools_available)
        write_versions_file(layout.versions_file, config, bundle, tool_versions, metadata)

        with scratch_space(config.scratch_root, config.output_dir) as scratch_dir:
            units: List[AlignmentUnit]
            if config.demux_mode == DemuxMode.AFTER_BASECALL:
                logger.info("=== STEP 1: Basecalling (no trim) ===")
                merged_bam = basecall_to_bam(runner, config, scratch_dir, layout.merged_bam)
                write_sequencing_summary(runner, config.dorado_executable, merged_bam, layout.sequencing_summary)
                if config.merged_fastq:
                    convert_directory(runner, layout.basecalled_dir, layout.basecalled_dir, options)

                logger.info("=== STEP 2: Demultiplexing (after basecall) ===")
                units = demux_bam(runner, config.dorado_executable, merged_bam, bundle, profile, scratch_dir / DEMUX_SCRATCH_DIR)
                state.advance(PipelineStage.BASECALL_DONE)
            else:
                logger.info("=== STEP 1+2: Basecalling WITH inline demultiplexing ===")
                units = basecall_with_demux(runner, config, bundle, profile, scratch_dir / DEMUX_DURING_SCRATCH_DIR)
                state.advance(PipelineStage.BASECALL_DEMUX_FUSED)

            # Drop unwanted units before any conversion work
            units = filter_units(units, config.keep_unclassified)

            logger.info("=== STEP 3: Converting demux BAMs to FASTQ.gz ===")
            convert_units(runner, units, layout.demux_dir, options)
            state.advance(PipelineStage.CONVERTED)

        report_root = layout.demux_dir
        if config.trim_primers:
            logger.info("=== STEP 4: Trimming primers with cutadapt ===")
            trim_primers(runner, layout.demux_dir, layout.trimmed_dir, layout.logs_dir, config.threads)
            report_root = layout.trimmed_dir
            state.advance(PipelineStage.TRIMMED)

        logger.info("=== STEP 5: Generating read count report ===")
        records = collect_read_counts(report_root, config.threads)
        write_read_counts(records, layout.read_counts_tsv)
        state.advance(PipelineStage.REPORTED)

        # Summary is computed from the table as written
        summary = summarize(load_read_counts(layout.read_counts_tsv))
        print_summary(summary, config.output_dir, console)
        state.advance(PipelineStage.COMPLETE)
    finally:
        logger.removeHandler(file_handler)
        file_handler.close()

    return PipelineResult(layout=layout, state=state, records=records, summary=summary)
