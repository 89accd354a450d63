import os
import platform
import socket
from datetime import datetime
from pathlib import Path
from typing import List, Tuple

from dorado16s.barcode_bundle import BarcodeBundle
from dorado16s.configuration import RunConfig
from dorado16s.conversion import Compressor
from dorado16s.logging_config import logger
from dorado16s.pod5_handling import RunMetadata
from dorado16s.runner import CommandRunner
from dorado16s.utils import write_to_file


def first_line(text: str) -> str:
    return next((line.strip() for line in text.splitlines() if line.strip()), "unknown")


def get_tool_versions(
    runner: CommandRunner,
    config: RunConfig,
    compressor: Compressor,
    samtools_available: bool,
) -> List[Tuple[str, str]]:
    versions = [
        ("dorado", first_line(runner.capture([config.dorado_executable, "--version"]))),
        ("pigz/gzip", first_line(runner.capture([compressor.name, "--version"]))),
    ]
    if samtools_available:
        versions.append(("samtools", first_line(runner.capture(["samtools", "--version"]))))
    if config.trim_primers:
        versions.append(("cutadapt", first_line(runner.capture(["cutadapt", "--version"]))))
    versions.append(("python", platform.python_version()))
    return versions


def write_versions_file(
    versions_file: Path,
    config: RunConfig,
    bundle: BarcodeBundle,
    tool_versions: List[Tuple[str, str]],
    metadata: RunMetadata | None = None,
) -> None:
    lines = [
        "===== Pipeline Provenance =====",
        f"Date           : {datetime.now().astimezone().strftime('%Y-%m-%d %H:%M:%S %Z')}",
        f"Hostname       : {socket.getfqdn()}",
        f"SLURM_JOB_ID   : {os.environ.get('SLURM_JOB_ID', 'not_set')}",
        f"Model          : {config.model}",
        f"TOML file      : {bundle.arrangement}",
        f"FASTA file     : {bundle.sequences}",
        f"demux_mode     : {config.demux_mode.value}",
        f"trim_primers   : {str(config.trim_primers).lower()}",
        f"keep_unclassified : {str(config.keep_unclassified).lower()}",
    ]

    if metadata is not None:
        lines += [
            f"Flow cell      : {metadata.flow_cell_product_code}",
            f"Sequencing kit : {metadata.sequencing_kit}",
            f"Sample rate    : {metadata.sample_rate}",
            f"Protocol run   : {metadata.protocol_run_id}",
        ]

    lines += ["", "===== Tool Versions ====="]
    lines += [f"{tool:<15}: {version}" for tool, version in tool_versions]

    write_to_file(versions_file, "\n".join(lines) + "\n")
    logger.info("Versions written to %s", versions_file)
