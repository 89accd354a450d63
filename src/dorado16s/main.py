import subprocess
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from dorado16s.configuration import DemuxMode, RunConfig, get_default_scratch_root
from dorado16s.constants import DEFAULT_DORADO_EXECUTABLE, DEFAULT_GPUS, DEFAULT_THREADS
from dorado16s.exceptions import PipelineError
from dorado16s.logging_config import logger, set_log_file_handler
from dorado16s.pipeline import run_pipeline

# Set up the CLI
app = typer.Typer()


@app.command()
def run(
    pod5_dir: Annotated[
        Path,
        typer.Option(
            "--pod5-dir",
            "-i",
            help="Directory with POD5 files",
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
        ),
    ],
    out_dir: Annotated[
        Path,
        typer.Option(
            "--out-dir",
            "-o",
            help="Output directory",
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
        ),
    ],
    model: Annotated[
        str,
        typer.Option(
            "--model",
            "-m",
            help="Basecalling model name or path (e.g. dna_r10.4.1_e8.2_400bps_sup@v5.0.0)",
        ),
    ],
    threads: Annotated[
        int,
        typer.Option(
            "--threads",
            "-t",
            help="Threads for conversion, compression and trimming",
        ),
    ] = DEFAULT_THREADS,
    gpus: Annotated[
        int,
        typer.Option(
            "--gpus",
            "-g",
            help="Number of GPUs. 0 runs the basecaller on CPU",
        ),
    ] = DEFAULT_GPUS,
    keep_unclassified: Annotated[
        bool,
        typer.Option(
            "--keep-unclassified/--drop-unclassified",
            help="Keep reads without a barcode",
        ),
    ] = True,
    demux_mode: Annotated[
        DemuxMode,
        typer.Option(
            "--demux-mode",
            help="Demultiplex after basecalling or during basecalling",
            case_sensitive=False,
        ),
    ] = DemuxMode.AFTER_BASECALL,
    trim_primers: Annotated[
        bool,
        typer.Option(
            "--trim-primers",
            help="Trim 16S primers with cutadapt after demultiplexing",
        ),
    ] = False,
    merged_fastq: Annotated[
        bool,
        typer.Option(
            "--merged-fastq",
            help="Also write the merged basecalled BAM as FASTQ.gz (after_basecall mode only)",
        ),
    ] = False,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Write into an existing output directory",
        ),
    ] = False,
    dorado_executable: Annotated[
        str,
        typer.Option(
            "--dorado-executable",
            "-d",
            help="Dorado executable name or path",
        ),
    ] = DEFAULT_DORADO_EXECUTABLE,
    log_file: Annotated[
        Optional[Path],
        typer.Option(
            "--log-file",
            "-l",
            help="Additional log file",
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ] = None,
) -> None:

    # Setup logging to file
    if log_file is not None:
        set_log_file_handler(logger, log_file)

    # Welcome message
    logger.info("Running dorado16s...")

    config = RunConfig(
        pod5_dir=pod5_dir,
        output_dir=out_dir,
        model=model,
        threads=threads,
        gpus=gpus,
        keep_unclassified=keep_unclassified,
        demux_mode=demux_mode,
        trim_primers=trim_primers,
        force=force,
        merged_fastq=merged_fastq,
        dorado_executable=dorado_executable,
        scratch_root=get_default_scratch_root(),
    )

    try:
        run_pipeline(config)
    except PipelineError as e:
        logger.error("%s", e)
        raise typer.Exit(code=1) from e
    except subprocess.CalledProcessError as e:
        logger.error("Command failed with exit code %d: %s", e.returncode, " ".join(str(x) for x in e.cmd))
        raise typer.Exit(code=1) from e
    except OSError as e:
        logger.error("System error: %s", e)
        raise typer.Exit(code=1) from e


if __name__ == "__main__":
    app()
