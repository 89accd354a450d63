import gzip
import shutil
import subprocess
import zipfile
from pathlib import Path
from typing import Dict, List

import pytest

from dorado16s import capabilities, conversion, pipeline

DEMUX_HELP = """\
Usage: dorado demux [--help] [--output-dir VAR] [--barcode-arrangement VAR] [--barcode-sequences VAR] [--no-trim] reads

Optional arguments:
  -o, --output-dir            Output folder for demultiplexed reads.
  --barcode-arrangement       Path to file with custom barcode arrangement.
  --barcode-sequences         Path to file with custom barcode sequences.
  --no-trim                   Skip barcode trimming.
"""


def create_files(files):
    for file in files:
        file.parent.mkdir(parents=True, exist_ok=True)
        file.touch()


def write_fastq_gz(path: Path, sequences: List[str]):
    path.parent.mkdir(parents=True, exist_ok=True)
    with gzip.open(path, "wt", encoding="utf-8") as f:
        for i, sequence in enumerate(sequences):
            f.write(f"@read{i}\n{sequence}\n+\n{'I' * len(sequence)}\n")


def write_bundle_zip(zip_path: Path):
    zip_path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(zip_path, "w") as zf:
        zf.writestr("minibar_and_barcodes/arrangement.toml", "[arrangement]\nname = 'zymo'\n")
        zf.writestr("minibar_and_barcodes/barcodes.fasta", ">BC01\nACGT\n")


class FakeRunner:
    """Stands in for dorado, samtools, pigz and cutadapt."""

    def __init__(self, barcode_reads: Dict[str, List[str]] | None = None, demux_help: str = DEMUX_HELP, fail_on: str | None = None):
        self.barcode_reads = barcode_reads or {}
        self.demux_help = demux_help
        self.fail_on = fail_on
        self.calls: List[List[str]] = []
        self.captured: List[List[str]] = []

    def _write_bams(self, output_dir: Path):
        output_dir.mkdir(parents=True, exist_ok=True)
        for label in self.barcode_reads:
            (output_dir / f"{label}.bam").write_bytes(b"BAM")

    def run(self, args, stdout=None, stdin=None, append=False):
        self.calls.append(list(args))
        if self.fail_on is not None and self.fail_on in args:
            raise subprocess.CalledProcessError(1, args)

        if args[1:2] == ["basecaller"]:
            if "--output-dir" in args:
                self._write_bams(Path(args[args.index("--output-dir") + 1]))
            else:
                stdout.write_bytes(b"BAM")
        elif args[1:2] == ["demux"]:
            self._write_bams(Path(args[args.index("--output-dir") + 1]))
        elif args[1:2] == ["summary"]:
            stdout.write_text("read_id\tfilename\n", encoding="utf-8")
        elif args[0] == "cutadapt":
            shutil.copyfile(args[-1], args[args.index("-o") + 1])
            with open(stdout, "a", encoding="utf-8") as f:
                f.write("cutadapt done\n")
        elif stdin is not None:
            with open(stdin, "rb") as f_in, gzip.open(stdout, "wb") as f_out:
                shutil.copyfileobj(f_in, f_out)

    def pipe(self, producer, consumer, out_file):
        self.calls.append([*producer, "|", *consumer])
        if self.fail_on is not None and self.fail_on in producer:
            raise subprocess.CalledProcessError(1, producer)
        bam = Path(producer[-1])
        write_fastq_gz(out_file, self.barcode_reads.get(bam.stem, []))

    def capture(self, args):
        self.captured.append(list(args))
        if list(args[1:]) == ["demux", "--help"]:
            return self.demux_help
        return "1.0.0"

    def commands(self, subcommand: str) -> List[List[str]]:
        return [call for call in self.calls if call[1:2] == [subcommand]]


@pytest.fixture(autouse=True)
def reset_capability_cache():
    capabilities.clear_capability_cache()
    yield
    capabilities.clear_capability_cache()


@pytest.fixture
def mock_external_tools(monkeypatch):
    # All tools found, no network access
    monkeypatch.setattr(pipeline, "check_command", lambda *args, **kwargs: None)
    monkeypatch.setattr(pipeline, "is_available", lambda *args, **kwargs: True)
    monkeypatch.setattr(conversion, "is_available", lambda *args, **kwargs: True)
    monkeypatch.setattr(pipeline, "download_barcode_bundle", lambda url, zip_path: write_bundle_zip(zip_path))
