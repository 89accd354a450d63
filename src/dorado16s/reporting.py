import csv
import gzip
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from rich.console import Console
from rich.markup import escape

from dorado16s.classification import is_unclassified
from dorado16s.constants import READ_COUNTS_HEADER, TOP_N_BARCODES
from dorado16s.filenames import FASTQ_SUFFIX
from dorado16s.logging_config import logger


@dataclass(frozen=True)
class ReadCountRecord:
    barcode: str
    reads: int
    bases: int


@dataclass(frozen=True)
class ReportSummary:
    total_reads: int
    has_unclassified: bool
    unclassified_reads: int
    unclassified_pct: float
    top_barcodes: List[ReadCountRecord] = field(default_factory=list)


def count_fastq_gz(fastq_file: Path) -> Tuple[int, int]:
    """
    Count reads and bases in a gzipped FASTQ file.

    A record is four lines; the second line of each record is the sequence.
    """
    reads = 0
    bases = 0
    with gzip.open(fastq_file, "rt", encoding="utf-8") as f:
        for line_number, line in enumerate(f):
            position = line_number % 4
            if position == 0:
                reads += 1
            elif position == 1:
                bases += len(line.rstrip("\r\n"))
    return reads, bases


def count_group(group_dir: Path) -> ReadCountRecord:
    counts = [count_fastq_gz(fastq_file) for fastq_file in sorted(group_dir.rglob(f"*{FASTQ_SUFFIX}"))]
    return ReadCountRecord(
        barcode=group_dir.name,
        reads=sum(reads for reads, _ in counts),
        bases=sum(bases for _, bases in counts),
    )


def collect_read_counts(report_root: Path, threads: int = 1) -> List[ReadCountRecord]:
    group_dirs = sorted(d for d in report_root.iterdir() if d.is_dir()) if report_root.is_dir() else []

    # Groups are independent; map keeps the sorted order regardless of completion order
    with ThreadPoolExecutor(max_workers=max(1, threads)) as executor:
        return list(executor.map(count_group, group_dirs))


def write_read_counts(records: List[ReadCountRecord], tsv_file: Path) -> None:
    tsv_file.parent.mkdir(parents=True, exist_ok=True)
    with open(tsv_file, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f, delimiter="\t", lineterminator="\n")
        writer.writerow(READ_COUNTS_HEADER)
        writer.writerows((record.barcode, record.reads, record.bases) for record in records)
    logger.info("Read counts written to %s", tsv_file)


def load_read_counts(tsv_file: Path) -> List[ReadCountRecord]:
    with open(tsv_file, "r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f, delimiter="\t")
        return [ReadCountRecord(row["barcode_folder"], int(row["reads"]), int(row["bases"])) for row in reader]


def summarize(records: List[ReadCountRecord], top_n: int = TOP_N_BARCODES) -> ReportSummary:
    total_reads = sum(record.reads for record in records)

    # First unclassified group counts
    unclassified = next((record for record in records if is_unclassified(record.barcode)), None)
    unclassified_reads = unclassified.reads if unclassified is not None else 0
    unclassified_pct = round(unclassified_reads / total_reads * 100, 1) if total_reads > 0 else 0.0

    # Stable sort keeps table order for equal read counts
    classified = [record for record in records if not is_unclassified(record.barcode)]
    top_barcodes = sorted(classified, key=lambda record: record.reads, reverse=True)[:top_n]

    return ReportSummary(
        total_reads=total_reads,
        has_unclassified=unclassified is not None,
        unclassified_reads=unclassified_reads,
        unclassified_pct=unclassified_pct,
        top_barcodes=top_barcodes,
    )


def print_summary(summary: ReportSummary, output_dir: Path, console: Console | None = None) -> None:
    console = console or Console()
    rule = "═" * 40

    console.print()
    console.print(f"[bold]{rule}[/bold]")
    console.print("[bold]  PIPELINE SUMMARY[/bold]")
    console.print(f"[bold]{rule}[/bold]")

    console.print(f"Total reads           : [bold]{summary.total_reads}[/bold]")
    if summary.has_unclassified and summary.total_reads > 0:
        console.print(f"Unclassified reads    : {summary.unclassified_reads} ({summary.unclassified_pct:.1f}%)")

    console.print()
    console.print(f"[bold]Top {TOP_N_BARCODES} barcodes by read count:[/bold]")
    for record in summary.top_barcodes:
        console.print(f"  {record.barcode:<30} {record.reads} reads", markup=False)

    console.print()
    console.print(f"[green]Pipeline complete.[/green] Outputs in: {escape(str(output_dir))}")
    console.print(f"[bold]{rule}[/bold]")
