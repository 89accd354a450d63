from pathlib import Path

from dorado16s.barcode_bundle import BarcodeBundle
from dorado16s.capabilities import CapabilityProfile
from dorado16s.demultiplexing import AlignmentUnit, demux_bam, find_alignment_units
from tests.conftest import FakeRunner, create_files


def test_demux_bam(tmp_path):
    # Arrange
    runner = FakeRunner(barcode_reads={"barcode02": [], "barcode01": []})
    bundle = BarcodeBundle(arrangement=Path("/bundle/arr.toml"), sequences=Path("/bundle/bc.fa"))
    merged_bam = tmp_path / "basecalled_merged.bam"
    output_dir = tmp_path / "demux_bams"

    # Act
    units = demux_bam(runner, "dorado", merged_bam, bundle, CapabilityProfile("--barcode-seqs"), output_dir)

    # Assert
    assert runner.calls == [
        [
            "dorado",
            "demux",
            str(merged_bam),
            "--output-dir",
            str(output_dir),
            "--barcode-arrangement",
            "/bundle/arr.toml",
            "--barcode-seqs",
            "/bundle/bc.fa",
            "--no-trim",
        ]
    ]
    assert units == [
        AlignmentUnit("barcode01", output_dir / "barcode01.bam"),
        AlignmentUnit("barcode02", output_dir / "barcode02.bam"),
    ]


def test_find_alignment_units(tmp_path):
    # Arrange
    create_files([tmp_path / f for f in ["b.bam", "a.bam", "notes.txt", "sub/c.bam"]])

    # Act
    units = find_alignment_units(tmp_path)

    # Assert
    assert [unit.label for unit in units] == ["a", "b"]
