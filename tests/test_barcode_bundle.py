from pathlib import Path
from unittest.mock import MagicMock

import pytest

from dorado16s import barcode_bundle
from dorado16s.barcode_bundle import download_barcode_bundle, extract_barcode_bundle, resolve_barcode_bundle
from dorado16s.exceptions import ConfigurationError
from tests.conftest import create_files, write_bundle_zip


@pytest.mark.parametrize(
    "files, expected_arrangement, expected_sequences",
    [
        pytest.param(
            ["a.toml", "b.fasta"],
            "a.toml",
            "b.fasta",
            id="Flat",
        ),
        pytest.param(
            ["nested/deep/arr.toml", "nested/barcodes.fa"],
            "nested/deep/arr.toml",
            "nested/barcodes.fa",
            id="Nested",
        ),
        pytest.param(
            ["z.toml", "a.toml", "b.fasta", "a.fa"],
            "a.toml",
            "a.fa",
            id="Multiple matches, first in sorted order",
        ),
    ],
)
def test_resolve_barcode_bundle(tmp_path, files, expected_arrangement, expected_sequences):
    # Arrange
    create_files([tmp_path / f for f in files])

    # Act
    bundle = resolve_barcode_bundle(tmp_path)

    # Assert
    assert bundle.arrangement == tmp_path / expected_arrangement
    assert bundle.sequences == tmp_path / expected_sequences


@pytest.mark.parametrize(
    "files",
    [
        pytest.param([], id="Empty"),
        pytest.param(["a.fasta"], id="Missing toml"),
        pytest.param(["a.toml"], id="Missing fasta"),
        pytest.param(["a.toml", "a.fastq"], id="Wrong sequence extension"),
    ],
)
def test_resolve_barcode_bundle_missing_files(tmp_path, files):
    # Arrange
    create_files([tmp_path / f for f in files])

    # Act & Assert
    with pytest.raises(ConfigurationError):
        resolve_barcode_bundle(tmp_path)


def test_resolve_barcode_bundle_is_stable(tmp_path):
    # Arrange
    create_files([tmp_path / f for f in ["b/x.toml", "a/y.toml", "c.fa", "b.fasta"]])

    # Act
    results = {resolve_barcode_bundle(tmp_path) for _ in range(3)}

    # Assert
    assert len(results) == 1


def test_extract_barcode_bundle(tmp_path):
    # Arrange
    zip_path = tmp_path / "bundle.zip"
    extract_dir = tmp_path / "extracted"
    write_bundle_zip(zip_path)

    # Act
    extract_barcode_bundle(zip_path, extract_dir)
    bundle = resolve_barcode_bundle(extract_dir)

    # Assert
    assert (extract_dir / ".extracted").exists()
    assert bundle.arrangement.name == "arrangement.toml"
    assert bundle.sequences.name == "barcodes.fasta"


def test_extract_barcode_bundle_skips_when_marker_present(tmp_path):
    # Arrange
    extract_dir = tmp_path / "extracted"
    create_files([extract_dir / ".extracted"])

    # Act: the zip does not exist, so extraction would fail
    extract_barcode_bundle(tmp_path / "missing.zip", extract_dir)

    # Assert
    assert list(extract_dir.iterdir()) == [extract_dir / ".extracted"]


def test_download_barcode_bundle_skips_existing(tmp_path, monkeypatch):
    # Arrange
    zip_path = tmp_path / "bundle.zip"
    zip_path.write_bytes(b"zip")
    get = MagicMock()
    monkeypatch.setattr(barcode_bundle.requests, "get", get)

    # Act
    download_barcode_bundle("https://example.org/bundle.zip", zip_path)

    # Assert
    get.assert_not_called()
    assert zip_path.read_bytes() == b"zip"


def test_download_barcode_bundle(tmp_path, monkeypatch):
    # Arrange
    zip_path = tmp_path / "resources" / "bundle.zip"
    response = MagicMock()
    response.__enter__.return_value = response
    response.iter_content.return_value = [b"PK", b"", b"data"]
    monkeypatch.setattr(barcode_bundle.requests, "get", MagicMock(return_value=response))

    # Act
    download_barcode_bundle("https://example.org/bundle.zip", zip_path)

    # Assert
    response.raise_for_status.assert_called_once()
    assert zip_path.read_bytes() == b"PKdata"
    assert not Path(str(zip_path) + ".part").exists()


@pytest.mark.parametrize(
    "error",
    [
        pytest.param(barcode_bundle.requests.ConnectionError("connection refused"), id="Connection error"),
        pytest.param(barcode_bundle.requests.HTTPError("404 Client Error"), id="HTTP error"),
        pytest.param(barcode_bundle.requests.Timeout("timed out"), id="Timeout"),
    ],
)
def test_download_barcode_bundle_failure(tmp_path, monkeypatch, error):
    # Arrange
    zip_path = tmp_path / "resources" / "bundle.zip"
    monkeypatch.setattr(barcode_bundle.requests, "get", MagicMock(side_effect=error))

    # Act & Assert
    with pytest.raises(ConfigurationError, match="https://example.org/bundle.zip"):
        download_barcode_bundle("https://example.org/bundle.zip", zip_path)
    assert not zip_path.exists()
    assert not Path(str(zip_path) + ".part").exists()


def test_extract_barcode_bundle_corrupt_zip(tmp_path):
    # Arrange
    zip_path = tmp_path / "bundle.zip"
    zip_path.write_bytes(b"not a zip archive")
    extract_dir = tmp_path / "extracted"

    # Act & Assert
    with pytest.raises(ConfigurationError, match="bundle.zip"):
        extract_barcode_bundle(zip_path, extract_dir)
    assert not (extract_dir / ".extracted").exists()
