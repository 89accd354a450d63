import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import requests

from dorado16s.constants import ARRANGEMENT_PATTERNS, SEQUENCE_PATTERNS
from dorado16s.exceptions import ConfigurationError
from dorado16s.filenames import EXTRACTED_MARKER
from dorado16s.logging_config import logger


@dataclass(frozen=True)
class BarcodeBundle:
    arrangement: Path
    sequences: Path


def download_barcode_bundle(url: str, zip_path: Path, timeout: int = 60) -> None:
    if zip_path.exists():
        logger.info("Barcode bundle already present; skipping download.")
        return

    logger.info("Downloading barcode bundle from %s", url)
    zip_path.parent.mkdir(parents=True, exist_ok=True)

    # Download to a temp file so an interrupted download is not mistaken for a complete one
    temp_path = zip_path.with_name(zip_path.name + ".part")
    try:
        with requests.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            with open(temp_path, "wb") as f_out:
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        f_out.write(chunk)
        temp_path.rename(zip_path)
    except requests.RequestException as e:
        raise ConfigurationError(f"Could not download the barcode bundle from {url}: {e}") from e
    finally:
        temp_path.unlink(missing_ok=True)

    logger.info("Download complete: %s", zip_path)


def extract_barcode_bundle(zip_path: Path, extract_dir: Path) -> None:
    marker = extract_dir / EXTRACTED_MARKER
    if marker.exists():
        logger.info("Barcode bundle already extracted to %s", extract_dir)
        return

    logger.info("Unzipping barcode bundle...")
    extract_dir.mkdir(parents=True, exist_ok=True)
    try:
        with zipfile.ZipFile(zip_path, "r") as zf:
            zf.extractall(extract_dir)
    except zipfile.BadZipFile as e:
        raise ConfigurationError(f"Barcode bundle {zip_path} is not a valid zip file. Delete it to download it again.") from e

    marker.touch()


def find_first_file(root_dir: Path, patterns: Sequence[str]) -> Path | None:
    # Sorted so the same file is picked on every run
    matches = sorted(path for pattern in patterns for path in root_dir.rglob(pattern) if path.is_file())
    return matches[0] if matches else None


def resolve_barcode_bundle(extract_dir: Path) -> BarcodeBundle:
    arrangement = find_first_file(extract_dir, ARRANGEMENT_PATTERNS)
    if arrangement is None:
        raise ConfigurationError(f"No .toml file found under {extract_dir}. Inspect the contents of the barcode bundle.")

    sequences = find_first_file(extract_dir, SEQUENCE_PATTERNS)
    if sequences is None:
        raise ConfigurationError(f"No .fa or .fasta file found under {extract_dir}. Inspect the contents of the barcode bundle.")

    logger.info("Detected barcode arrangement TOML : %s", arrangement)
    logger.info("Detected barcode sequences FASTA  : %s", sequences)

    return BarcodeBundle(arrangement=arrangement, sequences=sequences)
