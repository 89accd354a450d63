# Barcode bundle with custom Zymo barcodes
BARCODE_ZIP_URL = (
    "https://zymo-microbiomics-service.s3.amazonaws.com/epiquest/epiquest_in4521/"
    "VUCKWUBPTZJFQRXS/rawdata/240903/minibar_and_barcodes.zip"
)
ARRANGEMENT_PATTERNS = ("*.toml",)
SEQUENCE_PATTERNS = ("*.fa", "*.fasta")

# Dorado demux flags
REQUIRED_DEMUX_FLAGS = ("--output-dir", "--barcode-arrangement")
# Spelling of the barcode sequences flag differs between dorado versions. First match wins.
BARCODE_SEQUENCES_FLAGS = ("--barcode-sequences", "--barcode-seqs")

# Defaults
DEFAULT_THREADS = 16
DEFAULT_GPUS = 2
DEFAULT_DORADO_EXECUTABLE = "dorado"

# Quick-16S Full-Length primers (27F / 1492R)
FWD_PRIMER = "AGAGTTTGATCMTGGCTCAG"
REV_PRIMER = "TACGGYTACCTTGTTACGACTT"
MIN_TRIMMED_LENGTH = 100

# Classification
UNCLASSIFIED = "unclassified"

# Reporting
TOP_N_BARCODES = 5
READ_COUNTS_HEADER = ("barcode_folder", "reads", "bases")

# Fallback conversion from `dorado summary` rows (1-based columns)
SUMMARY_READ_ID_COLUMN = 1
SUMMARY_SEQUENCE_COLUMN = 10
SUMMARY_QUALITY_COLUMN = 11
