# Description: Filenames used in the output tree of a run.

# General
LOGS_DIR = "logs"
LOG_FILE = "dorado16s.log"
RESOURCES_DIR = "resources"
REPORTS_DIR = "reports"

# Barcode bundle
BUNDLE_ZIP = "minibar_and_barcodes.zip"
BUNDLE_DIR = "barcode_bundle"
EXTRACTED_MARKER = ".extracted"

# Basecalling
BC_DIR = "basecalled"
MERGED_BAM = "basecalled_merged.bam"
SUMMARY_DIR = "dorado_summary_files"
SEQUENCING_SUMMARY = "sequencing_summary.txt"

# Demultiplexing
DEMUX_DIR = "demux"
TRIMMED_DIR = "demux_trimmed"
DEMUX_SCRATCH_DIR = "demux_bams"
DEMUX_DURING_SCRATCH_DIR = "demux_during"
FASTQ_SUFFIX = ".fastq.gz"

# Reports
VERSIONS = "versions.txt"
READ_COUNTS = "demux_read_counts.tsv"
