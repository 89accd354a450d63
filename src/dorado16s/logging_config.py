import logging
from pathlib import Path

# Formatting
FORMAT = "%(levelname)s\t[%(asctime)s]\t[%(filename)s:%(lineno)d]\t%(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
formatter = logging.Formatter(FORMAT, DATE_FORMAT)

# Configure logger
logger = logging.getLogger("dorado16s")
logger.setLevel(logging.INFO)

# Log to terminal
stream_handler = logging.StreamHandler()
stream_handler.setFormatter(formatter)
logger.addHandler(stream_handler)


# Function to set file handler
def set_log_file_handler(ll: logging.Logger, log_file: Path) -> logging.FileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(formatter)
    ll.addHandler(file_handler)
    return file_handler
