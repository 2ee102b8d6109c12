"""Runtime settings for extraction and batch processing."""

import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# External layout-text extraction (poppler's pdftotext)
PDFTOTEXT_BIN = os.getenv("PDFTOTEXT_BIN", "pdftotext")
PDFTOTEXT_TIMEOUT = int(os.getenv("PDFTOTEXT_TIMEOUT", "120"))

# Max concurrent external extractions per process
EXTRACT_CONCURRENCY = max(1, int(os.getenv("EXTRACT_CONCURRENCY", "4")))

# Input/output locations
DATA_MOUNT_PATH = os.getenv("DATA_MOUNT_PATH", "./data")
PARSE_OUTPUT_DIR = os.getenv("PARSE_OUTPUT_DIR", f"{DATA_MOUNT_PATH}/parsed")
LOG_DIR = os.getenv("LOG_DIR")

# Workers wait for this much free memory before starting a document
WORKER_MIN_FREE_MB = int(os.getenv("WORKER_MIN_FREE_MB", "512"))
WORKER_MEMORY_WAIT_SECONDS = int(os.getenv("WORKER_MEMORY_WAIT_SECONDS", "600"))

SUPPORTED_EXTENSIONS = (".pdf", ".xls", ".xlsx")

# Orchestrator waits this long for one document's result from a pool worker
DOCUMENT_TIMEOUT_SECONDS = int(os.getenv("DOCUMENT_TIMEOUT_SECONDS", "600"))
