#!/usr/bin/env python3
"""
og_upload.py

Batch uploader for 0G storage:
 - Fetch a random image.
 - Submit it to the indexer as a single segment (or hand it to the
   0g-storage-client binary with --mode sdk).
 - Send the record transaction and wait for the receipt.
 - Print a summary of successful / failed uploads.

Dependencies:
    pip install -e .

Examples:
    python3 og_upload.py
    python3 og_upload.py --uploads 5 --delay-ms 10000
    python3 og_upload.py --mode sdk --env-file ../../.env
"""
import sys

from og_uploader.cli import main

if __name__ == "__main__":
    sys.exit(main())
