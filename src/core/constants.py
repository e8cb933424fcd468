"""Core constants used across Refinery modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_WORK_ROOT = Path(".")
DEFAULT_REFINED_DIR_NAME = "refined"
DEFAULT_TRANSLATED_DIR_NAME = "translated"
DEFAULT_SUMMARY_DIR_NAME = "summary"
DEFAULT_RESOURCE_VERSION = "Reconstructions"
DEFAULT_NUM_WORKERS = 2
DEFAULT_EXECUTOR_KIND = "process"
SUPPORTED_EXECUTOR_KINDS = ("process", "thread")
DEFAULT_ARTIFACT_SUFFIX = ".pkl"
PRIMARY_FORMAT_MARKER = "mat"
SECONDARY_FORMAT_MARKER = "sbml"
CANONICAL_ID_STRIP_SUFFIXES = (".sbml", ".xml", ".mat")
LARGE_BATCH_THRESHOLD = 200
LARGE_BATCH_CHUNK_SIZE = 100
SMALL_BATCH_CHUNK_SIZE = 25
LEDGER_FILE_PREFIX = "summaries_"
LEDGER_FILE_SUFFIX = ".json"
LEDGER_SCHEMA_VERSION = 1
NUMERIC_ID_PREFIX = "m"
ITEM_INFO_FILE_NAME = "item_info.txt"
ITEM_INFO_HEADER = "MicrobeID"
REPORT_FILE_SUFFIX = ".txt"
REPORT_DELIMITER = "\t"
DEFAULT_UNMAPPED_FIELDS = ("untranslatedMets", "untranslatedRxns")
SUMMARY_FLOAT_SIGNIFICANT_DIGITS = 10
PLUGIN_MODULE_PREFIX = "refinery_user_plugin"
