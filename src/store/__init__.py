"""Persistence layer for refinement runs.

This package writes refined artifacts, the summary ledger, report files,
and the generated item info file. It also hosts the SDK client.
"""
