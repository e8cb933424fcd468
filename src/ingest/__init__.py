"""Item discovery and refinement execution.

This package scans input directories, decides which items are still
pending, and runs the refinement plugin over them in checkpointed chunks.
"""
