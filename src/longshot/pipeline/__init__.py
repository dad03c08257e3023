"""Slicing orchestration and worker pool."""
