"""Pixel-level image primitives and filters."""
