"""Overlap, gap and influence-path resources."""
