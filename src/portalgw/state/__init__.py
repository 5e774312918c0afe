"""State layer.

This package is the single source of truth for the last known state of
every observed portal and for the transitions computed between
consecutive observations.
"""
