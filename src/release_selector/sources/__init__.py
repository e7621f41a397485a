"""Upstream data sources for a selection run.

These modules fetch the release history (GitHub) and crash-report counts
(Spire analytics) and decode them into the selector's schemas.
"""
