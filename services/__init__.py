"""Outbound services used by the capture pipeline."""
