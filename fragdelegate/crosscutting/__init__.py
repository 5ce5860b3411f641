"""Crosscutting concerns: configuration, logging, errors, timing, metrics."""
