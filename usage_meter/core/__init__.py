"""
Core modules for the Claude usage meter.

This package contains journal scanning and parsing, pricing, window
aggregation and rate limit composition.
"""
