"""Bundled JSON contracts for conversion artifacts."""
