"""Swap retrieval, aggregator comparison and report services."""
