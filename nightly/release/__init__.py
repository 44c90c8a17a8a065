"""Nightly release orchestration: gate, release record, build matrix."""
