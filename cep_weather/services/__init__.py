"""Upstream clients and the orchestration state machine."""
