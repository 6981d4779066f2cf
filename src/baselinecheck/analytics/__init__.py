"""Scan history and trend rollups."""
