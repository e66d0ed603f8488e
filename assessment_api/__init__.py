"""Adaptive assessment HTTP service."""
