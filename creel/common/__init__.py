"""Shared helpers used across Creel modules."""
