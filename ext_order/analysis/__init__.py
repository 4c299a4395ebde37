"""Dependency graph construction and ordering."""
