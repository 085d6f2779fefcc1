"""Fault tree graph model and its mutation operations."""
