"""Packaged simulator driver templates."""
