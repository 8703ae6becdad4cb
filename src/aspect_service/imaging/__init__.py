"""Aspect ratio classification and variant rendering."""
