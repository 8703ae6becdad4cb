"""Database models and initialisation helpers."""
