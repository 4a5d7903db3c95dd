"""Core transformation and measurement logic."""
