"""Core modules for Octogram."""
