"""Inbound GitHub webhook handling."""
