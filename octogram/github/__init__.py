"""GitHub webhook payload models and event renderers."""
