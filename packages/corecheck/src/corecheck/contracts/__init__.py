"""Output contracts."""
