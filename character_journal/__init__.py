"""Daily character journal workflow service."""
