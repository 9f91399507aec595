"""Runnable demonstrations of critical point classification and landscape fidelity."""
