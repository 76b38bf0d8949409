"""Entry-point adapters (HTTP, CLI)."""
