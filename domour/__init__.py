"""Domour Copilot control plane: helper process supervision and self-update."""
