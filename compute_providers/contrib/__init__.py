"""Drivers shipped with compute_providers."""
