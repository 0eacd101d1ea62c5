"""Findr: co-founder matching service."""
