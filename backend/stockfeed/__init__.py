"""Simulated stock-ticker feed with broker-backed fan-out."""
