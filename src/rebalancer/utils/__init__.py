"""Utility modules for the rebalancer."""
