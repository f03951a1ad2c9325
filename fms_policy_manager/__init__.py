"""Firewall Manager policy reconciliation for an AWS Organization."""

__version__ = "0.1.0"
