"""Concrete auditors."""
