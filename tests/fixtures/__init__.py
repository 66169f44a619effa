"""Shared test doubles: listener classes and sample applications."""
