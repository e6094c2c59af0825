"""Typed content services built on the ContentAPI interface."""
