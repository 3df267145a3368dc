"""Supplier integration and extraction engine for a legacy ASP.NET booking application."""

__version__ = "0.1.0"
