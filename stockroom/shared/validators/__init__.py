"""Shared validators package for the application.

Reusable validation functions used by feature schemas:

- password.py: Password strength validation
- sku.py: Stock keeping unit normalization
"""
