"""Business logic layer for accounts app.

Authorization policy, bearer tokens and the user lifecycle.
"""
