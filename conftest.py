"""
Pytest root configuration; makes the cratesync package importable from a checkout.
"""
