"""
BCP Wizard Backend
Blueprint registry.
"""
