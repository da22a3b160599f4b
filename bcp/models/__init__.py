"""
BCP Wizard Backend
SQLAlchemy extension instance shared by all models.

Usage:
    from bcp.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
