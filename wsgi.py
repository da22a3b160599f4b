"""
Flask-Migrate / Alembic entry point.

Usage:
    flask db upgrade
    flask seed-demo-plan
    python wsgi.py      # dev server on PORT (default 3001)
"""

from bcp import create_app

app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=app.config["PORT"])
