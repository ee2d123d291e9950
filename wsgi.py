"""
WSGI / Flask-Migrate entry point.

Usage:
    gunicorn wsgi:app
    python wsgi.py      # development server on $PORT (default 8080)

    flask db migrate -m "description"
    flask db upgrade
    flask seed-tags
"""

from timekeeper import create_app

app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=app.config["PORT"], debug=app.debug)
