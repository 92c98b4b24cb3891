"""
WSGI entrypoint: expose the Flask app as `app` so `campus_attendance.main:app` works.
"""

from .flask_main import create_app

app = create_app()
