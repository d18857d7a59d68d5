# backend/wsgi.py
# Entry point: `flask --app wsgi run` or `gunicorn wsgi:app`.
from weighbridge import create_app, init_site

app = create_app()
init_site(app)
