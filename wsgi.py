"""
WSGI entry point: `gunicorn -c gunicorn_config.py wsgi:app`
"""
import os

from app import create_app, db

config_name = os.environ.get('FLASK_ENV', 'production')
app = create_app(config_name)

# Tables are created on boot; the admin user and catalog are seeded via
# `flask seed-admin` / `flask seed-catalog`.
with app.app_context():
    db.create_all()

if __name__ == "__main__":
    app.run()
