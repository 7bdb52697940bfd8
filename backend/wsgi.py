# backend/wsgi.py
from nutopiano import create_app

app = create_app()
