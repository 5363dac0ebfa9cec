# backend/wsgi.py
from salon_pos import create_app

app = create_app()
