# backend/wsgi.py
from slipsync import create_app

app = create_app()
