# backend/wsgi.py
from stoktrack import create_app

app = create_app()
