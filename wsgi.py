"""WSGI entrypoint for Gunicorn.

SSE streams hold a worker each, so use threaded workers:
  gunicorn -k gthread --threads 16 -w 2 -b 0.0.0.0:8000 wsgi:app
"""

from lucky_draw import create_app

app = create_app()
