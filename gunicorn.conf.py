"""
Gunicorn configuration for the Holy Ghost Tracker API.

Run with:  gunicorn -c gunicorn.conf.py
Env vars that override defaults:
  PORT     — TCP port to bind
  WORKERS  — number of worker processes (default: 2)
  LOG_LEVEL — gunicorn log level (default: info)
"""
import os

wsgi_app = "hgtracker.main:app"

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

workers = int(os.environ.get("WORKERS", "2"))

# ASGI app: Uvicorn event loop inside Gunicorn's process manager.
worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

# Quiz generation can wait out several backoff delays plus the completion
# round-trips; keep this above QUIZ_MAX_ATTEMPTS * QUIZ_TIMEOUT + backoff.
timeout = 120

# stdout only
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

graceful_timeout = 30
