"""
Gunicorn configuration for the CurbCarbon API.

Env vars that override defaults:
  PORT     — TCP port to bind
  WORKERS  — number of worker processes (default: 1)

The grid-intensity refresh guard and the daily-summary locks live in process
memory, so one worker keeps at most one outbound grid request in flight and
serializes summary updates. Raise WORKERS only with a Postgres DATABASE_URL.
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

workers = int(os.environ.get("WORKERS", "1"))

# Each worker runs Uvicorn's ASGI event loop inside Gunicorn's process manager.
worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

# Grid and location lookups are bounded well below this.
timeout = 60

# stdout only; the app's own loggers share the stream.
loglevel = "info"
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

graceful_timeout = 30
