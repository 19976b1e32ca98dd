import os

# Bind to the port provided via the PORT environment variable, defaulting to
# 5000.
bind = f"0.0.0.0:{os.getenv('PORT', '5000')}"

wsgi_app = "run:app"

# Threaded workers; the edit page already fans its two reads out to a small
# thread pool of its own, so a handful of threads per worker is plenty.
worker_class = "gthread"
# The invoice listing cache lives in process memory, so a single worker keeps
# every request on the same cache. Scale with GUNICORN_THREADS instead.
workers = 1
threads = int(os.getenv("GUNICORN_THREADS", "4"))
timeout = 30
