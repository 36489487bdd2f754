# Bind & workers
wsgi_app = "wsgi:app"
bind = "0.0.0.0:8000"
workers = 2  # override with env GUNICORN_WORKERS
threads = 1
timeout = 60
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr; the app emits JSON lines
accesslog = "-"
errorlog = "-"
loglevel = "info"  # override with env LOG_LEVEL

# Rate limiting keys on X-Forwarded-For, so only trust the fronting proxy
forwarded_allow_ips = "127.0.0.1"
proxy_protocol = False
