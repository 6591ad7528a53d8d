# Gunicorn Production Configuration for OySy Web
# ==============================================

# Bind to localhost only
bind = "127.0.0.1:5000"

# One worker: the wallet state and the balance watcher live in-process.
# Threads serve concurrent requests against that single state.
workers = 1
worker_class = "gthread"
threads = 4

# Timeouts - balance queries carry their own HTTP timeout
timeout = 60
graceful_timeout = 30
keepalive = 5

# Security
limit_request_line = 4094
limit_request_fields = 50
limit_request_field_size = 8190

# Logging
accesslog = "-"
errorlog = "-"
loglevel = "info"
capture_output = True

# Process naming
proc_name = "oysy-web"

# Don't daemonize - let systemd handle it
daemon = False

# Not preloaded: the watcher thread must start inside the worker
preload_app = False

# Restart workers periodically to prevent memory leaks
max_requests = 1000
max_requests_jitter = 100
