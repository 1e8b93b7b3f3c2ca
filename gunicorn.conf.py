#!/usr/bin/env python3
"""
Gunicorn configuration file for the form data export service
"""

import multiprocessing
import os

# Server socket
bind = os.environ.get("GUNICORN_BIND", "127.0.0.1:8000")
backlog = 2048

# Worker processes. Sync workers: one request per worker, exports stream from a single cursor.
workers = int(os.environ.get("GUNICORN_WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "sync"
# Large tables take a while to serialize
timeout = int(os.environ.get("GUNICORN_TIMEOUT", 120))
keepalive = 2

# Restart workers after this many requests, to help prevent memory leaks
max_requests = 1000
max_requests_jitter = 100

# Logging
accesslog = os.environ.get("GUNICORN_ACCESS_LOG", "-")
errorlog = os.environ.get("GUNICORN_ERROR_LOG", "-")
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s"'

# Process naming
proc_name = "form_data_export"

# Daemon mode
daemon = False

# Preload application for better performance
preload_app = True

# Application callable
wsgi_app = "wsgi:app"

# Security
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190

def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info("Starting form data export service")

def when_ready(server):
    """Called just after the server is started."""
    server.log.info("Form data export service is ready. Listening on: %s", server.address)

def on_exit(server):
    """Called just before exiting."""
    server.log.info("Shutting down form data export service")
