import multiprocessing

# Proposal pages are light, IO-bound requests (DB, Resend, Anthropic)
workers = multiprocessing.cpu_count() * 2 + 1
threads = 2
worker_class = 'gthread'

# Summary generation can take a while
timeout = 90
max_requests = 1000
max_requests_jitter = 100
keepalive = 5

accesslog = '-'
errorlog = '-'
loglevel = 'info'
capture_output = True
