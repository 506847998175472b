"""
app/utils/logging.py
───────────────────
Configures application logging: rotating file + stdout.
"""
import os
import logging
from logging.handlers import RotatingFileHandler
from flask import request, session, has_request_context


class RequestFormatter(logging.Formatter):
    """
    Formatter that adds the client IP, URL and session user id
    when a request context is active.
    """
    def format(self, record):
        if has_request_context():
            record.url = request.url
            record.remote_addr = request.remote_addr
            record.user_id = session.get('user_id', '-')
        else:
            record.url = None
            record.remote_addr = None
            record.user_id = '-'
        return super().format(record)


def setup_logging(app):
    """
    File log at logs/app.log (5MB, 5 backups) plus a stdout handler.
    Format: timestamp | level | logger | ip | user | url | message
    """
    if not app.testing:
        try:
            log_dir = os.path.join(app.root_path, '..', 'logs')
            os.makedirs(log_dir, exist_ok=True)

            file_handler = RotatingFileHandler(
                os.path.join(log_dir, 'app.log'),
                maxBytes=5 * 1024 * 1024,
                backupCount=5
            )
            file_handler.setFormatter(RequestFormatter(
                '%(asctime)s | %(levelname)s | %(name)s | %(remote_addr)s | '
                'user=%(user_id)s | %(url)s | %(message)s'
            ))
            file_handler.setLevel(logging.INFO)
            app.logger.addHandler(file_handler)
        except OSError:
            pass  # read-only filesystem: stdout only

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)s | %(message)s'
    ))
    stream_handler.setLevel(logging.INFO)
    app.logger.addHandler(stream_handler)

    app.logger.setLevel(logging.INFO)
    app.logger.info("Proposal builder startup")
