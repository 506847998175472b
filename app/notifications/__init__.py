from app.notifications.email import (  # noqa: F401
    EmailError, send_email, send_acceptance_emails, render_summary_text,
)
