"""
app/notifications/email.py
--------------------------
Acceptance emails through the Resend HTTP API.

When RESEND_API_KEY is not configured (dev, tests) nothing is sent: the
message is logged and send_email() returns None, so acceptance still
succeeds locally.
"""
from html import escape

import requests
from flask import current_app


class EmailError(Exception):
    """Resend rejected the message or could not be reached."""


# ── Summary rendering ─────────────────────────────────────────────

def _money(value) -> str:
    return f'${value:,}' if isinstance(value, int) else f'${value:,.2f}'


def render_summary_text(summary: dict) -> str:
    """
    Plain-text quote summary from a build_summary() payload:

        Build plan:   The Growth Engine ($3,600, one-time)
        Maintenance:  Growth Care ($150/mo, monthly)
        Add-on:       Local SEO Boost ($150/month)
        Hosting:      $50/mo (required)
        ...
        Grand total (first year): $6,000
    """
    lines = []
    labels = (
        ('pricingPlan',     'Build plan',  'one-time'),
        ('leasePlan',       'Lease plan',  'monthly'),
        ('maintenancePlan', 'Maintenance', 'monthly'),
    )
    for key, label, kind in labels:
        item = summary.get(key)
        if item:
            lines.append(f"{label + ':':<14}{item['name']} ({item['price']}, {kind})")

    for addon in summary.get('addons') or []:
        lines.append(f"{'Add-on:':<14}{addon['name']} ({addon['price']})")

    totals = summary.get('totals') or {}
    if totals.get('hostingFee'):
        lines.append(f"{'Hosting:':<14}{_money(totals['hostingFee'])}/mo (required)")

    lines.append('')
    if totals.get('oneTimeTotal'):
        lines.append(f"One-time total:      {_money(totals['oneTimeTotal'])}")
    if totals.get('monthlyTotal'):
        lines.append(f"Monthly recurring:   {_money(totals['monthlyTotal'])}/mo")
        lines.append(f"Annual recurring:    {_money(totals['annualTotal'])}/yr")
    lines.append(f"Grand total (first year): {_money(totals.get('grandTotal', 0))}")

    schedule = totals.get('paymentSchedule')
    if schedule:
        lines.append('')
        lines.append('Payment schedule:')
        lines.append(f"  50% down payment:     {_money(schedule['downPayment'])}")
        lines.append(f"  50% upon completion:  {_money(schedule['onCompletion'])}")

    return '\n'.join(lines)


# ── Transport ─────────────────────────────────────────────────────

def send_email(to: list, subject: str, html: str, sender: str = None):
    """
    POST one message to Resend. Returns the Resend message id,
    or None when email is not configured.
    """
    cfg     = current_app.config
    api_key = cfg.get('RESEND_API_KEY')
    sender  = sender or cfg['PROPOSAL_FROM_EMAIL']

    if not api_key:
        current_app.logger.warning(f"RESEND_API_KEY not set; skipped email to {to}: {subject}")
        return None

    try:
        resp = requests.post(
            cfg['RESEND_API_URL'],
            json={'from': sender, 'to': list(to), 'subject': subject, 'html': html},
            headers={'Authorization': f'Bearer {api_key}'},
            timeout=cfg.get('EMAIL_TIMEOUT', 10),
        )
    except requests.RequestException as e:
        raise EmailError(f'Email transport failed: {e}') from e

    if resp.status_code >= 400:
        raise EmailError(f'Resend error {resp.status_code}: {resp.text}')

    try:
        message_id = (resp.json() or {}).get('id')
    except ValueError:
        message_id = None
    current_app.logger.info(f"Email {message_id} sent to {to}: {subject}")
    return message_id


def send_acceptance_emails(client_name: str, contact: dict, summary: dict):
    """
    Notify the team, then confirm to the prospect.

    Args:
        client_name: proposal client (company) name
        contact:     {'contactName', 'email', 'phone', 'notes'}
        summary:     build_summary() payload

    Raises EmailError only when the team notification fails. A failed
    confirmation is logged and reported as a None client id.

    Returns:
        (team_email_id, client_email_id); either may be None if unconfigured.
    """
    cfg     = current_app.config
    body    = escape(render_summary_text(summary))
    name    = escape(client_name)
    person  = escape(contact.get('contactName', ''))
    phone   = escape(contact.get('phone') or 'Not provided')
    notes   = contact.get('notes')

    team_html = (
        f"<h2>New Proposal Accepted</h2>"
        f"<p><strong>Client:</strong> {name}</p>"
        f"<p><strong>Contact Name:</strong> {person}</p>"
        f"<p><strong>Email:</strong> {escape(contact['email'])}</p>"
        f"<p><strong>Phone:</strong> {phone}</p>"
        + (f"<p><strong>Notes:</strong> {escape(notes)}</p>" if notes else '')
        + f"<h3>Proposal Summary:</h3><pre>{body}</pre>"
    )
    team_id = send_email(
        cfg['TEAM_EMAILS'],
        f'New Proposal Accepted: {client_name}',
        team_html,
        sender=cfg['PROPOSAL_FROM_EMAIL'],
    )

    client_html = (
        f"<h2>Thank You for Accepting Our Proposal!</h2>"
        f"<p>Hi {person},</p>"
        f"<p>We've received your acceptance for the proposal for <strong>{name}</strong>.</p>"
        f"<h3>What Happens Next?</h3>"
        f"<ul><li>Our team will review your proposal details</li>"
        f"<li>We'll reach out within 24-48 hours to schedule a kickoff call</li>"
        f"<li>We'll send over any necessary contracts or agreements</li></ul>"
        f"<h3>Proposal Summary:</h3><pre>{body}</pre>"
    )
    # Team already notified: a failed confirmation is logged, not raised
    try:
        client_id = send_email(
            [contact['email']],
            f'Proposal Accepted - {client_name}',
            client_html,
            sender=cfg['CLIENT_FROM_EMAIL'],
        )
    except EmailError as e:
        current_app.logger.error(f"Confirmation email to {contact['email']} failed: {e}")
        client_id = None

    return team_id, client_id
