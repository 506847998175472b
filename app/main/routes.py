"""
app/main/routes.py
──────────────────
Health check and the admin dashboard counters.
"""
from datetime import datetime

from flask import jsonify, current_app
from sqlalchemy import func, text

from app import db
from app.main import main
from app.auth.decorators import admin_required
from app.proposals.models import Proposal, PROPOSAL_STATUSES
from app.catalog.models import Service
from app.content.models import Testimonial, PortfolioItem


@main.route("/health")
def health():
    """Health check for load balancers and monitoring."""
    status = "ok"
    failures = []

    try:
        db.session.execute(text("SELECT 1"))
    except Exception as e:
        status = "error"
        failures.append(f"DB: {e}")
        current_app.logger.error(f"Health check failed (DB): {e}")

    response = {
        "status": status,
        "timestamp": datetime.utcnow().isoformat(),
        "details": {"db": "ok" if status == "ok" else "error"},
    }
    if failures:
        response["failures"] = failures

    return jsonify(response), 200 if status == "ok" else 500


@main.route("/api/admin/dashboard")
@admin_required
def dashboard():
    by_status = dict(
        db.session.query(Proposal.status, func.count(Proposal.id))
        .group_by(Proposal.status).all()
    )
    return jsonify({
        "proposals": {s: by_status.get(s, 0) for s in PROPOSAL_STATUSES},
        "proposals_total": sum(by_status.values()),
        "services": Service.query.filter_by(is_active=True).count(),
        "testimonials": Testimonial.query.filter_by(is_active=True).count(),
        "portfolio": PortfolioItem.query.filter_by(is_active=True).count(),
    })
