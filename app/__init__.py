import click
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from config import config

db = SQLAlchemy()


# Default catalog loaded by `flask seed-catalog`: (type, name, base_price, description)
DEFAULT_CATALOG = [
    ('pricing',     'The Foundation',        '$3,000',
     "The essential 'Digital Asset' build: fast, local-SEO ready and fully accessible."),
    ('pricing',     'The Growth Engine',     '$4,000',
     'Strategic build with full content migration and a speed guarantee.'),
    ('lease',       'Starter Lease',         '$199/mo',  'Website as a service, entry tier.'),
    ('lease',       'Growth Lease',          '$299/mo',  'Website as a service with monthly content updates.'),
    ('lease',       'Pro Lease',             '$499/mo',  'Website as a service with priority support.'),
    ('maintenance', 'Basic Care',            '$75/mo',   'Updates, backups and uptime monitoring.'),
    ('maintenance', 'Growth Care',           '$150/mo',  'Basic Care plus monthly performance tuning.'),
    ('maintenance', 'Pro Care',              '$275/mo',  'Growth Care plus quarterly SEO reviews.'),
    ('addon',       'Additional design time', '$75/hr',  'Layout modifications or new visual assets.'),
    ('addon',       'Copywriting',           '$100/page', 'Conversion-focused copy written per page.'),
    ('addon',       'Local SEO Boost',       '$150/month',
     'Continuous citations and Google Business Profile management.'),
    ('addon',       'Initial setup fee',     '$250–$500', 'One-time technical onboarding (based on scope).'),
]


def create_app(config_name='default'):
    """Application factory: creates and configures the Flask app."""
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # ── Logging ───────────────────────────────────────────────────
    from app.utils.logging import setup_logging
    setup_logging(app)

    # ── Extensions ────────────────────────────────────────────────
    db.init_app(app)

    # ── Blueprints ────────────────────────────────────────────────
    from app.main import main as main_blueprint
    app.register_blueprint(main_blueprint)

    from app.auth import auth as auth_blueprint
    app.register_blueprint(auth_blueprint, url_prefix='/auth')

    from app.catalog import catalog as catalog_blueprint
    app.register_blueprint(catalog_blueprint, url_prefix='/api/services')

    from app.content import content as content_blueprint
    app.register_blueprint(content_blueprint, url_prefix='/api')

    from app.proposals import proposals as proposals_blueprint
    app.register_blueprint(proposals_blueprint)

    # ── Error Handlers ────────────────────────────────────────────
    register_error_handlers(app)

    # ── CLI Commands ──────────────────────────────────────────────
    register_commands(app)

    # ── ProxyFix (HTTPS terminated at the load balancer) ──────────
    from werkzeug.middleware.proxy_fix import ProxyFix
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app


def register_error_handlers(app):
    """Every error leaves as JSON: {"error": "..."}."""

    def _json_error(status, default):
        def handler(e):
            description = getattr(e, 'description', None)
            message = description if description and description != getattr(
                type(e), 'description', None) else default
            return jsonify({'error': message}), status
        return handler

    app.register_error_handler(400, _json_error(400, 'Bad request'))
    app.register_error_handler(401, _json_error(401, 'Unauthorized'))
    app.register_error_handler(403, _json_error(403, 'Access denied'))
    app.register_error_handler(404, _json_error(404, 'Not found'))
    app.register_error_handler(405, _json_error(405, 'Method not allowed'))

    @app.errorhandler(500)
    def internal_error(e):
        db.session.rollback()
        app.logger.error(f"Unhandled server error: {getattr(e, 'original_exception', e)}")
        return jsonify({'error': 'Internal server error'}), 500


def register_commands(app):
    """Register custom Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db():
        """Create all database tables."""
        db.create_all()
        click.echo('✅  Database tables created.')

    @app.cli.command('seed-admin')
    @click.option('--name',     prompt='Full name',  help='Admin full name')
    @click.option('--username', prompt='Username',   help='Admin username')
    @click.option('--password', prompt=True, hide_input=True,
                  confirmation_prompt=True, help='Admin password')
    def seed_admin(name, username, password):
        """Create the initial admin user."""
        from app.auth.models import User, RoleEnum

        if User.query.filter_by(username=username).first():
            click.echo(f'⚠️  User "{username}" already exists.')
            return

        admin = User(name=name, username=username, role=RoleEnum.admin)
        admin.set_password(password)
        db.session.add(admin)
        db.session.commit()
        click.echo(f'✅  Admin user "{username}" created successfully.')

    @app.cli.command('seed-catalog')
    def seed_catalog():
        """Load the default services (skipped if any service exists)."""
        from app.catalog.models import Service

        db.create_all()
        if Service.query.first():
            click.echo('ℹ️   Catalog already has services; nothing seeded.')
            return

        for order, (kind, name, price, description) in enumerate(DEFAULT_CATALOG):
            db.session.add(Service(
                name=name, type=kind, base_price=price, description=description,
                display_order=order, is_active=True,
            ))
        db.session.commit()
        click.echo(f'✅  {len(DEFAULT_CATALOG)} services seeded.')

    @app.cli.command('show-proposals')
    def show_proposals():
        """List proposals with their first-year quote (diagnostic)."""
        from app.proposals.models import Proposal
        from app.quote.pricing import calculate_totals

        rows = Proposal.query.order_by(Proposal.created_at.desc()).all()
        if not rows:
            click.echo('No proposals found.')
            return
        click.echo(f'{"Slug":<32} {"Status":<10} {"One-time":>10} {"Monthly":>9} {"First year":>11}')
        click.echo('─' * 76)
        for p in rows:
            t = calculate_totals(p.cart)
            click.echo(f'{p.slug:<32} {p.status:<10} {t.one_time_total.format():>10} '
                       f'{t.monthly_total.format():>9} {t.grand_total.format():>11}')
