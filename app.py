import click
from flask import Flask
from flask_migrate import Migrate

from config import Config
from models import db
from models.user import User, Role
from routes import health_bp, auth_bp, venues_bp, reservations_bp, notifications_bp, admin_bp
from security import csrf
from services import ledger
from utils.auth_context import load_current_user
from utils.errors import register_error_handlers

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none';",
    "Cache-Control": "no-store",
}


def register_cli(app):
    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote an existing account to admin (bootstrap)."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            raise click.ClickException(f"No account for {email}")

        user.role = Role.ADMIN.value
        db.session.commit()
        app.logger.info("User %s promoted to admin from the CLI", user.id)
        click.echo(f"{user.email} promoted to admin")

    @app.cli.command("complete-reservations")
    def complete_reservations():
        """Mark every active reservation that has already ended as completed."""
        count = ledger.complete_past_reservations()
        app.logger.info("Completed %s past reservation(s)", count)
        click.echo(f"{count} reservation(s) completed")


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(venues_bp)
    app.register_blueprint(reservations_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(admin_bp)

    register_error_handlers(app)

    db.init_app(app)
    Migrate(app, db)

    # order matters: CSRF needs to know how the caller authenticated
    app.before_request(load_current_user)
    app.before_request(csrf.protect)

    @app.after_request
    def add_security_headers(resp):
        for name, value in SECURITY_HEADERS.items():
            resp.headers.setdefault(name, value)
        return resp

    register_cli(app)
    return app


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
