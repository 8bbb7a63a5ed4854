import logging

from flask import Flask, jsonify
from flask_migrate import Migrate
from sqlalchemy import inspect

from config import Config
from routes import (
    health_bp,
    auth_bp,
    admin_bp,
    sites_bp,
    schedules_bp,
    bookings_bp,
    notifications_bp,
)
from models import db
from services.errors import DutyError
from utils.seed import seed_roles, seed_sites
from utils.auth_context import load_current_user
from utils.clock import init_clock

logger = logging.getLogger(__name__)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(sites_bp)
    app.register_blueprint(schedules_bp)
    app.register_blueprint(bookings_bp)
    app.register_blueprint(notifications_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    init_clock(app)

    # Seed roles and duty sites once the schema exists (idempotent)
    with app.app_context():
        if inspect(db.engine).has_table("roles"):
            seed_roles()
            seed_sites()

    @app.before_request
    def _load_user():
        load_current_user()

    @app.errorhandler(DutyError)
    def _duty_error(err):
        return jsonify(err.to_dict()), err.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------
import click
from models.user import User, Role
from services.schedules import generate_schedules, WEEKDAYS
from utils.roles import ROLE_ADMIN, ROLE_PARENT, ROLE_STUDENT

def register_cli(app):
    @app.cli.command("seed")
    def seed():
        """Create the default roles and duty sites."""
        seed_roles()
        seed_sites()
        click.echo("Roles and sites seeded")

    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote a user to ADMIN by email (bootstrap)."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo("User not found")
            return

        admin_role = Role.query.filter_by(name=ROLE_ADMIN).first()
        if not admin_role:
            admin_role = Role(name=ROLE_ADMIN)
            db.session.add(admin_role)
            db.session.commit()

        if admin_role not in user.roles:
            user.roles.append(admin_role)
            db.session.commit()

        click.echo(f"{user.email} promoted to ADMIN")

    @app.cli.command("link-parent")
    @click.argument("parent_email")
    @click.argument("student_email")
    def link_parent(parent_email, student_email):
        """Give a parent read-only access to one student's duties."""
        parent = User.query.filter_by(email=parent_email.strip().lower()).first()
        student = User.query.filter_by(email=student_email.strip().lower()).first()
        if not parent or not parent.has_role(ROLE_PARENT):
            click.echo("Parent not found")
            return
        if not student or not student.has_role(ROLE_STUDENT):
            click.echo("Student not found")
            return

        parent.linked_student_id = student.id
        db.session.commit()
        click.echo(f"{parent.email} linked to {student.email}")

    @app.cli.command("generate-schedules")
    @click.argument("start_date")
    @click.argument("end_date")
    @click.option("--weekday", "weekdays", multiple=True, type=click.IntRange(0, 6),
                  help="Weekday to include, 0=Monday. Repeatable; default Monday-Friday.")
    def generate(start_date, end_date, weekdays):
        """Create pending schedules for a date range using the monthly site rotation."""
        try:
            created = generate_schedules(start_date, end_date, created_by=None,
                                         weekdays=weekdays or WEEKDAYS)
        except DutyError as err:
            raise click.ClickException(err.message)
        click.echo(f"Created {len(created)} schedules")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
