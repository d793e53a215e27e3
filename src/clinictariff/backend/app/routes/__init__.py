"""Blueprint registrations for application routes."""

from flask import Flask

from .calculations import blueprint as calculations_blueprint
from .config import blueprint as config_blueprint
from .factors import blueprint as factors_blueprint
from .localization import blueprint as translations_blueprint
from .validation import blueprint as validation_blueprint
from .years import blueprint as years_blueprint


def register_routes(app: Flask) -> None:
    """Register all Flask blueprints with the provided application."""

    app.register_blueprint(calculations_blueprint)
    app.register_blueprint(config_blueprint)
    app.register_blueprint(factors_blueprint)
    app.register_blueprint(translations_blueprint)
    app.register_blueprint(validation_blueprint)
    app.register_blueprint(years_blueprint)
