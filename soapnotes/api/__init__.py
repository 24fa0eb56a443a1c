from flask import Blueprint, Flask


def register_blueprints(app: Flask) -> None:
    """Register all Flask blueprints with the application."""

    from .triggers import triggers_bp

    app.register_blueprint(triggers_bp)

    # Basic API blueprint
    api_bp = Blueprint("api", __name__)

    @api_bp.route("/")
    def index():
        """Basic sanity endpoint to verify that the API is reachable."""
        return {"message": "SOAP Note Sync", "status": "running"}

    app.register_blueprint(api_bp)

    app.logger.debug(
        "Registered trigger routes: /triggers/form-submit, /triggers/sheet-change, "
        "/triggers/batch-run, /triggers/rows/<row_number>"
    )
