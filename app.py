from flask import Flask

from config import Config
from extensions import db, login_manager
from utils.logging import configure_logging


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    configure_logging(app.config["LOG_LEVEL"])

    # init extensions
    db.init_app(app)
    login_manager.init_app(app)

    # import and register blueprints
    from auth.routes import auth_bp
    from routes import api_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp)

    return app


app = create_app()

if __name__ == "__main__":
    app.run(debug=True)
