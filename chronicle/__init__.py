from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from config import Config
import markdown as _md
import logging
import os

APP_VERSION = '0.3.0'

# Create the database object here, but don't attach it to an app yet
db = SQLAlchemy()

# Schema changes go through Flask-Migrate (flask db upgrade)
migrate = Migrate()

# Login manager: handles session-based user authentication
login_manager = LoginManager()

# CSRF protection: every POST form must include {{ csrf_token() }}
csrf = CSRFProtect()

# Rate limiter: prevents brute-force attacks on login/signup
limiter = Limiter(key_func=get_remote_address, default_limits=[])

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    from chronicle.logging_config import setup_logging
    setup_logging(app.config.get('LOG_LEVEL', 'INFO'), app.config.get('LOG_FILE'))

    # Attach the database and migration engine to this app instance
    db.init_app(app)
    migrate.init_app(app, db)

    # Set up Flask-Login
    login_manager.init_app(app)
    login_manager.login_view = 'auth.login'
    login_manager.login_message_category = 'warning'

    csrf.init_app(app)
    limiter.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        from chronicle.models import User
        return db.session.get(User, int(user_id))

    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)

    # External clients are built once per app and looked up through
    # app.extensions, so tests can swap in fakes.
    from chronicle.ai_provider import AIProvider, EXTENSION_KEY as AI_KEY
    from chronicle.image_provider import ImageProvider, EXTENSION_KEY as IMAGE_KEY
    from chronicle.storage import build_storage, EXTENSION_KEY as STORAGE_KEY
    app.extensions[AI_KEY] = AIProvider.from_config(app.config)
    app.extensions[IMAGE_KEY] = ImageProvider.from_config(app.config)
    app.extensions[STORAGE_KEY] = build_storage(app.config)

    # Register the 'md' Jinja2 filter: converts Markdown text to HTML
    # Usage in templates: {{ some_field | md | safe }}
    @app.template_filter('md')
    def markdown_filter(text):
        if not text:
            return ''
        return _md.markdown(text, extensions=['nl2br', 'tables', 'fenced_code'])

    # Register Blueprints: each Blueprint is a group of related routes
    from chronicle.routes.auth import auth_bp
    from chronicle.routes.main import main_bp
    from chronicle.routes.campaigns import campaigns_bp
    from chronicle.routes.sessions import sessions_bp
    from chronicle.routes.locations import locations_bp
    from chronicle.routes.pois import pois_bp
    from chronicle.routes.npcs import npcs_bp
    from chronicle.routes.items import items_bp
    from chronicle.routes.notes import notes_bp
    from chronicle.routes.settings import settings_bp
    from chronicle.routes.ai import ai_bp
    from chronicle.routes.images import images_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(campaigns_bp)
    app.register_blueprint(sessions_bp)
    app.register_blueprint(locations_bp)
    app.register_blueprint(pois_bp)
    app.register_blueprint(npcs_bp)
    app.register_blueprint(items_bp)
    app.register_blueprint(notes_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(ai_bp)
    app.register_blueprint(images_bp)

    # Exempt AJAX-only blueprints from CSRF: these are called from JavaScript
    # using fetch() and are already protected by same-origin policy + login_required
    csrf.exempt(ai_bp)
    csrf.exempt(images_bp)

    @app.context_processor
    def inject_app_version():
        return dict(app_version=APP_VERSION)

    @app.context_processor
    def inject_ai_status():
        from chronicle.ai_provider import is_ai_enabled
        from chronicle.image_provider import is_image_enabled
        return dict(ai_enabled=is_ai_enabled(), image_enabled=is_image_enabled())

    logger.info('Chronicle started (ai=%s, images=%s, storage=%s)',
                app.config.get('AI_PROVIDER'), app.config.get('IMAGE_PROVIDER'),
                app.config.get('STORAGE_BACKEND'))

    return app
