from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from buzzboard.errors import register_error_handlers, NotAuthenticated
    register_error_handlers(flask_app)

    # Import and register blueprints here
    from buzzboard.main import main
    flask_app.register_blueprint(main)

    from buzzboard.api.lobbies import lobbies
    flask_app.register_blueprint(lobbies, url_prefix='/api/lobbies')

    # Importing here ensures the handlers bind to the initialized socketio instance
    from buzzboard.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    # Flask-Login user loader
    from buzzboard.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        raise NotAuthenticated()

    @click.command('seed-questions')
    def seed_questions_command():
        """Seeds the question catalog if it is empty."""
        from buzzboard.seed import seed_questions
        created = seed_questions()
        print(f'Seeded {created} questions.')

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from buzzboard.seed import seed_questions
        db.drop_all()
        db.create_all()

        # Seed users
        users = ['testuser1', 'testuser2', 'testuser3']
        for u in users:
            user = User(username=u, email=f'{u}@example.com', display_name=u.capitalize())
            user.set_password('password')
            db.session.add(user)
        db.session.commit()

        created = seed_questions()
        print(f'Database has been reset and seeded with {created} questions!')

    flask_app.cli.add_command(seed_questions_command)
    flask_app.cli.add_command(db_reset_command)

    return flask_app
