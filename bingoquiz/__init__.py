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

from bingoquiz.services.quiz import QuizOrchestrator  # noqa: E402

quiz = QuizOrchestrator()


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)
    quiz.init_app(flask_app)

    from bingoquiz.auth import init_admin_auth
    init_admin_auth(flask_app)

    from bingoquiz.main import main
    flask_app.register_blueprint(main)

    from bingoquiz.api.players import players
    flask_app.register_blueprint(players, url_prefix='/api')

    from bingoquiz.api.quiz import quiz_api
    flask_app.register_blueprint(quiz_api, url_prefix='/api/quiz')

    from bingoquiz.api.admin import admin
    flask_app.register_blueprint(admin, url_prefix='/api/admin')

    from bingoquiz.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('db-reset')
    @click.option('--questions', default=25, show_default=True, help='Number of demo questions to seed.')
    def db_reset_command(questions):
        """Drops, recreates, and seeds the database."""
        from bingoquiz.models import Choice, CorrectAnswer, Question
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # One choice per board cell; question N is answered by choice N
            size = int(flask_app.config.get('CARD_SIZE', 25))
            for n in range(1, size + 1):
                db.session.add(Choice(id=n, content=f'Choice {n}'))
            for n in range(1, questions + 1):
                db.session.add(Question(id=n, content=f'Question {n}'))
            db.session.flush()
            for n in range(1, min(questions, size) + 1):
                db.session.add(CorrectAnswer(question_id=n, choice_id=n))

            db.session.commit()
            click.echo(f'Database has been reset and seeded with {questions} questions!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
