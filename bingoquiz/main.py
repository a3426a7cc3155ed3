from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from bingoquiz import db, persistence
from bingoquiz.exceptions import PersistenceNotConfigured, QuizError

main = Blueprint('main', __name__)


@main.app_errorhandler(QuizError)
def handle_quiz_error(exc):
    return jsonify(exc.to_dict()), exc.status_code


@main.app_errorhandler(SQLAlchemyError)
def handle_db_error(exc):
    db.session.rollback()
    current_app.logger.error(f"[db] request failed: {exc}")
    return jsonify({'ok': False, 'error': 'Database operation failed'}), 500


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the bingo quiz server!'})


@main.route('/api/dbtest', methods=['GET'])
def dbtest():
    if not persistence.has_config():
        return jsonify(PersistenceNotConfigured().to_dict())
    try:
        rows = db.session.execute(text('SELECT 1+1 AS sum')).mappings().all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[dbtest] {exc}")
        return jsonify({'ok': False, 'configured': True, 'error': str(exc)}), 500
    return jsonify({'ok': True, 'configured': True, 'rows': [dict(r) for r in rows]})
