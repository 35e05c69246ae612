import re

from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy import or_

from .models import db, User
from .errors import InvalidCredentials, UserExists, ValidationError

main = Blueprint('main', __name__)

USERNAME_RE = re.compile(r'^[a-z0-9_]{3,20}$', re.IGNORECASE)
EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Buzzboard quiz server!'})


@main.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    email = str(data.get('email') or '').strip().lower()
    username = str(data.get('username') or '').strip().lower()
    display_name = str(data.get('display_name') or '').strip()
    password = str(data.get('password') or '')

    if not EMAIL_RE.match(email):
        raise ValidationError('Enter a valid email address')
    if not USERNAME_RE.match(username):
        raise ValidationError('Username must be 3-20 letters, digits or underscores')
    if not 2 <= len(display_name) <= 40:
        raise ValidationError('Display name must be 2-40 characters')
    if not 8 <= len(password) <= 64 or len(password.encode('utf-8')) > 72:
        raise ValidationError('Password must be 8-64 characters')

    if User.query.filter(or_(User.email == email, User.username == username)).first():
        raise UserExists()

    new_user = User(email=email, username=username, display_name=display_name)
    new_user.set_password(password)
    db.session.add(new_user)
    db.session.commit()
    login_user(new_user)
    return jsonify({'success': True, 'user': new_user.to_dict()}), 201


@main.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    identifier = str(data.get('identifier') or data.get('username') or '').strip().lower()
    user = User.query.filter(or_(User.username == identifier, User.email == identifier)).first()
    password = str(data.get('password') or '')
    if user is None or not user.check_password(password):
        raise InvalidCredentials()
    login_user(user, remember=True)
    return jsonify({'success': True, 'user': user.to_dict()})


@main.route('/check_login', methods=['GET'])
@login_required
def check_login():
    return jsonify({'success': True, 'user': current_user.to_dict()})


@main.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})
