from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required

from quizhost import db, get_domain
from quizhost.auth import current_identity, is_allowed_host
from quizhost.models import User

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the quiz host server!'})


@main.route('/users/add', methods=['POST'])
@login_required
def add_user():
    data = request.get_json(silent=True)
    if not data or 'username' not in data or 'password' not in data:
        return jsonify({'error': 'Missing username or password'}), 400

    if User.query.filter_by(username=data['username']).first():
        return jsonify({'error': 'Username already exists'}), 400

    user = User(username=data['username'])
    user.set_password(data['password'])
    db.session.add(user)
    db.session.commit()

    return jsonify({'message': 'User created successfully'}), 201


@main.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user = User.query.filter_by(username=data.get('username')).first()
    if user and user.check_password(data.get('password') or ''):
        login_user(user, remember=True)
        return jsonify({
            'message': 'Logged in successfully.',
            'user': user.to_dict(),
            'isHost': is_allowed_host(get_domain().store, user),
        })
    return jsonify({'error': 'Invalid username or password'}), 401


@main.route('/check_login', methods=['GET'])
def check_login():
    identity = current_identity()
    if identity is None:
        return jsonify({'success': False}), 401
    return jsonify({
        'success': True,
        'user': identity.to_dict(),
        'isHost': is_allowed_host(get_domain().store, identity),
    })


@main.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'message': 'Logged out successfully.'})
