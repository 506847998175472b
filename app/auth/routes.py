from flask import request, session, jsonify, current_app, abort
from app import db
from app.auth import auth
from app.auth.models import User
from app.auth.decorators import login_required
from app.utils.payload import text


@auth.route('/login', methods=['POST'])
def login():
    """Validate credentials (form or JSON body) and populate the session."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = request.form
    username = text(data, 'username')
    password = data.get('password')
    if not isinstance(password, str):
        password = ''

    if not username or not password:
        return jsonify({'error': 'Username and password are required.'}), 400

    user = User.query.filter_by(username=username).first()
    if user is None or not user.check_password(password):
        # Same message for unknown user and wrong password
        current_app.logger.warning(f"Failed login attempt for username: {username}")
        return jsonify({'error': 'Invalid username or password.'}), 401

    session.clear()
    session['user_id'] = user.id
    session['role']    = user.role.value
    session.permanent  = True

    current_app.logger.info(f"User {user.username} logged in successfully.")
    return jsonify(user.to_dict())


@auth.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'message': 'Logged out'})


@auth.route('/me')
@login_required
def me():
    user = db.session.get(User, session['user_id'])
    if user is None:
        session.clear()
        abort(401)
    return jsonify(user.to_dict())
