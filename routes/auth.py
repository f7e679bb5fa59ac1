# routes/auth.py
from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user

from services.auth_service import authenticate

auth_bp = Blueprint("auth", __name__)


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or request.form
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    user = authenticate(username, password)
    if user is None:
        return jsonify({"success": False, "message": "Invalid username or password"}), 401
    login_user(user)
    return jsonify({"success": True, "user": user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True, "message": "You have been logged out."})


@auth_bp.route('/api/user')
@login_required
def get_current_user():
    return jsonify({"success": True, "user": current_user.to_dict()})
