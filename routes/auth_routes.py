from flask import Blueprint, jsonify, g, current_app

from models.user_model import User
from routes.errors import ApiError, json_body
from utils.jwt_utils import create_access_token, login_required

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/login", methods=["POST"])
def login():
    data = json_body()
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""
    if not username or not password:
        raise ApiError(400, "Username and password are required")

    user = User.query.filter_by(username=username).first()
    if not user or not user.check_password(password):
        current_app.logger.info("failed login for %s", username)
        raise ApiError(401, "Invalid credentials")

    return jsonify({"token": create_access_token(user), "user": user.to_dict()})


@auth_bp.route("/me")
@login_required()
def me():
    return jsonify({"user": g.user.to_dict()})
