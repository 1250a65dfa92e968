"""Registration, login, logout, e-mail lookup and the protected greeting."""

from __future__ import annotations

from typing import Any

import bcrypt
from flask import current_app, g, jsonify, request
from pymongo.errors import PyMongoError

from .auth import COOKIE_NAME, auth_cookie_header, create_token
from .models import User

BCRYPT_COST = 10
_BCRYPT_MAX_BYTES = 72


def _database() -> Any:
    return current_app.config["DATABASE"]


def _json_object() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


def _string_field(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _hash_password(plain: str) -> str:
    raw = plain.encode()
    if len(raw) > _BCRYPT_MAX_BYTES:
        raise ValueError("password longer than 72 bytes")
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=BCRYPT_COST)).decode()


def register() -> Any:
    """Create an account with a bcrypt-hashed password."""
    try:
        user = User.from_json(request.get_json(silent=True))
    except ValueError:
        return jsonify({"error": "Datos inválidos"}), 400

    users = _database().users
    try:
        existing = users.find_one({"email": user.email})
    except PyMongoError:
        existing = None
    if existing is not None:
        return jsonify({"error": "El email ya está registrado"}), 409

    try:
        user.password = _hash_password(user.password)
    except ValueError:
        return jsonify({"error": "Error al procesar contraseña"}), 500

    try:
        users.insert_one(user.to_document())
    except PyMongoError:
        return jsonify({"error": "Error al registrar usuario"}), 500

    return jsonify({"message": "Usuario registrado con éxito"}), 201


def login() -> Any:
    """Check credentials and set the auth cookie carrying a fresh token."""
    try:
        data = _json_object()
        email = _string_field(data, "email")
        password = _string_field(data, "password")
    except ValueError:
        return jsonify({"error": "Datos inválidos"}), 400

    unauthorized = jsonify({"error": "Credenciales inválidas"}), 401
    try:
        doc = _database().users.find_one({"email": email})
    except PyMongoError:
        return unauthorized
    if doc is None:
        return unauthorized
    user = User.from_document(doc)

    try:
        matches = bcrypt.checkpw(password.encode(), user.password.encode())
    except ValueError:
        matches = False
    if not matches:
        return unauthorized

    token = create_token(str(user.id))
    response = jsonify({"message": "Logueado correctamente"})
    response.headers.add("Set-Cookie", auth_cookie_header(token))
    return response, 200


def logout() -> Any:
    """Expire the auth cookie."""
    response = jsonify({"message": "Sesión cerrada correctamente"})
    response.set_cookie(COOKIE_NAME, "", max_age=0, path="/", secure=False, httponly=True)
    return response, 200


def check_email() -> Any:
    """Report whether an account with the given e-mail exists."""
    try:
        email = _string_field(_json_object(), "email")
    except ValueError:
        return jsonify({"inUse": False}), 400

    try:
        doc = _database().users.find_one({"email": email})
    except PyMongoError:
        doc = None
    return jsonify({"inUse": doc is not None}), 200


def protected() -> Any:
    """Greet an authenticated caller."""
    return jsonify({"message": "✅ Acceso autorizado", "username": g.get("username")}), 200