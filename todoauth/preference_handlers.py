"""Endpoints for reading and saving a user's display preferences."""

from __future__ import annotations

from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from flask import current_app, g, jsonify, request
from pymongo.errors import PyMongoError

from .models import ZERO_OBJECT_ID, UserPreferences

_FIELDS = ("preferredLanguage", "preferredTheme")


def _collection() -> Any:
    return current_app.config["DATABASE"].get_collection("preferences")


def _current_user_id() -> ObjectId:
    try:
        return ObjectId(g.user_id)
    except (InvalidId, TypeError):
        return ZERO_OBJECT_ID


def _submitted_fields(data: Any) -> dict[str, str]:
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    fields = {}
    for key in _FIELDS:
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ValueError(f"field {key!r} must be a string")
        if value:
            fields[key] = value
    return fields


def get_preferences() -> Any:
    """Return the caller's preferences, or nulls when none are stored."""
    try:
        doc = _collection().find_one({"userId": _current_user_id()})
    except PyMongoError:
        doc = None
    if doc is None:
        return jsonify({"preferredLanguage": None, "preferredTheme": None}), 200
    return jsonify(UserPreferences.from_document(doc).to_json()), 200


def update_preferences() -> Any:
    """Create or update the non-empty preference fields sent by the caller."""
    user_id = _current_user_id()
    try:
        fields = _submitted_fields(request.get_json(silent=True))
    except ValueError:
        return jsonify({"error": "Datos inválidos"}), 400

    if not fields:
        return jsonify({"error": "No se enviaron campos válidos"}), 400

    update = {"$set": {"userId": user_id, **fields}}
    try:
        _collection().update_one({"userId": user_id}, update, upsert=True)
    except PyMongoError:
        return jsonify({"error": "Error al guardar preferencias"}), 500

    return jsonify({"message": "Preferencias actualizadas"}), 200