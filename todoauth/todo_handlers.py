"""Endpoints for listing, creating, editing, deleting and reordering to-dos."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from flask import current_app, g, jsonify, request
from pymongo.errors import PyMongoError

from .models import ZERO_OBJECT_ID, TodoItem


def _database() -> Any:
    return current_app.config["DATABASE"]


def _object_id(value: Any) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return ZERO_OBJECT_ID


def _current_user_id() -> ObjectId:
    return _object_id(g.user_id)


def _reorder_entries(data: Any) -> list[tuple[str, int]]:
    if not isinstance(data, list):
        raise ValueError("expected a JSON array")
    entries = []
    for item in data:
        if not isinstance(item, dict):
            raise ValueError("expected a JSON object")
        todo_id = item.get("id") or ""
        order = item.get("order") or 0
        if not isinstance(todo_id, str):
            raise ValueError("field 'id' must be a string")
        if isinstance(order, bool) or not isinstance(order, int):
            raise ValueError("field 'order' must be an integer")
        entries.append((todo_id, order))
    return entries


def get_todos() -> Any:
    """List the caller's to-dos by ascending order."""
    user_id = _current_user_id()
    try:
        docs = list(_database().todos.find({"userId": user_id}, sort=[("order", 1)]))
    except PyMongoError as exc:
        return jsonify({"error": str(exc)}), 500
    return jsonify([TodoItem.from_document(doc).to_json() for doc in docs]), 200


def create_todo() -> Any:
    """Store a new to-do owned by the caller, stamped with the current time."""
    user_id = _current_user_id()
    try:
        todo = TodoItem.from_json(request.get_json(silent=True))
    except ValueError:
        return jsonify({"error": "Datos inválidos"}), 400

    todo.user_id = user_id
    todo.date = datetime.now(timezone.utc)

    try:
        result = _database().todos.insert_one(todo.to_document())
    except PyMongoError as exc:
        return jsonify({"error": str(exc)}), 500

    todo.id = result.inserted_id
    return jsonify(todo.to_json()), 201


def update_todo(todo_id: str) -> Any:
    """Replace the editable fields of one of the caller's to-dos."""
    try:
        object_id = ObjectId(todo_id)
    except (InvalidId, TypeError):
        return jsonify({"error": "Invalid ID"}), 400

    user_id = _current_user_id()
    body = request.get_json(silent=True)
    try:
        updated = TodoItem.from_json(body)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    subtasks = None
    if body.get("subtask") is not None:
        subtasks = [subtask.to_dict() for subtask in updated.subtasks]

    update = {
        "$set": {
            "content": updated.content,
            "completed": updated.completed,
            "priority": updated.priority,
            "order": updated.order,
            "date": updated.date,
            "subtask": subtasks,
        }
    }
    try:
        result = _database().todos.update_one({"_id": object_id, "userId": user_id}, update)
    except PyMongoError:
        return jsonify({"error": "Failed to update todo"}), 500

    if result.matched_count == 0:
        return jsonify({"error": "Todo not found or user unauthorized"}), 404
    return jsonify(updated.to_json()), 200


def delete_todo(todo_id: str) -> Any:
    """Delete one of the caller's to-dos."""
    flt = {"_id": _object_id(todo_id), "userId": _current_user_id()}
    try:
        result = _database().todos.delete_one(flt)
    except PyMongoError as exc:
        return jsonify({"error": str(exc)}), 500

    if result.deleted_count == 0:
        return jsonify({"error": "Todo not found or user unauthorized"}), 404
    return jsonify({"message": "Eliminado correctamente"}), 200


def reorder_todos() -> Any:
    """Set the order of each listed to-do owned by the caller."""
    user_id = _current_user_id()
    try:
        entries = _reorder_entries(request.get_json(silent=True))
    except ValueError:
        return jsonify({"error": "Datos inválidos"}), 400

    todos = _database().todos
    for todo_id, order in entries:
        try:
            todos.update_one(
                {"_id": _object_id(todo_id), "userId": user_id},
                {"$set": {"order": order}},
            )
        except PyMongoError as exc:
            return jsonify({"error": str(exc)}), 500

    return jsonify({"message": "Reordenado correctamente"}), 200