from collections import defaultdict
from types import SimpleNamespace

import pytest
from bson import ObjectId
from flask import Flask
from pymongo.errors import PyMongoError

from todoauth.auth import create_token, login_required
from todoauth.database import Database
from todoauth.todo_handlers import (
    create_todo,
    delete_todo,
    get_todos,
    reorder_todos,
    update_todo,
)


class FakeCollection:
    def __init__(self):
        self.docs = []
        self.fail = False

    def _check(self):
        if self.fail:
            raise PyMongoError("unavailable")

    def _matching(self, flt):
        return [d for d in self.docs if all(d.get(k) == v for k, v in flt.items())]

    def find(self, flt, sort=None):
        self._check()
        docs = [dict(d) for d in self._matching(flt)]
        for key, direction in reversed(sort or []):
            docs.sort(key=lambda d: d.get(key), reverse=direction < 0)
        return iter(docs)

    def insert_one(self, doc):
        self._check()
        stored = dict(doc)
        stored.setdefault("_id", ObjectId())
        self.docs.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"])

    def update_one(self, flt, update, upsert=False):
        self._check()
        found = self._matching(flt)
        if found:
            found[0].update(update["$set"])
        return SimpleNamespace(matched_count=len(found[:1]))

    def delete_one(self, flt):
        self._check()
        found = self._matching(flt)
        if found:
            self.docs.remove(found[0])
        return SimpleNamespace(deleted_count=len(found[:1]))


class FakeClient(dict):
    def __missing__(self, name):
        db = self[name] = defaultdict(FakeCollection)
        return db


@pytest.fixture
def setup(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "secret")
    database = Database(FakeClient(), "testdb")
    app = Flask(__name__)
    app.config["DATABASE"] = database
    app.add_url_rule("/todos", view_func=login_required(get_todos), methods=["GET"])
    app.add_url_rule("/todos", view_func=login_required(create_todo), methods=["POST"])
    app.add_url_rule("/todos/reorder", view_func=login_required(reorder_todos), methods=["PUT"])
    app.add_url_rule("/todos/<todo_id>", view_func=login_required(update_todo), methods=["PUT"])
    app.add_url_rule(
        "/todos/<todo_id>", view_func=login_required(delete_todo), methods=["DELETE"]
    )
    user_id = ObjectId()
    headers = {"Cookie": f"token={create_token(str(user_id), 'secret')}"}
    return app.test_client(), database, user_id, headers


def test_requires_token(setup):
    client, _, _, _ = setup
    resp = client.get("/todos")
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "No autorizado: token ausente"}


def test_get_todos_only_own_sorted(setup):
    client, database, user_id, headers = setup
    database.todos.insert_one({"userId": user_id, "content": "b", "order": 2})
    database.todos.insert_one({"userId": user_id, "content": "a", "order": 1})
    database.todos.insert_one({"userId": ObjectId(), "content": "x", "order": 0})
    resp = client.get("/todos", headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert [item["content"] for item in body] == ["a", "b"]
    assert all(item["userId"] == str(user_id) for item in body)


def test_get_todos_failure(setup):
    client, database, _, headers = setup
    database.todos.fail = True
    resp = client.get("/todos", headers=headers)
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "unavailable"}


def test_create_todo_assigns_owner_and_id(setup):
    client, database, user_id, headers = setup
    other = ObjectId()
    resp = client.post(
        "/todos",
        json={"content": "write tests", "priority": "high", "order": 3, "userId": str(other)},
        headers=headers,
    )
    assert resp.status_code == 201
    body = resp.get_json()
    stored = database.todos.docs[0]
    assert body["_id"] == str(stored["_id"])
    assert body["userId"] == str(user_id)
    assert stored["userId"] == user_id
    assert stored["content"] == "write tests"
    assert stored["date"].year > 2000


def test_create_todo_invalid_body(setup):
    client, database, _, headers = setup
    resp = client.post("/todos", json={"order": "first"}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Datos inválidos"}
    assert database.todos.docs == []


def test_update_todo(setup):
    client, database, user_id, headers = setup
    todo_id = database.todos.insert_one({"userId": user_id, "content": "old"}).inserted_id
    resp = client.put(
        f"/todos/{todo_id}",
        json={"content": "new", "completed": True, "subtask": [{"id": "s1", "content": "step"}]},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.get_json()["content"] == "new"
    stored = database.todos.docs[0]
    assert stored["content"] == "new"
    assert stored["completed"] is True
    assert stored["subtask"] == [{"id": "s1", "content": "step", "completed": False}]


def test_update_todo_without_subtasks_clears_them(setup):
    client, database, user_id, headers = setup
    todo_id = database.todos.insert_one(
        {"userId": user_id, "subtask": [{"id": "s1", "content": "step", "completed": False}]}
    ).inserted_id
    resp = client.put(f"/todos/{todo_id}", json={"content": "c"}, headers=headers)
    assert resp.status_code == 200
    assert database.todos.docs[0]["subtask"] is None


def test_update_todo_invalid_id(setup):
    client, _, _, headers = setup
    resp = client.put("/todos/not-an-id", json={"content": "c"}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Invalid ID"}


def test_update_todo_of_other_user(setup):
    client, database, _, headers = setup
    todo_id = database.todos.insert_one({"userId": ObjectId(), "content": "theirs"}).inserted_id
    resp = client.put(f"/todos/{todo_id}", json={"content": "mine"}, headers=headers)
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Todo not found or user unauthorized"}
    assert database.todos.docs[0]["content"] == "theirs"


def test_update_todo_failure(setup):
    client, database, user_id, headers = setup
    todo_id = database.todos.insert_one({"userId": user_id}).inserted_id
    database.todos.fail = True
    resp = client.put(f"/todos/{todo_id}", json={"content": "c"}, headers=headers)
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Failed to update todo"}


def test_delete_todo_then_missing(setup):
    client, database, user_id, headers = setup
    todo_id = database.todos.insert_one({"userId": user_id}).inserted_id
    first = client.delete(f"/todos/{todo_id}", headers=headers)
    second = client.delete(f"/todos/{todo_id}", headers=headers)
    assert first.status_code == 200
    assert first.get_json() == {"message": "Eliminado correctamente"}
    assert second.status_code == 404
    assert database.todos.docs == []


def test_delete_todo_of_other_user(setup):
    client, database, _, headers = setup
    todo_id = database.todos.insert_one({"userId": ObjectId()}).inserted_id
    resp = client.delete(f"/todos/{todo_id}", headers=headers)
    assert resp.status_code == 404
    assert len(database.todos.docs) == 1


def test_reorder_todos(setup):
    client, database, user_id, headers = setup
    first = database.todos.insert_one({"userId": user_id, "order": 0}).inserted_id
    second = database.todos.insert_one({"userId": user_id, "order": 1}).inserted_id
    foreign = database.todos.insert_one({"userId": ObjectId(), "order": 7}).inserted_id
    resp = client.put(
        "/todos/reorder",
        json=[
            {"id": str(first), "order": 1},
            {"id": str(second), "order": 0},
            {"id": str(foreign), "order": 0},
        ],
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Reordenado correctamente"}
    orders = {doc["_id"]: doc["order"] for doc in database.todos.docs}
    assert orders == {first: 1, second: 0, foreign: 7}


def test_reorder_todos_invalid_body(setup):
    client, _, _, headers = setup
    resp = client.put("/todos/reorder", json={"id": "x", "order": 1}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Datos inválidos"}