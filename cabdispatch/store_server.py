#!/usr/bin/env python3
"""JSON document store for CabDispatch bookings and drivers."""

import json
import os
import tempfile
import threading

from flask import Flask, jsonify, request
from flask_cors import CORS

COLLECTIONS = ("bookings", "drivers")

# Path to the JSON database file
DB_FILE = os.getenv("CABDISPATCH_DB_FILE", os.path.join("data", "db.json"))

app = Flask(__name__)
CORS(app)

# Guards every read and read-modify-write cycle so version checks are atomic
_db_lock = threading.Lock()


def empty_db():
    return {name: [] for name in COLLECTIONS}


def read_db():
    """Read the database from the JSON file."""
    path = app.config.get("DB_FILE", DB_FILE)
    if not os.path.exists(path):
        return empty_db()
    with open(path, 'r') as f:
        return json.load(f)


def write_db(data, path=None):
    """Write data to the JSON file, replacing the old file in one step."""
    path = path or app.config.get("DB_FILE", DB_FILE)
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".db-", suffix=".tmp")
    try:
        with os.fdopen(fd, 'w') as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, path)
    except Exception:
        os.unlink(tmp_path)
        raise


def _find(items, item_id):
    for i, item in enumerate(items):
        if str(item.get('id')) == str(item_id):
            return i
    return None


def _version_mismatch(item):
    """Compare the If-Match header, when sent, against the stored version."""
    expected = request.headers.get('If-Match')
    if expected is None:
        return False
    return str(item.get('version', 0)) != expected.strip('"')


@app.route('/<collection>', methods=['GET', 'POST'])
def manage_collection(collection):
    """Get all items or add a new item to a collection."""
    with _db_lock:
        db = read_db()

        if collection not in db:
            return jsonify({"error": f"Collection '{collection}' not found"}), 404

        if request.method == 'GET':
            return jsonify(db[collection])

        new_item = request.json
        if not new_item or 'id' not in new_item:
            return jsonify({"error": "Item must have an 'id'"}), 400
        if _find(db[collection], new_item['id']) is not None:
            return jsonify({"error": f"Item with ID '{new_item['id']}' already exists"}), 409

        new_item.setdefault('version', 0)
        db[collection].append(new_item)
        write_db(db)
        return jsonify(new_item), 201


@app.route('/<collection>/query', methods=['GET'])
def query_collection(collection):
    """Query items in a collection based on parameters."""
    with _db_lock:
        db = read_db()

    if collection not in db:
        return jsonify({"error": f"Collection '{collection}' not found"}), 404

    params = request.args
    filtered_items = [
        item for item in db[collection]
        if all(key in item and str(item[key]) == value for key, value in params.items())
    ]
    return jsonify(filtered_items)


@app.route('/<collection>/<item_id>', methods=['GET', 'PUT', 'DELETE'])
def manage_item(collection, item_id):
    """Get, update or delete a specific item."""
    with _db_lock:
        db = read_db()

        if collection not in db:
            return jsonify({"error": f"Collection '{collection}' not found"}), 404

        item_index = _find(db[collection], item_id)
        if item_index is None:
            return jsonify({"error": f"Item with ID '{item_id}' not found in '{collection}'"}), 404

        current = db[collection][item_index]

        if request.method == 'GET':
            return jsonify(current)

        if _version_mismatch(current):
            return jsonify({
                "error": f"Item with ID '{item_id}' was modified",
                "version": current.get('version', 0),
            }), 409

        if request.method == 'PUT':
            updated_item = request.json
            db[collection][item_index] = updated_item
            write_db(db)
            return jsonify(updated_item)

        deleted_item = db[collection].pop(item_index)
        write_db(db)
        return jsonify(deleted_item)


def main(port=3000):
    if not os.path.exists(DB_FILE):
        write_db(empty_db())
    app.run(host='0.0.0.0', port=port, debug=False, threaded=True)


if __name__ == '__main__':
    main(int(os.getenv("CABDISPATCH_PORT", "3000")))
