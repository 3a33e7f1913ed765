# --- spinwheel/utils/api.py ---
from flask import jsonify


def api_ok(data=None):
    return {"ok": True, **(data or {})}


def api_error(error, data=None):
    return {"ok": False, "error": error, **(data or {})}


def ok(data=None, status=200):
    r = jsonify(api_ok(data)); r.status_code = status; return r


def err(error, status=400, data=None):
    r = jsonify(api_error(error, data)); r.status_code = status; return r
