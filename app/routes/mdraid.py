from __future__ import annotations

from flask import Blueprint, jsonify

from app.services.mdraid_service import get_table

mdraid_api = Blueprint('mdraid_api', __name__)


@mdraid_api.route('/api/md/drives', methods=['GET'])
def api_md_drives():
    """Return the reconciled slot table of every MD array."""
    try:
        drives = get_table("drives")
        return jsonify({"status": "success", "drives": drives, "total": len(drives)})
    except Exception as e:
        return jsonify({"status": "error", "message": f"Failed to read MD drives: {str(e)}", "drives": [], "total": 0}), 500


@mdraid_api.route('/api/md/devices', methods=['GET'])
def api_md_devices():
    try:
        devices = get_table("devices")
        return jsonify({"status": "success", "devices": devices, "total": len(devices)})
    except Exception as e:
        return jsonify({"status": "error", "message": f"Failed to read MD devices: {str(e)}", "devices": [], "total": 0}), 500


@mdraid_api.route('/api/md/personalities', methods=['GET'])
def api_md_personalities():
    try:
        personalities = get_table("personalities")
        return jsonify({"status": "success", "personalities": personalities})
    except Exception as e:
        return jsonify({"status": "error", "message": f"Failed to read MD personalities: {str(e)}", "personalities": []}), 500
