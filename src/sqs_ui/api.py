"""
HTTP surface: JSON API, /info, /healthz and the single-page UI.
"""
import logging
from functools import wraps

from flask import Flask, Response, jsonify, render_template, request
from werkzeug.exceptions import HTTPException
from werkzeug.http import HTTP_STATUS_CODES

from sqs_ui import version
from sqs_ui.errors import QueueUIException, ValidationError
from sqs_ui.model import QueueIdentity
from sqs_ui.settings import FALSE_VALUES, TRUE_VALUES
from sqs_ui.switchboard import Switchboard

logger = logging.getLogger(__name__)

JSON_MIMETYPE = "application/json"


def error_response(status: int, detail: str) -> Response:
    """Error envelope: {"error": <status text>, "detail": <message>}"""
    response = jsonify({
        "error": HTTP_STATUS_CODES.get(status, "Unknown Error"),
        "detail": detail,
    })
    response.status_code = status
    return response


def api_response(f):
    """Translate queue errors into the error envelope"""
    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except QueueUIException as e:
            logger.error(f"{request.method} {request.path} failed: {e.message}")
            return error_response(e.status_code, e.message)
        except Exception as e:
            logger.error(f"Error handling {request.method} {request.path}: {e}", exc_info=True)
            return error_response(500, str(e))
    return wrapper


def _json_body() -> dict:
    content_type = request.headers.get("Content-Type", "")
    if content_type and request.mimetype != JSON_MIMETYPE:
        raise ValidationError("Content-Type must be application/json", status_code=415)
    data = request.get_json(force=True, silent=True)
    if data is None:
        if request.get_data():
            raise ValidationError("invalid JSON body")
        return {}
    if not isinstance(data, dict):
        raise ValidationError("JSON body must be an object")
    return data


def _query_bool(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    raw = raw.strip().lower()
    if raw in TRUE_VALUES:
        return True
    if raw in FALSE_VALUES:
        return False
    raise ValidationError(f"{name} must be a boolean")


def _query_int(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def _string_field(data: dict, name: str) -> str:
    value = data.get(name, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    return value.strip()


class APIHandler:
    """Routes requests to the session currently held by the switchboard"""

    def __init__(self, switchboard: Switchboard):
        self.switchboard = switchboard

    def require_queue(self, f):
        """Reject the request with 400 when no queue is bound"""
        @wraps(f)
        def wrapper(*args, **kwargs):
            session = self.switchboard.current()
            session.ensure_configured()
            return f(session, *args, **kwargs)
        return wrapper

    def register(self, app: Flask):
        routes = [
            ("/api/send", "send", self.require_queue(self.handle_send), ["POST"]),
            ("/api/messages", "messages", self.require_queue(self.handle_messages), ["GET"]),
            ("/api/purge", "purge", self.require_queue(self.handle_purge), ["POST"]),
            ("/api/config/queue", "config_queue", self.handle_change_queue, ["POST"]),
            ("/info", "info", self.handle_info, ["GET"]),
            ("/healthz", "healthz", self.handle_health, ["GET"]),
        ]
        for rule, endpoint, view, methods in routes:
            app.add_url_rule(rule, endpoint, api_response(view), methods=methods)

    def handle_send(self, session):
        """Send {"message": "<text>", "group_id": "<optional>"} to the queue"""
        data = _json_body()
        message = data.get("message")
        if message is None or message == "":
            raise ValidationError("message cannot be empty")
        if not isinstance(message, str):
            raise ValidationError("message must be a string")
        group_id = _string_field(data, "group_id") or None

        message_id = session.send(message, group_id=group_id)
        return jsonify({
            "status": "ok",
            "message": "message sent successfully",
            "message_id": message_id,
        })

    def handle_messages(self, session):
        """Non-destructive peek; messages stay hidden for the visibility window"""
        max_messages = _query_int("max", 0)
        loop = _query_bool("all")
        if loop is False:
            loop = None

        result = session.fetch(max_messages=max_messages, loop=loop)
        response = jsonify(result.to_list())
        if result.truncated:
            response.headers["X-Fetch-Truncated"] = "true"
        if result.partial_error:
            response.headers["X-Fetch-Partial-Error"] = result.partial_error
        return response

    def handle_purge(self, session):
        session.purge()
        return jsonify({
            "status": "ok",
            "message": "queue purged successfully",
        })

    def handle_info(self):
        return jsonify(self.switchboard.current().status().to_dict())

    def handle_change_queue(self):
        data = _json_body()
        identity = QueueIdentity(
            name=_string_field(data, "queue_name"),
            url=_string_field(data, "queue_url"),
        )
        session = self.switchboard.replace(identity)
        return jsonify({
            "status": "ok",
            "queue_name": session.queue_name,
            "queue_url": session.resolved_url,
            "reconnected": bool(session.resolved_url),
        })

    def handle_health(self):
        return jsonify({"status": "ok", **version.version_info()})


def create_app(switchboard: Switchboard) -> Flask:
    """Build the Flask app around a switchboard"""
    app = Flask(__name__)
    app.json.sort_keys = False

    APIHandler(switchboard).register(app)

    @app.route("/", methods=["GET"])
    def index():
        return render_template("index.html", version=version.VERSION)

    @app.before_request
    def log_request():
        logger.debug(f"Request: {request.method} {request.path} from {request.remote_addr}")

    @app.after_request
    def no_store(response):
        if response.mimetype == JSON_MIMETYPE:
            response.headers["Cache-Control"] = "no-store"
        return response

    @app.errorhandler(HTTPException)
    def http_error(e):
        response = error_response(e.code or 500, e.description or e.name)
        if e.code == 405 and getattr(e, "valid_methods", None):
            response.headers["Allow"] = ", ".join(e.valid_methods)
        return response

    return app
