from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    def __init__(self, status_code, message, reason=None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.reason = reason

    def to_dict(self):
        body = {"error": self.message}
        if self.reason:
            body["reason"] = self.reason
        return body


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(err):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        return jsonify({"error": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err):
        current_app.logger.exception("Unexpected error: %s", err)
        message = str(err) if current_app.debug else "Internal server error"
        return jsonify({"error": message}), 500


def json_body():
    """The request's JSON object, {} when there is no body."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ApiError(400, "Request body must be a JSON object")
    return data
