"""
Proxy server for the LiveText overlay UI

A thin Flask application that keeps provider credentials on the server: the
browser posts a base64 image, the proxy signs and forwards the OCR call and
relays the provider JSON unchanged.
"""

import logging
import threading
from typing import Callable, Optional

from flask import Flask, jsonify, request

from .config.settings import Settings, load_settings
from .exceptions import AuthenticationError, ConfigurationError, ServerCommunicationError
from .http_client import VisualApiClient, create_client
from .signing.types import SigningError

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Settings], VisualApiClient]


class ClientHandle:
    """
    Lazily created, process-wide visual API client.

    The client is built on first use and reused afterwards; creation is
    guarded by a lock so concurrent first requests build it once.
    """

    def __init__(self, settings: Settings, factory: ClientFactory = create_client):
        self._settings = settings
        self._factory = factory
        self._client: Optional[VisualApiClient] = None
        self._lock = threading.Lock()

    def get(self) -> VisualApiClient:
        client = self._client
        if client is not None:
            return client

        with self._lock:
            if self._client is None:
                self._client = self._factory(self._settings)
            return self._client

    @property
    def initialized(self) -> bool:
        return self._client is not None

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None


def create_app(settings: Optional[Settings] = None,
               client_factory: ClientFactory = create_client) -> Flask:
    """
    Create the proxy application.

    Args:
        settings: Settings to use; loaded from the environment when omitted
        client_factory: Builds the visual API client on first use

    Returns:
        Flask: Configured application
    """
    settings = settings or load_settings()
    handle = ClientHandle(settings, client_factory)

    app = Flask(__name__)
    app.extensions['livetext_client'] = handle

    @app.get("/api/")
    def index():
        return jsonify({"name": settings.service_name})

    @app.post("/api/ocr")
    def ocr():
        payload = request.get_json(silent=True) or {}
        image_base64 = payload.get("image_base64") if isinstance(payload, dict) else None

        if not image_base64 or not isinstance(image_base64, str):
            return jsonify({"error": "image_base64 is required"}), 400

        if not settings.has_credentials:
            return jsonify({"error": "Missing Volcengine credentials"}), 500

        try:
            result = handle.get().ocr_image(image_base64)
        except AuthenticationError as e:
            return jsonify({
                "error": "Authentication with OCR provider failed",
                "details": str(e),
                "code": e.error_code,
            }), e.http_status
        except ServerCommunicationError as e:
            logger.error(f"OCR API error: {e}")
            return jsonify({"error": "OCR request failed", "details": str(e)}), 502
        except (SigningError, ConfigurationError) as e:
            logger.error(f"OCR request could not be signed: {e}")
            return jsonify({"error": "OCR request failed", "details": str(e)}), 500

        return jsonify(result)

    logger.info(f"Created proxy application '{settings.service_name}' for {settings.api_host}")
    return app


def run_server(settings: Settings, host: str = "127.0.0.1", port: int = 8787) -> None:
    """Run the proxy with Flask's built-in server."""
    app = create_app(settings)
    app.run(host=host, port=port)
