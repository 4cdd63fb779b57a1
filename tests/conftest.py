"""Shared fixtures: a local HTTP server standing in for Colete Online.

The stub answers both the token endpoint (``POST /auth/token``) and the
API routes under ``/v1``.  Every request it receives is recorded so tests
can count token exchanges and retries.
"""

import base64
import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from coleteonline_api_client import ColeteOnlineClient

CLIENT_ID = "client_id"
CLIENT_SECRET = "client_secret"
BASIC_AUTH = "Basic " + base64.b64encode(b"client_id:client_secret").decode("ascii")


def make_jwt(exp):
    payload = base64.urlsafe_b64encode(json.dumps({"exp": exp}).encode()).rstrip(b"=")
    return "header." + payload.decode("ascii") + ".signature"


class StubServer:
    """Routes ``(method, path)`` to canned responses and records traffic.

    A route is either a ``(status, body)`` tuple, a list of such tuples
    consumed one per request (the last one repeats) or a callable taking
    the recorded request and returning a tuple.  ``body`` may be bytes or
    any JSON serialisable value.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []
        self.token_lifetime = 2 * 60 * 60
        self.token_delay = 0.0
        self.tokens = []
        self._issued = 0
        self._lock = threading.Lock()
        self._httpd = ThreadingHTTPServer(("127.0.0.1", 0), self._handler_class())
        self._httpd.daemon_threads = True
        self.url = "http://127.0.0.1:%d" % self._httpd.server_address[1]
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)

    def start(self):
        self._thread.start()

    def stop(self):
        self._httpd.shutdown()
        self._httpd.server_close()

    def route(self, method, path, response):
        self.routes[(method, path)] = response

    def requests_to(self, path, method=None):
        return [
            r for r in self.requests
            if r["path"] == path and (method is None or r["method"] == method)
        ]

    @property
    def token_requests(self):
        return self.requests_to("/auth/token", "POST")

    def bearer(self, n=1):
        """The ``Authorization`` value the ``n``-th issued token produces."""
        return "Bearer " + self.tokens[n - 1]

    def _issue_token(self, request):
        if self.token_delay:
            time.sleep(self.token_delay)
        if request["headers"].get("Authorization") != BASIC_AUTH:
            return 401, {"error": "invalid_client", "error_description": "Invalid client credentials"}
        if request["headers"].get("Content-Type") != "application/x-www-form-urlencoded":
            return 400, {
                "error": "invalid_request",
                "error_description": "content must be application/x-www-form-urlencoded",
            }
        if request["body"] != b"grant_type=client_credentials":
            return 400, {"error": "invalid_request", "error_description": "Missing parameter: `grant_type`"}
        with self._lock:
            self._issued += 1
            # Distinct tokens so tests can tell refreshes apart.
            token = make_jwt(int(time.time()) + self.token_lifetime + self._issued)
            self.tokens.append(token)
        return 200, {"access_token": token}

    def _dispatch(self, request):
        key = (request["method"], request["path"])
        if key not in self.routes and key == ("POST", "/auth/token"):
            return self._issue_token(request)
        route = self.routes.get(key)
        if route is None:
            return 404, b""
        if callable(route):
            return route(request)
        if isinstance(route, list):
            with self._lock:
                return route.pop(0) if len(route) > 1 else route[0]
        return route

    def _handler_class(self):
        server = self

        class Handler(BaseHTTPRequestHandler):
            def _handle(self):
                length = int(self.headers.get("Content-Length") or 0)
                request = {
                    "method": self.command,
                    "path": self.path,
                    "headers": dict(self.headers),
                    "body": self.rfile.read(length) if length else b"",
                }
                with server._lock:
                    server.requests.append(request)
                status, body = server._dispatch(request)
                if not isinstance(body, bytes):
                    body = json.dumps(body).encode("utf-8")
                self.send_response(status)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            do_GET = _handle
            do_POST = _handle

            def log_message(self, format, *args):
                pass

        return Handler


@pytest.fixture
def stub_server():
    server = StubServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def make_client(stub_server):
    clients = []

    def _make(**kwargs):
        kwargs.setdefault("client_id", CLIENT_ID)
        kwargs.setdefault("client_secret", CLIENT_SECRET)
        kwargs.setdefault("use_production", True)
        kwargs.setdefault("timeout", 5)
        kwargs.setdefault("auth_url", stub_server.url + "/auth/token")
        kwargs.setdefault("base_url", stub_server.url + "/v1")
        client = ColeteOnlineClient(**kwargs)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def client(make_client):
    return make_client()
