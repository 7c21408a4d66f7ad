import importlib.util
import json
import threading
import pytest
import requests

from http.server import HTTPServer
from pathlib import Path
from unittest.mock import Mock, patch

spec = importlib.util.spec_from_file_location(
    "cwa_proxy_local", Path(__file__).parent.parent / "cwa-proxy-local.py")
local = importlib.util.module_from_spec(spec)
spec.loader.exec_module(local)

def test_event_from_path():
    event = local.event("/?datasetId=F-D0047-091&elementName=Wx&elementName=MinT&sort=")
    assert event["queryStringParameters"] == {
        "datasetId": "F-D0047-091",
        "elementName": "MinT",
        "sort": "",
    }
    assert event["multiValueQueryStringParameters"]["elementName"] == ["Wx", "MinT"]

def test_event_without_query():
    assert local.event("/") == {
        "queryStringParameters": None,
        "multiValueQueryStringParameters": None,
    }

@pytest.fixture
def server():
    httpd = HTTPServer(("127.0.0.1", 0), local.Handler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{httpd.server_port}"
    httpd.shutdown()
    httpd.server_close()

def test_serves_handler_response(server):
    r = requests.Session().get(f"{server}/?locationName=%E8%87%BA%E5%8C%97", timeout=10)
    assert r.status_code == 400
    assert r.headers["Access-Control-Allow-Origin"] == "*"
    assert r.headers["Content-Type"] == "application/json"
    assert r.json() == {"error": "Missing datasetId in query parameters."}

def test_forwards_to_upstream(server, monkeypatch):
    monkeypatch.setenv("CWA_API_KEY", "key")
    fake = Mock(status_code=200, text=json.dumps({"success": "true"}))
    with patch("cwa_proxy.requests.get", return_value=fake) as get:
        r = requests.Session().get(f"{server}/?datasetId=F-C0032-001&locationName=%E8%87%BA%E5%8C%97", timeout=10)
    assert r.status_code == 200
    assert r.json() == {"success": "true"}
    assert get.call_args.args[0].endswith("/F-C0032-001?locationName=%E8%87%BA%E5%8C%97")
