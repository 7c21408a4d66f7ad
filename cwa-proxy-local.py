#!/usr/bin/env python3

import logging
import sys

from cwa_proxy import lambda_handler
from dotenv import load_dotenv
from http.server import BaseHTTPRequestHandler
from http.server import HTTPServer
from urllib.parse import parse_qs
from urllib.parse import urlsplit

def event(path):
    query = parse_qs(urlsplit(path).query, keep_blank_values=True)
    return {
        "queryStringParameters": {k: v[-1] for k, v in query.items()} or None,
        "multiValueQueryStringParameters": query or None,
    }

class Handler(BaseHTTPRequestHandler):
    def do_GET(self):
        response = lambda_handler(event(self.path), None)
        body = response["body"].encode("utf-8")
        self.send_response(response["statusCode"])
        for name, value in response["headers"].items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(level=logging.INFO)
    port = int(sys.argv[1]) if len(sys.argv) > 1 else 8001
    print(f"Starting proxy at http://localhost:{port}/?datasetId=F-C0032-001")
    HTTPServer(("127.0.0.1", port), Handler).serve_forever()
