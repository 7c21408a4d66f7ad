#!/usr/bin/env python3

import json
import logging
import os
import requests
import sys

from collections import namedtuple
from urllib.parse import quote
from urllib.parse import urlencode

BASE_URL = "https://opendata.cwa.gov.tw/api/v1/rest/datastore"
SNIPPET_LENGTH = 200

logger = logging.getLogger(__name__)

# Outcomes of a single upstream fetch.
ParseFailure = namedtuple("ParseFailure", ["error", "text"])
UpstreamError = namedtuple("UpstreamError", ["status", "data"])
Success = namedtuple("Success", ["data"])

def response(status_code, body):
    return {
        "statusCode": status_code,
        "headers": {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": "*",
        },
        "body": json.dumps(body, ensure_ascii=False, separators=(",", ":")),
    }

def build_url(dataset_id, params):
    # Keep dataset_id a single path segment.
    segment = quote(dataset_id, safe="")
    return f"{BASE_URL}/{segment}?{urlencode(params, doseq=True)}"

def reject_constant(name):
    raise ValueError(f"Invalid JSON constant: {name}")

def fetch(url, api_key):
    r = requests.get(url, headers={"Authorization": f"CWA {api_key}"})
    text = r.text
    try:
        data = json.loads(text.lstrip("\ufeff"), parse_constant=reject_constant)
    except ValueError as error:
        return ParseFailure(error, text)
    if not 200 <= r.status_code < 300:
        return UpstreamError(r.status_code, data)
    return Success(data)

def error_message(data):
    message = data.get("message") if isinstance(data, dict) else None
    return message or "Unknown error"

def proxy(params, api_key):
    """Forward `params` to the CWA datastore, never raises."""
    params = dict(params)
    dataset_id = params.pop("datasetId", None)
    if isinstance(dataset_id, list):
        dataset_id = dataset_id[0] if dataset_id else None
    if not dataset_id:
        return response(400, {"error": "Missing datasetId in query parameters."})
    try:
        url = build_url(dataset_id, params)
        logger.info("Proxying request to CWA API: %s", url)
        outcome = fetch(url, api_key)
        if isinstance(outcome, ParseFailure):
            logger.error("Failed to parse CWA API response for dataset %s: %s", dataset_id, outcome.error)
            return response(500, {
                "error": f"Failed to parse CWA API response as JSON: {outcome.error}",
                "raw_cwa_response_snippet": outcome.text[:SNIPPET_LENGTH],
                "datasetId": dataset_id,
            })
        if isinstance(outcome, UpstreamError):
            message = error_message(outcome.data)
            logger.error("Error from CWA API for dataset %s: %d - %s", dataset_id, outcome.status, message)
            return response(outcome.status, {
                "error": f"CWA API error ({outcome.status}): {message}",
                "cwa_response": outcome.data,
            })
        return response(200, outcome.data)
    except Exception as error:
        logger.exception("Proxy function caught an unexpected error for dataset %s", dataset_id)
        return response(500, {"error": f"Serverless Function Internal Error: {error}"})

def query_params(event):
    params = dict(event.get("queryStringParameters") or {})
    for key, values in (event.get("multiValueQueryStringParameters") or {}).items():
        if values and len(values) > 1:
            params[key] = list(values)
        elif values and key not in params:
            params[key] = values[-1]
    return params

def lambda_handler(event, context):
    api_key = os.environ.get("CWA_API_KEY", "")
    return proxy(query_params(event), api_key)

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    params = dict(arg.split("=", 1) for arg in sys.argv[2:])
    params["datasetId"] = sys.argv[1]
    print(lambda_handler({"queryStringParameters": params}, None)["body"])
