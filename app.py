#!/usr/bin/env python3
"""
Situationship AI

Backend for the chat-screenshot relationship analyzer.

Features:
  - Upload up to 10 screenshots per request
  - Screenshots analyzed in groups by Claude, a few groups at a time
  - Group analyses merged into one fixed-template report
  - Structured sections returned alongside the raw text

Usage:
  1. pip install -e .
  2. Create .env file with ANTHROPIC_API_KEY=your_key
  3. python app.py
  4. POST screenshots to http://localhost:3001/api/analyze
"""

import os
import sys
import logging
from typing import Any, Dict, Optional

import anthropic
from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge
from dotenv import load_dotenv

from situationship import (
    AnalysisFailure,
    EmptyResponseError,
    MODELS,
    RelationshipAnalyst,
    UploadError,
    load_upload,
    parse_analysis,
    run_analysis,
)

# Load environment variables from .env file
load_dotenv()

# Configuration - the API key is optional (users can provide their own per request)
ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY", "")
ANALYSIS_MODEL = os.environ.get("ANALYSIS_MODEL", "sonnet")
CHUNK_SIZE = int(os.environ.get("ANALYSIS_CHUNK_SIZE", 2))
MAX_CONCURRENT_CALLS = int(os.environ.get("ANALYSIS_MAX_CONCURRENT", 3))

# Upload limits
MAX_UPLOAD_FILES = int(os.environ.get("MAX_UPLOAD_FILES", 10))
MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", 5 * 1024 * 1024))
MAX_IMAGE_DIMENSION = int(os.environ.get("MAX_IMAGE_DIMENSION", 2000))

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s | %(levelname)-8s | %(funcName)-25s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
    handlers=[logging.StreamHandler(sys.stderr)]
)

logger = logging.getLogger(__name__)

if not ANTHROPIC_API_KEY:
    logger.info("ANTHROPIC_API_KEY not set. Requests must send X-Anthropic-Api-Key.")


# Application Initialization
app = Flask(__name__)

# Whole multipart body: every file at its limit plus form overhead
app.config['MAX_CONTENT_LENGTH'] = MAX_UPLOAD_FILES * MAX_UPLOAD_BYTES + 1024 * 1024

CORS(app, resources={r"/api/*": {"origins": "*"}})


def build_analyst(api_key: str, model_key: Optional[str] = None) -> RelationshipAnalyst:
    """Create a per-request analyst; its client lives for one event loop."""
    return RelationshipAnalyst(api_key=api_key, model=model_key or ANALYSIS_MODEL)


def get_request_api_key() -> str:
    """API key from the request header, falling back to the server key."""
    return request.headers.get('X-Anthropic-Api-Key') or ANTHROPIC_API_KEY


def format_error_message(error: BaseException) -> str:
    """Convert exceptions to user-friendly error messages."""
    if isinstance(error, AnalysisFailure):
        error = error.cause

    if isinstance(error, anthropic.AuthenticationError):
        return "API key is invalid. Check your ANTHROPIC_API_KEY."
    if isinstance(error, anthropic.PermissionDeniedError):
        return "API key lacks permission to use this model."
    if isinstance(error, anthropic.RateLimitError):
        return "Rate limit exceeded. Please wait a moment and try again."
    if isinstance(error, anthropic.APITimeoutError):
        return "Request timed out. Try again with fewer screenshots."
    if isinstance(error, anthropic.APIConnectionError):
        return "Could not reach the analysis service. Please try again."
    if isinstance(error, EmptyResponseError):
        return "The analysis came back empty. Please try again."

    error_str = str(error).lower()
    if "overloaded" in error_str:
        return "The analysis service is overloaded. Please try again shortly."
    elif "rate limit" in error_str or "quota" in error_str:
        return "Rate limit exceeded. Please wait a moment and try again."
    elif "timeout" in error_str or "timed out" in error_str:
        return "Request timed out. Try again with fewer screenshots."
    elif "image" in error_str and ("invalid" in error_str or "could not process" in error_str):
        return "One of the screenshots could not be processed. Try re-exporting it as PNG or JPEG."
    else:
        return f"Analysis failed: {str(error)}"


def failure_status(error: AnalysisFailure) -> int:
    """HTTP status for a failed analysis run."""
    if isinstance(error.cause, anthropic.AuthenticationError):
        return 401
    if isinstance(error.cause, anthropic.RateLimitError):
        return 429
    return 500


def error_response(status: int, error: str, details: Optional[str] = None):
    body: Dict[str, Any] = {"success": False, "error": error}
    if details:
        body["details"] = details
    return jsonify(body), status


# API Endpoints

@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "server_key_configured": bool(ANTHROPIC_API_KEY),
        "model": ANALYSIS_MODEL,
        "chunk_size": CHUNK_SIZE,
        "max_concurrent": MAX_CONCURRENT_CALLS,
        "max_files": MAX_UPLOAD_FILES,
    })


@app.route('/api/models', methods=['GET'])
def list_models():
    """List the models a request may select."""
    return jsonify({"models": MODELS, "default": ANALYSIS_MODEL})


@app.route('/api/analyze', methods=['POST'])
def analyze_screenshots():
    """
    Analyze uploaded chat screenshots.

    Request: multipart/form-data
        images: 1-10 image files
        model:  optional MODELS key

    Headers:
        X-Anthropic-Api-Key: optional, overrides the server key

    Returns:
    {
        "success": true,
        "analysis": "### Relationship Analysis ...",
        "sections": {"title": ..., "sections": [...], "tldr": ...},
        "metadata": {"images": 5, "groups": 3, "model": ..., "elapsed_seconds": ...}
    }
    """
    files = [f for f in request.files.getlist('images') if f]

    if not files:
        return error_response(400, "No images provided")

    if len(files) > MAX_UPLOAD_FILES:
        return error_response(400, f"Too many images: {len(files)} sent, maximum is {MAX_UPLOAD_FILES}")

    items = []
    for upload in files:
        try:
            items.append(load_upload(
                upload.read(),
                filename=upload.filename or "",
                max_bytes=MAX_UPLOAD_BYTES,
                max_dimension=MAX_IMAGE_DIMENSION,
            ))
        except UploadError as e:
            logger.warning(f"Rejected upload: {e}")
            return error_response(400, "Invalid image", str(e))

    api_key = get_request_api_key()
    if not api_key:
        return error_response(400, "Anthropic API key required")

    model_key = request.form.get('model') or ANALYSIS_MODEL
    logger.info(f"Received {len(items)} screenshot(s) for analysis (model={model_key})")

    try:
        analyst = build_analyst(api_key, model_key)
        result = run_analysis(
            items,
            analyst,
            chunk_size=CHUNK_SIZE,
            max_concurrent=MAX_CONCURRENT_CALLS,
        )
    except AnalysisFailure as e:
        logger.error(f"Error processing images: {e}")
        return error_response(failure_status(e), "Error processing images", format_error_message(e))

    return jsonify({
        "success": True,
        "analysis": result.analysis,
        "sections": parse_analysis(result.analysis).to_dict(),
        "metadata": {
            "images": result.image_count,
            "groups": result.group_count,
            "model": analyst.model,
            "elapsed_seconds": result.elapsed_seconds,
        },
    })


# Error Handlers

@app.errorhandler(RequestEntityTooLarge)
def handle_too_large(e):
    limit_mb = MAX_UPLOAD_BYTES // (1024 * 1024)
    return error_response(413, "Upload too large", f"Each image must be under {limit_mb} MB")


@app.errorhandler(HTTPException)
def handle_http_error(e):
    return error_response(e.code or 500, e.name, e.description)


@app.errorhandler(Exception)
def handle_unexpected_error(e):
    logger.exception(f"Unhandled error: {e}")
    return error_response(500, "Internal server error", str(e))


# Application Entry Point

if __name__ == '__main__':
    PORT = int(os.environ.get('PORT', 3001))
    DEBUG = os.environ.get('DEBUG', 'false').lower() in ('true', '1', 'yes')
    ENVIRONMENT = os.environ.get('ENVIRONMENT', 'development')

    # Print startup banner
    print()
    print("=" * 65)
    print("  SITUATIONSHIP AI")
    print("=" * 65)
    print()
    print(f"  Environment      : {ENVIRONMENT}")
    print(f"  Model            : {ANALYSIS_MODEL}")
    print(f"  Chunk size       : {CHUNK_SIZE}")
    print(f"  Max concurrent   : {MAX_CONCURRENT_CALLS}")
    print(f"  Anthropic Key    : {'Set' if ANTHROPIC_API_KEY else 'Not set (users provide their own)'}")
    print()
    print("=" * 65)
    print(f"  Starting server at: http://localhost:{PORT}")
    print(f"  Debug mode       : {'ON' if DEBUG else 'OFF'}")
    print("  Press Ctrl+C to stop")
    print("=" * 65)
    print()

    app.run(
        host='0.0.0.0',
        port=PORT,
        debug=DEBUG,
        use_reloader=DEBUG,
        threaded=True
    )
