#!/usr/bin/env python3
"""
Web Application for UV Texture Painting using Google Gemini API
Upload a UV layout, mark body parts, describe a style and get a texture.
"""

import os
from flask import Flask, jsonify
from flask_cors import CORS
from google import genai
from dotenv import load_dotenv

# Load environment variables before importing modules that rely on them
load_dotenv()

from api import api_bp, SESSION_EXTENSION
from painter import PainterSession, TexturePipeline


def setup_client():
    """Initialize the Gemini client"""
    try:
        api_key = os.getenv('GEMINI_API_KEY') or os.getenv('GOOGLE_API_KEY')
        if not api_key:
            raise ValueError("GEMINI_API_KEY not found in environment variables")

        client = genai.Client(api_key=api_key)
        return client
    except Exception as e:
        print(f"Error initializing Gemini client: {e}")
        return None


def create_app(pipeline=None):
    """
    Build the Flask application

    Args:
        pipeline: Object exposing detect/generate/edit; defaults to a
            TexturePipeline over the Gemini client from the environment

    Returns:
        Flask: Configured application with one painter session
    """
    app = Flask(__name__)
    max_upload_mb = int(os.getenv('MAX_UPLOAD_MB', '16'))
    app.config['MAX_UPLOAD_BYTES'] = max_upload_mb * 1024 * 1024
    # Leave room for multipart overhead on top of the image itself
    app.config['MAX_CONTENT_LENGTH'] = (max_upload_mb + 1) * 1024 * 1024

    # Configure CORS
    CORS(app, resources={
        r"/api/*": {
            "origins": "*",
            "methods": ["GET", "POST", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type"]
        }
    })

    if pipeline is None:
        pipeline = TexturePipeline(setup_client())
    app.extensions[SESSION_EXTENSION] = PainterSession(pipeline)

    app.register_blueprint(api_bp)

    @app.route('/')
    def index():
        """Service description"""
        return jsonify({
            'service': 'UV Texture Painter',
            'endpoints': sorted(
                str(rule) for rule in app.url_map.iter_rules()
                if str(rule).startswith('/api/')
            )
        })

    @app.route('/health')
    def health_check():
        """Health check endpoint"""
        return jsonify({
            'status': 'healthy',
            'client_initialized': pipeline.client is not None
        })

    return app


if __name__ == '__main__':
    app = create_app()
    if not app.extensions[SESSION_EXTENSION].pipeline.client:
        print("Warning: Gemini client not initialized. Please check your API key.")

    app.run(
        debug=os.getenv('FLASK_DEBUG', 'false').lower() == 'true',
        host=os.getenv('HOST', '0.0.0.0'),
        port=int(os.getenv('PORT', '5000'))
    )
