"""
API Module for UV Texture Painter
Provides REST API endpoints for layout upload, annotation editing and texture generation
"""

from .endpoints import api_bp, get_session, SESSION_EXTENSION
from .models import create_error_response, create_success_response

__all__ = ['api_bp', 'get_session', 'SESSION_EXTENSION', 'create_error_response', 'create_success_response']
