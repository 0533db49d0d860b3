"""
API Data Models
Defines request/response models for API endpoints
"""

import math
from dataclasses import dataclass
from typing import Dict, Any
from datetime import datetime, timezone


@dataclass
class PointerRequest:
    """Pointer event forwarded by the canvas: client position plus surface rect"""
    x: float
    y: float
    left: float
    top: float
    width: float
    height: float

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'PointerRequest':
        """
        Parse {x, y, surface: {left, top, width, height}}

        Raises:
            ValueError: If a field is missing or not a number
        """
        if not isinstance(data, dict):
            raise ValueError('Expected a JSON object')
        surface = data.get('surface')
        if not isinstance(surface, dict):
            raise ValueError('surface is required')
        try:
            return cls(
                x=_number(data['x']),
                y=_number(data['y']),
                left=_number(surface.get('left', 0)),
                top=_number(surface.get('top', 0)),
                width=_number(surface['width']),
                height=_number(surface['height']),
            )
        except KeyError as e:
            raise ValueError(f'{e.args[0]} is required') from e


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValueError(f'Expected a number, got {value!r}')
    return float(value)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


# Error codes for different types of failures
ERROR_CODES = {
    'VALIDATION_001': 'Missing required parameter',
    'VALIDATION_002': 'Invalid file type',
    'VALIDATION_003': 'File too large',
    'VALIDATION_004': 'Invalid parameter value',
    'VALIDATION_005': 'Request not allowed in current state',
    'BUSY_001': 'Another request is still in progress',
    'PROCESSING_001': 'Texture generation failed',
    'PROCESSING_002': 'Texture edit failed',
    'SERVICE_003': 'Internal processing error',
    'FILE_001': 'File not found',
}


def create_error_response(error_code: str, details: str = None) -> Dict[str, Any]:
    """
    Create standardized error response

    Args:
        error_code: Error code from ERROR_CODES
        details: Additional error details

    Returns:
        dict: Error response dictionary
    """
    return {
        'success': False,
        'error': ERROR_CODES.get(error_code, 'Unknown error'),
        'error_code': error_code,
        'details': details,
        'timestamp': _utc_timestamp()
    }


def create_success_response(message: str, processing_time: str = None,
                            metadata: Dict[str, Any] = None, **fields) -> Dict[str, Any]:
    """
    Create standardized success response

    Args:
        message: Success message
        processing_time: Time taken for processing
        metadata: Additional metadata
        **fields: Extra top-level fields (state, result_image, ...)

    Returns:
        dict: Success response dictionary
    """
    response = {
        'success': True,
        'message': message,
        'timestamp': _utc_timestamp()
    }

    if processing_time:
        response['processing_time'] = processing_time
    if metadata:
        response['metadata'] = metadata
    response.update(fields)

    return response
