"""
API Endpoints
Routes for uploading a UV layout, editing annotations and generating textures
"""

import io
import time
from flask import Blueprint, request, jsonify, send_file, current_app
from flask_cors import cross_origin

from painter import (
    PointerPosition, Surface, PainterSession,
    BusyError, GenerationError, ValidationError
)
from .models import PointerRequest, create_error_response, create_success_response
from .utils import (
    validate_image_file, image_bytes_to_data_uri, download_image_from_url,
    data_uri_to_png_bytes, format_processing_time, DEFAULT_MAX_UPLOAD_BYTES,
    RESULT_FILENAME
)

SESSION_EXTENSION = 'texture_painter'

# Create API blueprint
api_bp = Blueprint('api', __name__, url_prefix='/api/v1')


def get_session() -> PainterSession:
    """The single painter session owned by the running app"""
    return current_app.extensions[SESSION_EXTENSION]


def _json_body() -> dict:
    data = request.get_json(silent=True)
    # Arrays and scalars are valid JSON but carry no named fields
    return data if isinstance(data, dict) else {}


def _state_response(message: str, **fields):
    session = get_session()
    return jsonify(create_success_response(
        message=message,
        state=session.snapshot(include_images=False),
        **fields
    ))


def _parse_pointer(data: dict):
    pointer = PointerRequest.from_json(data)
    surface = Surface(left=pointer.left, top=pointer.top, width=pointer.width, height=pointer.height)
    return PointerPosition(pointer.x, pointer.y), surface


@api_bp.route('/health', methods=['GET'])
@cross_origin()
def health_check():
    """
    Health check endpoint
    """
    session = get_session()
    return jsonify({
        'status': 'healthy',
        'timestamp': time.time(),
        'services': {
            'gemini_client': session.pipeline.client is not None,
            'busy': session.is_busy
        }
    })


@api_bp.route('/state', methods=['GET'])
@cross_origin()
def get_state():
    """Full session snapshot, images included"""
    return jsonify(get_session().snapshot(include_images=True))


@api_bp.route('/upload', methods=['POST'])
@cross_origin()
def upload_layout():
    """
    Upload a UV layout and auto-detect body parts

    Request parameters:
    - image: Image file (multipart)
    - image_url: URL of the image (form or JSON), instead of the file
    """
    start_time = time.time()
    max_bytes = current_app.config.get('MAX_UPLOAD_BYTES', DEFAULT_MAX_UPLOAD_BYTES)

    image_file = request.files.get('image')
    image_url = (request.form.get('image_url') or _json_body().get('image_url') or '').strip()

    if not image_file and not image_url:
        return jsonify(create_error_response('VALIDATION_001', 'Either image file or image_url is required')), 400

    if image_file and image_url:
        return jsonify(create_error_response('VALIDATION_001', 'Provide either image file or image_url, not both')), 400

    if image_file:
        is_valid, error_msg = validate_image_file(image_file, max_bytes)
        if not is_valid:
            code = 'VALIDATION_003' if error_msg.startswith('File too large') else 'VALIDATION_002'
            return jsonify(create_error_response(code, error_msg)), 400
        raw = image_file.read()
        source_name = image_file.filename
    else:
        print(f"📥 Downloading layout from URL: {image_url}")
        raw = download_image_from_url(image_url, max_bytes)
        if not raw:
            return jsonify(create_error_response('VALIDATION_002', 'Failed to download image from URL. Please check the URL and try again.')), 400
        source_name = image_url

    try:
        data_uri, image_info = image_bytes_to_data_uri(raw)
    except ValueError as e:
        return jsonify(create_error_response('VALIDATION_002', str(e))), 400

    print(f"📸 Loaded layout {source_name}: {image_info['width']}x{image_info['height']}, format: {image_info['format']}")

    try:
        detected = get_session().upload(data_uri)
    except BusyError as e:
        return jsonify(create_error_response('BUSY_001', e.message)), 409

    return _state_response(
        message=f"Layout uploaded, {detected} body parts detected",
        processing_time=format_processing_time(start_time, time.time()),
        metadata={'image_info': image_info, 'detected_parts': detected}
    )


# -- canvas gestures --

@api_bp.route('/canvas/click', methods=['POST'])
@cross_origin()
def canvas_click():
    """Click on the layout surface: opens a pending annotation"""
    try:
        pointer, surface = _parse_pointer(_json_body())
    except ValueError as e:
        return jsonify(create_error_response('VALIDATION_004', str(e))), 400

    opened = get_session().canvas.surface_click(pointer, surface)
    return _state_response('Pending annotation opened' if opened else 'Click ignored', opened=opened)


@api_bp.route('/canvas/pending/label', methods=['POST'])
@cross_origin()
def canvas_pending_label():
    """Record the label typed so far for the pending annotation"""
    label = _json_body().get('label', '')
    if not isinstance(label, str):
        return jsonify(create_error_response('VALIDATION_004', 'label must be a string')), 400
    get_session().canvas.type_label(label)
    return _state_response('Label updated')


@api_bp.route('/canvas/pending/commit', methods=['POST'])
@cross_origin()
def canvas_pending_commit():
    """Commit the pending annotation; blank labels are ignored"""
    label = _json_body().get('label')
    if label is not None and not isinstance(label, str):
        return jsonify(create_error_response('VALIDATION_004', 'label must be a string')), 400

    annotation = get_session().canvas.commit_pending(label)
    return _state_response(
        'Annotation added' if annotation else 'Nothing to commit',
        annotation=annotation.to_dict() if annotation else None
    )


@api_bp.route('/canvas/pending/cancel', methods=['POST'])
@cross_origin()
def canvas_pending_cancel():
    get_session().canvas.cancel_pending()
    return _state_response('Pending annotation cancelled')


@api_bp.route('/canvas/drag/start', methods=['POST'])
@cross_origin()
def canvas_drag_start():
    """Pointer down on an annotation pin"""
    annotation_id = _json_body().get('annotation_id')
    if not annotation_id:
        return jsonify(create_error_response('VALIDATION_001', 'annotation_id is required')), 400

    started = get_session().canvas.begin_drag(annotation_id)
    return _state_response('Drag started' if started else 'Annotation not found', dragging=started)


@api_bp.route('/canvas/drag/move', methods=['POST'])
@cross_origin()
def canvas_drag_move():
    """Pointer move during a drag; coordinates are clamped to the image"""
    try:
        pointer, surface = _parse_pointer(_json_body())
    except ValueError as e:
        return jsonify(create_error_response('VALIDATION_004', str(e))), 400

    moved = get_session().canvas.update_drag(pointer, surface)
    return _state_response('Annotation moved' if moved else 'No drag in progress', moved=moved)


@api_bp.route('/canvas/drag/end', methods=['POST'])
@cross_origin()
def canvas_drag_end():
    """Pointer up anywhere ends the drag"""
    get_session().canvas.end_drag()
    return _state_response('Drag ended')


@api_bp.route('/annotations/<annotation_id>', methods=['DELETE'])
@cross_origin()
def delete_annotation(annotation_id):
    removed = get_session().canvas.remove_annotation(annotation_id)
    return _state_response('Annotation removed' if removed else 'Annotation not found', removed=removed)


@api_bp.route('/annotations', methods=['DELETE'])
@cross_origin()
def clear_annotations():
    get_session().canvas.clear_all()
    return _state_response('All annotations cleared')


# -- generation --

@api_bp.route('/generate', methods=['POST'])
@cross_origin()
def generate_texture():
    """
    Generate a texture from the layout, annotations and style

    Request parameters:
    - style: Description of the desired texture style
    """
    start_time = time.time()
    data = _json_body()
    style = data.get('style', request.form.get('style', ''))
    if not isinstance(style, str):
        return jsonify(create_error_response('VALIDATION_004', 'style must be a string')), 400

    print(f"📋 Generate request - style: {style[:50]}...")
    session = get_session()
    try:
        result = session.generate(style)
    except BusyError as e:
        return jsonify(create_error_response('BUSY_001', e.message)), 409
    except ValidationError as e:
        return jsonify(create_error_response('VALIDATION_005', e.message)), 400
    except GenerationError as e:
        return jsonify(create_error_response('PROCESSING_001', e.message)), 502

    return jsonify(create_success_response(
        message="Texture generated successfully",
        processing_time=format_processing_time(start_time, time.time()),
        metadata={'style_prompt': style, 'annotations': session.annotations.to_list()},
        result_image=result,
        state=session.snapshot(include_images=False)
    ))


@api_bp.route('/edit', methods=['POST'])
@cross_origin()
def edit_texture():
    """
    Apply a follow-up edit to the generated texture

    Request parameters:
    - instruction: What to change
    """
    start_time = time.time()
    data = _json_body()
    instruction = data.get('instruction', request.form.get('instruction', ''))
    if not isinstance(instruction, str):
        return jsonify(create_error_response('VALIDATION_004', 'instruction must be a string')), 400

    session = get_session()
    try:
        result = session.edit(instruction)
    except BusyError as e:
        return jsonify(create_error_response('BUSY_001', e.message)), 409
    except ValidationError as e:
        return jsonify(create_error_response('VALIDATION_005', e.message)), 400
    except GenerationError as e:
        return jsonify(create_error_response('PROCESSING_002', e.message)), 502

    return jsonify(create_success_response(
        message="Texture edited successfully",
        processing_time=format_processing_time(start_time, time.time()),
        metadata={'instruction': instruction},
        result_image=result,
        state=session.snapshot(include_images=False)
    ))


@api_bp.route('/download', methods=['GET'])
@cross_origin()
def download_result():
    """
    Download the current texture as PNG
    """
    result_image = get_session().generation.result_image
    if not result_image:
        return jsonify(create_error_response('FILE_001', 'No generated texture yet')), 404

    try:
        png_bytes = data_uri_to_png_bytes(result_image)
    except Exception as e:
        print(f"❌ Could not export texture: {e}")
        return jsonify(create_error_response('SERVICE_003', str(e))), 500

    return send_file(
        io.BytesIO(png_bytes),
        mimetype='image/png',
        as_attachment=True,
        download_name=RESULT_FILENAME
    )
