"""
Texture generation pipeline using Google Gemini API.

Three independent calls, each a single request/response round trip:
detect (vision, structured JSON), generate and edit (image output).
There is no retry logic; failures surface directly to the caller,
except detection which degrades to an empty result.
"""

import base64
import json
import os
import time
import traceback
from typing import Any, Iterable, List, Optional

from google import genai
from google.genai import types

from .annotations import Annotation, auto_annotation_id, clamp_percent
from .errors import DetectionError, EditError, GenerationError
from .images import decode_data_uri, encode_data_uri, DEFAULT_MIME_TYPE
from .prompts import DETECTION_PROMPT, build_edit_prompt, build_generation_prompt

GENERATION_TEMPERATURE = 0.65

DETECTION_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            'label': types.Schema(type=types.Type.STRING),
            'x': types.Schema(type=types.Type.NUMBER, description='X coordinate percentage 0-100'),
            'y': types.Schema(type=types.Type.NUMBER, description='Y coordinate percentage 0-100'),
        },
        required=['label', 'x', 'y'],
    ),
)


def get_gemini_detect_model() -> str:
    return os.getenv('GEMINI_DETECT_MODEL', 'gemini-2.5-flash')


def get_gemini_image_model() -> str:
    """
    Returns the Gemini model id used for texture generation/editing.

    Override via GEMINI_IMAGE_MODEL when Google retires a model id.
    """
    return os.getenv('GEMINI_IMAGE_MODEL', 'gemini-2.5-flash-image')


def _iter_gemini_response_parts(response):
    """
    Normalize response parts across google-genai SDK versions.

    Some versions expose `response.parts`; others expose `response.candidates[0].content.parts`.
    """
    if response is None:
        return []
    parts = getattr(response, 'parts', None)
    if parts is not None:
        return parts
    candidates = getattr(response, 'candidates', None)
    if candidates:
        content = getattr(candidates[0], 'content', None)
        if content is not None:
            return getattr(content, 'parts', []) or []
    return []


def extract_first_image(response) -> Optional[str]:
    """Return the first inline image part of a response as a data URI, or None."""
    for part in _iter_gemini_response_parts(response):
        text = getattr(part, 'text', None)
        if text:
            print(f"📝 Generated text: {text[:200]}")
        inline = getattr(part, 'inline_data', None)
        if inline is None or not inline.data:
            continue
        data = inline.data
        # REST transports may hand back the payload still base64-encoded
        if isinstance(data, str):
            data = base64.b64decode(data)
        return encode_data_uri(data, getattr(inline, 'mime_type', None) or DEFAULT_MIME_TYPE)
    return None


def parse_detected_parts(raw_text: Optional[str], timestamp_ms: Optional[int] = None) -> List[Annotation]:
    """
    Parse the structured detection response into annotations

    Args:
        raw_text: JSON text returned by the model
        timestamp_ms: Timestamp used for the synthetic ids (defaults to now)

    Returns:
        list: Annotations with fresh ids

    Raises:
        DetectionError: If the text is empty or does not match the schema
    """
    if not raw_text or not raw_text.strip():
        raise DetectionError("Empty detection response")
    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as e:
        raise DetectionError(f"Detection response is not JSON: {e}") from e
    if not isinstance(parsed, list):
        raise DetectionError("Detection response is not a JSON array")

    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)

    annotations = []
    for index, item in enumerate(parsed):
        if not isinstance(item, dict):
            raise DetectionError(f"Item {index} is not an object")
        label, x, y = item.get('label'), item.get('x'), item.get('y')
        if not isinstance(label, str) or not label.strip():
            raise DetectionError(f"Item {index} has no label")
        if not _is_number(x) or not _is_number(y):
            raise DetectionError(f"Item {index} has non-numeric coordinates")
        annotations.append(Annotation(
            id=auto_annotation_id(index, timestamp_ms),
            label=label.strip(),
            x=clamp_percent(x),
            y=clamp_percent(y),
        ))
    return annotations


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class TexturePipeline:
    """
    Detect / generate / edit calls against Gemini

    Args:
        client: genai.Client instance, or None when no API key is configured
        detect_model: Vision model id for part detection
        image_model: Image model id for generation and edits
    """

    def __init__(self, client: Optional[genai.Client], detect_model: str = None, image_model: str = None):
        self.client = client
        self.detect_model = detect_model or get_gemini_detect_model()
        self.image_model = image_model or get_gemini_image_model()

    @staticmethod
    def _image_part(image: str) -> types.Part:
        # The data URI prefix is dropped; only the raw bytes travel
        mime_type, data = decode_data_uri(image)
        return types.Part.from_bytes(data=data, mime_type=mime_type)

    def detect(self, image: str) -> List[Annotation]:
        """Best-effort part detection. Never raises; failures yield []."""
        try:
            return self._detect(image)
        except Exception as e:
            print(f"⚠️ Detection failed, continuing without auto-detected parts: {e}")
            return []

    def _detect(self, image: str) -> List[Annotation]:
        if not self.client:
            raise DetectionError("Gemini client not initialized")

        print(f"🔍 Detecting UV body parts with {self.detect_model}...")
        response = self.client.models.generate_content(
            model=self.detect_model,
            contents=[DETECTION_PROMPT, self._image_part(image)],
            config=types.GenerateContentConfig(
                response_mime_type='application/json',
                response_schema=DETECTION_SCHEMA,
            ),
        )
        annotations = parse_detected_parts(getattr(response, 'text', None))
        print(f"✅ Detected {len(annotations)} body parts")
        return annotations

    def generate(self, image: str, style_prompt: str, annotations: Iterable[Annotation]) -> str:
        """
        Generate a texture from the UV layout

        Args:
            image: Layout image as a data URI
            style_prompt: Style description
            annotations: Marked body parts

        Returns:
            str: Generated texture as a data URI

        Raises:
            GenerationError: If the call fails or returns no image
        """
        if not self.client:
            raise GenerationError("Gemini client not initialized")

        full_prompt = build_generation_prompt(style_prompt, annotations)
        print(f"🎨 Generating texture with {self.image_model}...")
        print(f"   Style: {style_prompt[:100]}...")

        try:
            image_part = self._image_part(image)
            response = self.client.models.generate_content(
                model=self.image_model,
                contents=[full_prompt, image_part],
                config=types.GenerateContentConfig(temperature=GENERATION_TEMPERATURE),
            )
        except Exception as e:
            print(f"❌ Gemini API Error: {e}")
            print(f"   Traceback: {traceback.format_exc()}")
            raise GenerationError(str(e) or "Failed to generate texture") from e

        result = extract_first_image(response)
        if result is None:
            print("❌ No image data received from Gemini")
            raise GenerationError("No image data received from Gemini.")

        print("✅ Texture generated successfully")
        return result

    def edit(self, image: str, instruction: str) -> str:
        """
        Apply a follow-up instruction to a generated texture

        Raises:
            EditError: If the call fails or returns no image
        """
        if not self.client:
            raise EditError("Gemini client not initialized")

        print(f"✏️ Editing texture: {instruction[:100]}")
        try:
            image_part = self._image_part(image)
            response = self.client.models.generate_content(
                model=self.image_model,
                contents=[build_edit_prompt(instruction), image_part],
            )
        except Exception as e:
            print(f"❌ Gemini Edit Error: {e}")
            print(f"   Traceback: {traceback.format_exc()}")
            raise EditError(str(e) or "Failed to edit texture") from e

        result = extract_first_image(response)
        if result is None:
            print("❌ No edited image data received")
            raise EditError("No edited image data received.")

        print("✅ Texture edited successfully")
        return result
