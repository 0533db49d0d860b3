"""
Prompt builders for UV part detection, texture generation and texture edits.
"""

import math
from typing import Iterable

from .annotations import Annotation

# Label fragments that mark the face area (English and Russian)
FACE_KEYWORDS = ("face", "head", "лицо", "голова")

DETECTION_PROMPT = """Analyze this Roblox character UV layout image.
Identify the center point of the main body parts: Face (or Head), Torso (Front), Torso (Back), Left Arm, Right Arm, Left Leg, Right Leg.

Return a JSON array of objects with 'label', 'x', and 'y' properties.
x and y must be coordinates as a percentage (0-100) of the image width and height.

Example: [{"label": "Face", "x": 82, "y": 20}, {"label": "Torso", "x": 50, "y": 50}]"""

EDIT_PROMPT_TEMPLATE = """EDIT INSTRUCTION: {instruction}

CONTEXT: This is a Roblox character texture (UV Map).
RULES:
1. Apply the edit specifically to the requested parts or globally as asked.
2. KEEP the exact UV layout structure. Do not move body parts.
3. Maintain the style consistency.
4. Ensure the output is high quality and ready for game use.

Do not add any conversational text, just return the image."""


def _whole_percent(value: float) -> int:
    # half-up, so 82.5 -> 83
    return int(math.floor(value + 0.5))


def is_face_label(label: str) -> bool:
    lowered = label.lower()
    return any(keyword in lowered for keyword in FACE_KEYWORDS)


def build_annotation_block(annotations: Iterable[Annotation]) -> str:
    """One directive per annotation binding its label to its coordinates."""
    lines = [
        f'- At {_whole_percent(a.x)}% x, {_whole_percent(a.y)}% y: "{a.label}".'
        for a in annotations
    ]
    if not lines:
        return ""
    return "COORDINATES OF BODY PARTS (Center points):\n" + "\n".join(lines) + "\n"


def build_generation_prompt(style_prompt: str, annotations: Iterable[Annotation]) -> str:
    """
    Build the texture generation instruction

    Args:
        style_prompt: User's style description, embedded verbatim
        annotations: Marked body parts

    Returns:
        str: Full instruction for the image model
    """
    annotations = list(annotations)
    annotation_text = build_annotation_block(annotations)
    face_defined = any(is_face_label(a.label) for a in annotations)

    if face_defined:
        face_focus = 'Focus on the area marked "Face" or "Head".'
    else:
        face_focus = 'Locate the Face area.'

    return f"""You are a professional 3D Texture Artist for Roblox.

INPUT: A UV Layout wireframe image.
TASK: Create a FINAL PRODUCTION TEXTURE.

STYLE DESCRIPTION: {style_prompt}

{annotation_text}
CRITICAL RENDERING RULES (MUST FOLLOW):
1. **OBLITERATE THE WIREFRAME**: The input image contains black layout lines. You must PAINT COMPLETELY OVER THEM. The final output must be a solid, painted texture map. If I see the original grid lines in the output, it is a failure.
2. **SOLID FILL**: Fill the texture islands with opaque materials (metal, cloth, skin, etc.) based on the style. No transparency inside the body parts.
3. **FACE**: {face_focus} Paint a human/character face (eyes, mouth) suitable for the style. **DO NOT DRAW A HELMET OVER THE FACE**. The helmet is a separate 3D attachment. The face must be visible.
4. **LAYOUT ACCURACY**: Keep the painted areas exactly in the same positions as the input islands, but replace the wireframe pixels with texture pixels.
5. **BACKGROUND**: The space between the body parts should be transparent or solid black/dark.

Think: "I see the wireframe guide. I will paint a {style_prompt} texture on top of it, covering every single black line with color. For the face, I will draw a face, not a mask.\""""


def build_edit_prompt(instruction: str) -> str:
    return EDIT_PROMPT_TEMPLATE.format(instruction=instruction)
