import unittest

from painter.annotations import Annotation
from painter.prompts import (
    build_annotation_block, build_edit_prompt, build_generation_prompt, is_face_label
)


class TestGenerationPrompt(unittest.TestCase):
    def test_style_embedded_verbatim(self):
        prompt = build_generation_prompt("cyberpunk armor, neon {blue}", [])
        self.assertIn("STYLE DESCRIPTION: cyberpunk armor, neon {blue}", prompt)
        self.assertNotIn("COORDINATES OF BODY PARTS", prompt)

    def test_annotation_directives(self):
        annotations = [
            Annotation(x=82.5, y=19.6, label="Face"),
            Annotation(x=50.2, y=50, label="Torso (Front)"),
        ]
        block = build_annotation_block(annotations)
        self.assertIn('- At 83% x, 20% y: "Face".', block)
        self.assertIn('- At 50% x, 50% y: "Torso (Front)".', block)

    def test_face_focus_only_with_face_label(self):
        with_face = build_generation_prompt("knight", [Annotation(x=80, y=20, label="my HEAD")])
        without_face = build_generation_prompt("knight", [Annotation(x=50, y=50, label="Torso")])
        self.assertIn('Focus on the area marked "Face" or "Head".', with_face)
        self.assertIn("Locate the Face area.", without_face)
        self.assertIn("DO NOT DRAW A HELMET OVER THE FACE", without_face)

    def test_face_labels(self):
        self.assertTrue(is_face_label("Face"))
        self.assertTrue(is_face_label("Forehead"))
        self.assertTrue(is_face_label("Лицо"))
        self.assertTrue(is_face_label("ГОЛОВА"))
        self.assertFalse(is_face_label("Left Arm"))


class TestEditPrompt(unittest.TestCase):
    def test_instruction_and_layout_rule(self):
        prompt = build_edit_prompt("make it red")
        self.assertTrue(prompt.startswith("EDIT INSTRUCTION: make it red"))
        self.assertIn("KEEP the exact UV layout structure", prompt)


if __name__ == "__main__":
    unittest.main()
