import io
import unittest

from PIL import Image

from app import create_app
from painter.annotations import Annotation
from painter.errors import EditError, GenerationError
from painter.images import encode_data_uri
from painter.state import GenerationState

SURFACE = {"left": 0, "top": 0, "width": 400, "height": 200}


def png_bytes(size=(8, 4), color=(255, 0, 0)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, "PNG")
    return buffer.getvalue()


class FakePipeline:
    """Stands in for TexturePipeline without touching the network"""

    def __init__(self):
        self.client = object()
        self.detected = [Annotation(id="auto-1-0", x=80, y=20, label="Face")]
        self.result = encode_data_uri(png_bytes(color=(0, 0, 255)))
        self.generate_error = None
        self.edit_error = None
        self.calls = []

    def detect(self, image):
        self.calls.append(("detect", image))
        return list(self.detected)

    def generate(self, image, style_prompt, annotations):
        self.calls.append(("generate", style_prompt, [a.label for a in annotations]))
        if self.generate_error:
            raise self.generate_error
        return self.result

    def edit(self, image, instruction):
        self.calls.append(("edit", instruction))
        if self.edit_error:
            raise self.edit_error
        return self.result


class TestEndpoints(unittest.TestCase):
    def setUp(self):
        self.pipeline = FakePipeline()
        self.app = create_app(pipeline=self.pipeline)
        self.app.config["TESTING"] = True
        self.client = self.app.test_client()

    def upload(self, data=None, filename="layout.png"):
        data = png_bytes() if data is None else data
        return self.client.post(
            "/api/v1/upload",
            data={"image": (io.BytesIO(data), filename)},
            content_type="multipart/form-data",
        )

    def test_health(self):
        response = self.client.get("/api/v1/health")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()["services"]["gemini_client"])

        response = self.client.get("/health")
        self.assertTrue(response.get_json()["client_initialized"])

    def test_index_lists_endpoints(self):
        endpoints = self.client.get("/").get_json()["endpoints"]
        self.assertIn("/api/v1/generate", endpoints)
        self.assertIn("/api/v1/download", endpoints)

    def test_upload_detects_parts(self):
        response = self.upload()
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["metadata"]["detected_parts"], 1)
        self.assertEqual(body["metadata"]["image_info"]["width"], 8)
        self.assertTrue(body["state"]["has_image"])
        self.assertEqual(body["state"]["annotations"][0]["label"], "Face")
        self.assertTrue(self.pipeline.calls[0][1].startswith("data:image/png;base64,"))

    def test_upload_requires_image(self):
        response = self.client.post("/api/v1/upload", data={})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error_code"], "VALIDATION_001")

    def test_upload_rejects_bad_files(self):
        response = self.upload(data=b"not an image", filename="layout.png")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error_code"], "VALIDATION_002")

        response = self.upload(filename="layout.txt")
        self.assertEqual(response.status_code, 400)

    def test_upload_while_busy(self):
        self.upload()
        self.app.extensions["texture_painter"].generation = GenerationState(is_loading=True)
        response = self.upload()
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error_code"], "BUSY_001")

    def test_click_label_commit(self):
        self.upload()
        response = self.client.post("/api/v1/canvas/click", json={"x": 100, "y": 50, "surface": SURFACE})
        body = response.get_json()
        self.assertTrue(body["opened"])
        self.assertEqual(body["state"]["canvas"]["pending"], {"x": 25.0, "y": 25.0, "label": ""})

        self.client.post("/api/v1/canvas/pending/label", json={"label": "Torso"})
        body = self.client.post("/api/v1/canvas/pending/commit", json={}).get_json()
        self.assertEqual(body["annotation"]["label"], "Torso")
        self.assertEqual(len(body["state"]["annotations"]), 2)
        self.assertIsNone(body["state"]["canvas"]["pending"])

    def test_click_before_upload_is_ignored(self):
        body = self.client.post("/api/v1/canvas/click", json={"x": 10, "y": 10, "surface": SURFACE}).get_json()
        self.assertFalse(body["opened"])

    def test_click_rejects_bad_pointer(self):
        self.upload()
        response = self.client.post("/api/v1/canvas/click", json={"x": "left", "y": 10, "surface": SURFACE})
        self.assertEqual(response.status_code, 400)
        response = self.client.post(
            "/api/v1/canvas/click",
            json={"x": 10, "y": 10, "surface": {"width": 0, "height": 100}},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error_code"], "VALIDATION_004")

    def test_click_outside_image_never_commits(self):
        self.upload()
        body = self.client.post("/api/v1/canvas/click", json={"x": 900, "y": -100, "surface": SURFACE}).get_json()
        self.assertFalse(body["opened"])
        self.assertIsNone(body["state"]["canvas"]["pending"])

        body = self.client.post("/api/v1/canvas/pending/commit", json={"label": "Arm"}).get_json()
        self.assertIsNone(body["annotation"])
        self.assertEqual([a["label"] for a in body["state"]["annotations"]], ["Face"])

    def test_click_rejects_non_finite_numbers(self):
        self.upload()
        bodies = [
            '{"x": NaN, "y": 10, "surface": {"width": 400, "height": 200}}',
            '{"x": 10, "y": 10, "surface": {"width": Infinity, "height": 200}}',
        ]
        for raw in bodies:
            with self.subTest(raw=raw):
                response = self.client.post("/api/v1/canvas/click", data=raw, content_type="application/json")
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.get_json()["error_code"], "VALIDATION_004")
        self.assertIsNone(self.client.get("/api/v1/state").get_json()["canvas"]["pending"])

    def test_non_object_json_bodies(self):
        response = self.client.post("/api/v1/generate", json=["knight"])
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error_code"], "VALIDATION_005")

        self.upload()
        response = self.client.post("/api/v1/canvas/pending/commit", json="Arm")
        self.assertEqual(response.status_code, 200)
        response = self.client.post("/api/v1/canvas/drag/start", json=[1, 2])
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error_code"], "VALIDATION_001")

    def test_blank_commit_and_cancel(self):
        self.upload()
        self.client.post("/api/v1/canvas/click", json={"x": 100, "y": 50, "surface": SURFACE})
        body = self.client.post("/api/v1/canvas/pending/commit", json={"label": "  "}).get_json()
        self.assertIsNone(body["annotation"])
        self.assertEqual(len(body["state"]["annotations"]), 1)

        body = self.client.post("/api/v1/canvas/pending/cancel").get_json()
        self.assertEqual(body["state"]["canvas"]["mode"], "idle")

    def test_drag_flow(self):
        self.upload()
        body = self.client.post("/api/v1/canvas/drag/start", json={"annotation_id": "auto-1-0"}).get_json()
        self.assertTrue(body["dragging"])

        body = self.client.post("/api/v1/canvas/drag/move", json={"x": 900, "y": 100, "surface": SURFACE}).get_json()
        self.assertTrue(body["moved"])
        self.assertEqual(body["state"]["annotations"][0]["x"], 100.0)
        self.assertEqual(body["state"]["annotations"][0]["y"], 50.0)

        self.client.post("/api/v1/canvas/drag/end")
        body = self.client.post("/api/v1/canvas/drag/move", json={"x": 0, "y": 0, "surface": SURFACE}).get_json()
        self.assertFalse(body["moved"])
        self.assertEqual(body["state"]["annotations"][0]["x"], 100.0)

    def test_delete_and_clear(self):
        self.upload()
        body = self.client.delete("/api/v1/annotations/missing").get_json()
        self.assertFalse(body["removed"])
        body = self.client.delete("/api/v1/annotations/auto-1-0").get_json()
        self.assertTrue(body["removed"])
        self.assertEqual(body["state"]["annotations"], [])

        self.upload()
        body = self.client.delete("/api/v1/annotations").get_json()
        self.assertEqual(body["state"]["annotations"], [])

    def test_generate_and_download(self):
        self.upload()
        response = self.client.post("/api/v1/generate", json={"style": "cyberpunk armor"})
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["result_image"], self.pipeline.result)
        self.assertIs(body["state"]["generation"]["result_image"], True)
        self.assertIn(("generate", "cyberpunk armor", ["Face"]), self.pipeline.calls)

        response = self.client.get("/api/v1/download")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.mimetype, "image/png")
        self.assertIn("roblox_skin_ai.png", response.headers["Content-Disposition"])
        self.assertEqual(response.data, png_bytes(color=(0, 0, 255)))

    def test_generate_blank_style(self):
        self.upload()
        response = self.client.post("/api/v1/generate", json={"style": "   "})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error_code"], "VALIDATION_005")
        self.assertFalse(any(call[0] == "generate" for call in self.pipeline.calls))

    def test_generate_service_failure(self):
        self.upload()
        self.pipeline.generate_error = GenerationError("quota exceeded")
        response = self.client.post("/api/v1/generate", json={"style": "knight"})
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.get_json()["details"], "quota exceeded")

        state = self.client.get("/api/v1/state").get_json()
        self.assertEqual(state["generation"], {"is_loading": False, "result_image": None, "error": "quota exceeded"})

    def test_edit_failure_keeps_result(self):
        self.upload()
        self.client.post("/api/v1/generate", json={"style": "knight"})
        self.pipeline.edit_error = EditError("safety block")

        response = self.client.post("/api/v1/edit", json={"instruction": "make it red"})
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.get_json()["error_code"], "PROCESSING_002")

        state = self.client.get("/api/v1/state").get_json()
        self.assertEqual(state["generation"]["result_image"], self.pipeline.result)
        self.assertEqual(state["generation"]["error"], "safety block")

    def test_edit_generation_error_from_pipeline(self):
        self.upload()
        self.client.post("/api/v1/generate", json={"style": "knight"})
        self.pipeline.edit_error = GenerationError("model overloaded")

        response = self.client.post("/api/v1/edit", json={"instruction": "make it red"})
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.get_json()["details"], "model overloaded")
        state = self.client.get("/api/v1/state").get_json()
        self.assertEqual(state["generation"]["result_image"], self.pipeline.result)

    def test_edit_requires_result(self):
        self.upload()
        response = self.client.post("/api/v1/edit", json={"instruction": "make it red"})
        self.assertEqual(response.status_code, 400)

    def test_download_without_result(self):
        response = self.client.get("/api/v1/download")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["error_code"], "FILE_001")


if __name__ == "__main__":
    unittest.main()
