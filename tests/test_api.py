"""API endpoint tests using FastAPI TestClient."""

import re
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

import api.server as server
from api.server import app
from dress_studio.config import StudioConfig
from dress_studio.errors import ProviderError
from dress_studio.models import ClothingAnalysis, DesignVariation, PersonAnalysis
from dress_studio.pipeline import DesignPipeline, GenerationResult, TryOnOutcome
from dress_studio.services.openai_images import GeneratedImage


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def sketch(png_bytes):
    return ("front.png", png_bytes, "image/png")


@pytest.fixture
def fake_images():
    """OpenAI image client double that returns one remote URL per requested image."""
    images = MagicMock()

    async def edit(images_arg, prompt, n=1):
        return [GeneratedImage(url=f"https://img.example.com/{i}.png") for i in range(n)]

    images.edit = AsyncMock(side_effect=edit)
    return images


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, client):
        """Root endpoint returns OK status."""
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "service" in data
        assert "version" in data

    def test_health_reports_providers(self, client, settings):
        with patch("api.server.get_settings", return_value=settings):
            data = client.get("/health").json()

        assert data == {"status": "ok", "openai": "configured", "fal": "configured"}

    def test_health_degraded_without_openai(self, client):
        settings = StudioConfig(_env_file=None, openai_api_key=None, fal_key=None)
        with patch("api.server.get_settings", return_value=settings):
            data = client.get("/health").json()

        assert data["status"] == "degraded"
        assert data["fal"] == "missing"


class TestDesignEndpoint:
    """Tests for /api/generate-design."""

    def test_missing_front_drawing(self, client):
        response = client.post("/api/generate-design", data={"description": "gown", "color": "#000000"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Front drawing is required"}

    def test_front_only(self, client, sketch, fake_images, settings):
        pipeline = DesignPipeline(fake_images, settings)
        with patch("api.server.get_design_pipeline", return_value=pipeline):
            response = client.post(
                "/api/generate-design",
                files={"frontDrawing": sketch},
                data={"description": "Tea-length", "color": "#aa3355"},
            )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert [v["id"] for v in data["variations"]] == ["front_1", "front_2"]
        assert all(v["type"] == "front" for v in data["variations"])
        assert set(data["variations"][0]) == {"id", "imageUrl", "type", "description"}

    def test_front_and_back(self, client, sketch, png_bytes, fake_images, settings):
        pipeline = DesignPipeline(fake_images, settings)
        with patch("api.server.get_design_pipeline", return_value=pipeline):
            response = client.post(
                "/api/generate-design",
                files={"frontDrawing": sketch, "backDrawing": ("back.png", png_bytes, "image/png")},
                data={"color": "#112233"},
            )

        variations = response.json()["variations"]
        assert [v["type"] for v in variations] == ["front", "front", "back", "back"]
        assert all(v["imageUrl"] for v in variations)

    def test_provider_outage_yields_placeholders(self, client, sketch, settings):
        images = MagicMock()
        images.edit = AsyncMock(side_effect=ProviderError("down", "OpenAI"))
        with patch("api.server.get_design_pipeline", return_value=DesignPipeline(images, settings)):
            response = client.post("/api/generate-design", files={"frontDrawing": sketch}, data={"color": "#abcdef"})

        assert response.status_code == 200
        urls = [v["imageUrl"] for v in response.json()["variations"]]
        assert all(url.startswith("/placeholder.svg") and url.endswith("abcdef") for url in urls)

    def test_missing_openai_key(self, client, sketch, monkeypatch):
        monkeypatch.setattr(server, "_design_pipeline", None)
        settings = StudioConfig(_env_file=None, openai_api_key=None)
        with patch("api.server.get_settings", return_value=settings):
            response = client.post("/api/generate-design", files={"frontDrawing": sketch})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "OPENAI_API_KEY not configured"}

    def test_file_too_large(self, client, settings):
        settings.max_upload_bytes = 1024 * 1024
        big = ("huge.png", b"\x89PNG\r\n\x1a\n" + b"\0" * (1024 * 1024), "image/png")
        with patch("api.server.get_settings", return_value=settings):
            response = client.post("/api/generate-design", files={"frontDrawing": big})

        assert response.status_code == 400
        assert response.json()["error"] == 'File "huge.png" is too large. Maximum size is 1MB.'

    def test_unexpected_error_is_generic_500(self, client, sketch):
        pipeline = MagicMock()
        pipeline.generate = AsyncMock(side_effect=RuntimeError("boom"))
        with patch("api.server.get_design_pipeline", return_value=pipeline):
            response = client.post("/api/generate-design", files={"frontDrawing": sketch})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to generate design variations"}


class TestTryOnEndpoint:
    """Tests for /api/try-on."""

    @pytest.fixture
    def outcome(self):
        return TryOnOutcome(
            generation=GenerationResult(
                image_url="https://fal.media/out.png",
                model_used="fal-ai/fashn/tryon/v1.6",
                provider="Fal AI",
                method="virtual-try-on",
            ),
            person_details=PersonAnalysis(body_type="Slim", age_range="27-32"),
            clothing_details=ClothingAnalysis(type="Dress", primary_color="Red"),
            processing_time="3.1s",
        )

    def test_success(self, client, png_bytes, outcome):
        with patch("api.server.get_tryon_pipeline") as mock_pipeline:
            mock_instance = MagicMock()
            mock_instance.run = AsyncMock(return_value=outcome)
            mock_pipeline.return_value = mock_instance

            response = client.post(
                "/api/try-on",
                files=[
                    ("personImage_0", ("me.png", png_bytes, "image/png")),
                    ("clothingImage_0", ("dress.png", png_bytes, "image/png")),
                ],
                data={"selectedModel": "fal-ai"},
            )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["imageUrl"] == "https://fal.media/out.png"
        assert data["personDetails"]["bodyType"] == "Slim"
        assert data["clothingDetails"]["secondaryColor"] is None
        assert data["processingTime"] == "3.1s"
        assert data["method"] == "virtual-try-on"

        args = mock_instance.run.await_args
        assert len(args.args[0]) == 1 and len(args.args[1]) == 1
        assert args.kwargs["selected_model"] == "fal-ai"

    def test_missing_clothing(self, client, png_bytes):
        response = client.post(
            "/api/try-on",
            files=[("personImage_0", ("me.png", png_bytes, "image/png"))],
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_unsupported_model(self, client, png_bytes):
        response = client.post(
            "/api/try-on",
            files=[
                ("personImage_0", ("me.png", png_bytes, "image/png")),
                ("clothingImage_0", ("dress.png", png_bytes, "image/png")),
            ],
            data={"selectedModel": "midjourney"},
        )

        assert response.status_code == 400
        assert "Unsupported model" in response.json()["error"]

    def test_provider_error_message_passed_through(self, client, png_bytes):
        with patch("api.server.get_tryon_pipeline") as mock_pipeline:
            mock_instance = MagicMock()
            mock_instance.run = AsyncMock(
                side_effect=ProviderError("OpenAI API rate limit exceeded. Please try again later.", "OpenAI")
            )
            mock_pipeline.return_value = mock_instance

            response = client.post(
                "/api/try-on",
                files=[
                    ("personImage_0", ("me.png", png_bytes, "image/png")),
                    ("clothingImage_0", ("dress.png", png_bytes, "image/png")),
                ],
                data={"selectedModel": "openai"},
            )

        assert response.status_code == 500
        assert response.json()["error"] == "OpenAI API rate limit exceeded. Please try again later."


class TestOrderEndpoints:
    """Tests for /api/submit-order and /api/approve-design."""

    def test_submit_order(self, client):
        order = {
            "fullName": "Ada Lovelace",
            "contact": "ada@example.com",
            "bust": "88",
            "waist": "70",
            "hips": "94",
            "shoulders": "39",
            "designImages": ["https://img/1.png"],
            "tryOnImage": "https://fal.media/out.png",
            "timestamp": "2024-03-01T10:00:00",
        }

        first = client.post("/api/submit-order", json=order).json()
        second = client.post("/api/submit-order", json=order).json()

        assert first["success"] is True
        assert first["message"] == "Order submitted successfully to tailor"
        assert re.fullmatch(r"ORD-\d+-[A-Z0-9]{6}", first["orderId"])
        assert first["orderId"] != second["orderId"]

    def test_submit_order_invalid_body(self, client):
        response = client.post("/api/submit-order", json={"fullName": ["not", "a", "string"]})

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_approve_design(self, client):
        response = client.post("/api/approve-design", json={
            "imageUrl": "https://fal.media/out.png",
            "personDetails": {"bodyType": "Slim", "gender": "Female", "ageRange": "27-32"},
            "clothingDetails": {"type": "Dress", "primaryColor": "Red", "style": "Elegant"},
            "timestamp": "2024-03-01T10:00:00",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["orderId"].startswith("TRY-")
        assert data["message"] == "Design approved and order placed successfully!"
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", data["estimatedDelivery"])
        assert data["trackingInfo"] == {"status": "Processing", "nextUpdate": "24 hours"}

    def test_submit_order_with_front_back_selection(self, client):
        order = {
            "fullName": "Ada Lovelace",
            "contact": "ada@example.com",
            "bust": "88",
            "waist": "",
            "hips": "",
            "height": "",
            "weight": "",
            "additionalNotes": "",
            "designImages": {"front": "front_1", "back": None},
            "tryOnImage": None,
            "timestamp": "2024-03-01T10:00:00.000Z",
        }

        response = client.post("/api/submit-order", json=order)

        assert response.status_code == 200
        assert re.fullmatch(r"ORD-\d+-[A-Z0-9]{6}", response.json()["orderId"])

    def test_submit_order_with_numeric_measurements(self, client):
        response = client.post("/api/submit-order", json={"fullName": "Ada", "bust": 88, "height": 170})

        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_approve_design_without_analysis(self, client):
        response = client.post("/api/approve-design", json={
            "imageUrl": "https://fal.media/out.png",
            "personDetails": None,
            "clothingDetails": None,
            "timestamp": "2024-03-01T10:00:00",
        })

        assert response.status_code == 200
        assert response.json()["orderId"].startswith("TRY-")
