"""Tests for the terminal front end with a mocked studio client."""

from datetime import date
from unittest.mock import AsyncMock, patch

import pytest

from dress_studio.errors import StudioError
from dress_studio.models import ApprovalResponse, DesignVariation, OrderResponse, TrackingInfo, TryOnResponse
from dress_studio.wizard import ORDER_STEP, TRY_ON_STEP, StateRepository
from dress_studio.wizard.cli import parse_args, run


def _variations():
    return [
        DesignVariation(id="front_1", image_url="https://img/f1.png", type="front", description="Elegant"),
        DesignVariation(id="front_2", image_url="/placeholder.svg?height=600&width=400&query=x", type="front"),
        DesignVariation(id="back_1", image_url="https://img/b1.png", type="back"),
    ]


@pytest.fixture
def studio():
    """Patch the HTTP client methods the commands call."""
    with patch.multiple(
        "dress_studio.wizard.cli.StudioClient",
        generate_designs=AsyncMock(return_value=_variations()),
        fetch_image=AsyncMock(),
        try_on=AsyncMock(),
        submit_order=AsyncMock(),
        approve_design=AsyncMock(),
    ):
        from dress_studio.wizard.cli import StudioClient
        yield StudioClient


async def _run(settings, *argv):
    return await run(parse_args(list(argv)), settings)


def _load(settings):
    wizard = StateRepository.from_config(settings).load()
    wizard.close()
    return wizard


class TestParseArgs:

    def test_design_options(self):
        args = parse_args(["design", "front.png", "--back", "back.png", "--color", "#aa3355"])

        assert args.command == "design"
        assert args.back == "back.png"
        assert args.color == "#aa3355"

    def test_try_on_model_choices(self):
        with pytest.raises(SystemExit):
            parse_args(["try-on", "me.jpg", "--model", "midjourney"])


class TestCommands:

    @pytest.mark.asyncio
    async def test_status_on_fresh_state(self, settings, studio):
        assert await _run(settings, "status") == 0

    @pytest.mark.asyncio
    async def test_design_then_select(self, settings, studio, temp_image_file):
        assert await _run(settings, "design", str(temp_image_file), "--description", "Gown", "--color", "#aa3355") == 0

        wizard = _load(settings)
        assert [v.id for v in wizard.design_variations] == ["front_1", "front_2", "back_1"]
        assert wizard.design_description == "Gown"
        assert wizard.front_drawing.filename == "test_image.png"

        assert await _run(settings, "select", "front_1", "back_1") == 0

        wizard = _load(settings)
        assert wizard.selected_front == "front_1"
        assert wizard.selected_back == "back_1"
        assert wizard.current_step == TRY_ON_STEP

    @pytest.mark.asyncio
    async def test_bad_color_rejected(self, settings, studio, temp_image_file):
        assert await _run(settings, "design", str(temp_image_file), "--color", "red") == 1
        studio.generate_designs.assert_not_called()

    @pytest.mark.asyncio
    async def test_try_on_locked_without_selection(self, settings, studio, temp_image_file):
        assert await _run(settings, "try-on", str(temp_image_file)) == 1
        studio.try_on.assert_not_called()

    @pytest.mark.asyncio
    async def test_placeholder_cannot_be_tried_on(self, settings, studio, temp_image_file):
        await _run(settings, "design", str(temp_image_file))
        await _run(settings, "select", "front_2")

        assert await _run(settings, "try-on", str(temp_image_file)) == 1
        studio.fetch_image.assert_not_called()

    @pytest.mark.asyncio
    async def test_full_flow_to_order(self, settings, studio, temp_image_file, png_payload):
        studio.fetch_image.return_value = png_payload
        studio.try_on.return_value = TryOnResponse(
            image_url="https://fal.media/out.png",
            processing_time="2.0s",
            model_used="fal-ai/fashn/tryon/v1.6",
            provider="Fal AI",
            method="virtual-try-on",
        )
        studio.submit_order.return_value = OrderResponse(
            order_id="ORD-1700000000000-ABC123",
            message="Order submitted successfully to tailor",
        )

        await _run(settings, "design", str(temp_image_file))
        await _run(settings, "select", "front_1")
        assert await _run(settings, "try-on", str(temp_image_file)) == 0
        assert await _run(settings, "order") == 1  # tailor form incomplete
        assert await _run(settings, "tailor", "fullName=Ada Lovelace", "contact=ada@example.com", "bust=88") == 0
        assert await _run(settings, "order") == 0

        wizard = _load(settings)
        assert wizard.current_step == ORDER_STEP
        assert wizard.try_on_result.image_url == "https://fal.media/out.png"
        assert wizard.order_id == "ORD-1700000000000-ABC123"
        order = studio.submit_order.await_args.args[0]
        assert order.design_images == ["https://img/f1.png"]
        assert order.bust == "88"

    @pytest.mark.asyncio
    async def test_approve_try_on_without_analysis(self, settings, studio, temp_image_file, png_payload):
        studio.fetch_image.return_value = png_payload
        studio.try_on.return_value = TryOnResponse(
            image_url="https://fal.media/out.png",
            processing_time="2.0s",
            model_used="fal-ai/fashn/tryon/v1.6",
            provider="Fal AI",
            method="virtual-try-on",
        )
        studio.approve_design.return_value = ApprovalResponse(
            order_id="TRY-1700000000000-XYZ789",
            message="Design approved and order placed successfully!",
            estimated_delivery=date(2024, 3, 8),
            tracking_info=TrackingInfo(),
        )

        await _run(settings, "design", str(temp_image_file))
        await _run(settings, "select", "front_1")
        assert await _run(settings, "try-on", str(temp_image_file), "--approve") == 0

        approval = studio.approve_design.await_args.args[0]
        assert approval.person_details is None
        assert approval.clothing_details is None
        assert approval.to_json_dict()["personDetails"] is None
        assert _load(settings).order_id == "TRY-1700000000000-XYZ789"

    @pytest.mark.asyncio
    async def test_server_error_reported(self, settings, studio, temp_image_file):
        studio.generate_designs.side_effect = StudioError("OPENAI_API_KEY not configured")

        assert await _run(settings, "design", str(temp_image_file)) == 1
        assert _load(settings).design_variations == []

    @pytest.mark.asyncio
    async def test_tailor_rejects_bad_field(self, settings, studio):
        assert await _run(settings, "tailor", "shoeSize=38") == 1
        assert await _run(settings, "tailor", "novalue") == 1

    @pytest.mark.asyncio
    async def test_reset_clears_saved_state(self, settings, studio, temp_image_file):
        await _run(settings, "design", str(temp_image_file))

        assert await _run(settings, "reset") == 0

        repository = StateRepository.from_config(settings)
        assert repository.storage.get_item(repository.key) is None
