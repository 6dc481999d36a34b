"""FastAPI server for the Dress Studio.

Receives requests from the studio client:
- /api/generate-design: front (and optional back) sketch -> design variations
- /api/try-on: person + clothing photos -> try-on image and attribute details
- /api/submit-order: tailor form -> order id
- /api/approve-design: approved try-on -> confirmed order
"""

import logging

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile as FormFile

from dress_studio import __version__
from dress_studio.agents.vision_analyzer import VisionAnalyzer
from dress_studio.config import StudioConfig, load_config
from dress_studio.errors import ProviderConfigError, ProviderError
from dress_studio.models import ApprovalRequest, CamelModel, OrderRequest
from dress_studio.models.responses import (
    ApprovalResponse,
    DesignResponse,
    ErrorResponse,
    OrderResponse,
    TryOnResponse,
)
from dress_studio.pipeline import SUPPORTED_MODELS, DesignPipeline, TryOnPipeline
from dress_studio.services import FalTryOnClient, OpenAIImageClient, OrderDesk, build_openai_client
from dress_studio.utils.images import ImagePayload, sniff_mime_type


logging.basicConfig(level=load_config().log_level.upper())
logger = logging.getLogger("dress_studio.api")


app = FastAPI(
    title="Dress Studio API",
    description="Sketch-to-design variations, virtual try-on and tailor orders",
    version=__version__,
)

# Browser client may be served from another origin during development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Initialized on first request
_settings: StudioConfig | None = None
_design_pipeline: DesignPipeline | None = None
_tryon_pipeline: TryOnPipeline | None = None
_order_desk: OrderDesk | None = None


def get_settings() -> StudioConfig:
    """Get or load the studio configuration."""
    global _settings
    if _settings is None:
        _settings = load_config()  # Loads from .env automatically via pydantic-settings
    return _settings


def get_design_pipeline() -> DesignPipeline:
    """Get or create the design pipeline.

    Raises:
        ProviderConfigError: if the OpenAI key is missing
    """
    global _design_pipeline
    if _design_pipeline is None:
        settings = get_settings()
        client = build_openai_client(settings)
        _design_pipeline = DesignPipeline(OpenAIImageClient(client, settings.openai), settings)
    return _design_pipeline


def get_tryon_pipeline() -> TryOnPipeline:
    """Get or create the try-on pipeline.

    The OpenAI key is mandatory (analysis always runs); the Fal key only
    for the 'fal-ai' model, which is checked per request.
    """
    global _tryon_pipeline
    if _tryon_pipeline is None:
        settings = get_settings()
        client = build_openai_client(settings)
        fal = FalTryOnClient.from_config(settings) if settings.fal_key else None
        _tryon_pipeline = TryOnPipeline(
            analyzer=VisionAnalyzer(client, settings.openai),
            images=OpenAIImageClient(client, settings.openai),
            fal=fal,
            compression=settings.compression,
        )
    return _tryon_pipeline


def get_order_desk() -> OrderDesk:
    global _order_desk
    if _order_desk is None:
        _order_desk = OrderDesk()
    return _order_desk


def _respond(body: CamelModel, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.to_json_dict())


def _error(message: str, status_code: int) -> JSONResponse:
    return _respond(ErrorResponse(error=message), status_code)


async def _read_upload(upload: FormFile | None) -> ImagePayload | None:
    """Read a form upload; empty file inputs count as absent."""
    if upload is None:
        return None
    data = await upload.read()
    if not data:
        return None

    filename = upload.filename or "upload"
    content_type = upload.content_type
    if not content_type or not content_type.startswith("image/"):
        content_type = sniff_mime_type(data, filename)
    return ImagePayload(filename=filename, content_type=content_type, data=data)


def _size_error(images: list[ImagePayload]) -> JSONResponse | None:
    """400 response for the first upload over the per-file ceiling, if any."""
    limit = get_settings().max_upload_bytes
    for image in images:
        if image.size > limit:
            limit_mb = limit // (1024 * 1024)
            return _error(f'File "{image.filename}" is too large. Maximum size is {limit_mb}MB.', 400)
    return None


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies get the same envelope as other validation failures."""
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    )
    return _error(f"Invalid request: {details}", 400)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Dress Studio API", "version": __version__}


@app.get("/health")
async def health():
    """Detailed health check: which providers have credentials."""
    settings = get_settings()
    openai_ok = bool(settings.openai_api_key)
    fal_ok = bool(settings.fal_key)

    return {
        "status": "ok" if openai_ok else "degraded",
        "openai": "configured" if openai_ok else "missing",
        "fal": "configured" if fal_ok else "missing",
    }


@app.post("/api/generate-design")
async def generate_design(
    front_drawing: UploadFile | None = File(None, alias="frontDrawing"),
    back_drawing: UploadFile | None = File(None, alias="backDrawing"),
    description: str = Form(""),
    color: str = Form("#000000"),
):
    """Generate front (and back) design variations from sketches.

    Returns:
        {success, variations: [{id, imageUrl, type, description}]}
    """
    try:
        front = await _read_upload(front_drawing)
        if front is None:
            return _error("Front drawing is required", 400)
        back = await _read_upload(back_drawing)

        too_large = _size_error([image for image in (front, back) if image is not None])
        if too_large is not None:
            return too_large

        pipeline = get_design_pipeline()
        variations = await pipeline.generate(front, back, description=description, color=color)

        return _respond(DesignResponse(variations=variations))

    except ProviderConfigError as e:
        logger.error("Design generation misconfigured: %s", e)
        return _error(str(e), 500)
    except Exception:
        logger.exception("Error generating design variations")
        return _error("Failed to generate design variations", 500)


@app.post("/api/try-on")
async def generate_tryon(request: Request):
    """Generate a virtual try-on image.

    Multipart fields ``personImage_<n>`` and ``clothingImage_<n>`` carry the
    photos; ``selectedModel`` picks 'fal-ai' (default) or 'openai'.
    """
    try:
        form = await request.form()
        selected_model = form.get("selectedModel") or "fal-ai"
        if not isinstance(selected_model, str) or selected_model not in SUPPORTED_MODELS:
            return _error(f"Unsupported model. Choose one of: {', '.join(SUPPORTED_MODELS)}", 400)

        person_images: list[ImagePayload] = []
        clothing_images: list[ImagePayload] = []
        for key, value in form.multi_items():
            if not isinstance(value, FormFile):
                continue
            image = await _read_upload(value)
            if image is None:
                continue
            if key.startswith("personImage"):
                person_images.append(image)
            elif key.startswith("clothingImage"):
                clothing_images.append(image)

        if not person_images or not clothing_images:
            return _error("Both person and clothing images are required", 400)

        too_large = _size_error(person_images + clothing_images)
        if too_large is not None:
            return too_large

        pipeline = get_tryon_pipeline()
        outcome = await pipeline.run(person_images, clothing_images, selected_model=selected_model)
        generation = outcome.generation

        return _respond(
            TryOnResponse(
                image_url=generation.image_url,
                person_details=outcome.person_details,
                clothing_details=outcome.clothing_details,
                processing_time=outcome.processing_time,
                model_used=generation.model_used,
                provider=generation.provider,
                prompt=generation.prompt,
                method=generation.method,
            )
        )

    except ProviderConfigError as e:
        logger.error("Try-on misconfigured: %s", e)
        return _error(str(e), 500)
    except ProviderError as e:
        logger.error("Try-on generation failed: %s", e)
        return _error(str(e), 500)
    except Exception:
        logger.exception("Error in /api/try-on")
        return _error("Failed to generate try-on image", 500)


@app.post("/api/submit-order")
async def submit_order(order: OrderRequest):
    """Send the tailor form and chosen designs to the (mock) tailor."""
    try:
        order_id = get_order_desk().submit(order)
        return _respond(OrderResponse(order_id=order_id, message="Order submitted successfully to tailor"))
    except Exception:
        logger.exception("Error submitting order")
        return _error("Failed to submit order", 500)


@app.post("/api/approve-design")
async def approve_design(approval: ApprovalRequest):
    """Approve a try-on result and place a (mock) order for it."""
    try:
        outcome = get_order_desk().approve(approval)
        return _respond(
            ApprovalResponse(
                order_id=outcome.order_id,
                message="Design approved and order placed successfully!",
                estimated_delivery=outcome.estimated_delivery,
                tracking_info=outcome.tracking_info,
            )
        )
    except Exception:
        logger.exception("Error in approve-design")
        return _error("Failed to approve design", 500)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
