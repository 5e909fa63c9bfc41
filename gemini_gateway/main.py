import logging
from collections.abc import Callable
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from google.genai import Client

from gemini_gateway.config import settings
from gemini_gateway.llm import (
    AUDIO_PROMPT,
    DEFAULT_IMAGE_PROMPT,
    DOCUMENT_PROMPT,
    build_client,
    generate_content,
)
from gemini_gateway.observability import RequestLoggingMiddleware, configure_logging
from gemini_gateway.schemas import ErrorResponse, GenerationResponse, HealthResponse, TextPromptRequest
from gemini_gateway.uploads import StagedUpload, detect_image_mime_type, discard_upload, encode_file, stage_upload

configure_logging()
logger = logging.getLogger(__name__)

BUNDLED_PUBLIC_DIR = Path(__file__).resolve().parent / "public"


def resolve_public_dir(value: str) -> Path:
    # Relative overrides resolve against the working directory, like UPLOAD_DIR.
    return Path(value) if value else BUNDLED_PUBLIC_DIR


PUBLIC_DIR = resolve_public_dir(settings.public_dir)

ERROR_RESPONSES = {500: {"model": ErrorResponse}}


def _multipart_body(file_field: str, *text_fields: str) -> dict:
    properties: dict[str, dict] = {file_field: {"type": "string", "format": "binary"}}
    for name in text_fields:
        properties[name] = {"type": "string"}
    schema = {"type": "object", "properties": properties}
    return {"requestBody": {"content": {"multipart/form-data": {"schema": schema}}}}


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.genai_client = build_client(settings)
    logger.info("Chat API server is running on http://localhost:%s", settings.port)
    yield


app = FastAPI(title="Gemini Gateway", version="0.1.0", lifespan=lifespan)
app.add_middleware(RequestLoggingMiddleware)


def get_genai_client(request: Request) -> Client:
    return request.app.state.genai_client


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok", model=settings.gemini_model)


@app.post("/generate-text", response_model=GenerationResponse, responses=ERROR_RESPONSES)
async def generate_text(
    request: Request,
    client: Client = Depends(get_genai_client),
) -> GenerationResponse | JSONResponse:
    try:
        body = TextPromptRequest.model_validate(await _read_body(request))
        text = await generate_content(client, [body.prompt], model=settings.gemini_model)
    except Exception as exc:  # noqa: BLE001
        logger.warning("generate-text failed: %s", exc)
        return _error_response(exc)
    return GenerationResponse(output=text)


@app.post(
    "/generate-from-image",
    response_model=GenerationResponse,
    responses=ERROR_RESPONSES,
    openapi_extra=_multipart_body("image", "prompt"),
)
async def generate_from_image(
    request: Request,
    client: Client = Depends(get_genai_client),
) -> GenerationResponse | JSONResponse:
    return await _generate_from_upload(
        request,
        client,
        field="image",
        default_prompt=DEFAULT_IMAGE_PROMPT,
        resolve_mime_type=lambda staged: detect_image_mime_type(staged.path),
        prompt_field="prompt",
    )


@app.post(
    "/generate-from-document",
    response_model=GenerationResponse,
    responses=ERROR_RESPONSES,
    openapi_extra=_multipart_body("document"),
)
async def generate_from_document(
    request: Request,
    client: Client = Depends(get_genai_client),
) -> GenerationResponse | JSONResponse:
    return await _generate_from_upload(
        request,
        client,
        field="document",
        default_prompt=DOCUMENT_PROMPT,
        resolve_mime_type=lambda staged: staged.content_type,
    )


@app.post(
    "/generate-from-audio",
    response_model=GenerationResponse,
    responses=ERROR_RESPONSES,
    openapi_extra=_multipart_body("audio"),
)
async def generate_from_audio(
    request: Request,
    client: Client = Depends(get_genai_client),
) -> GenerationResponse | JSONResponse:
    return await _generate_from_upload(
        request,
        client,
        field="audio",
        default_prompt=AUDIO_PROMPT,
        resolve_mime_type=lambda staged: staged.content_type,
    )


# Mounted last so the API routes above take precedence over static files.
app.mount("/", StaticFiles(directory=PUBLIC_DIR, html=True), name="public")


async def _generate_from_upload(
    request: Request,
    client: Client,
    field: str,
    default_prompt: str,
    resolve_mime_type: Callable[[StagedUpload], str],
    prompt_field: str | None = None,
) -> GenerationResponse | JSONResponse:
    # The form is parsed here, not by FastAPI, so malformed bodies and
    # non-file values also end up as 500 {"error": ...}.
    staged: StagedUpload | None = None
    try:
        async with request.form() as form:
            prompt = form.get(prompt_field) if prompt_field else None
            if not isinstance(prompt, str) or not prompt:
                prompt = default_prompt
            staged = await stage_upload(form.get(field), settings.upload_dir, field)
        payload = await encode_file(staged.path, resolve_mime_type(staged))
        text = await generate_content(client, [prompt, payload], model=settings.gemini_model)
    except Exception as exc:  # noqa: BLE001
        logger.warning("generate-from-%s failed: %s", field, exc)
        return _error_response(exc)
    finally:
        if staged is not None:
            discard_upload(staged)
    return GenerationResponse(output=text)


async def _read_body(request: Request) -> dict:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        return await request.json()
    form = await request.form()
    return dict(form)


def _error_response(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content=ErrorResponse(error=str(exc)).model_dump())


def main() -> None:
    import uvicorn

    uvicorn.run(
        "gemini_gateway.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
