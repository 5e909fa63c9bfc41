from pydantic import BaseModel


class TextPromptRequest(BaseModel):
    prompt: str


class EncodedPayload(BaseModel):
    """File content as base64 text, tagged with the MIME type sent to the model."""

    data: str
    mime_type: str


class GenerationResponse(BaseModel):
    output: str


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    model: str
