import asyncio
import logging
import os
import sys
from typing import Any, Callable, Dict, Optional

import uvicorn
from fastapi import Body, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from openai import OpenAI
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from analysis_module import generate_analysis
from errors import AnalyzerError, ConfigurationError, ProcessingError, ValidationError
from llm_module import create_client
from ocr_module import TesseractWorker, extract_text
from qa_module import ask, chat
from schemas import ErrorDetail, ErrorResponse, QuestionRequest, utc_timestamp
from upload_module import save_image

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or config.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def error_response(
    status_code: int,
    message: str,
    error_type: str,
    details: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body = ErrorResponse(message=message, error=ErrorDetail(type=error_type, details=details))
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


def as_route_error(message: str, exc: Exception) -> AnalyzerError:
    """Client errors and timeouts keep their own status; everything else is a 500 under ``message``."""
    if isinstance(exc, AnalyzerError) and exc.status_code != 500:
        return exc
    return ProcessingError.wrap(message, exc)


def create_app(
    llm_client: Optional[OpenAI] = None,
    ocr_worker_factory: Optional[Callable[[], TesseractWorker]] = None,
    uploads_dir: Optional[str] = None,
    public_dir: Optional[str] = None,
) -> FastAPI:
    app = FastAPI(title="ChatAnalyzer", description="Image OCR analysis and follow-up Q&A")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # One client per process, shared by every request
    app.state.llm_client = llm_client or create_client()
    app.state.ocr_worker_factory = ocr_worker_factory or TesseractWorker.create
    app.state.uploads_dir = uploads_dir or config.UPLOADS_DIR

    @app.exception_handler(AnalyzerError)
    async def analyzer_error_handler(request: Request, exc: AnalyzerError) -> JSONResponse:
        return error_response(exc.status_code, exc.message, exc.error_type, exc.details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(400, "Invalid request body", "RequestValidationError", str(exc.errors()))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail), "HTTPException", str(exc.detail), headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return error_response(500, "Internal server error", type(exc).__name__, str(exc))

    @app.get("/")
    def root() -> Dict[str, Any]:
        return {"message": "Server is running"}

    @app.post("/upload")
    async def upload(request: Request, image: Optional[UploadFile] = File(None)) -> Dict[str, Any]:
        if image is None:
            raise ValidationError("No image file provided")

        # one byte past the ceiling is enough to know it is too large
        data = await image.read(config.MAX_UPLOAD_BYTES + 1)
        filename = image.filename or ""
        logger.info("Processing file: %s", filename)

        try:
            stored = await asyncio.to_thread(
                save_image, data, filename, image.content_type, uploads_dir=request.app.state.uploads_dir
            )
            extracted = await asyncio.to_thread(extract_text, stored.path, request.app.state.ocr_worker_factory)
            analysis = await asyncio.to_thread(generate_analysis, request.app.state.llm_client, extracted.raw)
        except Exception as e:
            error = as_route_error("Error processing image", e)
            if error is e:
                raise
            logger.exception("Processing error for %s", filename)
            raise error from e

        return {
            "status": "success",
            "message": "Image processed successfully",
            "data": {
                "file": stored.model_dump(),
                "textExtraction": extracted.to_payload(),
                "analysis": analysis.to_payload(),
            },
        }

    @app.post("/chat")
    def chat_endpoint(request: Request, payload: QuestionRequest = Body(...)) -> Dict[str, Any]:
        try:
            reply = chat(request.app.state.llm_client, payload.question, payload.analysis_context)
        except Exception as e:
            error = as_route_error("Error processing chat request", e)
            if error is e:
                raise
            logger.exception("Error in /chat endpoint")
            raise error from e
        return {"status": "success", "response": reply}

    @app.post("/ask")
    def ask_endpoint(request: Request, payload: QuestionRequest = Body(...)) -> Dict[str, Any]:
        try:
            answer = ask(request.app.state.llm_client, payload.question, payload.analysis_context)
        except Exception as e:
            error = as_route_error("Error processing question", e)
            if error is e:
                raise
            logger.exception("Error in /ask endpoint")
            raise error from e
        return {
            "status": "success",
            "timestamp": utc_timestamp(),
            "question": payload.question,
            "analysis": answer.to_payload(),
        }

    static_dir = public_dir or config.PUBLIC_DIR
    if os.path.isdir(static_dir):
        # registered last so the API routes above take precedence
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="public")

    return app


def run() -> None:
    configure_logging()
    try:
        config.require_api_key()
    except ConfigurationError as e:
        logger.error("%s", e)
        sys.exit(1)
    uvicorn.run("main:create_app", factory=True, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
