"""
pinkeyword API - FastAPI backend for the keyword manager
"""

from dotenv import find_dotenv, load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pinkeyword import __version__
from pinkeyword.domain.errors import KeywordDecodeError, KeywordStoreAuthError, KeywordStoreError
from pinkeyword.utils.logging_config import LogFiles, Logger, clear_trace_id, set_trace_id

from .routes import folders, keywords, projects

# Load local .env so PINKEYWORD_* settings apply in API mode.
load_dotenv(find_dotenv(usecwd=True), override=False)

app = FastAPI(
    title="pinkeyword API",
    description="Organize Pinterest main targets, relevant keywords and folders",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def _trace_requests(request: Request, call_next):
    trace_id = set_trace_id(request.headers.get("x-trace-id"))
    try:
        response = await call_next(request)
        Logger.info(f"{request.method} {request.url.path} -> {response.status_code}", file=LogFiles.API)
        response.headers["x-trace-id"] = trace_id
        return response
    finally:
        clear_trace_id()


def _error_body(exc: KeywordStoreError) -> dict:
    return {"detail": exc.message, "code": exc.code, "retryable": exc.retryable}


@app.exception_handler(KeywordStoreAuthError)
async def _auth_error(request: Request, exc: KeywordStoreAuthError):
    return JSONResponse(status_code=401, content=_error_body(exc))


@app.exception_handler(KeywordDecodeError)
async def _decode_error(request: Request, exc: KeywordDecodeError):
    return JSONResponse(status_code=400, content=_error_body(exc))


@app.exception_handler(KeywordStoreError)
async def _store_error(request: Request, exc: KeywordStoreError):
    Logger.error(f"{request.method} {request.url.path}: {exc}", file=LogFiles.ERROR)
    return JSONResponse(status_code=503, content=_error_body(exc))


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": __version__}


app.include_router(keywords.router, prefix="/api", tags=["Keywords"])
app.include_router(folders.router, prefix="/api", tags=["Folders"])
app.include_router(projects.router, prefix="/api", tags=["Projects"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
