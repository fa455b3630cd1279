import logging

from fastapi import Depends, FastAPI, HTTPException, Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
from starlette.responses import HTMLResponse, PlainTextResponse

from .config import FORM_OVERHEAD_BYTES, MAX_UPLOAD_BYTES, get_greeting_name
from .errors import StorageError
from .storage import BucketStore, store_bytes

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "sourceFile"

UPLOAD_FORM = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <meta http-equiv="X-UA-Compatible" content="ie=edge" />
    <title>Document</title>
  </head>
  <body>
    <form
      enctype="multipart/form-data"
      action="/upload"
      method="post">
      <input type="file" name="sourceFile" />
      <input type="submit" value="upload" />
    </form>
  </body>
</html>"""

FORM_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def get_store(request: Request) -> BucketStore:
    return request.app.state.store


def create_app(store: BucketStore) -> FastAPI:
    app = FastAPI(title="Cloud Run + GCS photo upload")
    app.state.store = store

    @app.get("/", response_class=PlainTextResponse)
    def hello(store: BucketStore = Depends(get_store)):
        greeting = f"Hello {get_greeting_name()}!\n"
        try:
            store_bytes(store, "greeting", greeting.encode("utf-8"), "text/plain")
        except (StorageError, OSError):
            # Never fatal: the greeting is still served.
            logger.exception("Cannot store greeting")
        return PlainTextResponse(greeting)

    @app.api_route("/upload", methods=FORM_METHODS)
    async def upload(request: Request, store: BucketStore = Depends(get_store)):
        if request.method == "POST":
            return await process_upload(request, store)
        return HTMLResponse(UPLOAD_FORM)

    return app


def _declared_length(request: Request):
    raw = request.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


async def process_upload(request: Request, store: BucketStore) -> PlainTextResponse:
    declared = _declared_length(request)
    if declared is not None and declared > MAX_UPLOAD_BYTES + FORM_OVERHEAD_BYTES:
        logger.info("Rejecting upload of %d bytes", declared)
        raise HTTPException(status_code=413)

    try:
        form = await request.form()
    except (MultiPartException, StarletteHTTPException) as exc:
        # Starlette reports framing errors as a 400 carrying the parser message.
        logger.info("Malformed multipart body: %s", exc)
        raise HTTPException(status_code=400)

    try:
        source = form.get(UPLOAD_FIELD)
        if not isinstance(source, UploadFile):
            logger.info("Cannot find form file %r", UPLOAD_FIELD)
            raise HTTPException(status_code=400)
        try:
            data = await source.read()
        except OSError:
            logger.exception("Cannot read data")
            raise HTTPException(status_code=500)
        filename = source.filename or ""
        content_type = source.content_type or ""
    finally:
        await form.close()

    if len(data) > MAX_UPLOAD_BYTES:
        logger.info("Rejecting upload of %d bytes", len(data))
        raise HTTPException(status_code=413)

    logger.info(
        "File uploaded. %s",
        {"filename": filename, "size": len(data), "content_type": content_type},
    )

    try:
        await run_in_threadpool(store_bytes, store, filename, data, content_type)
    except (StorageError, OSError):
        logger.exception("Cannot write object")
        raise HTTPException(status_code=500)

    return PlainTextResponse("Successfully Uploaded File\n", status_code=201)
