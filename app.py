# app.py
# FastAPI entrypoint: accepts checks.json plus an HTML upload or a URL,
# returns the {selector: bool} presence report.

from __future__ import annotations

import os
import time
import uuid
import logging
from typing import Optional

from fastapi import FastAPI, File, Form, UploadFile, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tools.check_html import (
    ChecksFileError,
    ParseFailure,
    SelectorSyntaxError,
    check_html,
    parse_checks,
)
from tools.fetch_html import (
    FETCH_RETRIES,
    FETCH_RETRY_DELAY,
    FETCH_TIMEOUT,
    FetchError,
    fetch_html,
)

# ---------- Logging setup ----------
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s [%(levelname)s] %(message)s",
)

app = FastAPI(title="HTML Grader")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
def health():
    return {
        "status": "ok",
        "fetch_timeout": FETCH_TIMEOUT,
        "fetch_retries": FETCH_RETRIES,
        "fetch_retry_delay": FETCH_RETRY_DELAY,
    }


@app.post("/api/check")
async def check(
    checks: UploadFile = File(...),
    file: Optional[UploadFile] = File(None),
    url: Optional[str] = Form(None),
    render: bool = Form(False),
):
    if file is not None and url:
        raise HTTPException(status_code=400, detail="Specify either a file or a URL to be checked, but NOT both.")
    if file is None and not url:
        raise HTTPException(status_code=400, detail="Neither a file nor a URL was specified - nothing to do.")

    req_id = uuid.uuid4().hex[:8]
    t_start = time.time()

    try:
        selectors = parse_checks(await checks.read())
    except ChecksFileError as e:
        raise HTTPException(status_code=422, detail=str(e))
    logging.info(f"[{req_id}] 📥 Received {len(selectors)} check(s)")

    if file is not None:
        data = await file.read()
        logging.info(f"[{req_id}] 📦 {file.filename}: {len(data)} bytes")
        if not data.strip():
            raise HTTPException(status_code=400, detail="Uploaded HTML file is empty")
    else:
        try:
            data = await fetch_html(url, render=render)
        except FetchError as e:
            logging.error(f"[{req_id}] ❌ {e}")
            raise HTTPException(status_code=502, detail=str(e))

    try:
        result = await run_in_threadpool(check_html, data, selectors)
    except SelectorSyntaxError as e:
        raise HTTPException(status_code=422, detail={"error": str(e), "selector": e.selector})
    except ParseFailure as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logging.exception(f"[{req_id}] ❌ Check failed: {e}")
        raise HTTPException(status_code=500, detail=f"Check failed: {e}")

    logging.info(f"[{req_id}] 🚀 Returning {len(result)} result(s) (total {time.time()-t_start:.2f}s)")
    return JSONResponse(content=result)


@app.get("/")
def root():
    return {"message": "HTML Grader is running. POST /api/check with checks.json and a file or url"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=False
    )
