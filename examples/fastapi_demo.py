#!/usr/bin/env python3
"""
FastAPI Demo — server-side Metrika hits
=======================================

Runs a tiny FastAPI app that reports every kind of hit from the server:
  1. page view for an API call
  2. goal on a redirect
  3. external link click through /out
  4. file download through /download
  5. visit parameters and non-bounce marker

Run:
    YAMETRIKA_COUNTER_ID=123456 uv run python examples/fastapi_demo.py

Then open http://127.0.0.1:8000/ and watch the log.
"""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse

from yametrika import AsyncMetrikaClient
from yametrika.middleware import MetrikaMiddleware

logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(message)s")

app = FastAPI()
app.add_middleware(MetrikaMiddleware, client=AsyncMetrikaClient.from_env())


@app.get("/")
async def index(request: Request):
    ok = await request.state.metrika.hit(title="API index")
    return JSONResponse({"hit": ok})


@app.get("/checkout/done")
async def checkout_done(request: Request):
    await request.state.metrika.reach_goal("checkout", {"plan": "pro"})
    return RedirectResponse("/")


@app.get("/out")
async def outbound(request: Request, url: str):
    await request.state.metrika.ext_link(url)
    return RedirectResponse(url)


@app.get("/download/{name}")
async def download(request: Request, name: str):
    await request.state.metrika.file(f"/files/{name}", name)
    return RedirectResponse(f"/files/{name}")


@app.post("/profile")
async def profile(request: Request):
    body = await request.json()
    await request.state.metrika.params({"profile": body})
    await request.state.metrika.not_bounce()
    return JSONResponse({"ok": True})


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8000)
