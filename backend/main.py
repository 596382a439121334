from dotenv import load_dotenv
load_dotenv()

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gemini.client import GeminiProvider
from gemini.config import require_api_key
from gemini.orchestrator import GenerationOrchestrator
from routes import learning, outreach, session

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fails startup when GEMINI_API_KEY is missing
    provider = GeminiProvider(api_key=require_api_key())
    app.state.orchestrator = GenerationOrchestrator(provider)
    yield


app = FastAPI(title="Interview Prep AI API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.environ.get("CORS_ALLOW_ORIGINS", "http://localhost:5173").split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(session.router)
app.include_router(learning.router)
app.include_router(outreach.router)


@app.get("/")
def health():
    return {"status": "ok", "service": "interview-prep-ai"}
