"""
POST /api/generate
==================
Runs the AutoTest agent on a path local to the server and reports one
result per generated test file.

Access:
    - Disabled unless ENABLE_GENERATE_ENDPOINT=true (404 otherwise)
    - input_file, output_file and config_file must resolve inside
      AUTOTEST_API_ROOT (default: the server's working directory)

Status Codes:
    200 — agent ran; inspect each result's success flag
    400 — no API key configured, or invalid YAML config
    403 — a path resolves outside the API root
    404 — endpoint disabled, or input path does not exist
    422 — an input file exists but cannot be read
    502 — the completion API call failed
"""
import os
import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from autotest.agents.autotest_agent import AutoTestAgent
from autotest.core.config import (
    API_ROOT,
    DEFAULT_MODEL,
    DEFAULT_STREAM,
    ENABLE_GENERATE_ENDPOINT,
    OPENAI_API_KEY,
    AutoTestConfig,
    ConfigError,
    find_config_file,
    load_config_file,
    load_examples,
)
from autotest.llm.client import LLMError
from autotest.models.generation_result import GenerationResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Generate"])


class GenerateRequest(BaseModel):
    input_file: str
    output_file: Optional[str] = None
    model: Optional[str] = None
    techs: List[str] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)
    stream: Optional[bool] = None
    config_file: Optional[str] = None


class GenerateResponse(BaseModel):
    results: List[GenerationResult]
    total_files: int
    total_written: int


def _within_root(path: str) -> bool:
    root = os.path.realpath(API_ROOT or os.getcwd())
    target = os.path.realpath(path)
    return os.path.commonpath([root, target]) == root


@router.post("/generate", response_model=GenerateResponse)
async def generate(request: GenerateRequest) -> GenerateResponse:
    if not ENABLE_GENERATE_ENDPOINT:
        raise HTTPException(status_code=404, detail="Not found")

    for path in (request.input_file, request.output_file, request.config_file):
        if path and not _within_root(path):
            raise HTTPException(status_code=403, detail=f"Path outside API root: {path}")

    if not os.path.exists(request.input_file):
        raise HTTPException(status_code=404, detail=f"Input not found: {request.input_file}")

    if not OPENAI_API_KEY:
        raise HTTPException(status_code=400, detail="OPENAI_API_KEY is not configured")

    settings = AutoTestConfig()
    examples = []
    config_path = find_config_file(request.config_file)
    if config_path:
        try:
            settings = load_config_file(config_path)
            examples = load_examples(settings, config_path)
        except ConfigError as e:
            raise HTTPException(status_code=400, detail=str(e))

    stream = request.stream
    if stream is None:
        stream = settings.stream if settings.stream is not None else DEFAULT_STREAM

    agent = AutoTestAgent(
        api_key=OPENAI_API_KEY,
        model=request.model or settings.model or DEFAULT_MODEL,
        techs=request.techs or settings.techs,
        tips=request.tips or settings.tips,
        examples=examples,
        stream=stream,
    )

    try:
        results = await agent.run(request.input_file, request.output_file)
    except LLMError as e:
        logger.error("Generation failed for %s: %s", request.input_file, e)
        raise HTTPException(status_code=502, detail=f"Completion API failed: {e}")
    except SystemExit:
        raise HTTPException(status_code=422, detail=f"Could not read input: {request.input_file}")

    return GenerateResponse(
        results=results,
        total_files=len(results),
        total_written=sum(1 for r in results if r.success),
    )
