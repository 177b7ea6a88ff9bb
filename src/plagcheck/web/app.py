"""FastAPI application exposing index building and paragraph checks."""

from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from plagcheck.analysis.strategies import ContentAnalyzerType, parse_strategies
from plagcheck.config import DEFAULT_STRATEGIES, AppConfig
from plagcheck.errors import (
    ConfigurationError,
    IndexIOError,
    IndexNotFoundError,
    StrategyExecutionError,
)
from plagcheck.index.checker import Checker, FailurePolicy
from plagcheck.index.indexer import Indexer

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="plagcheck", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

CheckerKey = Tuple[Path, Tuple[str, ...], FailurePolicy]

_CHECKERS: Dict[CheckerKey, Checker] = {}
_CHECKERS_LOCK = threading.Lock()
_CACHE_GENERATION = 0


class CheckPayload(BaseModel):
    paragraph: str | None = None
    strategies: List[str] | None = None
    index_root: str | None = None
    partial: bool = False


class IndexPayload(BaseModel):
    paths: List[str]
    index_root: str | None = None
    strategies: List[str] | None = None
    window: int = 1
    store_text: bool = True


def _resolve_index_root(index_root: str | Path | None) -> Path:
    if index_root is None:
        index_root = getattr(app.state, "index_root", None)
    config = AppConfig(index_root=Path(index_root) if index_root is not None else None)
    return config.resolve_index_root(Path.cwd())


def _strategy_key(strategies: Sequence[str]) -> Tuple[str, ...]:
    """Canonical strategy names, so equivalent requests share one checker."""
    return tuple(strategy.value for strategy in parse_strategies(strategies))


def _get_checker(index_root: Path, strategies: Sequence[str], policy: FailurePolicy) -> Checker:
    """Return a cached checker, loading its indexes on first use.

    Indexes load outside the lock. A checker whose load overlapped a
    re-index of its root is returned but not cached.
    """
    key = (index_root, _strategy_key(strategies), policy)
    with _CHECKERS_LOCK:
        checker = _CHECKERS.get(key)
        generation = _CACHE_GENERATION
    if checker is not None:
        return checker

    checker = Checker.from_index_root(index_root, key[1], failure_policy=policy)
    with _CHECKERS_LOCK:
        if generation != _CACHE_GENERATION:
            return checker
        cached = _CHECKERS.setdefault(key, checker)
    if cached is not checker:
        checker.close()
    return cached


def _drop_checkers(index_root: Path) -> int:
    """Forget cached checkers for ``index_root`` so the next query loads fresh indexes.

    Dropped checkers are not closed: requests already holding one finish on
    it, and its idle worker threads exit once it is garbage collected.
    """
    global _CACHE_GENERATION
    with _CHECKERS_LOCK:
        _CACHE_GENERATION += 1
        stale = [key for key in _CHECKERS if key[0] == index_root]
        for key in stale:
            del _CHECKERS[key]
    return len(stale)


@app.get("/strategies")
async def list_strategies() -> dict[str, List[str]]:
    return {"strategies": [member.value for member in ContentAnalyzerType]}


@app.post("/check")
async def check_paragraph(payload: CheckPayload) -> dict[str, Any]:
    if payload.paragraph is None:
        raise HTTPException(status_code=400, detail="Missing paragraph")

    index_root = _resolve_index_root(payload.index_root)
    strategies = payload.strategies or DEFAULT_STRATEGIES
    policy = FailurePolicy.PARTIAL if payload.partial else FailurePolicy.FAIL_FAST

    try:
        checker = await asyncio.to_thread(_get_checker, index_root, strategies, policy)
    except IndexNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except IndexIOError as exc:
        LOGGER.error("Unable to load indexes from %s: %s", index_root, exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    try:
        result = await asyncio.to_thread(checker.check, payload.paragraph)
    except StrategyExecutionError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return {
        "strategies": [entry.strategy.value for entry in result],
        "results": result.to_dict(),
        "errors": {
            entry.strategy.value: entry.error for entry in result if entry.error is not None
        },
    }


def _run_index_job(paths: List[Path], config: AppConfig, index_root: Path) -> dict[str, Any]:
    indexer = Indexer(
        config.analyzer_types(),
        index_root,
        window=config.window,
        store_text=config.store_text,
    )
    stats = indexer.index(paths)
    _drop_checkers(index_root)
    return stats.to_dict()


@app.post("/index")
async def index_articles(payload: IndexPayload) -> dict[str, Any]:
    if not payload.paths:
        raise HTTPException(status_code=400, detail="No path provided")
    if payload.window < 1:
        raise HTTPException(status_code=400, detail="window must be >= 1")

    config = AppConfig(
        index_root=Path(payload.index_root) if payload.index_root is not None else None,
        strategies=tuple(payload.strategies) if payload.strategies else DEFAULT_STRATEGIES,
        window=payload.window,
        store_text=payload.store_text,
    )
    try:
        config.analyzer_types()
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    index_root = _resolve_index_root(payload.index_root)

    resolved_paths = []
    for raw in payload.paths:
        clean_path = raw.strip().replace("\r", "").replace("\n", "")
        if not clean_path:
            continue
        if "\0" in clean_path:
            raise HTTPException(status_code=400, detail="Invalid path: contains null byte")
        path = Path(clean_path).expanduser().resolve()
        if not path.exists():
            raise HTTPException(status_code=404, detail="Path not found: %s" % clean_path)
        resolved_paths.append(path)

    if not resolved_paths:
        raise HTTPException(status_code=400, detail="No path provided")

    index_root.mkdir(parents=True, exist_ok=True)
    try:
        stats = await asyncio.to_thread(_run_index_job, resolved_paths, config, index_root)
    except IndexIOError as exc:
        LOGGER.exception("Indexing failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return {"status": "ok", "index_root": str(index_root), "stats": stats}
