from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from config.settings import get_settings
from detector.core.models import Kind
from detector.sessions import get_registry
from storage import complexes as complex_store
from storage import detected_data
from storage.linked import load_linked_detection_data


settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="[%(asctime)s] %(levelname)s - %(message)s",
)
logger = logging.getLogger("innerspace")

app = FastAPI(title="Innerspace Detection Service", version="1.0.0")

# CORS: allow local frontend during development
if settings.app_env.lower() in {"dev", "development", "local"}:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class MessageRequest(BaseModel):
    content: str = Field(..., description="Message text to analyze")
    mode: Optional[Literal["pattern", "ai"]] = Field(
        None, description="Detector to use; defaults to DETECTION_MODE"
    )


class ItemRequest(BaseModel):
    name: str = Field(..., min_length=1)


class LinkedRequest(BaseModel):
    user_id: str
    conversation_ids: List[str] = Field(default_factory=list)


class ComplexCreate(BaseModel):
    user_id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None


class ComplexUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None


class ContainingRequest(BaseModel):
    user_id: str
    kind: Kind
    name: str
    conversation_ids: Any = Field(
        default_factory=list,
        description="List, JSON array string or comma separated ids",
    )


def _storage_call(action: str, func, *args, **kwargs):
    try:
        return func(*args, **kwargs)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as e:
        logger.exception("%s failed: %s", action, e)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/detection/{conversation_id}/messages")
def add_message(conversation_id: str, req: MessageRequest) -> Dict[str, Any]:
    logger.info(
        "Incoming message: conversation=%s mode=%s len=%s",
        conversation_id,
        req.mode or "default",
        len(req.content),
    )
    try:
        session = get_registry().get(conversation_id, req.mode)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    lists = session.add_message(req.content)
    return {
        "conversation_id": conversation_id,
        "mode": session.mode,
        "detected": lists.model_dump(),
        "summaries": [s.model_dump(mode="json") for s in session.summaries(lists)],
    }


@app.get("/detection/{conversation_id}")
def current_lists(conversation_id: str) -> Dict[str, Any]:
    session = get_registry().find(conversation_id)
    if session is None:
        raise HTTPException(status_code=404, detail="No detection session for conversation")
    return {
        "conversation_id": conversation_id,
        "mode": session.mode,
        "detected": session.detector.get_current_lists().model_dump(),
    }


@app.delete("/detection/{conversation_id}")
def reset_detection(conversation_id: str) -> Dict[str, Any]:
    if not get_registry().reset(conversation_id):
        raise HTTPException(status_code=404, detail="No detection session for conversation")
    return {"conversation_id": conversation_id, "reset": True}


@app.post("/detection/{conversation_id}/save")
def save_detection(conversation_id: str, user_id: str = Query(...)) -> Dict[str, Any]:
    session = get_registry().find(conversation_id)
    if session is None:
        raise HTTPException(status_code=404, detail="No detection session for conversation")

    lists = session.detector.get_current_lists()
    payload = {
        kind: detected_data.to_detected_items(getattr(lists, kind), kind)
        for kind in ("emotions", "parts", "needs")
    }
    saved = _storage_call(
        "Saving detection", detected_data.save_all_detected, conversation_id, user_id, payload
    )
    return {"conversation_id": conversation_id, "saved": saved}


@app.post("/detection/{conversation_id}/{kind}")
def add_item(conversation_id: str, kind: Kind, req: ItemRequest) -> Dict[str, Any]:
    session = get_registry().get(conversation_id)
    lists = session.add_item(kind, req.name)
    return {"conversation_id": conversation_id, "detected": lists.model_dump()}


@app.delete("/detection/{conversation_id}/{kind}")
def remove_item(conversation_id: str, kind: Kind, req: ItemRequest) -> Dict[str, Any]:
    session = get_registry().find(conversation_id)
    if session is None:
        raise HTTPException(status_code=404, detail="No detection session for conversation")
    lists = session.remove_item(kind, req.name)
    return {"conversation_id": conversation_id, "detected": lists.model_dump()}


@app.get("/insights/aggregate")
def aggregate(user_id: str = Query(...), limit: int = Query(100, ge=1, le=1000)) -> Dict[str, Any]:
    return _storage_call(
        "Aggregating detected data", detected_data.get_aggregated_detected_data, user_id, limit
    )


@app.post("/insights/linked")
def linked(req: LinkedRequest) -> Dict[str, Any]:
    return load_linked_detection_data(req.conversation_ids, req.user_id)


@app.get("/complexes")
def list_complexes(user_id: str = Query(...), q: Optional[str] = None) -> List[Dict[str, Any]]:
    if q:
        return _storage_call("Searching complexes", complex_store.search_complexes, user_id, q)
    return _storage_call("Loading complexes", complex_store.load_complexes, user_id)


@app.post("/complexes", status_code=201)
def create_complex(req: ComplexCreate) -> Dict[str, Any]:
    return _storage_call(
        "Creating complex",
        complex_store.create_complex,
        req.user_id,
        req.name,
        description=req.description,
        color=req.color,
    )


@app.get("/complexes/stats")
def complex_stats(user_id: str = Query(...)) -> Dict[str, Any]:
    return _storage_call("Loading complex stats", complex_store.get_complex_stats, user_id)


@app.get("/complexes/recent")
def recent_complexes(user_id: str = Query(...), limit: int = Query(5, ge=1, le=50)) -> List[Dict[str, Any]]:
    return _storage_call(
        "Loading recent complexes", complex_store.get_recent_complexes, user_id, limit
    )


@app.post("/complexes/containing")
def complexes_containing(req: ContainingRequest) -> List[Dict[str, Any]]:
    return complex_store.find_complexes_with_item(
        req.kind, req.name, req.conversation_ids, req.user_id
    )


@app.get("/complexes/{complex_id}")
def get_complex(complex_id: str, user_id: str = Query(...)) -> Dict[str, Any]:
    found = _storage_call("Loading complex", complex_store.load_complex, complex_id, user_id)
    if found is None:
        raise HTTPException(status_code=404, detail="Complex not found")
    return found


@app.patch("/complexes/{complex_id}")
def update_complex(complex_id: str, req: ComplexUpdate, user_id: str = Query(...)) -> Dict[str, Any]:
    fields = req.model_dump(exclude_unset=True)
    updated = _storage_call(
        "Updating complex", complex_store.update_complex, complex_id, user_id, **fields
    )
    if updated is None:
        raise HTTPException(status_code=404, detail="Complex not found")
    return updated


@app.delete("/complexes/{complex_id}")
def delete_complex(complex_id: str, user_id: str = Query(...)) -> Dict[str, Any]:
    _storage_call("Deleting complex", complex_store.delete_complex, complex_id, user_id)
    return {"id": complex_id, "deleted": True}


@app.get("/health")
def health():
    return {"status": "ok"}


def run() -> None:
    uvicorn.run("app.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
