import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from archforge.api.dependencies import (
    get_busy_registry,
    get_model_client,
    get_session_store,
)
from archforge.api.serializers import serialize_graph, to_export_payload
from archforge.compiler.layout import compute_layout
from archforge.compiler.render_mermaid import render_mermaid
from archforge.inference.base import LLMClient
from archforge.ir.errors import EditError, GenerationError, SessionBusyError
from archforge.ir.graph import ArchitectureGraph
from archforge.pipeline.controller import ArchitectureAssistant, BusyRegistry
from archforge.pipeline.editor import GraphEditor
from archforge.pipeline.intent import classify
from archforge.pipeline.synthesizer import GraphSynthesizer
from archforge.schemas import (
    ChatRequest,
    EditRequest,
    ExportRequest,
    GenerateRequest,
    IntentRequest,
    LayoutRequest,
)
from archforge.store.session_store import SessionStore
from archforge.utils.identifiers import generate_architecture_id
from archforge.validation.sanitizer import sanitize_payload

logger = logging.getLogger(__name__)

router = APIRouter()


def _load(store: SessionStore, architecture_id: str) -> ArchitectureGraph:
    graph = store.get(architecture_id)
    if graph is None:
        raise HTTPException(status_code=404, detail="Architecture not found")
    return graph


@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/api/generate-architecture")
def generate_architecture(
    request: GenerateRequest,
    client: Optional[LLMClient] = Depends(get_model_client),
    store: SessionStore = Depends(get_session_store),
):
    if not request.requirements or not request.requirements.strip():
        raise HTTPException(status_code=400, detail="Requirements are required")

    try:
        graph = GraphSynthesizer(client, store=store).synthesize(request.requirements)
    except GenerationError as e:
        logger.error("Error in generate-architecture endpoint: %s", e.message)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to generate architecture: {e.message}",
        ) from e

    return serialize_graph(graph)


@router.get("/api/architecture/{architecture_id}")
def get_architecture(
    architecture_id: str,
    store: SessionStore = Depends(get_session_store),
):
    return _load(store, architecture_id).to_dict()


@router.get("/api/architecture/{architecture_id}/mermaid", response_class=PlainTextResponse)
def get_architecture_mermaid(
    architecture_id: str,
    store: SessionStore = Depends(get_session_store),
):
    return render_mermaid(_load(store, architecture_id))


@router.post("/api/edit-architecture")
def edit_architecture(
    request: EditRequest,
    client: Optional[LLMClient] = Depends(get_model_client),
    store: SessionStore = Depends(get_session_store),
    busy: BusyRegistry = Depends(get_busy_registry),
):
    current = store.get(request.architectureId) if request.architectureId else None

    if current is None:
        if not request.currentNodes:
            raise HTTPException(status_code=404, detail="Architecture not found")
        # graph posted by the client; sanitize before it becomes edit input
        posted = sanitize_payload(request.currentNodes, request.currentEdges)
        current = ArchitectureGraph(
            id=request.architectureId or generate_architecture_id(),
            nodes=posted.nodes,
            edges=posted.edges,
        )

    try:
        with busy.hold(current.id):
            updated = GraphEditor(client, store=store).edit(current, request.editRequest)
    except SessionBusyError as e:
        raise HTTPException(status_code=409, detail=e.message) from e
    except EditError as e:
        logger.error("Error editing architecture %s: %s", current.id, e.message)
        raise HTTPException(status_code=500, detail=e.message) from e

    return serialize_graph(updated)


@router.post("/api/classify-intent")
def classify_intent(
    request: IntentRequest,
    client: Optional[LLMClient] = Depends(get_model_client),
):
    return classify(request.message, request.hasArchitecture, client).to_dict()


@router.post("/api/chat")
def chat(
    request: ChatRequest,
    client: Optional[LLMClient] = Depends(get_model_client),
    store: SessionStore = Depends(get_session_store),
    busy: BusyRegistry = Depends(get_busy_registry),
):
    graph = _load(store, request.architectureId) if request.architectureId else None
    assistant = ArchitectureAssistant(client, store=store)

    try:
        with busy.hold(request.architectureId):
            reply = assistant.handle(request.message, graph)
    except SessionBusyError as e:
        raise HTTPException(status_code=409, detail=e.message) from e
    except (GenerationError, EditError) as e:
        raise HTTPException(status_code=500, detail=e.message) from e

    return {
        "intent": reply.intent.to_dict(),
        "message": reply.message,
        "architecture": serialize_graph(reply.graph) if reply.graph else None,
    }


@router.post("/api/layout")
def layout(request: LayoutRequest):
    positions = compute_layout(
        [n.model_dump() for n in request.nodes],
        [e.model_dump() for e in request.edges],
    )
    return {"positions": positions}


@router.post("/api/export-payload")
def export_payload(
    request: ExportRequest,
    store: SessionStore = Depends(get_session_store),
):
    graph = _load(store, request.architectureId)
    try:
        return to_export_payload(graph, request.format, request.configurations)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
