"""
Universal Builder API — FastAPI endpoints.

Exposes builder sessions over HTTP for editing surfaces:
- Session lifecycle and command dispatch
- Element creation from the registry, duplication, undo/redo
- Validation, save, import/export
- Condition evaluation against a record
- Element type, operator and field catalogs
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ValidationError

from builder_core.conditions.evaluator import explain_group
from builder_core.conditions.fields import LEAD_FIELDS
from builder_core.conditions.operators import label_for, operators_for_field_type
from builder_core.conditions.summary import summarize_trigger
from builder_core.models.builder import BuilderConfig, BuilderType
from builder_core.models.conditions import ConditionGroup, FieldType
from builder_core.models.errors import BuilderError, ImportFailed, SaveRejected, UnknownElementType
from builder_core.models.state import StoreConfig
from builder_core.registry.catalog import ElementTypeRegistry
from builder_core.store.session import BuilderSession
from builder_core.templates.workflow import BUILTIN_TEMPLATES, get_template


# --- Request/Response Models ---

class SessionCreateRequest(BaseModel):
    builder_type: BuilderType = BuilderType.WORKFLOW
    name: str = ""
    config: Optional[dict] = None


class CommandRequest(BaseModel):
    type: str
    payload: Any = None


class ElementCreateRequest(BaseModel):
    element_type: str


class ElementUpdateRequest(BaseModel):
    updates: dict
    checkpoint: bool = True


class ReorderRequest(BaseModel):
    old_index: int
    new_index: int


class EvaluateRequest(BaseModel):
    groups: List[dict]
    record: dict
    now: Optional[datetime] = None


def _state_view(session: BuilderSession) -> dict:
    state = session.state
    return {
        "config": state.config.model_dump(mode="json", by_alias=True),
        "selectedElementId": state.selected_element_id,
        "isPreviewMode": state.is_preview_mode,
        "historyIndex": state.history_index,
        "historyLength": len(state.history),
        "canUndo": state.can_undo,
        "canRedo": state.can_redo,
    }


def _result_view(session: BuilderSession, result) -> dict:
    return {
        "applied": result.applied,
        "warnings": result.warnings,
        "state": _state_view(session),
    }


# --- Application Factory ---

def create_app(
    store_config: Optional[StoreConfig] = None,
    registry: Optional[ElementTypeRegistry] = None,
    save_callback: Optional[Callable[[BuilderConfig], Any]] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Universal Builder API",
        description="Form, workflow, campaign and journey builder core",
        version="0.1.0",
    )

    settings = store_config or StoreConfig()
    types = registry or ElementTypeRegistry()
    sessions: Dict[str, BuilderSession] = {}
    saved: Dict[str, dict] = {}

    def _default_save(config: BuilderConfig) -> None:
        saved[config.id] = config.model_dump(mode="json", by_alias=True)

    persist = save_callback or _default_save

    app.state.sessions = sessions
    app.state.saved_configs = saved
    app.state.registry = types

    def _session(session_id: str) -> BuilderSession:
        session = sessions.get(session_id)
        if session is None:
            raise HTTPException(404, "Session not found")
        return session

    # === SESSIONS ===

    @app.post("/sessions")
    def create_session(req: SessionCreateRequest):
        """Open an editing session on a new or existing configuration."""
        config = None
        if req.config is not None:
            try:
                config = BuilderConfig.model_validate(req.config)
            except ValidationError as e:
                raise HTTPException(422, f"Invalid configuration: {e.error_count()} error(s)")

        session = BuilderSession(
            builder_type=req.builder_type,
            config=config,
            settings=settings,
            registry=types,
        )
        if config is None and req.name:
            session.rename(req.name)
            session.load(session.config)

        session_id = f"sess_{uuid4().hex[:12]}"
        sessions[session_id] = session
        return {"id": session_id, "state": _state_view(session)}

    @app.get("/sessions/{session_id}")
    def get_session(session_id: str):
        return _state_view(_session(session_id))

    @app.delete("/sessions/{session_id}")
    def close_session(session_id: str):
        if sessions.pop(session_id, None) is None:
            raise HTTPException(404, "Session not found")
        return {"closed": session_id}

    @app.post("/sessions/{session_id}/commands")
    def dispatch_command(session_id: str, req: CommandRequest):
        """Dispatch a raw builder command. Rejected commands come back with warnings."""
        session = _session(session_id)
        command = {"type": req.type}
        if req.payload is not None:
            command["payload"] = req.payload
        result = session.dispatch(command)
        return _result_view(session, result)

    # === ELEMENTS ===

    @app.post("/sessions/{session_id}/elements")
    def add_element(session_id: str, req: ElementCreateRequest):
        session = _session(session_id)
        try:
            element = session.add_element(req.element_type)
        except UnknownElementType as e:
            raise HTTPException(404, str(e))
        except BuilderError as e:
            raise HTTPException(400, str(e))
        return {
            "element": element.model_dump(mode="json", by_alias=True),
            "state": _state_view(session),
        }

    @app.patch("/sessions/{session_id}/elements/{element_id}")
    def update_element(session_id: str, element_id: str, req: ElementUpdateRequest):
        session = _session(session_id)
        result = session.update_element(element_id, req.updates, checkpoint=req.checkpoint)
        return _result_view(session, result)

    @app.delete("/sessions/{session_id}/elements/{element_id}")
    def delete_element(session_id: str, element_id: str):
        session = _session(session_id)
        result = session.delete_element(element_id)
        if not result.applied:
            raise HTTPException(404, "Element not found")
        return _result_view(session, result)

    @app.post("/sessions/{session_id}/elements/{element_id}/duplicate")
    def duplicate_element(session_id: str, element_id: str):
        session = _session(session_id)
        copy = session.duplicate_element(element_id)
        if copy is None:
            raise HTTPException(404, "Element not found")
        return {
            "element": copy.model_dump(mode="json", by_alias=True),
            "state": _state_view(session),
        }

    @app.post("/sessions/{session_id}/reorder")
    def reorder_elements(session_id: str, req: ReorderRequest):
        session = _session(session_id)
        return _result_view(session, session.reorder(req.old_index, req.new_index))

    @app.get("/sessions/{session_id}/elements/{element_id}/summary")
    def trigger_summary(session_id: str, element_id: str):
        session = _session(session_id)
        element = next((e for e in session.config.elements if e.id == element_id), None)
        if element is None:
            raise HTTPException(404, "Element not found")
        return {"element_id": element_id, "summary": summarize_trigger(element)}

    # === HISTORY ===

    @app.post("/sessions/{session_id}/undo")
    def undo(session_id: str):
        session = _session(session_id)
        return _result_view(session, session.undo())

    @app.post("/sessions/{session_id}/redo")
    def redo(session_id: str):
        session = _session(session_id)
        return _result_view(session, session.redo())

    # === TEMPLATES ===

    @app.get("/templates")
    def list_templates():
        return [t.model_dump(mode="json") for t in BUILTIN_TEMPLATES]

    @app.post("/sessions/{session_id}/templates/{template_id}")
    def use_template(session_id: str, template_id: str):
        session = _session(session_id)
        template = get_template(template_id)
        if template is None:
            raise HTTPException(404, "Template not found")
        try:
            result = session.apply_template(template)
        except BuilderError as e:
            raise HTTPException(400, str(e))
        return _result_view(session, result)

    # === VALIDATION & PERSISTENCE ===

    @app.get("/sessions/{session_id}/validation")
    def validate_session(session_id: str):
        issues = _session(session_id).validate()
        return [i.model_dump(mode="json") for i in issues]

    @app.post("/sessions/{session_id}/save")
    def save_session(session_id: str):
        session = _session(session_id)
        try:
            config = session.save(persist)
        except SaveRejected as e:
            raise HTTPException(422, [i.model_dump(mode="json") for i in e.issues])
        return {"saved": config.id, "state": _state_view(session)}

    @app.get("/sessions/{session_id}/export")
    def export_session(session_id: str):
        return _session(session_id).config.model_dump(mode="json", by_alias=True)

    @app.post("/sessions/{session_id}/import")
    def import_session(session_id: str, document: dict):
        session = _session(session_id)
        try:
            session.import_document(document)
        except ImportFailed as e:
            raise HTTPException(400, str(e))
        return _state_view(session)

    # === CATALOGS ===

    @app.get("/element-types/{builder_type}")
    def list_element_types(builder_type: BuilderType):
        return [d.model_dump(mode="json") for d in types.get_element_types_for_builder(builder_type)]

    @app.get("/operators/{field_type}")
    def list_operators(field_type: FieldType):
        return [
            {"value": op, "label": label_for(op)}
            for op in operators_for_field_type(field_type)
        ]

    @app.get("/fields")
    def list_fields():
        return [f.model_dump(mode="json") for f in LEAD_FIELDS]

    # === CONDITIONS ===

    @app.post("/conditions/evaluate")
    def evaluate_conditions(req: EvaluateRequest):
        """Evaluate condition groups against a record. Every group must match."""
        try:
            groups = [ConditionGroup.model_validate(g) for g in req.groups]
        except ValidationError as e:
            raise HTTPException(422, f"Invalid condition groups: {e.error_count()} error(s)")

        now = req.now or datetime.utcnow()
        evaluations = [explain_group(g, req.record, now) for g in groups]
        return {
            "matched": bool(evaluations) and all(e.matched for e in evaluations),
            "evaluations": [e.model_dump(mode="json") for e in evaluations],
        }

    return app
