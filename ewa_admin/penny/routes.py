"""Penny API Routes.

Endpoints:
- POST /penny/chat - Ask Penny a question
- POST /penny/reset - Clear a conversation's context
- POST /penny/refresh - Reload the data snapshot on the next question
- GET /penny/suggestions - Did-you-mean names for a search term
- GET /penny/examples - Rotating example prompts
- GET /penny/export - CSV of the conversation's last list
"""
from typing import List

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from ewa_admin.data.provider import DataUnavailable, get_provider
from ewa_admin.data.records import Suggestions
from ewa_admin.penny import orchestrator, schemas
from ewa_admin.penny.examples import rotating_examples


router = APIRouter()


# ============================================================================
# CHAT ENDPOINTS
# ============================================================================

@router.post("/chat", response_model=schemas.PennyResponse, response_model_by_alias=True)
async def chat_with_penny(request: schemas.ChatRequest):
    """
    Main Penny chat endpoint.

    The response includes:
    - text: Markdown answer
    - richContent: Optional card, table or did-you-mean payload
    - suggestions / actions: Follow-ups for the UI
    - spans: Entity names located in the text
    - conversationId: Pass back to continue the conversation
    """
    try:
        return await orchestrator.chat(request)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Error processing chat request: {str(e)}"
        )


@router.post("/reset")
async def reset_conversation(request: schemas.ResetRequest):
    """Forget the last employee, company, pending question and list of a conversation."""
    orchestrator.reset(request.conversation_id)
    return {"conversationId": request.conversation_id, "status": "reset"}


@router.post("/refresh")
async def refresh_data():
    """Mark the cached snapshot stale; the next question reloads it."""
    await get_provider().refresh()
    return {"status": "refreshing"}


# ============================================================================
# LOOKUP ENDPOINTS
# ============================================================================

@router.get("/suggestions")
async def get_suggestions(term: str = Query(..., min_length=1, description="Partial name")):
    """Did-you-mean employee and company names for a search term."""
    try:
        suggestions: Suggestions = await get_provider().get_suggestions(term)
    except DataUnavailable:
        raise HTTPException(status_code=503, detail="Employee and company data is unavailable")
    return {"employees": suggestions.employees, "companies": suggestions.companies}


@router.get("/examples", response_model=List[schemas.ExamplePrompt], response_model_by_alias=True)
async def get_examples(start: int = Query(0, ge=0, description="Rotation index")):
    """Example prompts with real names filled in (placeholders used while data is loading)."""
    try:
        snapshot = await get_provider().get_snapshot()
    except DataUnavailable:
        snapshot = None
    return rotating_examples(start, snapshot)


@router.get("/export")
async def export_last_list(conversation_id: str = Query(..., description="Conversation to export from")):
    """Download the conversation's last list (with its filter applied) as CSV."""
    view = orchestrator.last_list(conversation_id)
    if view is None:
        raise HTTPException(status_code=404, detail="No list to export for this conversation")

    filename = "".join(ch if ch.isalnum() else "_" for ch in view.display_title).strip("_").lower() or "export"
    return Response(
        content=orchestrator.export_view(view),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}.csv"'},
    )
