from typing import Optional
from fastapi import APIRouter, Depends, Query
from relay.api.deps import get_chat_client, require_param
from relay.external.chat_client import ChatClient
from relay.schemas.media import RelayResponse

router = APIRouter()


@router.get("/messages", response_model=RelayResponse)
async def tina_messages(
    query: Optional[str] = Query(None, description="Message for Tina"),
    context: Optional[str] = Query(None, max_length=4000, description="Earlier conversation"),
    user: Optional[str] = Query(None, max_length=100, description="Caller identifier"),
    chat: ChatClient = Depends(get_chat_client)
):
    """Send a message to the Tina assistant and return its reply."""
    query = require_param(query, "query")
    reply = await chat.complete(query, context=context, user=user)
    return RelayResponse(message="Reply generated.", data=reply)
