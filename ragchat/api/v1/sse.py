"""Server-Sent Events framing shared by the streaming endpoints."""

import json

from ragchat.schemas.chat_schema import StreamEvent

DONE_MARKER = "data: [DONE]\n\n"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def sse_event(event: StreamEvent) -> str:
    return f"data: {json.dumps(event.model_dump(), ensure_ascii=False)}\n\n"
