"""Thread management endpoints.

This module exposes the thread process manager over HTTP: starting and
listing threads, reading a thread's conversation, sending messages, and
following a thread's notifications as Server-Sent Events.
"""

import asyncio
import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from coding_threads.platform.agent.messages import message_to_dict
from coding_threads.platform.agent.state import TokenUsage
from coding_threads.platform.server.dependencies.threads import (
    get_notification_bus,
    get_thread_manager,
)
from coding_threads.platform.threads import (
    NotificationBus,
    ThreadManager,
    event_to_dict,
    thread_topic,
)

threads_router = APIRouter(prefix="/threads", tags=["threads"])

# Seconds between SSE keep-alive comments while no event arrives
KEEPALIVE_SECONDS = 15.0


# =============================================================================
# Request / Response Models
# =============================================================================


class StartThreadPayload(BaseModel):
    """Request payload for starting a thread.

    Attributes:
        name: Thread name, a human-readable one is generated when omitted
        working_dir: Directory the thread operates in, the service default when omitted
    """

    name: str | None = Field(default=None, min_length=1, max_length=64)
    working_dir: str | None = None


class ThreadResponse(BaseModel):
    name: str
    working_dir: str
    status: str


class ThreadListResponse(BaseModel):
    items: list[ThreadResponse]


class TokenUsageResponse(BaseModel):
    """Tokens consumed by a thread's conversation."""

    input_tokens_by_model: dict[str, int]
    output_tokens_by_model: dict[str, int]
    total_input_tokens: int
    total_output_tokens: int


class ConversationResponse(BaseModel):
    """Full conversation of a thread."""

    name: str
    agent_id: str
    status: str
    messages: list[dict[str, Any]]
    token_usage: TokenUsageResponse | None = None


class MessagePayload(BaseModel):
    text: str = Field(min_length=1, max_length=100_000, description="User message text")


class MessageAccepted(BaseModel):
    name: str
    accepted: bool = True
    topic: str


# =============================================================================
# Endpoints
# =============================================================================


@threads_router.post("", status_code=status.HTTP_201_CREATED)
async def start_thread(
    payload: StartThreadPayload,
    manager: Annotated[ThreadManager, Depends(get_thread_manager)],
) -> ThreadResponse:
    """Start a thread, or return the existing thread with the same name.

    Raises:
        HTTPException: 422 if the name or working directory is invalid
    """
    name = await manager.start_thread(payload.name, payload.working_dir)
    working_dir = await manager.get_working_dir(name)
    return ThreadResponse(
        name=name,
        working_dir=str(working_dir),
        status=str(manager.thread_status(name)),
    )


@threads_router.get("")
async def list_threads(
    manager: Annotated[ThreadManager, Depends(get_thread_manager)],
) -> ThreadListResponse:
    """List responsive threads."""
    threads = await manager.list_threads()
    return ThreadListResponse(
        items=[
            ThreadResponse(name=t.name, working_dir=str(t.working_dir), status=str(t.status))
            for t in threads
        ]
    )


@threads_router.get("/{name}")
async def get_thread(
    name: str,
    manager: Annotated[ThreadManager, Depends(get_thread_manager)],
) -> ConversationResponse:
    """Retrieve the thread's conversation.

    Raises:
        HTTPException: 404 if the thread does not exist
    """
    agent = await manager.get_agent(name)
    return ConversationResponse(
        name=name,
        agent_id=agent.id,
        status=str(manager.thread_status(name)),
        messages=[message_to_dict(m) for m in agent.messages],
        token_usage=_build_token_usage(agent.usage),
    )


@threads_router.get("/{name}/working_dir")
async def get_working_dir(
    name: str,
    manager: Annotated[ThreadManager, Depends(get_thread_manager)],
) -> dict[str, str]:
    working_dir = await manager.get_working_dir(name)
    return {"name": name, "working_dir": str(working_dir)}


@threads_router.post("/{name}/messages", status_code=status.HTTP_202_ACCEPTED)
async def send_message(
    name: str,
    payload: MessagePayload,
    manager: Annotated[ThreadManager, Depends(get_thread_manager)],
) -> MessageAccepted:
    """Queue a user message; the turn's outcome is published on the thread's events.

    Raises:
        HTTPException: 404 if the thread does not exist
    """
    await manager.send_message(name, payload.text)
    return MessageAccepted(name=name, topic=thread_topic(name))


@threads_router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def stop_thread(
    name: str,
    manager: Annotated[ThreadManager, Depends(get_thread_manager)],
) -> None:
    await manager.stop_thread(name)


@threads_router.get("/{name}/events")
async def thread_events(
    name: str,
    request: Request,
    manager: Annotated[ThreadManager, Depends(get_thread_manager)],
    bus: Annotated[NotificationBus, Depends(get_notification_bus)],
):
    """Follow a thread's notifications with Server-Sent Events.

    The subscription is opened once the response starts streaming and closed
    when the client disconnects, so only events published after that are
    delivered.

    Raises:
        HTTPException: 404 if the thread does not exist
    """
    # 404 before streaming
    manager.thread_status(name)

    async def stream_generator():
        with bus.subscribe(name) as subscription:
            while not await request.is_disconnected():
                try:
                    event = await asyncio.wait_for(subscription.get(), KEEPALIVE_SECONDS)
                except TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield f"event: {event.kind}\ndata: {json.dumps(event_to_dict(event))}\n\n"

    return StreamingResponse(
        stream_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable proxy buffering
        },
    )


# =============================================================================
# Helpers
# =============================================================================


def _build_token_usage(usage: TokenUsage) -> TokenUsageResponse | None:
    """Build the token usage of a conversation, None before any model call."""
    if not usage:
        return None

    return TokenUsageResponse(
        input_tokens_by_model=dict(usage.input_tokens_by_model),
        output_tokens_by_model=dict(usage.output_tokens_by_model),
        total_input_tokens=usage.total_input_tokens,
        total_output_tokens=usage.total_output_tokens,
    )
