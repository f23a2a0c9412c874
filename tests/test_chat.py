from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import httpx
import pytest
from httpx import AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from fieldbook.config import Settings
from fieldbook.errors import ChatError, ChatErrorCode
from fieldbook.models.enums import CropAreaTypeEnum, HarvestUnitEnum, TaskPriorityEnum
from fieldbook.schemas.chat import ChatMessage, ChatRole
from fieldbook.schemas.farm import CropAreaCreate, FarmCreate
from fieldbook.schemas.summary import BedStatusCounts, FarmStatusSummary, HarvestSummary, TaskSummary
from fieldbook.services.chat_service import CONTEXT_ACK, PLACEHOLDER_CONTEXT, ChatService
from fieldbook.services.farm_data_service import FarmDataService


def _summary() -> FarmStatusSummary:
    return FarmStatusSummary(
        date=datetime(2025, 6, 3, 9, 0, tzinfo=UTC),
        total_crop_areas=3,
        crop_area_breakdown={"Greenhouse": 2, "Outdoor Beds": 1},
        active_crops=["Basil", "Tomatoes"],
        bed_status_counts=BedStatusCounts(available=4, planted=2, growing=3, harvesting=1, total=12),
        upcoming_tasks=[
            TaskSummary(title="Trellis", due_date=datetime(2025, 6, 5, tzinfo=UTC), priority=TaskPriorityEnum.high),
            TaskSummary(title="Weed", priority=TaskPriorityEnum.low),
        ],
        recent_harvests=[
            HarvestSummary(crop_name="Basil", quantity=2.5, unit=HarvestUnitEnum.kilograms, date=datetime(2025, 6, 2, tzinfo=UTC)),
        ],
    )


def _chat_service(service: FarmDataService, redis_client: Any = None, **overrides: Any) -> ChatService:
    settings = Settings(anthropic_api_key="test-key", **overrides)
    return ChatService(service, redis_client, settings=settings)


@pytest.mark.parametrize(
    "message,expected",
    [
        ("Give me an overview", True),
        ("How is the greenhouse doing?", True),
        ("What's happening TODAY", True),
        ("Tell me about bed A1", True),
        ("When should I plant garlic?", False),
        ("thanks!", False),
    ],
)
def test_status_query_detection(message: str, expected: bool) -> None:
    assert ChatService.is_status_query(message) is expected


def test_format_status_lists_every_section() -> None:
    text = ChatService.format_status(_summary())

    assert text.startswith("CURRENT FARM STATUS (as of Jun 03, 2025):")
    assert "CROP AREAS (3 total):" in text
    assert "  - 2 Greenhouses" in text
    assert "  - 1 Outdoor Beds" in text
    assert "CURRENTLY GROWING (2 crops):\n  Basil, Tomatoes" in text
    assert "  - Ready for harvest: 1" in text
    assert "  1. Trellis (due Jun 05, 2025) [high]" in text
    assert "  2. Weed [low]" in text
    assert "2.5 kg Basil" in text


def test_format_status_empty_farm() -> None:
    summary = FarmStatusSummary(
        date=datetime(2025, 6, 3, tzinfo=UTC),
        total_crop_areas=0,
        bed_status_counts=BedStatusCounts(),
    )
    text = ChatService.format_status(summary)

    assert "CURRENTLY GROWING: No active crops" in text
    assert "UPCOMING TASKS: No pending tasks" in text
    assert "RECENT HARVESTS" not in text


def test_build_messages_orders_context_history_and_question(service: FarmDataService) -> None:
    chat = _chat_service(service, chat_history_limit=2)
    history = [
        ChatMessage(role=ChatRole.user, content="first"),
        ChatMessage(role=ChatRole.assistant, content="second"),
        ChatMessage(role=ChatRole.system, content="ignored"),
        ChatMessage(role=ChatRole.user, content="third"),
    ]

    messages = chat.build_messages(context="CTX", history=history, message="latest")

    assert messages[0] == {"role": "user", "content": "Here is the current farm data:\n\nCTX"}
    assert messages[1] == {"role": "assistant", "content": CONTEXT_ACK}
    assert messages[2:] == [
        {"role": "assistant", "content": "second"},
        {"role": "user", "content": "third"},
        {"role": "user", "content": "latest"},
    ]


@pytest.mark.asyncio
async def test_missing_api_key(service: FarmDataService) -> None:
    chat = ChatService(service, settings=Settings(anthropic_api_key=""))
    with pytest.raises(ChatError) as exc_info:
        await chat.call_llm([{"role": "user", "content": "hi"}])
    assert exc_info.value.code == ChatErrorCode.no_api_key


@pytest.mark.asyncio
async def test_call_llm_returns_first_text_block(service: FarmDataService, monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, Any] = {}

    async def fake_post(self: httpx.AsyncClient, url: str, headers: dict[str, str], json: dict[str, Any]) -> httpx.Response:
        captured.update(url=url, headers=headers, body=json)
        return httpx.Response(200, json={"content": [{"type": "text", "text": "  Two beds need water.  "}]})

    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post)
    chat = _chat_service(service, chat_max_tokens=256)

    text = await chat.call_llm([{"role": "user", "content": "hi"}])

    assert text == "Two beds need water."
    assert captured["headers"]["x-api-key"] == "test-key"
    assert captured["headers"]["anthropic-version"] == "2023-06-01"
    assert captured["body"]["max_tokens"] == 256
    assert "farm management application" in captured["body"]["system"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response,code",
    [
        (httpx.Response(500, text="overloaded"), ChatErrorCode.network_error),
        (httpx.Response(200, json={"content": []}), ChatErrorCode.invalid_response),
        (httpx.Response(200, text="not json"), ChatErrorCode.invalid_response),
    ],
)
async def test_call_llm_failures(
    service: FarmDataService,
    monkeypatch: pytest.MonkeyPatch,
    response: httpx.Response,
    code: ChatErrorCode,
) -> None:
    async def fake_post(self: httpx.AsyncClient, *args: Any, **kwargs: Any) -> httpx.Response:
        return response

    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post)
    with pytest.raises(ChatError) as exc_info:
        await _chat_service(service).call_llm([{"role": "user", "content": "hi"}])
    assert exc_info.value.code == code


@pytest.mark.asyncio
async def test_call_llm_transport_error(service: FarmDataService, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_post(self: httpx.AsyncClient, *args: Any, **kwargs: Any) -> httpx.Response:
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post)
    with pytest.raises(ChatError) as exc_info:
        await _chat_service(service).call_llm([{"role": "user", "content": "hi"}])

    assert exc_info.value.code == ChatErrorCode.network_error
    assert exc_info.value.message == "Network error: connection refused"


@pytest.mark.asyncio
async def test_status_summary_is_cached_in_redis(service: FarmDataService, fake_redis: Any) -> None:
    farm = await service.create_farm(FarmCreate(name="Hillside"))
    await service.create_crop_area(CropAreaCreate(name="House 1", type=CropAreaTypeEnum.greenhouse))
    chat = _chat_service(service, fake_redis, status_summary_cache_seconds=45)

    summary = await chat.get_status_summary()

    assert summary.total_crop_areas == 1
    key, ttl, payload = fake_redis.setex.await_args.args
    assert key == f"farm:{farm.id}:status_summary"
    assert ttl == 45

    fake_redis.get.return_value = payload
    fake_redis.setex.reset_mock()
    cached = await chat.get_status_summary()

    assert cached.total_crop_areas == 1
    fake_redis.setex.assert_not_awaited()


@pytest.mark.asyncio
async def test_status_summary_survives_redis_outage(service: FarmDataService, fake_redis: Any) -> None:
    await service.create_farm(FarmCreate(name="Hillside"))
    await service.create_crop_area(CropAreaCreate(name="House 1", type=CropAreaTypeEnum.greenhouse))
    fake_redis.get.side_effect = RedisConnectionError("connection refused")
    fake_redis.setex.side_effect = RedisConnectionError("connection refused")
    chat = _chat_service(service, fake_redis)

    summary = await chat.get_status_summary()

    assert summary.total_crop_areas == 1
    fake_redis.get.assert_awaited_once()
    fake_redis.setex.assert_awaited_once()


@pytest.mark.asyncio
async def test_unknown_farm_has_no_data(store: Any, actor: Any, settings: Settings) -> None:
    service = FarmDataService(store, farm_id=uuid4(), actor=actor, settings=settings)
    with pytest.raises(ChatError) as exc_info:
        await ChatService(service, settings=settings).get_status_summary()
    assert exc_info.value.code == ChatErrorCode.no_farm_data


@pytest.mark.asyncio
async def test_send_message_uses_placeholder_for_small_talk(
    service: FarmDataService,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    await service.create_farm(FarmCreate(name="Hillside"))
    seen: list[list[dict[str, str]]] = []

    async def fake_call(self: ChatService, messages: list[dict[str, str]]) -> str:
        seen.append(messages)
        return "Plant garlic in the fall."

    monkeypatch.setattr(ChatService, "call_llm", fake_call)
    history = [ChatMessage(role=ChatRole.user, content="hello"), ChatMessage(role=ChatRole.assistant, content="hi")]

    response = await _chat_service(service).send_message("When do I plant garlic?", history)

    assert response.used_farm_status is False
    assert PLACEHOLDER_CONTEXT in seen[0][0]["content"]
    assert response.reply.content == "Plant garlic in the fall."
    assert [message.role for message in response.messages] == ["user", "assistant", "user", "assistant"]


@pytest.mark.asyncio
async def test_chat_endpoint(client: AsyncClient, store: Any, monkeypatch: pytest.MonkeyPatch) -> None:
    created = await client.post("/api/v1/farms", json={"name": "Hillside"})
    farm_id = created.json()["id"]

    async def fake_call(self: ChatService, messages: list[dict[str, str]]) -> str:
        assert "CURRENT FARM STATUS" in messages[0]["content"]
        return "All quiet on the farm."

    monkeypatch.setattr(ChatService, "call_llm", fake_call)

    response = await client.post(f"/api/v1/chat/{farm_id}", json={"message": "Give me a status overview"})

    assert response.status_code == 200
    body = response.json()
    assert body["farm_id"] == farm_id
    assert body["used_farm_status"] is True
    assert body["reply"]["content"] == "All quiet on the farm."


@pytest.mark.asyncio
async def test_chat_endpoint_maps_chat_errors(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_call(self: ChatService, messages: list[dict[str, str]]) -> str:
        raise ChatError(ChatErrorCode.no_api_key)

    monkeypatch.setattr(ChatService, "call_llm", fake_call)

    response = await client.post(f"/api/v1/chat/{uuid4()}", json={"message": "hello"})

    assert response.status_code == 503
    assert response.json()["detail"]["error"] == "no_api_key"
