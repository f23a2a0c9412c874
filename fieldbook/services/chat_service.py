"""Farm chat assistant: status detection, context assembly, completion call."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from fieldbook.config import Settings, get_settings
from fieldbook.errors import ChatError, ChatErrorCode
from fieldbook.schemas.chat import ChatMessage, ChatResponse, ChatRole
from fieldbook.schemas.summary import FarmStatusSummary
from fieldbook.services.farm_data_service import FarmDataService

logger = structlog.get_logger("fieldbook.chat")

STATUS_KEYWORDS = (
	"status",
	"how is",
	"overview",
	"summary",
	"what's happening",
	"current",
	"today",
	"give me",
	"show me",
	"tell me about",
)

PLACEHOLDER_CONTEXT = "Farm context available. Ask me about your farm operations."
CONTEXT_ACK = "I've received the farm data and I'm ready to help you. What would you like to know?"

SYSTEM_PROMPT = """You are an AI assistant for a farm management application. Your role is to help farmers understand their farm operations, track progress, and make informed decisions.

When responding:
- Be concise but friendly and conversational
- Use clear, practical language that farmers understand
- Provide specific numbers and data when available
- Offer helpful suggestions and insights
- Ask clarifying questions when needed
- Format your responses in a readable way with line breaks and bullet points when appropriate
- When discussing tasks, be encouraging and ask if the farmer wants to add more

You have access to real-time farm data including:
- Crop areas (greenhouses, outdoor fields, etc.)
- Bed status (available, planted, growing, harvesting)
- Active crops being grown
- Upcoming tasks and priorities
- Harvest information

Always provide accurate information based on the data provided to you."""


def _format_date(value: Any) -> str:
	return value.strftime("%b %d, %Y")


class ChatService:
	def __init__(
		self,
		farm_data: FarmDataService,
		redis_client: Redis | None = None,
		settings: Settings | None = None,
	):
		self.farm_data = farm_data
		self.redis_client = redis_client
		self.settings = settings or get_settings()

	@staticmethod
	def is_status_query(message: str) -> bool:
		normalized = message.lower()
		return any(keyword in normalized for keyword in STATUS_KEYWORDS)

	async def send_message(self, message: str, history: list[ChatMessage]) -> ChatResponse:
		farm_id = self.farm_data.farm_id
		if farm_id is None:
			raise ChatError(ChatErrorCode.no_farm_data)

		status_query = self.is_status_query(message)
		context = await self.get_farm_context(include_full_status=status_query)
		messages = self.build_messages(context=context, history=history, message=message)
		text = await self.call_llm(messages)

		user_turn = ChatMessage(role=ChatRole.user, content=message)
		reply = ChatMessage(role=ChatRole.assistant, content=text)
		logger.info(
			"chat_completion",
			farm_id=str(farm_id),
			status_query=status_query,
			history=len(history),
			reply_chars=len(text),
		)
		return ChatResponse(
			farm_id=str(farm_id),
			reply=reply,
			messages=[*history, user_turn, reply],
			used_farm_status=status_query,
		)

	async def get_farm_context(self, *, include_full_status: bool) -> str:
		if not include_full_status:
			return PLACEHOLDER_CONTEXT
		summary = await self.get_status_summary()
		return self.format_status(summary)

	async def get_status_summary(self) -> FarmStatusSummary:
		"""Current farm summary, served from Redis for a short while when available."""
		farm_id = self.farm_data.farm_id
		if farm_id is None:
			raise ChatError(ChatErrorCode.no_farm_data)
		try:
			await self.farm_data.get_farm(farm_id)
		except LookupError as exc:
			raise ChatError(ChatErrorCode.no_farm_data, detail=str(exc)) from exc

		key = f"farm:{farm_id}:status_summary"
		if self.redis_client is not None:
			try:
				cached = await self.redis_client.get(key)
			except RedisError as exc:
				logger.warning("status_summary_cache_unavailable", farm_id=str(farm_id), error=str(exc))
				cached = None
			if cached:
				return FarmStatusSummary.model_validate_json(cached)

		summary = await self.farm_data.get_farm_status_summary()
		if self.redis_client is not None:
			try:
				await self.redis_client.setex(
					key,
					self.settings.status_summary_cache_seconds,
					summary.model_dump_json(),
				)
			except RedisError as exc:
				logger.warning("status_summary_cache_unavailable", farm_id=str(farm_id), error=str(exc))
		return summary

	@staticmethod
	def format_status(summary: FarmStatusSummary) -> str:
		lines = [f"CURRENT FARM STATUS (as of {_format_date(summary.date)}):", ""]

		lines.append(f"CROP AREAS ({summary.total_crop_areas} total):")
		for area_type, count in sorted(summary.crop_area_breakdown.items()):
			lines.append(f"  - {count} {area_type}{'' if count == 1 else 's'}")
		lines.append("")

		if summary.active_crops:
			lines.append(f"CURRENTLY GROWING ({len(summary.active_crops)} crops):")
			lines.append("  " + ", ".join(summary.active_crops))
		else:
			lines.append("CURRENTLY GROWING: No active crops")
		lines.append("")

		counts = summary.bed_status_counts
		lines.extend(
			[
				"BED STATUS:",
				f"  - Total beds: {counts.total}",
				f"  - Available for planting: {counts.available}",
				f"  - Planted: {counts.planted}",
				f"  - Growing: {counts.growing}",
				f"  - Ready for harvest: {counts.harvesting}",
				"",
			]
		)

		if summary.upcoming_tasks:
			lines.append(f"UPCOMING TASKS ({len(summary.upcoming_tasks)}):")
			for index, task in enumerate(summary.upcoming_tasks, start=1):
				due = f" (due {_format_date(task.due_date)})" if task.due_date else ""
				lines.append(f"  {index}. {task.title}{due} [{task.priority.value}]")
		else:
			lines.append("UPCOMING TASKS: No pending tasks")

		if summary.recent_harvests:
			lines.append("")
			lines.append("RECENT HARVESTS:")
			for harvest in summary.recent_harvests:
				lines.append(
					f"  - {_format_date(harvest.date)}: {harvest.quantity:g} {harvest.unit.short_name} {harvest.crop_name}"
				)

		return "\n".join(lines) + "\n"

	def build_messages(
		self,
		*,
		context: str,
		history: list[ChatMessage],
		message: str,
	) -> list[dict[str, str]]:
		messages = [
			{"role": "user", "content": f"Here is the current farm data:\n\n{context}"},
			{"role": "assistant", "content": CONTEXT_ACK},
		]
		turns = [item for item in history if item.role != ChatRole.system]
		limit = self.settings.chat_history_limit
		if limit > 0:
			turns = turns[-limit:]
		else:
			turns = []
		messages.extend({"role": item.role.value, "content": item.content} for item in turns)
		messages.append({"role": "user", "content": message})
		return messages

	async def call_llm(self, messages: list[dict[str, str]]) -> str:
		if not self.settings.anthropic_api_key:
			raise ChatError(ChatErrorCode.no_api_key)

		headers = {
			"x-api-key": self.settings.anthropic_api_key,
			"anthropic-version": "2023-06-01",
			"content-type": "application/json",
		}
		body = {
			"model": self.settings.anthropic_model,
			"max_tokens": self.settings.chat_max_tokens,
			"system": SYSTEM_PROMPT,
			"messages": messages,
		}

		try:
			async with httpx.AsyncClient(timeout=self.settings.anthropic_timeout_seconds) as client:
				response = await client.post(self.settings.anthropic_base_url, headers=headers, json=body)
		except httpx.HTTPError as exc:
			logger.error("chat_completion_unreachable", error=str(exc))
			raise ChatError(ChatErrorCode.network_error, detail=str(exc)) from exc

		if response.status_code != 200:
			logger.error("chat_completion_rejected", status_code=response.status_code, body=response.text[:500])
			raise ChatError(ChatErrorCode.network_error, detail=f"HTTP {response.status_code}")

		try:
			payload = response.json()
		except ValueError as exc:
			raise ChatError(ChatErrorCode.invalid_response) from exc

		content = payload.get("content") if isinstance(payload, dict) else None
		if not isinstance(content, list) or not content or not isinstance(content[0], dict):
			raise ChatError(ChatErrorCode.invalid_response)
		text = content[0].get("text")
		if not isinstance(text, str) or not text.strip():
			raise ChatError(ChatErrorCode.invalid_response)
		return text.strip()
