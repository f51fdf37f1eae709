from typing import Any, Dict, List, Optional
from relay.core.exceptions import ExternalAPIException
from relay.external.base_client import ExternalAPIClient


class ChatClient(ExternalAPIClient):
    """Client for an OpenAI-compatible chat completions API (the "Tina" assistant)."""

    service_name = "Chat API"

    @property
    def base_url(self) -> str:
        return self.settings.CHAT_API_URL

    @property
    def credential(self) -> str:
        return self.settings.CHAT_API_KEY

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.credential}",
        }

    def build_messages(self, query: str, context: Optional[str] = None) -> List[Dict[str, str]]:
        system_prompt = self.settings.CHAT_SYSTEM_PROMPT
        if context:
            system_prompt = f"{system_prompt}\n\nConversation so far:\n{context}"
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": query},
        ]

    async def complete(
        self,
        query: str,
        context: Optional[str] = None,
        user: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Ask the assistant for a reply.

        Args:
            query: The user's message
            context: Earlier conversation, as plain text
            user: Caller identifier forwarded to the provider

        Returns:
            reply text, model and token usage
        """
        body: Dict[str, Any] = {
            "model": self.settings.CHAT_MODEL,
            "messages": self.build_messages(query, context),
        }
        if user:
            body["user"] = user

        payload = await self._make_request(
            method="POST",
            endpoint="/chat/completions",
            data=body
        )

        choices = payload.get("choices") or []
        if not choices:
            raise ExternalAPIException(detail=f"{self.service_name} returned no reply")

        message = choices[0].get("message") or {}
        return {
            "reply": message.get("content", ""),
            "model": payload.get("model", self.settings.CHAT_MODEL),
            "usage": payload.get("usage") or {},
        }
