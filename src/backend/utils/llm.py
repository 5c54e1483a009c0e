"""Thin async wrapper around the chat completions API, with tool support"""
from typing import Any, Dict, List, Optional
from src.backend.utils.llm_model_factory import LLMClientFactory


class LLM():
    def __init__(self, config, client=None):
        self.model = config['model_name']
        self.temperature = config.get('temperature', 0.2)
        self.client = client or LLMClientFactory.create_client(config)

    async def chat(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[str] = None,
    ):
        """Run one completion round and return the first choice's message."""
        kwargs = {}
        if tools:
            kwargs["tools"] = tools
            if tool_choice:
                kwargs["tool_choice"] = tool_choice
        response = await self.client.chat.completions.create(
            messages=messages,
            model=self.model,
            temperature=self.temperature,
            **kwargs,
        )
        return response.choices[0].message
