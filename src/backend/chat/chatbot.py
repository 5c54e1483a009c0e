"""AI assistant for the chat widget.

One request is one exchange: the customer's text goes to the model with the
two flight actions declared. A plain answer is returned as-is; if the model
asks for an action, the first request is run and its result goes back to the
model for the final wording.
"""
import json
import logging
from typing import Any, Dict, List, Optional
from src.backend.chat.actions import FlightActions
from src.backend.utils.llm import LLM
from src.backend.utils.prompt_loader import PromptLoader

logger = logging.getLogger(__name__)


class ChatbotService:
    def __init__(self, llm: LLM, actions: FlightActions, prompt_name: str = "chatbot"):
        self.llm = llm
        self.actions = actions
        self.prompts = PromptLoader.load_prompts(prompt_name)

    @property
    def apology(self) -> str:
        return self.prompts["apology"]

    def _system_prompt(self, customer_id: Optional[str]) -> str:
        if customer_id:
            context = self.prompts["customer_context"].format(
                customer_id=customer_id
            )
        else:
            context = self.prompts["unknown_customer_context"]
        return f"{self.prompts['sys_prompt']}\n{context}"

    async def reply(self, message: str, customer_id: Optional[str] = None) -> str:
        """Answer one customer message. Any error propagates to the caller."""
        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": self._system_prompt(customer_id)},
            {"role": "user", "content": message},
        ]
        tools = self.actions.tool_declarations()
        first = await self.llm.chat(messages, tools=tools)

        tool_calls = getattr(first, "tool_calls", None) or []
        if not tool_calls:
            return first.content or ""

        if len(tool_calls) > 1:
            logger.info(f"Model requested {len(tool_calls)} actions, "
                        "running only the first")
        call = tool_calls[0]
        result = await self.actions.dispatch(
            call.function.name, call.function.arguments
        )
        logger.info(f"Action {call.function.name} result: {result}")

        messages.append({
            "role": "assistant",
            "content": first.content,
            "tool_calls": [{
                "id": call.id,
                "type": "function",
                "function": {
                    "name": call.function.name,
                    "arguments": call.function.arguments,
                },
            }],
        })
        messages.append({
            "role": "tool",
            "tool_call_id": call.id,
            "content": json.dumps(result),
        })
        final = await self.llm.chat(messages, tools=tools, tool_choice="none")
        return final.content or ""
