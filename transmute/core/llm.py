import json
import logging
from abc import abstractmethod
from typing import Any, Dict, List, Optional

import litellm
from litellm.types.utils import ModelResponse
from pydantic import BaseModel, Field, SecretStr

from transmute.core.provider import Provider


class ProviderRequest(BaseModel):
    """Everything a provider needs to answer one transformation."""

    provider: Provider
    model: str
    messages: List[Dict[str, Any]]
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    tools: List[Dict[str, Any]] = Field(default_factory=list)
    output_schema: Optional[Dict[str, Any]] = None
    max_tokens: Optional[int] = None
    api_base: Optional[str] = None
    api_key: Optional[SecretStr] = None
    timeout: Optional[int] = None

    @property
    def structured(self) -> bool:
        return self.output_schema is not None


class LLM:
    @abstractmethod
    def completion(self, request: ProviderRequest) -> Any:
        """Return a response exposing choices[0].message.content."""
        pass


def format_tools(tools: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Convert {name, description, parameters} tool definitions to the OpenAI format litellm expects."""
    formatted = []
    for tool in tools:
        if tool.get("type") == "function":
            formatted.append(tool)
            continue
        formatted.append(
            {
                "type": "function",
                "function": {
                    "name": tool["name"],
                    "description": tool.get("description", ""),
                    "parameters": tool.get(
                        "parameters", {"type": "object", "properties": {}}
                    ),
                },
            }
        )
    return formatted


def build_response_format(schema: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {
            "name": schema.get("title") or "output",
            "schema": schema,
        },
    }


class LiteLLM(LLM):
    """Provider adapter routing every request through litellm.completion."""

    def __init__(self, extra_args: Optional[Dict[str, Any]] = None):
        self.extra_args = extra_args or {}

    def completion(self, request: ProviderRequest) -> ModelResponse:
        litellm_model = request.provider.to_litellm_model(request.model)
        args: Dict[str, Any] = dict(self.extra_args)

        if request.temperature is not None:
            args["temperature"] = request.temperature
        if request.top_p is not None:
            args["top_p"] = request.top_p
        if request.max_tokens is not None:
            args["max_tokens"] = request.max_tokens
        if request.timeout is not None:
            args["timeout"] = request.timeout
        if request.api_base:
            args["api_base"] = request.api_base
        if request.api_key is not None:
            args["api_key"] = request.api_key.get_secret_value()
        if request.tools:
            args["tools"] = format_tools(request.tools)
            args["tool_choice"] = "auto"
        if request.output_schema is not None:
            args["response_format"] = build_response_format(request.output_schema)

        logging.debug(
            f"Calling {litellm_model} with {len(request.messages)} messages (structured={request.structured})"
        )
        result = litellm.completion(
            model=litellm_model,
            messages=request.messages,
            drop_params=True,
            **args,
        )

        if isinstance(result, ModelResponse):
            return result
        raise Exception(f"Unexpected type returned by the LLM {type(result)}")


def parse_llm_json_response(raw_text: str) -> Any:
    """Parse JSON from an LLM response, stripping markdown code fences.

    Raises:
        json.JSONDecodeError: If the text cannot be parsed as JSON
    """
    content = raw_text.strip()

    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else content[3:]

    if content.endswith("```"):
        content = content.rsplit("```", 1)[0]

    return json.loads(content.strip())


def get_message_content(response: Any) -> Optional[str]:
    return response.choices[0].message.content  # type: ignore
