import json
import os
from typing import Any, Iterator, Optional

from openai import OpenAI

from docrag.adapters.base import BaseLLM
from docrag.adapters.utils import create_session_with_pooling
from docrag.models import Completion, TokenUsage

DEFAULT_TEMPERATURE = 0.7
DEFAULT_TIMEOUT = 120.0


class OpenAILLM(BaseLLM):
    """OpenAI chat completions provider."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: Optional[int] = None,
        timeout: float = DEFAULT_TIMEOUT,
        **kwargs: Any,
    ):
        api_key = kwargs.pop("api_key", None) or os.environ.get("OPENAI_API_KEY")
        base_url = kwargs.pop("base_url", None)
        super().__init__(model, **kwargs)

        self.client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout)
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def supports_streaming(self) -> bool:
        return True

    def _get_completion_params(self, prompt: str, **kwargs: Any) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": kwargs.get("temperature", self.temperature),
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
        }

    def generate(self, prompt: str, **kwargs: Any) -> str:
        return self.complete(prompt, **kwargs).text

    def complete(self, prompt: str, **kwargs: Any) -> Completion:
        response = self.client.chat.completions.create(
            **self._get_completion_params(prompt, **kwargs)
        )
        usage = response.usage
        return Completion(
            text=response.choices[0].message.content or "",
            usage=TokenUsage(
                input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            ),
        )

    def stream(self, prompt: str, **kwargs: Any) -> Iterator[str]:
        params = self._get_completion_params(prompt, **kwargs)
        with self.client.chat.completions.create(**params, stream=True) as response:
            for chunk in response:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content


class OllamaLLM(BaseLLM):
    """Ollama local LLM provider with connection pooling."""

    def __init__(
        self,
        model: str = "llama3",
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: Optional[int] = None,
        base_url: str = "http://localhost:11434",
        timeout: float = DEFAULT_TIMEOUT,
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.session = create_session_with_pooling()

    @property
    def supports_streaming(self) -> bool:
        return True

    def _build_payload(self, prompt: str, stream: bool, **kwargs: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": stream,
            "options": {"temperature": kwargs.get("temperature", self.temperature)},
        }
        max_tokens = kwargs.get("max_tokens", self.max_tokens)
        if max_tokens:
            payload["options"]["num_predict"] = max_tokens
        return payload

    def generate(self, prompt: str, **kwargs: Any) -> str:
        return self.complete(prompt, **kwargs).text

    def complete(self, prompt: str, **kwargs: Any) -> Completion:
        response = self.session.post(
            f"{self.base_url}/api/generate",
            json=self._build_payload(prompt, stream=False, **kwargs),
            timeout=self.timeout,
        )
        response.raise_for_status()
        data = response.json()
        return Completion(
            text=data["response"],
            usage=TokenUsage(
                input_tokens=data.get("prompt_eval_count", 0),
                output_tokens=data.get("eval_count", 0),
            ),
        )

    def stream(self, prompt: str, **kwargs: Any) -> Iterator[str]:
        # Leaving the with-block closes the connection, which stops generation.
        with self.session.post(
            f"{self.base_url}/api/generate",
            json=self._build_payload(prompt, stream=True, **kwargs),
            timeout=self.timeout,
            stream=True,
        ) as response:
            response.raise_for_status()
            for line in response.iter_lines():
                if not line:
                    continue
                data = json.loads(line)
                if data.get("response"):
                    yield data["response"]
                if data.get("done"):
                    break
