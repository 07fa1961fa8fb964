"""Schema-guided generation backed by OpenAI structured output.

:class:`OpenAIGenerator` implements the
:class:`~reciperun.protocols.StructuredGenerator` protocol: given a Pydantic
schema and a prompt it returns a ``Result`` holding an instance of that
schema. Every provider failure, including missing credentials, timeouts and
non-conforming output, comes back as an :class:`UpstreamServiceError`.

Example:
    >>> generator = OpenAIGenerator(model="gpt-4o-mini")
    >>> result = await generator.generate(CompletenessAssessment, prompt)
    >>> if result.ok:
    ...     print(result.data.reason)
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Final, TypeVar

from openai import AsyncOpenAI, OpenAIError
from openai.types.responses import EasyInputMessageParam
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .exceptions import UpstreamServiceError
from .result import Result, failure, success

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

API_KEY_ENV: Final[str] = "OPENAI_API_KEY"


class OpenAIGenerator:
    """Generates schema-conforming objects with the OpenAI Responses API.

    The client is created lazily on first use so that a missing API key is
    reported as a failed result instead of an error at wiring time. The
    client never retries; a failed call is a failed result.

    Attributes:
        model: OpenAI model name
        temperature: Sampling temperature, ignored for gpt-5 models
        timeout: Seconds allowed per call
    """

    DEFAULT_MODEL: Final[str] = "gpt-4o-mini"
    DEFAULT_TIMEOUT: Final[float] = 120.0

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.0,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the generator.

        Args:
            client: Async OpenAI client (created on first use if not provided)
            model: OpenAI model to use
            temperature: Sampling temperature
            timeout: Seconds allowed per generation call
        """
        self._client = client
        self.model = model
        self.temperature = temperature
        self.timeout = timeout

    def _get_client(self) -> AsyncOpenAI | None:
        if self._client is None and os.environ.get(API_KEY_ENV):
            self._client = AsyncOpenAI(timeout=self.timeout, max_retries=0)
        return self._client

    async def generate(self, schema: type[ModelT], prompt: str) -> Result[ModelT]:
        """Generate an instance of ``schema`` from ``prompt``.

        Args:
            schema: Pydantic model describing the expected output
            prompt: Instructions and content for the model

        Returns:
            Result with the parsed schema instance, or an UpstreamServiceError
        """
        client = self._get_client()
        if client is None:
            return failure(UpstreamServiceError(f"Missing {API_KEY_ENV}", schema=schema.__name__))

        request: dict[str, Any] = {
            "model": self.model,
            "input": [EasyInputMessageParam(role="user", content=prompt)],
            "text_format": schema,
        }
        # gpt-5 models only support the default temperature
        if not self.model.startswith("gpt-5"):
            request["temperature"] = self.temperature

        logger.info(
            f"Generating {schema.__name__} with {self.model} (prompt length: {len(prompt)} chars)"
        )
        try:
            async with asyncio.timeout(self.timeout):
                response = await client.responses.parse(**request)
        except TimeoutError:
            logger.error(f"Generation of {schema.__name__} timed out after {self.timeout}s")
            return failure(
                UpstreamServiceError(
                    "Generation call timed out", schema=schema.__name__, timeout=self.timeout
                )
            )
        except PydanticValidationError as e:
            logger.error(f"Generation of {schema.__name__} returned non-conforming output: {e}")
            return failure(
                UpstreamServiceError(
                    "Generation returned output that does not match the schema",
                    schema=schema.__name__,
                    error=str(e),
                )
            )
        except OpenAIError as e:
            logger.error(f"Generation of {schema.__name__} failed with {self.model}: {e}")
            return failure(
                UpstreamServiceError(
                    "Generation call failed", schema=schema.__name__, error=str(e)
                )
            )

        parsed = response.output_parsed
        if parsed is None:
            return failure(
                UpstreamServiceError(
                    "Generation returned no structured output", schema=schema.__name__
                )
            )

        self._log_usage(response)
        return success(parsed)

    def _log_usage(self, response: Any) -> None:
        usage = getattr(response, "usage", None)
        if not usage:
            return
        input_tokens = getattr(usage, "input_tokens", None)
        output_tokens = getattr(usage, "output_tokens", None)
        if isinstance(input_tokens, int) and isinstance(output_tokens, int):
            logger.info(
                f"Token usage - Input: {input_tokens}, Output: {output_tokens}, "
                f"Total: {input_tokens + output_tokens}"
            )
