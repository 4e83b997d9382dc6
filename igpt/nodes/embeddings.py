"""iGpt embeddings node: OpenAIEmbeddings pointed at the gateway's embedding API."""

from __future__ import annotations

import logging
from typing import Any

from langchain_openai import OpenAIEmbeddings
from pydantic import AliasChoices, Field, PrivateAttr

from igpt.config import settings
from igpt.gateway import GatewayOptions, ModelClientConfig
from igpt.nodes.base import GatewayNode
from igpt.tracing import EmbeddingsTracer

logger = logging.getLogger(__name__)

# (model id, output dimensions)
KNOWN_MODELS: list[tuple[str, int]] = [
    ("text-embedding-3-large", 3072),
    ("text-embedding-3-small", 1536),
    ("text-embedding-ada-002", 1536),
]

SUPPORTED_DIMENSIONS = (256, 512, 1024, 1536, 3072)


class EmbeddingsOptions(GatewayOptions):
    dimensions: int | None = None
    batch_size: int = Field(
        default=512, gt=0, validation_alias=AliasChoices("batch_size", "batchSize"),
    )
    strip_new_lines: bool = Field(
        default=True, validation_alias=AliasChoices("strip_new_lines", "stripNewLines"),
    )


class GatewayEmbeddings(OpenAIEmbeddings):
    """OpenAIEmbeddings that can replace new lines before embedding.

    Every call is timed and failures are logged under ``trace_name``.
    """

    strip_new_lines: bool = True
    trace_name: str = "embeddings"

    _tracer: EmbeddingsTracer | None = PrivateAttr(default=None)

    @property
    def tracer(self) -> EmbeddingsTracer:
        if self._tracer is None:
            self._tracer = EmbeddingsTracer(self.trace_name)
        return self._tracer

    def _prepare(self, texts: list[str]) -> list[str]:
        if not self.strip_new_lines:
            return texts
        return [t.replace("\n", " ") for t in texts]

    def embed_documents(self, texts: list[str], *args: Any, **kwargs: Any) -> list[list[float]]:
        with self.tracer.trace("embed_documents", len(texts)):
            return super().embed_documents(self._prepare(texts), *args, **kwargs)

    async def aembed_documents(
        self, texts: list[str], *args: Any, **kwargs: Any,
    ) -> list[list[float]]:
        with self.tracer.trace("aembed_documents", len(texts)):
            return await super().aembed_documents(self._prepare(texts), *args, **kwargs)

    def embed_query(self, text: str, **kwargs: Any) -> list[float]:
        with self.tracer.trace("embed_query", 1):
            return super().embed_query(self._prepare([text])[0], **kwargs)

    async def aembed_query(self, text: str, **kwargs: Any) -> list[float]:
        with self.tracer.trace("aembed_query", 1):
            return await super().aembed_query(self._prepare([text])[0], **kwargs)


class EmbeddingsIGpt(GatewayNode):
    name = "embeddingsiGpt"
    display_name = "Embeddings iGpt"
    default_model = "text-embedding-3-small"
    options_model = EmbeddingsOptions

    @property
    def provider_base_url(self) -> str:
        return settings.embeddings_base_url

    def create_client(self, config: ModelClientConfig) -> GatewayEmbeddings:
        kwargs = config.openai_client_kwargs()
        sampling = dict(config.sampling)

        kwargs["chunk_size"] = sampling.pop("batch_size", 512)
        kwargs["strip_new_lines"] = sampling.pop("strip_new_lines", True)
        kwargs["trace_name"] = self.name
        dimensions = sampling.pop("dimensions", None)
        if dimensions is not None:
            if dimensions not in SUPPORTED_DIMENSIONS:
                logger.warning("Unusual embedding dimensions %d for %s", dimensions, config.model_name)
            kwargs["dimensions"] = dimensions
        if sampling:
            kwargs["model_kwargs"] = sampling

        logger.info(
            "Creating OpenAIEmbeddings: model=%s, base_url=%s", config.model_name, config.base_url,
        )
        return GatewayEmbeddings(**kwargs)
