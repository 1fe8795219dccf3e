"""Shared fixtures: deterministic embedder and generator, in-memory store."""

import hashlib
import math
import re
import uuid

import pytest

from quartz_expert.config import Settings
from quartz_expert.core.vectorstore import VectorStore
from quartz_expert.exceptions import GenerationError
from quartz_expert.service import QuartzExpert

WORD_PATTERN = re.compile(r"\w+")


class FakeEmbedder:
    """Hashed bag-of-words vectors; identical text gives identical vectors."""

    def __init__(self, dimension: int = 64):
        self.dimension = dimension

    def embed(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        vector[0] = 0.1  # never the zero vector
        for word in WORD_PATTERN.findall(text.lower()):
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % (self.dimension - 1)
            vector[bucket + 1] += 1.0
        norm = math.sqrt(sum(v * v for v in vector))
        return [v / norm for v in vector]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [self.embed(text) for text in texts]


class FakeGenerator:
    """Records prompts and returns canned replies."""

    def __init__(self, answer: str = "Use a transformer plugin.", fail: bool = False):
        self.answer = answer
        self.fail = fail
        self.prompts: list[str] = []

    def generate(self, prompt, max_tokens=None, temperature=None) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise GenerationError("model unavailable")
        if "follow-up questions" in prompt:
            return (
                "1. How do I write an emitter?\n"
                "2. Can transformers change frontmatter?\n"
                "3. Where do plugins get registered?\n"
                "4. One more than asked for?"
            )
        return self.answer

    @property
    def answer_prompts(self) -> list[str]:
        return [p for p in self.prompts if "follow-up questions" not in p]


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        store_connection=":memory:",
        collection_name=f"test_{uuid.uuid4().hex[:12]}",
        llm_api_key="test-key",
        monitor_enabled=False,
    )


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def failing_generator():
    return FakeGenerator(fail=True)


@pytest.fixture
def store():
    vector_store = VectorStore(":memory:", collection_name=f"test_{uuid.uuid4().hex[:12]}")
    vector_store.ensure_ready()
    yield vector_store
    vector_store.close()


@pytest.fixture
def docs_tree(tmp_path):
    """Three small documents in a Quartz-like layout."""
    root = tmp_path / "docs"
    (root / "plugins").mkdir(parents=True)
    (root / "hosting").mkdir()
    (root / "plugins" / "custom.md").write_text(
        "---\n"
        "title: Custom Plugins\n"
        "tags: [plugins, development]\n"
        "---\n"
        "# Making your own plugins\n\n"
        "A transformer plugin rewrites markdown content as it is parsed.\n\n"
        "An emitter plugin writes the final output files for the site.\n",
        encoding="utf-8",
    )
    (root / "hosting" / "deploy.md").write_text(
        "# Hosting\n\nDeploy the built site to GitHub Pages or Netlify.\n",
        encoding="utf-8",
    )
    (root / "index.md").write_text(
        "# Welcome to Quartz\n\nQuartz turns markdown notes into a website.\n",
        encoding="utf-8",
    )
    return root


@pytest.fixture
def expert(settings, embedder, generator):
    service = QuartzExpert(settings, embedder=embedder, generator=generator).init()
    yield service
    service.close()
