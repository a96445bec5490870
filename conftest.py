import re

import pytest

from backend.demo import create_demo_data
from betfunnels.config import GenerationSettings, Settings
from betfunnels.storage import JsonTemplateStore

CHUNK_SECTION = "# TRECHO DE REFERÊNCIA\n"
DEMO_GAME = "Fortune Ox"


def mimic_copy(stage: str, prompt: str) -> str:
    """A well-behaved model: returns the reference chunk with the briefed game."""
    if CHUNK_SECTION not in prompt:
        raise AssertionError(f"mimic_copy only answers chunk prompts, got stage={stage!r}")
    text = prompt.split(CHUNK_SECTION, 1)[1].strip()
    game = re.search(r"^Jogo: (.+)$", prompt, re.MULTILINE)
    if game:
        text = text.replace(DEMO_GAME, game.group(1).strip())
    return text


class StubLLM:
    """Deterministic LLM stand-in for tests.

    Provide a dict mapping stage name → list of responses (in call order).
    A key may also be the first word of a stage ("chunk" covers "chunk 3/7").
    Exceptions in a queue are raised instead of returned. Stages with no
    queued response fall back to ``default`` (mimic_copy unless None).
    """

    def __init__(self, responses: dict[str, list] | None = None, default=mimic_copy) -> None:
        self._queues: dict[str, list] = {k: list(v) for k, v in (responses or {}).items()}
        self._default = default
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, stage: str, prompt: str, options=None) -> str:
        self.calls.append((stage, prompt))
        queue = self._queues.get(stage) or self._queues.get(stage.split(" ")[0])
        if queue:
            item = queue.pop(0)
            if isinstance(item, BaseException):
                raise item
            return item
        if self._default is None:
            raise AssertionError(
                f"StubLLM: unexpected call to stage={stage!r} "
                f"(no responses queued). calls so far: {[s for s, _ in self.calls]}"
            )
        return self._default(stage, prompt)

    @property
    def stages(self) -> list[str]:
        return [stage for stage, _ in self.calls]

    def assert_exhausted(self) -> None:
        """Assert every queued response was consumed; a leftover means a missing LLM call."""
        leftover = {k: v for k, v in self._queues.items() if v}
        if leftover:
            raise AssertionError(f"StubLLM: unused responses remain: {leftover}")


@pytest.fixture
def store(tmp_path) -> JsonTemplateStore:
    """JSON store seeded with the demo master guide and casinos."""
    s = JsonTemplateStore(tmp_path / "data")
    create_demo_data(s)
    return s


@pytest.fixture
def llm() -> StubLLM:
    return StubLLM()


@pytest.fixture
def generation() -> GenerationSettings:
    return GenerationSettings()


@pytest.fixture
def settings(tmp_path, generation) -> Settings:
    return Settings(
        app_password="segredo",
        data_dir=tmp_path / "data",
        llm_format="echo",
        generation=generation,
    )


@pytest.fixture
def make_llm():
    """Factory for scripted StubLLM instances."""
    return StubLLM
