"""
Configuration cache - profile content and model name loaded once per process
"""

from loguru import logger

from portfolio_agent.agents.ask.contracts import ParameterSource
from portfolio_agent.models.domain import ProfileConfig, PromptContext
from portfolio_agent.utils.once import OnceGuard


def normalize_prefix(prefix: str) -> str:
    """Trim whitespace and trailing slashes; an empty result is rejected."""
    prefix = (prefix or "").strip().rstrip("/")
    if not prefix:
        raise ValueError("parameter prefix must not be empty")
    return prefix


class ConfigurationCache:
    """
    Lazily loads resume, interests, pinned prompt and model name.

    All four parameters are fetched in one episode. If any fetch fails the
    episode fails as a whole, nothing is cached, and the next call retries.
    Concurrent first callers share the single in-flight episode.
    """

    def __init__(self, params: ParameterSource, param_prefix: str):
        if params is None:
            raise ValueError("parameter source must not be None")
        self._params = params
        self.param_prefix = normalize_prefix(param_prefix)
        self._guard: OnceGuard[ProfileConfig] = OnceGuard(self._load, name="profile configuration")

    @property
    def loaded(self) -> bool:
        return self._guard.loaded

    async def ensure_loaded(self) -> ProfileConfig:
        """Return the cached configuration, loading it on first use."""
        return await self._guard.get()

    def parameter_name(self, suffix: str) -> str:
        return f"{self.param_prefix}/{suffix}"

    async def _load(self) -> ProfileConfig:
        logger.info(f"Loading profile configuration from {self.param_prefix}")
        resume = await self._fetch("resume")
        interests = await self._fetch("interests")
        pinned_prompt = await self._fetch("pinned_prompt")
        openai_model = await self._fetch("config/openai_model")

        return ProfileConfig(
            prompt_context=PromptContext(
                pinned_prompt=pinned_prompt,
                resume=resume,
                interests=interests,
            ),
            openai_model=openai_model.strip(),
        )

    async def _fetch(self, suffix: str) -> str:
        name = self.parameter_name(suffix)
        try:
            return await self._params.get_parameter(name)
        except Exception as e:
            logger.warning(f"Failed to load parameter {name}: {e}")
            raise
