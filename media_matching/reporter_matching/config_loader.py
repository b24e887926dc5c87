# media_matching/reporter_matching/config_loader.py
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict
import logging

import yaml


logger = logging.getLogger(__name__)


class MatchingConfig:
    """
    OO wrapper around configuration/base.yaml.

    Usage:
        cfg = MatchingConfig()  # loads once
        system_prompt = cfg.get_prompt("justification")
        llm_cfg = cfg.get_llm_config()
        chroma_path = cfg.resolve_path("chroma_path", "chroma_db")
    """

    def __init__(self, config_path: Path | None = None) -> None:
        # Discover project root: folder containing configuration/
        self.root_dir = Path(__file__).resolve().parents[2]
        logger.debug("Resolved project root for MatchingConfig: %s", self.root_dir)

        self.config_path = config_path or (self.root_dir / "configuration" / "base.yaml")
        logger.info("Loading matching configuration from: %s", self.config_path)

        if not self.config_path.exists():
            logger.error("Configuration file not found: %s", self.config_path)
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}"
            )

        with self.config_path.open("r", encoding="utf-8") as f:
            self._config: Dict[str, Any] = yaml.safe_load(f) or {}

        logger.debug(
            "Full configuration loaded. Top-level keys: %s",
            list(self._config.keys()),
        )

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._config.get(name, {}) or {}
        if not isinstance(section, dict):
            raise ValueError(
                f"Configuration section '{name}' in {self.config_path} must be a mapping."
            )
        return section

    # Public API

    def get_paths_config(self) -> Dict[str, Any]:
        return self._section("paths")

    def get_vector_db_config(self) -> Dict[str, Any]:
        return self._section("vector_db")

    def get_matching_config(self) -> Dict[str, Any]:
        return self._section("matching")

    def get_enrichment_config(self) -> Dict[str, Any]:
        return self._section("enrichment")

    def get_api_config(self) -> Dict[str, Any]:
        return self._section("api")

    def get_llm_config(self) -> Dict[str, Any]:
        llm_cfg = self._section("llm")
        logger.debug("Loaded LLM config: %s", llm_cfg)
        return llm_cfg

    def resolve_path(self, key: str, default: str) -> Path:
        """
        Resolve a path from the `paths` block relative to the project root.
        Absolute paths in the YAML are returned unchanged.
        """
        raw = self.get_paths_config().get(key, default)
        path = Path(raw)
        if not path.is_absolute():
            path = self.root_dir / path
        logger.debug("Resolved path '%s' -> %s", key, path)
        return path

    def get_prompt(self, prompt_name: str) -> str:
        """
        prompt_name: 'justification'
        Returns the system prompt string configured under `prompts`.
        """
        prompts = self._section("prompts")
        prompt_cfg = prompts.get(prompt_name, {}) or {}
        system_prompt = prompt_cfg.get("system")

        if not system_prompt:
            logger.error(
                "No system prompt configured for '%s' in %s",
                prompt_name,
                self.config_path,
            )
            raise ValueError(
                f"No system prompt configured for '{prompt_name}' "
                f"in {self.config_path}."
            )

        return system_prompt


@lru_cache(maxsize=1)
def get_config() -> MatchingConfig:
    """Process-wide configuration loaded from the default location."""
    return MatchingConfig()
