# tests/test_config_loader.py
import pytest

from media_matching.reporter_matching.config_loader import MatchingConfig


def test_default_configuration_loads():
    cfg = MatchingConfig()

    assert cfg.get_vector_db_config()["embedding_dimensions"] == 384
    assert cfg.get_vector_db_config()["distance_space"] == "cosine"
    assert cfg.get_matching_config()["default_limit"] == 15
    assert cfg.get_enrichment_config()["max_concurrency"] >= 1
    assert "PR expert" in cfg.get_prompt("justification")


def test_relative_paths_resolve_against_project_root():
    cfg = MatchingConfig()

    contacts_path = cfg.resolve_path("contacts_path", "configuration/reporters_contacts.yaml")

    assert contacts_path.is_absolute()
    assert contacts_path.exists()


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        MatchingConfig(config_path=tmp_path / "base.yaml")


def test_missing_prompt_and_bad_section(tmp_path):
    path = tmp_path / "base.yaml"
    path.write_text("api: not-a-mapping\nprompts: {}\n", encoding="utf-8")
    cfg = MatchingConfig(config_path=path)

    with pytest.raises(ValueError):
        cfg.get_prompt("justification")
    with pytest.raises(ValueError):
        cfg.get_api_config()
    assert cfg.get_llm_config() == {}
