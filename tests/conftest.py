"""Shared pytest fixtures and markers for all tests."""

import pytest

from realpolitik.models import City, Country, CountryStats, GameState

GAME_ID = "game-1"

RICH_RESOURCES = {
    "food": 1000,
    "timber": 200,
    "iron": 200,
    "oil": 200,
    "gold": 100,
    "copper": 200,
    "steel": 200,
    "coal": 200,
}


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "llm_integration: marks tests requiring LLM API calls"
    )


@pytest.fixture(autouse=True)
def clean_llm_env(monkeypatch):
    """Run every test with default LLM configuration."""
    for name in (
        "REALPOLITIK_LLM_ENABLED",
        "REALPOLITIK_LLM_TIMEOUT",
        "REALPOLITIK_LLM_RETRIES",
        "REALPOLITIK_LLM_CALL_FREQUENCY",
        "REALPOLITIK_LLM_PLAN_ACTION_CAP",
        "REALPOLITIK_LLM_PLAN_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_stats():
    """Factory for CountryStats with sensible defaults."""

    def _make(country_id="alpha", **overrides):
        values = {
            "country_id": country_id,
            "population": 100_000,
            "budget": 10_000,
            "technology_level": 1,
            "infrastructure_level": 1,
            "military_strength": 100,
            "resources": dict(RICH_RESOURCES),
        }
        values.update(overrides)
        return CountryStats(**values)

    return _make


@pytest.fixture
def countries():
    """Alpha and Beta are neighbors; Gamma is far away."""
    return [
        Country(id="alpha", game_id=GAME_ID, name="Alpha", position_x=0.0, position_y=0.0),
        Country(id="beta", game_id=GAME_ID, name="Beta", position_x=100.0, position_y=0.0),
        Country(id="gamma", game_id=GAME_ID, name="Gamma", position_x=1000.0, position_y=0.0),
    ]


@pytest.fixture
def cities():
    return [
        City(id="alpha-capital", country_id="alpha", name="Alphaville", population=40_000, per_turn_resources={"food": 5}),
        City(id="beta-port", country_id="beta", name="Port Beta", population=30_000, per_turn_resources={"oil": 4}),
        City(id="beta-mine", country_id="beta", name="Mine Beta", population=10_000, per_turn_resources={"iron": 6}),
        City(id="gamma-town", country_id="gamma", name="Gamma Town", population=5_000),
    ]


@pytest.fixture
def sample_stats(make_stats):
    return {
        "alpha": make_stats("alpha"),
        "beta": make_stats("beta", budget=5_000, military_strength=80),
        "gamma": make_stats(
            "gamma", population=50_000, budget=2_000, technology_level=0, infrastructure_level=0,
            military_strength=30, resources={},
        ),
    }


@pytest.fixture
def sample_game_state(countries, sample_stats, cities):
    """A three-country game on turn 1."""
    return GameState(game_id=GAME_ID, turn=1, countries=countries, country_stats=sample_stats, cities=cities)
