"""Tests for selection configuration."""

import pytest

from mate_selection.config import Distinctness, SelectionConfig
from mate_selection.distribution import RankScheme
from mate_selection.errors import InvalidParameterError
from mate_selection.sampler import SamplerKind
from mate_selection.selection import Boltzmann, RankBased, Tournament


class TestSelectionConfig:
    """Tests for building strategies from configuration."""

    def test_defaults(self):
        """Only the strategy name is required."""
        config = SelectionConfig("roulette")

        assert config.params == {}
        assert config.distinctness is Distinctness.DISTINCT_WITHIN_PAIR
        assert config.elitism is False
        assert config.sampler is SamplerKind.CUMULATIVE

    def test_build_passes_parameters(self):
        """Parameters reach the strategy."""
        assert SelectionConfig("tournament", {"size": 3}).build() == Tournament(size=3)
        assert SelectionConfig("boltzmann", {"temperature": 0.5}).build() == Boltzmann(0.5)

    def test_options_converted_to_enums(self):
        """String options become enum members."""
        config = SelectionConfig("rank", distinctness="distinct_across_generation", sampler="alias")

        assert config.distinctness is Distinctness.DISTINCT_ACROSS_GENERATION
        assert config.sampler is SamplerKind.ALIAS

    def test_unknown_strategy_raises(self):
        """Unknown names fail when the config is created."""
        with pytest.raises(InvalidParameterError, match="Selection strategy 'nope' not found"):
            SelectionConfig("nope")

    def test_invalid_parameter_value_raises(self):
        """Strategy validation runs when the config is created."""
        with pytest.raises(InvalidParameterError, match="tournament size must be at least 1"):
            SelectionConfig("tournament", {"size": 0})

    def test_unknown_parameter_raises(self):
        """Parameters the strategy does not accept are rejected."""
        with pytest.raises(InvalidParameterError, match="invalid parameters for selection strategy 'roulette'"):
            SelectionConfig("roulette", {"temperature": 1.0})

    def test_unknown_distinctness_raises(self):
        """Distinctness must be one of the known modes."""
        with pytest.raises(InvalidParameterError, match="unknown distinctness mode"):
            SelectionConfig("roulette", distinctness="mostly")

    def test_elitism_must_be_boolean(self):
        """Truthy values are not accepted for elitism."""
        with pytest.raises(InvalidParameterError, match="elitism must be a boolean"):
            SelectionConfig("roulette", elitism=1)

    def test_params_are_read_only(self):
        """Configs are immutable, including their parameters."""
        config = SelectionConfig("tournament", {"size": 3})
        with pytest.raises(TypeError):
            config.params["size"] = 4

    def test_params_copied(self):
        """Later changes to the caller's dict do not leak in."""
        params = {"size": 3}
        config = SelectionConfig("tournament", params)
        params["size"] = 0

        assert config.build() == Tournament(size=3)

    def test_equal_configs_hash_equal(self):
        """Configs with the same content are interchangeable dict keys."""
        a = SelectionConfig("tournament", {"size": 3}, elitism=True)
        b = SelectionConfig("tournament", {"size": 3}, elitism=True)

        assert a == b
        assert len({a, b}) == 1
        assert a != SelectionConfig("tournament", {"size": 4}, elitism=True)


class TestSelectionConfigDict:
    """Tests for plain mapping conversion."""

    def test_to_dict(self):
        """Enums are written as their values."""
        config = SelectionConfig("rank", {"scheme": RankScheme.LINEAR}, elitism=True)

        assert config.to_dict() == {
            "strategy": "rank",
            "params": {"scheme": "linear"},
            "distinctness": "distinct_within_pair",
            "elitism": True,
            "sampler": "cumulative",
        }

    def test_round_trip(self):
        """from_dict restores an equal config."""
        config = SelectionConfig(
            "rank",
            {"scheme": "exponential", "median": 4},
            distinctness=Distinctness.ALLOW_SELF_PAIR,
            sampler=SamplerKind.ALIAS,
        )
        restored = SelectionConfig.from_dict(config.to_dict())

        assert restored == config
        assert restored.build() == RankBased(scheme=RankScheme.EXPONENTIAL, median=4)

    def test_from_minimal_dict(self):
        """Missing optional keys take their defaults."""
        config = SelectionConfig.from_dict({"strategy": "sus"})
        assert config == SelectionConfig("sus")

    def test_missing_strategy_raises(self):
        """The strategy key is required."""
        with pytest.raises(InvalidParameterError, match="requires 'strategy'"):
            SelectionConfig.from_dict({"params": {}})

    def test_unknown_keys_raise(self):
        """Typos in configuration files are reported."""
        with pytest.raises(InvalidParameterError, match="unknown selection config keys: elitsm"):
            SelectionConfig.from_dict({"strategy": "sus", "elitsm": True})
