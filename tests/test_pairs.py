"""Tests for mate pair generation."""

import itertools

import numpy as np
import pytest

from mate_selection.config import Distinctness, SelectionConfig
from mate_selection.errors import (
    EmptyPopulationError,
    InsufficientPopulationError,
    InvalidParameterError,
)
from mate_selection.pairs import MatePair, PairGenerator, generate, pairs, reduce_repeats
from mate_selection.selection import (
    RankBased,
    RouletteWheel,
    StochasticUniversalSampling,
    Tournament,
    Uniform,
)

PAIRING_STRATEGIES = [
    RouletteWheel(),
    RankBased(scheme="linear"),
    Tournament(size=2),
    StochasticUniversalSampling(),
    Uniform(),
]


def strategy_id(strategy) -> str:
    return type(strategy).__name__


class TestReduceRepeats:
    """Tests for the greedy repeat breaker."""

    def test_swaps_with_later_pair(self):
        """A repeated pair borrows the first member of a later pair."""
        flat = np.array([1, 1, 2, 3])
        reduce_repeats(flat)
        np.testing.assert_array_equal(flat, [2, 1, 1, 3])

    def test_searches_earlier_pairs_when_needed(self):
        """The last pair can still be fixed from an earlier one."""
        flat = np.array([2, 3, 1, 1])
        reduce_repeats(flat)

        assert flat[2] != flat[3]
        assert flat[0] != flat[1]

    def test_preserves_selected_individuals(self, rng):
        """Swaps never change who was selected."""
        flat = rng.integers(0, 3, size=40)
        before = np.sort(flat)
        reduce_repeats(flat)

        np.testing.assert_array_equal(np.sort(flat), before)

    def test_removes_all_fixable_repeats(self, rng):
        """With many distinct values every repeat is broken."""
        flat = rng.integers(0, 10, size=2000)
        reduce_repeats(flat)
        assert not np.any(flat[0::2] == flat[1::2])

    def test_unfixable_repeats_left_in_place(self):
        """If every pair contains the value, nothing changes."""
        flat = np.array([1, 1, 1, 1])
        reduce_repeats(flat)
        np.testing.assert_array_equal(flat, [1, 1, 1, 1])

    def test_odd_length_raises(self):
        """Pairs need an even number of members."""
        with pytest.raises(InvalidParameterError, match="even length"):
            reduce_repeats(np.array([1, 2, 3]))


class TestDistinctWithinPair:
    """Tests for the default pairing mode."""

    @pytest.mark.parametrize("strategy", PAIRING_STRATEGIES, ids=strategy_id)
    @pytest.mark.parametrize("n", [2, 3, 5, 10])
    def test_never_pairs_with_self(self, strategy, n, rng):
        """No pair contains the same individual twice."""
        scores = rng.random(n)
        mates = PairGenerator(strategy).pairs(scores, rng, count=50)

        assert mates.shape == (50, 2)
        assert np.all(mates[:, 0] != mates[:, 1])

    @pytest.mark.parametrize("strategy", [RouletteWheel(), StochasticUniversalSampling()], ids=strategy_id)
    def test_dominant_individual_still_gets_a_partner(self, strategy, rng):
        """A dominant individual is paired with someone else."""
        mates = PairGenerator(strategy).pairs([100.0, 1.0], rng, count=50)
        assert np.all(np.sort(mates, axis=1) == [0, 1])

    def test_single_individual_raises(self, rng):
        """Distinct pairs need two individuals."""
        with pytest.raises(InsufficientPopulationError, match="at least 2 individuals"):
            PairGenerator(RouletteWheel()).pairs([1.0], rng, count=1)

    def test_zero_pairs_from_single_individual(self, rng):
        """Asking for nothing is always satisfiable."""
        assert PairGenerator(RouletteWheel()).pairs([1.0], rng, count=0).shape == (0, 2)

    def test_small_chunks(self, rng):
        """Batch strategies honour the chunk size and still return every pair."""
        generator = PairGenerator(StochasticUniversalSampling(), chunk_size=3)
        mates = generator.pairs([1.0, 2.0, 3.0, 4.0], rng, count=10)

        assert mates.shape == (10, 2)
        assert np.all(mates[:, 0] != mates[:, 1])


class TestAllowSelfPair:
    """Tests for unconstrained pairing."""

    @pytest.mark.parametrize("strategy", PAIRING_STRATEGIES, ids=strategy_id)
    def test_single_individual_pairs_with_itself(self, strategy, rng):
        """A population of one mates with itself."""
        mates = PairGenerator(strategy, distinctness="allow_self_pair").pairs([2.0], rng, count=3)
        np.testing.assert_array_equal(mates, np.zeros((3, 2)))

    def test_self_pairs_occur(self, rng):
        """Independent draws produce some (i, i) pairs."""
        mates = PairGenerator(RouletteWheel(), distinctness=Distinctness.ALLOW_SELF_PAIR).pairs(
            [1.0, 1.0], rng, count=200
        )
        assert np.any(mates[:, 0] == mates[:, 1])


class TestDistinctAcrossGeneration:
    """Tests for pairing without reuse."""

    @pytest.mark.parametrize("strategy", PAIRING_STRATEGIES, ids=strategy_id)
    def test_everyone_mates_exactly_once(self, strategy, distinct_scores, rng):
        """Drawing n / 2 pairs uses every individual once."""
        generator = PairGenerator(strategy, distinctness="distinct_across_generation")
        mates = generator.pairs(distinct_scores, rng, count=distinct_scores.size // 2)

        assert sorted(mates.ravel().tolist()) == list(range(distinct_scores.size))

    def test_no_individual_repeats(self, rng):
        """Fewer pairs than possible still never reuse anyone."""
        generator = PairGenerator(RouletteWheel(), distinctness="distinct_across_generation")
        mates = generator.pairs(rng.random(101), rng, count=40)

        assert np.unique(mates).size == 80

    def test_zero_weight_individuals_fill_the_rest(self, rng):
        """Once positive weight is used up, the rest are drawn uniformly."""
        generator = PairGenerator(RouletteWheel(), distinctness="distinct_across_generation")
        mates = generator.pairs([5.0, 0.0, 0.0, 0.0], rng, count=2)

        assert mates[0, 0] == 0
        assert sorted(mates.ravel().tolist()) == [0, 1, 2, 3]

    def test_too_many_pairs_raises(self, rng):
        """At most n // 2 pairs can be drawn."""
        generator = PairGenerator(RouletteWheel(), distinctness="distinct_across_generation")
        with pytest.raises(InsufficientPopulationError, match="at most 2"):
            generator.generate([1.0, 2.0, 3.0, 4.0, 5.0], rng, count=3)

    def test_parallel_not_supported(self):
        """Dependent draws cannot be split across workers."""
        generator = PairGenerator(RouletteWheel(), distinctness="distinct_across_generation")
        with pytest.raises(InvalidParameterError, match="cannot be drawn in parallel"):
            generator.parallel_pairs([1.0, 2.0], seed=0, count=1, n_workers=2)


class TestElitism:
    """Tests for keeping the best individual in the mating pool."""

    @pytest.mark.parametrize("strategy", PAIRING_STRATEGIES, ids=strategy_id)
    @pytest.mark.parametrize("distinctness", list(Distinctness))
    def test_best_is_first_parent_of_first_pair(self, strategy, distinctness, rng):
        """The best individual leads the first pair in every mode."""
        scores = np.array([0.4, 0.3, 0.1, 0.2, 0.5, 1.0])
        generator = PairGenerator(strategy, distinctness=distinctness, elitism=True)
        mates = generator.pairs(scores, rng, count=3)

        assert mates[0, 0] == 5
        if distinctness is not Distinctness.ALLOW_SELF_PAIR:
            assert mates[0, 1] != 5

    def test_elite_not_reused_across_generation(self, rng):
        """Without reuse, the elite appears exactly once."""
        generator = PairGenerator(RouletteWheel(), distinctness="distinct_across_generation", elitism=True)
        mates = generator.pairs([1.0, 9.0, 2.0, 3.0, 4.0, 5.0], rng, count=3)

        assert mates[0, 0] == 1
        assert np.count_nonzero(mates == 1) == 1

    def test_lowest_index_wins_ties(self, rng):
        """Tied best scores resolve to the earliest individual."""
        mates = PairGenerator(Uniform(), elitism=True).pairs([1.0, 3.0, 3.0], rng, count=1)
        assert mates[0, 0] == 1


class TestGenerate:
    """Tests for lazy generation and argument validation."""

    def test_yields_exactly_count_pairs(self, distinct_scores, rng):
        """The iterator yields exactly ``count`` MatePair values."""
        for strategy in (RouletteWheel(), StochasticUniversalSampling()):
            mates = list(PairGenerator(strategy).generate(distinct_scores, rng, count=17))

            assert len(mates) == 17
            assert all(isinstance(m, MatePair) for m in mates)

    def test_generation_is_lazy(self, distinct_scores, rng):
        """A huge request can be consumed partially."""
        stream = PairGenerator(RouletteWheel()).generate(distinct_scores, rng, count=10**9)
        first = list(itertools.islice(stream, 3))

        assert len(first) == 3
        assert all(m.first != m.second for m in first)

    def test_errors_raised_before_iteration(self, rng):
        """Bad input fails when generate is called, not on first use."""
        generator = PairGenerator(RouletteWheel())
        with pytest.raises(EmptyPopulationError):
            generator.generate([], rng, count=1)
        with pytest.raises(InvalidParameterError, match="NaN"):
            generator.generate([1.0, float("nan")], rng, count=1)
        with pytest.raises(InvalidParameterError, match="count must be non-negative"):
            generator.generate([1.0, 2.0], rng, count=-1)

    def test_tournament_too_large_to_exclude_raises_before_iteration(self, rng):
        """A tournament without replacement that cannot exclude the first parent fails eagerly."""
        generator = PairGenerator(Tournament(size=4, replace=False), distinctness="distinct_within_pair")
        with pytest.raises(InsufficientPopulationError, match="need at least 5 individuals, got 4"):
            generator.generate([1.0, 2.0, 3.0, 4.0], rng, count=2)

    def test_tournament_without_replacement_allowed_with_self_pairs(self, rng):
        """Self pairs need no exclusion draw, so the full tournament is fine."""
        generator = PairGenerator(Tournament(size=4, replace=False), distinctness="allow_self_pair")
        mates = generator.pairs([1.0, 2.0, 3.0, 4.0], rng, count=2)

        np.testing.assert_array_equal(mates, [[3, 3], [3, 3]])

    def test_same_seed_same_pairs(self, distinct_scores):
        """Pairs are reproducible from the generator state."""
        for distinctness in Distinctness:
            generator = PairGenerator(Tournament(size=3), distinctness=distinctness)
            a = generator.pairs(distinct_scores, np.random.default_rng(5), count=4)
            b = generator.pairs(distinct_scores, np.random.default_rng(5), count=4)
            np.testing.assert_array_equal(a, b)

    def test_alias_sampler(self, distinct_scores, rng):
        """The alias sampler can drive pair generation."""
        mates = PairGenerator(RouletteWheel(), sampler="alias").pairs(distinct_scores, rng, count=20)
        assert np.all(mates[:, 0] != mates[:, 1])

    def test_invalid_options_raise(self):
        """Options are validated when the generator is built."""
        with pytest.raises(InvalidParameterError, match="unknown distinctness mode 'sometimes'"):
            PairGenerator(RouletteWheel(), distinctness="sometimes")
        with pytest.raises(InvalidParameterError, match="chunk_size"):
            PairGenerator(RouletteWheel(), chunk_size=0)
        with pytest.raises(InvalidParameterError, match="unknown sampler"):
            PairGenerator(RouletteWheel(), sampler="bogus")
        with pytest.raises(InvalidParameterError, match="must be a SelectionStrategy"):
            PairGenerator("roulette")


class TestFunctionApi:
    """Tests for the module-level generate and pairs functions."""

    def test_strategy_by_name(self, distinct_scores, rng):
        """Registered names build strategies with default parameters."""
        mates = pairs(distinct_scores, "tournament", rng, count=3)
        assert mates.shape == (3, 2)

    def test_strategy_instance(self, distinct_scores, rng):
        """Strategy instances are used directly."""
        mates = list(generate(distinct_scores, Tournament(size=2), rng, count=2))
        assert len(mates) == 2

    def test_config(self, rng):
        """A config carries the strategy and pairing options."""
        config = SelectionConfig("rank", {"scheme": "linear"}, distinctness="distinct_across_generation")
        mates = pairs([4.0, 3.0, 2.0, 1.0], config, rng, count=2)

        assert sorted(mates.ravel().tolist()) == [0, 1, 2, 3]

    def test_overrides(self, rng):
        """Keyword overrides replace the config's options."""
        config = SelectionConfig("roulette")
        mates = pairs([2.0], config, rng, count=2, distinctness="allow_self_pair")
        np.testing.assert_array_equal(mates, [[0, 0], [0, 0]])

        mates = pairs([1.0, 5.0, 2.0], config, rng, count=1, elitism=True)
        assert mates[0, 0] == 1

    def test_chunk_size(self, distinct_scores, rng):
        """Batch strategies accept a chunk size through the function API."""
        mates = pairs(distinct_scores, "sus", rng, count=9, chunk_size=2)

        assert mates.shape == (9, 2)
        assert np.all(mates[:, 0] != mates[:, 1])
        with pytest.raises(InvalidParameterError, match="chunk_size"):
            pairs(distinct_scores, "sus", rng, count=9, chunk_size=0)

    def test_unknown_name_raises(self, rng):
        """Unknown strategy names are invalid parameters."""
        with pytest.raises(InvalidParameterError, match="Selection strategy 'nope' not found"):
            pairs([1.0, 2.0], "nope", rng, count=1)

    def test_from_config(self):
        """PairGenerator.from_config copies every option."""
        config = SelectionConfig("sus", distinctness="allow_self_pair", elitism=True, sampler="alias")
        generator = PairGenerator.from_config(config, chunk_size=16)

        assert generator.strategy == StochasticUniversalSampling()
        assert generator.distinctness is Distinctness.ALLOW_SELF_PAIR
        assert generator.elitism is True
        assert generator.chunk_size == 16


class TestParallelPairs:
    """Tests for drawing pairs across worker threads."""

    @pytest.mark.parametrize("strategy", [Tournament(size=2), StochasticUniversalSampling()], ids=strategy_id)
    def test_shape_and_distinctness(self, strategy, distinct_scores):
        """Parallel draws honour the pairing mode."""
        mates = PairGenerator(strategy).parallel_pairs(distinct_scores, seed=3, count=101, n_workers=4)

        assert mates.shape == (101, 2)
        assert mates.dtype == np.intp
        assert np.all(mates[:, 0] != mates[:, 1])

    def test_reproducible_for_fixed_seed_and_workers(self, distinct_scores):
        """Each worker draws from its own spawned stream."""
        generator = PairGenerator(RouletteWheel())
        a = generator.parallel_pairs(distinct_scores, seed=11, count=64, n_workers=3)
        b = generator.parallel_pairs(distinct_scores, seed=11, count=64, n_workers=3)

        np.testing.assert_array_equal(a, b)

    def test_elite_only_in_first_block(self, distinct_scores):
        """Elitism applies once to the whole generation."""
        generator = PairGenerator(RouletteWheel(), elitism=True)
        mates = generator.parallel_pairs(distinct_scores, seed=0, count=8, n_workers=2)

        assert mates[0, 0] == np.argmax(distinct_scores)

    def test_all_cores(self, distinct_scores):
        """-1 uses every CPU core."""
        mates = PairGenerator(Uniform()).parallel_pairs(distinct_scores, seed=1, count=10, n_workers=-1)
        assert mates.shape == (10, 2)

    def test_invalid_worker_count_raises(self, distinct_scores):
        """Worker counts must be positive."""
        with pytest.raises(InvalidParameterError, match="n_workers"):
            PairGenerator(RouletteWheel()).parallel_pairs(distinct_scores, seed=1, count=10, n_workers=0)
