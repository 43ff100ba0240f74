import logging

import numpy as np
import pandas as pd
import pytest

import diffsim
from diffsim import simulate
from diffsim.basic_simulators.normalize import normalize_parameters, validate_parameters
from diffsim.basic_simulators.rng import next_base_seed
from diffsim.exceptions import NonTerminationRisk, ValidationError
from diffsim.parallel_backends.partitioned import make_range_task, partition_ranges

logger = logging.getLogger(__name__)

N_TRIALS = 400


class TestOutput:
    def test_dataframe_layout(self, theta):
        table = simulate(N_TRIALS, **theta, n_threads=2)
        assert isinstance(table, pd.DataFrame)
        assert list(table.columns) == [
            "reaction_time",
            "primary_response",
            "secondary_response",
        ]
        assert len(table) == N_TRIALS
        assert list(table.index) == list(range(N_TRIALS))
        assert table["primary_response"].dtype == np.int64
        assert set(table["primary_response"].unique()) <= {0, 1}
        assert set(table["secondary_response"].unique()) <= {0, 1}

    def test_array_layout(self, theta):
        out = simulate(N_TRIALS, **theta, return_format="array")
        assert out.shape == (N_TRIALS, 3)
        assert out.dtype == np.float64

    def test_dict_layout(self, theta):
        out = simulate(N_TRIALS, **theta, n_threads=3, return_format="dict")
        assert set(out) == {"rts", "choices", "secondary", "metadata"}
        assert out["rts"].shape == (N_TRIALS,)
        metadata = out["metadata"]
        assert metadata["n_trials"] == N_TRIALS
        assert metadata["n_partitions"] == 3
        assert metadata["delta_t"] == 0.001
        assert metadata["n_truncated"] == 0
        assert metadata["t0_min"] == pytest.approx(0.3)

    def test_unknown_return_format(self, theta):
        with pytest.raises(ValidationError, match="return_format"):
            simulate(10, **theta, return_format="list")

    @pytest.mark.parametrize("n_threads", [1, 2, 3, 8])
    @pytest.mark.parametrize("ndt_convention", ["onset", "centered"])
    def test_reaction_time_lower_bound(self, theta, n_threads, ndt_convention):
        out = simulate(
            N_TRIALS,
            **theta,
            n_threads=n_threads,
            ndt_convention=ndt_convention,
            return_format="dict",
        )
        assert np.all(out["rts"] >= out["metadata"]["t0_min"])

    def test_single_trial(self, theta):
        table = simulate(1, **theta, n_threads=4)
        assert len(table) == 1


class TestReproducibility:
    @pytest.mark.parametrize("n_threads", [1, 4])
    def test_same_global_seed_same_table(self, theta, n_threads):
        diffsim.set_seed(77)
        first = simulate(N_TRIALS, **theta, n_threads=n_threads)
        diffsim.set_seed(77)
        second = simulate(N_TRIALS, **theta, n_threads=n_threads)
        pd.testing.assert_frame_equal(first, second)

    def test_consecutive_calls_differ(self, theta):
        diffsim.set_seed(77)
        first = simulate(N_TRIALS, **theta, return_format="array")
        second = simulate(N_TRIALS, **theta, return_format="array")
        assert not np.array_equal(first, second)

    def test_random_state(self, theta):
        first = simulate(N_TRIALS, **theta, n_threads=3, random_state=5)
        second = simulate(N_TRIALS, **theta, n_threads=3, random_state=5)
        pd.testing.assert_frame_equal(first, second)

    def test_shifted_random_state_shares_no_rows(self, theta):
        first = simulate(
            8, **theta, n_threads=2, random_state=1000, return_format="array"
        )
        second = simulate(
            8,
            **theta,
            n_threads=2,
            random_state=1000 + 0x9E3779B97F4A7C15,
            return_format="array",
        )
        assert not np.array_equal(first[4:], second[:4])

    def test_serial_equals_single_partition(self, theta):
        serial = simulate(N_TRIALS, **theta, n_threads=1, random_state=8)
        dists = normalize_parameters(validate_parameters(**theta))
        out = np.zeros((N_TRIALS, 3))
        make_range_task(dists, 8, out)(0, N_TRIALS, 0)
        np.testing.assert_array_equal(serial.to_numpy(dtype=np.float64), out)

    def test_partition_rows_in_trial_order(self, theta):
        parallel = simulate(
            N_TRIALS, **theta, n_threads=4, random_state=8, return_format="array"
        )
        dists = normalize_parameters(validate_parameters(**theta))
        for partition, (begin, end) in enumerate(partition_ranges(N_TRIALS, 4)):
            out = np.zeros((N_TRIALS, 3))
            make_range_task(dists, 8, out)(begin, end, partition)
            np.testing.assert_array_equal(parallel[begin:end], out[begin:end])


class TestDegenerateVariability:
    def test_point_masses(self):
        table = simulate(
            N_TRIALS, a=1.0, v=1.0, t0=0.4, z=0.5, crit=(0.5, 0.5), n_threads=2
        )
        steps = (table["reaction_time"] - 0.4) / 0.001
        np.testing.assert_allclose(steps, np.round(steps), atol=1e-6)
        assert np.all(table["reaction_time"] >= 0.4)
        # evidence is always 1.0 > 0.5
        assert np.all(table["secondary_response"] == 1)

    def test_secondary_response_uses_response_specific_criterion(self):
        table = simulate(N_TRIALS, a=1.0, v=0.0, t0=0.0, z=0.5, crit=(-1.0, 1.0))
        upper = table["primary_response"] == 1
        assert upper.any() and (~upper).any()
        assert np.all(table.loc[upper, "secondary_response"] == 1)
        assert np.all(table.loc[~upper, "secondary_response"] == 0)


class TestValidation:
    @pytest.mark.parametrize(
        "overrides",
        [{"n_trials": 0}, {"a": -1.0}, {"s": 0.0}, {"z": 1.5}, {"crit": (1.0,)}],
    )
    def test_invalid_input_raises_before_sampling(self, theta, overrides):
        kwargs = {"n_trials": 10, **theta, **overrides}
        diffsim.set_seed(13)
        with pytest.raises(ValidationError):
            simulate(**kwargs)
        untouched = next_base_seed()
        diffsim.set_seed(13)
        assert next_base_seed() == untouched

    def test_invalid_delta_t(self, theta):
        with pytest.raises(ValidationError):
            simulate(10, **theta, delta_t=0.0)

    @pytest.mark.parametrize("max_steps", [-1, 2.5])
    def test_invalid_max_steps(self, theta, max_steps):
        with pytest.raises(ValidationError, match="max_steps"):
            simulate(10, **theta, max_steps=max_steps)


class TestDiagnostics:
    def test_termination_risk_warning(self):
        with pytest.warns(NonTerminationRisk):
            table = simulate(
                10, a=1.0, v=0.0, t0=0.0, z=0.5, termination_risk_steps=10
            )
        assert len(table) == 10

    def test_max_steps_truncation(self, caplog):
        with caplog.at_level(logging.WARNING):
            out = simulate(
                50, a=1.0, v=0.0, t0=0.1, z=0.5, max_steps=5, return_format="dict"
            )
        assert out["metadata"]["n_truncated"] == 50
        np.testing.assert_allclose(out["rts"], 0.105)
        assert "max_steps" in caplog.text

    def test_invalid_n_threads_falls_back(self, theta):
        with pytest.warns(diffsim.ConcurrencyConfigurationError):
            out = simulate(20, **theta, n_threads=0, return_format="dict")
        assert out["metadata"]["n_partitions"] == 1
