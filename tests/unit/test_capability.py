"""Tests for process capability indices."""

import math

import pytest

from spccore.core.engine.capability import (
    ProcessCapability,
    SpecificationLimits,
    calculate_ppm,
    process_capability,
    validate_specification_limits,
)


class TestProcessCapability:
    """Cp, Cpk and friends on known data."""

    def test_centred_process(self):
        cap = process_capability([4, 5, 6], SpecificationLimits(usl=10, lsl=0))
        assert cap.cp == pytest.approx(10 / 6)
        assert cap.cpk == pytest.approx(10 / 6)
        assert cap.cpu == pytest.approx(10 / 6)
        assert cap.cpl == pytest.approx(10 / 6)
        assert cap.sigma == pytest.approx(5.0)
        assert cap.ppm == pytest.approx(0.287, abs=0.1)

    def test_off_centre_process(self):
        cap = process_capability([7, 8, 9], SpecificationLimits(usl=10, lsl=0))
        assert cap.cp == pytest.approx(10 / 6)
        assert cap.cpu == pytest.approx(2 / 3)
        assert cap.cpl == pytest.approx(8 / 3)
        assert cap.cpk == pytest.approx(2 / 3)
        assert cap.ppm == pytest.approx(22750, abs=1)

    def test_mean_above_usl_gives_negative_cpk(self):
        cap = process_capability([11, 12, 13], SpecificationLimits(usl=10, lsl=0))
        assert cap.cpk == pytest.approx(-2 / 3)
        assert cap.sigma == pytest.approx(2.0)

    def test_performance_equals_capability(self):
        cap = process_capability([9.8, 10.1, 10.3, 9.9, 10.0], SpecificationLimits(usl=11, lsl=9))
        assert cap.pp == cap.cp
        assert cap.ppk == cap.cpk

    def test_cpk_never_exceeds_cp(self):
        cap = process_capability([3, 5, 8, 6, 4], SpecificationLimits(usl=12, lsl=1))
        assert cap.cpk <= cap.cp

    def test_upper_limit_only(self):
        cap = process_capability([4, 5, 6], SpecificationLimits(usl=8))
        assert cap.cp == 0.0
        assert cap.cpl == 0.0
        assert cap.cpk == pytest.approx(1.0)
        assert cap.cpk == cap.cpu

    def test_lower_limit_zero_is_valid(self):
        cap = process_capability([4, 5, 6], SpecificationLimits(lsl=0))
        assert cap.cpl == pytest.approx(5 / 3)
        assert cap.cpk == cap.cpl
        assert cap.cpu == 0.0

    def test_no_limits(self):
        cap = process_capability([4, 5, 6])
        assert (cap.cp, cap.cpk, cap.cpu, cap.cpl, cap.sigma) == (0.0, 0.0, 0.0, 0.0, 0.0)
        assert cap.ppm == pytest.approx(500_000, abs=1)

    def test_zero_spread_gives_infinite_indices(self):
        cap = process_capability([5, 5, 5], SpecificationLimits(usl=10, lsl=0))
        assert math.isinf(cap.cp)
        assert math.isinf(cap.cpk)
        assert cap.ppm == 0.0

    def test_repeatable(self):
        spec = SpecificationLimits(usl=10, lsl=0)
        assert process_capability([7, 8, 9], spec) == process_capability([7, 8, 9], spec)

    def test_result_type(self):
        assert isinstance(process_capability([1, 2, 3]), ProcessCapability)


class TestPpm:
    def test_cpk_one(self):
        assert calculate_ppm(1.0) == pytest.approx(1349.9, abs=0.5)

    def test_sign_is_ignored(self):
        assert calculate_ppm(-1.0) == calculate_ppm(1.0)

    def test_decreases_with_capability(self):
        assert calculate_ppm(1.33) < calculate_ppm(1.0) < calculate_ppm(0.5)


class TestSpecificationValidation:
    def test_valid(self):
        spec = SpecificationLimits(usl=10, lsl=0, target=5, unit="mm")
        assert validate_specification_limits(spec) is spec

    def test_one_sided_is_valid(self):
        assert validate_specification_limits(SpecificationLimits(lsl=0)).lsl == 0

    def test_no_limits(self):
        with pytest.raises(ValueError, match="At least one"):
            validate_specification_limits(SpecificationLimits(target=5))

    @pytest.mark.parametrize("usl, lsl", [(5, 5), (4, 6)])
    def test_usl_not_above_lsl(self, usl, lsl):
        with pytest.raises(ValueError, match="usl must be greater than lsl"):
            validate_specification_limits(SpecificationLimits(usl=usl, lsl=lsl))
