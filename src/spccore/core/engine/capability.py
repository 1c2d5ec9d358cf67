"""Process capability indices.

Capability compares the spread of the process to the width of the
specification. Both the potential (Cp) and the actual (Cpk) index are
computed from the sample standard deviation of the observations.

Pp and Ppk are reported with the same values as Cp and Cpk: no separate
short-term (within-subgroup) sigma is estimated here, so the two families
coincide.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import structlog

from spccore.utils.statistics import normal_cdf

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SpecificationLimits:
    """Engineering specification for a characteristic.

    Attributes:
        usl: Upper Specification Limit, None when one-sided
        lsl: Lower Specification Limit, None when one-sided
        target: Nominal value
        unit: Unit of measure label
    """
    usl: float | None = None
    lsl: float | None = None
    target: float | None = None
    unit: str = ""


@dataclass(frozen=True)
class ProcessCapability:
    """Capability and performance indices of a process.

    Attributes:
        cp: Potential capability, (USL - LSL) / 6 sigma
        cpk: Actual capability, nearest-limit index
        pp: Potential performance (equal to cp)
        ppk: Actual performance (equal to cpk)
        cpu: Upper one-sided index, (USL - mean) / 3 sigma
        cpl: Lower one-sided index, (mean - LSL) / 3 sigma
        sigma: Sigma quality level, |cpk| * 3
        ppm: Estimated parts per million outside the nearest limit
    """
    cp: float
    cpk: float
    pp: float
    ppk: float
    cpu: float
    cpl: float
    sigma: float
    ppm: float


def validate_specification_limits(spec: SpecificationLimits) -> SpecificationLimits:
    """Reject specification limits that cannot describe a tolerance band.

    The capability calculation itself accepts anything; callers use this to
    refuse malformed input before calling in.

    Raises:
        ValueError: If neither limit is given, or USL is not above LSL
    """
    if spec.usl is None and spec.lsl is None:
        raise ValueError("At least one of usl or lsl must be provided")
    if spec.usl is not None and spec.lsl is not None and spec.usl <= spec.lsl:
        raise ValueError(
            f"usl must be greater than lsl, got usl={spec.usl} lsl={spec.lsl}"
        )
    return spec


def calculate_ppm(cpk: float) -> float:
    """Estimate defective parts per million from Cpk.

    Uses the one-sided normal tail beyond ``|cpk| * 3`` standard deviations.

    Examples:
        >>> round(calculate_ppm(1.0))
        1350
    """
    z = abs(cpk) * 3
    return (1 - normal_cdf(z)) * 1_000_000


def process_capability(
    values: Sequence[float],
    spec_limits: SpecificationLimits | None = None,
) -> ProcessCapability:
    """Calculate process capability indices.

    A limit counts as present whenever it is not None, so 0 is a valid limit.
    With both limits Cpk is the smaller one-sided index; with one limit it is
    that limit's index; with none every index is 0.

    A zero standard deviation produces inf or nan indices, which are returned
    unchanged for the caller to handle.

    Args:
        values: Individual observations
        spec_limits: Upper and/or lower specification limits

    Returns:
        ProcessCapability with all indices

    Example:
        >>> cap = process_capability([4, 5, 6], SpecificationLimits(usl=10, lsl=0))
        >>> round(cap.cp, 3), round(cap.cpk, 3)
        (1.667, 1.667)
    """
    usl = spec_limits.usl if spec_limits is not None else None
    lsl = spec_limits.lsl if spec_limits is not None else None

    arr = np.asarray(values, dtype=np.float64)
    if len(arr) == 0:
        avg = np.float64(0.0)
        std = np.float64(0.0)
    else:
        avg = arr.mean()
        with np.errstate(divide="ignore", invalid="ignore"):
            std = np.sqrt(np.sum((arr - avg) ** 2) / np.float64(len(arr) - 1))

    cp = cpk = cpu = cpl = 0.0
    with np.errstate(divide="ignore", invalid="ignore"):
        if usl is not None:
            cpu = float((usl - avg) / (3 * std))
        if lsl is not None:
            cpl = float((avg - lsl) / (3 * std))

        if usl is not None and lsl is not None:
            cp = float((usl - lsl) / (6 * std))
            cpk = float(np.minimum(cpu, cpl))
        elif usl is not None:
            cpk = cpu
        elif lsl is not None:
            cpk = cpl

    result = ProcessCapability(
        cp=cp,
        cpk=cpk,
        pp=cp,
        ppk=cpk,
        cpu=cpu,
        cpl=cpl,
        sigma=abs(cpk) * 3,
        ppm=calculate_ppm(cpk),
    )

    logger.debug(
        "process_capability_calculated",
        points=len(arr),
        usl=usl,
        lsl=lsl,
        cpk=result.cpk,
    )
    return result
