"""Western Electric / Nelson rules for SPC violation detection.

This module provides the eight run rules as pluggable rule classes. Each rule
scans a complete, ordered sequence of chart points and reports every pattern
it finds as a RuleViolation carrying the 0-based indices of the points
involved.

Zone boundaries are interpolated from the control limits (one sigma is a
third of the distance from the center line to the UCL), so the rules work
for limits drawn at any sigma level.

Reporting differs per rule:
- Rules 1, 5 and 6 report every qualifying point or window.
- Rules 2 and 3 keep a run counter and restart it after each report, so a
  long run is reported once per full run length.
- Rules 4, 7 and 8 report only the first qualifying window.

References:
    - Western Electric Company, "Statistical Quality Control Handbook" (1956)
    - Lloyd S. Nelson, "The Shewhart Control Chart - Tests for Special Causes" (1984)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Protocol, Sequence

import structlog

from spccore.utils.statistics import ControlLimits, ZoneBoundaries, calculate_zones

logger = structlog.get_logger(__name__)


class Severity(str, Enum):
    """Violation severity levels."""
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class RuleViolation:
    """One detected out-of-control pattern.

    Attributes:
        id: Identifier unique within one evaluation ("rule5-12")
        rule_id: Rule identifier ("rule1" to "rule8")
        rule_name: Human-readable rule name
        severity: ERROR for points beyond the control limits, else WARNING
        data_point_indices: 0-based indices of the points involved
        description: Human-readable description of the violation
        timestamp: When the violation was detected; ignored when comparing
    """
    id: str
    rule_id: str
    rule_name: str
    severity: Severity
    data_point_indices: tuple[int, ...]
    description: str
    timestamp: datetime = field(compare=False)


class WesternElectricRule(Protocol):
    """Protocol for run rule implementations."""

    @property
    def rule_id(self) -> str:
        """Rule identifier ("rule1" to "rule8")."""
        ...

    @property
    def rule_name(self) -> str:
        ...

    @property
    def description(self) -> str:
        ...

    @property
    def min_samples_required(self) -> int:
        """Minimum number of points needed before the rule can fire."""
        ...

    @property
    def severity(self) -> Severity:
        ...

    def scan(
        self,
        values: Sequence[float],
        zones: ZoneBoundaries,
        detected_at: datetime,
    ) -> list[RuleViolation]:
        """Scan the full sequence in index order.

        Args:
            values: Chart points in sequence order
            zones: Zone boundaries derived from the control limits
            detected_at: Timestamp stamped on every violation

        Returns:
            Violations found, in index order
        """
        ...


class _RuleBase:
    rule_id: str
    rule_name: str
    description: str
    min_samples_required: int
    severity: Severity = Severity.WARNING

    def _violation(
        self,
        last_index: int,
        indices: Iterable[int],
        description: str,
        detected_at: datetime,
    ) -> RuleViolation:
        return RuleViolation(
            id=f"{self.rule_id}-{last_index}",
            rule_id=self.rule_id,
            rule_name=self.rule_name,
            severity=self.severity,
            data_point_indices=tuple(indices),
            description=description,
            timestamp=detected_at,
        )


def _beyond(value: float, upper: float, lower: float) -> bool:
    return value > upper or value < lower


class Rule1BeyondLimits(_RuleBase):
    """Rule 1: One point beyond the control limits.

    Every offending point is reported on its own.
    """

    rule_id = "rule1"
    rule_name = "Point beyond 3-sigma limits"
    description = "A single point falls outside the upper or lower control limit"
    min_samples_required = 1
    severity = Severity.ERROR

    def scan(self, values, zones, detected_at):
        return [
            self._violation(
                i, [i],
                f"Point {i + 1} ({value:.3f}) is beyond control limits",
                detected_at,
            )
            for i, value in enumerate(values)
            if _beyond(value, zones.plus_3_sigma, zones.minus_3_sigma)
        ]


class Rule2Shift(_RuleBase):
    """Rule 2: Nine points in a row on the same side of the center line.

    A point exactly on the center line counts as below it. The run counter
    restarts at the reporting point, so the next report needs eight more
    points on the same side.
    """

    rule_id = "rule2"
    rule_name = "Nine consecutive points on same side of center line"
    description = "Nine points in a row on the same side of the center line"
    min_samples_required = 9

    def scan(self, values, zones, detected_at):
        violations = []
        if len(values) == 0:
            return violations

        center = zones.center_line
        count = 1
        last_above = values[0] > center
        for i in range(1, len(values)):
            above = values[i] > center
            if above == last_above:
                count += 1
            else:
                count = 1
                last_above = above

            if count >= 9:
                side = "above" if last_above else "below"
                violations.append(self._violation(
                    i, range(i - 8, i + 1),
                    f"Nine consecutive points {side} center line",
                    detected_at,
                ))
                count = 1
        return violations


class Rule3Trend(_RuleBase):
    """Rule 3: Six successive moves in the same direction.

    The counter runs over the differences between consecutive points. A
    non-increasing step (including a repeated value) counts as decreasing.
    The report covers the last six points of the run and the counter
    restarts afterwards.
    """

    rule_id = "rule3"
    rule_name = "Six consecutive points increasing or decreasing"
    description = "A steady run of points increasing or decreasing"
    min_samples_required = 7

    def scan(self, values, zones, detected_at):
        violations = []
        if len(values) < 2:
            return violations

        count = 1
        last_up = values[1] > values[0]
        for i in range(2, len(values)):
            up = values[i] > values[i - 1]
            if up == last_up:
                count += 1
            else:
                count = 1
                last_up = up

            if count >= 6:
                direction = "increasing" if last_up else "decreasing"
                violations.append(self._violation(
                    i, range(i - 5, i + 1),
                    f"Six consecutive points {direction}",
                    detected_at,
                ))
                count = 1
        return violations


class Rule4Alternator(_RuleBase):
    """Rule 4: Fourteen points alternating up and down.

    Every successive difference in the window must change sign; a repeated
    value or a nan point breaks the pattern. Only the first qualifying window
    is reported.
    """

    rule_id = "rule4"
    rule_name = "Fourteen consecutive points alternating up and down"
    description = "Fourteen points in a row alternating up and down"
    min_samples_required = 14

    def scan(self, values, zones, detected_at):
        window = self.min_samples_required
        for end in range(window - 1, len(values)):
            start = end - window + 1
            alternating = True
            for j in range(start, end - 1):
                dir1 = values[j + 1] - values[j]
                dir2 = values[j + 2] - values[j + 1]
                if not dir1 * dir2 < 0:  # Same sign, zero or nan
                    alternating = False
                    break

            if alternating:
                return [self._violation(
                    end, range(start, end + 1),
                    "Fourteen consecutive points alternating up and down",
                    detected_at,
                )]
        return []


class _CountInWindowRule(_RuleBase):
    """Every window of ``min_samples_required`` points holding at least
    ``threshold`` points outside the band is reported.

    The band is named by two ZoneBoundaries attributes.
    """

    threshold: int
    upper_zone: str
    lower_zone: str

    def scan(self, values, zones, detected_at):
        upper = getattr(zones, self.upper_zone)
        lower = getattr(zones, self.lower_zone)
        window = self.min_samples_required
        violations = []
        for end in range(window - 1, len(values)):
            start = end - window + 1
            outside = sum(1 for v in values[start:end + 1] if _beyond(v, upper, lower))
            if outside >= self.threshold:
                violations.append(self._violation(
                    end, range(start, end + 1), self.rule_name, detected_at,
                ))
        return violations


class Rule5ZoneA(_CountInWindowRule):
    """Rule 5: Two out of three consecutive points beyond 2 sigma.

    The two points may lie on either side of the center line.
    """

    rule_id = "rule5"
    rule_name = "Two out of three consecutive points beyond 2-sigma limits"
    description = "Two of three points in a row beyond two sigma from the center line"
    min_samples_required = 3
    threshold = 2
    upper_zone = "plus_2_sigma"
    lower_zone = "minus_2_sigma"


class Rule6ZoneB(_CountInWindowRule):
    """Rule 6: Four out of five consecutive points beyond 1 sigma."""

    rule_id = "rule6"
    rule_name = "Four out of five consecutive points beyond 1-sigma limits"
    description = "Four of five points in a row beyond one sigma from the center line"
    min_samples_required = 5
    threshold = 4
    upper_zone = "plus_1_sigma"
    lower_zone = "minus_1_sigma"


class Rule7Stratification(_RuleBase):
    """Rule 7: Fifteen consecutive points within 1 sigma (hugging the mean).

    The band is inclusive. Only the first qualifying window is reported.
    """

    rule_id = "rule7"
    rule_name = "Fifteen consecutive points within 1-sigma limits"
    description = "Fifteen points in a row within one sigma of the center line"
    min_samples_required = 15

    def scan(self, values, zones, detected_at):
        window = self.min_samples_required
        for end in range(window - 1, len(values)):
            start = end - window + 1
            if all(
                zones.minus_1_sigma <= v <= zones.plus_1_sigma
                for v in values[start:end + 1]
            ):
                return [self._violation(
                    end, range(start, end + 1), self.rule_name, detected_at,
                )]
        return []


class Rule8Mixture(_RuleBase):
    """Rule 8: Eight consecutive points beyond 1 sigma, either side.

    Only the first qualifying window is reported.
    """

    rule_id = "rule8"
    rule_name = "Eight consecutive points beyond 1-sigma limits"
    description = "Eight points in a row with none within one sigma of the center line"
    min_samples_required = 8

    def scan(self, values, zones, detected_at):
        window = self.min_samples_required
        for end in range(window - 1, len(values)):
            start = end - window + 1
            if all(
                _beyond(v, zones.plus_1_sigma, zones.minus_1_sigma)
                for v in values[start:end + 1]
            ):
                return [self._violation(
                    end, range(start, end + 1), self.rule_name, detected_at,
                )]
        return []


def normalize_rule_id(rule_id: "int | str") -> str:
    """Accept 3, "3" or "rule3" and return "rule3".

    Raises:
        ValueError: If the value names no rule
    """
    key = str(rule_id).strip().lower()
    if not key.startswith("rule"):
        key = f"rule{key}"
    if key not in _DEFAULT_RULE_IDS:
        raise ValueError(f"Unknown rule: {rule_id!r}")
    return key


_DEFAULT_RULES = (
    Rule1BeyondLimits,
    Rule2Shift,
    Rule3Trend,
    Rule4Alternator,
    Rule5ZoneA,
    Rule6ZoneB,
    Rule7Stratification,
    Rule8Mixture,
)
_DEFAULT_RULE_IDS = frozenset(rule.rule_id for rule in _DEFAULT_RULES)


class NelsonRuleLibrary:
    """Aggregates and manages the eight run rules.

    Rules run in id order and each scans the whole sequence; one rule never
    suppresses another.
    """

    def __init__(self):
        self._rules: dict[str, WesternElectricRule] = {}
        self._register_default_rules()

    def _register_default_rules(self) -> None:
        for rule_cls in _DEFAULT_RULES:
            rule = rule_cls()
            self._rules[rule.rule_id] = rule

    @property
    def rules(self) -> list[WesternElectricRule]:
        """Registered rules in id order."""
        return list(self._rules.values())

    def get_rule(self, rule_id: "int | str") -> WesternElectricRule:
        """Get rule by id.

        Raises:
            ValueError: If the rule does not exist
        """
        return self._rules[normalize_rule_id(rule_id)]

    def check_all(
        self,
        values: Sequence[float],
        limits: ControlLimits,
        enabled_rules: "Iterable[int | str] | None" = None,
        detected_at: datetime | None = None,
    ) -> list[RuleViolation]:
        """Evaluate enabled rules over the whole sequence.

        Args:
            values: Chart points in sequence order
            limits: Control limits the points are judged against
            enabled_rules: Rule ids to evaluate (None = all)
            detected_at: Timestamp for the violations (default: now, UTC)

        Returns:
            Violations grouped by rule in id order, each group in index order
        """
        if enabled_rules is None:
            enabled = set(self._rules)
        else:
            enabled = {normalize_rule_id(r) for r in enabled_rules}

        if detected_at is None:
            detected_at = datetime.now(timezone.utc)

        zones = calculate_zones(limits)
        violations: list[RuleViolation] = []
        for rule_id, rule in self._rules.items():
            if rule_id in enabled:
                violations.extend(rule.scan(values, zones, detected_at))

        logger.debug(
            "rule_violations_detected",
            points=len(values),
            rules=sorted(enabled),
            violations=len(violations),
        )
        return violations


_library = NelsonRuleLibrary()


def get_rule(rule_id: "int | str") -> WesternElectricRule:
    """Look up a rule in the default library."""
    return _library.get_rule(rule_id)


def list_rules() -> list[WesternElectricRule]:
    """All rules of the default library in id order."""
    return _library.rules


def rule_violations(
    values: Sequence[float],
    limits: ControlLimits,
    enabled_rules: "Iterable[int | str] | None" = None,
    detected_at: datetime | None = None,
) -> list[RuleViolation]:
    """Detect Western Electric / Nelson rule violations in a chart sequence.

    Example:
        >>> limits = ControlLimits(ucl=13.0, lcl=7.0, cl=10.0, sigma=1.0)
        >>> [v.id for v in rule_violations([10, 14, 10], limits, enabled_rules=[1])]
        ['rule1-1']
    """
    return _library.check_all(values, limits, enabled_rules, detected_at)
