"""
Read the Cucumber-style JSON written by behave's ``json`` formatter.

Only the parts needed to decide whether a run passed are kept: feature and
scenario names, locations, statuses and the first error message of a failed
scenario.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

logger = logging.getLogger(__name__)

FAILED_STATUSES = frozenset({"failed", "undefined", "error", "hook_error"})

# Recursive JSON-like structure, as decoded by json.loads.
type JsonValue = (
    str | int | float | bool | None | dict[str, "JsonValue"] | list["JsonValue"]
)
type JsonObject = dict[str, JsonValue]


@dataclass(frozen=True)
class ScenarioResult:
    """
    Outcome of a single scenario.

    :param name: Scenario title.
    :param location: ``path:line`` of the scenario in its feature file.
    :param status: behave status name (``passed``, ``failed``, ``skipped``...).
    :param error_message: First error message reported by a step, if any.
    """

    name: str
    location: str
    status: str
    error_message: str | None = None

    @property
    def failed(self) -> bool:
        return self.status in FAILED_STATUSES


@dataclass(frozen=True)
class FeatureResult:
    name: str
    location: str
    scenarios: list[ScenarioResult] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return any(scenario.failed for scenario in self.scenarios)

    @property
    def status(self) -> str:
        if self.failed:
            return "failed"
        if any(scenario.status == "passed" for scenario in self.scenarios):
            return "passed"
        return "skipped"


def load_behave_json(path: Path) -> list[FeatureResult]:
    """
    Parse a behave JSON report.

    :param path: Report file written by ``behave --format json --outfile``.
    :returns: One :class:`FeatureResult` per feature. Empty if the report is
        missing, empty or cannot be decoded.
    """
    if not path.is_file():
        logger.debug("No behave report at %s", path)
        return []

    text = path.read_text(encoding="utf-8").strip()
    if not text:
        return []

    try:
        document = json.loads(text)
    except json.JSONDecodeError as err:
        logger.warning("Could not decode behave report %s: %s", path, err)
        return []

    if not isinstance(document, list):
        logger.warning("Unexpected behave report layout in %s", path)
        return []

    return [_feature_result(cast("JsonObject", feature)) for feature in document]


def _feature_result(feature: JsonObject) -> FeatureResult:
    elements = cast("list[JsonObject]", feature.get("elements") or [])
    scenarios = [
        _scenario_result(element)
        for element in elements
        if element.get("type", "scenario") != "background"
    ]
    return FeatureResult(
        name=str(feature.get("name", "")),
        location=str(feature.get("location", "")),
        scenarios=scenarios,
    )


def _scenario_result(element: JsonObject) -> ScenarioResult:
    steps = cast("list[JsonObject]", element.get("steps") or [])
    status = element.get("status")
    if not isinstance(status, str):
        status = _status_from_steps(steps)

    return ScenarioResult(
        name=str(element.get("name", "")),
        location=str(element.get("location", "")),
        status=status,
        error_message=_first_error(steps),
    )


def _status_from_steps(steps: list[JsonObject]) -> str:
    step_statuses = [
        str(cast("JsonObject", step["result"]).get("status"))
        for step in steps
        if isinstance(step.get("result"), dict)
    ]

    if any(status in FAILED_STATUSES for status in step_statuses):
        return "failed"
    # Steps without a result were never executed.
    if steps and step_statuses == ["passed"] * len(steps):
        return "passed"
    return "skipped"


def _first_error(steps: list[JsonObject]) -> str | None:
    for step in steps:
        result = step.get("result")
        if not isinstance(result, dict):
            continue
        message: Any = result.get("error_message")
        if not message:
            continue
        if isinstance(message, list):
            return "\n".join(str(line) for line in message)
        return str(message)
    return None
