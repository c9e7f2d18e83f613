"""
Module: scenario_runner.runner

Runs a behave feature file on behalf of a test and hands back the outcome.

Usage:

    result = (
        run("features/auth.feature")
        .relative_to(__file__)
        .output_cucumber_json(True)
        .execute()
    )

    if not result.passed:
        print(result.summary())

``run`` builds an immutable :class:`FeatureRun`; every builder method returns
a new request. ``execute`` resolves the feature file, starts behave in a
child process and returns a :class:`RunResult` built from behave's exit code
and its JSON report. Scenario failures are reported in the result, never
raised.
"""

from __future__ import annotations

import inspect
import logging
import subprocess
import sys
import tempfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from scenario_runner.config import get_report_dir
from scenario_runner.report import FeatureResult, ScenarioResult, load_behave_json

logger = logging.getLogger(__name__)

CLASSPATH_PREFIX = "classpath:"
JUNIT_SUBDIR = "junit"


class FeatureNotFoundError(FileNotFoundError):
    """
    Raised when a feature reference does not resolve to an existing file.
    """


@dataclass(frozen=True)
class RunResult:
    """
    Outcome of one behave run.

    :param feature_path: The resolved feature file.
    :param exit_code: behave's process exit code.
    :param features: Results read from behave's JSON report.
    :param report_paths: Report artifacts kept after the run.
    :param output: Combined stdout and stderr of the behave process.
    """

    feature_path: Path
    exit_code: int
    features: list[FeatureResult] = field(default_factory=list)
    report_paths: list[Path] = field(default_factory=list)
    output: str = ""

    @property
    def scenarios(self) -> list[ScenarioResult]:
        return [scenario for feature in self.features for scenario in feature.scenarios]

    @property
    def scenario_count(self) -> int:
        return len(self.scenarios)

    @property
    def failed_scenarios(self) -> list[ScenarioResult]:
        return [scenario for scenario in self.scenarios if scenario.failed]

    @property
    def passed(self) -> bool:
        return self.exit_code == 0 and not self.failed_scenarios

    def summary(self) -> str:
        """
        Human-readable summary, listing failed scenarios with their errors.

        When behave produced no report (e.g. a Gherkin syntax error) the tail
        of its output is included instead.
        """
        failed = self.failed_scenarios
        outcome = "passed" if self.passed else "failed"
        lines = [
            f"{self.feature_path}: {outcome} "
            f"({self.scenario_count - len(failed)}/{self.scenario_count} "
            f"scenarios passed, exit code {self.exit_code})"
        ]

        for scenario in failed:
            lines.append(f"  FAILED {scenario.name} ({scenario.location})")
            if scenario.error_message:
                lines.extend(
                    f"    {line}" for line in scenario.error_message.splitlines()
                )

        if not self.passed and not self.features and self.output:
            lines.append("behave output:")
            lines.extend(
                f"  {line}" for line in self.output.strip().splitlines()[-20:]
            )

        return "\n".join(lines)


@dataclass(frozen=True)
class FeatureRun:
    """
    A request to run one feature file.

    :param feature: Feature path, relative to ``anchor`` unless it starts with
        ``classpath:``.
    :param anchor: Directory that relative paths resolve against. ``None``
        means the working directory.
    :param cucumber_json: Keep behave's Cucumber-style JSON report.
    :param junit_xml: Also write JUnit XML reports.
    :param tags: behave tag expressions, each passed as ``--tags``.
    :param user_data: Values passed as ``--define key=value``.
    :param report_dir: Directory for report artifacts.
    """

    feature: str
    anchor: Path | None = None
    cucumber_json: bool = False
    junit_xml: bool = False
    tags: tuple[str, ...] = ()
    user_data: tuple[tuple[str, str], ...] = ()
    report_dir: Path = field(default_factory=get_report_dir)

    def relative_to(self, anchor: Any) -> FeatureRun:
        """
        Resolve the feature path against ``anchor``.

        :param anchor: A file path (its directory is used), a directory path,
            or a module, class or function (the directory of its source file
            is used). Callers usually pass ``__file__``.
        """
        return replace(self, anchor=_anchor_directory(anchor))

    def output_cucumber_json(self, enabled: bool = True) -> FeatureRun:
        return replace(self, cucumber_json=enabled)

    def output_junit_xml(self, enabled: bool = True) -> FeatureRun:
        return replace(self, junit_xml=enabled)

    def with_tags(self, *tags: str) -> FeatureRun:
        return replace(self, tags=self.tags + tags)

    def with_env(self, env: str) -> FeatureRun:
        return self.with_user_data(env=env)

    def with_user_data(self, **values: str) -> FeatureRun:
        merged = dict(self.user_data)
        merged.update(values)
        return replace(self, user_data=tuple(merged.items()))

    def in_report_dir(self, report_dir: str | Path) -> FeatureRun:
        return replace(self, report_dir=Path(report_dir))

    def resolve(self) -> Path:
        """
        Locate the feature file.

        :returns: Absolute path of the feature file.
        :raises FeatureNotFoundError: If the file does not exist.
        """
        if self.feature.startswith(CLASSPATH_PREFIX):
            relative = self.feature[len(CLASSPATH_PREFIX) :].lstrip("/")
            for entry in sys.path:
                candidate = Path(entry or ".") / relative
                if candidate.is_file():
                    return candidate.resolve()
            raise FeatureNotFoundError(
                f"Feature {self.feature!r} not found on sys.path"
            )

        base = self.anchor if self.anchor is not None else Path.cwd()
        candidate = base / self.feature
        if not candidate.is_file():
            raise FeatureNotFoundError(
                f"Feature {self.feature!r} not found relative to {base} "
                f"(looked for {candidate})"
            )
        return candidate.resolve()

    def cucumber_json_path(self, feature_path: Path) -> Path:
        return self.report_dir.resolve() / f"{feature_path.stem}.json"

    def junit_dir(self) -> Path:
        return self.report_dir.resolve() / JUNIT_SUBDIR

    def build_command(self, feature_path: Path, json_path: Path) -> list[str]:
        """
        Build the behave command line.

        :param feature_path: Resolved feature file.
        :param json_path: Where behave writes its JSON report.
        :returns: The argument vector, starting with the Python interpreter.
        """
        command = [
            sys.executable,
            "-m",
            "behave",
            str(feature_path),
            "--format",
            "json",
            "--outfile",
            str(json_path),
        ]

        if self.junit_xml:
            command.extend(["--junit", "--junit-directory", str(self.junit_dir())])

        for tag in self.tags:
            command.extend(["--tags", tag])

        for key, value in self.user_data:
            command.extend(["--define", f"{key}={value}"])

        return command

    def execute(self) -> RunResult:
        """
        Run the feature with behave and collect the outcome.

        :returns: The :class:`RunResult` of the run.
        :raises FeatureNotFoundError: If the feature file cannot be located.
        """
        feature_path = self.resolve()
        logger.info("Running feature %s", feature_path)

        if self.cucumber_json or self.junit_xml:
            self.report_dir.mkdir(parents=True, exist_ok=True)

        if self.cucumber_json:
            json_path = self.cucumber_json_path(feature_path)
            return self._run(feature_path, json_path)

        with tempfile.TemporaryDirectory(prefix="behave-report-") as scratch:
            return self._run(feature_path, Path(scratch) / "report.json")

    def _run(self, feature_path: Path, json_path: Path) -> RunResult:
        # Reports left by an earlier run must not be read as this run's outcome
        json_path.unlink(missing_ok=True)
        if self.junit_xml:
            for stale in self.junit_dir().glob("*.xml"):
                stale.unlink()

        command = self.build_command(feature_path, json_path)
        logger.debug("behave command: %s", " ".join(command))

        completed = subprocess.run(  # noqa: S603 - command built from our own arguments
            command,
            capture_output=True,
            text=True,
            check=False,
        )
        output = completed.stdout + completed.stderr
        logger.debug("behave output:\n%s", output)

        features = load_behave_json(json_path)

        report_paths: list[Path] = []
        if self.cucumber_json and json_path.is_file():
            report_paths.append(json_path)
            logger.info("Cucumber JSON report written to %s", json_path)
        if self.junit_xml and any(self.junit_dir().glob("*.xml")):
            report_paths.append(self.junit_dir())
            logger.info("JUnit reports written to %s", self.junit_dir())

        return RunResult(
            feature_path=feature_path,
            exit_code=completed.returncode,
            features=features,
            report_paths=report_paths,
            output=output,
        )


def run(feature: str) -> FeatureRun:
    """
    Start a run request for ``feature``.

    :param feature: Feature path. Relative paths resolve against the anchor
        given to :meth:`FeatureRun.relative_to`; ``classpath:`` paths are
        looked up on ``sys.path``.
    """
    return FeatureRun(feature=feature)


def _anchor_directory(anchor: Any) -> Path:
    if isinstance(anchor, (str, Path)):
        path = Path(anchor)
    else:
        path = Path(inspect.getfile(anchor))

    path = path.resolve()
    if path.is_dir():
        return path
    return path.parent
