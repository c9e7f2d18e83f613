import argparse
import logging
import sys

from scenario_runner.runner import FeatureNotFoundError, FeatureRun, run

logger = logging.getLogger(__name__)


def parse_user_data(values: list[str]) -> dict[str, str]:
    user_data: dict[str, str] = {}
    for value in values:
        key, sep, data = value.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(
                f"user data must look like KEY=VALUE, got {value!r}"
            )
        user_data[key] = data
    return user_data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scenario-runner",
        description=(
            "Run a behave feature file and write a Cucumber JSON report of the "
            "results."
        ),
    )
    parser.add_argument(
        "feature",
        help=(
            "The feature file. Relative paths resolve against --relative-to; "
            "'classpath:' paths are looked up on the Python path."
        ),
    )
    parser.add_argument(
        "--relative-to",
        default=None,
        help="File or directory that the feature path is relative to",
    )
    parser.add_argument(
        "--env",
        default=None,
        help="Environment the scenarios target (dev, staging, prod)",
    )
    parser.add_argument(
        "--tags",
        action="append",
        default=[],
        help="behave tag expression, can be repeated",
    )
    parser.add_argument(
        "-D",
        "--define",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="User data passed to the scenarios, can be repeated",
    )
    parser.add_argument(
        "--no-cucumber-json",
        action="store_true",
        help="Do not keep the Cucumber JSON report",
    )
    parser.add_argument(
        "--junit",
        action="store_true",
        help="Also write JUnit XML reports",
    )
    parser.add_argument(
        "--report-dir",
        default=None,
        help="Directory for report artifacts (default: $SCENARIO_REPORT_DIR or reports)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log the behave command and its output",
    )
    return parser


def get_feature_run(args: list[str]) -> tuple[FeatureRun, bool]:
    parser = build_parser()
    options = parser.parse_args(args)

    try:
        user_data = parse_user_data(options.define)
    except argparse.ArgumentTypeError as err:
        parser.error(str(err))

    feature_run = run(options.feature).output_cucumber_json(
        not options.no_cucumber_json
    )
    if options.relative_to:
        feature_run = feature_run.relative_to(options.relative_to)
    if options.junit:
        feature_run = feature_run.output_junit_xml(True)
    if options.tags:
        feature_run = feature_run.with_tags(*options.tags)
    if options.env:
        feature_run = feature_run.with_env(options.env)
    if user_data:
        feature_run = feature_run.with_user_data(**user_data)
    if options.report_dir:
        feature_run = feature_run.in_report_dir(options.report_dir)

    return feature_run, options.verbose


def main(args: list[str] | None = None) -> int:
    feature_run, verbose = get_feature_run(sys.argv[1:] if args is None else args)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        result = feature_run.execute()
    except FeatureNotFoundError as err:
        logger.error("%s", err)
        return 2

    print(result.summary())
    return 0 if result.passed else 1


if __name__ == "__main__":
    sys.exit(main())
