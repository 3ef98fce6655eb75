"""Command line interface for the stencil template engine."""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from pathlib import Path
from typing import Any, Iterable, Sequence

from .config import build_configuration
from .errors import ConfigurationError
from .expression import conditional_variables
from .resolver import extract_variables, missing_variables
from .scaffold import BundleScaffolder
from .template import TemplateRenderer
from .validator import format_validation_result, validate_template


def _parse_key_value_pairs(pairs: Iterable[str]) -> dict[str, str]:
    context: dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise argparse.ArgumentTypeError(
                f"invalid key/value pair '{pair}'. Expected KEY=VALUE syntax."
            )
        key, value = pair.split("=", 1)
        key = key.strip()
        if not key:
            raise argparse.ArgumentTypeError("keys must not be empty")
        context[key] = value
    return context


_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def _infer_value(text: str) -> Any:
    """Turn a ``-c`` value that no option declares into a bool, number or string."""

    lowered = text.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if _NUMBER.fullmatch(text.strip()):
        return float(text) if "." in text else int(text)
    return text


def _context_values(pairs: Iterable[str]) -> dict[str, Any]:
    return {key: _infer_value(value) for key, value in _parse_key_value_pairs(pairs).items()}


def _load_bundle(path: Path) -> dict[str, Any]:
    with path.open(encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise argparse.ArgumentTypeError(f"{path} does not contain a JSON object")
    return data


def _add_context_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c",
        "--context",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Values exposed to the template; dotted keys create nested values",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render and validate project templates")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    render_parser = subparsers.add_parser("render", help="render a single template file")
    render_parser.add_argument("template", type=Path, help="Path to the template file")
    _add_context_argument(render_parser)
    render_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write the rendered template to this path instead of stdout",
    )

    variables_parser = subparsers.add_parser(
        "variables", help="list the variables a template file references"
    )
    variables_parser.add_argument("template", type=Path, help="Path to the template file")
    _add_context_argument(variables_parser)
    variables_parser.add_argument(
        "--missing",
        action="store_true",
        help="Only list variables not supplied through --context",
    )

    validate_parser = subparsers.add_parser("validate", help="validate a bundle manifest")
    validate_parser.add_argument("bundle", type=Path, help="Path to a JSON bundle manifest")
    validate_parser.add_argument("--id", dest="template_id", help="Identifier used in reports")
    validate_parser.add_argument(
        "--json", action="store_true", help="Print the structured result as JSON"
    )

    init_parser = subparsers.add_parser("init", help="render a bundle into a directory")
    init_parser.add_argument("bundle", type=Path, help="Path to a JSON bundle manifest")
    init_parser.add_argument(
        "-d",
        "--directory",
        type=Path,
        default=Path.cwd(),
        help="Target directory where the files should be created",
    )
    _add_context_argument(init_parser)
    init_parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Overwrite existing files instead of failing",
    )

    return parser


def _handle_render(args: argparse.Namespace) -> int:
    configuration = build_configuration(values=_context_values(args.context))
    template = args.template.read_text(encoding="utf-8")
    rendered = TemplateRenderer().render(template, configuration).content
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(rendered, encoding="utf-8")
    else:
        sys.stdout.write(rendered)
        if not rendered.endswith("\n"):
            sys.stdout.write("\n")
    return 0


def _handle_variables(args: argparse.Namespace) -> int:
    template = args.template.read_text(encoding="utf-8")
    if args.missing:
        configuration = build_configuration(values=_context_values(args.context))
        names = missing_variables(template, configuration)
    else:
        names = extract_variables(template)
        names += [name for name in conditional_variables(template) if name not in names]
    for name in names:
        print(name)
    return 0


def _handle_validate(args: argparse.Namespace) -> int:
    bundle = _load_bundle(args.bundle)
    result = validate_template(bundle, args.template_id or args.bundle.stem)
    if args.json:
        print(json.dumps(result.model_dump(mode="json"), indent=2))
    else:
        print(format_validation_result(result))
    return 0 if result.is_valid else 1


def _handle_init(args: argparse.Namespace) -> int:
    bundle = _load_bundle(args.bundle)
    scaffolder = BundleScaffolder()
    result = scaffolder.validate(bundle, args.bundle.stem)
    if not result.is_valid:
        print(format_validation_result(result), file=sys.stderr)
        return 1

    try:
        configuration = build_configuration(
            bundle.get("options") or [], _parse_key_value_pairs(args.context)
        )
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    try:
        written = scaffolder.write(bundle, configuration, args.directory, force=args.force)
    except (FileExistsError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(f"Created {len(written)} file(s) in {args.directory}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    if args.command == "render":
        return _handle_render(args)
    if args.command == "variables":
        return _handle_variables(args)
    if args.command == "validate":
        return _handle_validate(args)
    if args.command == "init":
        return _handle_init(args)
    parser.error("no command provided")
    return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
