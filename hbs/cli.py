from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, List, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .config import RenderOptions, load_options
from .errors import HbsError, TemplateSyntaxError
from .jsonic import dumps as jdumps
from .registry import DEFAULT_EXTENSION, TemplateRegistry, compile_template
from .report import CheckEntry, CheckReport
from .version import tool_version

_yaml = YAML(typ="safe")


def _setup_logging() -> None:
    """stderr handler for the `hbs` loggers; DEBUG when HBS_DEBUG is set."""
    log = logging.getLogger("hbs")
    log.setLevel(logging.DEBUG if os.environ.get("HBS_DEBUG") else logging.INFO)
    if not log.handlers:
        h = logging.StreamHandler(sys.stderr)
        h.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        log.addHandler(h)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="hbs",
        description="Handlebars-style template renderer",
        add_help=True,
    )
    p.add_argument("-v", "--version", action="version", version=f"%(prog)s {tool_version()}")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp_render = sub.add_parser("render", help="Render a template file to stdout")
    sp_render.add_argument("template", help="path to the template file")
    sp_render.add_argument(
        "data",
        nargs="?",
        metavar="JSON|@FILE|-",
        help=(
            "render context: inline JSON, @file (.json, .yaml or .yml) "
            "or - to read JSON from stdin"
        ),
    )
    sp_render.add_argument(
        "--partials",
        action="append",
        metavar="DIR",
        help="directory of partial templates (can be given several times)",
    )
    sp_render.add_argument(
        "--ext",
        default=DEFAULT_EXTENSION,
        help=f"extension of partial templates (default: {DEFAULT_EXTENSION})",
    )
    sp_render.add_argument("--strict", action="store_true", help="fail on unknown helpers and partials")
    sp_render.add_argument("--no-escape", action="store_true", help="disable HTML escaping")
    sp_render.add_argument("--config", metavar="FILE", help="YAML file with render options")

    sp_check = sub.add_parser("check", help="Compile templates and report syntax errors (JSON)")
    sp_check.add_argument("templates", nargs="+", metavar="TEMPLATE", help="template files to check")

    return p


def _parse_data(data_arg: Optional[str]) -> Any:
    """
    Parses the DATA argument of `render`.

    Supported forms:
    - Inline JSON: '{"name": "x"}'
    - From file: @path/to/data.json, @data.yaml
    - From stdin: -

    Returns:
        Parsed context value ({} when the argument is absent)
    """
    if data_arg is None:
        return {}

    if data_arg == "-":
        return _loads_json(sys.stdin.read(), "stdin")

    if data_arg.startswith("@"):
        file_path = Path(data_arg[1:])
        if not file_path.is_file():
            raise ValueError(f"Data file not found: {file_path}")
        try:
            text = file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ValueError(f"Failed to read data file {file_path}: {e}") from e
        if file_path.suffix.lower() in (".yaml", ".yml"):
            try:
                return _yaml.load(text)
            except YAMLError as e:
                raise ValueError(f"Invalid YAML in data file {file_path}: {e}") from e
        return _loads_json(text, str(file_path))

    return _loads_json(data_arg, "argument")


def _loads_json(text: str, origin: str) -> Any:
    if not text.strip():
        return {}
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON data ({origin}): {e}") from e


def _options(ns: argparse.Namespace) -> RenderOptions:
    options = RenderOptions()
    if ns.config:
        options = load_options(Path(ns.config), options)
    if ns.strict:
        options = options.with_changes(strict_mode=True)
    if ns.no_escape:
        options = options.with_changes(escape="none")
    return options


def _run_render(ns: argparse.Namespace) -> str:
    registry = TemplateRegistry(_options(ns))
    for directory in ns.partials or []:
        registry.register_templates_directory(directory, ns.ext)

    template = registry.register_template_file(ns.template, ns.template)
    return registry.render(template, _parse_data(ns.data))


def _run_check(paths: List[str]) -> CheckReport:
    report = CheckReport()
    for raw in paths:
        path = Path(raw)
        try:
            compile_template(path.read_text(encoding="utf-8"), raw)
        except OSError as e:
            report.templates.append(CheckEntry(path=raw, ok=False, error=str(e)))
        except TemplateSyntaxError as e:
            report.templates.append(CheckEntry.from_error(raw, e))
        else:
            report.templates.append(CheckEntry(path=raw, ok=True))
    return report


def main(argv: list[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)
    _setup_logging()

    try:
        if ns.cmd == "render":
            sys.stdout.write(_run_render(ns))
            return 0

        if ns.cmd == "check":
            report = _run_check(ns.templates)
            sys.stdout.write(jdumps(report.to_json_dict()))
            return 0 if report.ok else 2

    except HbsError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2
    except ValueError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
