"""Command line interface for emg."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from ._version import __version__
from .api import GenOptions, generate_model, inspect_module, load_params_file
from .errors import EmgError, NotImplementedFeature
from .logging import configure_logging, get_logger, step
from .render import OutputFormat
from .reporting import (
    JsonLinesReporter,
    PlainReporter,
    RichReporter,
    SilentReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
)


def _gen_cmd(args: argparse.Namespace) -> int:
    params = list(args.params)
    if args.params_file is not None:
        extra = load_params_file(args.params_file)
        step(f"{len(extra)} parameters from {args.params_file.name}")
        params.extend(extra)
    result = generate_model(
        GenOptions(
            module_path=args.module,
            generator=args.generator,
            params=params,
            format=OutputFormat(args.format),
            output_path=args.output,
        )
    )
    # Finalize progress output before the artifact hits stdout
    get_reporter().flush()
    if args.output is None:
        sys.stdout.buffer.write(result.output)
        sys.stdout.buffer.flush()
    return 0


def _inspect_cmd(args: argparse.Namespace) -> int:
    infos = inspect_module(args.module)
    get_reporter().section(args.module.name)
    get_reporter().status(
        f"Inspect summary: module={args.module.name} generators={len(infos)}"
    )
    get_reporter().flush()
    if args.json:
        print(json.dumps([info.to_dict() for info in infos], indent=2))
    else:
        for info in infos:
            print(f"{info.name}({', '.join(info.params)})")
    return 0


def _serve_cmd(args: argparse.Namespace) -> int:
    raise NotImplementedFeature(
        "serve is not implemented yet", {"module": str(args.module)}
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="emg",
        description="Generate 3D models from emg plugin modules",
    )
    p.add_argument("--version", action="version", version=f"emg {__version__}")
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable); diagnostics go to stderr",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=["plain", "rich", "json", "silent"],
        default="plain",
        help="Select reporter backend: plain (default), rich, json (JSONL events), silent",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    g = sub.add_parser("gen", help="Generate a model using a plugin module")
    g.add_argument("module", type=Path, help="Path to a .py, .wasm or .wat module")
    g.add_argument("generator", help="Name of the model generator to run")
    g.add_argument("params", nargs="*", help="Parameters passed to the generator")
    g.add_argument(
        "-f",
        "--format",
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.PRETTY.value,
        help="Output format: pretty (default), text (.gltf), binary (.glb)",
    )
    g.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write output to this file instead of stdout",
    )
    g.add_argument(
        "--params-file",
        dest="params_file",
        type=Path,
        help="JSON or YAML list of parameters, appended after positional ones",
    )
    g.set_defaults(func=_gen_cmd)

    i = sub.add_parser("inspect", help="List the generators a module exports")
    i.add_argument("module", type=Path)
    i.add_argument("--json", action="store_true", help="Emit JSON")
    i.set_defaults(func=_inspect_cmd)

    s = sub.add_parser("serve", help="Not yet implemented")
    s.add_argument("module", type=Path)
    s.set_defaults(func=_serve_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    requested = args.reporter
    if requested == "json":
        set_reporter(JsonLinesReporter())
    elif requested == "silent":
        set_reporter(SilentReporter())
    elif requested == "rich" and sys.stderr.isatty():
        set_reporter(RichReporter())
    else:
        set_reporter(PlainReporter())
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    try:
        return args.func(args)
    except EmgError as err:
        get_logger().error("%s", err)
        return int(err.code)
    finally:
        get_reporter().flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
