"""Programmatic entry points behind the ``emg`` command."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

from .errors import ParameterTypeError
from .logging import get_logger
from .packing.inspector import inspect_container, read_container
from .plugin.host import GeneratorInfo, describe_module, invoke_generator
from .plugin.loader import load_module
from .render import OutputFormat, render
from .reporting import task

__all__ = [
    "GenOptions",
    "GenResult",
    "GeneratorInfo",
    "generate_model",
    "inspect_module",
    "load_params_file",
]


@dataclass(slots=True)
class GenOptions:
    module_path: Path
    generator: str
    params: List[str] = field(default_factory=list)
    format: OutputFormat = OutputFormat.PRETTY
    # None writes nothing; the caller decides where the output goes
    output_path: Optional[Path] = None


@dataclass(slots=True)
class GenResult:
    output: bytes
    container_length: int
    format: OutputFormat
    output_path: Optional[Path] = None


def load_params_file(path: str | Path) -> List[str]:
    """Read generator parameters from a JSON or YAML list of scalars."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
        if p.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ParameterTypeError(
            f"cannot read params file: {e}", {"path": str(p)}
        ) from e
    if data is None:
        return []
    if not isinstance(data, list):
        raise ParameterTypeError(
            "params file must contain a list", {"path": str(p)}
        )
    params: List[str] = []
    for i, value in enumerate(data):
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ParameterTypeError(
                f"params file entry {i + 1} must be a number",
                {"path": str(p), "index": i, "value": repr(value)},
            )
        params.append(str(value))
    return params


def generate_model(options: GenOptions) -> GenResult:
    logger = get_logger()
    fmt = OutputFormat(options.format)
    module = load_module(options.module_path)
    with task(
        "gen.invoke",
        f"Generate {options.generator}",
        generator=options.generator,
        params=len(options.params),
    ) as stats:
        data = invoke_generator(module, options.generator, options.params)
        layout = read_container(data)
        bin_length = layout.bin.length if layout.bin is not None else 0
        stats.update(bytes=len(data), json=layout.json.length, bin=bin_length)
    output = render(data, fmt)
    logger.info(
        "Build summary: generator=%s bytes=%d json=%d bin=%d format=%s",
        options.generator,
        len(data),
        layout.json.length,
        bin_length,
        fmt.value,
    )
    counts = inspect_container(data)["counts"]
    logger.debug(
        "Container contents: %s",
        " ".join(f"{k}={v}" for k, v in counts.items()),
    )
    if options.output_path is not None:
        options.output_path.parent.mkdir(parents=True, exist_ok=True)
        options.output_path.write_bytes(output)
        logger.debug("wrote %d bytes to %s", len(output), options.output_path)
    return GenResult(
        output=output,
        container_length=len(data),
        format=fmt,
        output_path=options.output_path,
    )


def inspect_module(path: str | Path) -> List[GeneratorInfo]:
    module = load_module(path)
    return describe_module(module)
