from __future__ import annotations

"""WebAssembly plugin modules compiled from text with wasmtime."""

from pathlib import Path

import pytest

from emg.errors import (
    ContractError,
    ErrorCode,
    ExecutionFault,
    GeneratorFailure,
    ModuleLoadError,
    ParameterCountError,
)
from emg.packing import read_container, write_container
from emg.plugin import describe_module, invoke_generator, load_module
from emg.plugin.host import GeneratorInfo
from emg.scene import Document

ARTIFACT_OFFSET = 16


def _wat_bytes(data: bytes) -> str:
    return "".join(f"\\{b:02x}" for b in data)


def _write_module(tmp_path: Path, container: bytes, size: int | None = None) -> Path:
    size = len(container) if size is None else size
    text = f"""
(module
  (memory (export "memory") 1)
  (data (i32.const {ARTIFACT_OFFSET}) "{_wat_bytes(container)}")
  (func (export "emg_fixed") (result i32) i32.const 0)
  (func (export "emg_scaled") (param i32 f64) (result i32) i32.const 0)
  (func (export "emg_refused") (result i32) i32.const 7)
  (func (export "emg_boom") (result i32) unreachable)
  (func (export "model_pointer") (result i32) i32.const {ARTIFACT_OFFSET})
  (func (export "model_size") (result i32) i32.const {size})
)
"""
    path = tmp_path / "fixed.wat"
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def container() -> bytes:
    return write_container(Document())


def test_invoke_reads_container_from_memory(tmp_path: Path, container: bytes):
    module = load_module(_write_module(tmp_path, container))
    data = invoke_generator(module, "fixed", [])
    assert data == container
    assert read_container(data).bin is None


def test_parameters_are_converted_for_the_wasm_signature(
    tmp_path: Path, container: bytes
):
    module = load_module(_write_module(tmp_path, container))
    assert invoke_generator(module, "scaled", ["3", "0.5"]) == container
    with pytest.raises(ParameterCountError):
        invoke_generator(module, "scaled", ["3"])


def test_describe_lists_generators(tmp_path: Path, container: bytes):
    module = load_module(_write_module(tmp_path, container))
    assert describe_module(module) == [
        GeneratorInfo("boom", (), ("i32",)),
        GeneratorInfo("fixed", (), ("i32",)),
        GeneratorInfo("refused", (), ("i32",)),
        GeneratorInfo("scaled", ("i32", "f64"), ("i32",)),
    ]


def test_trap_is_execution_fault(tmp_path: Path, container: bytes):
    module = load_module(_write_module(tmp_path, container))
    with pytest.raises(ExecutionFault) as ei:
        invoke_generator(module, "boom", [])
    assert ei.value.code == ErrorCode.EXECUTION


def test_nonzero_status_passes_through(tmp_path: Path, container: bytes):
    module = load_module(_write_module(tmp_path, container))
    with pytest.raises(GeneratorFailure) as ei:
        invoke_generator(module, "refused", [])
    assert ei.value.code == ErrorCode.GENERATION
    assert ei.value.status == 7


def test_artifact_beyond_memory_is_contract_error(
    tmp_path: Path, container: bytes
):
    module = load_module(_write_module(tmp_path, container, size=70000))
    with pytest.raises(ContractError):
        invoke_generator(module, "fixed", [])


def test_invalid_text_fails_to_compile(tmp_path: Path):
    path = tmp_path / "broken.wat"
    path.write_text("(module (func (export", encoding="utf-8")
    with pytest.raises(ModuleLoadError) as ei:
        load_module(path)
    assert ei.value.code == ErrorCode.MODULE_COMPILE

