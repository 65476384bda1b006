from __future__ import annotations

"""Host-side generator invocation against fake and in-process plugins."""

import struct
from pathlib import Path

import pytest

from container_helper import EMPTY_JSON, make_container
from emg.errors import (
    ContractError,
    ErrorCode,
    ExecutionFault,
    GeneratorFailure,
    GeneratorNotFound,
    MalformedContainerError,
    ModuleLoadError,
    ParameterCountError,
    ParameterOutOfRangeError,
    ParameterTypeError,
)
from emg.packing import read_container
from emg.plugin import (
    FuncType,
    FunctionExport,
    GenerationError,
    MemoryExport,
    Plugin,
    PythonPluginModule,
    ValType,
    describe_module,
    f32,
    f64,
    i32,
    i64,
    invoke_generator,
    load_module,
)
from emg.plugin.host import GeneratorInfo, parse_parameter
from emg.scene import Document, Geometry, Scene

ACCESSOR = FuncType((), (ValType.I32,))


class FakeModule:
    """Plugin module whose exports record every call made through them."""

    def __init__(self, memory: bytes = b"", offset: int = 0, length: int | None = None):
        self.calls: list[tuple[str, tuple]] = []
        self.memory = memory
        self.exports = {}
        self.add("model_pointer", ACCESSOR, lambda: offset)
        self.add(
            "model_size",
            ACCESSOR,
            lambda: len(memory) - offset if length is None else length,
        )
        self.exports["memory"] = MemoryExport(
            size=lambda: len(self.memory),
            read=lambda o, n: self.memory[o : o + n],
        )

    def add(self, name, ftype, fn):
        def call(*args):
            self.calls.append((name, args))
            return fn(*args)

        self.exports[name] = FunctionExport(ftype, call)

    def export_names(self):
        return list(self.exports)

    def get_export(self, name):
        return self.exports.get(name)


def _valid_module(**kwargs) -> FakeModule:
    module = FakeModule(make_container(EMPTY_JSON), **kwargs)
    module.add("emg_model", FuncType((ValType.I32, ValType.F64), (ValType.I32,)), lambda a, b: 0)
    return module


def test_unknown_generator_calls_nothing():
    module = _valid_module()
    module.add("emg_other", FuncType((), (ValType.I32,)), lambda: 0)
    with pytest.raises(GeneratorNotFound) as exc:
        invoke_generator(module, "missing", ["1"])
    assert exc.value.code is ErrorCode.GENERATOR_NOT_FOUND
    assert module.calls == []


def test_memory_export_is_not_a_generator():
    module = _valid_module()
    module.exports["emg_memory"] = module.exports["memory"]
    with pytest.raises(GeneratorNotFound):
        invoke_generator(module, "memory", [])


def test_successful_invocation_sequence():
    module = _valid_module()
    data = invoke_generator(module, "model", ["3", "0.5"])
    assert data == make_container(EMPTY_JSON)
    assert module.calls == [
        ("emg_model", (3, 0.5)),
        ("model_pointer", ()),
        ("model_size", ()),
    ]


def test_artifact_at_nonzero_offset():
    container = make_container(EMPTY_JSON, b"\x01\x02\x03\x04")
    module = FakeModule(b"\xaa" * 16 + container + b"\xbb" * 8, offset=16, length=len(container))
    module.add("emg_model", FuncType((), (ValType.I32,)), lambda: 0)
    assert invoke_generator(module, "model", []) == container


@pytest.mark.parametrize("results", [(), (ValType.I64,), (ValType.I32, ValType.I32)])
def test_result_shape_checked_before_parameters(results):
    module = _valid_module()
    module.add("emg_bad", FuncType((ValType.I32,), results), lambda *a: 0)
    with pytest.raises(ContractError):
        invoke_generator(module, "bad", [])
    assert module.calls == []


def test_parameter_count():
    module = _valid_module()
    with pytest.raises(ParameterCountError) as exc:
        invoke_generator(module, "model", ["1"])
    assert exc.value.context == {"expected": 2, "given": 1}
    assert module.calls == []


def test_unsupported_parameter_type():
    module = _valid_module()
    module.add("emg_vec", FuncType(("v128",), (ValType.I32,)), lambda a: 0)
    with pytest.raises(ContractError):
        invoke_generator(module, "vec", ["1"])
    assert module.calls == []


class TestParameterParsing:
    def test_integers(self):
        assert parse_parameter(0, "-5", ValType.I32) == -5
        assert parse_parameter(0, "2147483647", ValType.I32) == 2**31 - 1
        assert parse_parameter(0, "-9223372036854775808", ValType.I64) == -(2**63)

    def test_floats(self):
        assert parse_parameter(0, "0.25", ValType.F32) == 0.25
        assert parse_parameter(0, "1e39", ValType.F64) == 1e39
        assert parse_parameter(0, "inf", ValType.F32) == float("inf")

    def test_f32_rounds_to_single_precision(self):
        single = struct.unpack("<f", struct.pack("<f", 0.1))[0]
        assert single != 0.1
        assert parse_parameter(0, "0.1", ValType.F32) == single
        assert parse_parameter(0, "0.1", ValType.F64) == 0.1

    @pytest.mark.parametrize(
        "text,valtype",
        [("abc", ValType.I32), ("1.5", ValType.I64), ("", ValType.I32), ("x", ValType.F32)],
    )
    def test_type_errors(self, text, valtype):
        with pytest.raises(ParameterTypeError) as exc:
            parse_parameter(1, text, valtype)
        assert exc.value.code is ErrorCode.PARAMETER_TYPE
        assert exc.value.context["parameter"] == 2

    @pytest.mark.parametrize(
        "text,valtype",
        [
            ("2147483648", ValType.I32),
            ("-2147483649", ValType.I32),
            ("9223372036854775808", ValType.I64),
            ("1e39", ValType.F32),
        ],
    )
    def test_out_of_range(self, text, valtype):
        with pytest.raises(ParameterOutOfRangeError):
            parse_parameter(0, text, valtype)

    def test_bad_parameter_stops_before_call(self):
        module = _valid_module()
        with pytest.raises(ParameterTypeError):
            invoke_generator(module, "model", ["1", "x"])
        assert module.calls == []


def test_trap_becomes_execution_fault():
    module = _valid_module()

    def trap():
        raise RuntimeError("unreachable")

    module.add("emg_trap", FuncType((), (ValType.I32,)), trap)
    with pytest.raises(ExecutionFault) as exc:
        invoke_generator(module, "trap", [])
    assert exc.value.code is ErrorCode.EXECUTION


def test_nonzero_status_passes_through():
    module = _valid_module()
    module.add("emg_fail", FuncType((), (ValType.I32,)), lambda: 42)
    with pytest.raises(GeneratorFailure) as exc:
        invoke_generator(module, "fail", [])
    assert exc.value.status == 42
    assert exc.value.code is ErrorCode.GENERATION
    assert [name for name, _ in module.calls] == ["emg_fail"]


def test_missing_accessor():
    module = _valid_module()
    del module.exports["model_size"]
    with pytest.raises(ContractError):
        invoke_generator(module, "model", ["1", "2"])


def test_accessor_with_parameters_rejected():
    module = _valid_module()
    module.add("model_pointer", FuncType((ValType.I32,), (ValType.I32,)), lambda a: 0)
    with pytest.raises(ContractError):
        invoke_generator(module, "model", ["1", "2"])


def test_missing_memory():
    module = _valid_module()
    del module.exports["memory"]
    with pytest.raises(ContractError):
        invoke_generator(module, "model", ["1", "2"])


def test_artifact_outside_memory():
    module = _valid_module(length=4096)
    with pytest.raises(ContractError) as exc:
        invoke_generator(module, "model", ["1", "2"])
    assert exc.value.context["length"] == 4096


def test_malformed_artifact():
    module = FakeModule(make_container(EMPTY_JSON, declared=99))
    module.add("emg_model", FuncType((), (ValType.I32,)), lambda: 0)
    with pytest.raises(MalformedContainerError):
        invoke_generator(module, "model", [])


class TestPythonPlugins:
    def _plugin(self) -> Plugin:
        plugin = Plugin("test")

        @plugin.generator
        def box(size: i32) -> Document:
            doc = Document()
            doc.add_scene(Scene(name="box"))
            Geometry.cube().scale((size, size, size)).pack(doc)
            return doc

        @plugin.generator(name="fails")
        def failing(code: i64) -> Document:
            raise GenerationError(code)

        @plugin.generator
        def crash(x: f32, y: f64) -> Document:
            raise ZeroDivisionError("oops")

        return plugin

    def test_signature_from_annotations(self):
        plugin = self._plugin()
        assert plugin.generators["box"].signature == FuncType(
            (ValType.I32,), (ValType.I32,)
        )
        assert plugin.generators["crash"].signature.params == (
            ValType.F32,
            ValType.F64,
        )

    def test_f32_argument_matches_wasm_rounding(self):
        plugin = Plugin("widths")
        seen = []

        @plugin.generator
        def slab(width: f32, depth: f64) -> Document:
            seen.append((width, depth))
            doc = Document()
            Geometry.cube().scale((width, 1, depth)).pack(doc)
            return doc

        invoke_generator(PythonPluginModule(plugin), "slab", ["0.1", "0.1"])
        assert seen == [(struct.unpack("<f", struct.pack("<f", 0.1))[0], 0.1)]

    def test_roundtrip_through_host(self):
        module = PythonPluginModule(self._plugin())
        data = invoke_generator(module, "box", ["2"])
        layout = read_container(data)
        assert layout.bin is not None

    def test_generation_error_status(self):
        module = PythonPluginModule(self._plugin())
        with pytest.raises(GeneratorFailure) as exc:
            invoke_generator(module, "fails", ["77"])
        assert exc.value.status == 77

    def test_unexpected_exception_is_execution_fault(self):
        module = PythonPluginModule(self._plugin())
        with pytest.raises(ExecutionFault):
            invoke_generator(module, "crash", ["1", "2"])

    def test_failed_build_leaves_nothing_published(self):
        plugin = self._plugin()
        module = PythonPluginModule(plugin)
        invoke_generator(module, "box", ["1"])
        assert plugin.slot.size() > 0
        with pytest.raises(GeneratorFailure):
            invoke_generator(module, "fails", ["5"])
        assert plugin.slot.size() == 0

    def test_reentrant_build_reports_contention(self):
        plugin = Plugin()
        statuses = []

        @plugin.generator
        def inner() -> Document:
            return Document()

        @plugin.generator
        def outer() -> Document:
            statuses.append(plugin.invoke("inner"))
            return Document()

        assert plugin.invoke("outer") == 0
        assert statuses == [1]

    def test_bad_annotations(self):
        plugin = Plugin()
        with pytest.raises(TypeError):

            @plugin.generator
            def plain_int(a: int) -> Document:
                return Document()

        with pytest.raises(TypeError):

            @plugin.generator
            def missing(a) -> Document:
                return Document()

        with pytest.raises(TypeError):

            @plugin.generator
            def variadic(*a: i32) -> Document:
                return Document()

    def test_generation_error_needs_nonzero_status(self):
        with pytest.raises(ValueError):
            GenerationError(0)

    def test_describe(self):
        infos = describe_module(PythonPluginModule(self._plugin()))
        assert infos == [
            GeneratorInfo("box", ("i32",), ("i32",)),
            GeneratorInfo("crash", ("f32", "f64"), ("i32",)),
            GeneratorInfo("fails", ("i64",), ("i32",)),
        ]


class TestLoader:
    def test_blocks_example(self, blocks_plugin_path: Path):
        module = load_module(blocks_plugin_path)
        names = [info.name for info in describe_module(module)]
        assert names == ["build_the_model", "tower"]

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ModuleLoadError) as exc:
            load_module(tmp_path / "nope.py")
        assert exc.value.code is ErrorCode.MODULE_COMPILE

    def test_import_failure(self, tmp_path: Path):
        bad = tmp_path / "broken.py"
        bad.write_text("def (:\n", encoding="utf-8")
        with pytest.raises(ModuleLoadError) as exc:
            load_module(bad)
        assert exc.value.code is ErrorCode.MODULE_COMPILE

    def test_module_without_plugin(self, tmp_path: Path):
        empty = tmp_path / "empty.py"
        empty.write_text("VALUE = 1\n", encoding="utf-8")
        with pytest.raises(ContractError):
            load_module(empty)

    def test_unsupported_suffix(self, tmp_path: Path):
        other = tmp_path / "model.txt"
        other.write_text("", encoding="utf-8")
        with pytest.raises(ModuleLoadError):
            load_module(other)
