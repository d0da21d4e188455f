"""Tests for sandboxed module execution and component extraction."""

from __future__ import annotations

from jsxlive.interpreter import JSFunction, Limits, NativeFunction
from jsxlive.primitives import PRIMITIVES, MemoType
from jsxlive.result import INVALID_COMPONENT, RUNTIME, Failure, Success
from jsxlive.sandbox import Sandbox, is_component, thrown_message
from jsxlive.transpile import transpile


class TestSuccess:
    def test_counter_component(self, execute, counter_source) -> None:
        result = execute(counter_source)
        assert isinstance(result, Success)
        assert isinstance(result.component, JSFunction)
        assert result.component.name == "Counter"
        assert result.elapsed >= 0
        assert result.timers is not None

    def test_console_output_captured(self, execute) -> None:
        result = execute("console.log('loading', 1);\nexport default () => null;")
        assert isinstance(result, Success)
        assert [str(e) for e in result.console] == ["loading 1"]

    def test_memo_component_accepted(self, execute) -> None:
        result = execute("const Inner = () => null;\nexport default React.memo(Inner);")
        assert isinstance(result, Success)
        assert isinstance(result.component, MemoType)

    def test_class_component(self, execute) -> None:
        result = execute(
            "export default class Panel extends React.Component {\n"
            "  render() { return <p>panel</p>; }\n"
            "}"
        )
        assert isinstance(result, Success)

    def test_bare_hook_names_available(self, execute) -> None:
        source = (
            "const hooks = [useState, useEffect, useRef, useMemo, useCallback];\n"
            "export default function App() { return null; }"
        )
        assert isinstance(execute(source), Success)


class TestFailure:
    def test_thrown_error_message(self, execute) -> None:
        result = execute("function App() {}\nthrow new Error('bad module');")
        assert isinstance(result, Failure)
        assert result.kind == RUNTIME
        assert result.message == "bad module"

    def test_reference_error(self, execute) -> None:
        result = execute("missingHelper();\nexport default function App() {}")
        assert isinstance(result, Failure)
        assert result.message == "missingHelper is not defined"

    def test_invalid_component(self, execute) -> None:
        result = execute("export default 42;")
        assert isinstance(result, Failure)
        assert result.kind == INVALID_COMPONENT
        assert result.message == (
            "Code must export a React component as default export. Got: number"
        )

    def test_step_limit(self) -> None:
        module = transpile("while (true) {}\nexport default function App() {}")
        result = Sandbox(limits=Limits(max_steps=500)).execute(module)
        assert isinstance(result, Failure)
        assert "500 steps" in result.message

    def test_no_host_access(self, execute) -> None:
        result = execute("open('/etc/passwd');\nexport default function App() {}")
        assert isinstance(result, Failure)
        assert result.message == "open is not defined"

    def test_infinite_substring_end(self, execute) -> None:
        result = execute(
            "console.log('hello'.substring(0, Infinity));\n"
            "export default function App() { return null; }"
        )
        assert isinstance(result, Success)
        assert [str(e) for e in result.console] == ["hello"]

    def test_host_arithmetic_error(self) -> None:
        def overflow(*args):
            raise OverflowError("int too large to convert to float")

        module = transpile("huge();\nexport default function App() { return null; }")
        result = Sandbox(primitives={"huge": NativeFunction("huge", overflow)}).execute(module)
        assert isinstance(result, Failure)
        assert result.kind == RUNTIME
        assert result.message == "int too large to convert to float"


class TestIsolation:
    def test_namespace_mutation_does_not_leak(self, execute) -> None:
        first = execute("React.leaked = 1;\nexport default function App() {}")
        assert isinstance(first, Success)
        second = execute(
            "if (React.leaked !== undefined) throw new Error('leak');\n"
            "export default function App() {}"
        )
        assert isinstance(second, Success)

    def test_shared_functions_are_read_only(self, execute) -> None:
        first = execute("useState.leak = 6;\nexport default function App() {}")
        assert isinstance(first, Failure)
        assert first.message == "Cannot assign to read only property 'leak' of function 'useState'"
        second = execute(
            "console.log(String(useState.leak));\nexport default function App() {}"
        )
        assert isinstance(second, Success)
        assert [str(e) for e in second.console] == ["undefined"]

    def test_write_to_component_base_is_caught(self, execute) -> None:
        result = execute(
            "try { React.Component.leak = 1; } catch (e) { console.log(e.name); }\n"
            "export default function App() {}"
        )
        assert isinstance(result, Success)
        assert [str(e) for e in result.console] == ["TypeError"]

    def test_children_namespace_is_fresh_per_run(self, execute) -> None:
        first = execute(
            "React.Children.extra = 1;\n"
            "if (Children.extra !== 1) throw new Error('not shared');\n"
            "export default function App() {}"
        )
        assert isinstance(first, Success)
        second = execute(
            "if (React.Children.extra !== undefined) throw new Error('leak');\n"
            "export default function App() {}"
        )
        assert isinstance(second, Success)
        assert "extra" not in PRIMITIVES["Children"]

    def test_custom_primitives(self) -> None:
        module = transpile("export default function App() { return greeting; }")
        sandbox = Sandbox(primitives={"greeting": "hello"})
        result = sandbox.execute(module)
        assert isinstance(result, Success)


class TestHelpers:
    def test_thrown_message(self) -> None:
        assert thrown_message({"message": "x"}) == "x"
        assert thrown_message("plain") == "plain"
        assert thrown_message(3) == "3"

    def test_is_component(self) -> None:
        assert not is_component(1)
        assert not is_component("div")
        assert not is_component(None)
