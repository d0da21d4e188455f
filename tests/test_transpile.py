"""Tests for module lowering, component discovery and the transpiler service."""

from __future__ import annotations

import asyncio

import pytest

from jsxlive.ast import CallExpression, ImportDeclaration, ReturnStatement
from jsxlive.discovery import CAPITALIZED_BINDING, DEFAULT_EXPORT, discover_component
from jsxlive.errors import NoComponentFound, SourceSyntaxError, TranspilerNotReady
from jsxlive.parser import parse
from jsxlive.transpile import (
    DEFAULT_BINDING,
    JSX_FACTORY,
    TERMINAL_RETURN,
    TranspilerService,
    transpile,
)


class TestLowering:
    def test_imports_removed(self, counter_source) -> None:
        module = transpile(counter_source)
        assert not any(isinstance(s, ImportDeclaration) for s in module.body)

    def test_ends_with_component_return(self, counter_source) -> None:
        module = transpile(counter_source)
        assert isinstance(module.body[-1], ReturnStatement)
        assert module.component_name == "Counter"
        assert module.code.endswith("return Counter;\n")

    def test_element_becomes_factory_call(self) -> None:
        module = transpile("const App = () => <div className=\"x\">Hi</div>;")
        assert module.code == (
            "const App = () => __jsx__('div', { className: 'x' }, 'Hi');\n"
            "return App;\n"
        )

    def test_fragment_and_self_closing(self) -> None:
        module = transpile("const App = () => <><b /></>;")
        assert "__jsx__(__jsx_fragment__, null, __jsx__('b', null))" in module.code

    def test_component_tag_is_reference(self) -> None:
        module = transpile("const App = () => <Card title=\"t\" />;")
        assert "__jsx__(Card, { title: 't' })" in module.code

    def test_member_tag(self) -> None:
        module = transpile("const App = () => <Ctx.Provider value={1} />;")
        assert "__jsx__(Ctx.Provider, { value: 1 })" in module.code

    def test_boolean_and_spread_attributes(self) -> None:
        module = transpile("const App = (p) => <input disabled {...p} />;")
        assert "{ disabled: true, ...p }" in module.code

    def test_hyphenated_attribute_quoted(self) -> None:
        module = transpile("const App = () => <div data-id=\"a\" />;")
        assert "{ 'data-id': 'a' }" in module.code

    def test_whitespace_only_text_dropped(self) -> None:
        module = transpile("const App = () => (\n  <p>\n    {x}\n  </p>\n);")
        assert "__jsx__('p', null, x)" in module.code

    def test_nested_markup_in_expression(self) -> None:
        module = transpile("const App = () => <ul>{items.map(i => <li>{i}</li>)}</ul>;")
        assert "items.map((i) => __jsx__('li', null, i))" in module.code

    def test_lowered_tree_has_no_markup(self) -> None:
        module = transpile("const App = () => <a>{<b />}</a>;")
        declarator = module.body[0].declarations[0]
        call = declarator.init.body
        assert isinstance(call, CallExpression)
        assert call.callee.name == JSX_FACTORY

    def test_code_reparses(self, counter_source) -> None:
        module = transpile(counter_source)
        reparsed = parse(module.code)
        assert len(reparsed.body) == len(module.body)


class TestComponentSelection:
    def test_terminal_return_kept(self) -> None:
        module = transpile("function A() { return null; }\nreturn A;")
        assert module.via == TERMINAL_RETURN
        assert module.component_name == "A"
        assert module.code.count("return A;") == 1

    def test_default_export_expression(self) -> None:
        module = transpile("export default memo(() => null);")
        assert module.via == DEFAULT_EXPORT
        assert module.component_name is None
        assert module.code.startswith(f"const {DEFAULT_BINDING} = memo(")
        assert module.code.endswith(f"return {DEFAULT_BINDING};\n")

    def test_named_export_unwrapped(self) -> None:
        module = transpile("export const Card = () => null;")
        assert module.code.startswith("const Card = ")

    def test_no_component(self) -> None:
        with pytest.raises(NoComponentFound):
            transpile("const x = 1;")

    def test_syntax_error_propagates(self) -> None:
        with pytest.raises(SourceSyntaxError):
            transpile("const App = () => <div>;")


class TestDiscovery:
    def test_default_export_wins_over_later_binding(self) -> None:
        program = parse("function First() {}\nfunction Second() {}\nexport default First;")
        binding = discover_component(program)
        assert binding.name == "First"
        assert binding.via == DEFAULT_EXPORT

    def test_last_capitalized_binding(self) -> None:
        program = parse("function First() {}\nconst helper = 1;\nconst Second = () => null;")
        binding = discover_component(program)
        assert binding.name == "Second"
        assert binding.via == CAPITALIZED_BINDING

    def test_reserved_names_skipped(self) -> None:
        program = parse("function App() {}\nconst React = {};")
        assert discover_component(program).name == "App"

    def test_export_specifier_as_default(self) -> None:
        program = parse("const Card = () => null;\nconst Other = 1;\nexport { Card as default };")
        binding = discover_component(program)
        assert binding.name == "Card"
        assert binding.definition is not None

    def test_class_default_export(self) -> None:
        program = parse("export default class Panel extends React.Component {}")
        assert discover_component(program).name == "Panel"


class TestService:
    @pytest.mark.asyncio
    async def test_not_ready_raises(self) -> None:
        service = TranspilerService()
        with pytest.raises(TranspilerNotReady):
            await service.transpile("const App = () => null;")

    @pytest.mark.asyncio
    async def test_ready_then_transpile(self) -> None:
        service = TranspilerService("Card.jsx")
        assert not service.is_ready
        await service.ready()
        assert service.is_ready
        module = await service.transpile("const Card = () => <p />;")
        assert module.component_name == "Card"

    @pytest.mark.asyncio
    async def test_concurrent_ready_calls(self) -> None:
        service = TranspilerService()
        await asyncio.gather(service.ready(), service.ready(), service.ready())
        assert service.is_ready

    @pytest.mark.asyncio
    async def test_failed_initialization_retried(self, monkeypatch) -> None:
        service = TranspilerService()
        calls = []

        def broken() -> None:
            calls.append(1)
            raise RuntimeError("boom")

        monkeypatch.setattr(service, "warm_up", broken)
        with pytest.raises(RuntimeError):
            await service.ready()
        assert not service.is_ready
        monkeypatch.undo()
        await service.ready()
        assert service.is_ready
        assert calls == [1]
