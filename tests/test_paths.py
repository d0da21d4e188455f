"""Tests for structural addresses between the DOM and the syntax tree."""

from __future__ import annotations

import pytest

from jsxlive.dom import Element, TextNode
from jsxlive.paths import (
    AddressStep,
    address_of,
    find_node,
    format_address,
    parse_address,
    resolve,
)
from jsxlive.tree import parse_tree

SIBLINGS = """\
export default function List() {
  return (
    <div>
      <p>first</p>
      <span>between</span>
      <p>second</p>
    </div>
  );
}
"""

FRAGMENT = """\
export default function Page() {
  return (
    <>
      <h2>Title</h2>
      <div>
        <p>a</p>
        <p>b</p>
      </div>
    </>
  );
}
"""


class TestAddressOf:
    def test_counter_heading(self, mount, counter_source) -> None:
        _, root = mount(counter_source)
        address = address_of(root.find("h2"), root)
        assert address == (AddressStep("div", 0), AddressStep("h2", 0))
        assert format_address(address) == "div[0] > h2[0]"

    def test_index_counts_same_tag_only(self, mount) -> None:
        _, root = mount(SIBLINGS)
        second = root.find_all("p")[1]
        assert format_address(address_of(second, root)) == "div[0] > p[1]"

    def test_text_node_uses_parent(self, mount, counter_source) -> None:
        _, root = mount(counter_source)
        text = root.find("h2").children[0]
        assert isinstance(text, TextNode)
        assert address_of(text, root) == address_of(root.find("h2"), root)

    def test_root_and_detached_nodes(self, mount, counter_source) -> None:
        _, root = mount(counter_source)
        assert address_of(root, root) is None
        assert address_of(Element("p"), root) is None


class TestResolve:
    def test_every_element_round_trips(self, mount, counter_source) -> None:
        _, root = mount(counter_source)
        tree = parse_tree(counter_source)
        for element in list(root.iter())[1:]:
            found = resolve(address_of(element, root), tree)
            assert found is not None
            assert found.tag == element.tag

    def test_same_tag_siblings(self, mount) -> None:
        _, root = mount(SIBLINGS)
        tree = parse_tree(SIBLINGS)
        found = resolve(address_of(root.find_all("p")[1], root), tree)
        assert found.text_children[0].value == "second"

    def test_looks_through_fragments(self, mount) -> None:
        _, root = mount(FRAGMENT)
        tree = parse_tree(FRAGMENT)
        assert format_address(address_of(root.find_all("p")[1], root)) == "div[0] > p[1]"
        found = resolve(parse_address("div[0] > p[1]"), tree)
        assert found.text_children[0].value == "b"
        assert resolve(parse_address("h2"), tree).tag == "h2"

    def test_missing_step(self, counter_source) -> None:
        tree = parse_tree(counter_source)
        assert resolve(parse_address("div[0] > h2[1]"), tree) is None
        assert resolve(parse_address("section[0]"), tree) is None
        assert resolve((), tree) is None


class TestFindNode:
    def test_inverse_of_address_of(self, mount, counter_source) -> None:
        _, root = mount(counter_source)
        button = root.find("button")
        assert find_node(address_of(button, root), root) is button

    def test_missing(self, mount, counter_source) -> None:
        _, root = mount(counter_source)
        assert find_node(parse_address("div > ul"), root) is None
        assert find_node((), root) is None


class TestParseAddress:
    def test_round_trip(self) -> None:
        text = "div[0] > ul[2] > li[10]"
        assert format_address(parse_address(text)) == text

    def test_missing_index_defaults_to_zero(self) -> None:
        assert parse_address("div > P") == (AddressStep("div", 0), AddressStep("p", 0))

    def test_invalid(self) -> None:
        with pytest.raises(ValueError, match="invalid address step"):
            parse_address("div > [1]")
