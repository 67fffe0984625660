"""Tests for the JSX / TypeScript compiler."""

import re

import pytest

from uigen.errors import TransformError
from uigen.sandbox.jsx import JSXCompiler, clean_jsx_text, compile_jsx


def _squash(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


class TestJSXElements:
    def test_element_with_props_and_text(self):
        assert compile_jsx('<Button size="sm">Hi</Button>') == '__jsx(Button, {"size": "sm"}, "Hi")'

    def test_intrinsic_tags_and_fragments(self):
        out = compile_jsx('<><div className="a">x</div><br /></>')
        assert out == '__jsx(__Fragment, null, __jsx("div", {"className": "a"}, "x"), __jsx("br", null))'

    def test_boolean_attribute(self):
        assert compile_jsx("<Input disabled />") == '__jsx(Input, {"disabled": true})'

    def test_member_expression_tag(self):
        assert compile_jsx("<Tabs.List />") == "__jsx(Tabs.List, null)"

    def test_spread_and_expression_attributes(self):
        out = compile_jsx("<Card {...props} count={n + 1} />")
        assert out == '__jsx(Card, {...props, "count": n + 1})'

    def test_html_entities_decoded(self):
        assert compile_jsx("<p>Tom &amp; Jerry</p>") == '__jsx("p", null, "Tom & Jerry")'

    def test_whitespace_rules(self):
        out = compile_jsx("<p>\n  Hello\n  world\n</p>")
        assert out.rstrip("\n") == '__jsx("p", null, "Hello world")'

    def test_expression_children_and_map(self):
        src = "<ul>\n  {items.map(item => <li key={item}>{item}</li>)}\n</ul>"
        out = compile_jsx(src)
        assert out.rstrip("\n") == '__jsx("ul", null, items.map(item => __jsx("li", {"key": item}, item)))'

    def test_comment_children_dropped(self):
        assert compile_jsx("<div>{/* note */}</div>") == '__jsx("div", null)'

    def test_line_count_preserved(self):
        src = "const x = (\n  <div>\n    <span>a</span>\n  </div>\n);\nfoo();"
        out = compile_jsx(src)
        assert out.count("\n") == src.count("\n")
        assert out.splitlines()[-1] == "foo();"

    def test_jsx_in_conditional_and_logical(self):
        out = compile_jsx("const a = ok ? <b>y</b> : <i>n</i>;\nconst b = show && <hr />;")
        assert 'ok ? __jsx("b", null, "y") : __jsx("i", null, "n")' in out
        assert 'show && __jsx("hr", null)' in out


class TestPlainJavaScript:
    def test_strings_and_comments_untouched(self):
        src = "const s = \"<div>\"; // <b>\nconst t = 'a as b';"
        assert compile_jsx(src) == src

    def test_regex_untouched(self):
        src = "const re = /<div>/g;"
        assert compile_jsx(src) == src

    def test_comparisons_untouched(self):
        src = "if (a < b && c > d) {}"
        assert compile_jsx(src) == src

    def test_template_literal_expressions_compiled(self):
        out = compile_jsx("const s = `<b>${a as string}</b>`;")
        assert "as string" not in out
        assert out.startswith("const s = `<b>${a")


class TestTypeScriptErasure:
    def test_interfaces_types_and_annotations(self):
        src = (
            "interface Props { title: string; count?: number }\n"
            'type Size = "sm" | "lg";\n'
            "function Card({ title, count = 0 }: Props): JSX.Element {\n"
            "  const label: string = title as string;\n"
            "  const ref = useRef<HTMLDivElement>(null);\n"
            "  return <div ref={ref!}>{label}</div>;\n"
            "}"
        )
        out = compile_jsx(src)
        assert _squash(out) == (
            "function Card({ title, count = 0 }) { const label = title; "
            "const ref = useRef(null); "
            'return __jsx("div", {"ref": ref}, label); }'
        )
        assert out.count("\n") == src.count("\n")

    def test_optional_params_and_return_type(self):
        assert compile_jsx("function f(a?: number, b = 2): void {}") == "function f(a, b = 2) {}"

    def test_typed_arrow_component(self):
        out = compile_jsx("const Item = ({ label }: { label: string }) => <li>{label}</li>;")
        assert out == 'const Item = ({ label }) => __jsx("li", null, label);'

    def test_generic_call_with_array_type(self):
        out = compile_jsx("const [items, setItems] = useState<string[]>([]);")
        assert out == "const [items, setItems] = useState([]);"

    def test_as_const_and_satisfies(self):
        assert _squash(compile_jsx('const sizes = ["sm", "lg"] as const;')) == 'const sizes = ["sm", "lg"];'
        assert _squash(compile_jsx('const theme = { color: "red" } satisfies Theme;')) == \
            'const theme = { color: "red" };'

    def test_object_literal_colons_kept(self):
        src = 'const style = { color: "red", size: big ? 2 : 1 };'
        assert compile_jsx(src) == src

    def test_catch_clause_annotation(self):
        assert compile_jsx("try { x() } catch (e: unknown) { }") == "try { x() } catch (e) { }"

    def test_class_component(self):
        src = (
            "class Greeting extends React.Component<Props> {\n"
            '  private greeting: string = "Hello";\n'
            "  render() {\n"
            "    return <h1>{this.greeting}, {this.props.name}</h1>;\n"
            "  }\n"
            "}"
        )
        out = compile_jsx(src)
        assert _squash(out) == (
            "class Greeting extends React.Component { "
            'greeting = "Hello"; '
            "render() { "
            'return __jsx("h1", null, this.greeting, ", ", this.props.name); } }'
        )

    def test_implements_clause_removed(self):
        assert _squash(compile_jsx("class A implements B {}")) == "class A {}"

    def test_generic_arrow_with_trailing_comma(self):
        out = compile_jsx("const identity = <T,>(value: T) => value;")
        assert out == "const identity = (value) => value;"

    def test_type_predicates(self):
        out = compile_jsx('const nums = xs.filter((n): n is number => typeof n === "number");')
        assert out == 'const nums = xs.filter((n) => typeof n === "number");'

        out = compile_jsx('function isText(v: unknown): v is string { return typeof v === "string"; }')
        assert out == 'function isText(v) { return typeof v === "string"; }'

    def test_abstract_class_members(self):
        src = (
            "abstract class Shape {\n"
            "  abstract area(): number;\n"
            "  abstract name: string;\n"
            "  describe() { return this.area(); }\n"
            "}"
        )
        out = compile_jsx(src)
        assert "abstract" not in out
        assert "name" not in out
        assert "number" not in out
        assert _squash(out).startswith("class Shape {")
        assert "describe() { return this.area(); }" in out
        assert out.count("\n") == src.count("\n")

    def test_declare_field_and_overloads_removed(self):
        out = compile_jsx("class S { declare x: number; y = 1; }")
        assert "declare" not in out
        assert "x" not in out
        assert "y = 1" in out

        out = compile_jsx("function f(a: string): string;\nfunction f(a: any) { return a; }")
        assert out.count("function") == 1
        assert "function f(a) { return a; }" in out


class TestEnums:
    def test_numeric_enum_auto_increments(self):
        out = compile_jsx("enum Color { Red, Green = 5, Blue }")
        assert out == (
            'var Color = {}; Color[Color["Red"] = 0] = "Red"; '
            'Color[Color["Green"] = 5] = "Green"; Color[Color["Blue"] = 6] = "Blue";'
        )

    def test_string_enum(self):
        out = compile_jsx('enum Direction { Up = "UP", Down = "DOWN" }')
        assert out == 'var Direction = {}; Direction["Up"] = "UP"; Direction["Down"] = "DOWN";'

    def test_computed_member_continues_from_previous(self):
        out = compile_jsx("enum Flags { A = base, B }")
        assert 'Flags[Flags["A"] = base] = "A";' in out
        assert 'Flags[Flags["B"] = Flags["A"] + 1] = "B";' in out

    def test_string_member_needs_initializer_after_it(self):
        with pytest.raises(TransformError, match="initializer"):
            compile_jsx('enum Mixed { A = "a", B }')

    def test_multiline_enum_keeps_line_count(self):
        src = "enum Size {\n  Small,\n  Large,\n}\nconst s = Size.Small;"
        out = compile_jsx(src)
        assert out.count("\n") == src.count("\n")
        assert out.splitlines()[-1] == "const s = Size.Small;"


class TestDeclaredNames:
    def test_top_level_declarations_collected(self):
        compiler = JSXCompiler(
            "const Button = () => null;\n"
            "function Card() { const inner = 1; return inner }\n"
            "class Store {}\n"
            "let { a, b } = obj;"
        )
        compiler.compile()
        assert compiler.declared == ["Button", "Card", "Store"]

    def test_enums_and_abstract_classes_collected(self):
        compiler = JSXCompiler("enum Tone { Soft }\nabstract class Base {}\ninterface Props {}")
        compiler.compile()
        assert compiler.declared == ["Tone", "Base"]


class TestErrors:
    def test_mismatched_closing_tag(self):
        with pytest.raises(TransformError) as exc:
            compile_jsx("const x = <div><span></div>;")
        assert exc.value.line == 1

    def test_unterminated_element_reports_position(self):
        with pytest.raises(TransformError) as exc:
            compile_jsx("const a = 1;\nconst b = <div>\n")
        assert exc.value.line >= 2
        assert exc.value.column >= 1

    def test_unclosed_bracket(self):
        with pytest.raises(TransformError, match="Missing|Unexpected"):
            compile_jsx("function f() {\n  return 1;\n")

    def test_unexpected_closer(self):
        with pytest.raises(TransformError, match="Unexpected"):
            compile_jsx("foo());")

    def test_unterminated_string(self):
        with pytest.raises(TransformError):
            compile_jsx("const s = 'abc\n';")

    def test_empty_attribute_expression(self):
        with pytest.raises(TransformError, match="non-empty expression"):
            compile_jsx("<div id={} />")


class TestCleanJSXText:
    def test_single_line_kept(self):
        assert clean_jsx_text(" a b ") == " a b "

    def test_blank_lines_dropped(self):
        assert clean_jsx_text("\n   \n") == ""

    def test_lines_joined(self):
        assert clean_jsx_text("  one\n    two  ") == "  one two  "
