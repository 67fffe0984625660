"""Tests for the source transform."""

import pytest

from uigen.errors import TransformError
from uigen.sandbox.transform import (
    normalize_source,
    rewrite_exports,
    strip_imports,
    transform_source,
)


class TestNormalize:
    def test_fences_crlf_and_directive(self):
        source = "```tsx\r\n'use client';\r\nexport default function A() {\r\n  return <p>ok</p>\r\n}\r\n```"
        text = normalize_source(source)
        assert "\r" not in text
        assert "use client" not in text
        assert "```" not in text
        assert text.strip().startswith("export default function A()")

    def test_plain_source_unchanged(self):
        assert normalize_source("const a = 1;") == "const a = 1;"


class TestImports:
    def test_all_import_forms_removed(self):
        source = (
            'import React, { useState } from "react";\n'
            "import {\n  Card,\n  CardTitle,\n} from '@/components/ui/card'\n"
            'import "./styles.css";\n'
            "import type { Props } from './types'\n"
            "const x = 1;"
        )
        text, count = strip_imports(source)
        assert count == 4
        assert "import" not in text
        assert text.endswith("const x = 1;")
        assert text.count("\n") == source.count("\n")

    def test_dynamic_import_kept(self):
        text, count = strip_imports('const mod = import("./lazy");')
        assert count == 0
        assert text == 'const mod = import("./lazy");'


class TestExports:
    def test_named_default_function_returned_at_end(self):
        text, has_default = rewrite_exports("export default function App() {}\nconst helper = 1;")
        assert has_default is True
        assert text == "function App() {}\nconst helper = 1;\nreturn App;"

    def test_default_expression_becomes_return(self):
        text, has_default = rewrite_exports("const App = () => null;\nexport default App;")
        assert has_default is True
        assert text == "const App = () => null;\nreturn App;"

    def test_other_exports_lose_keyword(self):
        text, _ = rewrite_exports(
            "export const a = 1;\nexport function b() {}\nexport { a, b };\nexport default b;"
        )
        assert text == "const a = 1;\nfunction b() {}\n\nreturn b;"

    def test_no_default_export_wraps_body(self):
        text, has_default = rewrite_exports("<div>hi</div>;;\n")
        assert has_default is False
        assert text == "return (<div>hi</div>)"


class TestTransformSource:
    def test_expression_body(self):
        unit = transform_source('<Button variant="outline">Hi</Button>;', ["Button"])
        assert unit.body == (
            "const { __jsx, __Fragment, Button } = __library; "
            'return (__jsx(Button, {"variant": "outline"}, "Hi"))'
        )
        assert unit.has_default_export is False

    def test_module_with_imports_and_default_export(self):
        source = (
            'import React, { useState } from "react";\n'
            'import "./styles.css"\n'
            "export default function App() { return <div/> }"
        )
        unit = transform_source(source, ["React", "useState"])
        assert unit.imports_removed == 2
        assert unit.declared == ("App",)
        assert unit.has_default_export is True
        assert "import" not in unit.body
        assert unit.body.startswith("const { __jsx, __Fragment, React, useState } = __library; ")
        assert unit.body.endswith("return App;")

    def test_declared_names_shadow_capabilities(self):
        source = "const Button = (props) => <button {...props} />;\nexport default () => <Button>Go</Button>;"
        unit = transform_source(source, ["Button", "Card"])
        assert unit.declared == ("Button",)
        assert unit.body.startswith("const { __jsx, __Fragment, Card } = __library; ")

    def test_function_source(self):
        unit = transform_source("<div/>")
        assert unit.function_source.startswith("function (__library) {\n")
        assert unit.function_source.endswith("\n}")

    def test_typescript_component(self):
        source = (
            "interface Props { name: string }\n"
            "export default function Hello({ name }: Props): JSX.Element {\n"
            "  return <h1>Hello {name}</h1>\n"
            "}"
        )
        unit = transform_source(source)
        assert "interface" not in unit.body
        assert "Props" not in unit.body
        assert '__jsx("h1", null, "Hello ", name)' in unit.body

    def test_malformed_source_raises(self):
        with pytest.raises(TransformError):
            transform_source("export default function( { return <")

    def test_invalid_capability_names(self):
        with pytest.raises(TransformError, match="Invalid capability name"):
            transform_source("<div/>", ["not-valid"])
        with pytest.raises(TransformError, match="Invalid capability name"):
            transform_source("<div/>", ["class"])

    def test_reserved_runtime_names_skipped(self):
        unit = transform_source("<div/>", ["__jsx", "Card", "Card"])
        assert unit.capability_names == ("Card",)
