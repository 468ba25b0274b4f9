# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import pytest

from hapf_common.analysis.block_scanner import (
    NOT_FOUND,
    brace_delta,
    code_mask,
    find_block_end,
    find_keyword,
    find_matching_paren,
    find_word,
)
from hapf_common.analysis.declarations import (
    DeclarationKind,
    collect_declarations,
    find_nested_block,
)


# ---------------------------------------------------------------------------
# find_block_end
# ---------------------------------------------------------------------------


class TestFindBlockEnd:
    def test_nested(self):
        assert find_block_end("{ a { b } }", 0) == 10

    def test_brace_inside_string(self):
        assert find_block_end('{ "}" }', 0) == 6

    def test_escaped_quote_keeps_string_open(self):
        assert find_block_end('{ "a\\"}" }', 0) == 9

    def test_brace_inside_comment(self):
        assert find_block_end("{ # }\n}", 0) == 6

    @pytest.mark.parametrize(
        "text,index",
        [("{ {", 0), ("abc", 0), ("{}", 10), ("{}", -1)],
    )
    def test_not_found(self, text, index):
        assert find_block_end(text, index) == NOT_FOUND


class TestCodeMask:
    def test_strings_and_comments_are_masked(self):
        mask = code_mask('a "b" #c\nd')
        assert mask == [True, True, False, False, False, True, False, False, True, True]

    def test_brace_delta_ignores_strings(self):
        text = '{ "}}" {'
        assert brace_delta(text, 0, len(text), code_mask(text)) == 2


# ---------------------------------------------------------------------------
# find_keyword / find_word / find_matching_paren
# ---------------------------------------------------------------------------


class TestKeywordSearch:
    def test_keyword_not_glued(self):
        assert find_keyword("mymodule module", "module") == 9
        assert find_keyword("modules", "module") == NOT_FOUND

    def test_keyword_in_string_needs_mask(self):
        text = '"module" module'
        assert find_keyword(text, "module") == 1
        assert find_keyword(text, "module", mask=code_mask(text)) == 9

    def test_word_rejects_member_access(self):
        assert find_word("input.x x", "x") == 8

    def test_word_allows_field_access(self):
        assert find_word("x.field", "x") == 0

    def test_word_respects_bounds(self):
        assert find_word("xy", "x") == NOT_FOUND
        assert find_word("a b", "b", 0, 2) == NOT_FOUND
        assert find_word("a b", "", 0) == NOT_FOUND

    def test_matching_paren(self):
        text = "f(a(b))"
        assert find_matching_paren(text, 1, len(text), code_mask(text)) == 6

    def test_matching_paren_skips_strings(self):
        text = 'f(")")'
        assert find_matching_paren(text, 1, len(text), code_mask(text)) == 5

    def test_matching_paren_unclosed(self):
        text = "f(a"
        assert find_matching_paren(text, 1, len(text), code_mask(text)) == NOT_FOUND


# ---------------------------------------------------------------------------
# collect_declarations
# ---------------------------------------------------------------------------


class TestCollectDeclarations:
    def test_modules_and_pipelines(self):
        text = 'module "a" { x }\npipeline "p" { run a() }'
        declarations = collect_declarations(text)
        assert [(d.kind, d.name) for d in declarations] == [
            (DeclarationKind.MODULE, "a"),
            (DeclarationKind.PIPELINE, "p"),
        ]
        assert declarations[0].body(text) == " x "
        first = declarations[0]
        assert text[first.name_start : first.name_start + len(first.name)] == "a"
        assert text[first.keyword_start :].startswith("module")

    @pytest.mark.parametrize(
        "text,names",
        [
            ('module a {}\nmodule "b" {}', ["b"]),
            ('module "x" { ', []),
            ('module "c"\nmodule "d" {}', ["d"]),
            ('module "" {}', []),
            ('# module "ghost" {}\nmodule "real" {}', ["real"]),
            ('module "outer" { module "inner" {} }', ["outer"]),
        ],
    )
    def test_malformed_and_hidden_declarations(self, text, names):
        assert [d.name for d in collect_declarations(text)] == names

    def test_empty_document(self):
        assert collect_declarations("") == []


class TestFindNestedBlock:
    def test_runtime_block(self):
        text = 'module "m" { runtime: { model: "x" } }'
        declaration = collect_declarations(text)[0]
        found = find_nested_block(text, declaration, "runtime")
        assert found is not None
        open_brace, close_brace = found
        assert text[open_brace : close_brace + 1] == '{ model: "x" }'

    def test_colon_is_optional(self):
        text = 'module "m" { runtime { a } }'
        declaration = collect_declarations(text)[0]
        assert find_nested_block(text, declaration, "runtime") is not None

    @pytest.mark.parametrize(
        "text",
        [
            'module "m" { contract: {} }',
            'module "m" { note: "runtime: {}" }',
            'module "m" { runtime: "fast" }',
            'module "m" { instructions: { runtime: { x: 1 } } }',
        ],
    )
    def test_absent(self, text):
        declaration = collect_declarations(text)[0]
        assert find_nested_block(text, declaration, "runtime") is None

    def test_deeper_key_skipped_for_top_level_block(self):
        text = 'module "m" {\n  contract: { runtime: { a: 1 } }\n  runtime: { model: "x" }\n}'
        declaration = collect_declarations(text)[0]
        open_brace, close_brace = find_nested_block(text, declaration, "runtime")
        assert text[open_brace : close_brace + 1] == '{ model: "x" }'
