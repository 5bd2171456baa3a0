"""Language registry mapping file extensions to tree-sitter definition specs."""

import os
from dataclasses import dataclass


@dataclass
class LanguageSpec:
    """How to recognise definitions in a language's AST."""
    # tree-sitter language name (for tree-sitter-language-pack)
    ts_language: str

    # LSP languageId sent with textDocument/didOpen
    language_id: str

    # Node types whose span is a full definition
    definition_node_types: frozenset[str]


# File extension to language mapping
LANGUAGE_EXTENSIONS = {
    ".c": "c",
    ".h": "cpp",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".cxx": "cpp",
    ".hh": "cpp",
    ".hpp": "cpp",
    ".hxx": "cpp",
    ".py": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
}


C_SPEC = LanguageSpec(
    ts_language="c",
    language_id="c",
    definition_node_types=frozenset({
        "function_definition",
        "struct_specifier",
        "union_specifier",
        "enum_specifier",
        "type_definition",
    }),
)


CPP_SPEC = LanguageSpec(
    ts_language="cpp",
    language_id="cpp",
    definition_node_types=frozenset({
        "function_definition",
        "class_specifier",
        "struct_specifier",
        "union_specifier",
        "enum_specifier",
        "type_definition",
        "alias_declaration",
        "namespace_definition",
        "template_declaration",
    }),
)


PYTHON_SPEC = LanguageSpec(
    ts_language="python",
    language_id="python",
    definition_node_types=frozenset({
        "function_definition",
        "class_definition",
        "decorated_definition",
    }),
)


JAVASCRIPT_SPEC = LanguageSpec(
    ts_language="javascript",
    language_id="javascript",
    definition_node_types=frozenset({
        "function_declaration",
        "generator_function_declaration",
        "class_declaration",
        "method_definition",
    }),
)


TYPESCRIPT_SPEC = LanguageSpec(
    ts_language="typescript",
    language_id="typescript",
    definition_node_types=frozenset({
        "function_declaration",
        "class_declaration",
        "method_definition",
        "interface_declaration",
        "type_alias_declaration",
        "enum_declaration",
    }),
)


GO_SPEC = LanguageSpec(
    ts_language="go",
    language_id="go",
    definition_node_types=frozenset({
        "function_declaration",
        "method_declaration",
        "type_declaration",
    }),
)


RUST_SPEC = LanguageSpec(
    ts_language="rust",
    language_id="rust",
    definition_node_types=frozenset({
        "function_item",
        "struct_item",
        "enum_item",
        "trait_item",
        "impl_item",
        "type_item",
    }),
)


JAVA_SPEC = LanguageSpec(
    ts_language="java",
    language_id="java",
    definition_node_types=frozenset({
        "method_declaration",
        "constructor_declaration",
        "class_declaration",
        "interface_declaration",
        "enum_declaration",
    }),
)


# Language registry
LANGUAGE_REGISTRY = {
    "c": C_SPEC,
    "cpp": CPP_SPEC,
    "python": PYTHON_SPEC,
    "javascript": JAVASCRIPT_SPEC,
    "typescript": TYPESCRIPT_SPEC,
    "go": GO_SPEC,
    "rust": RUST_SPEC,
    "java": JAVA_SPEC,
}


def language_for_path(path: str) -> str:
    """Language name for a file path, or "" when unsupported."""
    _, ext = os.path.splitext(path)
    return LANGUAGE_EXTENSIONS.get(ext.lower(), "")
