# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Known-module table used to resolve ``run <module>(...)`` references."""

from typing import Dict, FrozenSet, Iterable

from .declarations import Declaration, DeclarationKind

# I/O modules provided by the runtime; always resolvable without a declaration.
BUILTIN_MODULES: FrozenSet[str] = frozenset(
    {
        "io.write_file",
        "io.write_output",
        "io.read_logs",
        "io.read_fs",
        "io.write_fs",
    }
)


def module_declarations(declarations: Iterable[Declaration]) -> Dict[str, Declaration]:
    """Map module name to its declaration; the last duplicate wins."""
    modules: Dict[str, Declaration] = {}
    for declaration in declarations:
        if declaration.kind is DeclarationKind.MODULE:
            modules[declaration.name] = declaration
    return modules


def build_symbol_table(declarations: Iterable[Declaration]) -> FrozenSet[str]:
    return BUILTIN_MODULES | frozenset(module_declarations(declarations))
