"""
Yggdra UI Code Generator.

Transforms a Program into a Vue 3 single-file component:

- ``<script setup>``: reactive state, service clients, aliases, functions
  and the mount hook
- ``<template>``: the markup tree with synthetic per-element class names,
  ``v-if``/``v-else``/``v-for`` wrappers and bindings
- ``<style scoped>``: one rule per synthetic class or pseudo-class selector

All mutable state of one run (occurrence counters, collected style rules,
declared locals) lives in context objects created by ``generate``, so a
generator instance can be reused and repeated runs are byte-identical.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union

from yggdra.compiler.ast_nodes import (
    ASTVisitor,
    Assignment,
    Comment,
    Condition,
    FunctionDeclaration,
    IfBlock,
    LifecycleHook,
    Loop,
    Program,
    PseudoClass,
    RawStatement,
    ReturnStatement,
    Script,
    ServiceDeclaration,
    ServiceMethod,
    Statement,
    UIElement,
)
from yggdra.compiler.grammar import (
    DEFAULT_STYLES,
    INPUT_KINDS,
    SELF_CLOSING,
    css_key,
    format_css_value,
    is_style_property,
    resolve_tag,
)
from yggdra.compiler.markup import (
    Attribute,
    CodeWriter,
    MarkupElement,
    MarkupNode,
    StyleRule,
    TextNode,
    css_binding,
    js_template_text,
    render_markup,
    render_style_map,
)
from yggdra.compiler.tokens import BODY_VERBS

# Final methods that never need an await
SYNC_METHODS: frozenset[str] = frozenset({
    # Arrays
    "push", "pop", "shift", "unshift", "splice", "slice", "concat", "join",
    "map", "filter", "reduce", "reduceRight", "find", "findIndex", "findLast",
    "some", "every", "includes", "indexOf", "lastIndexOf", "forEach", "sort",
    "reverse", "flat", "flatMap", "fill", "at", "keys", "values", "entries",
    # Strings and numbers
    "toString", "toFixed", "trim", "trimStart", "trimEnd", "split", "replace",
    "replaceAll", "toUpperCase", "toLowerCase", "startsWith", "endsWith",
    "substring", "padStart", "padEnd", "repeat", "charAt", "match",
    # DOM events
    "preventDefault", "stopPropagation", "focus", "blur",
})

# Roots whose calls are synchronous
SYNC_GLOBALS: frozenset[str] = frozenset({
    "console", "Math", "JSON", "Object", "Array", "Number", "String", "Date",
    "window", "document", "localStorage", "sessionStorage",
})

_DOTTED_CALL_RE = re.compile(r"(?<![\w$.])([A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)+)\s*\(")
_STRING_RE = re.compile(r"(\"(?:\\.|[^\"\\])*\"|'(?:\\.|[^'\\])*'|`(?:\\.|[^`\\])*`)")
_INTERPOLATION_RE = re.compile(r"\$\{([^{}]*)\}")
_PATH_SEGMENT_RE = re.compile(r":(\w+)")

DEFAULT_INDEX = "_i"


# =============================================================================
# Script Rewriting
# =============================================================================


def insert_awaits(text: str) -> tuple[str, bool]:
    """
    Prefix asynchronous dotted calls with ``await``.

    A dotted call is asynchronous unless its root is a known global object or
    its final method is a known synchronous one.

    Returns:
        ``(rewritten, changed)``
    """
    positions = []
    for match in _DOTTED_CALL_RE.finditer(text):
        parts = match.group(1).split(".")
        if parts[0] in SYNC_GLOBALS or parts[-1] in SYNC_METHODS:
            continue
        prefix = text[:match.start()].rstrip()
        if prefix.endswith("await") or prefix.endswith("new"):
            continue
        positions.append(match.start())

    for position in reversed(positions):
        text = f"{text[:position]}await {text[position:]}"
    return text, bool(positions)


def rewrite_state_access(text: str, state_names: Sequence[str]) -> str:
    """
    Rewrite bare uses of state names to ``name.value``.

    Member accesses (``obj.name``), names already followed by ``.value`` and
    the contents of quoted strings are left alone. In template literals only
    the ``${...}`` interpolations are rewritten.
    """
    if not state_names:
        return text

    names = "|".join(re.escape(name) for name in sorted(state_names, key=len, reverse=True))
    pattern = re.compile(rf"(?<![\w$.])({names})(?![\w$])(?!\.value\b)")

    def interpolation(match: re.Match) -> str:
        return "${" + pattern.sub(r"\1.value", match.group(1)) + "}"

    parts = _STRING_RE.split(text)
    for i, part in enumerate(parts):
        if i % 2 == 0:
            parts[i] = pattern.sub(r"\1.value", part)
        elif part.startswith("`"):
            parts[i] = _INTERPOLATION_RE.sub(interpolation, part)
    return "".join(parts)


@dataclass
class FunctionContext:
    """Per-function rewriting state."""

    state_names: frozenset[str]
    declared: set[str] = field(default_factory=set)
    awaited: bool = False

    def transform(self, text: str) -> str:
        text, changed = insert_awaits(text)
        self.awaited = self.awaited or changed
        return rewrite_state_access(text, tuple(self.state_names))


def emit_statements(writer: CodeWriter, statements: Sequence[Statement], ctx: FunctionContext) -> None:
    for statement in statements:
        if isinstance(statement, Comment):
            writer.emit(f"// {statement.text}".rstrip())
        elif isinstance(statement, IfBlock):
            writer.emit(f"if ({ctx.transform(statement.condition)}) {{")
            _emit_nested(writer, statement.body, ctx)
            if statement.orelse:
                writer.emit("} else {")
                _emit_nested(writer, statement.orelse, ctx)
            writer.emit("}")
        elif isinstance(statement, Assignment):
            value = ctx.transform(statement.value)
            target = statement.target
            if target in ctx.state_names:
                writer.emit(f"{target}.value = {value}")
            elif target in ctx.declared:
                writer.emit(f"{target} = {value}")
            else:
                ctx.declared.add(target)
                writer.emit(f"let {target} = {value}")
            _emit_nested(writer, statement.body, ctx)
        elif isinstance(statement, RawStatement):
            writer.emit(ctx.transform(statement.text))
            _emit_nested(writer, statement.body, ctx)
        elif isinstance(statement, ReturnStatement):
            writer.emit(f"return {ctx.transform(statement.value or '')}".rstrip())


def _emit_nested(writer: CodeWriter, body: Sequence[Statement], ctx: FunctionContext) -> None:
    """Emit a nested block; a `let` declared inside it is scoped to it."""
    if not body:
        return
    outer = ctx.declared
    ctx.declared = set(outer)
    writer.indent()
    emit_statements(writer, body, ctx)
    writer.dedent()
    ctx.declared = outer


# =============================================================================
# Markup Walk
# =============================================================================


@dataclass
class MarkupContext:
    """Generation state of one markup walk."""

    counters: dict[str, int] = field(default_factory=dict)
    rules: dict[str, StyleRule] = field(default_factory=dict)
    styled_classes: set[str] = field(default_factory=set)
    class_stack: list[str] = field(default_factory=list)

    def class_name(self, element_type: str, explicit_tag: Optional[str]) -> str:
        kind = element_type.lower()
        if explicit_tag:
            return f"{kind}-{explicit_tag}"
        self.counters[element_type] = self.counters.get(element_type, 0) + 1
        return f"{kind}-{self.counters[element_type]}"

    def rule(self, selector: str) -> StyleRule:
        if selector not in self.rules:
            self.rules[selector] = StyleRule(selector)
        return self.rules[selector]

    def add_defaults(self, class_name: str, element_type: str) -> None:
        defaults = DEFAULT_STYLES.get(element_type)
        if not defaults or class_name in self.styled_classes:
            return
        self.styled_classes.add(class_name)
        self.rule(f".{class_name}").declarations.extend(defaults.items())


class MarkupBuilder(ASTVisitor):
    """
    Builds the template tree for one program.

    Every ``visit_*`` method returns a list of markup nodes; pseudo-classes
    return none and only contribute style rules.
    """

    def __init__(self, context: MarkupContext) -> None:
        self.context = context

    def build(self, nodes: Sequence) -> list[MarkupNode]:
        result: list[MarkupNode] = []
        for node in nodes:
            result.extend(self.visit(node))
        return result

    def visit_program(self, node: Program) -> list[MarkupNode]:
        return self.build(node.children)

    def visit_ui_element(self, node: UIElement) -> list[MarkupNode]:
        ctx = self.context
        kind = node.element_type
        class_name = ctx.class_name(kind, node.explicit_tag)
        ctx.add_defaults(class_name, kind)

        element = MarkupElement(
            resolve_tag(kind, node.explicit_tag),
            [Attribute("class", class_name)],
            self_closing=kind in SELF_CLOSING,
        )
        dynamic_styles: list[tuple[str, str]] = []

        for prop in node.properties:
            key, value = prop.key, prop.value
            if key in ("content", "text"):
                if value is not None:
                    element.children.append(TextNode(value, prop.is_dynamic))
            elif key.startswith("on") and len(key) > 2:
                event = key[2].lower() + key[3:]
                element.attributes.append(Attribute(f"@{event}", value, is_expression=True))
            elif value is None:
                element.attributes.append(Attribute(key))
            elif key == "value" and kind in INPUT_KINDS and prop.is_dynamic:
                element.attributes.append(Attribute("v-model", value, is_expression=True))
            elif is_style_property(key):
                if prop.is_dynamic:
                    dynamic_styles.append((css_key(key), value))
                else:
                    ctx.rule(f".{class_name}").declarations.append(format_css_value(key, value))
            elif prop.is_dynamic:
                element.attributes.append(Attribute(f":{key}", value, is_expression=True))
            else:
                element.attributes.append(Attribute(key, value))

        if dynamic_styles:
            element.attributes.append(
                Attribute(":style", render_style_map(dynamic_styles), is_expression=True)
            )

        ctx.class_stack.append(class_name)
        element.children.extend(self.build(node.children))
        ctx.class_stack.pop()

        if element.self_closing:
            element.children.clear()
        return [element]

    def visit_pseudo_class(self, node: PseudoClass) -> list[MarkupNode]:
        owner = self.context.class_stack[-1]
        rule = self.context.rule(f".{owner}:{node.selector}")
        for prop in node.properties:
            if prop.value is None:
                continue
            if prop.is_dynamic:
                rule.declarations.append((css_key(prop.key), css_binding(prop.value)))
            else:
                rule.declarations.append(format_css_value(prop.key, prop.value))
        return []

    def visit_condition(self, node: Condition) -> list[MarkupNode]:
        if node.branch == "if":
            attribute = Attribute("v-if", node.expression, is_expression=True)
        else:
            attribute = Attribute("v-else")
        return [MarkupElement("template", [attribute], self.build(node.children))]

    def visit_loop(self, node: Loop) -> list[MarkupNode]:
        index = node.index or DEFAULT_INDEX
        key = node.key or index
        attributes = [
            Attribute("v-for", f"({node.item}, {index}) in {node.collection}", is_expression=True),
            Attribute(":key", key, is_expression=True),
        ]
        return [MarkupElement("template", attributes, self.build(node.children))]


# =============================================================================
# Generator
# =============================================================================


class UICodeGenerator:
    """
    Generates a Vue 3 single-file component from a Program.

    Usage:
        generator = UICodeGenerator("App.ygg")
        vue_source = generator.generate(program)
    """

    def __init__(self, source_path: Union[str, Path, None] = None, indent_size: int = 2) -> None:
        self.source_path = source_path
        self.indent_size = indent_size

    def generate(self, program: Program) -> str:
        """
        Generate the component text.

        Args:
            program: The root Program node

        Returns:
            The component source, ending with a newline
        """
        context = MarkupContext()
        markup = MarkupBuilder(context).visit_program(program)

        sections = []
        if self.source_path:
            sections.append(f"<!-- Generated by Yggdra from {Path(self.source_path).name} -->")
        sections.append(self._script_section(program.script))
        sections.append(self._template_section(markup))
        sections.append(self._style_section(list(context.rules.values())))
        return "\n\n".join(sections) + "\n"

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def _script_section(self, script: Script) -> str:
        writer = CodeWriter(self.indent_size)
        writer.emit("<script setup>")

        imports = []
        if script.state:
            imports.append("ref")
        if script.lifecycle is not None:
            imports.append("onMounted")
        if imports:
            writer.emit(f"import {{ {', '.join(imports)} }} from 'vue'")

        state_names = frozenset(state.name for state in script.state)

        blocks: list[list[str]] = []
        if script.state:
            blocks.append([f"const {s.name} = ref({s.value})" for s in script.state])
        for service in script.services:
            blocks.append(self._service(service))
        if script.imports:
            blocks.append([f"const {use.alias} = {use.source}" for use in script.imports])
        for function in script.functions:
            blocks.append(self._function(function, state_names))
        if script.lifecycle is not None:
            blocks.append(self._lifecycle(script.lifecycle, state_names))

        for i, block in enumerate(blocks):
            if i or imports:
                writer.emit()
            for line in block:
                writer.emit(line)

        writer.emit("</script>")
        return writer.getvalue()

    def _template_section(self, markup: list[MarkupNode]) -> str:
        lines = ["<template>"]
        for node in markup:
            lines.extend(render_markup(node, depth=1))
        lines.append("</template>")
        return "\n".join(lines)

    def _style_section(self, rules: list[StyleRule]) -> str:
        body = "\n\n".join(rule.render() for rule in rules)
        return f"<style scoped>\n{body}\n</style>" if body else "<style scoped>\n</style>"

    # -------------------------------------------------------------------------
    # Script Members
    # -------------------------------------------------------------------------

    def _function(self, function: FunctionDeclaration, state_names: frozenset[str]) -> list[str]:
        ctx = FunctionContext(state_names, declared=set(function.parameters))
        body = CodeWriter(self.indent_size)
        body.indent()
        emit_statements(body, function.statements, ctx)

        prefix = "async function" if ctx.awaited else "function"
        header = f"{prefix} {function.name}({', '.join(function.parameters)}) {{"
        return [header, *body.lines, "}"]

    def _lifecycle(self, hook: LifecycleHook, state_names: frozenset[str]) -> list[str]:
        if not hook.statements:
            return ["onMounted(() => {})"]

        ctx = FunctionContext(state_names)
        body = CodeWriter(self.indent_size)
        body.indent()
        emit_statements(body, hook.statements, ctx)
        return ["onMounted(async () => {", *body.lines, "})"]

    def _service(self, service: ServiceDeclaration) -> list[str]:
        writer = CodeWriter(self.indent_size)
        writer.emit(f"const {service.name} = {{")
        writer.indent()
        for method in service.methods:
            self._service_method(writer, service.base_url, method)
        writer.dedent()
        writer.emit("}")
        return writer.lines

    def _service_method(self, writer: CodeWriter, base_url: str, method: ServiceMethod) -> None:
        params = list(dict.fromkeys(method.parameters))
        sends_body = method.verb in BODY_VERBS
        if sends_body and not method.smart_params:
            params.append("data")

        url = service_url(base_url, method.path)
        options = []
        if method.verb != "get":
            options.append(f"method: '{method.verb.upper()}'")

        writer.emit(f"async {method.name}({', '.join(params)}) {{")
        writer.indent()
        if sends_body:
            payload = (
                f"{{ {', '.join(method.smart_params)} }}" if method.smart_params else "data"
            )
            options.append("headers: { 'Content-Type': 'application/json' }")
            options.append(f"body: JSON.stringify({payload})")
        elif method.smart_params:
            writer.emit(
                f"const query = new URLSearchParams({{ {', '.join(method.smart_params)} }})"
            )
            url = url[:-1] + "?${query}`"

        if options:
            writer.emit(f"const res = await fetch({url}, {{ {', '.join(options)} }})")
        else:
            writer.emit(f"const res = await fetch({url})")
        writer.emit("return res.json()")
        writer.dedent()
        writer.emit("},")


def service_url(base_url: str, path: str) -> str:
    """
    Template literal for a service endpoint; ``:seg`` path segments become
    interpolations.

        >>> service_url("http://x", "/users/:id")
        '`http://x/users/${id}`'
    """
    if path.startswith("/"):
        base_url = base_url.rstrip("/")
    out = [js_template_text(base_url)]
    for i, piece in enumerate(_PATH_SEGMENT_RE.split(path)):
        out.append("${" + piece + "}" if i % 2 else js_template_text(piece))
    return "`" + "".join(out) + "`"
