"""
Integration tests for the complete Yggdra compilation pipeline.

These tests run whole programs from source text to generated output,
through the public facade.
"""

import pytest

from yggdra import compile_file, compile_source, compile_with_diagnostics
from yggdra.compiler import CompilationPipeline
from yggdra.utils.errors import CodeGenError, ParserError

TODO_APP = """
# A small todo list
state string draft = ""
state todos = []

service Api: "https://api.example.com"
    get list /todos
    post create /todos ?title
    delete remove /todos/:id

use console.log as log

fn add()
    if draft
        item = Api.create(draft)
        todos.push(item)
        draft = ""

fn load()
    todos = Api.list()

onMount
    load()

VBox
    .padding: 24
    .gap: 12
    Title
        .content: "Todos"
        .tag: h2
    HBox
        Input
            .value: draft
            .placeholder: "What next?"
        Button
            .content: "Add"
            .onClick: add()
            &hover
                .opacity: 0.8
    if todos.length
        loop todo in todos
            .key: todo.id
            Text
                .content: todo.title
    else
        Text
            .content: "Nothing to do"
"""

API_SERVER = """
server TodoApi: "http://localhost:8080"
    state todos = []

    get list /todos
        return todos

    post create /todos ?title
        const todo = { id: todos.length + 1, title }
        todos.push(todo)
        return todo

    get health /health
        return
            status: "ok"
            checks:
                - "db"
                - "cache"

    delete remove /todos/:id
        todos = todos.filter(t => t.id != id)
"""


class TestComponentPipeline:
    """A complete component through every stage."""

    def test_compiles_without_diagnostics(self, compile_result):
        result = compile_result(TODO_APP)
        assert result.success
        assert result.suffix == ".vue"
        assert result.diagnostics == []
        assert not result.has_errors()

    def test_script(self, compile_result):
        output = compile_result(TODO_APP).output
        assert "import { ref, onMounted } from 'vue'" in output
        assert 'const draft = ref("")' in output
        assert "const todos = ref([])" in output
        assert "async create(title) {" in output
        assert "const log = console.log" in output
        assert "async function add() {" in output
        assert "  if (draft.value) {" in output
        assert "    let item = await Api.create(draft.value)" in output
        assert "    todos.value.push(item)" in output
        assert '    draft.value = ""' in output
        assert "  todos.value = await Api.list()" in output
        assert "onMounted(async () => {\n  load()\n})" in output

    def test_template(self, compile_result):
        output = compile_result(TODO_APP).output
        assert '<h2 class="title-h2">Todos</h2>' in output
        assert '<input class="input-1" v-model="draft" placeholder="What next?" />' in output
        assert '<button class="button-1" @click="add()">Add</button>' in output
        assert '<template v-if="todos.length">' in output
        assert '<template v-for="(todo, _i) in todos" :key="todo.id">' in output
        assert '<span class="text-1">{{ todo.title }}</span>' in output
        assert '<span class="text-2">Nothing to do</span>' in output

    def test_styles(self, compile_result):
        output = compile_result(TODO_APP).output
        assert "  padding: 24px;\n  gap: 12px;" in output
        assert ".hbox-1 {\n  display: flex;\n  flex-direction: row;\n  align-items: center;\n}" in output
        assert ".button-1:hover {\n  opacity: 0.8;\n}" in output

    def test_repeatable(self):
        assert compile_source(TODO_APP) == compile_source(TODO_APP)


class TestServerPipeline:
    """A complete server through every stage."""

    def test_module(self, compile_result):
        result = compile_result(API_SERVER)
        assert result.success
        assert result.suffix == ".js"
        output = result.output
        assert "let todos = [];" in output
        assert "app.get('/todos', async (req, res) => {\n  return res.json(todos);\n});" in output
        assert "  const title = req.body.title;" in output
        assert "  return res.json(todo);" in output
        assert 'return res.json({ status: "ok", checks: ["db", "cache"] });' in output
        assert "  const id = req.params.id;" in output
        assert "app.listen(8080, () => {" in output

    def test_only_remove_has_fallback(self, compile_result):
        output = compile_result(API_SERVER).output
        assert output.count("if (!res.headersSent) {") == 1

    def test_header_from_file(self, tmp_path):
        path = tmp_path / "api.ygg"
        path.write_text(API_SERVER, encoding="utf-8")
        assert compile_file(path).startswith("// Generated by Yggdra from api.ygg\n")


class TestFailureModes:
    BROKEN = """
VBox
    txt
        .content: "recovered"
    Text
        .content: "kept"
"""

    def test_lenient_mode_keeps_going(self, compile_result):
        result = compile_result(self.BROKEN)
        assert result.success
        assert [d.code for d in result.errors] == ["E0201"]
        assert "kept" in result.output
        assert "txt" not in result.output

    def test_lines_under_dropped_line_attach_to_parent(self, compile_result):
        output = compile_result(self.BROKEN).output
        assert '<div class="vbox-1">\n    recovered' in output

    def test_strict_mode_raises(self):
        with pytest.raises(ParserError):
            compile_source("VBox\n    bogus\n", strict=True)

    def test_strict_result(self):
        result = compile_with_diagnostics("VBox\n    bogus\n", "App.ygg", strict=True)
        assert not result.success
        assert result.output == ""
        assert result.error.location.line == 2
        assert "Failure:" in str(result)

    def test_generator_error_raises(self):
        with pytest.raises(CodeGenError):
            compile_source("server Api: 99999\n")

    def test_pipeline_compile_file(self, tmp_path):
        path = tmp_path / "App.ygg"
        path.write_text("Text\n    .content: \"hi\"\n", encoding="utf-8")
        result = CompilationPipeline().compile_file(path)
        assert result.success
        assert "<!-- Generated by Yggdra from App.ygg -->" in result.output

    def test_result_summary(self, compile_result):
        result = compile_result("bogus\nVBox\n")
        text = str(result)
        assert "Errors: 1" in text
        assert "[E0201] line 1: unrecognised line" in text
