"""
Unit tests for the Yggdra Parser.
"""

from yggdra.compiler.ast_nodes import (
    Assignment,
    Condition,
    Loop,
    Program,
    Property,
    PseudoClass,
    ReturnStatement,
    UIElement,
    iter_nodes,
)
from yggdra.compiler.parser import Parser, parse
from yggdra.utils.diagnostics import DiagnosticLevel, ErrorCode


def codes(diagnostics):
    return [d.code for d in diagnostics]


class TestParserBasics:
    """Basic parser functionality tests."""

    def test_empty_program(self, parse):
        """Empty source should produce an empty program."""
        program = parse("")
        assert isinstance(program, Program)
        assert program.children == ()
        assert program.script.state == ()
        assert program.server is None

    def test_comments_only(self, parse_with_diagnostics):
        program, diagnostics = parse_with_diagnostics("# one\n# two\n")
        assert program.children == ()
        assert diagnostics == []

    def test_module_level_parse(self):
        program = parse("VBox\n", "App.ygg")
        assert program.children[0].location.filename == "App.ygg"

    def test_diagnostics_on_program(self, parser_factory):
        parser = parser_factory("bogus\n")
        program = parser.parse()
        assert list(program.diagnostics) == parser.get_diagnostics()

    def test_reparse_clears_diagnostics(self, parser_factory):
        parser = parser_factory("bogus\n")
        parser.parse()
        parser.parse()
        assert len(parser.get_diagnostics()) == 1


class TestDeclarations:
    """State, functions, imports and lifecycle."""

    def test_typed_state(self, parse):
        program = parse('state string msg = "Hello World"')
        [state] = program.script.state
        assert state.type_name == "string"
        assert state.name == "msg"
        assert state.value == '"Hello World"'

    def test_untyped_state(self, parse):
        [state] = parse("state count = 0").script.state
        assert state.type_name == "any"
        assert state.value == "0"

    def test_malformed_state(self, parse_with_diagnostics):
        program, diagnostics = parse_with_diagnostics("state = 5")
        assert program.script.state == ()
        assert codes(diagnostics) == [ErrorCode.E0202]

    def test_function(self, parse):
        program = parse("""
            fn inc(step)
                count = count + step
        """)
        [function] = program.script.functions
        assert function.name == "inc"
        assert function.parameters == ("step",)
        assert isinstance(function.statements[0], Assignment)
        assert function.body[0].text == "count = count + step"

    def test_function_without_parameters(self, parse):
        [function] = parse("fn reset()").script.functions
        assert function.parameters == ()
        assert function.statements == ()

    def test_function_body_does_not_leak_into_markup(self, parse):
        program = parse("""
            fn show()
                Text
            VBox
        """)
        assert [child.element_type for child in program.children] == ["VBox"]

    def test_malformed_function(self, parse_with_diagnostics):
        program, diagnostics = parse_with_diagnostics("""
            fn broken
                x = 1
        """)
        assert program.script.functions == ()
        assert codes(diagnostics) == [ErrorCode.E0202, ErrorCode.E0201]

    def test_use(self, parse):
        [use] = parse("use axios.default as http").script.imports
        assert use.source == "axios.default"
        assert use.alias == "http"

    def test_on_mount(self, parse):
        program = parse("""
            onMount
                load(1)
        """)
        assert program.script.lifecycle.statements[0].text == "load(1)"

    def test_duplicate_on_mount(self, parse_with_diagnostics):
        program, diagnostics = parse_with_diagnostics("""
            onMount
                first()
            onMount
                second()
        """)
        assert program.script.lifecycle.statements[0].text == "second()"
        assert codes(diagnostics) == [ErrorCode.W0201]
        assert diagnostics[0].level == DiagnosticLevel.WARNING


class TestServices:
    def test_service_methods(self, parse_with_diagnostics):
        program, diagnostics = parse_with_diagnostics("""
            service Api: "http://x"
                get getUser /users/:id
                post createUser /users ?name ?email
                # comment lines are fine
        """)
        [service] = program.script.services
        assert service.name == "Api"
        assert service.base_url == "http://x"
        get, post = service.methods
        assert (get.verb, get.name, get.path) == ("get", "getUser", "/users/:id")
        assert get.path_params == ("id",)
        assert post.smart_params == ("name", "email")
        assert post.parameters == ("name", "email")
        assert diagnostics == []

    def test_unsupported_service_line(self, parse_with_diagnostics):
        program, diagnostics = parse_with_diagnostics("""
            service Api: "http://x"
                fetch everything
                get ok /ok
        """)
        assert len(program.script.services[0].methods) == 1
        assert codes(diagnostics) == [ErrorCode.W0202]
        assert diagnostics[0].line == 2


class TestMarkupTree:
    """Elements, properties and nesting."""

    def test_element_tree(self, parse):
        program = parse("""
            VBox
                .padding: 20
                Title
                    .content: msg
                Button
                    .onClick: inc(1)
        """)
        [box] = program.children
        assert isinstance(box, UIElement)
        assert box.element_type == "VBox"
        assert box.properties[0].key == "padding"
        assert box.properties[0].value == "20"
        assert not box.properties[0].is_dynamic

        title, button = box.children
        assert title.properties[0] == Property("content", "msg", True, title.properties[0].location)
        assert button.properties[0].value == "inc(1)"

    def test_depth_follows_indentation(self, parse):
        program = parse("""
            VBox
              HBox
                  Text
              Text
            Button
        """)
        depths = [
            (node.element_type, depth)
            for child in program.children
            for node, depth in iter_nodes(child)
        ]
        assert depths == [("VBox", 0), ("HBox", 1), ("Text", 2), ("Text", 1), ("Button", 0)]

    def test_flag_property(self, parse):
        [button] = parse("""
            Button
                .disabled
        """).children
        assert button.properties[0].value is None

    def test_tag_property(self, parse):
        [text] = parse("""
            Text
                .tag: p
        """).children
        assert text.explicit_tag == "p"
        assert text.properties == ()

    def test_tag_without_value(self, parse_with_diagnostics):
        _, diagnostics = parse_with_diagnostics("""
            Text
                .tag
        """)
        assert codes(diagnostics) == [ErrorCode.E0202]

    def test_locations(self, parse):
        [box] = parse("""
            VBox
                Title
        """).children
        assert box.location.line == 1
        assert box.children[0].location.line == 2
        assert box.children[0].location.column == 5

    def test_malformed_element(self, parse_with_diagnostics):
        program, diagnostics = parse_with_diagnostics("VBox Text")
        assert program.children == ()
        assert codes(diagnostics) == [ErrorCode.E0202]

    def test_property_outside_element(self, parse_with_diagnostics):
        _, diagnostics = parse_with_diagnostics(".color: red")
        assert codes(diagnostics) == [ErrorCode.E0203]


class TestDroppedLines:
    """Unusable lines are reported; the lines around them parse normally."""

    def test_unknown_line_suggestion(self, parse_with_diagnostics):
        _, diagnostics = parse_with_diagnostics("stat x = 1")
        [diagnostic] = diagnostics
        assert diagnostic.code == ErrorCode.E0201
        assert diagnostic.level == DiagnosticLevel.ERROR
        assert diagnostic.text == "stat x = 1"
        assert diagnostic.line == 1
        assert diagnostic.helps == ["did you mean 'state'?"]

    def test_lines_after_bad_line_still_parse(self, parse_with_diagnostics):
        program, diagnostics = parse_with_diagnostics("""
            VBox
              bogus line here
                state int n = 0
                fn inc()
                  n = n + 1
                Text
                  .content: n
        """)
        assert [s.name for s in program.script.state] == ["n"]
        [inc] = program.script.functions
        assert inc.name == "inc"
        assert isinstance(inc.statements[0], Assignment)
        [box] = program.children
        [text] = box.children
        assert text.element_type == "Text"
        assert text.properties[0].value == "n"
        assert codes(diagnostics) == [ErrorCode.E0201]

    def test_children_of_bad_line_attach_to_enclosing_element(self, parse_with_diagnostics):
        program, diagnostics = parse_with_diagnostics("""
            VBox
                Bad Element
                    .padding: 8
                    Button
        """)
        [box] = program.children
        assert [p.key for p in box.properties] == ["padding"]
        assert [child.element_type for child in box.children] == ["Button"]
        assert codes(diagnostics) == [ErrorCode.E0202]

    def test_every_bad_line_reported(self, parse_with_diagnostics):
        _, diagnostics = parse_with_diagnostics("""
            one bad
            two bad
            VBox
        """)
        assert [d.line for d in diagnostics] == [1, 2]


class TestConditionsAndLoops:
    def test_if_else(self, parse):
        [box] = parse("""
            VBox
                if loggedIn
                    Text
                        .content: "hi"
                else
                    Button
        """).children
        branch_if, branch_else = box.children
        assert isinstance(branch_if, Condition)
        assert (branch_if.branch, branch_if.expression) == ("if", "loggedIn")
        assert branch_if.children[0].element_type == "Text"
        assert (branch_else.branch, branch_else.expression) == ("else", None)
        assert branch_else.children[0].element_type == "Button"

    def test_else_without_if(self, parse_with_diagnostics):
        _, diagnostics = parse_with_diagnostics("""
            VBox
                Text
                else
                    Button
        """)
        assert codes(diagnostics) == [ErrorCode.E0203]

    def test_second_else(self, parse_with_diagnostics):
        _, diagnostics = parse_with_diagnostics("""
            if a
                Text
            else
                Text
            else
                Text
        """)
        assert codes(diagnostics) == [ErrorCode.E0203]

    def test_loop_with_index_and_key(self, parse):
        [loop] = parse("""
            loop item, idx in items
                .key: item.id
                Text
                    .content: item.name
        """).children
        assert isinstance(loop, Loop)
        assert (loop.item, loop.index, loop.collection) == ("item", "idx", "items")
        assert loop.key == "item.id"
        assert loop.children[0].element_type == "Text"

    def test_loop_single_binding(self, parse):
        [loop] = parse("loop user in users").children
        assert loop.index is None
        assert loop.key is None

    def test_malformed_loop(self, parse_with_diagnostics):
        program, diagnostics = parse_with_diagnostics("loop in items")
        assert program.children == ()
        assert codes(diagnostics) == [ErrorCode.E0202]

    def test_loop_rejects_other_properties(self, parse_with_diagnostics):
        _, diagnostics = parse_with_diagnostics("""
            loop item in items
                .color: red
        """)
        assert codes(diagnostics) == [ErrorCode.E0203]


class TestPseudoClasses:
    def test_pseudo_class(self, parse):
        [button] = parse("""
            Button
                &hover
                    .color: "red"
        """).children
        [pseudo] = button.children
        assert isinstance(pseudo, PseudoClass)
        assert pseudo.selector == "hover"
        assert pseudo.properties[0].value == "red"

    def test_pseudo_outside_element(self, parse_with_diagnostics):
        _, diagnostics = parse_with_diagnostics("""
            &hover
                .color: red
        """)
        assert codes(diagnostics) == [ErrorCode.E0203, ErrorCode.E0203]

    def test_element_inside_pseudo(self, parse_with_diagnostics):
        program, diagnostics = parse_with_diagnostics("""
            Button
                &hover
                    Text
        """)
        assert program.children[0].children[0].properties == ()
        assert codes(diagnostics) == [ErrorCode.E0203]


class TestServers:
    SOURCE = """
        server Api: 4000
            state users = []
            get ping /ping
                return "pong"
            post add /users ?name
                users.push(name)
            get user /users/:id
                return users[id]
    """

    def test_server_definition(self, parse):
        program = parse(self.SOURCE)
        server = program.server
        assert server.name == "Api"
        assert server.port == "4000"
        assert [s.name for s in server.state] == ["users"]
        assert [(r.verb, r.name, r.path) for r in server.routes] == [
            ("get", "ping", "/ping"),
            ("post", "add", "/users"),
            ("get", "user", "/users/:id"),
        ]
        assert program.children == ()
        assert program.script.state == ()

    def test_route_statements(self, parse):
        ping, add, user = parse(self.SOURCE).server.routes
        assert isinstance(ping.statements[0], ReturnStatement)
        assert ping.statements[0].value == '"pong"'
        assert add.smart_params == ("name",)
        assert user.path_params == ("id",)

    def test_server_without_port(self, parse):
        assert parse("server Api").server.port is None

    def test_markup_inside_server(self, parse_with_diagnostics):
        program, diagnostics = parse_with_diagnostics("""
            server Api: 4000
                VBox
                get ping /ping
        """)
        assert len(program.server.routes) == 1
        assert codes(diagnostics) == [ErrorCode.E0203]

    def test_route_outside_server(self, parse_with_diagnostics):
        _, diagnostics = parse_with_diagnostics("get ping /ping")
        assert codes(diagnostics) == [ErrorCode.E0203]

    def test_malformed_route(self, parse_with_diagnostics):
        program, diagnostics = parse_with_diagnostics("""
            server Api: 4000
                get /ping
                    return 1
                get ok /ok extra
        """)
        assert program.server.routes == ()
        assert codes(diagnostics) == [ErrorCode.E0202, ErrorCode.E0203, ErrorCode.E0202]

    def test_duplicate_server(self, parse_with_diagnostics):
        program, diagnostics = parse_with_diagnostics("""
            server One: 1000
                get a /a
            server Two: 2000
                get b /b
        """)
        assert program.server.name == "One"
        assert len(program.server.routes) == 1
        assert codes(diagnostics) == [ErrorCode.W0201]

    def test_duplicate_server_body_still_checked(self, parse_with_diagnostics):
        program, diagnostics = parse_with_diagnostics("""
            server One: 1000
            server Two: 2000
                state hits = 0
                get /broken
        """)
        assert program.server.state == ()
        assert program.script.state == ()
        assert codes(diagnostics) == [ErrorCode.W0201, ErrorCode.E0202]

    def test_literal_block_errors_reported(self, parse_with_diagnostics):
        _, diagnostics = parse_with_diagnostics("""
            server Api: 4000
                get list /list
                    return
                        - 1
                        oops
        """)
        assert codes(diagnostics) == [ErrorCode.E0204]
        assert diagnostics[0].line == 5

    def test_markup_after_server(self, parse):
        program = parse("""
            server Api: 4000
                get ping /ping
            VBox
        """)
        assert program.children[0].element_type == "VBox"


class TestParserDirect:
    def test_render_diagnostics(self):
        parser = Parser("state = 5\n", "App.ygg")
        parser.parse()
        rendered = parser.render_diagnostics(use_color=False)
        assert "error[E0202]: malformed state declaration" in rendered
        assert "--> App.ygg:1:1" in rendered
