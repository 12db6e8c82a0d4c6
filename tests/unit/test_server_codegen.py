"""
Unit tests for the Express server generator.
"""

import pytest

from yggdra.compiler.parser import parse
from yggdra.compiler.server_codegen import DEFAULT_PORT, ServerCodeGenerator, derive_port
from yggdra.utils.errors import CodeGenError


class TestRoutes:
    def test_ping_returns_pong_without_fallback(self, compile_server):
        output = compile_server("""
            server Api: 4000
                get ping /ping
                    return "pong"
        """)
        assert "app.get('/ping', async (req, res) => {\n  return res.json(\"pong\");\n});" in output
        assert "headersSent" not in output

    def test_fallback_when_no_return(self, compile_server):
        output = compile_server("""
            server Api: 4000
                state users = []
                post add /users ?name
                    users.push(name)
        """)
        assert "let users = [];" in output
        assert (
            "app.post('/users', async (req, res) => {\n"
            "  const name = req.body.name;\n"
            "  users.push(name)\n"
            "  if (!res.headersSent) {\n"
            "    res.json({ status: 'ok' });\n"
            "  }\n"
            "});"
        ) in output

    def test_nested_return_keeps_fallback(self, compile_server):
        output = compile_server("""
            server Api: 4000
                get maybe /maybe ?flag
                    if (flag) {
                        return 1
                    }
        """)
        assert "    return res.json(1);" in output
        assert "if (!res.headersSent) {" in output

    def test_get_smart_params_from_query(self, compile_server):
        output = compile_server("""
            server Api
                get search /search ?q
                    return q
        """)
        assert "const q = req.query.q;" in output

    def test_path_params(self, compile_server):
        output = compile_server("""
            server Api
                put update /users/:id ?id ?name
                    return id
        """)
        assert output.count("const id = ") == 1
        assert "const id = req.params.id;" in output
        assert "const name = req.body.name;" in output

    def test_literal_block_return(self, compile_server):
        output = compile_server("""
            server Api
                get list /list
                    return
                        - name: "Ada"
                        - name: "Linus"
        """)
        assert 'return res.json([{ name: "Ada" }, { name: "Linus" }]);' in output

    def test_comment_in_route(self, compile_server):
        output = compile_server("""
            server Api
                get ping /ping
                    # health check
                    return "pong"
        """)
        assert "  // health check" in output


class TestModule:
    def test_bootstrap_and_listen(self, compile_server):
        output = compile_server("""
            server Api: 4000
                get ping /ping
                    return "pong"
        """)
        assert output.startswith("const express = require('express');\nconst cors = require('cors');")
        assert "app.use(cors());\napp.use(express.json());" in output
        assert "// Routes for Api" in output
        assert output.endswith(
            "app.listen(4000, () => {\n  console.log('Server Api listening on port 4000');\n});\n"
        )

    def test_default_port(self, compile_server):
        assert f"app.listen({DEFAULT_PORT}, " in compile_server("server Api")

    def test_header(self):
        output = ServerCodeGenerator("api/server.ygg").generate(parse("server Api\n"))
        assert output.splitlines()[0] == "// Generated by Yggdra from server.ygg"

    def test_duplicate_route(self, parse):
        program = parse("""
            server Api
                get a /same
                get b /same
        """)
        with pytest.raises(CodeGenError) as info:
            ServerCodeGenerator().generate(program)
        assert "duplicate route GET /same" in str(info.value)
        assert info.value.location.line == 3

    def test_same_path_different_verbs(self, compile_server):
        output = compile_server("""
            server Api
                get read /item
                post write /item
        """)
        assert "app.get('/item'" in output
        assert "app.post('/item'" in output

    def test_no_server(self, parse):
        with pytest.raises(CodeGenError):
            ServerCodeGenerator().generate(parse("VBox"))


class TestDerivePort:
    @pytest.mark.parametrize(
        "raw,port",
        [
            (None, 3000),
            ("8080", 8080),
            ('"8080"', 8080),
            ("localhost:5000", 5000),
            ("http://localhost:9000", 9000),
            ("https://api.example.com:8443/", 8443),
            ('"http://example.com"', 3000),
            ("http://example.com", 3000),
            ("process.env.PORT || 3000", "process.env.PORT || 3000"),
            ("PORT", "PORT"),
        ],
    )
    def test_valid(self, raw, port):
        assert derive_port(raw) == port

    @pytest.mark.parametrize("raw", ["0", "99999999", "localhost:70000", "http://x:99999"])
    def test_out_of_range(self, raw):
        with pytest.raises(CodeGenError):
            derive_port(raw)

    def test_expression_port_in_listen(self, compile_server):
        output = compile_server("server Api: process.env.PORT || 3000")
        assert "app.listen(process.env.PORT || 3000, () => {" in output
        assert "console.log(`Server Api listening on port ${process.env.PORT || 3000}`);" in output
