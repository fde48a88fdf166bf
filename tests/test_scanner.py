"""
Tests for the project scanner and path matching.
"""

import pytest

from mastracheck.core.rules import Check
from mastracheck.core.scanner import ProjectScanner, ScanError
from mastracheck.utils import mask_secret, match_path, truncate_string


class TestMatchPath:
    """Tests for relative path globs."""

    @pytest.mark.parametrize("path, pattern", [
        ("src/mastra/index.ts", "src/**"),
        ("src/mastra/index.ts", "src/"),
        ("src/mastra/index.ts", "./src/**"),
        ("index.ts", "**/*.ts"),
        ("src/a/b.ts", "**/*.ts"),
        ("apps/web/.env.local", ".env*"),
        ("package.json", "package.json"),
        ("apps/api/package.json", "package.json"),
    ])
    def test_matches(self, path, pattern):
        assert match_path(path, pattern)

    @pytest.mark.parametrize("path, pattern", [
        ("lib/index.ts", "src/**"),
        ("src/index.js", "**/*.ts"),
        ("srcfile.ts", "src/"),
    ])
    def test_non_matches(self, path, pattern):
        assert not match_path(path, pattern)

    def test_truncate_string(self):
        assert truncate_string("short") == "short"
        assert truncate_string("x" * 20, 10) == "xxxxxxx..."

    def test_mask_secret(self):
        assert mask_secret("sk-proj-abcdefghijklmnop1234") == "sk-proj-" + "*" * 16 + "1234"
        assert mask_secret("sk-short-key") == "*" * 12


class TestDiscovery:
    """Tests for file discovery."""

    def test_ignores_default_directories_and_files(self, project_dir, write_file):
        write_file("src/mastra/index.ts", "export const mastra = 1;\n")
        write_file("node_modules/@mastra/core/index.js", "module.exports = {};\n")
        write_file(".mastra/output/index.mjs", "bundle\n")
        write_file("dist/index.js", "bundle\n")
        write_file("packages/app/node_modules/x/index.js", "nested\n")
        write_file("public/app.min.js", "minified\n")
        write_file("package-lock.json", "{}\n")
        write_file("package.json", "{}\n")

        paths = ProjectScanner().discover_files(str(project_dir))

        assert paths == ["package.json", "src/mastra/index.ts"]

    def test_custom_ignore_patterns(self, project_dir, write_file):
        write_file("examples/demo.ts", "demo\n")
        write_file("src/index.ts", "app\n")
        write_file("node_modules/x/index.js", "dep\n")

        scanner = ProjectScanner({"ignore_patterns": ["examples/"]})
        paths = scanner.discover_files(str(project_dir))

        assert paths == ["node_modules/x/index.js", "src/index.ts"]

    def test_text_paths(self):
        scanner = ProjectScanner()
        assert scanner.is_text_path("src/index.ts")
        assert scanner.is_text_path("package.json")
        assert scanner.is_text_path(".gitignore")
        assert scanner.is_text_path("apps/api/.env.production")
        assert scanner.is_text_path("Dockerfile")
        assert not scanner.is_text_path("public/logo.png")
        assert not scanner.is_text_path("README")


class TestScan:
    """Tests for reading files and computing facts."""

    def test_missing_root(self, tmp_path):
        with pytest.raises(ScanError):
            ProjectScanner().scan(str(tmp_path / "missing"))

    def test_root_is_a_file(self, tmp_path):
        target = tmp_path / "file.ts"
        target.write_text("x\n", encoding="utf-8")
        with pytest.raises(ScanError):
            ProjectScanner().scan(str(target))

    def test_reads_text_files_only(self, project_dir, write_file):
        write_file("src/index.ts", "const a = 1;\n")
        write_file("logo.png", b"\x89PNG\r\n\x1a\n\x00\x00")
        write_file("src/blob.ts", b"\x00\x01\x02binary")

        context = ProjectScanner().scan(str(project_dir))

        assert context.paths == ["logo.png", "src/blob.ts", "src/index.ts"]
        assert list(context.files) == ["src/index.ts"]
        assert context.files_scanned == 1
        assert context.warnings == []

    def test_oversized_files_are_skipped(self, project_dir, write_file):
        write_file("src/big.ts", "x" * 200)
        write_file("src/small.ts", "x\n")

        context = ProjectScanner({"max_file_size": 100}).scan(str(project_dir))

        assert list(context.files) == ["src/small.ts"]
        assert context.warnings == []

    def test_undecodable_file_becomes_warning(self, project_dir, write_file):
        write_file("src/latin1.ts", "const name = 'Jos\xe9';\n".encode("latin-1"))
        write_file("src/ok.ts", "const ok = true;\n")

        context = ProjectScanner().scan(str(project_dir))

        assert list(context.files) == ["src/ok.ts"]
        assert len(context.warnings) == 1
        assert context.warnings[0].source == "scanner"
        assert context.warnings[0].path == "src/latin1.ts"

    def test_pattern_fact(self, project_dir, write_file):
        write_file("src/mastra/index.ts", """
            import { Mastra } from '@mastra/core';

            export const mastra = new Mastra({
              storage: new LibSQLStore({ url: 'file:../mastra.db' }),
            });
        """)
        write_file("docs/notes.md", "storage: is documented here\n")
        check = Check("pattern", r"storage\s*:", paths=("src/**",))

        context = ProjectScanner().scan(str(project_dir), [check])
        fact = context.fact(check)

        assert fact.present
        assert [(m.file_path, m.line) for m in fact.matches] == [("src/mastra/index.ts", 4)]
        assert fact.matches[0].text.startswith("storage:")

    def test_pattern_fact_ignore_case(self, project_dir, write_file):
        write_file("src/index.ts", "const LOGGER = createLogger();\n")
        sensitive = Check("pattern", "logger")
        folded = Check("pattern", "logger", ignore_case=True)

        context = ProjectScanner().scan(str(project_dir), [sensitive, folded])

        assert not context.fact(sensitive).present
        assert context.fact(folded).present

    def test_redacted_pattern_fact(self, project_dir, write_file):
        write_file("src/agent.ts", "import x from 'y';\n\nconst key = 'sk-ant-REDACTED';\n")
        check = Check("pattern", r"sk-ant-[A-Za-z0-9]{20,}", redact=True)

        fact = ProjectScanner().scan(str(project_dir), [check]).fact(check)

        assert fact.present
        assert fact.matches[0].line == 3
        assert fact.matches[0].text == "const key = 'sk-ant-a" + "*" * 21 + "wxyz';"

    def test_dependency_fact(self, project_dir, write_file):
        write_file("package.json", """
            {
              "name": "app",
              "dependencies": {"@mastra/core": "^0.10.0"},
              "devDependencies": {"mastra": "^0.10.0"}
            }
        """)
        core = Check("dependency", "@mastra/core")
        cli = Check("dependency", "mastra")
        memory = Check("dependency", "@mastra/memory")

        context = ProjectScanner().scan(str(project_dir), [core, cli, memory])

        assert context.fact(core).matches[0].line == 3
        assert context.fact(core).matches[0].text == "@mastra/core@^0.10.0 (dependencies)"
        assert context.fact(cli).matches[0].text == "mastra@^0.10.0 (devDependencies)"
        assert not context.fact(memory).present

    def test_invalid_package_json_becomes_warning(self, project_dir, write_file):
        write_file("package.json", "{ not json\n")
        checks = [Check("dependency", "@mastra/core"), Check("dependency", "@mastra/memory")]

        context = ProjectScanner().scan(str(project_dir), checks)

        assert not context.fact(checks[0]).present
        assert len(context.warnings) == 1
        assert context.warnings[0].path == "package.json"
        assert "invalid JSON" in context.warnings[0].message

    def test_file_fact(self, project_dir, write_file):
        write_file(".env.example", "OPENAI_API_KEY=\n")
        write_file("assets/logo.png", b"\x89PNG\x00")
        example = Check("file", ".env.example")
        image = Check("file", "assets/*.png")
        docker = Check("file", "Dockerfile")

        context = ProjectScanner().scan(str(project_dir), [example, image, docker])

        assert context.fact(example).present
        assert context.fact(image).matches[0].file_path == "assets/logo.png"
        assert not context.fact(docker).present

    def test_when_checks_are_computed(self, project_dir, write_file):
        write_file("src/workflow.ts", "createWorkflow({ id: 'w' }).then(step).commit();\n")
        check = Check("pattern", r"\.commit\(\)", when=Check("pattern", r"createWorkflow\("))

        context = ProjectScanner().scan(str(project_dir), [check])

        assert context.fact(check).present
        assert context.fact(check.when).present
