"""
Shared fixtures: small rule corpora and Mastra projects built on disk.
"""

import os
import sys
import textwrap

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def _write(root, rel_path, content):
    path = root.joinpath(*rel_path.split("/"))
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
    return path


@pytest.fixture
def rules_dir(tmp_path):
    directory = tmp_path / "rules"
    directory.mkdir()
    return directory


@pytest.fixture
def write_rule(rules_dir):
    """Write ``<name>.md`` into the rule directory from front-matter and body text."""

    def write(name, front, body="## Rule\n\nGuidance.\n"):
        content = "---\n" + textwrap.dedent(front).strip("\n") + "\n---\n\n" + textwrap.dedent(body).lstrip("\n")
        path = rules_dir.joinpath(*name.split("/"))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return write


@pytest.fixture
def project_dir(tmp_path):
    directory = tmp_path / "project"
    directory.mkdir()
    return directory


@pytest.fixture
def write_file(project_dir):
    """Write a file below the project directory."""

    def write(rel_path, content):
        return _write(project_dir, rel_path, content)

    return write


@pytest.fixture
def healthy_project(project_dir, write_file):
    """A project that satisfies every bundled rule that applies to it."""
    write_file("package.json", """
        {
          "name": "weather-agent",
          "type": "module",
          "dependencies": {
            "@mastra/core": "^0.10.0",
            "@mastra/memory": "^0.10.0",
            "@mastra/libsql": "^0.10.0"
          }
        }
    """)
    write_file("tsconfig.json", """
        {
          "compilerOptions": {
            "module": "ES2022",
            "moduleResolution": "bundler"
          }
        }
    """)
    write_file(".gitignore", """
        node_modules
        .env
        .mastra
    """)
    write_file(".env.example", "OPENAI_API_KEY=your-key-here\n")
    write_file("src/mastra/index.ts", """
        import { Mastra } from '@mastra/core/mastra';
        import { LibSQLStore } from '@mastra/libsql';
        import { PinoLogger } from '@mastra/loggers';
        import { weatherAgent } from './agents/weather';

        export const mastra = new Mastra({
          agents: { weatherAgent },
          storage: new LibSQLStore({ url: 'file:../mastra.db' }),
          logger: new PinoLogger({ name: 'Mastra', level: 'info' }),
        });
    """)
    write_file("src/mastra/agents/weather.ts", """
        import { Agent } from '@mastra/core/agent';

        export const weatherAgent = new Agent({
          name: 'Weather Agent',
          instructions: 'You report the current weather.',
          model: openai('gpt-4o-mini'),
        });
    """)
    return project_dir


@pytest.fixture
def broken_project(project_dir, write_file):
    """A project that misses the instance export and leaks a key."""
    write_file("package.json", '{"name": "broken", "dependencies": {}}\n')
    write_file("src/mastra/agents/weather.ts", """
        const openai = createOpenAI({ apiKey: 'sk-proj-abcdefghijklmnopqrstuvwxyz012345' });
    """)
    return project_dir
