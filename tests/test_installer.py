"""
Tests for the skill installer.
"""

import subprocess

import pytest

from mastracheck import installer
from mastracheck.installer import InstallError, SKILL_NAME, install_skill, skills_home


class TestInstallSkill:
    """Tests for copying the bundled corpus."""

    def test_install_bundled_corpus(self, tmp_path):
        dest = tmp_path / "skills" / SKILL_NAME

        location = install_skill(dest=str(dest))

        assert location == dest
        assert (dest / "SKILL.md").is_file()
        assert (dest / "AGENTS.md").is_file()
        assert (dest / "metadata.json").is_file()
        assert (dest / "rules" / "config-mastra-instance.md").is_file()
        assert (dest / "rules" / "_sections.md").is_file()

    def test_reinstall_replaces_previous_installation(self, tmp_path):
        dest = tmp_path / SKILL_NAME
        install_skill(dest=str(dest))
        (dest / "stale.md").write_text("old\n", encoding="utf-8")

        install_skill(dest=str(dest))

        assert not (dest / "stale.md").exists()
        assert (dest / "SKILL.md").is_file()

    def test_no_force_keeps_existing_installation(self, tmp_path):
        dest = tmp_path / SKILL_NAME
        install_skill(dest=str(dest))

        with pytest.raises(InstallError, match="already exists"):
            install_skill(dest=str(dest), force=False)
        assert (dest / "SKILL.md").is_file()

    def test_custom_source(self, tmp_path):
        source = tmp_path / "corpus"
        (source / "rules").mkdir(parents=True)
        (source / "SKILL.md").write_text("# Skill\n", encoding="utf-8")
        (source / "rules" / "a.md").write_text("---\ntitle: A\n---\n", encoding="utf-8")
        (source / "notes.txt").write_text("not part of the skill\n", encoding="utf-8")

        dest = install_skill(dest=str(tmp_path / "out"), source=str(source))

        assert sorted(p.name for p in dest.iterdir()) == ["SKILL.md", "rules"]
        assert (dest / "rules" / "a.md").is_file()

    def test_missing_source(self, tmp_path):
        with pytest.raises(InstallError, match="not found"):
            install_skill(dest=str(tmp_path / "out"), source=str(tmp_path / "missing"))


class TestDestination:
    """Tests for the default install location."""

    def test_default_destination_under_home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))

        location = install_skill()

        assert location == tmp_path / ".claude" / "skills" / SKILL_NAME
        assert (location / "SKILL.md").is_file()

    def test_missing_home(self, monkeypatch):
        monkeypatch.delenv("HOME", raising=False)
        monkeypatch.delenv("USERPROFILE", raising=False)

        with pytest.raises(InstallError, match="home directory"):
            skills_home()


class TestClone:
    """Tests for installing from a git repository."""

    def test_git_missing(self, tmp_path, monkeypatch):
        monkeypatch.setattr(installer.shutil, "which", lambda name: None)

        with pytest.raises(InstallError, match="git is required"):
            install_skill(dest=str(tmp_path / "out"), repo_url="https://example.com/repo.git")

    def test_clone_failure(self, tmp_path, monkeypatch):
        def fake_run(args, **kwargs):
            return subprocess.CompletedProcess(args, 128, stdout="", stderr="fatal: repository not found\n")

        monkeypatch.setattr(installer.shutil, "which", lambda name: "/usr/bin/git")
        monkeypatch.setattr(installer.subprocess, "run", fake_run)

        with pytest.raises(InstallError, match="repository not found"):
            install_skill(dest=str(tmp_path / "out"), repo_url="https://example.com/missing.git")

    def test_clone_removes_git_directory(self, tmp_path, monkeypatch):
        calls = []

        def fake_run(args, **kwargs):
            calls.append(args)
            target = tmp_path / "out"
            (target / ".git").mkdir(parents=True)
            (target / "SKILL.md").write_text("# Skill\n", encoding="utf-8")
            return subprocess.CompletedProcess(args, 0, stdout="", stderr="")

        monkeypatch.setattr(installer.shutil, "which", lambda name: "/usr/bin/git")
        monkeypatch.setattr(installer.subprocess, "run", fake_run)

        dest = install_skill(dest=str(tmp_path / "out"), repo_url="https://example.com/repo.git")

        assert calls == [["git", "clone", "--depth", "1", "https://example.com/repo.git", str(tmp_path / "out")]]
        assert (dest / "SKILL.md").is_file()
        assert not (dest / ".git").exists()
