"""Tests for pneuma.tui.commands -- binding lookup and wholesale replacement."""

from __future__ import annotations

from pneuma.tui.commands import Command, CommandRegistry
from pneuma.tui.keys import KeyChord


class Recorder:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def command(self, name: str) -> Command:
        return Command(lambda: self.calls.append(name), name)


class TestCommand:
    def test_call_runs_callback(self):
        rec = Recorder()
        rec.command("quit")()
        assert rec.calls == ["quit"]


class TestResolve:
    def test_bound_chord_resolves(self):
        rec = Recorder()
        quit_cmd = rec.command("quit")
        registry = CommandRegistry({KeyChord.of("q"): quit_cmd})
        assert registry.resolve("q") is quit_cmd

    def test_named_key(self):
        rec = Recorder()
        edit = rec.command("edit")
        registry = CommandRegistry({KeyChord.named("enter"): edit})
        assert registry.resolve("\r") is edit
        assert registry.resolve("\x1b[13u") is edit

    def test_unbound_chord_is_none(self):
        registry = CommandRegistry({KeyChord.of("q"): Recorder().command("quit")})
        assert registry.resolve("x") is None
        assert registry.resolve("Q") is None
        assert registry.resolve("\x11") is None  # ctrl+q

    def test_undecodable_input_is_none(self):
        registry = CommandRegistry({KeyChord.of("q"): Recorder().command("quit")})
        assert registry.resolve("") is None
        assert registry.resolve("\x1b[200~q\x1b[201~") is None

    def test_resolve_has_no_side_effects(self):
        rec = Recorder()
        registry = CommandRegistry({KeyChord.of("q"): rec.command("quit")})
        registry.resolve("q")
        registry.resolve("x")
        assert rec.calls == []
        assert len(registry) == 1

    def test_lookup_by_chord(self):
        rec = Recorder()
        cmd = rec.command("next")
        registry = CommandRegistry({KeyChord.of("j"): cmd})
        assert registry.lookup(KeyChord.of("j")) is cmd
        assert KeyChord.of("j") in registry
        assert KeyChord.of("k") not in registry


class TestSetCommands:
    def test_replacement_is_total(self):
        rec = Recorder()
        registry = CommandRegistry({
            KeyChord.of("j"): rec.command("next"),
            KeyChord.of("q"): rec.command("quit"),
        })
        new_quit = rec.command("new quit")
        registry.set_commands({KeyChord.of("x"): new_quit})

        assert registry.resolve("j") is None
        assert registry.resolve("q") is None
        assert registry.resolve("x") is new_quit
        assert len(registry) == 1

    def test_mapping_is_copied(self):
        rec = Recorder()
        bindings = {KeyChord.of("q"): rec.command("quit")}
        registry = CommandRegistry()
        registry.set_commands(bindings)
        bindings[KeyChord.of("j")] = rec.command("next")
        assert registry.resolve("j") is None

    def test_empty(self):
        registry = CommandRegistry({KeyChord.of("q"): Recorder().command("quit")})
        registry.set_commands({})
        assert len(registry) == 0
        assert registry.resolve("q") is None


class TestDescribe:
    def test_labels_in_binding_order(self):
        rec = Recorder()
        registry = CommandRegistry({
            KeyChord.of("j"): rec.command("next"),
            KeyChord.named("enter"): rec.command("edit"),
            KeyChord.of("c", "ctrl"): rec.command("cancel"),
        })
        assert registry.describe() == [
            ("j", "next"),
            ("enter", "edit"),
            ("ctrl+c", "cancel"),
        ]
